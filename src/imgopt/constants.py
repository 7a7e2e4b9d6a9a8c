"""Defaults, limits and fixed names used across imgopt."""

from __future__ import annotations

# =============================================================================
# Conversion Defaults
# =============================================================================

DEFAULT_QUALITY = 80  # WebP lossy quality (1-100)
MIN_QUALITY = 1
MAX_QUALITY = 100
DEFAULT_WORKERS = 8

# Source extensions accepted in directory mode (compared lowercased, no dot)
ALLOWED_EXTENSIONS = frozenset({"png", "jpg", "jpeg"})

OUTPUT_EXTENSION = "webp"
LOSSLESS_SOURCE_FORMATS = frozenset({"PNG"})

# =============================================================================
# Output Layout
# =============================================================================

OUTPUT_DIR_PREFIX = "webp-"
OUTPUT_DIR_TIME_FORMAT = "%Y%m%d-%H%M%S"
ERROR_LOG_FILENAME = "webp-errors.log"
DOWNLOADS_DIRNAME = "Downloads"

# Output path collision resolution: name-1, name-2, ... then a timestamp
MAX_SUFFIX_ATTEMPTS = 1_000_000

FALLBACK_FILENAME = "file"

# =============================================================================
# Network
# =============================================================================

DEFAULT_HTTP_TIMEOUT = 30.0  # seconds
DEFAULT_USER_AGENT = "imgopt/0.1"

# =============================================================================
# Progress
# =============================================================================

PROGRESS_QUEUE_SIZE = 256  # Pending progress messages before workers block

# =============================================================================
# Environment Overrides
# =============================================================================

ENV_DOWNLOADS_DIR = "IMGOPT_DOWNLOADS_DIR"
ENV_LOG_DIR = "IMGOPT_LOG_DIR"
