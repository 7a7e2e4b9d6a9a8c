"""Pytest configuration and fixtures."""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path

import pytest
from loguru import logger
from PIL import Image

# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_loguru():
    """Drop handlers added during a test (CLI runs bind to captured streams)."""
    yield
    logger.remove()


# =============================================================================
# Image Fixtures
# =============================================================================


def _encode(fmt: str, size: tuple[int, int] = (8, 6), mode: str = "RGB") -> bytes:
    color: tuple[int, ...] = (200, 30, 60, 128) if mode == "RGBA" else (200, 30, 60)
    img = Image.new(mode, size, color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """Return a small PNG image."""
    return _encode("PNG", mode="RGBA")


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Return a small JPEG image."""
    return _encode("JPEG")


@pytest.fixture
def make_image() -> Callable[..., Path]:
    """Return a factory that writes an image file and returns its path."""

    def _make(path: Path, fmt: str | None = None) -> Path:
        if fmt is None:
            fmt = {"png": "PNG", "jpg": "JPEG", "jpeg": "JPEG", "gif": "GIF"}[
                path.suffix.lower().lstrip(".")
            ]
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(_encode(fmt))
        return path

    return _make


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def tmp_output(tmp_path: Path) -> Path:
    """Return a temporary output directory."""
    output = tmp_path / "output"
    output.mkdir()
    return output


@pytest.fixture
def downloads_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the Downloads lookup at a temporary directory."""
    downloads = tmp_path / "Downloads"
    downloads.mkdir()
    monkeypatch.setenv("IMGOPT_DOWNLOADS_DIR", str(downloads))
    monkeypatch.delenv("IMGOPT_LOG_DIR", raising=False)
    return downloads


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Return a CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
