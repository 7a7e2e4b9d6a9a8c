"""imgopt - Concurrent batch converter from PNG/JPEG files and URLs to WebP."""

__version__ = "0.1.0"
