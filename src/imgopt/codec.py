"""Image decode/encode boundary built on Pillow."""

from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from imgopt.config import ConversionOptions
from imgopt.constants import LOSSLESS_SOURCE_FORMATS

# Modes the WebP encoder accepts directly
_WEBP_MODES = ("RGB", "RGBA")


class DecodeError(ValueError):
    """Bytes are not a recognized image."""


class EncodeError(ValueError):
    """Image could not be encoded."""


@dataclass(frozen=True)
class EncodeOptions:
    """Options passed to the encoder for a single image."""

    quality: int
    lossless: bool


def effective_encode_options(
    options: ConversionOptions, source_format: str | None
) -> EncodeOptions:
    """Apply the lossless override.

    PNG sources are always encoded losslessly, as is everything when
    ``options.lossless`` is set. Otherwise quality is passed through.
    """
    fmt = (source_format or "").upper()
    lossless = options.lossless or fmt in LOSSLESS_SOURCE_FORMATS
    return EncodeOptions(quality=options.quality, lossless=lossless)


def decode_image(data: bytes) -> tuple[Image.Image, str]:
    """Decode image bytes.

    Args:
        data: Raw encoded image

    Returns:
        Tuple of (loaded image, format name such as "PNG" or "JPEG")

    Raises:
        DecodeError: If the data is empty, truncated or not an image
    """
    if not data:
        raise DecodeError("empty image data")
    try:
        with io.BytesIO(data) as buffer:
            img = Image.open(buffer)
            fmt = img.format or ""
            img.load()
    except (
        UnidentifiedImageError,
        OSError,
        EOFError,
        SyntaxError,
        ValueError,
    ) as e:
        raise DecodeError(str(e)) from e
    return img, fmt


def _prepare_for_webp(img: Image.Image) -> Image.Image:
    if img.mode in _WEBP_MODES:
        return img
    if img.mode in ("LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    ):
        return img.convert("RGBA")
    return img.convert("RGB")


def encode_webp(img: Image.Image, options: EncodeOptions) -> bytes:
    """Encode an image as WebP.

    Raises:
        EncodeError: If Pillow cannot encode the image
    """
    save_kwargs: dict[str, object] = {"format": "WEBP", "quality": options.quality}
    if options.lossless:
        save_kwargs["lossless"] = True
    try:
        out_buffer = io.BytesIO()
        _prepare_for_webp(img).save(out_buffer, **save_kwargs)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(str(e)) from e
    return out_buffer.getvalue()
