"""Configuration models for imgopt."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from imgopt.constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_QUALITY,
    DEFAULT_WORKERS,
    MAX_QUALITY,
    MIN_QUALITY,
)


class ConversionOptions(BaseModel):
    """Encoder options shared read-only by every worker of a batch."""

    model_config = ConfigDict(frozen=True)

    quality: int = Field(default=DEFAULT_QUALITY, ge=MIN_QUALITY, le=MAX_QUALITY)
    lossless: bool = False


class BatchConfig(BaseModel):
    """Batch execution configuration."""

    workers: int = DEFAULT_WORKERS
    recursive: bool = False
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)

    @field_validator("workers", mode="before")
    @classmethod
    def clamp_workers(cls, value: int) -> int:
        """A pool always has at least one worker."""
        value = int(value)
        return value if value > 0 else 1
