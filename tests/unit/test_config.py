"""Tests for configuration models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from imgopt.config import BatchConfig, ConversionOptions


class TestConversionOptions:
    def test_defaults(self) -> None:
        options = ConversionOptions()
        assert options.quality == 80
        assert options.lossless is False

    @pytest.mark.parametrize("quality", [0, 101, -5])
    def test_quality_range(self, quality: int) -> None:
        with pytest.raises(ValidationError):
            ConversionOptions(quality=quality)

    def test_frozen(self) -> None:
        options = ConversionOptions()
        with pytest.raises(ValidationError):
            options.quality = 50  # type: ignore[misc]


class TestBatchConfig:
    def test_defaults(self) -> None:
        config = BatchConfig()
        assert config.workers == 8
        assert config.recursive is False

    @pytest.mark.parametrize("workers, expected", [(0, 1), (-4, 1), (1, 1), (16, 16)])
    def test_workers_clamped(self, workers: int, expected: int) -> None:
        assert BatchConfig(workers=workers).workers == expected

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            BatchConfig(http_timeout=0)
