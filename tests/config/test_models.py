"""Tests for config/models.py."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from symgraph.config.constants import MAX_DEPTH_CEILING
from symgraph.config.models import (
    ExtractorConfig,
    LimitsConfig,
    LoggingConfig,
    LogOutputConfig,
    SymgraphConfig,
)


class TestLimitsConfig:
    def test_defaults(self) -> None:
        limits = LimitsConfig()

        assert limits.max_depth == 128
        assert limits.max_tokens == 2_000_000
        assert limits.max_file_size_mb == 10

    def test_depth_ceiling_accepted(self) -> None:
        assert LimitsConfig(max_depth=MAX_DEPTH_CEILING).max_depth == MAX_DEPTH_CEILING

    @pytest.mark.parametrize("depth", [0, -1, MAX_DEPTH_CEILING + 1])
    def test_depth_out_of_range_rejected(self, depth: int) -> None:
        with pytest.raises(ValidationError):
            LimitsConfig(max_depth=depth)

    @pytest.mark.parametrize("field", ["max_tokens", "max_file_size_mb"])
    def test_non_positive_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            LimitsConfig(**{field: 0})


class TestExtractorConfig:
    def test_defaults(self) -> None:
        config = ExtractorConfig()

        assert config.max_workers == 1
        assert config.include_locals is True
        assert config.include_references is True

    def test_zero_workers_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ExtractorConfig(max_workers=0)


class TestLoggingConfig:
    def test_default_single_stderr_output(self) -> None:
        config = LoggingConfig()

        assert config.level == "INFO"
        assert len(config.outputs) == 1
        assert config.outputs[0].destination == "stderr"

    def test_relative_file_destination_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/out.log")

    def test_absolute_file_destination_accepted(self, tmp_path: Path) -> None:
        target = tmp_path / "out.log"
        assert LogOutputConfig(destination=str(target)).destination == str(target)

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LoggingConfig(level="VERBOSE")  # type: ignore[arg-type]


class TestSymgraphConfig:
    def test_sections_independent(self) -> None:
        """Each config instance owns its own section objects."""
        a = SymgraphConfig()
        b = SymgraphConfig()

        assert a.limits is not b.limits
        assert a.model_dump() == b.model_dump()
