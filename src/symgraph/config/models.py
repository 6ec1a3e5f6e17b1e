"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (SYMGRAPH__SECTION__KEY)
3. Project YAML (.symgraph/config.yaml)
4. Global YAML (~/.config/symgraph/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    SYMGRAPH__<SECTION>__<KEY>=<VALUE>

Examples:
    SYMGRAPH__LOGGING__LEVEL=DEBUG
    SYMGRAPH__LIMITS__MAX_DEPTH=128
    SYMGRAPH__EXTRACTOR__MAX_WORKERS=4
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from symgraph.config.constants import MAX_DEPTH_CEILING

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        SYMGRAPH__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every diagnostic of every file.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class LimitsConfig(BaseModel):
    """Per-file resource ceilings.

    Env vars:
        SYMGRAPH__LIMITS__MAX_DEPTH: Syntactic nesting ceiling
        SYMGRAPH__LIMITS__MAX_TOKENS: Significant-token ceiling
        SYMGRAPH__LIMITS__MAX_FILE_SIZE_MB: Skip files larger than this
    """

    max_depth: int = Field(
        default=128,
        description="Maximum syntactic nesting (statements, expressions, types) before "
        "the file's parse is aborted with a resource-limit diagnostic.",
    )
    max_tokens: int = Field(
        default=2_000_000,
        description="Maximum significant tokens per file.",
    )
    max_file_size_mb: int = Field(
        default=10,
        description="Files larger than this are reported with a resource-limit "
        "diagnostic instead of being parsed.",
    )

    @field_validator("max_depth")
    @classmethod
    def validate_depth(cls, v: int) -> int:
        if not (1 <= v <= MAX_DEPTH_CEILING):
            raise ValueError(f"max_depth must be 1-{MAX_DEPTH_CEILING}, got {v}")
        return v

    @field_validator("max_tokens", "max_file_size_mb")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Must be positive, got {v}")
        return v


class ExtractorConfig(BaseModel):
    """Extraction behavior.

    Env vars:
        SYMGRAPH__EXTRACTOR__MAX_WORKERS: Process pool size for batches
        SYMGRAPH__EXTRACTOR__INCLUDE_LOCALS: Emit local/parameter symbols
        SYMGRAPH__EXTRACTOR__INCLUDE_REFERENCES: Emit references
    """

    max_workers: int = Field(
        default=1,
        description="Worker processes for process_batch. 1 runs sequentially.",
    )
    include_locals: bool = Field(
        default=True,
        description="Emit symbols for locals, parameters and catch variables.",
    )
    include_references: bool = Field(
        default=True,
        description="Emit identifier references. Disable for declaration-only output.",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v


class SymgraphConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    extractor: ExtractorConfig = Field(default_factory=ExtractorConfig)
