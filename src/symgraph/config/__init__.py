"""Config module exports."""

from symgraph.config.loader import SymgraphSettings, load_config
from symgraph.config.models import (
    ExtractorConfig,
    LimitsConfig,
    LoggingConfig,
    LogOutputConfig,
    SymgraphConfig,
)

__all__ = [
    "load_config",
    "SymgraphConfig",
    "SymgraphSettings",
    "ExtractorConfig",
    "LimitsConfig",
    "LoggingConfig",
    "LogOutputConfig",
]
