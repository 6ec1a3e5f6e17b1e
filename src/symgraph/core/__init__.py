"""Core module exports."""

from symgraph.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    LanguageError,
    ParseLimitError,
    SymgraphError,
)
from symgraph.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "SymgraphError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "LanguageError",
    "ParseLimitError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
