"""symgraph error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Language / parse
- 9xxx: Internal

Recoverable source problems (bad syntax, unterminated literals, unresolved
names) are never raised: they become diagnostics on the file record. These
exceptions cover caller mistakes and resource ceilings.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004

    # Language / parse (3xxx)
    UNSUPPORTED_LANGUAGE = 3001
    UNSUPPORTED_EXTENSION = 3002
    RESOURCE_LIMIT = 3003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001
    INTERNAL_TIMEOUT = 9002


# Public alias kept for callers that import the longer name
InternalErrorCode = ErrorCode


@dataclass(frozen=True, slots=True)
class SymgraphError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(SymgraphError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class LanguageError(SymgraphError):
    """Unknown language profile or file type."""

    @classmethod
    def unsupported_language(cls, name: str) -> "LanguageError":
        return cls(
            code=ErrorCode.UNSUPPORTED_LANGUAGE,
            message=f"Unsupported language: {name}",
            details={"language": name},
        )

    @classmethod
    def unsupported_extension(cls, path: str) -> "LanguageError":
        return cls(
            code=ErrorCode.UNSUPPORTED_EXTENSION,
            message=f"Unsupported file extension: {path}",
            details={"path": path},
        )


class ParseLimitError(SymgraphError):
    """A file exceeded a parser resource ceiling.

    Raised inside the parser and converted to a fatal diagnostic by
    ``parse``; it never escapes the pipeline.
    """

    @classmethod
    def depth_exceeded(cls, limit: int) -> "ParseLimitError":
        return cls(
            code=ErrorCode.RESOURCE_LIMIT,
            message=f"Nesting depth exceeds limit of {limit}",
            details={"limit": limit, "kind": "depth"},
        )

    @classmethod
    def tokens_exceeded(cls, limit: int) -> "ParseLimitError":
        return cls(
            code=ErrorCode.RESOURCE_LIMIT,
            message=f"Token count exceeds limit of {limit}",
            details={"limit": limit, "kind": "tokens"},
        )


class InternalError(SymgraphError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
