"""Tests for error types and codes."""

from collections.abc import Callable

import pytest

from symgraph.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    LanguageError,
    ParseLimitError,
    SymgraphError,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.CONFIG_INVALID_VALUE, 2000),
            (ErrorCode.UNSUPPORTED_LANGUAGE, 3000),
            (ErrorCode.RESOURCE_LIMIT, 3000),
            (ErrorCode.INTERNAL_ERROR, 9000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(self, code: ErrorCode, expected_range: int) -> None:
        """Error codes fall within their designated numeric range."""
        # Given
        error_code = code

        # When
        value = error_code.value

        # Then
        assert expected_range <= value < expected_range + 1000


class TestSymgraphError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        """Error serializes to dict with all required fields."""
        # Given
        error = SymgraphError(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message="Test message",
            retryable=True,
            details={"key": "value"},
        )

        # When
        result = error.to_dict()

        # Then
        assert result == {
            "code": 2001,
            "error": "CONFIG_PARSE_ERROR",
            "message": "Test message",
            "retryable": True,
            "details": {"key": "value"},
        }

    def test_given_error_when_str_then_human_readable(self) -> None:
        """Error string representation is human readable."""
        # Given
        error = SymgraphError(code=ErrorCode.INTERNAL_ERROR, message="Something broke")

        # When
        result = str(error)

        # Then
        assert result == "[9001] INTERNAL_ERROR: Something broke"

    def test_given_error_when_raised_then_catchable_as_exception(self) -> None:
        """Errors are real exceptions."""
        with pytest.raises(SymgraphError) as exc_info:
            raise InternalError.unexpected("boom", stage="extract")

        assert exc_info.value.details == {"stage": "extract"}


class TestFactories:
    """Factory method tests."""

    def test_given_parse_error_when_created_then_has_path_details(self) -> None:
        """ConfigError.parse_error records path and reason."""
        # When
        error = ConfigError.parse_error("/path/config.yaml", "invalid syntax")

        # Then
        assert error.code == ErrorCode.CONFIG_PARSE_ERROR
        assert "/path/config.yaml" in error.message
        assert error.details["reason"] == "invalid syntax"

    def test_given_invalid_value_when_created_then_stringifies_value(self) -> None:
        """ConfigError.invalid_value keeps the offending value as text."""
        # When
        error = ConfigError.invalid_value("limits.max_depth", 500, "too deep")

        # Then
        assert error.code == ErrorCode.CONFIG_INVALID_VALUE
        assert error.details == {"field": "limits.max_depth", "value": "500", "reason": "too deep"}

    def test_given_unknown_language_when_created_then_names_language(self) -> None:
        """LanguageError.unsupported_language names the language."""
        # When
        error = LanguageError.unsupported_language("cobol")

        # Then
        assert error.code == ErrorCode.UNSUPPORTED_LANGUAGE
        assert error.message == "Unsupported language: cobol"

    def test_given_unknown_extension_when_created_then_names_path(self) -> None:
        """LanguageError.unsupported_extension names the path."""
        # When
        error = LanguageError.unsupported_extension("notes.txt")

        # Then
        assert error.code == ErrorCode.UNSUPPORTED_EXTENSION
        assert error.details == {"path": "notes.txt"}

    @pytest.mark.parametrize(
        ("factory", "kind"),
        [
            (ParseLimitError.depth_exceeded, "depth"),
            (ParseLimitError.tokens_exceeded, "tokens"),
        ],
    )
    def test_given_limit_error_when_created_then_resource_limit_code(
        self, factory: Callable[[int], ParseLimitError], kind: str
    ) -> None:
        """Both parser ceilings share the RESOURCE_LIMIT code."""
        # When
        error = factory(64)

        # Then
        assert error.code == ErrorCode.RESOURCE_LIMIT
        assert error.details == {"limit": 64, "kind": kind}
        assert "64" in error.message
