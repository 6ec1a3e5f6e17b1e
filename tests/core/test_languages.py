"""Tests for core/languages.py."""

from pathlib import Path

import pytest

from symgraph.core.errors import ErrorCode, LanguageError
from symgraph.core.languages import (
    ALL_LANGUAGES,
    EXTENSION_TO_NAME,
    detect_language,
    detect_language_name,
    get_all_indexable_extensions,
    get_grammar_name,
    has_grammar,
    is_test_file,
)


class TestDetection:
    """Extension-based language detection."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("src/Main.java", "java"),
            ("src/Main.JAVA", "java"),
            (Path("build.gradle.kts"), "kotlin"),
            ("App.cs", "csharp"),
            ("README.md", None),
            ("Makefile", None),
        ],
    )
    def test_detect_language_name(self, path: str | Path, expected: str | None) -> None:
        """Known extensions map to names; unknown ones to None."""
        assert detect_language_name(path) == expected

    def test_given_unknown_extension_when_detect_then_raises(self) -> None:
        """detect_language raises UNSUPPORTED_EXTENSION for unknown files."""
        with pytest.raises(LanguageError) as exc_info:
            detect_language("notes.txt")

        assert exc_info.value.code == ErrorCode.UNSUPPORTED_EXTENSION

    def test_extension_map_is_unique(self) -> None:
        """No extension is claimed by two languages."""
        total = sum(len(lang.extensions) for lang in ALL_LANGUAGES)
        assert len(EXTENSION_TO_NAME) == total


class TestGrammars:
    """Grammar availability."""

    def test_java_has_grammar(self) -> None:
        assert get_grammar_name("java") == "java"
        assert has_grammar("java")

    def test_detected_only_languages_have_no_grammar(self) -> None:
        """Kotlin and C# are recognized but not parsed."""
        assert not has_grammar("kotlin")
        assert not has_grammar("csharp")
        assert get_grammar_name("cobol") is None

    def test_indexable_extensions_only_cover_grammars(self) -> None:
        assert get_all_indexable_extensions() == {".java"}


class TestTestFiles:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("CircleTest.java", True),
            ("CircleTests.java", True),
            ("CircleIT.java", True),
            ("Circle.java", False),
            ("ShapeTest.kt", True),
        ],
    )
    def test_is_test_file(self, name: str, expected: bool) -> None:
        assert is_test_file(Path("src") / name) is expected
