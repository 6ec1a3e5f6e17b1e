"""Canonical language definitions.

This module defines the authoritative mapping of:
- File extensions -> language names
- Language names -> grammar variants (None when no parser exists yet)
- Test file patterns

Detection is by extension only. A language can be known here without a
grammar; processing such a file fails with ``UNSUPPORTED_LANGUAGE``
rather than ``UNSUPPORTED_EXTENSION``.
"""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path

from symgraph.core.errors import LanguageError


@dataclass(frozen=True, slots=True)
class Language:
    """Canonical definition for a language name.

    Attributes:
        name: Unique identifier (lowercase, e.g., "java")
        extensions: File extensions including dot (e.g., ".java")
        grammar: Parser registry key, or None if no grammar is built in
        test_patterns: Glob patterns for test files
    """

    name: str
    extensions: frozenset[str]
    grammar: str | None = None
    test_patterns: tuple[str, ...] = ()


ALL_LANGUAGES: tuple[Language, ...] = (
    Language(
        name="java",
        extensions=frozenset({".java"}),
        grammar="java",
        test_patterns=("*Test.java", "*Tests.java", "*IT.java"),
    ),
    Language(
        name="kotlin",
        extensions=frozenset({".kt", ".kts"}),
        test_patterns=("*Test.kt",),
    ),
    Language(
        name="csharp",
        extensions=frozenset({".cs"}),
        test_patterns=("*Tests.cs", "*Test.cs"),
    ),
)

LANGUAGES_BY_NAME: dict[str, Language] = {lang.name: lang for lang in ALL_LANGUAGES}

# Extension -> name
EXTENSION_TO_NAME: dict[str, str] = {
    ext.lower(): lang.name for lang in ALL_LANGUAGES for ext in lang.extensions
}


def detect_language_name(path: str | Path) -> str | None:
    """Language name for a file path, or None if the extension is unknown."""
    p = Path(path) if isinstance(path, str) else path
    return EXTENSION_TO_NAME.get(p.suffix.lower())


def detect_language(path: str | Path) -> str:
    """Language name for a file path.

    Raises:
        LanguageError: UNSUPPORTED_EXTENSION for unknown extensions.
    """
    name = detect_language_name(path)
    if name is None:
        raise LanguageError.unsupported_extension(str(path))
    return name


def get_grammar_name(name: str) -> str | None:
    return LANGUAGES_BY_NAME[name].grammar if name in LANGUAGES_BY_NAME else None


def has_grammar(name: str) -> bool:
    """Check if a language has a built-in parser."""
    return get_grammar_name(name) is not None


def is_test_file(path: str | Path) -> bool:
    """Check if a file name matches any known test file pattern."""
    p = Path(path) if isinstance(path, str) else path
    return any(fnmatch(p.name, pattern) for lang in ALL_LANGUAGES for pattern in lang.test_patterns)


def get_all_indexable_extensions() -> set[str]:
    """Extensions of languages that have a grammar."""
    return {ext for ext, name in EXTENSION_TO_NAME.items() if has_grammar(name)}
