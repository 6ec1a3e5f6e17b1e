"""Unified LanguageProfile: single source of truth for per-language rules.

Every language the engine supports has exactly ONE LanguageProfile that
consolidates:
- File extension detection
- Lexical rules (keywords, operators, comment and literal delimiters)
- Grammar variant (key into the parser registry)
- Modifier vocabulary and which modifiers the shared schema understands

The PROFILES registry is the canonical lookup: ``PROFILES["java"]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath

from symgraph.core.errors import LanguageError

# =========================================================================
# Dataclasses
# =========================================================================


@dataclass(frozen=True)
class LexicalRules:
    """Lexer configuration for a C-family language."""

    keywords: frozenset[str]
    # Longest first; the lexer takes the first prefix match
    operators: tuple[str, ...]
    separators: frozenset[str]
    line_comment: str = "//"
    block_comment: tuple[str, str] = ("/*", "*/")
    doc_comment_prefix: str | None = "/**"
    string_quote: str = '"'
    char_quote: str = "'"
    text_block_quote: str | None = '"""'
    identifier_extra: frozenset[str] = frozenset({"_", "$"})
    numeric_suffixes: frozenset[str] = frozenset()


@dataclass(frozen=True)
class LanguageProfile:
    """Complete configuration for a single language."""

    # -- Identity --
    name: str  # Canonical language name ("java")
    grammar: str  # Parser registry key
    scheme: str  # Prefix of symbol IDs

    # -- File detection --
    extensions: frozenset[str] = field(default_factory=frozenset)

    # -- Lexing --
    lexical: LexicalRules | None = None

    # -- Declarations --
    primitive_types: frozenset[str] = frozenset()
    modifiers: frozenset[str] = frozenset()
    # Modifiers carried in the shared record; the rest go to extensions
    shared_modifiers: frozenset[str] = frozenset(
        {"public", "protected", "private", "static", "abstract", "final"}
    )
    # Names that resolve implicitly without a declaration (never emitted)
    contextual_keywords: frozenset[str] = frozenset()


# =========================================================================
# Java
# =========================================================================

_JAVA_KEYWORDS = frozenset(
    {
        "abstract",
        "assert",
        "boolean",
        "break",
        "byte",
        "case",
        "catch",
        "char",
        "class",
        "const",
        "continue",
        "default",
        "do",
        "double",
        "else",
        "enum",
        "extends",
        "final",
        "finally",
        "float",
        "for",
        "goto",
        "if",
        "implements",
        "import",
        "instanceof",
        "int",
        "interface",
        "long",
        "native",
        "new",
        "package",
        "private",
        "protected",
        "public",
        "return",
        "short",
        "static",
        "strictfp",
        "super",
        "switch",
        "synchronized",
        "this",
        "throw",
        "throws",
        "transient",
        "try",
        "void",
        "volatile",
        "while",
        "true",
        "false",
        "null",
    }
)

_JAVA_OPERATORS = (
    ">>>=",
    "<<=",
    ">>=",
    ">>>",
    "...",
    "->",
    "::",
    "++",
    "--",
    "&&",
    "||",
    "==",
    "!=",
    "<=",
    ">=",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "<<",
    ">>",
    "=",
    "<",
    ">",
    "!",
    "~",
    "?",
    ":",
    "+",
    "-",
    "*",
    "/",
    "&",
    "|",
    "^",
    "%",
    "@",
)

JAVA = LanguageProfile(
    name="java",
    grammar="java",
    scheme="java",
    extensions=frozenset({".java"}),
    lexical=LexicalRules(
        keywords=_JAVA_KEYWORDS,
        operators=_JAVA_OPERATORS,
        separators=frozenset({"(", ")", "{", "}", "[", "]", ";", ",", "."}),
        numeric_suffixes=frozenset({"l", "L", "f", "F", "d", "D"}),
    ),
    primitive_types=frozenset(
        {"boolean", "byte", "char", "short", "int", "long", "float", "double", "void"}
    ),
    modifiers=frozenset(
        {
            "public",
            "protected",
            "private",
            "static",
            "abstract",
            "final",
            "native",
            "synchronized",
            "transient",
            "volatile",
            "strictfp",
            "default",
            "sealed",
            "non-sealed",
        }
    ),
    contextual_keywords=frozenset({"var", "record", "yield", "sealed", "permits"}),
)


# =========================================================================
# Registry
# =========================================================================

PROFILES: dict[str, LanguageProfile] = {JAVA.name: JAVA}

_BY_EXTENSION: dict[str, LanguageProfile] = {
    ext: profile for profile in PROFILES.values() for ext in profile.extensions
}


def get_profile(name: str) -> LanguageProfile:
    """Look up a profile by language name (case-insensitive)."""
    profile = PROFILES.get(name.lower())
    if profile is None:
        raise LanguageError.unsupported_language(name)
    return profile


def get_profile_for_ext(ext: str) -> LanguageProfile | None:
    return _BY_EXTENSION.get(ext.lower())


def get_profile_for_path(path: str | PurePath) -> LanguageProfile | None:
    return get_profile_for_ext(PurePath(path).suffix)


def supported_extensions() -> frozenset[str]:
    return frozenset(_BY_EXTENSION)
