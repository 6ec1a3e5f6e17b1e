"""Lexing and recursive-descent parsing into a lossless CST."""

from collections.abc import Iterable

from symgraph.index._internal.parsing.base import ParserBase, ParseResult, PositionKind
from symgraph.index._internal.parsing.java import JavaParser
from symgraph.index._internal.parsing.lexer import TokenStream, decode_source, tokenize
from symgraph.index._internal.parsing.profiles import (
    JAVA,
    PROFILES,
    LanguageProfile,
    LexicalRules,
    get_profile,
    get_profile_for_ext,
    get_profile_for_path,
    supported_extensions,
)
from symgraph.index.models import Token

# Grammar variant -> parser class
GRAMMARS: dict[str, type[ParserBase]] = {"java": JavaParser}


def parse(
    tokens: Iterable[Token],
    profile: LanguageProfile,
    *,
    max_depth: int = 128,
    max_tokens: int = 2_000_000,
) -> ParseResult:
    """Parse a token sequence with the grammar named by ``profile``."""
    parser_cls = GRAMMARS[profile.grammar]
    return parser_cls(tokens, profile, max_depth=max_depth, max_tokens=max_tokens).parse()


__all__ = [
    "GRAMMARS",
    "JAVA",
    "PROFILES",
    "JavaParser",
    "LanguageProfile",
    "LexicalRules",
    "ParseResult",
    "ParserBase",
    "PositionKind",
    "TokenStream",
    "decode_source",
    "get_profile",
    "get_profile_for_ext",
    "get_profile_for_path",
    "parse",
    "supported_extensions",
    "tokenize",
]
