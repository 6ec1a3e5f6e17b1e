"""Profile-driven lexer.

``tokenize`` never fails. Anything it cannot classify becomes an UNKNOWN
token; unterminated strings and char literals close at end of line and
unterminated block comments and text blocks close at end of file, each
flagged ``incomplete``. Whitespace and comments are emitted as trivia so the
token sequence tiles the input byte for byte.

Source bytes are decoded as UTF-8 with ``surrogateescape``: invalid bytes
survive as lone surrogates and re-encode to the exact original bytes, which
keeps every token's byte span honest on binary garbage.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from functools import lru_cache

from symgraph.index._internal.parsing.profiles import LanguageProfile, LexicalRules
from symgraph.index.models import Span, Token, TokenKind

_WHITESPACE = frozenset(" \t\r\n\f\v")
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_DIGITS = frozenset("0123456789")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF_")


def decode_source(source: bytes | str) -> str:
    if isinstance(source, str):
        return source
    return source.decode("utf-8", errors="surrogateescape")


def byte_length(text: str) -> int:
    if text.isascii():
        return len(text)
    return len(text.encode("utf-8", errors="surrogateescape"))


class TokenStream:
    """Lazy, finite, restartable token sequence.

    Every iteration re-lexes from the start and yields identical tokens.
    """

    def __init__(self, text: str, profile: LanguageProfile) -> None:
        if profile.lexical is None:
            raise ValueError(f"Profile {profile.name!r} has no lexical rules")
        self.text = text
        self.profile = profile

    def __iter__(self) -> Iterator[Token]:
        return _lex(self.text, self.profile.lexical)  # type: ignore[arg-type]

    def significant(self) -> Iterator[Token]:
        return (tok for tok in self if not tok.is_trivia)


def tokenize(source: bytes | str, profile: LanguageProfile) -> TokenStream:
    """Tokenize ``source`` under ``profile``'s lexical rules."""
    return TokenStream(decode_source(source), profile)


@lru_cache(maxsize=16)
def _operator_table(rules: LexicalRules) -> dict[str, tuple[str, ...]]:
    """First character -> candidate operators, longest first."""
    table: dict[str, list[str]] = {}
    for op in sorted(rules.operators, key=len, reverse=True):
        table.setdefault(op[0], []).append(op)
    return {k: tuple(v) for k, v in table.items()}


def _is_ident_start(ch: str, rules: LexicalRules) -> bool:
    return ch in rules.identifier_extra or ch.isidentifier()


def _is_ident_part(ch: str, rules: LexicalRules) -> bool:
    return ch in rules.identifier_extra or ch.isalnum() or ("a" + ch).isidentifier()


def _scan_quoted(text: str, pos: int, quote: str) -> tuple[int, bool]:
    """Scan a single-line quoted literal starting at its opening quote.

    Returns (end, complete). An unterminated literal stops before the
    line break.
    """
    n = len(text)
    i = pos + len(quote)
    while i < n:
        ch = text[i]
        if ch == "\\":
            if i + 1 < n and text[i + 1] not in "\r\n":
                i += 2
                continue
            i += 1
            continue
        if ch == quote:
            return i + 1, True
        if ch in "\r\n":
            return i, False
        i += 1
    return n, False


def _scan_text_block(text: str, pos: int, quote: str) -> tuple[int, bool]:
    n = len(text)
    i = pos + len(quote)
    while i < n:
        if text[i] == "\\":
            i += 2
            continue
        if text.startswith(quote, i):
            return i + len(quote), True
        i += 1
    return n, False


def _scan_number(text: str, pos: int, rules: LexicalRules) -> tuple[int, bool]:
    """Scan a numeric literal. Returns (end, is_float)."""
    n = len(text)
    i = pos
    is_float = False
    if text.startswith(("0x", "0X"), i):
        i += 2
        while i < n and text[i] in _HEX_DIGITS:
            i += 1
    elif text.startswith(("0b", "0B"), i):
        i += 2
        while i < n and text[i] in "01_":
            i += 1
    else:
        while i < n and (text[i] in _DIGITS or text[i] == "_"):
            i += 1
        if i < n and text[i] == "." and (i + 1 >= n or text[i + 1] != "."):
            # "1." is a float; "1..2" is not ours to decide
            if i + 1 < n and _is_ident_start(text[i + 1], rules) and text[i + 1] not in "eEfFdD":
                return i, False
            is_float = True
            i += 1
            while i < n and (text[i] in _DIGITS or text[i] == "_"):
                i += 1
        if i < n and text[i] in "eE":
            j = i + 1
            if j < n and text[j] in "+-":
                j += 1
            if j < n and text[j] in _DIGITS:
                is_float = True
                i = j
                while i < n and (text[i] in _DIGITS or text[i] == "_"):
                    i += 1
    if i < n and text[i] in rules.numeric_suffixes:
        if text[i] in "fFdD":
            is_float = True
        i += 1
    return i, is_float


def _lex(text: str, rules: LexicalRules) -> Iterator[Token]:
    operators = _operator_table(rules)
    block_open, block_close = rules.block_comment
    n = len(text)
    pos = 0
    byte_pos = 0
    line = 1
    col = 0

    def make(kind: TokenKind, end: int, incomplete: bool = False) -> Token:
        nonlocal pos, byte_pos, line, col
        lexeme = text[pos:end]
        size = byte_length(lexeme)
        breaks = _LINE_BREAK.findall(lexeme) if "\n" in lexeme or "\r" in lexeme else ()
        if breaks:
            # \r\n, \r and \n each end one line
            end_line = line + len(breaks)
            end_col = len(lexeme) - max(lexeme.rfind("\n"), lexeme.rfind("\r")) - 1
        else:
            end_line = line
            end_col = col + len(lexeme)
        token = Token(
            kind,
            lexeme,
            Span(byte_pos, byte_pos + size, line, col, end_line, end_col),
            incomplete,
        )
        pos = end
        byte_pos += size
        line = end_line
        col = end_col
        return token

    while pos < n:
        ch = text[pos]

        if ch in _WHITESPACE:
            end = pos + 1
            while end < n and text[end] in _WHITESPACE:
                end += 1
            yield make(TokenKind.WHITESPACE, end)
            continue

        if rules.line_comment and text.startswith(rules.line_comment, pos):
            end = pos
            while end < n and text[end] not in "\r\n":
                end += 1
            yield make(TokenKind.LINE_COMMENT, end)
            continue

        if text.startswith(block_open, pos):
            close = text.find(block_close, pos + len(block_open))
            is_doc = (
                rules.doc_comment_prefix is not None
                and text.startswith(rules.doc_comment_prefix, pos)
                and not text.startswith(rules.doc_comment_prefix + "/", pos)
            )
            kind = TokenKind.DOC_COMMENT if is_doc else TokenKind.BLOCK_COMMENT
            if close < 0:
                yield make(kind, n, incomplete=True)
            else:
                yield make(kind, close + len(block_close))
            continue

        if rules.text_block_quote and text.startswith(rules.text_block_quote, pos):
            end, complete = _scan_text_block(text, pos, rules.text_block_quote)
            yield make(TokenKind.TEXT_BLOCK, end, incomplete=not complete)
            continue

        if ch == rules.string_quote:
            end, complete = _scan_quoted(text, pos, ch)
            yield make(TokenKind.STRING, end, incomplete=not complete)
            continue

        if ch == rules.char_quote:
            end, complete = _scan_quoted(text, pos, ch)
            yield make(TokenKind.CHAR, end, incomplete=not complete)
            continue

        if ch in _DIGITS or (ch == "." and pos + 1 < n and text[pos + 1] in _DIGITS):
            end, is_float = _scan_number(text, pos, rules)
            yield make(TokenKind.FLOAT if is_float else TokenKind.INTEGER, end)
            continue

        if _is_ident_start(ch, rules):
            end = pos + 1
            while end < n and _is_ident_part(text[end], rules):
                end += 1
            word = text[pos:end]
            kind = TokenKind.KEYWORD if word in rules.keywords else TokenKind.IDENTIFIER
            yield make(kind, end)
            continue

        for op in operators.get(ch, ()):
            if text.startswith(op, pos):
                yield make(TokenKind.OPERATOR, pos + len(op))
                break
        else:
            if ch in rules.separators:
                yield make(TokenKind.SEPARATOR, pos + 1)
            else:
                yield make(TokenKind.UNKNOWN, pos + 1)

    yield Token(TokenKind.EOF, "", Span(byte_pos, byte_pos, line, col, line, col))
