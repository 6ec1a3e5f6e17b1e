"""Recursive-descent parser infrastructure shared by all grammars.

Grammars subclass ``ParserBase`` and build a lossless concrete syntax tree:

- ``start()`` / ``finish(kind)`` open and close a node; trivia pending
  before the next significant token is placed into the newly opened node,
  so a declaration's leading doc comment ends up inside it.
- ``checkpoint()`` / ``wrap(cp, kind)`` retroactively wrap already-built
  children (left-associative expressions, postfix selectors).
- ``recover()`` swallows unexpected input into an ERROR node and records a
  diagnostic; ``missing()`` records a zero-width ERROR for an absent token.

Every token, trivia included, lands in exactly one node, so the leaves of
the root reproduce the input. Nesting is bounded by ``max_depth`` and the
token count by ``max_tokens``; either overflow raises ``ParseLimitError``,
which ``parse`` turns into a fatal diagnostic.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from symgraph.core.errors import ParseLimitError
from symgraph.index.models import (
    Diagnostic,
    NodeKind,
    Severity,
    Span,
    SyntaxNode,
    Token,
    TokenKind,
)

if TYPE_CHECKING:
    from symgraph.index._internal.parsing.profiles import LanguageProfile

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())


class PositionKind(str, Enum):
    """What the parser expects at the current point.

    Decides ``Name<...>`` ambiguity: in a TYPE position ``<`` opens type
    arguments; in an EXPRESSION position it is a comparison.
    """

    TYPE = "type"
    EXPRESSION = "expression"


@dataclass
class ParseResult:
    """Root of the CST plus everything reported while building it."""

    root: SyntaxNode
    diagnostics: list[Diagnostic] = field(default_factory=list)
    token_count: int = 0

    @property
    def aborted(self) -> bool:
        return any(d.severity is Severity.FATAL for d in self.diagnostics)


class _Nest:
    __slots__ = ("_parser",)

    def __init__(self, parser: ParserBase) -> None:
        self._parser = parser

    def __enter__(self) -> None:
        p = self._parser
        p._depth += 1
        if p._depth > p.max_depth:
            raise ParseLimitError.depth_exceeded(p.max_depth)

    def __exit__(self, *_exc: object) -> None:
        self._parser._depth -= 1


class ParserBase:
    """Token cursor, tree builder and recovery primitives."""

    def __init__(
        self,
        tokens: Iterable[Token],
        profile: LanguageProfile,
        *,
        max_depth: int = 128,
        max_tokens: int = 2_000_000,
    ) -> None:
        self.profile = profile
        self.max_depth = max_depth
        self.max_tokens = max_tokens
        self.diagnostics: list[Diagnostic] = []
        self.position = PositionKind.EXPRESSION

        self._toks: list[Token] = list(tokens)
        if not self._toks or self._toks[-1].kind is not TokenKind.EOF:
            end = self._toks[-1].span if self._toks else Span(0, 0, 1, 0, 1, 0)
            self._toks.append(
                Token(
                    TokenKind.EOF,
                    "",
                    Span(
                        end.end_byte,
                        end.end_byte,
                        end.end_line,
                        end.end_col,
                        end.end_line,
                        end.end_col,
                    ),
                )
            )
        self._sig: list[int] = [i for i, t in enumerate(self._toks) if not t.is_trivia]
        self._cursor = 0
        self._flushed = 0
        self._frames: list[list[SyntaxNode | Token]] = []
        self._depth = 0
        self._reported_gaps: set[int] = set()

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    @property
    def significant_count(self) -> int:
        return len(self._sig) - 1  # EOF excluded

    def parse(self) -> ParseResult:
        if self.significant_count > self.max_tokens:
            return self._aborted(ParseLimitError.tokens_exceeded(self.max_tokens))
        try:
            self._frames = [[]]
            self.parse_root()
            self._flush_to(len(self._toks))
            children = self._frames[0]
        except ParseLimitError as e:
            return self._aborted(e)
        except RecursionError:
            return self._aborted(ParseLimitError.depth_exceeded(self.max_depth))
        root = SyntaxNode(NodeKind.COMPILATION_UNIT, children, self._full_span())
        return ParseResult(root, self.diagnostics, self.significant_count)

    def parse_root(self) -> None:  # pragma: no cover - abstract
        raise NotImplementedError

    def _full_span(self) -> Span:
        eof = self._toks[-1].span
        return Span(0, eof.end_byte, 1, 0, eof.end_line, eof.end_col)

    def _aborted(self, error: ParseLimitError) -> ParseResult:
        """Whole file as one ERROR node plus a single fatal diagnostic."""
        span = self._full_span()
        diag = Diagnostic(span.at_start(), Severity.FATAL, error.message, "resource_limit")
        error_node = SyntaxNode(NodeKind.ERROR, list(self._toks), span, diagnostic=diag)
        root = SyntaxNode(NodeKind.COMPILATION_UNIT, [error_node], span)
        return ParseResult(root, [diag], self.significant_count)

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    @property
    def tok(self) -> Token:
        return self._toks[self._sig[self._cursor]]

    def la(self, k: int = 1) -> Token:
        """k-th significant token after the current one (EOF-clamped)."""
        idx = min(self._cursor + k, len(self._sig) - 1)
        return self._toks[self._sig[idx]]

    def la_index(self, k: int) -> int:
        return min(self._cursor + k, len(self._sig) - 1)

    def tok_at(self, index: int) -> Token:
        """Significant token by absolute significant index (EOF-clamped)."""
        return self._toks[self._sig[min(index, len(self._sig) - 1)]]

    @property
    def index(self) -> int:
        return self._cursor

    def at(self, *lexemes: str) -> bool:
        tok = self.tok
        return any(tok.is_(lx) for lx in lexemes)

    def at_ident(self) -> bool:
        return self.tok.kind is TokenKind.IDENTIFIER

    def at_eof(self) -> bool:
        return self.tok.kind is TokenKind.EOF

    def advance(self) -> Token:
        """Place the current token into the open node and move on."""
        tok = self.tok
        if tok.kind is TokenKind.EOF:
            return tok
        pos = self._sig[self._cursor]
        self._flush_to(pos)
        self._frames[-1].append(tok)
        self._flushed = pos + 1
        if tok.incomplete:
            self._lexical_warning(tok)
        self._cursor += 1
        return tok

    def eat(self, lexeme: str) -> Token | None:
        if self.at(lexeme):
            return self.advance()
        return None

    def expect(self, lexeme: str, context: str = "") -> Token | None:
        if self.at(lexeme):
            return self.advance()
        where = f" {context}" if context else ""
        self.missing(f"Expected '{lexeme}'{where}, found {self._describe(self.tok)}")
        return None

    def expect_ident(self, context: str = "") -> Token | None:
        if self.at_ident():
            return self.advance()
        where = f" {context}" if context else ""
        self.missing(f"Expected identifier{where}, found {self._describe(self.tok)}")
        return None

    def split_token(self, head: str) -> None:
        """Split the current operator so that it starts with ``head``.

        Used for ``>>`` / ``>>>`` / ``>=`` closing nested type arguments.
        """
        tok = self.tok
        if tok.lexeme == head or not tok.lexeme.startswith(head):
            return
        pos = self._sig[self._cursor]
        s = tok.span
        cut = len(head)
        first = Token(
            tok.kind,
            head,
            Span(s.start_byte, s.start_byte + cut, s.start_line, s.start_col, s.start_line, s.start_col + cut),
        )
        rest_kind = TokenKind.OPERATOR
        rest = Token(
            rest_kind,
            tok.lexeme[cut:],
            Span(s.start_byte + cut, s.end_byte, s.start_line, s.start_col + cut, s.end_line, s.end_col),
        )
        self._toks[pos : pos + 1] = [first, rest]
        tail = [i + 1 for i in self._sig[self._cursor + 1 :]]
        self._sig[self._cursor + 1 :] = [pos + 1, *tail]

    @staticmethod
    def _describe(tok: Token) -> str:
        if tok.kind is TokenKind.EOF:
            return "end of file"
        return f"'{tok.lexeme}'"

    # ------------------------------------------------------------------
    # Tree building
    # ------------------------------------------------------------------

    def nested(self) -> _Nest:
        return _Nest(self)

    def start(self) -> None:
        self._frames.append([])
        self._flush_to(self._sig[self._cursor])

    def finish(
        self,
        kind: NodeKind,
        *,
        variant: str | None = None,
        name: Token | None = None,
        diagnostic: Diagnostic | None = None,
    ) -> SyntaxNode:
        children = self._frames.pop()
        node = SyntaxNode(kind, children, self._span_of(children), variant, name, diagnostic)
        self._frames[-1].append(node)
        return node

    def checkpoint(self) -> int:
        return len(self._frames[-1])

    def wrap(
        self,
        cp: int,
        kind: NodeKind,
        *,
        variant: str | None = None,
        name: Token | None = None,
    ) -> SyntaxNode:
        frame = self._frames[-1]
        children = frame[cp:]
        del frame[cp:]
        node = SyntaxNode(kind, children, self._span_of(children), variant, name)
        frame.append(node)
        return node

    def _flush_to(self, pos: int) -> None:
        if pos <= self._flushed:
            return
        frame = self._frames[-1]
        for tok in self._toks[self._flushed : pos]:
            frame.append(tok)
            if tok.incomplete:
                self._lexical_warning(tok)
        self._flushed = pos

    def _span_of(self, children: list[SyntaxNode | Token]) -> Span:
        first: Span | None = None
        last: Span | None = None
        for child in children:
            if isinstance(child, Token):
                if child.is_trivia or child.kind is TokenKind.EOF:
                    continue
                span = child.span
            else:
                span = child.span
                if span.length == 0:
                    continue
            if first is None:
                first = span
            last = span
        if first is None or last is None:
            return self.tok.span.at_start()
        return first.cover(last)

    # ------------------------------------------------------------------
    # Diagnostics & recovery
    # ------------------------------------------------------------------

    def report(self, span: Span, message: str, severity: Severity = Severity.ERROR, code: str = "syntax") -> Diagnostic:
        diag = Diagnostic(span, severity, message, code)
        self.diagnostics.append(diag)
        return diag

    def missing(self, message: str) -> None:
        """Zero-width ERROR node at the current token."""
        diag = self.report(self.tok.span.at_start(), message)
        self.start()
        self.finish(NodeKind.ERROR, diagnostic=diag)

    def report_gap_once(self, message: str, span: Span) -> bool:
        """Report an unclosed construct once per resynchronization point.

        Several nested blocks closed by the same token share one diagnostic.
        """
        key = self._cursor
        if key in self._reported_gaps:
            return False
        self._reported_gaps.add(key)
        diag = self.report(span, message)
        self.start()
        self.finish(NodeKind.ERROR, diagnostic=diag)
        return True

    def recover(
        self, stop: Callable[[Token], bool], message: str, *, consume_semicolon: bool = True
    ) -> SyntaxNode | None:
        """Skip to a synchronization point, wrapping skipped tokens in ERROR.

        Consumes at least one token (unless at EOF or an unbalanced closer)
        so callers always make progress. Bracketed groups are skipped whole.
        """
        if self.at_eof():
            return None
        if self.tok.lexeme in _CLOSERS and self.tok.kind is TokenKind.SEPARATOR:
            # An unbalanced closer belongs to an enclosing construct
            if self.tok.lexeme == "}":
                return None
        start_tok = self.tok
        self.start()
        first = True
        while not self.at_eof():
            tok = self.tok
            if not first and stop(tok):
                break
            if tok.kind is TokenKind.SEPARATOR and tok.lexeme in _OPENERS:
                self.skip_group()
            elif tok.kind is TokenKind.SEPARATOR and tok.lexeme == "}":
                break
            elif tok.is_(";"):
                if consume_semicolon:
                    self.advance()
                break
            else:
                self.advance()
            first = False
        end = self._span_of(self._frames[-1])
        span = start_tok.span.cover(end) if end.length else start_tok.span
        diag = self.report(span, message)
        return self.finish(NodeKind.ERROR, diagnostic=diag)

    def skip_group(self) -> None:
        """Consume a balanced bracket group starting at the current opener."""
        stack = [_OPENERS[self.tok.lexeme]]
        self.advance()
        while stack and not self.at_eof():
            tok = self.tok
            if tok.kind is TokenKind.SEPARATOR:
                if tok.lexeme in _OPENERS:
                    stack.append(_OPENERS[tok.lexeme])
                elif tok.lexeme == stack[-1]:
                    stack.pop()
                elif tok.lexeme == "}" and "}" in stack:
                    # Unclosed ( or [ inside braces: unwind to the brace
                    while stack[-1] != "}":
                        stack.pop()
                    stack.pop()
            self.advance()

    def _lexical_warning(self, tok: Token) -> None:
        if tok.kind in (TokenKind.BLOCK_COMMENT, TokenKind.DOC_COMMENT):
            message, code = "Unterminated comment", "unterminated_comment"
        else:
            message, code = "Unterminated literal", "unterminated_literal"
        self.report(tok.span, message, Severity.WARNING, code)

    def unexpected(self, context: str = "") -> SyntaxNode:
        """Consume exactly one token into an ERROR node."""
        self.start()
        tok = self.advance()
        where = f" {context}" if context else ""
        diag = self.report(tok.span, f"Unexpected {self._describe(tok)}{where}")
        return self.finish(NodeKind.ERROR, diagnostic=diag)
