"""In-memory data model for the per-file extraction pipeline.

Single source of truth for the types flowing between stages:

- Token / Span: lexer output (trivia included, so tokens tile the source)
- SyntaxNode / Diagnostic: parser output (concrete syntax tree)
- Scope / Symbol / Reference: extractor output
- SymbolGraph: identity-resolved aggregate handed to the normalizer

Everything here is file-scoped. A graph is built per parse, emitted, and
dropped; nothing is shared between files.
"""

from __future__ import annotations

import weakref
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ============================================================================
# ENUMS
# ============================================================================


class TokenKind(str, Enum):
    """Lexical token classes shared by all language profiles."""

    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    CHAR = "char"
    TEXT_BLOCK = "text_block"
    OPERATOR = "operator"
    SEPARATOR = "separator"
    WHITESPACE = "whitespace"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    DOC_COMMENT = "doc_comment"
    UNKNOWN = "unknown"
    EOF = "eof"

    @property
    def is_trivia(self) -> bool:
        """True for tokens the grammar never sees."""
        return self in _TRIVIA_KINDS

    @property
    def is_literal(self) -> bool:
        return self in _LITERAL_KINDS


_TRIVIA_KINDS = frozenset(
    {
        TokenKind.WHITESPACE,
        TokenKind.LINE_COMMENT,
        TokenKind.BLOCK_COMMENT,
        TokenKind.DOC_COMMENT,
    }
)
_LITERAL_KINDS = frozenset(
    {
        TokenKind.INTEGER,
        TokenKind.FLOAT,
        TokenKind.STRING,
        TokenKind.CHAR,
        TokenKind.TEXT_BLOCK,
    }
)


class NodeCategory(str, Enum):
    """Coarse tagged variant of a syntax node."""

    DECLARATION = "declaration"
    STATEMENT = "statement"
    EXPRESSION = "expression"
    TYPE_REFERENCE = "type_reference"
    DECORATION = "decoration"
    STRUCTURE = "structure"
    ERROR = "error"


class NodeKind(str, Enum):
    """Concrete syntax node kinds."""

    # Structure
    COMPILATION_UNIT = "compilation_unit"
    MODIFIERS = "modifiers"
    TYPE_PARAMETERS = "type_parameters"
    TYPE_ARGUMENTS = "type_arguments"
    SUPERTYPES = "supertypes"  # variant: extends, implements, permits
    TYPE_BODY = "type_body"
    PARAMETERS = "parameters"
    ARGUMENTS = "arguments"
    THROWS = "throws"
    DIMENSIONS = "dimensions"
    VARIABLE_DECLARATOR = "variable_declarator"
    RESOURCES = "resources"
    SWITCH_CASE = "switch_case"
    CATCH_CLAUSE = "catch_clause"
    FINALLY_CLAUSE = "finally_clause"
    QUALIFIED_NAME = "qualified_name"

    # Declarations
    PACKAGE_DECL = "package_decl"
    IMPORT_DECL = "import_decl"
    TYPE_DECL = "type_decl"  # variant: class, interface, enum, annotation, record, anonymous
    FIELD_DECL = "field_decl"
    METHOD_DECL = "method_decl"
    CONSTRUCTOR_DECL = "constructor_decl"
    ENUM_CONSTANT = "enum_constant"
    INITIALIZER = "initializer"  # variant: static, instance
    PARAMETER = "parameter"
    TYPE_PARAMETER = "type_parameter"
    LOCAL_VAR_DECL = "local_var_decl"

    # Statements
    BLOCK = "block"
    CONTROL_FLOW = "control_flow"  # variant: if, while, do, for, foreach, switch, synchronized
    ELSE_CLAUSE = "else_clause"
    TRY = "try"
    RETURN = "return"
    THROW = "throw"
    BREAK = "break"
    CONTINUE = "continue"
    YIELD = "yield"
    ASSERT = "assert"
    LABELED = "labeled"
    EXPRESSION_STATEMENT = "expression_statement"
    EMPTY_STATEMENT = "empty_statement"

    # Expressions
    NAME = "name"
    FIELD_ACCESS = "field_access"
    METHOD_CALL = "method_call"
    NEW_OBJECT = "new_object"
    NEW_ARRAY = "new_array"
    ARRAY_INITIALIZER = "array_initializer"
    ARRAY_ACCESS = "array_access"
    LITERAL = "literal"
    THIS = "this"
    SUPER = "super"
    CLASS_LITERAL = "class_literal"
    PARENTHESIZED = "parenthesized"
    UNARY = "unary"
    POSTFIX = "postfix"
    BINARY = "binary"
    ASSIGNMENT = "assignment"
    TERNARY = "ternary"
    CAST = "cast"
    INSTANCEOF = "instanceof"
    LAMBDA = "lambda"
    METHOD_REFERENCE = "method_reference"
    SWITCH_EXPRESSION = "switch_expression"

    # Types
    TYPE_REF = "type_ref"  # variant: primitive, class, array, wildcard, var

    # Decorations
    ANNOTATION = "annotation"

    # Errors
    ERROR = "error"

    @property
    def category(self) -> NodeCategory:
        return _CATEGORY_BY_KIND.get(self, NodeCategory.STRUCTURE)


_CATEGORY_BY_KIND: dict[NodeKind, NodeCategory] = {
    **{
        k: NodeCategory.DECLARATION
        for k in (
            NodeKind.PACKAGE_DECL,
            NodeKind.IMPORT_DECL,
            NodeKind.TYPE_DECL,
            NodeKind.FIELD_DECL,
            NodeKind.METHOD_DECL,
            NodeKind.CONSTRUCTOR_DECL,
            NodeKind.ENUM_CONSTANT,
            NodeKind.INITIALIZER,
            NodeKind.PARAMETER,
            NodeKind.TYPE_PARAMETER,
            NodeKind.LOCAL_VAR_DECL,
        )
    },
    **{
        k: NodeCategory.STATEMENT
        for k in (
            NodeKind.BLOCK,
            NodeKind.CONTROL_FLOW,
            NodeKind.ELSE_CLAUSE,
            NodeKind.TRY,
            NodeKind.RETURN,
            NodeKind.THROW,
            NodeKind.BREAK,
            NodeKind.CONTINUE,
            NodeKind.YIELD,
            NodeKind.ASSERT,
            NodeKind.LABELED,
            NodeKind.EXPRESSION_STATEMENT,
            NodeKind.EMPTY_STATEMENT,
        )
    },
    **{
        k: NodeCategory.EXPRESSION
        for k in (
            NodeKind.NAME,
            NodeKind.FIELD_ACCESS,
            NodeKind.METHOD_CALL,
            NodeKind.NEW_OBJECT,
            NodeKind.NEW_ARRAY,
            NodeKind.ARRAY_INITIALIZER,
            NodeKind.ARRAY_ACCESS,
            NodeKind.LITERAL,
            NodeKind.THIS,
            NodeKind.SUPER,
            NodeKind.CLASS_LITERAL,
            NodeKind.PARENTHESIZED,
            NodeKind.UNARY,
            NodeKind.POSTFIX,
            NodeKind.BINARY,
            NodeKind.ASSIGNMENT,
            NodeKind.TERNARY,
            NodeKind.CAST,
            NodeKind.INSTANCEOF,
            NodeKind.LAMBDA,
            NodeKind.METHOD_REFERENCE,
            NodeKind.SWITCH_EXPRESSION,
        )
    },
    NodeKind.TYPE_REF: NodeCategory.TYPE_REFERENCE,
    NodeKind.ANNOTATION: NodeCategory.DECORATION,
    NodeKind.ERROR: NodeCategory.ERROR,
}


class Severity(str, Enum):
    """Diagnostic severity. FATAL marks a file whose parse was aborted."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


class ScopeKind(str, Enum):
    FILE = "file"
    TYPE = "type"
    METHOD = "method"
    BLOCK = "block"


class SymbolKind(str, Enum):
    """Declared entity kinds in the shared cross-language model."""

    PACKAGE = "package"
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    FIELD = "field"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    PARAMETER = "parameter"
    LOCAL = "local"
    TYPE_PARAMETER = "type_parameter"

    @property
    def is_type(self) -> bool:
        return self in (SymbolKind.CLASS, SymbolKind.INTERFACE, SymbolKind.ENUM)

    @property
    def is_callable(self) -> bool:
        return self in (SymbolKind.METHOD, SymbolKind.CONSTRUCTOR)


class RefKind(str, Enum):
    READ = "read"
    WRITE = "write"
    CALL = "call"
    TYPE_USE = "type_use"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"


# ============================================================================
# LEXICAL
# ============================================================================


@dataclass(frozen=True, slots=True)
class Span:
    """Byte range plus line/column of both ends.

    Lines are 1-indexed; columns are 0-indexed character offsets.
    ``end_byte`` is exclusive.
    """

    start_byte: int
    end_byte: int
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    @property
    def length(self) -> int:
        return self.end_byte - self.start_byte

    def encloses(self, other: Span) -> bool:
        return self.start_byte <= other.start_byte and other.end_byte <= self.end_byte

    def cover(self, other: Span) -> Span:
        """Smallest span containing both."""
        first = self if self.start_byte <= other.start_byte else other
        last = self if self.end_byte >= other.end_byte else other
        return Span(
            first.start_byte,
            last.end_byte,
            first.start_line,
            first.start_col,
            last.end_line,
            last.end_col,
        )

    def at_start(self) -> Span:
        """Zero-width span at this span's start."""
        return Span(
            self.start_byte,
            self.start_byte,
            self.start_line,
            self.start_col,
            self.start_line,
            self.start_col,
        )

    def sort_key(self) -> tuple[int, int]:
        return (self.start_byte, self.end_byte)


@dataclass(frozen=True, slots=True)
class Token:
    """A lexeme with its position. ``incomplete`` marks implicitly closed literals."""

    kind: TokenKind
    lexeme: str
    span: Span
    incomplete: bool = False

    @property
    def is_trivia(self) -> bool:
        return self.kind.is_trivia

    def is_(self, lexeme: str) -> bool:
        """True if this is a keyword, operator or separator with this text."""
        return self.lexeme == lexeme and self.kind in (
            TokenKind.KEYWORD,
            TokenKind.OPERATOR,
            TokenKind.SEPARATOR,
        )


# ============================================================================
# SYNTAX
# ============================================================================


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A non-fatal (or, for FATAL, file-fatal) problem located in the source."""

    span: Span
    severity: Severity
    message: str
    code: str = "syntax"


@dataclass(slots=True)
class SyntaxNode:
    """A concrete syntax tree node.

    ``children`` holds nodes and tokens (trivia included) in source order,
    so the leaves of the tree reproduce the file exactly. ``name`` points at
    the identifier token naming a declaration, when there is one.
    """

    kind: NodeKind
    children: list[SyntaxNode | Token]
    span: Span
    variant: str | None = None
    name: Token | None = None
    diagnostic: Diagnostic | None = None

    @property
    def category(self) -> NodeCategory:
        return self.kind.category

    def nodes(self) -> Iterator[SyntaxNode]:
        """Direct child nodes."""
        for child in self.children:
            if isinstance(child, SyntaxNode):
                yield child

    def tokens(self) -> Iterator[Token]:
        """Direct child tokens that the grammar sees (no trivia)."""
        for child in self.children:
            if isinstance(child, Token) and not child.is_trivia:
                yield child

    def first(self, kind: NodeKind) -> SyntaxNode | None:
        """First direct child node of ``kind``."""
        for child in self.nodes():
            if child.kind is kind:
                return child
        return None

    def all(self, kind: NodeKind) -> list[SyntaxNode]:
        """Direct child nodes of ``kind``."""
        return [child for child in self.nodes() if child.kind is kind]

    def has_token(self, lexeme: str) -> bool:
        return any(tok.is_(lexeme) for tok in self.tokens())

    def walk(self) -> Iterator[SyntaxNode]:
        """Pre-order traversal of this subtree (iterative)."""
        stack: list[SyntaxNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.nodes())))

    def leaves(self) -> Iterator[Token]:
        """Every token of the subtree in source order, trivia included."""
        stack: list[SyntaxNode | Token] = [self]
        while stack:
            item = stack.pop()
            if isinstance(item, Token):
                yield item
            else:
                stack.extend(reversed(item.children))

    @property
    def text(self) -> str:
        return "".join(tok.lexeme for tok in self.leaves())

    def compact_text(self) -> str:
        """Source text of significant tokens joined without trivia."""
        return "".join(tok.lexeme for tok in self.leaves() if not tok.is_trivia)


# ============================================================================
# SYMBOLS
# ============================================================================


@dataclass(frozen=True, slots=True)
class Signature:
    """Callable shape: ordered parameter types and the return type.

    Constructors have ``return_type`` None.
    """

    parameter_types: tuple[str, ...]
    return_type: str | None = None
    type_parameters: tuple[str, ...] = ()

    def render(self) -> str:
        params = ", ".join(self.parameter_types)
        if self.return_type is None:
            return f"({params})"
        return f"({params}) -> {self.return_type}"


@dataclass(frozen=True, slots=True)
class ImportDecl:
    """An import header. ``name`` is the bound simple name, or ``*``."""

    name: str
    full_name: str
    span: Span
    static: bool = False
    wildcard: bool = False


@dataclass(eq=False)
class Symbol:
    """A declared program entity.

    ``scope`` is the scope the symbol is declared in; ``body_scope`` is the
    scope it opens (types and callables). ``id`` is empty until the identity
    resolver runs.
    """

    kind: SymbolKind
    name: str
    span: Span
    name_span: Span
    scope: Scope
    container: Symbol | None = None
    modifiers: frozenset[str] = frozenset()
    signature: Signature | None = None
    supertypes: list[Reference] = field(default_factory=list)
    declared_type: str | None = None
    doc: str | None = None
    annotations: tuple[str, ...] = ()
    synthetic: bool = False
    extensions: dict[str, Any] = field(default_factory=dict)
    body_scope: Scope | None = None
    id: str = ""

    def __repr__(self) -> str:
        return f"Symbol({self.kind.value} {self.name!r} id={self.id!r})"


@dataclass(eq=False)
class Reference:
    """A non-declaring use of a name. ``target`` None means unresolved."""

    span: Span
    name: str
    kind: RefKind
    target: Symbol | None = None
    source: Symbol | None = None

    @property
    def resolved(self) -> bool:
        return self.target is not None

    def __repr__(self) -> str:
        target = self.target.name if self.target else "?"
        return f"Reference({self.kind.value} {self.name!r} -> {target})"


class Scope:
    """A nested namespace; innermost declarations shadow outer ones.

    The parent link is a weak reference: parents own their children, never
    the other way round.
    """

    def __init__(
        self,
        kind: ScopeKind,
        span: Span,
        parent: Scope | None = None,
        owner: Symbol | None = None,
    ) -> None:
        self.kind = kind
        self.span = span
        self.owner = owner
        self.symbols: dict[str, list[Symbol]] = {}
        self.children: list[Scope] = []
        self._parent = weakref.ref(parent) if parent is not None else None
        if parent is not None:
            parent.children.append(self)

    @property
    def parent(self) -> Scope | None:
        return self._parent() if self._parent is not None else None

    def declare(self, symbol: Symbol) -> None:
        bucket = self.symbols.setdefault(symbol.name, [])
        if symbol not in bucket:
            bucket.append(symbol)

    def declared(self, name: str) -> list[Symbol]:
        return self.symbols.get(name, [])

    def lookup(self, name: str, accept: Callable[[Symbol], bool] | None = None) -> list[Symbol]:
        """Innermost-first lookup; returns the first scope's matches.

        ``accept`` restricts the namespace (methods, values and types are
        looked up separately); scopes with no accepted match are skipped.
        """
        scope: Scope | None = self
        while scope is not None:
            found = scope.symbols.get(name)
            if found and accept is not None:
                found = [s for s in found if accept(s)]
            if found:
                return found
            scope = scope.parent
        return []

    def chain(self) -> Iterator[Scope]:
        scope: Scope | None = self
        while scope is not None:
            yield scope
            scope = scope.parent

    def walk(self) -> Iterator[Scope]:
        stack = [self]
        while stack:
            scope = stack.pop()
            yield scope
            stack.extend(reversed(scope.children))

    def __repr__(self) -> str:
        owner = self.owner.name if self.owner else None
        return f"Scope({self.kind.value} owner={owner!r} names={sorted(self.symbols)})"


@dataclass
class SymbolGraph:
    """File-scoped aggregate produced by the identity resolver."""

    symbols: list[Symbol]
    references: list[Reference]
    root_scope: Scope
    package: str | None = None
    imports: list[ImportDecl] = field(default_factory=list)

    def by_id(self) -> dict[str, Symbol]:
        return {symbol.id: symbol for symbol in self.symbols}

    def find(self, name: str, kind: SymbolKind | None = None) -> list[Symbol]:
        return [s for s in self.symbols if s.name == name and (kind is None or s.kind is kind)]
