"""Symbol extraction: CST -> symbols, references and a scope tree.

Works on the shared node vocabulary only; no grammar-specific token
knowledge lives here.

Types are handled in two passes. Declaring a type opens its body scope and
declares every member (recursively for nested types) so that forward
references resolve; the member bodies are visited afterwards. Method bodies
are walked once, in source order: a local is visible from its declaration
onwards.

Expressions are walked with an explicit stack because left-associative
chains (``a + b + c ...``, ``x.f().g().h()``) build CSTs far deeper than
their nesting in the source.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import partial

from symgraph.config.constants import DOC_MAX_CHARS
from symgraph.index.models import (
    ImportDecl,
    NodeCategory,
    NodeKind,
    RefKind,
    Reference,
    Scope,
    ScopeKind,
    Signature,
    Span,
    Symbol,
    SymbolKind,
    SyntaxNode,
    Token,
    TokenKind,
)

_TYPE_KINDS = {
    "class": SymbolKind.CLASS,
    "interface": SymbolKind.INTERFACE,
    "enum": SymbolKind.ENUM,
    "annotation": SymbolKind.INTERFACE,
    "record": SymbolKind.CLASS,
    "anonymous": SymbolKind.CLASS,
}

_ENUM_CONSTANT_MODIFIERS = frozenset({"public", "static", "final"})
_RECORD_COMPONENT_MODIFIERS = frozenset({"private", "final"})
_LOCAL_KINDS = frozenset({SymbolKind.LOCAL, SymbolKind.PARAMETER})
_SKIPPED = frozenset({NodeCategory.ERROR, NodeCategory.DECORATION})


def _is_value(symbol: Symbol) -> bool:
    return symbol.kind in (SymbolKind.FIELD, SymbolKind.LOCAL, SymbolKind.PARAMETER)


def _is_type(symbol: Symbol) -> bool:
    return symbol.kind.is_type or symbol.kind is SymbolKind.TYPE_PARAMETER


def _is_method(symbol: Symbol) -> bool:
    return symbol.kind is SymbolKind.METHOD


@dataclass
class ExtractionResult:
    """Unresolved-ID symbols and references plus the scope tree."""

    symbols: list[Symbol]
    references: list[Reference]
    root_scope: Scope
    package: str | None = None
    imports: list[ImportDecl] = field(default_factory=list)


def extract(
    root: SyntaxNode,
    *,
    include_locals: bool = True,
    include_references: bool = True,
) -> ExtractionResult:
    """Walk a CST and collect declarations and name uses."""
    return SymbolExtractor(include_locals=include_locals, include_references=include_references).extract(root)


class SymbolExtractor:
    """Single-use CST walker with a scope stack."""

    def __init__(self, *, include_locals: bool = True, include_references: bool = True) -> None:
        self.include_locals = include_locals
        self.include_references = include_references
        self.symbols: list[Symbol] = []
        self.references: list[Reference] = []
        self.imports: list[ImportDecl] = []
        self.package: str | None = None
        self.root_scope: Scope | None = None

        self._scope: Scope | None = None
        self._container: Symbol | None = None
        self._types: list[Symbol] = []
        self._pending: dict[Symbol, list[Callable[[], None]]] = {}
        self._record_headers: dict[Symbol, SyntaxNode | None] = {}
        self._anonymous_counts: dict[Symbol | None, int] = {}
        self._statement_handlers: dict[NodeKind, Callable[[SyntaxNode], None]] = {
            NodeKind.BLOCK: self._visit_block,
            NodeKind.LOCAL_VAR_DECL: self._visit_local_vars,
            NodeKind.TYPE_DECL: self._visit_local_type,
            NodeKind.CONTROL_FLOW: self._visit_control_flow,
            NodeKind.TRY: self._visit_try,
            NodeKind.CATCH_CLAUSE: self._visit_catch,
        }

    def extract(self, root: SyntaxNode) -> ExtractionResult:
        self.root_scope = Scope(ScopeKind.FILE, root.span)
        self._scope = self.root_scope

        types: list[tuple[Symbol, SyntaxNode]] = []
        for node in root.nodes():
            if node.kind is NodeKind.PACKAGE_DECL:
                self._package(node)
            elif node.kind is NodeKind.IMPORT_DECL:
                self._import(node)
            elif node.kind is NodeKind.TYPE_DECL:
                symbol = self._declare_type(node)
                if symbol is not None:
                    types.append((symbol, node))
        for symbol, node in types:
            self._visit_type(symbol, node)

        symbols, references = self.symbols, self.references
        if not self.include_locals:
            dropped = {s for s in symbols if s.kind in _LOCAL_KINDS}
            symbols = [s for s in symbols if s not in dropped]
            references = [r for r in references if r.target not in dropped]
        return ExtractionResult(symbols, references, self.root_scope, self.package, self.imports)

    # ------------------------------------------------------------------
    # Scope stack
    # ------------------------------------------------------------------

    @contextmanager
    def _inside(self, scope: Scope, container: Symbol | None) -> Iterator[Scope]:
        saved = self._scope, self._container
        self._scope, self._container = scope, container
        try:
            yield scope
        finally:
            self._scope, self._container = saved

    @contextmanager
    def _enter(self, kind: ScopeKind, span: Span, owner: Symbol | None = None) -> Iterator[Scope]:
        scope = Scope(kind, span, self._scope, owner)
        if owner is not None:
            owner.body_scope = scope
        with self._inside(scope, owner or self._container) as entered:
            yield entered

    def _declare(self, kind: SymbolKind, name: str, span: Span, name_span: Span, **fields: object) -> Symbol:
        assert self._scope is not None
        symbol = Symbol(
            kind=kind,
            name=name,
            span=span,
            name_span=name_span,
            scope=self._scope,
            container=self._container,
            **fields,  # type: ignore[arg-type]
        )
        self._scope.declare(symbol)
        self.symbols.append(symbol)
        return symbol

    def _source(self) -> Symbol | None:
        """Innermost enclosing callable or type."""
        symbol = self._container
        while symbol is not None and not (symbol.kind.is_type or symbol.kind.is_callable):
            symbol = symbol.container
        return symbol

    def _add_reference(
        self,
        name: str,
        span: Span,
        kind: RefKind,
        target: Symbol | None,
        source: Symbol | None = None,
    ) -> Reference:
        ref = Reference(span, name, kind, target, source or self._source())
        if self.include_references:
            self.references.append(ref)
        return ref

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def _package(self, node: SyntaxNode) -> None:
        qualified = node.first(NodeKind.QUALIFIED_NAME)
        if qualified is None or qualified.name is None:
            return
        self.package = qualified.compact_text()
        self._declare(SymbolKind.PACKAGE, self.package, node.span, qualified.span, doc=_doc(node))

    def _import(self, node: SyntaxNode) -> None:
        qualified = node.first(NodeKind.QUALIFIED_NAME)
        if qualified is None or qualified.name is None:
            return
        full_name = qualified.compact_text()
        wildcard = full_name.endswith("*")
        name = "*" if wildcard else full_name.rsplit(".", 1)[-1]
        self.imports.append(ImportDecl(name, full_name, node.span, node.variant == "static", wildcard))

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def _declare_type(self, node: SyntaxNode) -> Symbol | None:
        if node.name is None:
            return None
        modifiers, annotations = _modifiers(node)
        extensions: dict[str, object] = {}
        if node.variant in ("annotation", "record"):
            extensions["variant"] = node.variant
        symbol = self._declare(
            _TYPE_KINDS[node.variant or "class"],
            node.name.lexeme,
            node.span,
            node.name.span,
            modifiers=modifiers,
            annotations=annotations,
            doc=_doc(node),
            extensions=extensions,
        )
        self._open_type(symbol, node)
        return symbol

    def _open_type(self, symbol: Symbol, node: SyntaxNode) -> None:
        """Create the body scope and declare the members; bodies wait."""
        scope = Scope(ScopeKind.TYPE, node.span, self._scope, symbol)
        symbol.body_scope = scope
        pending: list[Callable[[], None]] = []
        with self._inside(scope, symbol):
            params = node.first(NodeKind.TYPE_PARAMETERS)
            if params is not None:
                self._declare_type_parameters(params)
            if node.variant == "record":
                header = node.first(NodeKind.PARAMETERS)
                self._record_headers[symbol] = header
                if header is not None:
                    self._declare_record_components(header)
            body = node.first(NodeKind.TYPE_BODY)
            if body is not None:
                for member in body.nodes():
                    pending.extend(self._declare_member(member))
        self._pending[symbol] = pending

    def _visit_type(self, symbol: Symbol, node: SyntaxNode) -> None:
        assert symbol.body_scope is not None
        self._types.append(symbol)
        try:
            with self._inside(symbol.body_scope, symbol):
                params = node.first(NodeKind.TYPE_PARAMETERS)
                if params is not None:
                    self._type_parameter_bounds(params)
                for supertypes in node.all(NodeKind.SUPERTYPES):
                    self._supertypes(symbol, supertypes)
                header = self._record_headers.get(symbol)
                if header is not None:
                    for param in header.all(NodeKind.PARAMETER):
                        for type_ref in param.all(NodeKind.TYPE_REF):
                            self._type_use(type_ref)
                for visit in self._pending.pop(symbol, []):
                    visit()
        finally:
            self._types.pop()

    def _supertypes(self, symbol: Symbol, node: SyntaxNode) -> None:
        for type_ref in node.all(NodeKind.TYPE_REF):
            if node.variant == "permits":
                self._type_use(type_ref)
                continue
            resolved = self._resolve_type(type_ref)
            if resolved is None:
                continue
            name, span, target = resolved
            kind = RefKind.EXTENDS if node.variant == "extends" else RefKind.IMPLEMENTS
            symbol.supertypes.append(self._add_reference(name, span, kind, target, source=symbol))
            self._type_arguments(type_ref)

    def _anonymous(
        self,
        node: SyntaxNode,
        type_ref: SyntaxNode | None,
        base: Symbol | None = None,
        base_span: Span | None = None,
    ) -> None:
        """An anonymous class body: a synthetic ``$N`` class in the current scope."""
        ordinal = self._anonymous_counts.get(self._container, 0) + 1
        self._anonymous_counts[self._container] = ordinal

        resolved = self._resolve_type(type_ref) if type_ref is not None else None
        if resolved is None and base is not None and base_span is not None:
            resolved = base.name, base_span, base
        name_span = resolved[1] if resolved else node.span.at_start()

        symbol = self._declare(
            SymbolKind.CLASS,
            f"${ordinal}",
            node.span,
            name_span,
            synthetic=True,
            extensions={"anonymous": True},
        )
        self._open_type(symbol, node)
        if resolved is not None:
            name, span, target = resolved
            is_class = target is not None and target.kind in (SymbolKind.CLASS, SymbolKind.ENUM)
            kind = RefKind.EXTENDS if is_class else RefKind.IMPLEMENTS
            symbol.supertypes.append(self._add_reference(name, span, kind, target, source=symbol))
        if type_ref is not None:
            self._type_arguments(type_ref)
        self._visit_type(symbol, node)

    def _declare_type_parameters(self, node: SyntaxNode) -> None:
        for param in node.all(NodeKind.TYPE_PARAMETER):
            if param.name is not None:
                self._declare(SymbolKind.TYPE_PARAMETER, param.name.lexeme, param.span, param.name.span)

    def _type_parameter_bounds(self, node: SyntaxNode) -> None:
        for param in node.all(NodeKind.TYPE_PARAMETER):
            for bound in param.all(NodeKind.TYPE_REF):
                self._type_use(bound)

    def _declare_record_components(self, header: SyntaxNode) -> None:
        for param in header.all(NodeKind.PARAMETER):
            if param.name is None:
                continue
            _, annotations = _modifiers(param)
            self._declare(
                SymbolKind.FIELD,
                param.name.lexeme,
                param.span,
                param.name.span,
                modifiers=_RECORD_COMPONENT_MODIFIERS,
                annotations=annotations,
                declared_type=_parameter_type(param),
                extensions={"record_component": True},
            )

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def _declare_member(self, node: SyntaxNode) -> list[Callable[[], None]]:
        kind = node.kind
        if kind is NodeKind.TYPE_DECL:
            symbol = self._declare_type(node)
            return [partial(self._visit_type, symbol, node)] if symbol else []
        if kind is NodeKind.FIELD_DECL:
            return self._declare_field(node)
        if kind in (NodeKind.METHOD_DECL, NodeKind.CONSTRUCTOR_DECL):
            return self._declare_callable(node)
        if kind is NodeKind.ENUM_CONSTANT:
            return self._declare_enum_constant(node)
        if kind is NodeKind.INITIALIZER:
            return [partial(self._visit_initializer, node)]
        return []

    def _declare_field(self, node: SyntaxNode) -> list[Callable[[], None]]:
        type_ref = node.first(NodeKind.TYPE_REF)
        base_type = _type_text(type_ref)
        modifiers, annotations = _modifiers(node)
        doc = _doc(node)
        declarators = node.all(NodeKind.VARIABLE_DECLARATOR)
        declared: list[tuple[Symbol, SyntaxNode]] = []
        for declarator in declarators:
            if declarator.name is None:
                continue
            symbol = self._declare(
                SymbolKind.FIELD,
                declarator.name.lexeme,
                node.span if len(declarators) == 1 else declarator.span,
                declarator.name.span,
                modifiers=modifiers,
                annotations=annotations,
                doc=doc,
                declared_type=base_type + "[]" * _dims(declarator),
            )
            declared.append((symbol, declarator))
        return [partial(self._visit_field, type_ref, declared)]

    def _visit_field(self, type_ref: SyntaxNode | None, declared: list[tuple[Symbol, SyntaxNode]]) -> None:
        if type_ref is not None:
            self._type_use(type_ref)
        for symbol, declarator in declared:
            assert self._scope is not None
            with self._inside(self._scope, symbol):
                self._initializer(declarator)

    def _declare_callable(self, node: SyntaxNode) -> list[Callable[[], None]]:
        if node.name is None:
            return []
        is_constructor = node.kind is NodeKind.CONSTRUCTOR_DECL
        compact = node.variant == "compact"
        if compact:
            params_node = self._record_headers.get(self._container) if self._container else None
        else:
            params_node = node.first(NodeKind.PARAMETERS)
        params = [p for p in params_node.all(NodeKind.PARAMETER) if p.variant != "receiver"] if params_node else []

        return_type = None
        if not is_constructor:
            return_type = (_type_text(node.first(NodeKind.TYPE_REF)) or "?") + "[]" * _dims(node)
        type_params = node.first(NodeKind.TYPE_PARAMETERS)
        type_param_names = (
            tuple(p.name.lexeme for p in type_params.all(NodeKind.TYPE_PARAMETER) if p.name) if type_params else ()
        )
        modifiers, annotations = _modifiers(node)
        extensions: dict[str, object] = {}
        if any(p.variant == "varargs" for p in params):
            extensions["varargs"] = True
        if compact:
            extensions["compact"] = True

        symbol = self._declare(
            SymbolKind.CONSTRUCTOR if is_constructor else SymbolKind.METHOD,
            node.name.lexeme,
            node.span,
            node.name.span,
            modifiers=modifiers,
            annotations=annotations,
            doc=_doc(node),
            signature=Signature(tuple(_parameter_type(p) for p in params), return_type, type_param_names),
            extensions=extensions,
        )
        return [partial(self._visit_callable, symbol, node, params)]

    def _visit_callable(self, symbol: Symbol, node: SyntaxNode, params: list[SyntaxNode]) -> None:
        with self._enter(ScopeKind.METHOD, node.span, symbol):
            type_params = node.first(NodeKind.TYPE_PARAMETERS)
            if type_params is not None:
                self._declare_type_parameters(type_params)
                self._type_parameter_bounds(type_params)
            return_type = node.first(NodeKind.TYPE_REF)
            if return_type is not None:
                self._type_use(return_type)
            for param in params:
                self._parameter(param, synthetic=node.variant == "compact")
            throws = node.first(NodeKind.THROWS)
            if throws is not None:
                for type_ref in throws.all(NodeKind.TYPE_REF):
                    self._type_use(type_ref)
            for child in node.nodes():
                if child.category is NodeCategory.EXPRESSION:
                    self._expression(child)
            self._statements(node.first(NodeKind.BLOCK))

    def _declare_enum_constant(self, node: SyntaxNode) -> list[Callable[[], None]]:
        if node.name is None:
            return []
        enum = self._container
        _, annotations = _modifiers(node)
        symbol = self._declare(
            SymbolKind.FIELD,
            node.name.lexeme,
            node.span,
            node.name.span,
            modifiers=_ENUM_CONSTANT_MODIFIERS,
            annotations=annotations,
            doc=_doc(node),
            declared_type=enum.name if enum else None,
            extensions={"enum_constant": True},
        )
        return [partial(self._visit_enum_constant, symbol, node, enum)]

    def _visit_enum_constant(self, symbol: Symbol, node: SyntaxNode, enum: Symbol | None) -> None:
        assert self._scope is not None and node.name is not None
        with self._inside(self._scope, symbol):
            arguments = node.first(NodeKind.ARGUMENTS)
            if arguments is not None:
                self._expression(arguments)
            body = node.first(NodeKind.TYPE_DECL)
            if body is not None:
                self._anonymous(body, None, base=enum, base_span=node.name.span)

    def _visit_initializer(self, node: SyntaxNode) -> None:
        with self._enter(ScopeKind.METHOD, node.span):
            self._statements(node.first(NodeKind.BLOCK))

    def _parameter(self, node: SyntaxNode, *, synthetic: bool = False) -> None:
        if not synthetic:
            for type_ref in node.all(NodeKind.TYPE_REF):
                self._type_use(type_ref)
        if node.name is None or node.variant == "receiver":
            return
        modifiers, annotations = _modifiers(node)
        self._declare(
            SymbolKind.PARAMETER,
            node.name.lexeme,
            node.span,
            node.name.span,
            modifiers=modifiers,
            annotations=annotations,
            declared_type=_parameter_type(node) or None,
            synthetic=synthetic,
        )

    def _initializer(self, declarator: SyntaxNode) -> None:
        for child in declarator.nodes():
            if child.category is NodeCategory.EXPRESSION:
                self._expression(child)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _statements(self, block: SyntaxNode | None) -> None:
        if block is not None:
            for child in block.nodes():
                self._statement(child)

    def _statement(self, node: SyntaxNode) -> None:
        handler = self._statement_handlers.get(node.kind)
        if handler is not None:
            handler(node)
        elif node.category not in _SKIPPED:
            self._children(node)

    def _children(self, node: SyntaxNode) -> None:
        for child in node.nodes():
            category = child.category
            if category is NodeCategory.EXPRESSION:
                self._expression(child)
            elif category is NodeCategory.TYPE_REFERENCE:
                self._type_use(child)
            elif category not in _SKIPPED:
                self._statement(child)

    def _visit_block(self, node: SyntaxNode) -> None:
        with self._enter(ScopeKind.BLOCK, node.span):
            self._statements(node)

    def _visit_control_flow(self, node: SyntaxNode) -> None:
        if node.variant in ("for", "foreach"):
            with self._enter(ScopeKind.BLOCK, node.span):
                self._children(node)
        else:
            self._children(node)

    def _visit_try(self, node: SyntaxNode) -> None:
        if node.first(NodeKind.RESOURCES) is not None:
            with self._enter(ScopeKind.BLOCK, node.span):
                self._children(node)
        else:
            self._children(node)

    def _visit_catch(self, node: SyntaxNode) -> None:
        with self._enter(ScopeKind.BLOCK, node.span):
            param = node.first(NodeKind.PARAMETER)
            if param is not None:
                self._parameter(param)
            self._statements(node.first(NodeKind.BLOCK))

    def _visit_local_vars(self, node: SyntaxNode) -> None:
        type_ref = node.first(NodeKind.TYPE_REF)
        if type_ref is not None:
            self._type_use(type_ref)
        base_type = _type_text(type_ref)
        modifiers, annotations = _modifiers(node)
        declarators = node.all(NodeKind.VARIABLE_DECLARATOR)
        for declarator in declarators:
            if declarator.name is not None:
                self._declare(
                    SymbolKind.LOCAL,
                    declarator.name.lexeme,
                    node.span if len(declarators) == 1 else declarator.span,
                    declarator.name.span,
                    modifiers=modifiers,
                    annotations=annotations,
                    declared_type=base_type + "[]" * _dims(declarator),
                )
            self._initializer(declarator)

    def _visit_local_type(self, node: SyntaxNode) -> None:
        symbol = self._declare_type(node)
        if symbol is not None:
            self._visit_type(symbol, node)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expression(self, root: SyntaxNode) -> None:
        stack: list[tuple[SyntaxNode, RefKind]] = [(root, RefKind.READ)]
        while stack:
            node, access = stack.pop()
            kind = node.kind
            if kind is NodeKind.NAME:
                self._name_use(node, access)
            elif kind is NodeKind.FIELD_ACCESS:
                receiver = _receiver(node)
                self._member_use(node, receiver, access)
                if receiver is not None:
                    stack.append((receiver, RefKind.READ))
            elif kind is NodeKind.METHOD_CALL:
                self._call(node)
                _push_children(stack, node)
            elif kind is NodeKind.ASSIGNMENT:
                operands = list(node.nodes())
                _push_children(stack, node, operands[1:])
                if operands:
                    stack.append((operands[0], RefKind.WRITE))
            elif kind in (NodeKind.UNARY, NodeKind.POSTFIX) and node.variant in ("++", "--"):
                _push_children(stack, node, access=RefKind.WRITE)
            elif kind is NodeKind.NEW_OBJECT:
                type_ref = node.first(NodeKind.TYPE_REF)
                body = node.first(NodeKind.TYPE_DECL)
                if body is not None:
                    self._anonymous(body, type_ref)
                elif type_ref is not None:
                    self._type_use(type_ref)
                rest = [c for c in node.nodes() if c.kind not in (NodeKind.TYPE_REF, NodeKind.TYPE_DECL)]
                _push_children(stack, node, rest)
            elif kind is NodeKind.LAMBDA:
                self._lambda(node)
            elif kind is NodeKind.INSTANCEOF:
                self._instanceof(node)
                _push_children(stack, node, [c for c in node.nodes() if c.kind is not NodeKind.TYPE_REF])
            elif kind is NodeKind.METHOD_REFERENCE:
                receiver = _receiver(node)
                self._method_reference(node, receiver)
                if receiver is not None:
                    stack.append((receiver, RefKind.READ))
            elif kind is NodeKind.TYPE_REF:
                self._type_use(node)
            elif node.category in _SKIPPED:
                continue
            elif node.category in (NodeCategory.STATEMENT, NodeCategory.DECLARATION):
                self._statement(node)
            else:
                _push_children(stack, node)

    def _name_use(self, node: SyntaxNode, access: RefKind) -> None:
        if node.name is None:
            return
        assert self._scope is not None
        name = node.name.lexeme
        kind = access
        targets = self._scope.lookup(name, _is_value)
        if not targets:
            targets = self._scope.lookup(name, _is_type)
            if targets:
                kind = RefKind.TYPE_USE
        self._add_reference(name, node.name.span, kind, targets[0] if targets else None)

    def _member_use(self, node: SyntaxNode, receiver: SyntaxNode | None, access: RefKind) -> None:
        if node.name is None:
            return
        name = node.name.lexeme
        kind = access
        target = None
        owner = self._receiver_type(receiver) if receiver is not None else None
        if owner is not None and owner.body_scope is not None:
            members = owner.body_scope.declared(name)
            values = [s for s in members if _is_value(s)]
            types = [s for s in members if s.kind.is_type]
            if values:
                target = values[0]
            elif types:
                target, kind = types[0], RefKind.TYPE_USE
        self._add_reference(name, node.name.span, kind, target)

    def _call(self, node: SyntaxNode) -> None:
        arguments = node.first(NodeKind.ARGUMENTS)
        arity = sum(1 for c in arguments.nodes() if c.kind is not NodeKind.ERROR) if arguments else 0
        if node.variant in ("this", "super"):
            # Explicit constructor invocation; only this(...) can resolve in-file
            enclosing = self._types[-1] if self._types else None
            if node.variant == "this" and enclosing is not None and enclosing.body_scope is not None:
                constructors = [
                    s for s in enclosing.body_scope.declared(enclosing.name) if s.kind is SymbolKind.CONSTRUCTOR
                ]
                target = _pick_overload(constructors, arity)
                if target is not None:
                    keyword = next(node.tokens())
                    self._add_reference(enclosing.name, keyword.span, RefKind.CALL, target)
            return
        if node.name is None:
            return
        name = node.name.lexeme
        if node.variant == "qualified":
            receiver = _receiver(node)
            owner = self._receiver_type(receiver) if receiver is not None else None
            candidates = []
            if owner is not None and owner.body_scope is not None:
                candidates = [s for s in owner.body_scope.declared(name) if _is_method(s)]
        else:
            assert self._scope is not None
            candidates = self._scope.lookup(name, _is_method)
        self._add_reference(name, node.name.span, RefKind.CALL, _pick_overload(candidates, arity))

    def _method_reference(self, node: SyntaxNode, receiver: SyntaxNode | None) -> None:
        if node.name is None or node.name.kind is not TokenKind.IDENTIFIER:
            return
        name = node.name.lexeme
        owner = self._receiver_type(receiver) if receiver is not None else None
        target = None
        if owner is not None and owner.body_scope is not None:
            methods = [s for s in owner.body_scope.declared(name) if _is_method(s)]
            target = methods[0] if methods else None
        self._add_reference(name, node.name.span, RefKind.READ, target)

    def _receiver_type(self, node: SyntaxNode) -> Symbol | None:
        """The in-file type a qualifier denotes: ``this``, ``Type`` or ``Outer.Inner``."""
        assert self._scope is not None
        if node.kind is NodeKind.THIS:
            if node.variant == "qualified":
                qualifier = next(node.nodes(), None)
                return self._receiver_type(qualifier) if qualifier is not None else None
            return self._types[-1] if self._types else None
        names: list[str] = []
        while node.kind is NodeKind.FIELD_ACCESS and node.name is not None:
            names.append(node.name.lexeme)
            inner = _receiver(node)
            if inner is None:
                return None
            node = inner
        if node.kind is not NodeKind.NAME or node.name is None:
            return None
        if self._scope.lookup(node.name.lexeme, _is_value):
            return None
        found = [s for s in self._scope.lookup(node.name.lexeme, _is_type) if s.kind.is_type]
        owner = found[0] if found else None
        for name in reversed(names):
            if owner is None or owner.body_scope is None:
                return None
            nested = [s for s in owner.body_scope.declared(name) if s.kind.is_type]
            owner = nested[0] if nested else None
        return owner

    def _lambda(self, node: SyntaxNode) -> None:
        with self._enter(ScopeKind.METHOD, node.span):
            params = node.first(NodeKind.PARAMETERS)
            if params is not None:
                for param in params.all(NodeKind.PARAMETER):
                    self._parameter(param)
            for child in node.nodes():
                if child.kind is NodeKind.BLOCK:
                    self._statements(child)
                elif child.category is NodeCategory.EXPRESSION:
                    self._expression(child)

    def _instanceof(self, node: SyntaxNode) -> None:
        type_ref = node.first(NodeKind.TYPE_REF)
        if type_ref is not None:
            self._type_use(type_ref)
        if node.name is not None:
            self._declare(
                SymbolKind.LOCAL,
                node.name.lexeme,
                node.name.span,
                node.name.span,
                declared_type=_type_text(type_ref) or None,
                extensions={"pattern": True},
            )

    # ------------------------------------------------------------------
    # Type references
    # ------------------------------------------------------------------

    def _resolve_type(self, node: SyntaxNode) -> tuple[str, Span, Symbol | None] | None:
        """Dotted name, its span and the in-file type it names (if any)."""
        if node.variant in ("primitive", "var"):
            return None
        segments = [tok for tok in node.tokens() if tok.kind is TokenKind.IDENTIFIER]
        if not segments:
            return None
        assert self._scope is not None
        found = self._scope.lookup(segments[0].lexeme, _is_type)
        target = found[0] if found else None
        for segment in segments[1:]:
            if target is None or target.body_scope is None:
                target = None
                break
            nested = [s for s in target.body_scope.declared(segment.lexeme) if s.kind.is_type]
            target = nested[0] if nested else None
        name = ".".join(tok.lexeme for tok in segments)
        return name, segments[0].span.cover(segments[-1].span), target

    def _type_use(self, node: SyntaxNode) -> None:
        if node.variant == "wildcard":
            for bound in node.all(NodeKind.TYPE_REF):
                self._type_use(bound)
            return
        resolved = self._resolve_type(node)
        if resolved is not None:
            name, span, target = resolved
            self._add_reference(name, span, RefKind.TYPE_USE, target)
        self._type_arguments(node)

    def _type_arguments(self, node: SyntaxNode) -> None:
        for arguments in node.all(NodeKind.TYPE_ARGUMENTS):
            for type_ref in arguments.all(NodeKind.TYPE_REF):
                self._type_use(type_ref)


# ----------------------------------------------------------------------
# Node helpers
# ----------------------------------------------------------------------


def _receiver(node: SyntaxNode) -> SyntaxNode | None:
    """Qualifier of a field access, qualified call or method reference."""
    if node.kind is NodeKind.METHOD_CALL and node.variant != "qualified":
        return None
    for child in node.nodes():
        if child.kind not in (NodeKind.ARGUMENTS, NodeKind.TYPE_ARGUMENTS, NodeKind.ERROR):
            return child
    return None


def _push_children(
    stack: list[tuple[SyntaxNode, RefKind]],
    node: SyntaxNode,
    children: list[SyntaxNode] | None = None,
    access: RefKind = RefKind.READ,
) -> None:
    items = list(node.nodes()) if children is None else children
    stack.extend((child, access) for child in reversed(items))


def _pick_overload(candidates: list[Symbol], arity: int) -> Symbol | None:
    """First declaration accepting ``arity`` arguments, else the first one."""
    for symbol in candidates:
        count = len(symbol.signature.parameter_types) if symbol.signature else 0
        if count == arity or (symbol.extensions.get("varargs") and arity >= count - 1):
            return symbol
    return candidates[0] if candidates else None


def _modifiers(node: SyntaxNode) -> tuple[frozenset[str], tuple[str, ...]]:
    """Modifier keywords and annotation names of a declaration."""
    modifiers_node = node.first(NodeKind.MODIFIERS)
    if modifiers_node is None:
        return frozenset(), ()
    words = [tok.lexeme for tok in modifiers_node.tokens()]
    modifiers: set[str] = set()
    i = 0
    while i < len(words):
        if words[i] == "non" and words[i + 1 : i + 3] == ["-", "sealed"]:
            modifiers.add("non-sealed")
            i += 3
            continue
        modifiers.add(words[i])
        i += 1
    annotations = tuple(a.name.lexeme for a in modifiers_node.all(NodeKind.ANNOTATION) if a.name is not None)
    return frozenset(modifiers), annotations


def _doc(node: SyntaxNode) -> str | None:
    """First paragraph of the doc comment leading a declaration."""
    raw = None
    for child in node.children:
        if not isinstance(child, Token) or not child.is_trivia:
            break
        if child.kind is TokenKind.DOC_COMMENT:
            raw = child.lexeme
    if raw is None:
        return None
    body = raw[3:]
    if body.endswith("*/"):
        body = body[:-2]
    paragraph: list[str] = []
    for line in body.splitlines():
        text = line.strip().lstrip("*").strip()
        if text.startswith("@"):
            break
        if not text:
            if paragraph:
                break
            continue
        paragraph.append(text)
    doc = " ".join(" ".join(paragraph).split())
    return doc[:DOC_MAX_CHARS] or None


def _significant_type_tokens(node: SyntaxNode) -> Iterator[Token]:
    stack: list[SyntaxNode | Token] = [node]
    while stack:
        item = stack.pop()
        if isinstance(item, Token):
            if not item.is_trivia and item.kind is not TokenKind.EOF:
                yield item
        elif item.kind not in (NodeKind.ANNOTATION, NodeKind.ERROR):
            stack.extend(reversed(item.children))


def _type_text(node: SyntaxNode | None) -> str:
    """Readable source form of a type, annotations dropped."""
    if node is None:
        return ""
    parts: list[str] = []
    previous_word = False
    for tok in _significant_type_tokens(node):
        word = tok.kind in (TokenKind.IDENTIFIER, TokenKind.KEYWORD) or tok.lexeme == "?"
        if word and previous_word:
            parts.append(" ")
        parts.append(tok.lexeme)
        if tok.lexeme == ",":
            parts.append(" ")
        previous_word = word
    return "".join(parts)


def _dims(node: SyntaxNode) -> int:
    dims = node.first(NodeKind.DIMENSIONS)
    return sum(1 for tok in dims.tokens() if tok.lexeme == "[") if dims else 0


def _parameter_type(node: SyntaxNode) -> str:
    text = " | ".join(_type_text(t) for t in node.all(NodeKind.TYPE_REF))
    if node.variant == "varargs":
        text += "..."
    return text + "[]" * _dims(node)
