"""Stable symbol identifiers.

An ID is ``<scheme> <package> <descriptors>``, e.g.::

    java com.example.demo Circle#area().
    java com.example.demo Main#main(String[]).$1#run().
    java . Util#sum(int...).(values)

The package slot is ``.`` for the default package. Descriptors follow the
container chain outermost-first:

==================  ======================
kind                descriptor
==================  ======================
package             ``com/example/demo/``
class/interface     ``Name#``
field/local         ``name.``
method              ``name(<fingerprint>).``
constructor         ``<init>(<fingerprint>).``
parameter           ``(name)``
type parameter      ``[name]``
==================  ======================

The fingerprint is the comma-joined erased parameter types: simple names
with generic arguments dropped, array dims and varargs kept. Overloads
therefore differ by parameter kinds, never by declaration order. Siblings
that still collide (two ``i`` locals in sibling blocks) get ``~2``, ``~3``
in source order within that collision group only.
"""

from __future__ import annotations

from collections.abc import Iterable

from symgraph.index.models import (
    ImportDecl,
    Reference,
    Scope,
    Symbol,
    SymbolGraph,
    SymbolKind,
)

_TERM_KINDS = frozenset({SymbolKind.FIELD, SymbolKind.LOCAL})
_CONSTRUCTOR_NAME = "<init>"


def erase_type(type_text: str) -> str:
    """Erased simple form of a declared type.

    >>> erase_type("java.util.Map<String, List<Integer>>[]")
    'Map[]'
    """
    text = type_text.strip()
    suffix = ""
    while True:
        if text.endswith("..."):
            text, suffix = text[:-3].rstrip(), "..." + suffix
        elif text.endswith("[]"):
            text, suffix = text[:-2].rstrip(), "[]" + suffix
        else:
            break
    depth = 0
    kept: list[str] = []
    for ch in text:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth = max(depth - 1, 0)
        elif depth == 0 and not ch.isspace():
            kept.append(ch)
    simple = "".join(kept).rsplit(".", 1)[-1]
    return (simple or "?") + suffix


def fingerprint(symbol: Symbol) -> str:
    if symbol.signature is None:
        return ""
    return ",".join(erase_type(t) for t in symbol.signature.parameter_types)


def descriptor(symbol: Symbol, name: str | None = None) -> str:
    """Local descriptor of ``symbol``; ``name`` overrides the display name."""
    name = name if name is not None else symbol.name
    kind = symbol.kind
    if kind is SymbolKind.PACKAGE:
        return symbol.name.replace(".", "/") + "/"
    if kind.is_type:
        return f"{name}#"
    if kind is SymbolKind.CONSTRUCTOR:
        return f"{_CONSTRUCTOR_NAME if name == symbol.name else name}({fingerprint(symbol)})."
    if kind is SymbolKind.METHOD:
        return f"{name}({fingerprint(symbol)})."
    if kind is SymbolKind.PARAMETER:
        return f"({name})"
    if kind is SymbolKind.TYPE_PARAMETER:
        return f"[{name}]"
    return f"{name}."


def _local_descriptors(symbols: Iterable[Symbol]) -> dict[Symbol, str]:
    """Descriptor per symbol with ``~N`` suffixes on colliding siblings."""
    groups: dict[tuple[int, str], list[Symbol]] = {}
    for symbol in symbols:
        container_key = id(symbol.container) if symbol.container is not None else 0
        groups.setdefault((container_key, descriptor(symbol)), []).append(symbol)

    local: dict[Symbol, str] = {}
    for (_, base), members in groups.items():
        members.sort(key=lambda s: s.span.sort_key())
        local[members[0]] = base
        for ordinal, symbol in enumerate(members[1:], start=2):
            display = _CONSTRUCTOR_NAME if symbol.kind is SymbolKind.CONSTRUCTOR else symbol.name
            local[symbol] = descriptor(symbol, f"{display}~{ordinal}")
    return local


def assign_ids(
    root_scope: Scope,
    symbols: list[Symbol],
    references: list[Reference],
    *,
    scheme: str = "java",
    package: str | None = None,
    imports: list[ImportDecl] | None = None,
) -> SymbolGraph:
    """Set ``Symbol.id`` on every symbol and return the ordered graph."""
    local = _local_descriptors(symbols)
    paths: dict[Symbol, str] = {}

    for symbol in symbols:
        # Walk up to the nearest container with a known path, then fill down
        chain: list[Symbol] = []
        current: Symbol | None = symbol
        while current is not None and current not in paths:
            chain.append(current)
            current = current.container
        prefix = paths[current] if current is not None else ""
        for item in reversed(chain):
            prefix += local.get(item) or descriptor(item)
            paths[item] = prefix

    head = f"{scheme} {package or '.'} "
    for symbol in symbols:
        symbol.id = head + paths[symbol]

    ordered_symbols = sorted(symbols, key=lambda s: (s.span.sort_key(), s.id))
    ordered_refs = sorted(
        references,
        key=lambda r: (r.span.sort_key(), r.kind.value, r.name, r.target.id if r.target else ""),
    )
    return SymbolGraph(ordered_symbols, ordered_refs, root_scope, package, list(imports or ()))
