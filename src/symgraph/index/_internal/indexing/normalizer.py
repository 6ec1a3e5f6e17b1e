"""SymbolGraph -> FileRecord.

A pure transform: the graph is only read. Modifiers the shared schema
understands go to ``modifiers``; everything language-specific (other
modifiers, annotations, doc comment, declared type, syntactic flags) is
kept under ``extensions`` rather than dropped.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from symgraph.index._internal.parsing.profiles import LanguageProfile
from symgraph.index.models import Diagnostic, Reference, Span, Symbol, SymbolGraph
from symgraph.index.records import (
    DiagnosticRecord,
    FileRecord,
    ImportRecord,
    ReferenceRecord,
    SignatureRecord,
    SpanRecord,
    SupertypeRecord,
    SymbolRecord,
)

_DEFAULT_SHARED = frozenset({"public", "protected", "private", "static", "abstract", "final"})


def span_record(span: Span) -> SpanRecord:
    return SpanRecord(
        start_byte=span.start_byte,
        end_byte=span.end_byte,
        start_line=span.start_line,
        start_col=span.start_col,
        end_line=span.end_line,
        end_col=span.end_col,
    )


def _extensions(symbol: Symbol, shared: frozenset[str]) -> dict[str, Any]:
    ext: dict[str, Any] = dict(symbol.extensions)
    other = sorted(symbol.modifiers - shared)
    if ext.get("varargs"):
        other = sorted({*other, "varargs"})
        del ext["varargs"]
    if other:
        ext["modifiers"] = other
    if symbol.annotations:
        ext["annotations"] = list(symbol.annotations)
    if symbol.doc:
        ext["doc"] = symbol.doc
    if symbol.declared_type:
        ext["type"] = symbol.declared_type
    if symbol.synthetic:
        ext["synthetic"] = True
    return dict(sorted(ext.items()))


def _supertype(ref: Reference) -> SupertypeRecord:
    if ref.target is not None:
        return SupertypeRecord(kind=ref.kind.value, target_id=ref.target.id, span=span_record(ref.span))
    return SupertypeRecord(kind=ref.kind.value, unresolved_name=ref.name, span=span_record(ref.span))


def symbol_record(symbol: Symbol, shared: frozenset[str] = _DEFAULT_SHARED) -> SymbolRecord:
    signature = None
    if symbol.signature is not None:
        signature = SignatureRecord(
            parameters=list(symbol.signature.parameter_types),
            return_type=symbol.signature.return_type,
            type_parameters=list(symbol.signature.type_parameters),
        )
    return SymbolRecord(
        id=symbol.id,
        kind=symbol.kind.value,
        name=symbol.name,
        span=span_record(symbol.span),
        modifiers=sorted(symbol.modifiers & shared),
        signature=signature,
        supertypes=[_supertype(ref) for ref in symbol.supertypes],
        container=symbol.container.id if symbol.container is not None else None,
        extensions=_extensions(symbol, shared),
    )


def reference_record(ref: Reference) -> ReferenceRecord:
    source_id = ref.source.id if ref.source is not None else None
    if ref.target is not None:
        return ReferenceRecord(
            span=span_record(ref.span), kind=ref.kind.value, target_id=ref.target.id, source_id=source_id
        )
    return ReferenceRecord(
        span=span_record(ref.span), kind=ref.kind.value, unresolved_name=ref.name, source_id=source_id
    )


def diagnostic_record(diag: Diagnostic) -> DiagnosticRecord:
    return DiagnosticRecord(
        span=span_record(diag.span),
        severity=diag.severity.value,
        message=diag.message,
        code=diag.code,
    )


def emit(
    graph: SymbolGraph | None,
    file_path: str,
    language: str,
    diagnostics: Iterable[Diagnostic] = (),
    profile: LanguageProfile | None = None,
) -> FileRecord:
    """Build the output record; a None graph yields an empty record."""
    shared = profile.shared_modifiers if profile is not None else _DEFAULT_SHARED
    ordered_diags = sorted(diagnostics, key=lambda d: (d.span.sort_key(), d.severity.value, d.message))
    if graph is None:
        return FileRecord(
            file_path=file_path,
            language=language,
            diagnostics=[diagnostic_record(d) for d in ordered_diags],
        )
    symbols = sorted(graph.symbols, key=lambda s: (s.span.sort_key(), s.id))
    references = sorted(
        graph.references,
        key=lambda r: (r.span.sort_key(), r.kind.value, r.name, r.target.id if r.target else ""),
    )
    return FileRecord(
        file_path=file_path,
        language=language,
        package=graph.package,
        imports=[
            ImportRecord(
                name=imp.name,
                full_name=imp.full_name,
                static=imp.static,
                wildcard=imp.wildcard,
                span=span_record(imp.span),
            )
            for imp in graph.imports
        ],
        symbols=[symbol_record(s, shared) for s in symbols],
        references=[reference_record(r) for r in references],
        diagnostics=[diagnostic_record(d) for d in ordered_diags],
    )
