"""Index module - per-file symbol extraction.

Public API:
- process_source / process_file: one file -> FileRecord
- process_batch / process_paths: many files, optionally on a process pool
- FileRecord and friends: the emitted record schema

Internal stages (lexer, parser, extractor, identity, normalizer) live in
``symgraph.index._internal``.
"""

from symgraph.index.models import (
    Diagnostic,
    NodeCategory,
    NodeKind,
    Reference,
    RefKind,
    Scope,
    ScopeKind,
    Severity,
    Span,
    Symbol,
    SymbolGraph,
    SymbolKind,
    SyntaxNode,
    Token,
    TokenKind,
)
from symgraph.index.pipeline import (
    BatchItem,
    FileAnalysis,
    analyze_source,
    process_batch,
    process_file,
    process_paths,
    process_source,
)
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

__all__ = [
    # Pipeline
    "BatchItem",
    "FileAnalysis",
    "analyze_source",
    "process_batch",
    "process_file",
    "process_paths",
    "process_source",
    # Records
    "DiagnosticRecord",
    "FileRecord",
    "ImportRecord",
    "ReferenceRecord",
    "SignatureRecord",
    "SpanRecord",
    "SupertypeRecord",
    "SymbolRecord",
    # Model
    "Diagnostic",
    "NodeCategory",
    "NodeKind",
    "RefKind",
    "Reference",
    "Scope",
    "ScopeKind",
    "Severity",
    "Span",
    "Symbol",
    "SymbolGraph",
    "SymbolKind",
    "SyntaxNode",
    "Token",
    "TokenKind",
]
