"""Per-file pipeline: bytes -> tokens -> CST -> symbols -> IDs -> FileRecord.

Each file is processed independently and owns all of its state, so batches
fan out across processes without coordination. Stages run strictly in
sequence within a file.

Failures never cross file boundaries:
- syntax problems become ``error`` diagnostics and a partial graph
- resource ceilings (depth, tokens, file size) become one ``fatal``
  diagnostic and an empty graph
- anything unexpected inside ``process_batch`` becomes a ``fatal``
  ``internal`` diagnostic on that file's record
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from symgraph.config.models import SymgraphConfig
from symgraph.core.errors import ParseLimitError, SymgraphError
from symgraph.core.languages import detect_language
from symgraph.core.logging import get_logger
from symgraph.index._internal.extraction import get_extractor
from symgraph.index._internal.indexing import assign_ids, emit
from symgraph.index._internal.parsing import get_profile, parse, tokenize
from symgraph.index.models import Diagnostic, Severity, Span, SymbolGraph
from symgraph.index.records import FileRecord

log = get_logger(__name__)

DiagnosticsSink = Callable[[Diagnostic], None]

_FILE_START = Span(0, 0, 1, 0, 1, 0)

T = TypeVar("T")


@dataclass
class FileAnalysis:
    """Internal result of one file: the resolved graph and its diagnostics.

    ``graph`` is None when the file was aborted on a resource limit.
    """

    file_path: str
    language: str
    graph: SymbolGraph | None
    diagnostics: list[Diagnostic]
    token_count: int = 0

    @property
    def aborted(self) -> bool:
        return any(d.severity is Severity.FATAL for d in self.diagnostics)


def _fatal(message: str, code: str) -> Diagnostic:
    return Diagnostic(_FILE_START, Severity.FATAL, message, code)


def analyze_source(
    content: bytes | str,
    language: str,
    file_path: str = "",
    config: SymgraphConfig | None = None,
) -> FileAnalysis:
    """Run every stage short of emission.

    Raises:
        LanguageError: if ``language`` has no profile.
    """
    config = config or SymgraphConfig()
    profile = get_profile(language)
    limits = config.limits

    result = parse(tokenize(content, profile), profile, max_depth=limits.max_depth, max_tokens=limits.max_tokens)
    diagnostics = list(result.diagnostics)
    if result.aborted:
        return FileAnalysis(file_path, profile.name, None, diagnostics, result.token_count)

    extractor = get_extractor(
        profile.grammar,
        include_locals=config.extractor.include_locals,
        include_references=config.extractor.include_references,
    )
    try:
        extracted = extractor.extract(result.root)
    except RecursionError:
        limit_error = ParseLimitError.depth_exceeded(limits.max_depth)
        diagnostics.append(_fatal(limit_error.message, "resource_limit"))
        return FileAnalysis(file_path, profile.name, None, diagnostics, result.token_count)

    graph = assign_ids(
        extracted.root_scope,
        extracted.symbols,
        extracted.references,
        scheme=profile.scheme,
        package=extracted.package,
        imports=extracted.imports,
    )
    return FileAnalysis(file_path, profile.name, graph, diagnostics, result.token_count)


def _report(analysis: FileAnalysis, sink: DiagnosticsSink | None) -> None:
    for diag in analysis.diagnostics:
        if diag.code == "resource_limit":
            log.warning(
                "resource_limit_exceeded",
                path=analysis.file_path,
                message=diag.message,
            )
        else:
            log.debug(
                "parse_diagnostic",
                path=analysis.file_path,
                severity=diag.severity.value,
                code=diag.code,
                line=diag.span.start_line,
                col=diag.span.start_col,
                message=diag.message,
            )
        if sink is not None:
            sink(diag)


def process_source(
    content: bytes | str,
    language: str,
    file_path: str = "",
    config: SymgraphConfig | None = None,
    diagnostics_sink: DiagnosticsSink | None = None,
) -> FileRecord:
    """Process one in-memory file into its output record.

    Raises:
        LanguageError: if ``language`` has no profile.
    """
    start = time.monotonic()
    analysis = analyze_source(content, language, file_path, config)
    _report(analysis, diagnostics_sink)
    record = emit(analysis.graph, file_path, analysis.language, analysis.diagnostics, get_profile(language))
    log.debug(
        "file_processed",
        path=file_path,
        language=analysis.language,
        tokens=analysis.token_count,
        symbols=len(record.symbols),
        references=len(record.references),
        diagnostics=len(record.diagnostics),
        aborted=analysis.aborted,
        duration_ms=int((time.monotonic() - start) * 1000),
    )
    return record


def process_file(
    path: str | Path,
    language: str | None = None,
    config: SymgraphConfig | None = None,
    diagnostics_sink: DiagnosticsSink | None = None,
) -> FileRecord:
    """Read ``path`` and process it; oversized files are not parsed.

    Raises:
        LanguageError: if the language is unknown or has no profile.
        OSError: if the file cannot be read.
    """
    config = config or SymgraphConfig()
    path = Path(path)
    language = language or detect_language(path)
    limit = config.limits.max_file_size_mb * 1024 * 1024
    size = path.stat().st_size
    if size > limit:
        diag = _fatal(
            f"File size {size} bytes exceeds limit of {config.limits.max_file_size_mb} MB",
            "resource_limit",
        )
        _report(FileAnalysis(str(path), language, None, [diag]), diagnostics_sink)
        return emit(None, str(path), language, [diag])
    return process_source(path.read_bytes(), language, str(path), config, diagnostics_sink)


# A batch item: (path, content, language)
BatchItem = tuple[str, bytes, str]


def _process_item(item: BatchItem, config: SymgraphConfig) -> FileRecord:
    """Worker for in-memory items (module-level for pickling)."""
    path, content, language = item
    return process_source(content, language, path, config)


def _process_path(item: tuple[str, str | None], config: SymgraphConfig) -> FileRecord:
    """Worker for on-disk files (module-level for pickling)."""
    path, language = item
    return process_file(path, language, config)


def _failed(path: str, language: str, error: BaseException) -> FileRecord:
    code = error.code.name.lower() if isinstance(error, SymgraphError) else "internal"
    log.error("file_failed", path=path, error=str(error), exc_type=type(error).__name__)
    return emit(None, path, language, [_fatal(f"Processing failed: {error}", code)])


def _fan_out(
    worker: Callable[[T, SymgraphConfig], FileRecord],
    items: list[T],
    describe: Callable[[T], tuple[str, str]],
    config: SymgraphConfig,
) -> list[FileRecord]:
    """Run ``worker`` over ``items``, sequentially or on a process pool.

    ``describe`` gives (path, language) for the failure record of an item.
    """
    workers = config.extractor.max_workers
    start = time.monotonic()

    records: list[FileRecord | None] = [None] * len(items)
    if workers <= 1 or len(items) <= 1:
        for i, item in enumerate(items):
            try:
                records[i] = worker(item, config)
            except Exception as e:
                records[i] = _failed(*describe(item), e)
    else:
        with ProcessPoolExecutor(max_workers=min(workers, len(items))) as executor:
            futures = {executor.submit(worker, item, config): i for i, item in enumerate(items)}
            for future in as_completed(futures):
                i = futures[future]
                try:
                    records[i] = future.result()
                except Exception as e:
                    records[i] = _failed(*describe(items[i]), e)

    done = [r for r in records if r is not None]
    log.debug(
        "batch_processed",
        files=len(items),
        workers=workers,
        aborted=sum(1 for r in done if r.aborted),
        duration_ms=int((time.monotonic() - start) * 1000),
    )
    return done


def process_batch(items: Iterable[BatchItem], config: SymgraphConfig | None = None) -> list[FileRecord]:
    """Process many in-memory files; results come back in input order.

    Runs in-process when ``extractor.max_workers`` is 1, otherwise on a
    process pool of that size. A failure in one file is confined to that
    file's record.
    """
    return _fan_out(_process_item, list(items), lambda item: (item[0], item[2]), config or SymgraphConfig())


def process_paths(
    paths: Iterable[str | Path],
    config: SymgraphConfig | None = None,
    language: str | None = None,
) -> list[FileRecord]:
    """Like ``process_batch`` but reads the files (size limit applies).

    Files whose language cannot be detected get a fatal record instead of
    failing the batch.
    """
    items = [(str(p), language) for p in paths]
    return _fan_out(_process_path, items, lambda item: (item[0], item[1] or ""), config or SymgraphConfig())
