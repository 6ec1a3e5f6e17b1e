"""Tests for the per-file pipeline and batch processing."""

from __future__ import annotations

from pathlib import Path

import pytest

from symgraph.config.models import ExtractorConfig, LimitsConfig, SymgraphConfig
from symgraph.core.errors import LanguageError
from symgraph.index import (
    Diagnostic,
    Severity,
    analyze_source,
    process_batch,
    process_file,
    process_paths,
    process_source,
)


def _nested(depth: int) -> str:
    return "class Deep { int x = " + "(" * depth + "1" + ")" * depth + "; }"


class TestProcessSource:
    def test_empty_input(self) -> None:
        """An empty file yields an empty, clean record."""
        record = process_source(b"", "java", "Empty.java")

        assert record.symbols == []
        assert record.references == []
        assert record.diagnostics == []
        assert not record.aborted

    def test_binary_input_is_not_fatal(self) -> None:
        """Garbage bytes produce diagnostics, never an exception."""
        record = process_source(bytes(range(256)) * 4, "java", "Noise.java")

        assert record.diagnostics
        assert not record.aborted

    def test_str_and_bytes_agree(self, shapes_java: bytes) -> None:
        as_bytes = process_source(shapes_java, "java", "Shapes.java")
        as_text = process_source(shapes_java.decode("utf-8"), "java", "Shapes.java")

        assert as_bytes == as_text

    def test_unknown_language_raises(self) -> None:
        with pytest.raises(LanguageError):
            process_source(b"fun main() {}", "kotlin")

    def test_deterministic_output(self, modern_java: bytes) -> None:
        first = process_source(modern_java, "java", "Modern.java").to_json()
        second = process_source(modern_java, "java", "Modern.java").to_json()

        assert first == second

    def test_deep_nesting_aborts(self) -> None:
        """Nesting past the depth ceiling gives one fatal diagnostic and no symbols."""
        # When
        record = process_source(_nested(200), "java", "Deep.java")

        # Then
        assert record.aborted
        assert record.symbols == []
        fatal = [d for d in record.diagnostics if d.severity == "fatal"]
        assert len(fatal) == 1
        assert fatal[0].code == "resource_limit"

    def test_depth_limit_comes_from_config(self) -> None:
        """The same input passes or aborts depending on limits.max_depth."""
        source = _nested(20)
        strict = SymgraphConfig(limits=LimitsConfig(max_depth=16))

        assert not process_source(source, "java").aborted
        assert process_source(source, "java", config=strict).aborted

    def test_token_limit_aborts(self) -> None:
        config = SymgraphConfig(limits=LimitsConfig(max_tokens=10))

        record = process_source("class A { void a() {} void b() {} void c() {} }", "java", config=config)

        assert record.aborted

    def test_diagnostics_sink_receives_each_diagnostic(self) -> None:
        seen: list[Diagnostic] = []

        record = process_source(b"class A { void m( }", "java", diagnostics_sink=seen.append)

        assert seen
        assert len(seen) == len(record.diagnostics)
        assert all(d.severity is Severity.ERROR for d in seen)

    def test_extractor_options_apply(self, shapes_java: bytes) -> None:
        config = SymgraphConfig(extractor=ExtractorConfig(include_locals=False, include_references=False))

        record = process_source(shapes_java, "java", config=config)

        assert record.references == []
        assert not any(s.kind in ("local", "parameter") for s in record.symbols)
        assert any(s.kind == "method" for s in record.symbols)


class TestAnalyzeSource:
    def test_graph_and_token_count(self, shapes_java: bytes) -> None:
        analysis = analyze_source(shapes_java, "java", "Shapes.java")

        assert analysis.graph is not None
        assert analysis.graph.package == "com.example.demo"
        assert analysis.token_count > 0
        assert not analysis.aborted

    def test_aborted_has_no_graph(self) -> None:
        analysis = analyze_source(_nested(200), "java")

        assert analysis.graph is None
        assert analysis.aborted


class TestProcessFile:
    def test_detects_language_from_extension(self, fixtures_dir: Path) -> None:
        record = process_file(fixtures_dir / "shapes.java")

        assert record.language == "java"
        assert record.file_path.endswith("shapes.java")
        assert record.symbols

    def test_undetectable_extension_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("hello")

        with pytest.raises(LanguageError):
            process_file(path)

    def test_oversized_file_not_parsed(self, tmp_path: Path) -> None:
        """Files over max_file_size_mb get a fatal record without being read."""
        # Given
        path = tmp_path / "Big.java"
        path.write_bytes(b"class Big {}\n" + b" " * (2 * 1024 * 1024))
        config = SymgraphConfig(limits=LimitsConfig(max_file_size_mb=1))
        seen: list[Diagnostic] = []

        # When
        record = process_file(path, config=config, diagnostics_sink=seen.append)

        # Then
        assert record.aborted
        assert record.symbols == []
        assert record.diagnostics[0].code == "resource_limit"
        assert len(seen) == 1

    def test_partial_file(self, fixtures_dir: Path) -> None:
        """A syntax error yields error diagnostics alongside the recovered symbols."""
        record = process_file(fixtures_dir / "missing_brace.java")

        assert not record.aborted
        assert [d.severity for d in record.diagnostics] == ["error"]
        assert "java com.example.broken Ledger#" in {s.id for s in record.symbols}


class TestBatch:
    def test_results_in_input_order(self, shapes_java: bytes, modern_java: bytes) -> None:
        items = [
            ("b/Modern.java", modern_java, "java"),
            ("a/Shapes.java", shapes_java, "java"),
            ("c/Empty.java", b"", "java"),
        ]

        records = process_batch(items)

        assert [r.file_path for r in records] == ["b/Modern.java", "a/Shapes.java", "c/Empty.java"]

    def test_failure_is_confined_to_its_file(self, shapes_java: bytes) -> None:
        """An unsupported language becomes a fatal record; the rest of the batch succeeds."""
        # Given
        items = [
            ("Main.kt", b"fun main() {}", "kotlin"),
            ("Shapes.java", shapes_java, "java"),
        ]

        # When
        records = process_batch(items)

        # Then
        assert records[0].aborted
        assert records[0].diagnostics[0].code == "unsupported_language"
        assert not records[1].aborted
        assert records[1].symbols

    def test_process_paths_reads_files(self, fixtures_dir: Path, tmp_path: Path) -> None:
        stray = tmp_path / "README.md"
        stray.write_text("# readme")

        records = process_paths([fixtures_dir / "hello_world.java", stray])

        assert records[0].language == "java"
        assert not records[0].aborted
        assert records[1].aborted
        assert records[1].diagnostics[0].code == "unsupported_extension"

    def test_language_override(self, tmp_path: Path) -> None:
        path = tmp_path / "Snippet.txt"
        path.write_text("class Snippet {}")

        records = process_paths([path], language="java")

        assert [s.id for s in records[0].symbols] == ["java . Snippet#"]

    @pytest.mark.slow
    def test_process_pool_matches_sequential(self, shapes_java: bytes, modern_java: bytes) -> None:
        """Running on a pool gives the same records in the same order."""
        # Given
        items = [
            ("Shapes.java", shapes_java, "java"),
            ("Modern.java", modern_java, "java"),
            ("Deep.java", _nested(200).encode(), "java"),
            ("Main.kt", b"fun main() {}", "kotlin"),
        ]
        pooled = SymgraphConfig(extractor=ExtractorConfig(max_workers=2))

        # When
        sequential = process_batch(items)
        parallel = process_batch(items, pooled)

        # Then
        assert [r.to_json() for r in parallel] == [r.to_json() for r in sequential]
