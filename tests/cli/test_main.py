"""Tests for the symg command line."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from symgraph.cli.main import cli
from symgraph.core.logging import configure_logging


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run from an empty directory with no global config."""
    monkeypatch.chdir(tmp_path)
    with patch("symgraph.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "absent" / "config.yaml"):
        yield


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    configure_logging(level="WARNING")


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _json_lines(stdout: str) -> list[dict]:  # type: ignore[type-arg]
    """Every stdout line must be a JSON record."""
    return [json.loads(line) for line in stdout.splitlines()]


class TestTopLevel:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "extract" in result.output
        assert "languages" in result.output


class TestLanguages:
    def test_json(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["languages", "--json"])

        assert result.exit_code == 0
        rows = {row["name"]: row for row in json.loads(result.output)}
        assert rows["java"]["supported"] is True
        assert ".java" in rows["java"]["extensions"]
        assert rows["kotlin"]["supported"] is False

    def test_table(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["languages"])

        assert result.exit_code == 0
        assert "java" in result.output
        assert "detected only" in result.output


class TestExtract:
    def test_json_record_per_file(self, runner: CliRunner, fixtures_dir: Path) -> None:
        """--json prints one parseable record per line."""
        # When
        result = runner.invoke(cli, ["extract", str(fixtures_dir / "shapes.java"), "--json"])

        # Then
        assert result.exit_code == 0, result.output
        records = _json_lines(result.stdout)
        assert len(records) == 1
        ids = {s["id"] for s in records[0]["symbols"]}
        assert "java com.example.demo Circle#area()." in ids

    def test_directory_is_searched(self, runner: CliRunner, fixtures_dir: Path) -> None:
        result = runner.invoke(cli, ["extract", str(fixtures_dir), "--json"])

        assert result.exit_code == 0, result.output
        paths = [Path(r["filePath"]).name for r in _json_lines(result.stdout)]
        assert paths == ["hello_world.java", "missing_brace.java", "modern.java", "shapes.java"]

    def test_declarations_only(self, runner: CliRunner, fixtures_dir: Path) -> None:
        result = runner.invoke(
            cli, ["extract", str(fixtures_dir / "shapes.java"), "--json", "--no-locals", "--no-references"]
        )

        assert result.exit_code == 0, result.output
        record = _json_lines(result.stdout)[0]
        assert "references" in record and record["references"] == []
        assert {s["kind"] for s in record["symbols"]}.isdisjoint({"local", "parameter"})

    def test_table_output(self, runner: CliRunner, tmp_path: Path) -> None:
        source = tmp_path / "Hello.java"
        source.write_text("class Hello { void greet() {} }")

        result = runner.invoke(cli, ["extract", source.name])

        assert result.exit_code == 0, result.output
        assert "Hello.java" in result.output
        assert "ok" in result.output

    def test_diagnostics_printed_with_location(self, runner: CliRunner, tmp_path: Path) -> None:
        source = tmp_path / "Broken.java"
        source.write_text("class Broken {\n  void m( }\n")

        result = runner.invoke(cli, ["extract", source.name])

        assert result.exit_code == 0, result.output
        assert "partial" in result.output
        assert "Broken.java:" in result.output

    def test_invalid_worker_count(self, runner: CliRunner, fixtures_dir: Path) -> None:
        result = runner.invoke(cli, ["extract", str(fixtures_dir), "--workers", "0"])

        assert result.exit_code == 2

    def test_aborted_file_sets_exit_status(self, runner: CliRunner, tmp_path: Path) -> None:
        """A file over the size limit is reported and the command exits 1."""
        # Given
        config_dir = tmp_path / ".symgraph"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("limits:\n  max_file_size_mb: 1\n")
        big = tmp_path / "Big.java"
        big.write_bytes(b"class Big {}\n" + b" " * (2 * 1024 * 1024))

        # When
        result = runner.invoke(cli, ["extract", big.name])

        # Then
        assert result.exit_code == 1
        assert "aborted" in result.output

    def test_no_supported_files(self, runner: CliRunner, tmp_path: Path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()

        result = runner.invoke(cli, ["extract", str(empty)])

        assert result.exit_code == 1
        assert "No supported source files" in result.output

    def test_invalid_config_reported(self, runner: CliRunner, tmp_path: Path, fixtures_dir: Path) -> None:
        config_dir = tmp_path / ".symgraph"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("limits:\n  max_depth: 999\n")

        result = runner.invoke(cli, ["extract", str(fixtures_dir / "hello_world.java")])

        assert result.exit_code == 1
        assert "max_depth" in result.output


class TestLoggingSetup:
    def test_json_output_has_no_log_lines(self, runner: CliRunner, tmp_path: Path) -> None:
        """Without -v, stdout carries only records even when files have diagnostics."""
        # Given
        source = tmp_path / "Broken.java"
        source.write_text("class Broken {\n  void m( }\n")

        # When
        result = runner.invoke(cli, ["extract", source.name, "--json"])

        # Then
        assert result.exit_code == 0, result.output
        records = _json_lines(result.stdout)
        assert len(records) == 1
        assert records[0]["diagnostics"]
        assert "parse_diagnostic" not in result.stdout
        assert "file_processed" not in result.stdout

    def test_verbose_logs_go_to_stderr(self, runner: CliRunner, fixtures_dir: Path) -> None:
        result = runner.invoke(cli, ["-v", "extract", str(fixtures_dir / "hello_world.java"), "--json"])

        assert result.exit_code == 0, result.output
        assert len(_json_lines(result.stdout)) == 1
        assert "file_processed" in result.stderr

    def test_project_config_file_output(self, runner: CliRunner, tmp_path: Path, fixtures_dir: Path) -> None:
        """A logging output declared in .symgraph/config.yaml receives events."""
        # Given
        log_file = tmp_path / "logs" / "symg.jsonl"
        config_dir = tmp_path / ".symgraph"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(
            "logging:\n"
            "  level: DEBUG\n"
            "  outputs:\n"
            "    - format: json\n"
            f"      destination: {log_file}\n"
        )

        # When
        result = runner.invoke(cli, ["extract", str(fixtures_dir / "hello_world.java"), "--json"])
        configure_logging(level="WARNING")

        # Then
        assert result.exit_code == 0, result.output
        events = [json.loads(line)["event"] for line in log_file.read_text().splitlines()]
        assert "file_processed" in events
        assert "batch_processed" in events
        assert "file_processed" not in result.stdout
