"""Tests for core/progress.py module.

Covers:
- pluralize()
- status() styling
- spinner() in non-TTY mode
- make_records_table()
"""

from __future__ import annotations

from io import StringIO
from unittest.mock import patch

import pytest
from rich.console import Console

from symgraph.core.progress import _STYLES, get_console, make_records_table, pluralize, spinner, status
from symgraph.index import process_source


class TestPluralize:
    @pytest.mark.parametrize(
        ("count", "expected"),
        [(0, "0 files"), (1, "1 file"), (2, "2 files")],
    )
    def test_regular(self, count: int, expected: str) -> None:
        assert pluralize(count, "file") == expected

    def test_irregular(self) -> None:
        assert pluralize(3, "index", "indices") == "3 indices"


class TestStatus:
    def test_given_style_when_status_then_prefix_printed(self) -> None:
        """status() writes the style prefix and message to the shared console."""
        # Given
        buffer = StringIO()
        console = Console(file=buffer, force_terminal=False, width=120)

        # When
        with patch("symgraph.core.progress._console", console):
            status("Done", style="success")

        # Then
        assert "Done" in buffer.getvalue()
        assert "✓" in buffer.getvalue()

    def test_unknown_style_has_no_prefix(self) -> None:
        buffer = StringIO()
        console = Console(file=buffer, force_terminal=False, width=120)

        with patch("symgraph.core.progress._console", console):
            status("plain", style="bogus", indent=2)

        assert buffer.getvalue().rstrip() == "  plain"

    def test_styles_cover_defaults(self) -> None:
        assert set(_STYLES) >= {"success", "error", "warning", "info", "none"}

    def test_console_writes_to_stderr(self) -> None:
        assert get_console().stderr is True


class TestSpinner:
    def test_given_non_tty_when_spinner_then_body_runs(self) -> None:
        """Without a TTY the spinner is a no-op wrapper."""
        ran = []
        with patch("symgraph.core.progress._is_tty", return_value=False), spinner("Working"):
            ran.append(True)

        assert ran == [True]


class TestRecordsTable:
    def test_given_records_when_rendered_then_one_row_each_with_outcome(self) -> None:
        """Each record gets a row with its counts and ok/partial outcome."""
        # Given
        good = process_source(b"class A { int x; }", "java", "A.java")
        broken = process_source(b"class B { void m() { int y = ; } }", "java", "B.java")

        # When
        table = make_records_table([good, broken])
        buffer = StringIO()
        Console(file=buffer, force_terminal=False, width=200).print(table)

        # Then
        text = buffer.getvalue()
        assert table.row_count == 2
        assert "A.java" in text
        assert "ok" in text
        assert "partial" in text
