"""Tests for the Java recursive-descent parser.

Covers:
- lossless CST (leaves reproduce the input)
- node vocabulary for declarations, statements and expressions
- error recovery and diagnostics
- resource ceilings
"""

from __future__ import annotations

from pathlib import Path

import pytest

from symgraph.index._internal.parsing import JAVA, ParseResult, parse, tokenize
from symgraph.index.models import NodeCategory, NodeKind, Severity, SyntaxNode


def _parse(source: str | bytes, **limits: int) -> ParseResult:
    return parse(tokenize(source, JAVA), JAVA, **limits)


def _find(root: SyntaxNode, kind: NodeKind, name: str | None = None) -> list[SyntaxNode]:
    return [n for n in root.walk() if n.kind is kind and (name is None or (n.name and n.name.lexeme == name))]


class TestLossless:
    """The CST reproduces its input exactly."""

    @pytest.mark.parametrize("fixture", ["shapes.java", "modern.java", "missing_brace.java", "hello_world.java"])
    def test_given_fixture_when_parsed_then_leaves_reproduce_source(self, fixtures_dir: Path, fixture: str) -> None:
        """Concatenating every leaf gives back the original text."""
        # Given
        source = (fixtures_dir / fixture).read_text()

        # When
        result = _parse(source)

        # Then
        assert result.root.text == source
        assert result.root.kind is NodeKind.COMPILATION_UNIT

    @pytest.mark.parametrize(
        "source",
        [
            "",
            "}}}{{{",
            "class",
            "class A { void m( { int x = ; } ",
            "@@@ ### $$$",
            "/* unterminated",
            'class A { String s = "open; }',
        ],
    )
    def test_given_garbage_when_parsed_then_still_lossless(self, source: str) -> None:
        """Malformed input never raises and never loses a byte."""
        result = _parse(source)

        assert result.root.text == source
        assert not result.aborted

    def test_given_binary_input_when_parsed_then_total(self) -> None:
        """Arbitrary bytes produce a tree and diagnostics, never an exception."""
        raw = bytes(range(256)) * 4

        result = _parse(raw)

        assert result.root.text.encode("utf-8", errors="surrogateescape") == raw
        assert result.diagnostics


class TestDeclarations:
    def test_given_shapes_when_parsed_then_no_diagnostics(self, shapes_java: bytes) -> None:
        result = _parse(shapes_java)

        assert result.diagnostics == []

    def test_given_modern_when_parsed_then_no_diagnostics(self, modern_java: bytes) -> None:
        result = _parse(modern_java)

        assert result.diagnostics == []

    def test_type_declaration_variants(self, shapes_java: bytes, modern_java: bytes) -> None:
        """TYPE_DECL nodes carry the declaration form as their variant."""
        # When
        shapes = _parse(shapes_java).root
        modern = _parse(modern_java).root

        # Then
        variants = {n.name.lexeme: n.variant for n in _find(shapes, NodeKind.TYPE_DECL) if n.name}
        assert variants == {
            "Color": "enum",
            "Shape": "class",
            "Drawable": "interface",
            "Circle": "class",
            "Container": "class",
            "Main": "class",
        }
        modern_variants = {n.name.lexeme: n.variant for n in _find(modern, NodeKind.TYPE_DECL) if n.name}
        assert modern_variants["Expr"] == "interface"
        assert modern_variants["Num"] == "record"
        assert modern_variants["Audited"] == "annotation"
        assert modern_variants["Op"] == "enum"

    def test_anonymous_class_body(self, shapes_java: bytes) -> None:
        """``new T() {...}`` holds an anonymous TYPE_DECL after its arguments."""
        root = _parse(shapes_java).root

        creation = next(n for n in _find(root, NodeKind.NEW_OBJECT) if n.first(NodeKind.TYPE_DECL))
        assert [c.kind for c in creation.nodes()] == [NodeKind.TYPE_REF, NodeKind.ARGUMENTS, NodeKind.TYPE_DECL]
        assert creation.first(NodeKind.TYPE_DECL).variant == "anonymous"  # type: ignore[union-attr]

    def test_doc_comment_lands_in_declaration(self, shapes_java: bytes) -> None:
        """Leading trivia belongs to the declaration node that follows it."""
        root = _parse(shapes_java).root

        circle = _find(root, NodeKind.TYPE_DECL, "Circle")[0]
        assert circle.text.lstrip().startswith("/**")

    def test_compact_constructor_and_varargs(self, modern_java: bytes) -> None:
        root = _parse(modern_java).root

        compact = [n for n in _find(root, NodeKind.CONSTRUCTOR_DECL) if n.variant == "compact"]
        assert [n.name.lexeme for n in compact if n.name] == ["Num"]
        varargs = [n for n in _find(root, NodeKind.PARAMETER) if n.variant == "varargs"]
        assert [n.name.lexeme for n in varargs if n.name] == ["values"]

    def test_generic_closing_angles_split(self) -> None:
        """``>>`` closing nested type arguments is split, not a shift."""
        result = _parse("class A { java.util.Map<String, java.util.List<Integer>> m; }")

        assert result.diagnostics == []
        assert len(_find(result.root, NodeKind.TYPE_ARGUMENTS)) == 2

    def test_less_than_in_expression_is_comparison(self) -> None:
        result = _parse("class A { boolean f(int a, int b) { return a < b && b > a; } }")

        assert result.diagnostics == []
        assert {n.variant for n in _find(result.root, NodeKind.BINARY)} == {"<", ">", "&&"}


class TestStatementsAndExpressions:
    def test_categories_cover_method_body(self, shapes_java: bytes) -> None:
        root = _parse(shapes_java).root

        categories = {n.category for n in root.walk()}
        assert {NodeCategory.DECLARATION, NodeCategory.STATEMENT, NodeCategory.EXPRESSION} <= categories
        assert NodeCategory.ERROR not in categories

    def test_qualified_call_wraps_receiver(self) -> None:
        result = _parse("class A { void m() { System.out.println(1); } }")

        call = _find(result.root, NodeKind.METHOD_CALL, "println")[0]
        receiver = next(call.nodes())
        assert call.variant == "qualified"
        assert receiver.kind is NodeKind.FIELD_ACCESS
        assert receiver.name is not None and receiver.name.lexeme == "out"

    def test_lambda_parameters_are_inferred(self, modern_java: bytes) -> None:
        root = _parse(modern_java).root

        lam = _find(root, NodeKind.LAMBDA)[0]
        params = lam.first(NodeKind.PARAMETERS)
        assert params is not None
        assert [(p.variant, p.name.lexeme if p.name else None) for p in params.all(NodeKind.PARAMETER)] == [
            ("inferred", "k")
        ]

    def test_switch_expression_and_yield(self, modern_java: bytes) -> None:
        root = _parse(modern_java).root

        assert len(_find(root, NodeKind.SWITCH_EXPRESSION)) == 1
        assert len(_find(root, NodeKind.YIELD)) == 1

    def test_instanceof_pattern_binding(self, modern_java: bytes) -> None:
        root = _parse(modern_java).root

        pattern = _find(root, NodeKind.INSTANCEOF)[0]
        assert pattern.name is not None and pattern.name.lexeme == "n"

    def test_multi_catch_parameter(self, modern_java: bytes) -> None:
        root = _parse(modern_java).root

        catch = [p for p in _find(root, NodeKind.PARAMETER) if p.variant == "catch"][0]
        assert len(catch.all(NodeKind.TYPE_REF)) == 2


class TestRecovery:
    """Syntax errors are local: one diagnostic, the rest of the file intact."""

    def test_given_missing_brace_when_parsed_then_one_diagnostic(self, fixtures_dir: Path) -> None:
        """A method that loses its closing brace costs exactly one diagnostic."""
        # Given
        source = (fixtures_dir / "missing_brace.java").read_bytes()

        # When
        result = _parse(source)

        # Then
        assert len(result.diagnostics) == 1
        diag = result.diagnostics[0]
        assert diag.severity is Severity.ERROR
        assert "Missing '}'" in diag.message
        assert diag.span.start_line == 6

    def test_given_missing_brace_when_parsed_then_later_members_survive(self, fixtures_dir: Path) -> None:
        root = _parse((fixtures_dir / "missing_brace.java").read_bytes()).root

        methods = {n.name.lexeme for n in _find(root, NodeKind.METHOD_DECL) if n.name}
        types = {n.name.lexeme for n in _find(root, NodeKind.TYPE_DECL) if n.name}
        assert methods == {"deposit", "getBalance", "reset", "record"}
        assert types == {"Account", "Ledger"}

    def test_given_bad_expression_when_parsed_then_error_node_and_next_statement_parsed(self) -> None:
        # Given
        source = "class A { void m() { int x = ; int y = 2; } }"

        # When
        result = _parse(source)

        # Then
        assert result.diagnostics
        assert all(d.severity is Severity.ERROR for d in result.diagnostics)
        assert _find(result.root, NodeKind.ERROR)
        declarators = {n.name.lexeme for n in _find(result.root, NodeKind.VARIABLE_DECLARATOR) if n.name}
        assert declarators == {"x", "y"}

    def test_given_unterminated_literal_when_parsed_then_warning(self) -> None:
        result = _parse('class A { String s = "open;\n int x; }')

        codes = {d.code for d in result.diagnostics}
        assert "unterminated_literal" in codes
        assert any(d.severity is Severity.WARNING for d in result.diagnostics)

    def test_given_stray_top_level_tokens_when_parsed_then_next_type_survives(self) -> None:
        result = _parse("int x = 3; class B {}")

        assert result.diagnostics
        assert _find(result.root, NodeKind.TYPE_DECL, "B")


class TestResourceLimits:
    def test_given_deep_nesting_when_parsed_then_fatal(self) -> None:
        """Nesting past max_depth aborts the file with one fatal diagnostic."""
        # Given
        source = "class A { int x = " + "(" * 300 + "1" + ")" * 300 + "; }"

        # When
        result = _parse(source)

        # Then
        assert result.aborted
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].severity is Severity.FATAL
        assert result.diagnostics[0].code == "resource_limit"
        assert result.root.text == source

    def test_given_nesting_under_limit_when_parsed_then_ok(self) -> None:
        source = "class A { int x = " + "(" * 20 + "1" + ")" * 20 + "; }"

        result = _parse(source)

        assert not result.aborted
        assert result.diagnostics == []

    def test_given_token_limit_when_exceeded_then_fatal(self) -> None:
        result = _parse("class A { int a; int b; int c; }", max_tokens=5)

        assert result.aborted
        assert "Token count" in result.diagnostics[0].message
        assert result.token_count > 5

    def test_depth_limit_is_configurable(self) -> None:
        source = "class A { void m() { " + "{" * 10 + "}" * 10 + " } }"

        assert not _parse(source, max_depth=64).aborted
        assert _parse(source, max_depth=8).aborted
