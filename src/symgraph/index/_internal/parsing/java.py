"""Java grammar.

Recursive descent over the significant token stream. Declarations, statements
and expressions each have their own entry point; the ``_at_*`` / ``_scan_*``
helpers are side-effect-free lookaheads over significant token indices.

Generic ambiguity (``a < b`` versus ``List<String>``) is settled by the parser
position: ``_type`` parses in TYPE position, where ``<`` always opens type
arguments, and ``_expression`` in EXPRESSION position, where ``<`` compares.
Statement starts that could be either (``List<String> xs = ...`` versus
``i < n``) are decided with a trial ``_scan_type``.
"""

from __future__ import annotations

from symgraph.index._internal.parsing.base import ParserBase, PositionKind
from symgraph.index.models import NodeKind, Token, TokenKind

_MEMBER_MODIFIERS = frozenset(
    {
        "public",
        "protected",
        "private",
        "static",
        "abstract",
        "final",
        "native",
        "synchronized",
        "transient",
        "volatile",
        "strictfp",
        "default",
    }
)

# Modifiers that can never start a statement
_MEMBER_ONLY = frozenset(
    {
        "public",
        "protected",
        "private",
        "static",
        "abstract",
        "native",
        "transient",
        "volatile",
        "strictfp",
    }
)

_STATEMENT_KEYWORDS = frozenset(
    {
        "if",
        "while",
        "do",
        "for",
        "switch",
        "try",
        "return",
        "throw",
        "break",
        "continue",
        "synchronized",
        "assert",
    }
)

_TOP_SYNC = frozenset(
    {"class", "interface", "enum", "import", "package", "public", "private", "protected", "abstract", "final", "@"}
)

_BINARY_PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "|": 3,
    "^": 4,
    "&": 5,
    "==": 6,
    "!=": 6,
    "<": 7,
    ">": 7,
    "<=": 7,
    ">=": 7,
    "<<": 8,
    ">>": 8,
    ">>>": 8,
    "+": 9,
    "-": 9,
    "*": 10,
    "/": 10,
    "%": 10,
}
_RELATIONAL = 7

_ASSIGNMENT_OPERATORS = frozenset({"=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<=", ">>=", ">>>="})
_PREFIX_OPERATORS = frozenset({"+", "-", "!", "~", "++", "--"})
_LITERAL_KEYWORDS = frozenset({"true", "false", "null"})

# Tokens allowed between the angle brackets of a type argument list
_TYPE_ARGUMENT_TOKENS = frozenset({",", ".", "?", "extends", "super", "[", "]", "&", "@"})


class JavaParser(ParserBase):
    """Builds the CST for one Java compilation unit."""

    def parse_root(self) -> None:
        while not self.at_eof():
            before = self.index
            if self.at("package"):
                self._package()
            elif self.at("import"):
                self._import()
            elif self.at(";"):
                self.advance()
            elif self._at_type_decl_start():
                self._member(owner=None, type_name=None)
            else:
                self.recover(self._is_top_sync, f"Expected a type declaration, found {self._describe(self.tok)}")
            if self.index == before and not self.at_eof():
                self.unexpected("at top level")

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def _package(self) -> None:
        self.start()
        self.advance()
        self._qualified_name()
        self._expect_semicolon()
        self.finish(NodeKind.PACKAGE_DECL)

    def _import(self) -> None:
        self.start()
        self.advance()
        variant = None
        if self.at("static"):
            self.advance()
            variant = "static"
        self._qualified_name(allow_wildcard=True)
        self._expect_semicolon()
        self.finish(NodeKind.IMPORT_DECL, variant=variant)

    def _qualified_name(self, *, allow_wildcard: bool = False) -> None:
        self.start()
        last = self.expect_ident("in qualified name")
        while self.at("."):
            nxt = self.la()
            if nxt.kind is TokenKind.IDENTIFIER:
                self.advance()
                last = self.advance()
            elif allow_wildcard and nxt.is_("*"):
                self.advance()
                last = self.advance()
            else:
                self.advance()
                self.missing(f"Expected identifier after '.', found {self._describe(self.tok)}")
                break
        self.finish(NodeKind.QUALIFIED_NAME, name=last)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _member(self, owner: str | None, type_name: str | None) -> None:
        """One member of a type body, or a top-level / local type declaration.

        ``owner`` is the enclosing type's variant (None outside type bodies).
        """
        with self.nested():
            self.start()
            mods = self._modifiers()
            variant = self._type_decl_variant()
            if variant is not None:
                self._type_decl(variant)
                return
            if owner is None:
                self.recover(self._is_top_sync, f"Expected a type declaration, found {self._describe(self.tok)}")
                self.finish(NodeKind.ERROR)
                return
            if self.at("{"):
                self._block()
                self.finish(NodeKind.INITIALIZER, variant="static" if "static" in mods else "instance")
                return
            if self.at("<"):
                self._type_parameters()
            if self.at_ident() and self.la().is_("("):
                name = self.advance()
                self._callable_rest(constructor=True)
                self.finish(NodeKind.CONSTRUCTOR_DECL, name=name)
                return
            if owner == "record" and self.at_ident() and self.la().is_("{") and self.tok.lexeme == type_name:
                name = self.advance()
                self._block()
                self.finish(NodeKind.CONSTRUCTOR_DECL, variant="compact", name=name)
                return
            if not self._at_type_start():
                self.recover(self._is_member_sync, f"Expected member declaration, found {self._describe(self.tok)}")
                self.finish(NodeKind.ERROR)
                return
            self._type()
            cp = self.checkpoint()
            name = self.expect_ident("in member declaration")
            if self.at("("):
                self._callable_rest(constructor=False)
                self.finish(NodeKind.METHOD_DECL, name=name)
                return
            self._declarator_rest(cp, name)
            while self.eat(","):
                self._declarator()
            self._expect_semicolon()
            self.finish(NodeKind.FIELD_DECL)

    def _type_decl_variant(self) -> str | None:
        tok = self.tok
        if tok.is_("class"):
            return "class"
        if tok.is_("interface"):
            return "interface"
        if tok.is_("enum"):
            return "enum"
        if tok.is_("@") and self.la().is_("interface"):
            return "annotation"
        if (
            tok.kind is TokenKind.IDENTIFIER
            and tok.lexeme == "record"
            and self.la().kind is TokenKind.IDENTIFIER
            and (self.la(2).is_("(") or self.la(2).is_("<"))
        ):
            return "record"
        return None

    def _type_decl(self, variant: str) -> None:
        """Finish a type declaration whose node (and modifiers) is already open."""
        if variant == "annotation":
            self.advance()
        self.advance()
        name = self.expect_ident(f"after '{variant}'")
        if self.at("<"):
            self._type_parameters()
        if variant == "record":
            self._parameters()
        while True:
            if self.at("extends"):
                self._supertypes("extends")
            elif self.at("implements"):
                self._supertypes("implements")
            elif self.at_ident() and self.tok.lexeme == "permits":
                self._supertypes("permits")
            else:
                break
        if self.at("{"):
            self._type_body(variant, name.lexeme if name else None)
        else:
            self.missing(f"Expected '{{' to open {variant} body, found {self._describe(self.tok)}")
        self.finish(NodeKind.TYPE_DECL, variant=variant, name=name)

    def _supertypes(self, variant: str) -> None:
        self.start()
        self.advance()
        self._type()
        while self.eat(","):
            self._type()
        self.finish(NodeKind.SUPERTYPES, variant=variant)

    def _type_body(self, variant: str, type_name: str | None) -> None:
        with self.nested():
            self.start()
            open_brace = self.advance()
            if variant == "enum":
                self._enum_constants()
            while not self.at("}") and not self.at_eof():
                before = self.index
                if self.at(";"):
                    self.advance()
                    continue
                if self._at_member_start():
                    self._member(variant, type_name)
                else:
                    self.recover(self._is_member_sync, f"Unexpected {self._describe(self.tok)} in {variant} body")
                if self.index == before:
                    self.unexpected(f"in {variant} body")
            if not self.eat("}"):
                self.report_gap_once(f"Missing '}}' to close {variant} body", open_brace.span)
            self.finish(NodeKind.TYPE_BODY)

    def _enum_constants(self) -> None:
        while self._at_enum_constant():
            self.start()
            self._modifiers()
            name = self.expect_ident("in enum constant")
            if self.at("("):
                self._arguments()
            if self.at("{"):
                self.start()
                self._type_body("anonymous", None)
                self.finish(NodeKind.TYPE_DECL, variant="anonymous")
            self.finish(NodeKind.ENUM_CONSTANT, name=name)
            if not self.eat(","):
                break
        self.eat(";")

    def _at_enum_constant(self) -> bool:
        if self._at_annotation():
            return True
        return self.at_ident() and any(self.la().is_(lx) for lx in (",", ";", "(", "{", "}"))

    def _callable_rest(self, *, constructor: bool) -> None:
        self._parameters()
        if not constructor and self.at("["):
            self._dims()
        if self.at("throws"):
            self.start()
            self.advance()
            self._type()
            while self.eat(","):
                self._type()
            self.finish(NodeKind.THROWS)
        if self.at("{"):
            self._block()
        elif self.at("default"):
            # Annotation element default value
            self.advance()
            self._element_value()
            self._expect_semicolon()
        elif not self.eat(";"):
            self.missing(f"Expected '{{' or ';' after signature, found {self._describe(self.tok)}")

    def _element_value(self) -> None:
        if self._at_annotation():
            self._annotation()
        elif self.at("{"):
            self._array_initializer()
        else:
            self._expression()

    def _declarator(self) -> None:
        cp = self.checkpoint()
        name = self.expect_ident("in variable declaration")
        self._declarator_rest(cp, name)

    def _declarator_rest(self, cp: int, name: Token | None) -> None:
        if self.at("["):
            self._dims()
        if self.eat("="):
            self._variable_initializer()
        self.wrap(cp, NodeKind.VARIABLE_DECLARATOR, name=name)

    def _variable_initializer(self) -> None:
        if self.at("{"):
            self._array_initializer()
        else:
            self._expression()

    def _modifiers(self) -> set[str]:
        mods: set[str] = set()
        if not (self._at_modifier() or self._at_annotation()):
            return mods
        self.start()
        while True:
            if self._at_annotation():
                self._annotation()
            elif self._at_modifier():
                mods.add(self._modifier())
            else:
                break
        self.finish(NodeKind.MODIFIERS)
        return mods

    def _modifier(self) -> str:
        if self.tok.lexeme == "non":
            self.advance()
            self.advance()
            self.advance()
            return "non-sealed"
        return self.advance().lexeme

    def _annotation(self) -> None:
        self.start()
        self.advance()
        name = self.expect_ident("after '@'")
        while self.at(".") and self.la().kind is TokenKind.IDENTIFIER:
            self.advance()
            name = self.advance()
        if self.at("("):
            self.skip_group()
        self.finish(NodeKind.ANNOTATION, name=name)

    def _type_parameters(self) -> None:
        self.start()
        self.advance()
        while True:
            self.start()
            while self._at_annotation():
                self._annotation()
            name = self.expect_ident("in type parameter list")
            if self.eat("extends"):
                self._type()
                while self.eat("&"):
                    self._type()
            self.finish(NodeKind.TYPE_PARAMETER, name=name)
            if not self.eat(","):
                break
        self._close_angle()
        self.finish(NodeKind.TYPE_PARAMETERS)

    def _parameters(self) -> None:
        self.start()
        if not self.expect("(", "to open parameter list"):
            self.finish(NodeKind.PARAMETERS)
            return
        if not self.at(")"):
            while True:
                self._parameter()
                if not self.eat(","):
                    break
        self._close_paren("to close parameter list")
        self.finish(NodeKind.PARAMETERS)

    def _parameter(self) -> None:
        with self.nested():
            self.start()
            self._modifiers()
            self._type()
            variant = None
            if self.at("..."):
                self.advance()
                variant = "varargs"
            name = None
            if self.at_ident():
                name = self.advance()
            elif self.at("this"):
                # Receiver parameter
                self.advance()
                variant = "receiver"
            else:
                self.missing(f"Expected parameter name, found {self._describe(self.tok)}")
            if self.at("["):
                self._dims()
            self.finish(NodeKind.PARAMETER, variant=variant, name=name)

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def angle_opens_type_arguments(self) -> bool:
        return self.position is PositionKind.TYPE

    def _type(self, *, dims: bool = True) -> None:
        with self.nested():
            saved = self.position
            self.position = PositionKind.TYPE
            try:
                self.start()
                while self._at_annotation():
                    self._annotation()
                tok = self.tok
                variant = "class"
                name: Token | None = None
                if tok.kind is TokenKind.KEYWORD and tok.lexeme in self.profile.primitive_types:
                    name = self.advance()
                    variant = "primitive"
                elif self.at("?"):
                    self.advance()
                    variant = "wildcard"
                    if self.at("extends") or self.at("super"):
                        self.advance()
                        self._type()
                elif self.at_ident():
                    name = self.advance()
                    if self.at("<") and self.angle_opens_type_arguments():
                        self._type_arguments()
                    while self.at(".") and (self.la().kind is TokenKind.IDENTIFIER or self.la().is_("@")):
                        self.advance()
                        while self._at_annotation():
                            self._annotation()
                        self.expect_ident("in qualified type")
                        if self.at("<"):
                            self._type_arguments()
                    if name.lexeme == "var":
                        variant = "var"
                else:
                    self.missing(f"Expected type, found {self._describe(tok)}")
                if dims and self.at("[") and self.la().is_("]"):
                    self._dims()
                    variant = "array"
                self.finish(NodeKind.TYPE_REF, variant=variant, name=name)
            finally:
                self.position = saved

    def _type_arguments(self) -> None:
        saved = self.position
        self.position = PositionKind.TYPE
        try:
            self.start()
            self.advance()
            if not self._at_closing_angle():
                while True:
                    self._type()
                    if not self.eat(","):
                        break
            self._close_angle()
            self.finish(NodeKind.TYPE_ARGUMENTS)
        finally:
            self.position = saved

    def _at_closing_angle(self) -> bool:
        tok = self.tok
        return tok.kind is TokenKind.OPERATOR and tok.lexeme.startswith(">")

    def _close_angle(self) -> None:
        if self._at_closing_angle():
            self.split_token(">")
            self.advance()
        else:
            self.missing(f"Expected '>', found {self._describe(self.tok)}")

    def _dims(self) -> None:
        self.start()
        while self.at("[") and self.la().is_("]"):
            self.advance()
            self.advance()
        self.finish(NodeKind.DIMENSIONS)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _block(self) -> None:
        with self.nested():
            self.start()
            open_brace = self.expect("{")
            if open_brace is None:
                self.finish(NodeKind.BLOCK)
                return
            anchor = open_brace.span
            while not self.at("}") and not self.at_eof():
                if self._looks_like_member():
                    # A member declaration cannot appear here: the block lost its '}'
                    self.report_gap_once(f"Missing '}}' to close block opened at line {anchor.start_line}", anchor)
                    self.finish(NodeKind.BLOCK)
                    return
                before = self.index
                self._statement()
                if self.index == before:
                    self.unexpected("in block")
            if not self.eat("}"):
                self.report_gap_once(f"Missing '}}' to close block opened at line {anchor.start_line}", anchor)
            self.finish(NodeKind.BLOCK)

    def _statement(self) -> None:
        with self.nested():
            tok = self.tok
            if self.at("{"):
                self._block()
                return
            if self.at(";"):
                self.start()
                self.advance()
                self.finish(NodeKind.EMPTY_STATEMENT)
                return
            if tok.kind is TokenKind.KEYWORD and tok.lexeme in _STATEMENT_KEYWORDS:
                if tok.lexeme != "synchronized" or self.la().is_("("):
                    self._keyword_statement(tok.lexeme)
                    return
            if tok.kind is TokenKind.IDENTIFIER:
                if self.la().is_(":"):
                    self.start()
                    name = self.advance()
                    self.advance()
                    self._statement()
                    self.finish(NodeKind.LABELED, name=name)
                    return
                if tok.lexeme == "yield" and self._at_yield():
                    self.start()
                    self.advance()
                    self._expression()
                    self._expect_semicolon()
                    self.finish(NodeKind.YIELD)
                    return
            if self._at_type_decl_start():
                self._member(owner=None, type_name=None)
                return
            if self._at_local_var_decl():
                self._local_var_decl()
                return
            self.start()
            self._expression()
            self._expect_semicolon()
            self.finish(NodeKind.EXPRESSION_STATEMENT)

    def _keyword_statement(self, keyword: str) -> None:
        self.start()
        self.advance()
        if keyword == "if":
            self._condition()
            self._statement()
            # else-if chains stay flat: one ELSE_CLAUSE per link
            while self.at("else"):
                self.start()
                self.advance()
                if self.at("if"):
                    self.advance()
                    self._condition()
                    self._statement()
                    self.finish(NodeKind.ELSE_CLAUSE, variant="else_if")
                    continue
                self._statement()
                self.finish(NodeKind.ELSE_CLAUSE)
                break
            self.finish(NodeKind.CONTROL_FLOW, variant="if")
        elif keyword == "while":
            self._condition()
            self._statement()
            self.finish(NodeKind.CONTROL_FLOW, variant="while")
        elif keyword == "do":
            self._statement()
            self.expect("while", "after 'do' body")
            self._condition()
            self._expect_semicolon()
            self.finish(NodeKind.CONTROL_FLOW, variant="do")
        elif keyword == "for":
            self.finish(NodeKind.CONTROL_FLOW, variant=self._for_rest())
        elif keyword == "switch":
            self._condition()
            self._switch_body()
            self.finish(NodeKind.CONTROL_FLOW, variant="switch")
        elif keyword == "synchronized":
            self._condition()
            self._block()
            self.finish(NodeKind.CONTROL_FLOW, variant="synchronized")
        elif keyword == "try":
            self._try_rest()
            self.finish(NodeKind.TRY)
        elif keyword == "return":
            if not self.at(";"):
                self._expression()
            self._expect_semicolon()
            self.finish(NodeKind.RETURN)
        elif keyword == "throw":
            self._expression()
            self._expect_semicolon()
            self.finish(NodeKind.THROW)
        elif keyword in ("break", "continue"):
            if self.at_ident():
                self.advance()
            self._expect_semicolon()
            self.finish(NodeKind.BREAK if keyword == "break" else NodeKind.CONTINUE)
        else:
            self._expression()
            if self.eat(":"):
                self._expression()
            self._expect_semicolon()
            self.finish(NodeKind.ASSERT)

    def _for_rest(self) -> str:
        self.expect("(", "after 'for'")
        variant = "for"
        if self._at_local_var_decl():
            self._local_var_decl(in_header=True)
            if self.eat(":"):
                variant = "foreach"
                self._expression()
        elif not self.at(";"):
            self._expression_list()
        if variant == "for":
            self.expect(";", "in for header")
            if not self.at(";"):
                self._expression()
            self.expect(";", "in for header")
            if not self.at(")"):
                self._expression_list()
        self._close_paren("to close for header")
        self._statement()
        return variant

    def _expression_list(self) -> None:
        self._expression()
        while self.eat(","):
            self._expression()

    def _try_rest(self) -> None:
        if self.at("("):
            self.start()
            self.advance()
            while not self.at(")") and not self.at_eof():
                if self._at_local_var_decl():
                    self._local_var_decl(in_header=True)
                else:
                    self._expression()
                if not self.eat(";"):
                    break
            self._close_paren("to close resource list")
            self.finish(NodeKind.RESOURCES)
        self._block()
        while self.at("catch"):
            self.start()
            self.advance()
            self.expect("(", "after 'catch'")
            self.start()
            self._modifiers()
            self._type()
            while self.eat("|"):
                self._type()
            name = self.expect_ident("in catch parameter")
            self.finish(NodeKind.PARAMETER, variant="catch", name=name)
            self._close_paren("to close catch parameter")
            self._block()
            self.finish(NodeKind.CATCH_CLAUSE)
        if self.at("finally"):
            self.start()
            self.advance()
            self._block()
            self.finish(NodeKind.FINALLY_CLAUSE)

    def _switch_body(self) -> None:
        self.start()
        open_brace = self.expect("{", "to open switch body")
        if open_brace is None:
            self.finish(NodeKind.BLOCK)
            return
        anchor = open_brace.span
        while not self.at("}") and not self.at_eof():
            if self._looks_like_member():
                self.report_gap_once("Missing '}' to close switch body", anchor)
                self.finish(NodeKind.BLOCK)
                return
            before = self.index
            if self.at("case") or (self.at("default") and (self.la().is_(":") or self.la().is_("->"))):
                self._switch_case()
            else:
                self.recover(
                    lambda t: t.is_("case") or t.is_("default"),
                    f"Expected 'case' or 'default', found {self._describe(self.tok)}",
                )
            if self.index == before:
                self.unexpected("in switch body")
        if not self.eat("}"):
            self.report_gap_once("Missing '}' to close switch body", anchor)
        self.finish(NodeKind.BLOCK)

    def _switch_case(self) -> None:
        self.start()
        if self.advance().lexeme == "case":
            self._case_label()
            while self.eat(","):
                self._case_label()
        if self.eat("->"):
            if self.at("{"):
                self._block()
            elif self.at("throw"):
                self._statement()
            else:
                self._expression()
                self._expect_semicolon()
        else:
            self.expect(":", "after case label")
            while not self.at("case") and not self.at("}") and not self.at_eof():
                if self.at("default") and (self.la().is_(":") or self.la().is_("->")):
                    break
                if self._looks_like_member():
                    break
                before = self.index
                self._statement()
                if self.index == before:
                    self.unexpected("in switch case")
        self.finish(NodeKind.SWITCH_CASE)

    def _case_label(self) -> None:
        saved = self.position
        self.position = PositionKind.EXPRESSION
        try:
            # No lambda detection here: "case X ->" is not a lambda
            self._ternary()
        finally:
            self.position = saved

    def _local_var_decl(self, *, in_header: bool = False) -> None:
        self.start()
        self._modifiers()
        self._type()
        self._declarator()
        while self.eat(","):
            self._declarator()
        if not in_header:
            self._expect_semicolon()
        self.finish(NodeKind.LOCAL_VAR_DECL)

    def _condition(self) -> None:
        self.expect("(", "before condition")
        self._expression()
        self._close_paren("after condition")

    def _close_paren(self, context: str) -> None:
        if self.eat(")"):
            return
        if self.at("{") or self.at(";") or self.at("}") or self.at_eof():
            self.missing(f"Expected ')' {context}, found {self._describe(self.tok)}")
            return
        self.recover(
            lambda t: t.is_(")") or t.is_("{") or t.is_(";"),
            f"Unexpected {self._describe(self.tok)}, expected ')' {context}",
            consume_semicolon=False,
        )
        self.eat(")")

    def _expect_semicolon(self) -> None:
        if self.eat(";"):
            return
        if self.at("}") or self.at_eof() or self._is_statement_sync(self.tok):
            self.missing(f"Expected ';', found {self._describe(self.tok)}")
            return
        self.recover(self._is_statement_sync, f"Expected ';', found {self._describe(self.tok)}")

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expression(self) -> None:
        with self.nested():
            saved = self.position
            self.position = PositionKind.EXPRESSION
            try:
                self._assignment()
            finally:
                self.position = saved

    def _assignment(self) -> None:
        if self._at_lambda():
            self._lambda()
            return
        cp = self.checkpoint()
        self._ternary()
        tok = self.tok
        if tok.kind is TokenKind.OPERATOR and tok.lexeme in _ASSIGNMENT_OPERATORS:
            self.advance()
            self._expression()
            self.wrap(cp, NodeKind.ASSIGNMENT, variant=tok.lexeme)

    def _ternary(self) -> None:
        cp = self.checkpoint()
        self._binary(1)
        if self.at("?"):
            self.advance()
            self._expression()
            self.expect(":", "in conditional expression")
            if self._at_lambda():
                self._lambda()
            else:
                self._ternary()
            self.wrap(cp, NodeKind.TERNARY)

    def _binary(self, min_precedence: int) -> None:
        cp = self.checkpoint()
        self._unary()
        while True:
            tok = self.tok
            if tok.is_("instanceof"):
                if _RELATIONAL < min_precedence:
                    break
                self.advance()
                self.eat("final")
                self._type()
                binding = self.advance() if self.at_ident() else None
                self.wrap(cp, NodeKind.INSTANCEOF, name=binding)
                continue
            if tok.kind is not TokenKind.OPERATOR:
                break
            if tok.is_("<") and self.angle_opens_type_arguments():
                break
            precedence = _BINARY_PRECEDENCE.get(tok.lexeme)
            if precedence is None or precedence < min_precedence:
                break
            self.advance()
            with self.nested():
                self._binary(precedence + 1)
            self.wrap(cp, NodeKind.BINARY, variant=tok.lexeme)

    def _unary(self) -> None:
        with self.nested():
            tok = self.tok
            if tok.kind is TokenKind.OPERATOR and tok.lexeme in _PREFIX_OPERATORS:
                self.start()
                self.advance()
                self._unary()
                self.finish(NodeKind.UNARY, variant=tok.lexeme)
                return
            if self.at("(") and self._at_cast():
                self.start()
                self.advance()
                self._type()
                while self.eat("&"):
                    self._type()
                self.expect(")", "to close cast")
                if self._at_lambda():
                    self._lambda()
                else:
                    self._unary()
                self.finish(NodeKind.CAST)
                return
            self._postfix()

    def _postfix(self) -> None:
        cp = self.checkpoint()
        self._primary()
        while True:
            if self.at("."):
                nxt = self.la()
                self.advance()
                if nxt.kind is TokenKind.IDENTIFIER:
                    name = self.advance()
                    if self.at("("):
                        self._arguments()
                        self.wrap(cp, NodeKind.METHOD_CALL, variant="qualified", name=name)
                    else:
                        self.wrap(cp, NodeKind.FIELD_ACCESS, name=name)
                elif nxt.is_("<"):
                    self._type_arguments()
                    name = self.expect_ident("in generic method call")
                    if self.at("("):
                        self._arguments()
                    else:
                        self.missing(f"Expected '(' after generic method name, found {self._describe(self.tok)}")
                    self.wrap(cp, NodeKind.METHOD_CALL, variant="qualified", name=name)
                elif nxt.is_("new"):
                    self._creation()
                    self.wrap(cp, NodeKind.NEW_OBJECT, variant="qualified")
                elif nxt.is_("this"):
                    self.advance()
                    self.wrap(cp, NodeKind.THIS, variant="qualified")
                elif nxt.is_("super"):
                    self.advance()
                    self.wrap(cp, NodeKind.SUPER, variant="qualified")
                elif nxt.is_("class"):
                    self.advance()
                    self.wrap(cp, NodeKind.CLASS_LITERAL)
                else:
                    self.missing(f"Expected member name after '.', found {self._describe(self.tok)}")
                    self.wrap(cp, NodeKind.FIELD_ACCESS)
                    return
            elif self.at("[") and self.la().is_("]"):
                self._dims()
            elif self.at("["):
                self.advance()
                self._expression()
                self.expect("]", "to close index")
                self.wrap(cp, NodeKind.ARRAY_ACCESS)
            elif self.at("++") or self.at("--"):
                op = self.advance()
                self.wrap(cp, NodeKind.POSTFIX, variant=op.lexeme)
            elif self.at("::"):
                self.advance()
                name = None
                if self.at_ident() or self.at("new"):
                    name = self.advance()
                else:
                    self.missing(f"Expected method name after '::', found {self._describe(self.tok)}")
                self.wrap(cp, NodeKind.METHOD_REFERENCE, name=name)
            else:
                return

    def _primary(self) -> None:
        tok = self.tok
        if tok.kind.is_literal or (tok.kind is TokenKind.KEYWORD and tok.lexeme in _LITERAL_KEYWORDS):
            self.start()
            self.advance()
            self.finish(NodeKind.LITERAL)
        elif self.at_ident():
            self.start()
            name = self.advance()
            if self.at("("):
                self._arguments()
                self.finish(NodeKind.METHOD_CALL, name=name)
            else:
                self.finish(NodeKind.NAME, name=name)
        elif self.at("this") or self.at("super"):
            self.start()
            self.advance()
            if self.at("("):
                self._arguments()
                self.finish(NodeKind.METHOD_CALL, variant=tok.lexeme)
            else:
                self.finish(NodeKind.THIS if tok.lexeme == "this" else NodeKind.SUPER)
        elif self.at("("):
            self.start()
            self.advance()
            self._expression()
            self._close_paren("to close parenthesized expression")
            self.finish(NodeKind.PARENTHESIZED)
        elif self.at("new"):
            self._creation()
        elif self.at("switch"):
            self.start()
            self.advance()
            self._condition()
            self._switch_body()
            self.finish(NodeKind.SWITCH_EXPRESSION)
        elif tok.kind is TokenKind.KEYWORD and tok.lexeme in self.profile.primitive_types:
            # int.class, int[].class, int[]::new
            self.start()
            self._type()
            if self.at(".") and self.la().is_("class"):
                self.advance()
                self.advance()
            self.finish(NodeKind.CLASS_LITERAL)
        elif self.at("{"):
            self._array_initializer()
        elif tok.kind in (TokenKind.IDENTIFIER, TokenKind.UNKNOWN) or tok.is_("@"):
            self.unexpected("in expression")
        elif tok.kind is TokenKind.OPERATOR and not tok.is_("->"):
            self.unexpected("in expression")
        else:
            self.missing(f"Expected expression, found {self._describe(tok)}")

    def _creation(self) -> None:
        with self.nested():
            self.start()
            self.advance()
            if self.at("<"):
                self._type_arguments()
            self._type(dims=False)
            if self.at("["):
                self.start()
                while self.at("["):
                    self.advance()
                    if not self.at("]"):
                        self._expression()
                    self.expect("]", "in array creation")
                self.finish(NodeKind.DIMENSIONS)
                if self.at("{"):
                    self._array_initializer()
                self.finish(NodeKind.NEW_ARRAY)
                return
            if self.at("("):
                self._arguments()
            else:
                self.missing(f"Expected '(' or '[' after type in 'new' expression, found {self._describe(self.tok)}")
            if self.at("{"):
                self.start()
                self._type_body("anonymous", None)
                self.finish(NodeKind.TYPE_DECL, variant="anonymous")
            self.finish(NodeKind.NEW_OBJECT)

    def _arguments(self) -> None:
        self.start()
        self.advance()
        if not self.at(")"):
            while True:
                self._expression()
                if not self.eat(","):
                    break
        self._close_paren("to close argument list")
        self.finish(NodeKind.ARGUMENTS)

    def _array_initializer(self) -> None:
        with self.nested():
            self.start()
            self.advance()
            while not self.at("}") and not self.at_eof():
                self._variable_initializer()
                if not self.eat(","):
                    break
            if not self.at("}") and not self.at_eof():
                self.recover(lambda t: t.is_(";"), "Expected ',' or '}' in array initializer", consume_semicolon=False)
            self.expect("}", "to close array initializer")
            self.finish(NodeKind.ARRAY_INITIALIZER)

    def _lambda(self) -> None:
        with self.nested():
            self.start()
            self.start()
            if self.at_ident():
                self.start()
                name = self.advance()
                self.finish(NodeKind.PARAMETER, variant="inferred", name=name)
            else:
                self.advance()
                while not self.at(")") and not self.at_eof():
                    if self.at_ident() and (self.la().is_(",") or self.la().is_(")")):
                        self.start()
                        name = self.advance()
                        self.finish(NodeKind.PARAMETER, variant="inferred", name=name)
                    else:
                        self._parameter()
                    if not self.eat(","):
                        break
                self._close_paren("to close lambda parameters")
            self.finish(NodeKind.PARAMETERS)
            self.expect("->", "in lambda")
            if self.at("{"):
                self._block()
            else:
                self._expression()
            self.finish(NodeKind.LAMBDA)

    # ------------------------------------------------------------------
    # Lookahead
    # ------------------------------------------------------------------

    def _at_annotation(self) -> bool:
        return self.at("@") and not self.la().is_("interface")

    def _at_modifier(self) -> bool:
        tok = self.tok
        if tok.kind is TokenKind.KEYWORD and tok.lexeme in _MEMBER_MODIFIERS:
            nxt = self.la()
            if tok.lexeme == "default":
                return not (nxt.is_(":") or nxt.is_("->"))
            if tok.lexeme == "synchronized":
                return not nxt.is_("(")
            return True
        if tok.kind is TokenKind.IDENTIFIER:
            if tok.lexeme == "sealed":
                nxt = self.la()
                return nxt.kind is TokenKind.KEYWORD or nxt.lexeme == "record" or nxt.is_("@")
            if tok.lexeme == "non":
                return self.la().is_("-") and self.la(2).lexeme == "sealed"
        return False

    def _at_type_start(self) -> bool:
        tok = self.tok
        if tok.kind is TokenKind.KEYWORD:
            return tok.lexeme in self.profile.primitive_types
        return tok.kind is TokenKind.IDENTIFIER or self._at_annotation()

    def _at_member_start(self) -> bool:
        tok = self.tok
        if tok.kind is TokenKind.IDENTIFIER:
            return True
        if tok.kind is TokenKind.KEYWORD:
            return (
                tok.lexeme in _MEMBER_MODIFIERS
                or tok.lexeme in self.profile.primitive_types
                or tok.lexeme in ("class", "interface", "enum")
            )
        return tok.is_("@") or tok.is_("<") or tok.is_("{")

    def _at_type_decl_start(self) -> bool:
        i = self._skip_modifiers(self.index)
        tok = self.tok_at(i)
        if tok.is_("class") or tok.is_("interface") or tok.is_("enum"):
            return True
        if tok.is_("@") and self.tok_at(i + 1).is_("interface"):
            return True
        return (
            tok.kind is TokenKind.IDENTIFIER
            and tok.lexeme == "record"
            and self.tok_at(i + 1).kind is TokenKind.IDENTIFIER
            and (self.tok_at(i + 2).is_("(") or self.tok_at(i + 2).is_("<"))
        )

    def _skip_modifiers(self, i: int) -> int:
        while True:
            tok = self.tok_at(i)
            if tok.is_("@") and not self.tok_at(i + 1).is_("interface"):
                i = self._scan_annotation(i)
            elif tok.kind is TokenKind.KEYWORD and tok.lexeme in _MEMBER_MODIFIERS:
                if tok.lexeme == "synchronized" and self.tok_at(i + 1).is_("("):
                    return i
                i += 1
            elif (
                tok.kind is TokenKind.IDENTIFIER
                and tok.lexeme == "sealed"
                and self.tok_at(i + 1).kind is TokenKind.KEYWORD
            ):
                i += 1
            elif tok.kind is TokenKind.IDENTIFIER and tok.lexeme == "non" and self.tok_at(i + 1).is_("-"):
                i += 3
            else:
                return i

    def _looks_like_member(self) -> bool:
        """True where a statement is expected but a member declaration starts."""
        i = self.index
        while True:
            tok = self.tok_at(i)
            if tok.is_("@"):
                if self.tok_at(i + 1).is_("interface"):
                    return True
                i = self._scan_annotation(i)
                continue
            if tok.kind is TokenKind.KEYWORD and tok.lexeme in _MEMBER_ONLY:
                return True
            if tok.is_("synchronized") and not self.tok_at(i + 1).is_("("):
                return True
            if tok.is_("final"):
                i += 1
                continue
            break
        if tok.is_("void") or tok.is_("<"):
            return True
        j = self._scan_type(i)
        return j is not None and self.tok_at(j).kind is TokenKind.IDENTIFIER and self.tok_at(j + 1).is_("(")

    def _at_local_var_decl(self) -> bool:
        i = self.index
        while True:
            tok = self.tok_at(i)
            if tok.is_("final"):
                i += 1
            elif tok.is_("@"):
                i = self._scan_annotation(i)
            else:
                break
        j = self._scan_type(i)
        if j is None or self.tok_at(j).kind is not TokenKind.IDENTIFIER:
            return False
        nxt = self.tok_at(j + 1)
        return any(nxt.is_(lx) for lx in ("=", ";", ",", "[", ":"))

    def _at_yield(self) -> bool:
        nxt = self.la()
        if nxt.kind is TokenKind.OPERATOR:
            return nxt.lexeme in _PREFIX_OPERATORS and nxt.lexeme not in ("++", "--")
        return not any(nxt.is_(lx) for lx in (".", "[", "(", ";", ")", ","))

    def _at_cast(self) -> bool:
        i = self.index + 1
        first = self.tok_at(i)
        j = self._scan_type(i)
        if j is None:
            return False
        while self.tok_at(j).is_("&"):
            j = self._scan_type(j + 1)
            if j is None:
                return False
        if not self.tok_at(j).is_(")"):
            return False
        if first.kind is TokenKind.KEYWORD:
            return True
        nxt = self.tok_at(j + 1)
        if nxt.kind in (TokenKind.IDENTIFIER,) or nxt.kind.is_literal:
            return True
        if nxt.kind is TokenKind.KEYWORD:
            return nxt.lexeme in ("this", "super", "new", "switch") or nxt.lexeme in _LITERAL_KEYWORDS
        return nxt.is_("(") or nxt.is_("!") or nxt.is_("~")

    def _at_lambda(self) -> bool:
        if self.at_ident():
            return self.la().is_("->")
        if not self.at("("):
            return False
        depth = 0
        i = self.index
        while True:
            tok = self.tok_at(i)
            if tok.kind is TokenKind.EOF:
                return False
            if tok.is_("("):
                depth += 1
            elif tok.is_(")"):
                depth -= 1
                if depth == 0:
                    return self.tok_at(i + 1).is_("->")
            elif tok.is_(";") or tok.is_("{") or tok.is_("}"):
                return False
            i += 1

    def _scan_annotation(self, i: int) -> int:
        i += 1
        if self.tok_at(i).kind is TokenKind.IDENTIFIER:
            i += 1
        while self.tok_at(i).is_(".") and self.tok_at(i + 1).kind is TokenKind.IDENTIFIER:
            i += 2
        if self.tok_at(i).is_("("):
            depth = 0
            while True:
                tok = self.tok_at(i)
                if tok.kind is TokenKind.EOF:
                    return i
                if tok.is_("("):
                    depth += 1
                elif tok.is_(")"):
                    depth -= 1
                    if depth == 0:
                        return i + 1
                i += 1
        return i

    def _scan_type(self, i: int) -> int | None:
        """Index just past a type starting at ``i``, or None if there is none."""
        tok = self.tok_at(i)
        while tok.is_("@"):
            i = self._scan_annotation(i)
            tok = self.tok_at(i)
        if tok.kind is TokenKind.KEYWORD and tok.lexeme in self.profile.primitive_types:
            i += 1
        elif tok.kind is TokenKind.IDENTIFIER:
            i += 1
            while True:
                if self.tok_at(i).is_("<"):
                    end = self._scan_type_arguments(i)
                    if end is None:
                        return None
                    i = end
                if self.tok_at(i).is_(".") and self.tok_at(i + 1).kind is TokenKind.IDENTIFIER:
                    i += 2
                    continue
                break
        else:
            return None
        while self.tok_at(i).is_("[") and self.tok_at(i + 1).is_("]"):
            i += 2
        return i

    def _scan_type_arguments(self, i: int) -> int | None:
        depth = 0
        while True:
            tok = self.tok_at(i)
            if tok.is_("<"):
                depth += 1
            elif tok.kind is TokenKind.OPERATOR and tok.lexeme in (">", ">>", ">>>"):
                depth -= len(tok.lexeme)
                if depth <= 0:
                    return i + 1 if depth == 0 else None
            elif not (
                tok.kind is TokenKind.IDENTIFIER
                or (tok.kind is TokenKind.KEYWORD and tok.lexeme in self.profile.primitive_types)
                or tok.lexeme in _TYPE_ARGUMENT_TOKENS
            ):
                return None
            i += 1

    # ------------------------------------------------------------------
    # Synchronization sets
    # ------------------------------------------------------------------

    @staticmethod
    def _is_top_sync(tok: Token) -> bool:
        if tok.kind is TokenKind.IDENTIFIER:
            return tok.lexeme == "record"
        return tok.kind in (TokenKind.KEYWORD, TokenKind.OPERATOR) and tok.lexeme in _TOP_SYNC

    def _is_member_sync(self, tok: Token) -> bool:
        if tok.kind is TokenKind.KEYWORD:
            return (
                tok.lexeme in _MEMBER_MODIFIERS
                or tok.lexeme in self.profile.primitive_types
                or tok.lexeme in ("class", "interface", "enum")
            )
        return tok.is_("@")

    @staticmethod
    def _is_statement_sync(tok: Token) -> bool:
        return tok.kind is TokenKind.KEYWORD and (tok.lexeme in _STATEMENT_KEYWORDS or tok.lexeme in _MEMBER_ONLY)

