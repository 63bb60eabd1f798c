"""Tests for the Vira parser."""

from __future__ import annotations

import pytest

from vira.ast_nodes import BinaryOp, Call, ExprStmt, FuncDef, Import, Program, VarDecl
from vira.errors import CompileError, LexError
from vira.frontend import tokenize
from vira.lexer import Lexer
from vira.parser import Parser
from vira.tokens import TokenKind
from tests.helpers import parse, parse_ok, shape


def parse_expr(source: str):
    """Helper: parse a single expression statement and return its shape."""
    program = parse_ok(source)
    assert len(program.statements) == 1
    stmt = program.statements[0]
    assert isinstance(stmt, ExprStmt)
    return shape(stmt.expr)


def num(n: int):
    return ("Number", n)


class TestParserExpressions:
    def test_multiplication_binds_tighter(self):
        assert parse_expr("1 + 2 * 3;") == (
            "Binary", "+", num(1), ("Binary", "*", num(2), num(3)),
        )

    def test_parentheses_override_precedence(self):
        assert parse_expr("(1 + 2) * 3;") == (
            "Binary", "*", ("Binary", "+", num(1), num(2)), num(3),
        )

    def test_subtraction_is_left_associative(self):
        assert parse_expr("1 - 2 - 3;") == (
            "Binary", "-", ("Binary", "-", num(1), num(2)), num(3),
        )

    def test_division_is_left_associative(self):
        assert parse_expr("8 / 4 / 2;") == (
            "Binary", "/", ("Binary", "/", num(8), num(4)), num(2),
        )

    def test_unary_minus_desugars_to_subtraction(self):
        assert parse_expr("-x;") == ("Binary", "-", num(0), ("Identifier", "x"))

    def test_double_negation(self):
        assert parse_expr("--1;") == (
            "Binary", "-", num(0), ("Binary", "-", num(0), num(1)),
        )

    def test_unary_binds_tighter_than_multiplication(self):
        assert parse_expr("-2 * 3;") == (
            "Binary", "*", ("Binary", "-", num(0), num(2)), num(3),
        )

    def test_string_literal(self):
        assert parse_expr(r'"a\"b";') == ("String", 'a"b')

    def test_identifier(self):
        assert parse_expr("value;") == ("Identifier", "value")

    def test_call(self):
        assert parse_expr("foo(1, 2+3);") == (
            "Call", "foo", [num(1), ("Binary", "+", num(2), num(3))],
        )

    def test_call_without_arguments(self):
        assert parse_expr("foo();") == ("Call", "foo", [])

    def test_nested_calls(self):
        assert parse_expr("f(g(1), h());") == (
            "Call", "f", [("Call", "g", [num(1)]), ("Call", "h", [])],
        )

    def test_call_in_arithmetic(self):
        assert parse_expr("2 * f(x) + 1;") == (
            "Binary", "+",
            ("Binary", "*", num(2), ("Call", "f", [("Identifier", "x")])),
            num(1),
        )

    def test_deep_parentheses(self):
        assert parse_expr("(((7)));") == num(7)

    def test_number_value_is_integer(self):
        program = parse_ok("123;")
        assert program.statements[0].expr.value == 123


class TestParserStatements:
    def test_let_with_initializer(self):
        assert shape(parse_ok("let x = 1 + 2;")) == [
            ("VarDecl", "x", ("Binary", "+", num(1), num(2))),
        ]

    def test_let_without_initializer(self):
        assert shape(parse_ok("let x;")) == [("VarDecl", "x", None)]

    def test_write(self):
        assert shape(parse_ok('write "hi";')) == [("Write", ("String", "hi"))]

    def test_import(self):
        program = parse_ok(":mathlib:;")
        assert shape(program) == [("Import", "mathlib", None)]
        stmt = program.statements[0]
        assert isinstance(stmt, Import)
        assert stmt.alias is None

    def test_function_definition(self):
        assert shape(parse_ok("def add(a, b) { write a + b; }")) == [
            ("FuncDef", "add", ["a", "b"], [
                ("Write", ("Binary", "+", ("Identifier", "a"), ("Identifier", "b"))),
            ]),
        ]

    def test_function_without_params_or_body(self):
        assert shape(parse_ok("def noop() {}")) == [("FuncDef", "noop", [], [])]

    def test_duplicate_params_are_accepted(self):
        fd = parse_ok("def f(a, a) {}").statements[0]
        assert isinstance(fd, FuncDef)
        assert fd.params == ["a", "a"]

    def test_nested_declarations(self):
        source = (
            "def outer(x) {\n"
            "    let y = x;\n"
            "    :lib:;\n"
            "    def inner() { write y; }\n"
            "    inner();\n"
            "}\n"
        )
        assert shape(parse_ok(source)) == [
            ("FuncDef", "outer", ["x"], [
                ("VarDecl", "y", ("Identifier", "x")),
                ("Import", "lib", None),
                ("FuncDef", "inner", [], [("Write", ("Identifier", "y"))]),
                ("ExprStmt", ("Call", "inner", [])),
            ]),
        ]

    def test_statement_count_matches_top_level_declarations(self):
        source = (
            "let a = 1;\n"
            "def f(x) { let inner = x; write inner; }\n"
            ":io:;\n"
            "write f(a);\n"
            "a + 1;\n"
        )
        assert len(parse_ok(source).statements) == 5

    def test_comments_are_filtered(self):
        program = parse_ok("< header\nlet x = 1; < trailing\n< footer")
        assert shape(program) == [("VarDecl", "x", num(1))]

    def test_empty_program(self):
        program = parse_ok("")
        assert isinstance(program, Program)
        assert program.statements == []

    def test_spans(self):
        program = parse_ok("let a = 1;\n  write a;")
        decl, write = program.statements
        assert (decl.span.start_line, decl.span.start_col) == (1, 1)
        assert (decl.span.end_line, decl.span.end_col) == (1, 10)
        assert (write.span.start_line, write.span.start_col) == (2, 3)

    def test_call_span_covers_arguments(self):
        call = parse_ok("foo(1, 2);").statements[0].expr
        assert isinstance(call, Call)
        assert (call.span.start_col, call.span.end_col) == (1, 9)


class TestParserRecovery:
    def test_error_isolation(self):
        result = parse("let x = ;\nwrite x;")
        assert len(result.diagnostics) == 1
        assert shape(result.program) == [("Write", ("Identifier", "x"))]

    def test_diagnostic_reports_line(self):
        result = parse("let a = 1;\nlet = 2;")
        (diag,) = result.diagnostics
        assert diag.code == "E200"
        assert diag.message == "expected variable name"
        assert diag.span.start_line == 2
        assert shape(result.program) == [("VarDecl", "a", num(1))]

    def test_missing_semicolon_resyncs_on_keyword(self):
        result = parse("write 1\nlet y = 2;")
        assert [d.message for d in result.diagnostics] == ["expected ';' after write"]
        assert shape(result.program) == [("VarDecl", "y", num(2))]

    def test_multiple_errors(self):
        result = parse("let = ;\nwrite ;\nlet ok = 1;")
        assert len(result.diagnostics) == 2
        assert shape(result.program) == [("VarDecl", "ok", num(1))]

    def test_error_inside_function_body(self):
        result = parse("def f() {\n  let = 1;\n  write 2;\n}\nwrite 3;")
        assert len(result.diagnostics) == 1
        assert shape(result.program) == [
            ("FuncDef", "f", [], [("Write", num(2))]),
            ("Write", num(3)),
        ]

    def test_unterminated_function_body_drops_definition(self):
        result = parse("def f() {\n  write 1;\n")
        assert [d.message for d in result.diagnostics] == [
            "expected '}' after function body",
        ]
        assert result.program.statements == []

    def test_stray_closing_brace(self):
        result = parse("}\nwrite 1;")
        assert len(result.diagnostics) == 1
        assert shape(result.program) == [("Write", num(1))]

    def test_unbalanced_parentheses_terminate(self):
        result = parse("( ( (")
        assert len(result.diagnostics) == 1
        assert result.program.statements == []

    def test_two_expressions_without_operator(self):
        result = parse("1 2;\nwrite 3;")
        assert [d.message for d in result.diagnostics] == ["expected ';' after expression"]
        assert shape(result.program) == [("Write", num(3))]

    def test_missing_import_semicolon(self):
        result = parse(":lib:\nlet x;")
        assert [d.message for d in result.diagnostics] == ["expected ';' after import"]
        assert shape(result.program) == [("VarDecl", "x", None)]

    def test_bad_parameter_list(self):
        result = parse("def f(a, 1) { write a; }\nwrite 2;")
        assert result.diagnostics[0].message == "expected parameter name"
        assert shape(result.program)[-1] == ("Write", num(2))

    def test_missing_call_paren(self):
        result = parse("foo(1, 2;\nlet z;")
        assert [d.message for d in result.diagnostics] == ["expected ')' after arguments"]
        assert shape(result.program) == [("VarDecl", "z", None)]

    def test_only_errors(self):
        result = parse(";;;")
        assert len(result.diagnostics) == 3
        assert result.program.statements == []

    def test_excessive_parentheses_are_reported(self):
        source = "(" * 300 + "1" + ")" * 300 + ";\nwrite 2;"
        result = parse(source)
        assert [d.message for d in result.diagnostics] == ["expression nested too deeply"]
        assert shape(result.program) == [("Write", num(2))]

    def test_unclosed_parentheses_flood(self):
        result = parse("(" * 2000)
        assert result.diagnostics[0].message == "expression nested too deeply"
        assert result.program.statements == []

    def test_long_negation_chain(self):
        result = parse("-" * 2000 + "1;\nlet y;")
        assert [d.message for d in result.diagnostics] == ["expression nested too deeply"]
        assert shape(result.program) == [("VarDecl", "y", None)]

    def test_deeply_nested_calls(self):
        result = parse("f(" * 500 + "1" + ")" * 500 + ";")
        assert [d.message for d in result.diagnostics] == ["expression nested too deeply"]

    def test_deeply_nested_functions(self):
        result = parse("def f() {" * 300 + "}" * 300)
        messages = [d.message for d in result.diagnostics]
        assert "function definition nested too deeply" in messages

    def test_nesting_below_limit_parses(self):
        assert parse_expr("(" * 50 + "7" + ")" * 50 + ";") == num(7)
        assert len(parse_ok("def f() {" * 50 + "}" * 50).statements) == 1


class TestParserInput:
    def test_parser_accepts_tokens_without_eof(self):
        tokens = [t for t in tokenize("let x = 1;") if t.kind != TokenKind.EOF]
        program = Parser(tokens).parse()
        assert shape(program) == [("VarDecl", "x", num(1))]

    def test_parser_accepts_empty_token_list(self):
        parser = Parser([])
        assert parser.parse().statements == []
        assert parser.diagnostics == []

    def test_parse_never_raises_on_garbage(self):
        tokens = tokenize("= = ) } , * / let def write ( {")
        parser = Parser(tokens)
        program = parser.parse()
        assert isinstance(program, Program)
        assert parser.diagnostics

    def test_unknown_character_is_rejected_before_parsing(self):
        with pytest.raises(CompileError) as exc:
            tokenize("let x = 1 @ 2;")
        assert exc.value.diagnostics[0].code == "E101"

    def test_unterminated_string_propagates(self):
        with pytest.raises(LexError):
            parse('write "abc;')

    def test_lexer_tokens_with_comments_filtered_by_hand(self):
        tokens = [t for t in Lexer("let a; < c").lex() if t.kind != TokenKind.COMMENT]
        program = Parser(tokens).parse()
        assert isinstance(program.statements[0], VarDecl)

    def test_binary_nodes_own_distinct_children(self):
        expr = parse_ok("a + a;").statements[0].expr
        assert isinstance(expr, BinaryOp)
        assert expr.left is not expr.right
