"""Shared test helpers for the Vira test suite."""

from __future__ import annotations

from vira.ast_nodes import (
    BinaryOp,
    Call,
    ExprStmt,
    FuncDef,
    Identifier,
    Import,
    NumberLit,
    Program,
    StringLit,
    VarDecl,
    Write,
)
from vira.checker import Checker
from vira.frontend import ParseResult, parse_source


def parse(source: str) -> ParseResult:
    """Lex and parse source, returning program and syntax diagnostics."""
    return parse_source(source, "<test>")


def parse_ok(source: str) -> Program:
    """Parse source, asserting there were no syntax errors."""
    result = parse(source)
    assert result.ok, [d.message for d in result.diagnostics]
    return result.program


def check(source: str) -> Checker:
    """Parse and check source, returning the checker for inspection."""
    program = parse_ok(source)
    checker = Checker()
    checker.check(program)
    return checker


def codes(checker: Checker) -> list[str]:
    return [d.code for d in checker.diagnostics]


def shape(node: object) -> object:
    """Span-free nested tuples mirroring the AST, for structural comparison."""
    match node:
        case Program(statements=stmts):
            return [shape(s) for s in stmts]
        case NumberLit(value=value):
            return ("Number", value)
        case StringLit(value=value):
            return ("String", value)
        case Identifier(name=name):
            return ("Identifier", name)
        case BinaryOp(op=op, left=left, right=right):
            return ("Binary", op, shape(left), shape(right))
        case Call(callee=callee, args=args):
            return ("Call", callee, [shape(a) for a in args])
        case VarDecl(name=name, initializer=init):
            return ("VarDecl", name, None if init is None else shape(init))
        case FuncDef(name=name, params=params, body=body):
            return ("FuncDef", name, list(params), [shape(s) for s in body])
        case Write(expr=expr):
            return ("Write", shape(expr))
        case Import(library=library, alias=alias):
            return ("Import", library, alias)
        case ExprStmt(expr=expr):
            return ("ExprStmt", shape(expr))
    raise TypeError(f"unexpected node {node!r}")
