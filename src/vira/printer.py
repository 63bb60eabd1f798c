"""Indented structural dump of a Vira AST."""

from __future__ import annotations

from typing import TextIO, assert_never

from vira.ast_nodes import (
    BinaryOp,
    Call,
    Expr,
    ExprStmt,
    FuncDef,
    Identifier,
    Import,
    NumberLit,
    Program,
    Stmt,
    StringLit,
    VarDecl,
    Write,
)

INDENT_STEP = 2


class TreePrinter:
    """Pre-order dump, one node per line, two columns per depth level."""

    def __init__(self) -> None:
        self._lines: list[str] = []

    def format(self, program: Program) -> str:
        self._lines = ["Program:"]
        for stmt in program.statements:
            self._stmt(stmt, 1)
        return "\n".join(self._lines) + "\n"

    def _emit(self, depth: int, text: str) -> None:
        self._lines.append(" " * (INDENT_STEP * depth) + text)

    def _stmt(self, stmt: Stmt, depth: int) -> None:
        match stmt:
            case VarDecl(name=name, initializer=init):
                self._emit(depth, f"VarDecl: {name}")
                if init is not None:
                    self._expr(init, depth + 1)
            case FuncDef(name=name, params=params, body=body):
                self._emit(depth, f"FuncDef: {name}")
                self._emit(depth + 1, "Params:")
                for param in params:
                    self._emit(depth + 2, param)
                self._emit(depth + 1, "Body:")
                for inner in body:
                    self._stmt(inner, depth + 2)
            case Write(expr=expr):
                self._emit(depth, "Write:")
                self._expr(expr, depth + 1)
            case Import(library=library, alias=alias):
                suffix = f" as {alias}" if alias else ""
                self._emit(depth, f"Import: {library}{suffix}")
            case ExprStmt(expr=expr):
                self._emit(depth, "ExprStmt:")
                self._expr(expr, depth + 1)
            case _:
                assert_never(stmt)

    def _expr(self, expr: Expr, depth: int) -> None:
        stack: list[tuple[Expr, int]] = [(expr, depth)]
        while stack:
            node, level = stack.pop()
            match node:
                case NumberLit(value=value):
                    self._emit(level, f"Number: {value}")
                case StringLit(value=value):
                    self._emit(level, f'String: "{value}"')
                case Identifier(name=name):
                    self._emit(level, f"Identifier: {name}")
                case BinaryOp(op=op, left=left, right=right):
                    self._emit(level, f"Binary: {op}")
                    stack.append((right, level + 1))
                    stack.append((left, level + 1))
                case Call(callee=callee, args=args):
                    self._emit(level, f"Call: {callee}")
                    stack.extend((arg, level + 1) for arg in reversed(args))
                case _:
                    assert_never(node)


def format_tree(program: Program) -> str:
    return TreePrinter().format(program)


def write_tree(program: Program, stream: TextIO) -> None:
    stream.write(format_tree(program))
