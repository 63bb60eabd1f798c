"""AST node definitions for the Vira language."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union

from vira.source import Span

# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class NumberLit:
    value: int
    span: Span


@dataclass(frozen=True)
class StringLit:
    value: str  # escapes already resolved
    span: Span


@dataclass(frozen=True)
class Identifier:
    name: str
    span: Span


@dataclass(frozen=True)
class BinaryOp:
    op: str  # one of + - * /
    left: Expr
    right: Expr
    span: Span


@dataclass(frozen=True)
class Call:
    callee: str
    args: list[Expr]
    span: Span


Expr = Union[NumberLit, StringLit, Identifier, BinaryOp, Call]


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class VarDecl:
    name: str
    initializer: Expr | None
    span: Span


@dataclass(frozen=True)
class FuncDef:
    name: str
    params: list[str]
    body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class Write:
    expr: Expr
    span: Span


@dataclass(frozen=True)
class Import:
    library: str
    alias: str | None
    span: Span


@dataclass(frozen=True)
class ExprStmt:
    expr: Expr
    span: Span


Stmt = Union[VarDecl, FuncDef, Write, Import, ExprStmt]


@dataclass(frozen=True)
class Program:
    statements: list[Stmt]
    span: Span


Node = Union[Program, Stmt, Expr]


def children(node: Node) -> list[Node]:
    """Direct children of a node, in source order."""
    match node:
        case Program(statements=stmts):
            return list(stmts)
        case VarDecl(initializer=init):
            return [init] if init is not None else []
        case FuncDef(body=body):
            return list(body)
        case Write(expr=expr) | ExprStmt(expr=expr):
            return [expr]
        case Import():
            return []
        case BinaryOp(left=left, right=right):
            return [left, right]
        case Call(args=args):
            return list(args)
        case NumberLit() | StringLit() | Identifier():
            return []
    raise TypeError(f"not an AST node: {type(node).__name__}")


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and every descendant in pre-order."""
    stack: list[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))
