"""AST-walking pretty-printer for Vira source code.

Produces canonical formatting for .vira files. Comments are discarded by
the lexer and are therefore not preserved.
"""

from __future__ import annotations

from typing import assert_never

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

# Operator precedence table (higher binds tighter)
_PRECEDENCE: dict[str, int] = {
    "+": 1, "-": 1,
    "*": 2, "/": 2,
}

_INDENT = "    "


class ViraFormatter:
    """Format a parsed Vira Program back to canonical source text."""

    def format(self, program: Program) -> str:
        """Format a program to canonical source text."""
        result = "\n".join(self._format_block(program.statements, 0))
        if not result.endswith("\n"):
            result += "\n"
        return result

    def _format_block(self, stmts: list[Stmt], depth: int) -> list[str]:
        lines: list[str] = []
        prev: Stmt | None = None
        for stmt in stmts:
            # Function definitions get a blank line on either side.
            if prev is not None and (isinstance(stmt, FuncDef) or isinstance(prev, FuncDef)):
                lines.append("")
            lines.extend(self._format_stmt(stmt, depth))
            prev = stmt
        return lines

    def _format_stmt(self, stmt: Stmt, depth: int) -> list[str]:
        prefix = _INDENT * depth
        match stmt:
            case VarDecl(name=name, initializer=None):
                return [f"{prefix}let {name};"]
            case VarDecl(name=name, initializer=init):
                return [f"{prefix}let {name} = {self.format_expr(init)};"]
            case FuncDef(name=name, params=params, body=[]):
                return [f"{prefix}def {name}({', '.join(params)}) {{}}"]
            case FuncDef(name=name, params=params, body=body):
                lines = [f"{prefix}def {name}({', '.join(params)}) {{"]
                lines.extend(self._format_block(body, depth + 1))
                lines.append(f"{prefix}}}")
                return lines
            case Write(expr=expr):
                return [f"{prefix}write {self.format_expr(expr)};"]
            case Import(library=library):
                return [f"{prefix}:{library}:;"]
            case ExprStmt(expr=expr):
                return [f"{prefix}{self.format_expr(expr)};"]
            case _:
                assert_never(stmt)

    def format_expr(self, expr: Expr, min_prec: int = 0) -> str:
        """Render an expression, parenthesizing only where precedence needs it.

        Uses an explicit work stack so long operator chains cannot exhaust
        the interpreter stack. Each entry is visited twice: first to
        schedule its operands, then to combine their rendered text.
        """
        work: list[tuple[Expr, int, bool]] = [(expr, min_prec, False)]
        done: list[str] = []
        while work:
            node, floor, ready = work.pop()
            match node:
                case NumberLit(value=value):
                    done.append(str(value))
                case StringLit(value=value):
                    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
                    done.append(f'"{escaped}"')
                case Identifier(name=name):
                    done.append(name)
                case Call(callee=callee, args=args) if ready:
                    inner = done[len(done) - len(args):]
                    del done[len(done) - len(args):]
                    done.append(f"{callee}({', '.join(inner)})")
                case Call(args=args):
                    work.append((node, floor, True))
                    work.extend((arg, 0, False) for arg in reversed(args))
                case BinaryOp(op=op) if ready:
                    right = done.pop()
                    left = done.pop()
                    text = f"{left} {op} {right}"
                    done.append(f"({text})" if _PRECEDENCE[op] < floor else text)
                case BinaryOp(op=op, left=left, right=right):
                    prec = _PRECEDENCE[op]
                    work.append((node, floor, True))
                    # Left-associative: the right operand needs parens at equal precedence.
                    work.append((right, prec + 1, False))
                    work.append((left, prec, False))
                case _:
                    assert_never(node)
        return done[0]
