"""Name-resolution checker for Vira programs.

Functions are hoisted: every ``def`` in a block is registered before the
statements of that block are checked. Variables are visible from the
statement after their ``let``.
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
    walk,
)
from vira.errors import Diagnostic, DiagnosticLabel, Severity
from vira.source import Span
from vira.symbols import Symbol, SymbolKind, SymbolTable


class Checker:
    """Semantic checks over a Program. The Program is never modified."""

    def __init__(self) -> None:
        self.symbols = SymbolTable()
        self.diagnostics: list[Diagnostic] = []
        self._has_imports = False

    # ── Public API ──────────────────────────────────────────────

    def check(self, program: Program) -> SymbolTable:
        """Check a program. Raises nothing; inspect self.diagnostics."""
        self._has_imports = any(isinstance(node, Import) for node in walk(program))
        self._check_block(program.statements)
        return self.symbols

    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    # ── Error helpers ───────────────────────────────────────────

    def _error(self, code: str, message: str, span: Span) -> None:
        self.diagnostics.append(Diagnostic(
            severity=Severity.ERROR,
            code=code,
            message=message,
            labels=[DiagnosticLabel(span=span, message="")],
        ))

    def _warning(self, code: str, message: str, span: Span) -> None:
        self.diagnostics.append(Diagnostic(
            severity=Severity.WARNING,
            code=code,
            message=message,
            labels=[DiagnosticLabel(span=span, message="")],
        ))

    # ── Statements ──────────────────────────────────────────────

    def _check_block(self, stmts: list[Stmt]) -> None:
        for stmt in stmts:
            if isinstance(stmt, FuncDef):
                self._register_function(stmt)
        for stmt in stmts:
            self._check_stmt(stmt)

    def _register_function(self, fd: FuncDef) -> None:
        sym = Symbol(fd.name, SymbolKind.FUNCTION, fd.span, arity=len(fd.params))
        existing = self.symbols.define(sym)
        if existing is not None:
            self._warning("W301", f"'{fd.name}' is already defined in this scope", fd.span)

    def _check_stmt(self, stmt: Stmt) -> None:
        match stmt:
            case VarDecl(name=name, initializer=init, span=span):
                if init is not None:
                    self._check_expr(init)
                existing = self.symbols.define(Symbol(name, SymbolKind.VARIABLE, span))
                if existing is not None:
                    self._warning("W301", f"'{name}' is already defined in this scope", span)
            case FuncDef():
                self._check_function(stmt)
            case Write(expr=expr) | ExprStmt(expr=expr):
                self._check_expr(expr)
            case Import(library=library, alias=alias, span=span):
                self.symbols.define(Symbol(alias or library, SymbolKind.LIBRARY, span))
            case _:
                assert_never(stmt)

    def _check_function(self, fd: FuncDef) -> None:
        with self.symbols.scope(fd.name):
            for param in fd.params:
                existing = self.symbols.define(Symbol(param, SymbolKind.PARAMETER, fd.span))
                if existing is not None:
                    self._warning(
                        "W300", f"duplicate parameter '{param}' in '{fd.name}'", fd.span,
                    )
            self._check_block(fd.body)

    # ── Expressions ─────────────────────────────────────────────

    def _check_expr(self, expr: Expr) -> None:
        # Iterative so long operator chains cannot exhaust the stack.
        for node in walk(expr):
            match node:
                case Identifier(name=name, span=span):
                    sym = self.symbols.lookup(name)
                    if sym is None:
                        self._error("E300", f"undefined name '{name}'", span)
                    else:
                        sym.used = True
                case Call(callee=callee, args=args, span=span):
                    self._check_call(callee, len(args), span)
                case NumberLit() | StringLit() | BinaryOp():
                    pass
                case _:
                    raise TypeError(f"not an expression: {type(node).__name__}")

    def _check_call(self, callee: str, argc: int, span: Span) -> None:
        sym = self.symbols.lookup(callee)
        if sym is None:
            # Imported libraries may provide any function.
            if not self._has_imports:
                self._error("E301", f"call to undefined function '{callee}'", span)
            return

        sym.used = True
        if sym.kind == SymbolKind.FUNCTION and sym.arity != argc:
            self._error(
                "E302",
                f"'{callee}' expects {sym.arity} argument(s), got {argc}",
                span,
            )
