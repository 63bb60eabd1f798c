"""Parser for the Vira language.

Recursive descent for declarations and statements, precedence climbing
for expressions. Syntax errors are recorded as diagnostics; the parser
then discards the malformed statement and resynchronizes, so ``parse``
always returns a Program.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

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
from vira.errors import Diagnostic, error_at
from vira.source import Span
from vira.tokens import DECLARATION_STARTS, Token, TokenKind

# Parentheses, negations, call arguments and function bodies combined.
MAX_NESTING = 100

_ADDITIVE = {TokenKind.PLUS: "+", TokenKind.MINUS: "-"}
_MULTIPLICATIVE = {TokenKind.STAR: "*", TokenKind.SLASH: "/"}


class Parser:
    """Parses a list of tokens into a Vira AST."""

    def __init__(self, tokens: list[Token], filename: str = "<stdin>") -> None:
        self.tokens = list(tokens)
        self.pos = 0
        self.filename = filename
        self.diagnostics: list[Diagnostic] = []
        self._depth = 0
        if not self.tokens or self.tokens[-1].kind != TokenKind.EOF:
            self.tokens.append(self._eof_after(self.tokens[-1] if self.tokens else None))

    def _eof_after(self, last: Token | None) -> Token:
        if last is None:
            span = Span(self.filename, 1, 1, 1, 1)
        else:
            end = last.span
            span = Span(self.filename, end.end_line, end.end_col + 1,
                        end.end_line, end.end_col + 1)
        return Token(TokenKind.EOF, "", span, "")

    # ── Token access ─────────────────────────────────────────────

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def _at(self, kind: TokenKind) -> bool:
        return self._current().kind == kind

    def _at_end(self) -> bool:
        return self._at(TokenKind.EOF)

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _match(self, kind: TokenKind) -> bool:
        if self._at(kind):
            self._advance()
            return True
        return False

    def _expect(self, kind: TokenKind, message: str) -> Token:
        if self._at(kind):
            return self._advance()
        raise self._error(message)

    def _error(self, message: str) -> _ParseError:
        tok = self._current()
        self.diagnostics.append(error_at("E200", message, tok.span, _describe(tok)))
        return _ParseError(message)

    @contextmanager
    def _nested(self, what: str) -> Iterator[None]:
        """Count one level of recursive descent, failing past MAX_NESTING."""
        if self._depth >= MAX_NESTING:
            self._error(f"{what} nested too deeply")
            raise _NestingError(what)
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    def _span(self, start: Span, end: Span) -> Span:
        return Span(
            self.filename,
            start.start_line, start.start_col,
            end.end_line, end.end_col,
        )

    def _synchronize(self) -> None:
        """Skip to just past the next ';' or up to the next declaration keyword."""
        while not self._at_end():
            if self._at(TokenKind.SEMICOLON):
                self._advance()
                return
            if self._current().kind in DECLARATION_STARTS:
                return
            self._advance()

    # ── Top-level parsing ────────────────────────────────────────

    def parse(self) -> Program:
        """Parse the entire token stream into a Program. Never raises."""
        statements: list[Stmt] = []
        while not self._at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)

        first = self.tokens[0].span
        end = self._current().span
        return Program(statements, self._span(first, end))

    def _declaration(self) -> Stmt | None:
        """Parse one declaration, recovering on error. Returns None if it was dropped."""
        start_pos = self.pos
        try:
            if self._at(TokenKind.LET):
                return self._parse_var_decl()
            if self._at(TokenKind.DEF):
                return self._parse_func_def()
            if self._at(TokenKind.IMPORT_START):
                return self._parse_import()
            return self._parse_statement()
        except _ParseError as e:
            # Excess nesting abandons the outermost declaration, not the innermost.
            if isinstance(e, _NestingError) and self._depth:
                raise
            self._synchronize()
            if self.pos == start_pos and not self._at_end():
                self._advance()
            return None

    # ── Declarations ─────────────────────────────────────────────

    def _parse_var_decl(self) -> VarDecl:
        start = self._advance().span  # 'let'
        name = self._expect(TokenKind.IDENTIFIER, "expected variable name")
        initializer: Expr | None = None
        if self._match(TokenKind.ASSIGN):
            initializer = self._parse_expression()
        end = self._expect(TokenKind.SEMICOLON, "expected ';' after variable declaration")
        return VarDecl(name.value, initializer, self._span(start, end.span))

    def _parse_func_def(self) -> FuncDef:
        start = self._advance().span  # 'def'
        name = self._expect(TokenKind.IDENTIFIER, "expected function name")
        self._expect(TokenKind.LPAREN, "expected '(' after function name")
        params: list[str] = []
        if not self._match(TokenKind.RPAREN):
            params.append(self._expect(TokenKind.IDENTIFIER, "expected parameter name").value)
            while self._match(TokenKind.COMMA):
                params.append(
                    self._expect(TokenKind.IDENTIFIER, "expected parameter name").value
                )
            self._expect(TokenKind.RPAREN, "expected ')' after parameters")
        self._expect(TokenKind.LBRACE, "expected '{' before function body")

        body: list[Stmt] = []
        with self._nested("function definition"):
            while not self._at(TokenKind.RBRACE):
                if self._at_end():
                    raise self._error("expected '}' after function body")
                stmt = self._declaration()
                if stmt is not None:
                    body.append(stmt)
        end = self._advance().span  # '}'
        return FuncDef(name.value, params, body, self._span(start, end))

    def _parse_import(self) -> Import:
        marker = self._advance()
        # TODO: parse an alias once the `:lib: => Alias` form is specified.
        end = self._expect(TokenKind.SEMICOLON, "expected ';' after import")
        return Import(marker.value, None, self._span(marker.span, end.span))

    # ── Statements ───────────────────────────────────────────────

    def _parse_statement(self) -> Stmt:
        if self._at(TokenKind.WRITE):
            start = self._advance().span
            expr = self._parse_expression()
            end = self._expect(TokenKind.SEMICOLON, "expected ';' after write")
            return Write(expr, self._span(start, end.span))

        expr = self._parse_expression()
        end = self._expect(TokenKind.SEMICOLON, "expected ';' after expression")
        return ExprStmt(expr, self._span(expr.span, end.span))

    # ── Expressions ──────────────────────────────────────────────

    def _parse_expression(self) -> Expr:
        return self._parse_additive()

    def _parse_additive(self) -> Expr:
        left = self._parse_multiplicative()
        while self._current().kind in _ADDITIVE:
            op = _ADDITIVE[self._advance().kind]
            right = self._parse_multiplicative()
            left = BinaryOp(op, left, right, self._span(left.span, right.span))
        return left

    def _parse_multiplicative(self) -> Expr:
        left = self._parse_unary()
        while self._current().kind in _MULTIPLICATIVE:
            op = _MULTIPLICATIVE[self._advance().kind]
            right = self._parse_unary()
            left = BinaryOp(op, left, right, self._span(left.span, right.span))
        return left

    def _parse_unary(self) -> Expr:
        if self._at(TokenKind.MINUS):
            minus = self._advance()
            with self._nested("expression"):
                operand = self._parse_unary()
            # Negation is sugar for subtraction from zero.
            zero = NumberLit(0, minus.span)
            return BinaryOp("-", zero, operand, self._span(minus.span, operand.span))
        return self._parse_primary()

    def _parse_primary(self) -> Expr:
        tok = self._current()

        if tok.kind == TokenKind.NUMBER:
            self._advance()
            return NumberLit(int(tok.value), tok.span)

        if tok.kind == TokenKind.STRING:
            self._advance()
            return StringLit(tok.value, tok.span)

        if tok.kind == TokenKind.IDENTIFIER:
            self._advance()
            if self._at(TokenKind.LPAREN):
                return self._parse_call(tok)
            return Identifier(tok.value, tok.span)

        if tok.kind == TokenKind.LPAREN:
            self._advance()
            with self._nested("expression"):
                expr = self._parse_expression()
            self._expect(TokenKind.RPAREN, "expected ')' after expression")
            return expr

        raise self._error(f"unexpected token {_describe(tok)}")

    def _parse_call(self, callee: Token) -> Call:
        self._advance()  # '('
        args: list[Expr] = []
        if not self._match(TokenKind.RPAREN):
            with self._nested("expression"):
                args.append(self._parse_expression())
                while self._match(TokenKind.COMMA):
                    args.append(self._parse_expression())
            self._expect(TokenKind.RPAREN, "expected ')' after arguments")
        end = self._previous().span
        return Call(callee.value, args, self._span(callee.span, end))


def _describe(tok: Token) -> str:
    if tok.kind == TokenKind.EOF:
        return "end of input"
    return f"{tok.kind.name} ({tok.lexeme!r})"


class _ParseError(Exception):
    """Internal exception for parser error recovery."""


class _NestingError(_ParseError):
    pass
