"""Lex-filter-parse pipeline shared by the CLI and the language server."""

from __future__ import annotations

from dataclasses import dataclass, field

from vira.ast_nodes import Program
from vira.errors import CompileError, Diagnostic, error_at
from vira.lexer import Lexer
from vira.parser import Parser
from vira.tokens import Token, TokenKind


@dataclass
class ParseResult:
    program: Program
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def tokenize(source: str, filename: str = "<stdin>") -> list[Token]:
    """Lex ``source`` and drop comments, keeping the trailing EOF.

    Raises CompileError on the first unknown character and LexError on an
    unterminated string.
    """
    tokens: list[Token] = []
    for tok in Lexer(source, filename).lex():
        if tok.kind == TokenKind.COMMENT:
            continue
        if tok.kind == TokenKind.UNKNOWN:
            raise CompileError([
                error_at("E101", f"unknown character {tok.value!r}", tok.span),
            ])
        tokens.append(tok)
    return tokens


def parse_source(source: str, filename: str = "<stdin>") -> ParseResult:
    """Tokenize and parse ``source``. Syntax errors are returned, not raised."""
    parser = Parser(tokenize(source, filename), filename)
    program = parser.parse()
    return ParseResult(program, parser.diagnostics)
