"""Token kinds and token representation for the Vira lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vira.source import Span


class TokenKind(Enum):
    EOF = auto()

    # Literals and names
    IDENTIFIER = auto()
    NUMBER = auto()
    STRING = auto()

    # Operators
    ASSIGN = auto()
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()

    # Punctuation
    COLON = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    SEMICOLON = auto()
    COMMA = auto()

    # Keywords
    LET = auto()
    DEF = auto()
    WRITE = auto()

    # :lib: marker
    IMPORT_START = auto()

    # Filtered out before parsing
    COMMENT = auto()
    UNKNOWN = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: Span
    lexeme: str

    @property
    def line(self) -> int:
        return self.span.start_line

    @property
    def column(self) -> int:
        return self.span.start_col


KEYWORDS: dict[str, TokenKind] = {
    "let": TokenKind.LET,
    "def": TokenKind.DEF,
    "write": TokenKind.WRITE,
}

SINGLE_CHAR_TOKENS: dict[str, TokenKind] = {
    "=": TokenKind.ASSIGN,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    ";": TokenKind.SEMICOLON,
    ",": TokenKind.COMMA,
}

# Tokens a parser may resynchronize on without consuming them.
DECLARATION_STARTS: frozenset[TokenKind] = frozenset({
    TokenKind.LET,
    TokenKind.DEF,
    TokenKind.WRITE,
})
