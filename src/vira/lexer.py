"""Lexer for the Vira language.

Produces tokens one at a time from source text. Comments and unknown
characters are emitted as tokens so the driver can decide what to do
with them; the parser never sees either.
"""

from __future__ import annotations

from vira.errors import LexError, error_at
from vira.source import Span
from vira.tokens import KEYWORDS, SINGLE_CHAR_TOKENS, Token, TokenKind

_WHITESPACE = frozenset(" \t\n\r\v\f")


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_letter(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _is_ident_char(ch: str) -> bool:
    return _is_letter(ch) or _is_digit(ch) or ch == "_"


class Lexer:
    """Tokenizes Vira source code."""

    def __init__(self, source: str, filename: str = "<stdin>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1

    def lex(self) -> list[Token]:
        """Tokenize the entire source, comments and unknowns included, ending with EOF."""
        tokens: list[Token] = []
        while True:
            tok = self.next_token()
            tokens.append(tok)
            if tok.kind == TokenKind.EOF:
                return tokens

    def next_token(self) -> Token:
        """Return the next token. After the end of input this is EOF, every time."""
        self._skip_whitespace()
        if self.pos >= len(self.source):
            return self._make(TokenKind.EOF, "", self.pos, self.line, self.col)

        ch = self.source[self.pos]
        if _is_digit(ch):
            return self._lex_number()
        if _is_letter(ch) or ch == "_":
            return self._lex_identifier()
        if ch == '"':
            return self._lex_string()
        if ch == "<":
            return self._lex_comment()
        if ch == ":":
            return self._lex_colon()

        start, line, col = self.pos, self.line, self.col
        self._advance()
        kind = SINGLE_CHAR_TOKENS.get(ch, TokenKind.UNKNOWN)
        return self._make(kind, ch, start, line, col)

    # ── Cursor ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return "\0"

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _mark(self) -> tuple[int, int, int]:
        return self.pos, self.line, self.col

    def _reset(self, mark: tuple[int, int, int]) -> None:
        self.pos, self.line, self.col = mark

    def _make(self, kind: TokenKind, value: str, start: int, line: int, col: int) -> Token:
        end_line = self.line
        end_col = self.col - 1 if self.col > 1 else 1
        if self.pos == start:
            end_line, end_col = line, col
        span = Span(self.filename, line, col, end_line, end_col)
        return Token(kind, value, span, self.source[start:self.pos])

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] in _WHITESPACE:
            self._advance()

    def _read_ident_run(self) -> str:
        text = []
        while self.pos < len(self.source) and _is_ident_char(self.source[self.pos]):
            text.append(self._advance())
        return "".join(text)

    # ── Token rules ──────────────────────────────────────────────

    def _lex_number(self) -> Token:
        start, line, col = self._mark()
        text = []
        while self.pos < len(self.source) and _is_digit(self.source[self.pos]):
            text.append(self._advance())
        return self._make(TokenKind.NUMBER, "".join(text), start, line, col)

    def _lex_identifier(self) -> Token:
        start, line, col = self._mark()
        word = self._read_ident_run()
        kind = KEYWORDS.get(word, TokenKind.IDENTIFIER)
        return self._make(kind, word, start, line, col)

    def _lex_string(self) -> Token:
        start, line, col = self._mark()
        self._advance()  # skip opening "
        text = []
        while self.pos < len(self.source) and self.source[self.pos] != '"':
            if self.source[self.pos] == "\\":
                self._advance()
                # The escaped character is kept verbatim.
                if self.pos < len(self.source):
                    text.append(self._advance())
            else:
                text.append(self._advance())

        if self.pos >= len(self.source):
            span = Span(self.filename, line, col, line, col)
            raise LexError(error_at(
                "E100", f"unterminated string at line {line}", span,
                "string starts here",
            ))

        self._advance()  # skip closing "
        return self._make(TokenKind.STRING, "".join(text), start, line, col)

    def _lex_comment(self) -> Token:
        start, line, col = self._mark()
        self._advance()  # skip <
        text = []
        while self.pos < len(self.source) and self.source[self.pos] != "\n":
            text.append(self._advance())
        return self._make(TokenKind.COMMENT, "".join(text), start, line, col)

    def _lex_colon(self) -> Token:
        """Lex ``:`` or an import marker ``:name:``.

        The name is read speculatively; without a closing colon the cursor
        goes back to just after the first colon.
        """
        start, line, col = self._mark()
        self._advance()  # skip :
        if _is_letter(self._peek()):
            after_colon = self._mark()
            name = self._read_ident_run()
            if self._peek() == ":":
                self._advance()
                return self._make(TokenKind.IMPORT_START, name, start, line, col)
            self._reset(after_colon)
        return self._make(TokenKind.COLON, ":", start, line, col)
