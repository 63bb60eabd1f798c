"""Source text and the spans that point into it."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Span:
    """A range within a source file. Lines and columns are 1-based, end inclusive."""

    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}:{self.start_col}"


class SourceFile:
    """A named source text. Lines are split on ``\\n`` only, as the lexer counts them."""

    def __init__(self, name: str, content: str) -> None:
        self.name = name
        self.content = content
        self.lines = content.split("\n")

    @classmethod
    def load(cls, path: Path) -> SourceFile:
        return cls(str(path), path.read_text(encoding="utf-8"))

    def line_at(self, n: int) -> str:
        return self.lines[n - 1] if 0 < n <= len(self.lines) else ""

    def offset_of(self, line: int, col: int) -> int:
        """Convert a 1-based line/column pair to a character offset.

        Columns past the end of a line clamp to the line end; lines past
        the last one clamp to the end of the content.
        """
        if line > len(self.lines):
            return len(self.content)
        offset = sum(len(text) + 1 for text in self.lines[:line - 1])
        return offset + min(col - 1, len(self.lines[line - 1]))

    def span_text(self, span: Span) -> str:
        start = self.offset_of(span.start_line, span.start_col)
        end = self.offset_of(span.end_line, span.end_col + 1)
        return self.content[start:end]
