"""Diagnostics and their terminal rendering.

Every stage reports problems as ``Diagnostic`` values. Fatal stages wrap
them in ``CompileError``; the parser and checker collect them in lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vira.source import Span


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


_COLORS = {
    Severity.ERROR: "\033[1;31m",
    Severity.WARNING: "\033[1;33m",
    Severity.NOTE: "\033[1;36m",
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """A source range with an optional inline message."""

    span: Span
    message: str
    style: str = "primary"


@dataclass(frozen=True)
class Suggestion:
    message: str
    replacement: str


@dataclass
class Diagnostic:
    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def span(self) -> Span | None:
        """Span of the first label, if any."""
        return self.labels[0].span if self.labels else None


def error_at(code: str, message: str, span: Span, label: str = "") -> Diagnostic:
    """Build a single-label error diagnostic."""
    return Diagnostic(
        severity=Severity.ERROR,
        code=code,
        message=message,
        labels=[DiagnosticLabel(span=span, message=label)],
    )


def _read_lines(filename: str) -> list[str] | None:
    path = Path(filename)
    try:
        return path.read_text(encoding="utf-8").split("\n") if path.is_file() else None
    except (OSError, UnicodeDecodeError):
        return None


class DiagnosticRenderer:
    """Formats diagnostics for a terminal.

    ``render`` produces the multi-line report with the offending source
    line and a caret run; ``render_short`` produces a single
    ``file:line:col: error[CODE]: message`` line. Source text is read from
    disk on first use unless registered with ``add_source``.
    """

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._sources: dict[str, list[str] | None] = {}

    def add_source(self, filename: str, text: str) -> None:
        self._sources[filename] = text.split("\n")

    def _paint(self, text: str, style: str) -> str:
        return f"{style}{text}{_RESET}" if self.color else text

    def _line(self, filename: str, number: int) -> str | None:
        if filename not in self._sources:
            self._sources[filename] = _read_lines(filename)
        lines = self._sources[filename]
        if lines is None or not 1 <= number <= len(lines):
            return None
        return lines[number - 1]

    def _title(self, diag: Diagnostic) -> str:
        return self._paint(f"{diag.severity.value}[{diag.code}]", _COLORS[diag.severity])

    def render_short(self, diag: Diagnostic) -> str:
        if diag.span is None:
            return f"{self._title(diag)}: {diag.message}"
        return f"{diag.span}: {self._title(diag)}: {diag.message}"

    def render(self, diag: Diagnostic) -> str:
        out = [self._title(diag) + self._paint(f": {diag.message}", _BOLD)]
        for label in diag.labels:
            out.extend(self._label_lines(label, _COLORS[diag.severity]))
        out.extend(f"  {self._paint('=', _BLUE)} note: {note}" for note in diag.notes)
        out.extend(
            f"  {self._paint('try:', _BLUE)} {fix.replacement}" for fix in diag.suggestions
        )
        return "\n".join(out)

    def _label_lines(self, label: DiagnosticLabel, style: str) -> list[str]:
        span = label.span
        bar = self._paint("   |", _BLUE)
        out = [f"  {self._paint('-->', _BLUE)} {span}", f"  {bar}"]

        text = self._line(span.file, span.start_line)
        if text is not None:
            out.append(f"  {self._paint(f'{span.start_line:>4} |', _BLUE)} {text}")

        # Carets only under single-line spans.
        if span.start_line == span.end_line:
            width = max(1, span.end_col - span.start_col + 1)
            out.append(f"  {bar} {' ' * (span.start_col - 1)}{self._paint('^' * width, style)}")

        if label.message:
            out.append(f"  {bar}   {self._paint(label.message, style)}")
        return out


class CompileError(Exception):
    """One or more fatal diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        summary = "; ".join(d.message for d in diagnostics)
        super().__init__(f"{len(diagnostics)} error(s): {summary}")


class LexError(CompileError):
    """Unrecoverable lexer failure. Aborts the whole run."""

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__([diagnostic])
        span = diagnostic.span
        self.line = span.start_line if span is not None else 0
