"""Line-oriented macro preprocessor for Vira sources.

Handles ``#define``, ``#undef`` and ``#include``; every other directive is
passed through untouched. Expansion is pure text substitution of
identifier runs and is not rescanned.
"""

from __future__ import annotations

import re
from pathlib import Path

from vira.errors import CompileError, error_at
from vira.source import Span

MAX_INCLUDE_DEPTH = 16

_DIRECTIVE_RE = re.compile(r"#\s*([A-Za-z_]\w*)(.*)$", re.DOTALL)
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class Preprocessor:
    """Expands macros and inlines includes. Defines live for the instance's lifetime."""

    def __init__(
        self,
        include_paths: list[Path] | None = None,
        defines: dict[str, str] | None = None,
    ) -> None:
        self.include_paths = list(include_paths) if include_paths is not None else [Path(".")]
        self.defines: dict[str, str] = dict(defines or {})

    def process_file(self, path: Path) -> str:
        return self.process(path.read_text(encoding="utf-8"), str(path))

    def process(self, source: str, filename: str = "<stdin>") -> str:
        out: list[str] = []
        self._process(source, filename, 1, out)
        return "".join(out)

    # ── Internals ────────────────────────────────────────────────

    def _process(self, source: str, filename: str, depth: int, out: list[str]) -> None:
        pieces = source.split("\n")
        for idx, line in enumerate(pieces):
            last = idx == len(pieces) - 1
            if last and line == "":
                break
            newline = "" if last else "\n"
            stripped = line.lstrip()
            if stripped.startswith("#"):
                self._directive(stripped, line, newline, filename, idx + 1, depth, out)
            else:
                out.append(self.expand(line) + newline)

    def expand(self, line: str) -> str:
        """Replace every defined identifier in ``line`` with its value."""
        if not self.defines:
            return line
        return _IDENT_RE.sub(lambda m: self.defines.get(m.group(0), m.group(0)), line)

    def _directive(
        self, stripped: str, line: str, newline: str,
        filename: str, line_no: int, depth: int, out: list[str],
    ) -> None:
        match = _DIRECTIVE_RE.match(stripped)
        if match is None:
            out.append(line + newline)
            return
        name, rest = match.group(1), match.group(2).strip()
        span = Span(filename, line_no, 1, line_no, max(1, len(line)))

        if name == "define":
            parts = rest.split(None, 1)
            if not parts:
                raise CompileError([error_at("E004", "missing macro name in #define", span)])
            self.defines[parts[0]] = parts[1].strip() if len(parts) > 1 else ""
        elif name == "undef":
            self.defines.pop(rest, None)
        elif name == "include":
            self._include(rest, filename, span, depth, out)
        else:
            out.append(line + newline)

    def _include(
        self, target: str, filename: str, span: Span, depth: int, out: list[str],
    ) -> None:
        if len(target) < 2 or target[0] not in '"<':
            raise CompileError([error_at("E001", "invalid #include directive", span)])
        system = target[0] == "<"
        closing = target.find(">" if system else '"', 1)
        if closing == -1:
            raise CompileError([error_at("E001", "invalid #include directive", span)])
        name = target[1:closing]

        if depth >= MAX_INCLUDE_DEPTH:
            raise CompileError([error_at(
                "E003", f"include depth exceeded ({MAX_INCLUDE_DEPTH}) at '{name}'", span,
            )])

        path = self._resolve(name, filename, system)
        if path is None:
            raise CompileError([error_at("E002", f"cannot open include '{name}'", span)])

        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            raise CompileError([error_at("E002", f"cannot decode include '{name}'", span)])
        self._process(text, str(path), depth + 1, out)
        if text and not text.endswith("\n"):
            out.append("\n")

    def _resolve(self, name: str, filename: str, system: bool) -> Path | None:
        if system:
            candidates = [base / name for base in self.include_paths]
        else:
            candidates = [Path(name)]
            if not filename.startswith("<"):
                candidates.insert(0, Path(filename).parent / name)
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return None
