"""Vira language server over stdio, built on pygls.

Each open document is re-analyzed on every change (full sync). The
cached state serves hover, outline and formatting requests.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from vira import __version__
from vira.ast_nodes import FuncDef, Import, Program, Stmt, VarDecl
from vira.checker import Checker
from vira.errors import CompileError, Diagnostic, Severity
from vira.formatter import ViraFormatter
from vira.frontend import parse_source
from vira.source import Span
from vira.symbols import SymbolKind, SymbolTable

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
}

_HOVER_KIND = {
    SymbolKind.FUNCTION: "function",
    SymbolKind.VARIABLE: "variable",
    SymbolKind.PARAMETER: "parameter",
    SymbolKind.LIBRARY: "library",
}

_WORD_RE = re.compile(r"[A-Za-z0-9_]+")


def span_to_range(span: Span) -> lsp.Range:
    """1-based inclusive Span to 0-based LSP Range (end exclusive)."""
    return lsp.Range(
        start=lsp.Position(line=span.start_line - 1, character=span.start_col - 1),
        end=lsp.Position(line=span.end_line - 1, character=span.end_col),
    )


@dataclass
class DocumentState:
    source: str = ""
    program: Program | None = None
    symbols: SymbolTable | None = None
    syntax_ok: bool = False
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


server = LanguageServer(
    "vira-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _compile_diag(d: Diagnostic) -> lsp.Diagnostic:
    if d.span is not None:
        rng = span_to_range(d.span)
    else:
        origin = lsp.Position(line=0, character=0)
        rng = lsp.Range(start=origin, end=origin)
    return lsp.Diagnostic(
        range=rng,
        severity=_SEVERITY_MAP[d.severity],
        source="vira",
        code=d.code,
        message=f"[{d.code}] {d.message}",
    )


def _analyze(uri: str, source: str) -> DocumentState:
    """Parse and check ``source``, replacing the cached state for ``uri``."""
    ds = _state[uri] = DocumentState(source=source)
    try:
        result = parse_source(source, uri)
    except CompileError as e:
        ds.diagnostics = [_compile_diag(d) for d in e.diagnostics]
        return ds

    checker = Checker()
    ds.program = result.program
    ds.syntax_ok = result.ok
    ds.symbols = checker.check(result.program)
    ds.diagnostics = [
        _compile_diag(d) for d in [*result.diagnostics, *checker.diagnostics]
    ]
    return ds


def _get_word_at(source: str, line: int, character: int) -> str:
    """Identifier under (or just before) a 0-based position, or ''."""
    lines = source.split("\n")
    if not 0 <= line < len(lines):
        return ""
    for match in _WORD_RE.finditer(lines[line]):
        if match.start() <= character <= match.end():
            return match.group(0)
    return ""


def _stmt_to_symbol(stmt: Stmt) -> lsp.DocumentSymbol | None:
    """Outline entry for a declaration; other statements have none."""
    rng = span_to_range(stmt.span)
    match stmt:
        case FuncDef(name=name, params=params, body=body):
            children = [s for s in map(_stmt_to_symbol, body) if s is not None]
            return lsp.DocumentSymbol(
                name=name, detail=f"({', '.join(params)})",
                kind=lsp.SymbolKind.Function,
                range=rng, selection_range=rng, children=children,
            )
        case VarDecl(name=name):
            return lsp.DocumentSymbol(
                name=name, kind=lsp.SymbolKind.Variable,
                range=rng, selection_range=rng,
            )
        case Import(library=library, alias=alias):
            return lsp.DocumentSymbol(
                name=alias or library, kind=lsp.SymbolKind.Module,
                range=rng, selection_range=rng,
            )
    return None


def _format_edits(ds: DocumentState) -> list[lsp.TextEdit] | None:
    """Whole-document replacement, [] when already canonical, None on a partial parse."""
    if ds.program is None or not ds.syntax_ok:
        return None
    formatted = ViraFormatter().format(ds.program)
    if formatted == ds.source:
        return []
    end = lsp.Position(line=ds.source.count("\n") + 1, character=0)
    return [lsp.TextEdit(
        range=lsp.Range(start=lsp.Position(line=0, character=0), end=end),
        new_text=formatted,
    )]


def _publish(uri: str, source: str) -> None:
    ds = _analyze(uri, source)
    server.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=uri, diagnostics=ds.diagnostics),
    )


# ── Handlers ─────────────────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    _publish(params.text_document.uri, params.text_document.text)


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    changes = params.content_changes
    _publish(params.text_document.uri, changes[-1].text if changes else "")


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.symbols is None:
        return None
    word = _get_word_at(ds.source, params.position.line, params.position.character)
    sym = ds.symbols.find(word) if word else None
    if sym is None:
        return None
    text = f"**{_HOVER_KIND[sym.kind]}** `{sym.name}`"
    if sym.kind == SymbolKind.FUNCTION:
        text += f" ({sym.arity} parameter(s))"
    return lsp.Hover(contents=lsp.MarkupContent(kind=lsp.MarkupKind.Markdown, value=text))


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.program is None:
        return []
    return [s for s in map(_stmt_to_symbol, ds.program.statements) if s is not None]


@server.feature(lsp.TEXT_DOCUMENT_FORMATTING)
def formatting(params: lsp.DocumentFormattingParams) -> list[lsp.TextEdit] | None:
    ds = _state.get(params.text_document.uri)
    return _format_edits(ds) if ds is not None else None


def main() -> None:
    """Start the Vira language server on stdio."""
    server.start_io()
