"""Vira front-end CLI."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from vira import __version__
from vira.checker import Checker
from vira.config import ViraConfig, load_nearest
from vira.errors import (
    CompileError,
    Diagnostic,
    DiagnosticLabel,
    DiagnosticRenderer,
    LexError,
    Severity,
)
from vira.formatter import ViraFormatter
from vira.frontend import parse_source
from vira.lexer import Lexer
from vira.preprocessor import Preprocessor
from vira.printer import format_tree
from vira.source import SourceFile, Span


def _renderer(config: ViraConfig) -> DiagnosticRenderer:
    return DiagnosticRenderer(color=config.diagnostics.color)


def _load(path: Path) -> str | None:
    """Read a UTF-8 source file, reporting failure on stderr as None."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        click.echo(f"error: could not decode file: {path}", err=True)
    except OSError:
        click.echo(f"error: could not open file: {path}", err=True)
    return None


def _read_source(file: str) -> str:
    source = _load(Path(file))
    if source is None:
        raise SystemExit(1)
    return source


def _vira_files(target: Path) -> list[Path]:
    return sorted(target.rglob("*.vira")) if target.is_dir() else [target]


@click.group()
@click.version_option(__version__, prog_name="vira")
def main() -> None:
    """The Vira language front end."""


@main.command()
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--ast", "print_ast", is_flag=True, help="Print the syntax tree.")
@click.option("--check", "run_check", is_flag=True, help="Run the checker.")
@click.option("--preprocess/--no-preprocess", default=False,
              help="Run the macro preprocessor first.")
def parse(file: str, print_ast: bool, run_check: bool, preprocess: bool) -> None:
    """Lex and parse a Vira source file."""
    source = _read_source(file)
    config = load_nearest(Path(file).parent)
    renderer = _renderer(config)

    try:
        if preprocess:
            source = Preprocessor(
                config.preprocess.include_paths, config.preprocess.defines,
            ).process(source, file)
        renderer.add_source(file, source)
        result = parse_source(source, file)
    except CompileError as e:
        for diag in e.diagnostics:
            click.echo(renderer.render(diag), err=True)
        raise SystemExit(1)

    # Syntax errors are reported but do not fail the run.
    for diag in result.diagnostics:
        click.echo(renderer.render_short(diag), err=True)

    if print_ast:
        click.echo(format_tree(result.program), nl=False)

    if run_check:
        checker = Checker()
        checker.check(result.program)
        for diag in checker.diagnostics:
            click.echo(renderer.render_short(diag), err=True)
        if checker.has_errors():
            raise SystemExit(1)
        click.echo("Syntax check passed.")


@main.command()
@click.argument("file", type=click.Path(dir_okay=False))
def tokens(file: str) -> None:
    """Print the token stream of a Vira source file."""
    source = _read_source(file)
    try:
        toks = Lexer(source, file).lex()
    except LexError as e:
        renderer = _renderer(load_nearest(Path(file).parent))
        for diag in e.diagnostics:
            click.echo(renderer.render(diag), err=True)
        raise SystemExit(1)
    for tok in toks:
        click.echo(f"{tok.line}:{tok.column} {tok.kind.name} {tok.value!r}")


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
def check(path: str) -> None:
    """Parse and check every .vira file under PATH."""
    target = Path(path)
    config = load_nearest(target)
    renderer = _renderer(config)

    files = _vira_files(target)
    if not files:
        click.echo("warning: no .vira files found", err=True)
        return

    had_errors = False
    for vira_file in files:
        filename = str(vira_file)
        source = _load(vira_file)
        if source is None:
            had_errors = True
            continue
        try:
            result = parse_source(source, filename)
        except CompileError as e:
            had_errors = True
            for diag in e.diagnostics:
                click.echo(renderer.render(diag), err=True)
            continue

        diagnostics = list(result.diagnostics)
        checker = Checker()
        checker.check(result.program)
        diagnostics.extend(checker.diagnostics)

        for diag in diagnostics:
            click.echo(renderer.render(diag), err=True)
            if diag.severity == Severity.ERROR:
                had_errors = True

    if had_errors:
        raise SystemExit(1)
    click.echo(f"checked {len(files)} file(s), no errors")


@main.command(name="format")
@click.argument("path", default=".", type=click.Path(exists=True))
@click.option("--check", is_flag=True, help="Check formatting without modifying files.")
@click.option("--stdin", "use_stdin", is_flag=True, help="Read from stdin, write to stdout.")
def format_cmd(path: str, check: bool, use_stdin: bool) -> None:
    """Format Vira source files."""
    formatter = ViraFormatter()
    renderer = _renderer(load_nearest(Path(path)))

    if use_stdin:
        source = sys.stdin.read()
        renderer.add_source("<stdin>", source)
        try:
            result = parse_source(source, "<stdin>")
        except CompileError as e:
            for diag in e.diagnostics:
                click.echo(renderer.render(diag), err=True)
            raise SystemExit(1)
        if not result.ok:
            for diag in result.diagnostics:
                click.echo(renderer.render(diag), err=True)
            raise SystemExit(1)
        formatted = formatter.format(result.program)
        if check:
            if formatted != source:
                raise SystemExit(1)
        else:
            click.echo(formatted, nl=False)
        return

    files = _vira_files(Path(path))
    if not files:
        click.echo("no .vira files found", err=True)
        return

    needs_formatting = False
    had_errors = False
    for vira_file in files:
        source = _load(vira_file)
        if source is None:
            had_errors = True
            continue
        filename = str(vira_file)
        try:
            result = parse_source(source, filename)
        except CompileError as e:
            had_errors = True
            for diag in e.diagnostics:
                click.echo(renderer.render(diag), err=True)
            continue
        # Formatting a partial parse would delete the dropped statements.
        if not result.ok:
            had_errors = True
            for diag in result.diagnostics:
                click.echo(renderer.render(diag), err=True)
            continue

        formatted = formatter.format(result.program)
        if formatted != source:
            if check:
                click.echo(f"would reformat {filename}")
                needs_formatting = True
            else:
                vira_file.write_text(formatted, encoding="utf-8")
                click.echo(f"formatted {filename}")

    if had_errors or (check and needs_formatting):
        raise SystemExit(1)


@main.command()
@click.argument("input_file", type=click.Path(dir_okay=False))
@click.argument("output_file", required=False, type=click.Path(dir_okay=False))
@click.option("-D", "--define", "defines", multiple=True, metavar="NAME[=VALUE]",
              help="Predefine a macro.")
@click.option("-I", "--include", "includes", multiple=True,
              type=click.Path(file_okay=False), help="Add an include search path.")
def preprocess(
    input_file: str, output_file: str | None,
    defines: tuple[str, ...], includes: tuple[str, ...],
) -> None:
    """Expand macros and includes in INPUT_FILE."""
    source = _read_source(input_file)
    config = load_nearest(Path(input_file).parent)

    macros = dict(config.preprocess.defines)
    for item in defines:
        name, _, value = item.partition("=")
        macros[name] = value
    paths = [Path(p) for p in includes] + config.preprocess.include_paths

    try:
        text = Preprocessor(paths, macros).process(source, input_file)
    except CompileError as e:
        renderer = _renderer(config)
        for diag in e.diagnostics:
            click.echo(renderer.render(diag), err=True)
        raise SystemExit(1)

    if output_file is None:
        click.echo(text, nl=False)
        return
    try:
        Path(output_file).write_text(text)
    except OSError:
        click.echo(f"error: cannot open output: {output_file}", err=True)
        raise SystemExit(1)


@main.command()
@click.option("-s", "--source", "source_path", required=True,
              type=click.Path(exists=True, dir_okay=False), help="Path to the source file.")
@click.option("-m", "--message", required=True, help="Error message.")
@click.option("-l", "--line", required=True, type=click.IntRange(min=1), help="Line (1-based).")
@click.option("-c", "--column", required=True, type=click.IntRange(min=1),
              help="Column (1-based).")
@click.option("-n", "--length", default=1, show_default=True, type=click.IntRange(min=1),
              help="Length of the highlighted span.")
def diagnose(source_path: str, message: str, line: int, column: int, length: int) -> None:
    """Render a single diagnostic against a source file."""
    source = SourceFile(source_path, _read_source(source_path))
    text = source.line_at(line)
    # Clamp the caret run to the end of the line.
    end_col = max(column, min(column + length - 1, len(text)))
    span = Span(source_path, line, column, line, end_col)
    diag = Diagnostic(
        severity=Severity.ERROR,
        code="E000",
        message=message,
        labels=[DiagnosticLabel(span=span, message="here")],
    )
    click.echo(_renderer(load_nearest(Path(source_path).parent)).render(diag))


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def highlight(file: str) -> None:
    """Print a Vira source file with terminal syntax highlighting."""
    from pygments import highlight as pygments_highlight
    from pygments.formatters import TerminalFormatter

    from vira.highlight import ViraLexer

    source = _read_source(file)
    click.echo(pygments_highlight(source, ViraLexer(), TerminalFormatter()), nl=False)


@main.command()
def lsp() -> None:
    """Start the Vira language server."""
    from vira.lsp import main as lsp_main

    lsp_main()
