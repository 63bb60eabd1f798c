"""Pygments lexer for the Vira language."""

from pygments.lexer import RegexLexer, words
from pygments.token import (
    Comment,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Text,
)


class ViraLexer(RegexLexer):
    """Pygments lexer for the Vira language."""

    name = "Vira"
    aliases = ["vira"]
    filenames = ["*.vira"]
    mimetypes = ["text/x-vira"]

    tokens = {
        "root": [
            # Whitespace
            (r"\s+", Text),
            # Preprocessor directives
            (r"#.*$", Comment.Preproc),
            # Line comments (< ...)
            (r"<.*$", Comment.Single),
            # Import markers (:lib:)
            (r":[A-Za-z][A-Za-z0-9_]*:", Name.Namespace),
            # Strings, backslash escapes the next character
            (r'"', String, "string"),
            # Numbers
            (r"[0-9]+", Number.Integer),
            # Declaration keywords
            (words(("let", "def"), prefix=r"\b", suffix=r"\b"), Keyword.Declaration),
            (words(("write",), prefix=r"\b", suffix=r"\b"), Keyword),
            # Calls
            (r"[A-Za-z_][A-Za-z0-9_]*(?=\s*\()", Name.Function),
            # Identifiers
            (r"[A-Za-z_][A-Za-z0-9_]*", Name),
            # Operators
            (r"[+\-*/=]", Operator),
            # Punctuation
            (r"[(){};,:]", Punctuation),
        ],
        "string": [
            (r"\\[\s\S]", String.Escape),
            (r'[^"\\]+', String),
            (r'"', String, "#pop"),
        ],
    }
