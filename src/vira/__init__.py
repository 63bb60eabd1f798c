"""Vira language front end: lexer, parser, checker and tools."""

__version__ = "0.1.0"
