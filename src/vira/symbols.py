"""Lexically scoped symbol table for the Vira checker and language server."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto

from vira.source import Span


class SymbolKind(Enum):
    FUNCTION = auto()
    VARIABLE = auto()
    PARAMETER = auto()
    LIBRARY = auto()


@dataclass
class Symbol:
    name: str
    kind: SymbolKind
    span: Span
    arity: int | None = None  # functions only
    used: bool = False


@dataclass
class Scope:
    """Names bound by one block: the program or a function body."""

    name: str
    parent: Scope | None = None
    bindings: dict[str, Symbol] = field(default_factory=dict)

    def bind(self, symbol: Symbol) -> Symbol | None:
        """Bind ``symbol`` unless its name is taken here; return the earlier binding if so."""
        previous = self.bindings.get(symbol.name)
        if previous is None:
            self.bindings[symbol.name] = symbol
        return previous

    def resolve(self, name: str) -> Symbol | None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.bindings:
                return scope.bindings[name]
            scope = scope.parent
        return None


class SymbolTable:
    """Scope chain rooted at the program, plus a log of every binding."""

    def __init__(self) -> None:
        self.root = Scope("program")
        self.current = self.root
        self._history: list[Symbol] = []

    @contextmanager
    def scope(self, name: str) -> Iterator[Scope]:
        """Enter a nested scope for the duration of the ``with`` block."""
        outer = self.current
        self.current = Scope(name, parent=outer)
        try:
            yield self.current
        finally:
            self.current = outer

    def define(self, symbol: Symbol) -> Symbol | None:
        previous = self.current.bind(symbol)
        if previous is None:
            self._history.append(symbol)
        return previous

    def lookup(self, name: str) -> Symbol | None:
        return self.current.resolve(name)

    def all_symbols(self) -> list[Symbol]:
        """Every symbol bound so far, in binding order."""
        return list(self._history)

    def find(self, name: str) -> Symbol | None:
        """First symbol bound under ``name`` in any scope."""
        return next((sym for sym in self._history if sym.name == name), None)
