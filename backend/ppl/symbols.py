"""Typed symbol table for PPL programs.

Names are declared exactly once, either as INTEGER or as LIST, and keep that
kind for the rest of the run. There is no scoping or shadowing. Declaration
order is preserved because PRINTALL and the final state dump enumerate the
table in that order.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Union

from .errors import DuplicateDeclaration, TypeMismatch, UndeclaredIdentifier
from .values import ListValue


class Kind(str, Enum):
    INTEGER = "int"
    LIST = "list"


@dataclass
class Symbol:
    """A declared identifier.

    `value` is an int when `kind` is INTEGER and a ListValue when it is LIST.
    Only `SymbolTable` writes to it.
    """

    name: str
    kind: Kind
    value: Union[int, ListValue]

    def render_value(self) -> str:
        return str(self.value)

    def render(self) -> str:
        return f"{self.name} ({self.kind.value}) = {self.render_value()}"


class SymbolTable:
    def __init__(self):
        self._symbols: Dict[str, Symbol] = {}

    def declare_integer(self, name: str) -> Symbol:
        return self._declare(name, Kind.INTEGER, 0)

    def declare_list(self, name: str) -> Symbol:
        return self._declare(name, Kind.LIST, ListValue())

    def _declare(self, name: str, kind: Kind, value: Union[int, ListValue]) -> Symbol:
        if name in self._symbols:
            raise DuplicateDeclaration(f"Identifier '{name}' already declared")
        symbol = Symbol(name, kind, value)
        self._symbols[name] = symbol
        return symbol

    def is_declared(self, name: str) -> bool:
        return name in self._symbols

    def get(self, name: str) -> Symbol:
        symbol = self._symbols.get(name)
        if symbol is None:
            raise UndeclaredIdentifier(f"Undefined identifier '{name}'")
        return symbol

    def set_integer(self, name: str, value: int) -> None:
        symbol = self.get(name)
        if symbol.kind is not Kind.INTEGER:
            raise TypeMismatch(f"'{name}' is not declared as INTEGER")
        symbol.value = value

    def set_list(self, name: str, value: ListValue) -> None:
        """Bind `value` to a LIST symbol.

        The table takes ownership of `value`; callers pass a freshly built or
        deep-copied list and must not keep using it.
        """
        symbol = self.get(name)
        if symbol.kind is not Kind.LIST:
            raise TypeMismatch(f"'{name}' is not declared as LIST")
        symbol.value = value

    def snapshot(self) -> List[Dict[str, Any]]:
        """Return the table as JSON-friendly dicts in declaration order."""
        out = []
        for symbol in self:
            value = symbol.value
            if isinstance(value, ListValue):
                value = value.to_python()
            out.append({"name": symbol.name, "kind": symbol.kind.value, "value": value})
        return out

    def render(self) -> str:
        return "\n".join(symbol.render() for symbol in self)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, name: object) -> bool:
        return name in self._symbols
