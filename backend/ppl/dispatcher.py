"""Instruction set of the PPL language.

`Dispatcher.execute` takes one raw source line, tokenizes it and runs the
matching handler against the symbol table. Handlers validate every operand
before they mutate anything, so a line that faults leaves the table exactly as
it found it. The result tells the engine how to move the program counter:

- `ADVANCE`: continue with the next line
- `jump(target)`: continue at the 0-based `target`
- `HALT`: stop the program
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, assert_never

from .errors import (
    ArityError,
    EmptyListAccess,
    InvalidLiteral,
    JumpOutOfRange,
    TypeMismatch,
    UnknownInstruction,
)
from .symbols import Kind, Symbol, SymbolTable
from .values import ListValue

logger = logging.getLogger(__name__)

_COMMENT_RE = re.compile(r"#.*")
_INT_LITERAL_RE = re.compile(r"-?[0-9]+")
_LINE_NUMBER_RE = re.compile(r"[0-9]+")


class Action(Enum):
    ADVANCE = "advance"
    JUMP = "jump"
    HALT = "halt"


@dataclass(frozen=True)
class Outcome:
    action: Action
    target: Optional[int] = None


ADVANCE = Outcome(Action.ADVANCE)
HALT = Outcome(Action.HALT)


def jump(target: int) -> Outcome:
    return Outcome(Action.JUMP, target)


def parse_line(raw_line: str) -> Optional[Tuple[str, List[str]]]:
    """Split a source line into an upper-cased mnemonic and its arguments.

    Returns None for blank and comment-only lines.
    """
    line = _COMMENT_RE.sub("", raw_line).strip()
    if not line:
        return None
    parts = line.split()
    return parts[0].upper(), parts[1:]


class Dispatcher:
    """Maps mnemonics to handlers operating on a SymbolTable.

    Args:
        table: the symbol table owned by the engine.
        program_length: number of lines in the program, used to validate IF targets.
        emit: callable receiving the output lines of one PRINT/PRINTALL; all
            lines of a call are checked against the output budget together.
    """

    def __init__(self, table: SymbolTable, program_length: int, emit: Callable[..., None]):
        self.table = table
        self.program_length = program_length
        self.emit = emit
        # mnemonic -> (argument count, handler)
        self._handlers: Dict[str, Tuple[int, Callable[..., Optional[Outcome]]]] = {
            "INTEGER": (1, self._handle_integer),
            "LIST": (1, self._handle_list),
            "ASSIGN": (2, self._handle_assign),
            "CHS": (1, self._handle_chs),
            "ADD": (2, self._handle_add),
            "COPY": (2, self._handle_copy),
            "MERGE": (2, self._handle_merge),
            "HEAD": (2, self._handle_head),
            "TAIL": (2, self._handle_tail),
            "IF": (2, self._handle_if),
            "PRINT": (1, self._handle_print),
            "PRINTALL": (0, self._handle_printall),
            "HLT": (0, self._handle_hlt),
        }

    def execute(self, raw_line: str) -> Outcome:
        parsed = parse_line(raw_line)
        if parsed is None:
            return ADVANCE
        mnemonic, args = parsed
        entry = self._handlers.get(mnemonic)
        if entry is None:
            raise UnknownInstruction(f"Unknown instruction: {mnemonic}")
        arity, handler = entry
        if len(args) != arity:
            raise ArityError(f"Wrong argument count (expected {arity}, got {len(args)})")
        logger.debug("dispatch %s %s", mnemonic, " ".join(args))
        return handler(*args) or ADVANCE

    # --- Operand helpers -------------------------------------------------
    def _expect(self, symbol: Symbol, kind: Kind, role: str) -> None:
        if symbol.kind is not kind:
            wanted = "a LIST" if kind is Kind.LIST else "INTEGER"
            raise TypeMismatch(f"{role} '{symbol.name}' is not {wanted}")

    def _lookup_pair(self, first: str, second: str) -> Tuple[Symbol, Symbol]:
        # both names must exist before any kind is inspected
        return self.table.get(first), self.table.get(second)

    # --- Declarations ----------------------------------------------------
    def _handle_integer(self, name: str) -> None:
        self.table.declare_integer(name)

    def _handle_list(self, name: str) -> None:
        self.table.declare_list(name)

    # --- Integer arithmetic ----------------------------------------------
    def _handle_assign(self, name: str, literal: str) -> None:
        symbol = self.table.get(name)
        self._expect(symbol, Kind.INTEGER, "ASSIGN target")
        if not _INT_LITERAL_RE.fullmatch(literal):
            raise InvalidLiteral(f"ASSIGN expects integer constant, got '{literal}'")
        self.table.set_integer(name, int(literal))

    def _handle_chs(self, name: str) -> None:
        symbol = self.table.get(name)
        self._expect(symbol, Kind.INTEGER, "CHS target")
        self.table.set_integer(name, -symbol.value)

    def _handle_add(self, a: str, b: str) -> None:
        left, right = self._lookup_pair(a, b)
        self._expect(left, Kind.INTEGER, "ADD operand")
        self._expect(right, Kind.INTEGER, "ADD operand")
        self.table.set_integer(a, left.value + right.value)

    # --- List operations -------------------------------------------------
    def _handle_copy(self, src_name: str, dst_name: str) -> None:
        src, dst = self._lookup_pair(src_name, dst_name)
        self._expect(src, Kind.LIST, "COPY source")
        self._expect(dst, Kind.LIST, "COPY destination")
        self.table.set_list(dst_name, src.value.deep_copy())

    def _handle_merge(self, src_name: str, dst_name: str) -> None:
        src, dst = self._lookup_pair(src_name, dst_name)
        self._expect(dst, Kind.LIST, "MERGE target")
        # the whole source value becomes one new element, never spliced
        if src.kind is Kind.LIST:
            element = src.value.deep_copy()
        else:
            element = src.value
        dst.value.prepend(element)

    def _handle_head(self, list_name: str, id_name: str) -> None:
        source = self.table.get(list_name)
        self._expect(source, Kind.LIST, "HEAD source")
        first = source.value.first_element()
        if first is None:
            raise EmptyListAccess(f"HEAD on empty list '{list_name}'")
        target = self.table.get(id_name)
        if isinstance(first, ListValue):
            if target.kind is not Kind.LIST:
                raise TypeMismatch(f"Type mismatch: trying to bind list to INTEGER '{id_name}'")
            self.table.set_list(id_name, first.deep_copy())
        elif isinstance(first, int):
            if target.kind is not Kind.INTEGER:
                raise TypeMismatch(f"Type mismatch: trying to bind integer to LIST '{id_name}'")
            self.table.set_integer(id_name, first)
        else:
            assert_never(first)

    def _handle_tail(self, src_name: str, dst_name: str) -> None:
        src, dst = self._lookup_pair(src_name, dst_name)
        self._expect(src, Kind.LIST, "TAIL source")
        self._expect(dst, Kind.LIST, "TAIL destination")
        self.table.set_list(dst_name, src.value.tail_as_new_list())

    # --- Control flow and output -----------------------------------------
    def _handle_if(self, name: str, line_no: str) -> Outcome:
        """Jump to 1-based `line_no` when `name` is the integer 0 or an empty list."""
        symbol = self.table.get(name)
        if not _LINE_NUMBER_RE.fullmatch(line_no):
            raise InvalidLiteral(f"IF expects positive integer line number, got '{line_no}'")
        target = int(line_no) - 1
        if target < 0 or target >= self.program_length:
            raise JumpOutOfRange(f"IF jump target out of range: {line_no}")
        if symbol.kind is Kind.INTEGER:
            taken = symbol.value == 0
        else:
            taken = symbol.value.is_empty()
        return jump(target) if taken else ADVANCE

    def _handle_print(self, name: str) -> None:
        symbol = self.table.get(name)
        self.emit(f"{name} = {symbol.render_value()}")

    def _handle_printall(self) -> None:
        self.emit("---- Environment ----", self.table.render())

    def _handle_hlt(self) -> Outcome:
        return HALT
