"""PPL interpreter module.

This module holds the run loop for the PPL instruction language and the
`Interpreter` wrapper used by the CLI, the HTTP API and the tests.

- `Engine` owns one program, its program counter and its symbol table. It
  fetches the line at `pc`, hands it to the `Dispatcher` and applies the
  outcome (advance, jump or halt) until the program halts, the counter leaves
  the program, or an instruction faults.
- `Interpreter` builds a fresh `Engine` per run, applies runtime limits, and
  returns a JSON-friendly result dict. It can also forward a run to the
  subprocess worker so a runaway program is stopped by a wall-clock timeout.

Faults never escape `run`: they are printed as a three line report (line
number, source text, message) and returned as a structured error dict, and the
final symbol table is rendered afterwards in every case.
"""

import json
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union, assert_never

from . import subprocess_runner
from .dispatcher import Action, Dispatcher
from .errors import OutputLimitExceeded, PPLError, StepLimitExceeded
from .symbols import SymbolTable

logger = logging.getLogger(__name__)


def split_lines(text: str) -> List[str]:
    r"""Split program text on "\n" only, dropping a trailing "\r" per line.

    Other characters `str.splitlines` treats as breaks (form feed, \x1c,
    \u2028 and so on) stay inside their line so line numbers match the file.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class EngineStatus(str, Enum):
    RUNNING = "running"
    HALTED = "halted"
    # the program counter left the program: normal termination
    FINISHED = "finished"
    FAULTED = "faulted"


class Engine:
    """Fetch-execute loop over a fixed list of source lines.

    Args:
        program: raw source lines, 0-indexed here and 1-indexed in messages.
        output_sink: optional callable receiving every output chunk as it is produced.
        max_steps: optional cap on executed lines; None means unlimited.
        max_output_chars: optional cap on PRINT/PRINTALL output; None means unlimited.
    """

    def __init__(
        self,
        program: Sequence[str],
        output_sink: Optional[Callable[[str], None]] = None,
        max_steps: Optional[int] = None,
        max_output_chars: Optional[int] = None,
    ):
        self.program: List[str] = list(program)
        self.pc = 0
        self.table = SymbolTable()
        self.status = EngineStatus.RUNNING
        self.steps = 0
        self.fault: Optional[Dict[str, Any]] = None
        self.output_lines: List[str] = []
        self.max_steps = max_steps
        self.max_output_chars = max_output_chars
        self._output_sink = output_sink
        self._program_output_chars = 0
        self.dispatcher = Dispatcher(self.table, len(self.program), self._emit_program_output)

    # --- Output ----------------------------------------------------------
    def _write(self, text: str) -> None:
        self.output_lines.append(text)
        if self._output_sink is not None:
            self._output_sink(text)

    def _emit_program_output(self, *lines: str) -> None:
        size = sum(len(line) for line in lines)
        if self.max_output_chars is not None:
            if self._program_output_chars + size > self.max_output_chars:
                raise OutputLimitExceeded("Output length limit reached")
        self._program_output_chars += size
        for line in lines:
            self._write(line)

    # --- Run loop --------------------------------------------------------
    def step(self) -> EngineStatus:
        """Execute the line at `pc` and move to the next state."""
        if self.status is not EngineStatus.RUNNING:
            return self.status
        if not 0 <= self.pc < len(self.program):
            self.status = EngineStatus.FINISHED
            return self.status

        raw = self.program[self.pc]
        try:
            if self.max_steps is not None and self.steps >= self.max_steps:
                raise StepLimitExceeded("Step limit exceeded")
            self.steps += 1
            outcome = self.dispatcher.execute(raw)
        except PPLError as e:
            self._report_fault(e, raw)
            return self.status

        if outcome.action is Action.HALT:
            self.status = EngineStatus.HALTED
        elif outcome.action is Action.JUMP:
            logger.debug("jump from line %d to line %d", self.pc + 1, outcome.target + 1)
            self.pc = outcome.target
        elif outcome.action is Action.ADVANCE:
            self.pc += 1
        else:
            assert_never(outcome.action)
        return self.status

    def run(self) -> EngineStatus:
        while self.status is EngineStatus.RUNNING:
            self.step()
        self._write("")
        self._write("Final state:")
        self._write(self.table.render())
        return self.status

    def _report_fault(self, error: PPLError, raw_line: str) -> None:
        line_no = self.pc + 1
        text = raw_line.strip()
        logger.info("run faulted at line %d: %s", line_no, error.message)
        self.status = EngineStatus.FAULTED
        self.fault = {
            "code": error.code,
            "message": error.message,
            "line": line_no,
            "context": {"line_text": text},
        }
        self._write(f"Runtime error at line {line_no}:")
        self._write(f"  >> {text}")
        self._write(f"  Error: {error.message}")

    def result(self) -> Dict[str, Any]:
        return {
            "output": "\n".join(self.output_lines) + ("\n" if self.output_lines else ""),
            "status": self.status.value,
            "steps": self.steps,
            "state": self.table.snapshot(),
            "warnings": [],
            "errors": self.fault,
        }


class Interpreter:
    """Top-level PPL interpreter.

    Tunable attributes (defaults are set in __init__):
    - max_steps: cap on executed lines per run (None disables the cap)
    - max_output_chars: cap on program output per run (None disables the cap)
    - timeout_s: wall-clock limit used when a run goes through the subprocess worker

    Args:
        output_sink: optional callable receiving output as it is produced; the
            CLI passes `print` so output streams while the program runs.
    """

    def __init__(self, output_sink: Optional[Callable[[str], None]] = None):
        self.max_steps: Optional[int] = None
        self.max_output_chars: Optional[int] = None
        self.timeout_s = 2.0
        self.output_sink = output_sink

    def run(
        self,
        code: Union[str, Sequence[str]],
        settings: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Run a program and return its result dict.

        Args:
            code: program text, or the program already split into lines.
            settings: optional per-run overrides for `max_steps`,
                `max_output_chars` and `timeout_s`; `use_subprocess: true`
                runs the program in the isolated worker process.

        Returns:
            dict with keys output, status, steps, state, warnings and errors
            (None, or a dict with code/message/line/context).
        """
        settings_local: Dict[str, Any] = settings or {}
        lines = split_lines(code) if isinstance(code, str) else list(code)

        if settings_local.get("use_subprocess"):
            return self._run_in_subprocess(lines, settings_local)

        engine = Engine(
            lines,
            output_sink=self.output_sink,
            max_steps=settings_local.get("max_steps", self.max_steps),
            max_output_chars=settings_local.get("max_output_chars", self.max_output_chars),
        )
        status = engine.run()
        logger.debug("run ended with status %s after %d steps", status.value, engine.steps)
        return engine.result()

    def _run_in_subprocess(self, lines: List[str], settings: Dict[str, Any]) -> Dict[str, Any]:
        timeout_s = float(settings.get("timeout_s", self.timeout_s))
        worker_settings = {
            "max_steps": settings.get("max_steps", self.max_steps),
            "max_output_chars": settings.get("max_output_chars", self.max_output_chars),
        }
        rc, out, err = subprocess_runner.run_code_in_subprocess(
            "\n".join(lines), settings=worker_settings, timeout_s=timeout_s
        )
        if rc == -1:
            return self._failed_result("TIMEOUT", "Time limit exceeded")
        if rc != 0:
            logger.warning("subprocess worker exited with %d: %s", rc, err.strip())
            return self._failed_result("SUBPROCESS_FAILED", err.strip() or f"worker exited with {rc}")
        try:
            result = json.loads(out)
        except ValueError:
            return self._failed_result("SUBPROCESS_FAILED", "Invalid worker response")
        if self.output_sink is not None and result.get("output"):
            for line in split_lines(result["output"]):
                self.output_sink(line)
        return result

    @staticmethod
    def _failed_result(code: str, message: str) -> Dict[str, Any]:
        return {
            "output": "",
            "status": EngineStatus.FAULTED.value,
            "steps": 0,
            "state": [],
            "warnings": [],
            "errors": {"code": code, "message": message},
        }
