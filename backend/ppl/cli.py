"""Command-line runner for PPL programs.

Usage:
  ppl program.ppl
  python -m backend.ppl program.ppl --max-steps 10000 --debug

The process exits 0 whenever the program ran, including runs that ended in a
runtime fault: the fault is reported on stdout, not as a process failure.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .interpreter import Interpreter

USAGE = "Usage: ppl <program_file>"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ppl", description="Run a PPL program", add_help=True)
    p.add_argument("program", nargs="?", help="Path to the program file")
    p.add_argument("--max-steps", type=int, default=None, help="Stop with a fault after this many lines")
    p.add_argument("--debug", action="store_true", help="Log every dispatched instruction to stderr")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.program is None:
        print(USAGE)
        return 1

    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)5s %(name)s: %(message)s",
        )

    try:
        # stray non-UTF-8 bytes are replaced, not rejected
        text = Path(args.program).read_text(encoding="utf-8", errors="replace")
    except OSError:
        print(f"File not found: {args.program}")
        return 1

    it = Interpreter(output_sink=print)
    it.max_steps = args.max_steps
    it.run(text)
    return 0
