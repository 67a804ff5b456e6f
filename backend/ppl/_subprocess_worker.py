"""Subprocess worker that runs one PPL program.

Executed as `python -m backend.ppl._subprocess_worker`. It reads a single JSON
object from stdin with shape {"code": "...", "settings": {...}}, runs the
program with a fresh `Interpreter` and writes the run result dict as JSON to
stdout. The calling process enforces the wall-clock timeout and resource caps.
"""

import json
import sys

from backend.ppl.interpreter import Interpreter


def main() -> None:
    raw = sys.stdin.read()
    try:
        payload = json.loads(raw)
        code = payload.get("code", "")
        settings = payload.get("settings") or {}
    except (ValueError, AttributeError) as e:
        print(json.dumps({"errors": {"code": "BAD_PAYLOAD", "message": str(e)}}))
        sys.exit(1)

    it = Interpreter()
    # never recurse into another worker
    settings.pop("use_subprocess", None)
    print(json.dumps(it.run(code, settings=settings)))


if __name__ == "__main__":
    main()
