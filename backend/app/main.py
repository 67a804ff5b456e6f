"""FastAPI application entrypoints for the PPL service.

Handlers stay small: each `/run` request constructs a fresh `Interpreter` so
no symbol table is shared between requests, and client-provided limits are
clamped to the server caps held by the module-level `interpreter` template.
"""

import logging
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI
from pydantic import BaseModel

from .. import db
from ..ppl.interpreter import Interpreter

logger = logging.getLogger(__name__)

app = FastAPI(title="PPL API", version="0.1")

# Server-side caps. PPL programs may loop forever, so the service never runs
# one without a step budget.
interpreter = Interpreter()
interpreter.max_steps = 100_000
interpreter.max_output_chars = 20_000
interpreter.timeout_s = 2.0


def _cap_settings(settings: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Clamp client-requested run limits to the server caps.

    Returns a dict suitable for passing directly into `Interpreter.run`.
    """
    safe = {
        "max_steps": interpreter.max_steps,
        "max_output_chars": interpreter.max_output_chars,
        "timeout_s": interpreter.timeout_s,
    }
    if not settings:
        return safe
    caps: Dict[str, Any] = {}
    caps["max_steps"] = min(int(settings.get("max_steps") or safe["max_steps"]), safe["max_steps"])
    caps["max_output_chars"] = min(
        int(settings.get("max_output_chars") or safe["max_output_chars"]), safe["max_output_chars"]
    )
    caps["timeout_s"] = min(float(settings.get("timeout_s") or safe["timeout_s"]), safe["timeout_s"])
    if settings.get("use_subprocess"):
        caps["use_subprocess"] = True
    return caps


@app.on_event('startup')
def startup():
    """FastAPI startup event: initialize the database schema."""
    db.init_db()


class RunRequest(BaseModel):
    """Body of `/run`.

    Fields:
        code: PPL source text, one instruction per line.
        settings: optional run limits; clamped server-side.
        program_id: optional id of a saved program this run belongs to.
    """
    code: str
    settings: Optional[Dict[str, Any]] = None
    program_id: Optional[int] = None


@app.post("/run")
async def run_code(req: RunRequest):
    """Run a program and persist a run record.

    A runtime fault is a normal result (`errors` is set, status "faulted");
    only unexpected exceptions become a SERVER_ERROR payload.
    """
    start = time.time()
    try:
        capped = _cap_settings(req.settings or {})
        it = Interpreter()
        it.max_steps = capped["max_steps"]
        it.max_output_chars = capped["max_output_chars"]
        it.timeout_s = capped["timeout_s"]
        result = it.run(req.code, settings=capped)
    except Exception as e:
        logger.exception("run failed")
        return {
            "output": "",
            "status": "faulted",
            "steps": 0,
            "state": [],
            "warnings": [],
            "duration_ms": int((time.time() - start) * 1000),
            "errors": {"code": "SERVER_ERROR", "message": str(e)},
        }
    result["duration_ms"] = int((time.time() - start) * 1000)

    # persisting is non-fatal; on failure we append a warning
    try:
        errors = result.get("errors") or {}
        db.save_run(
            req.program_id,
            result.get("status", "faulted"),
            result.get("steps"),
            errors.get("code"),
            errors.get("line"),
            result["duration_ms"],
        )
    except Exception as e:
        logger.warning("failed to persist run: %s", e)
        result.setdefault('warnings', []).append(f"Failed to persist run: {e}")

    return result


class SaveProgramRequest(BaseModel):
    title: str
    code: str


@app.post('/save')
async def save_program(req: SaveProgramRequest):
    try:
        program_id = db.save_program(req.title, req.code)
    except Exception as e:
        logger.warning("failed to save program: %s", e)
        return {'error': str(e)}
    return {'program_id': program_id}


@app.get('/programs')
async def list_programs():
    return db.list_programs()


@app.get('/programs/{program_id}')
async def get_program(program_id: int):
    p = db.get_program(program_id)
    if not p:
        return {'error': 'not found'}
    return p


@app.get('/stats')
async def list_stats(program_id: Optional[int] = None):
    return db.list_runs(program_id)
