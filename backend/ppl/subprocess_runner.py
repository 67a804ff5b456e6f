"""Helpers to run a PPL program in a short-lived worker process.

This module provides `run_code_in_subprocess`, a wrapper that launches the
`_subprocess_worker` module (JSON over stdin/stdout). A PPL program can loop
forever through `IF`, so the wrapper enforces a wall-clock timeout and can
apply light OS-level resource limits on POSIX systems (CPU seconds and
address-space usage).

Behavior and guarantees:
  - On POSIX, optional RLIMIT_CPU and RLIMIT_AS limits are applied using a
    preexec function. On Windows these limits are no-ops.
  - The worker is launched with closed file descriptors and a minimal
    environment.
  - The function returns (returncode, stdout, stderr). A returncode of -1
    indicates the process was terminated due to timeout.

Note: This is not a substitute for container/VM-based isolation.
"""

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

# repository root: the directory holding the `backend` package
ROOT = Path(__file__).resolve().parents[2]
WORKER_MODULE = "backend.ppl._subprocess_worker"


def _make_posix_preexec(cpu_seconds: Optional[int], mem_limit_mb: Optional[int]):
    """Return a preexec_fn that applies resource limits on POSIX systems.

    If the `resource` module is unavailable the function becomes a no-op.
    """
    def preexec():
        try:
            import resource
        except ImportError:
            return

        if cpu_seconds is not None:
            resource.setrlimit(resource.RLIMIT_CPU, (int(cpu_seconds), int(cpu_seconds)))

        if mem_limit_mb is not None:
            mem_bytes = int(mem_limit_mb) * 1024 * 1024
            resource.setrlimit(resource.RLIMIT_AS, (mem_bytes, mem_bytes))

        # new session so a kill reaches only the worker
        try:
            os.setsid()
        except OSError:
            pass

    return preexec


def run_code_in_subprocess(
    code: str,
    settings: Optional[Dict[str, Any]] = None,
    timeout_s: float = 2,
    *,
    cpu_seconds: Optional[int] = 2,
    mem_limit_mb: Optional[int] = 256,
) -> Tuple[int, str, str]:
    """Run PPL `code` in the worker process and return its raw outputs.

    Parameters:
      - code: program text sent to the worker as JSON on stdin.
      - settings: run limits forwarded to the worker's Interpreter.
      - timeout_s: wall-clock timeout for the whole operation (seconds).
      - cpu_seconds: optional RLIMIT_CPU (seconds) applied on POSIX.
      - mem_limit_mb: optional RLIMIT_AS (MB) applied on POSIX.

    Returns (returncode, stdout, stderr). On timeout the process is killed and
    (-1, "", "TIMEOUT") is returned.
    """
    env = {"PATH": os.environ.get("PATH", ""), "PYTHONPATH": str(ROOT)}

    popen_kwargs: Dict[str, Any] = dict(
        args=[sys.executable, "-m", WORKER_MODULE],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        env=env,
        cwd=str(ROOT),
        close_fds=True,
    )

    if os.name != "nt":
        popen_kwargs["preexec_fn"] = _make_posix_preexec(cpu_seconds, mem_limit_mb)

    proc = subprocess.Popen(**popen_kwargs)

    payload = json.dumps({"code": code, "settings": settings or {}})
    try:
        out, err = proc.communicate(payload, timeout=timeout_s)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.communicate()
        return -1, "", "TIMEOUT"

    return proc.returncode, out or "", err or ""
