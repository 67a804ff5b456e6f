import os
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_DB_PATH = Path(__file__).parent / 'ppl.db'


def db_path() -> Path:
    """Return the SQLite file in use.

    `PPL_DB_PATH` is read on every call so tests can point the app at a
    temporary file with `monkeypatch.setenv` after the module was imported.
    """
    return Path(os.environ.get('PPL_DB_PATH') or DEFAULT_DB_PATH)


def get_conn():
    """Return a new sqlite3 connection returning rows as dict-like objects.

    A fresh connection per call is enough for the scale of this service.
    """
    conn = sqlite3.connect(str(db_path()))
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Ensure the database file and required tables exist.

    Idempotent and safe to call at application startup and before every
    write.
    """
    path = db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = get_conn()
    cur = conn.cursor()
    cur.execute('''
    CREATE TABLE IF NOT EXISTS Programs (
      program_id INTEGER PRIMARY KEY,
      title TEXT NOT NULL,
      source TEXT NOT NULL,
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''')
    cur.execute('''
    CREATE TABLE IF NOT EXISTS Runs (
      run_id INTEGER PRIMARY KEY,
      program_id INTEGER NULL,
      status TEXT NOT NULL,
      steps INTEGER,
      fault_code TEXT NULL,
      fault_line INTEGER NULL,
      duration_ms INTEGER,
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''')
    conn.commit()
    conn.close()


def save_program(title: str, source: str) -> int:
    """Persist a program's source text and return the new program_id."""
    init_db()
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        'INSERT INTO Programs (title, source) VALUES (?, ?)',
        (title, source),
    )
    program_id = cur.lastrowid
    conn.commit()
    conn.close()
    return program_id


def list_programs() -> List[Dict[str, Any]]:
    """Return saved programs (id, title, created_at), newest first."""
    init_db()
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        'SELECT program_id, title, created_at FROM Programs '
        'ORDER BY program_id DESC'
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_program(program_id: int) -> Optional[Dict[str, Any]]:
    """Fetch a single program by id, returning None if not found."""
    init_db()
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        'SELECT program_id, title, source, created_at FROM Programs '
        'WHERE program_id = ?',
        (program_id,),
    )
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def save_run(
    program_id: Optional[int],
    status: str,
    steps: Optional[int],
    fault_code: Optional[str] = None,
    fault_line: Optional[int] = None,
    duration_ms: Optional[int] = None,
) -> int:
    """Persist a run row and return its run_id.

    Callers treat failures here as non-fatal: the API still returns the
    interpreter result and reports the problem as a warning.
    """
    init_db()
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO Runs (
            program_id, status, steps, fault_code, fault_line, duration_ms
        ) VALUES (?, ?, ?, ?, ?, ?)
        """,
        (program_id, status, steps, fault_code, fault_line, duration_ms),
    )
    run_id = cur.lastrowid
    conn.commit()
    conn.close()
    return run_id


def list_runs(program_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """List run rows, newest first, optionally filtered by program_id."""
    init_db()
    conn = get_conn()
    cur = conn.cursor()
    columns = "run_id, program_id, status, steps, fault_code, fault_line, duration_ms, created_at"
    if program_id:
        cur.execute(
            f"SELECT {columns} FROM Runs WHERE program_id = ? ORDER BY run_id DESC",
            (program_id,),
        )
    else:
        cur.execute(f"SELECT {columns} FROM Runs ORDER BY run_id DESC")
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]
