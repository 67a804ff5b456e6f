"""Save, list, run and stats endpoints against a temporary SQLite file."""

from fastapi.testclient import TestClient

from backend import db
from backend.app.main import app


def test_save_run_and_stats(isolated_db):
    with TestClient(app) as client:
        assert isolated_db.exists()

        save_resp = client.post('/save', json={'title': 'negate', 'code': 'INTEGER x\nCHS x\nPRINT x'})
        assert save_resp.status_code == 200
        pid = save_resp.json()['program_id']

        programs = client.get('/programs').json()
        assert any(p.get('program_id') == pid for p in programs)

        one = client.get(f'/programs/{pid}').json()
        assert one['title'] == 'negate'
        assert one['source'].startswith('INTEGER x')

        missing = client.get('/programs/9999').json()
        assert missing == {'error': 'not found'}

        r = client.post('/run', json={'code': one['source'], 'program_id': pid})
        assert r.status_code == 200
        assert r.json()['warnings'] == []

        r2 = client.post('/run', json={'code': 'LIST l\nHEAD l x', 'program_id': pid})
        assert r2.json()['errors']['code'] == 'EMPTY_LIST_ACCESS'

        runs = client.get(f'/stats?program_id={pid}').json()
        assert len(runs) == 2
        assert runs[0]['status'] == 'faulted'
        assert runs[0]['fault_code'] == 'EMPTY_LIST_ACCESS'
        assert runs[0]['fault_line'] == 2
        assert runs[1]['status'] == 'finished'
        assert runs[1]['fault_code'] is None

        all_runs = client.get('/stats').json()
        assert len(all_runs) == 2


def test_run_persistence_failure_becomes_warning(monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError('disk full')

    monkeypatch.setattr(db, 'save_run', boom)
    client = TestClient(app)
    r = client.post('/run', json={'code': 'INTEGER x'})
    body = r.json()
    assert body['errors'] is None
    assert body['warnings'] == ['Failed to persist run: disk full']


def test_db_helpers_roundtrip():
    pid = db.save_program('t', 'HLT')
    assert db.get_program(pid)['source'] == 'HLT'
    assert db.get_program(pid + 1) is None
    run_id = db.save_run(pid, 'halted', 1, duration_ms=0)
    runs = db.list_runs(pid)
    assert runs[0]['run_id'] == run_id
    assert runs[0]['steps'] == 1
    assert db.list_runs(pid + 1) == []
