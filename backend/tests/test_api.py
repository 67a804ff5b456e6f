"""API smoke tests using FastAPI TestClient."""

from fastapi.testclient import TestClient
from backend.app.main import app

client = TestClient(app)


def test_run_smoke():
	r = client.post('/run', json={'code': 'INTEGER x\nASSIGN x 5\nCHS x\nPRINT x\nHLT'})
	assert r.status_code == 200
	body = r.json()
	assert body['errors'] is None
	assert body['status'] == 'halted'
	assert body['output'].startswith('x = -5\n')
	assert body['state'] == [{'name': 'x', 'kind': 'int', 'value': -5}]
	assert isinstance(body['duration_ms'], int)


def test_run_fault_is_a_normal_response():
	r = client.post('/run', json={'code': 'LIST l\nLIST m\nASSIGN n 0'})
	assert r.status_code == 200
	body = r.json()
	assert body['status'] == 'faulted'
	assert body['errors']['code'] == 'UNDECLARED_IDENTIFIER'
	assert body['errors']['line'] == 3
	assert [s['name'] for s in body['state']] == ['l', 'm']


def test_missing_code_is_rejected():
	r = client.post('/run', json={'settings': {}})
	assert r.status_code == 422
