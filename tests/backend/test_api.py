import pytest
from fastapi.testclient import TestClient

from configstore_lib.main import create_app


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


def test_health(client):
    r = client.get('/health')
    assert r.status_code == 200
    body = r.json()
    assert body['status'] == 'ok'
    assert body['lock']['sentinel_exists'] is False
    assert body['lock']['state'] == 'free'


def test_put_and_resolve(client):
    assert client.put('/api/config/theme', json={'value': 'dark'}).status_code == 200
    r = client.put('/api/config/theme', json={'value': 'light', 'scope': 'folder', 'scope_id': 'f1'})
    assert r.json() == {'ok': True, 'key': 'theme', 'scope': 'folder'}

    r = client.get('/api/config/theme', params={'folder_id': 'f1', 'item_id': 'i9'})
    assert r.json() == {'key': 'theme', 'found': True, 'scope': 'folder', 'value': 'light'}

    r = client.get('/api/config/theme')
    assert r.json()['value'] == 'dark'

    r = client.get('/api/config/missing')
    assert r.json() == {'key': 'missing', 'found': False, 'scope': None, 'value': None}


def test_document_and_scoped_lookup(client):
    client.put('/api/config/k', json={'value': [1, 2], 'scope': 'item', 'scope_id': 'abc123'})
    assert client.get('/api/config').json() == {'$$item||abc123//plugin.sample//k': [1, 2]}

    r = client.get('/api/scopes/item/abc123/k')
    assert r.status_code == 200
    assert r.json() == {'key': '$$item||abc123//plugin.sample//k', 'value': [1, 2]}
    assert client.get('/api/scopes/folder/abc123/k').status_code == 404


def test_delete(client):
    client.put('/api/config/k', json={'value': 1})
    assert client.delete('/api/config/k').status_code == 200
    assert client.delete('/api/config/k').status_code == 404


def test_bad_keys_and_scopes(client):
    assert client.put('/api/config/$$evil', json={'value': 1}).status_code == 400
    assert client.put('/api/config/k', json={'value': 1, 'scope': 'galaxy', 'scope_id': 'x'}).status_code == 400
    assert client.put('/api/config/k', json={'value': 1, 'scope': 'item'}).status_code == 400
    assert client.get('/api/scopes/galaxy/x/k').status_code == 400


def test_held_lock_returns_503(client, tmp_path):
    (tmp_path / 'config.lock').touch()
    r = client.put('/api/config/k', json={'value': 1})
    assert r.status_code == 503
    assert r.json()['error'] == 'lock_timeout'
    assert not (tmp_path / 'config.json').exists()


def test_unreadable_document_returns_500(client, tmp_path):
    (tmp_path / 'config.json').write_text('{not json', encoding='utf-8')
    r = client.get('/api/config')
    assert r.status_code == 500
    assert r.json()['error'] == 'persistence'
