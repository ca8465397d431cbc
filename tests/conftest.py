import os
import tempfile

# Must be set before config/backend.db are imported: the engine is built at import time
_DB_DIR = tempfile.mkdtemp(prefix='zhuifeng-tests-')
os.environ['APP_ENV'] = 'testing'
os.environ['DATABASE_URL'] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"

import pytest  # noqa: E402

from app import create_app  # noqa: E402
from backend.db import Base, engine, init_db  # noqa: E402
from backend.utils import http_client  # noqa: E402
from backend.utils.errors import UpstreamError  # noqa: E402
from backend.utils.ttl_cache import cache  # noqa: E402


class FakeUpstream:
    """Stands in for http_client.get_json; unknown URLs fail like an unreachable host"""

    def __init__(self):
        self.responses = {}
        self.calls = []

    def add(self, url, payload):
        self.responses[url] = payload

    def get_json(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, params))
        if url not in self.responses:
            raise UpstreamError(url, 'connection refused')
        payload = self.responses[url]
        if isinstance(payload, Exception):
            raise payload
        return payload

    def urls_called(self):
        return [url for url, _ in self.calls]


@pytest.fixture(autouse=True)
def clean_state():
    init_db()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def upstream(monkeypatch):
    fake = FakeUpstream()
    monkeypatch.setattr(http_client, 'get_json', fake.get_json)
    return fake


@pytest.fixture
def app():
    return create_app('testing')


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register(client):
    """Register a password account and return (auth headers, user dict)"""

    def _register(username='alice', password='secret123', email=None):
        resp = client.post('/api/auth/register', json={
            'username': username,
            'password': password,
            'email': email,
        })
        assert resp.status_code == 201, resp.get_json()
        body = resp.get_json()
        return {'Authorization': f"Bearer {body['token']}"}, body['user']

    return _register
