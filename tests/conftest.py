import io
from email.message import Message
from urllib.error import HTTPError, URLError

import pytest
from django.core.cache import cache

from apps.account.session_store import TOKEN_KEY, USER_KEY
from apps.backend import client as client_module
from apps.backend.client import BackendHTTPError


class FakeBackend:
    """按 (method, path) 返回预置结果；值为异常实例时抛出，为函数时以 params/json 调用"""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def request(self, method, path, params=None, json_body=None):
        self.calls.append((method, path, params, json_body))
        key = (method, path)
        if key not in self.routes:
            raise BackendHTTPError(404, {"message": "not found"}, path)
        value = self.routes[key]
        if callable(value):
            value = value(params=params, json=json_body)
        if isinstance(value, Exception):
            raise value
        return value

    def get(self, path, params=None):
        return self.request("GET", path, params=params)

    def post(self, path, json=None, params=None):
        return self.request("POST", path, params=params, json_body=json)

    def put(self, path, json=None, params=None):
        return self.request("PUT", path, params=params, json_body=json)

    def delete(self, path, params=None):
        return self.request("DELETE", path, params=params)

    def called(self, method, path):
        return [c for c in self.calls if c[0] == method and c[1] == path]


class FakeResponse:
    def __init__(self, body=b"", charset="utf-8"):
        self._body = body
        self.headers = Message()
        if charset:
            self.headers["Content-Type"] = f"application/json; charset={charset}"

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def http_error(url, code, body=b""):
    hdrs = Message()
    hdrs["Content-Type"] = "application/json; charset=utf-8"
    return HTTPError(url, code, "error", hdrs, io.BytesIO(body))


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture(autouse=True)
def offline_backend(monkeypatch):
    """测试里不允许真实请求；需要时在用例里覆盖 urlopen"""
    def _offline(req, timeout=None):
        raise URLError("offline in tests")

    monkeypatch.setattr(client_module, "urlopen", _offline)


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


def _login(client, role="ADMIN", **user):
    session = client.session
    session[TOKEN_KEY] = "test-token"
    session[USER_KEY] = {
        "id": "admin@example.com",
        "name": "Test Admin",
        "email": "admin@example.com",
        "role": role,
        "profile_picture": None,
        "created_at": "2024-01-01T00:00:00Z",
        **user,
    }
    session.save()
    return client


@pytest.fixture
def admin_client(client):
    return _login(client)


@pytest.fixture
def super_admin_client(client):
    return _login(client, role="SUPER_ADMIN")
