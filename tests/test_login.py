import pytest
from django.contrib.messages import get_messages

from apps.account import views as account_views
from apps.account.session_store import TOKEN_KEY, USER_KEY
from apps.backend.client import BackendHTTPError, BackendUnavailable

from .conftest import FakeBackend

LOGIN_OK = {"data": {"token": "jwt", "user": {"email": "admin@example.com", "name": "Admin", "role": "SUPER_ADMIN"}}}


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr(account_views, "BackendClient", lambda: fake)
    monkeypatch.setattr(account_views, "client_for", lambda request: fake)
    return fake


def _messages(response):
    return [str(m) for m in get_messages(response.wsgi_request)]


def test_login_page_renders(client):
    response = client.get("/login")
    assert response.status_code == 200
    assert b"Admin sign in" in response.content


def test_logged_in_user_skips_login_page(admin_client):
    response = admin_client.get("/login")
    assert response.status_code == 302
    assert response["Location"] == "/"


def test_login_validation(client, backend):
    response = client.post("/login", {"email": "not-an-email", "password": ""})
    assert response.status_code == 400
    assert response.context["errors"] == {"email": "Please enter a valid email", "password": "Password is required"}
    assert backend.calls == []


def test_login_success_stores_session_and_follows_next(client, backend):
    backend.routes[("POST", "/auth/login")] = LOGIN_OK
    response = client.post("/login", {
        "email": "admin@example.com", "password": "secret", "remember_me": "on", "next": "/tutors",
    })
    assert response.status_code == 302
    assert response["Location"] == "/tutors"
    assert client.session[TOKEN_KEY] == "jwt"
    assert client.session[USER_KEY]["role"] == "SUPER_ADMIN"
    assert "Login successful!" in _messages(response)


def test_login_ignores_offsite_next(client, backend):
    backend.routes[("POST", "/auth/login")] = LOGIN_OK
    response = client.post("/login", {"email": "admin@example.com", "password": "secret", "next": "https://evil.test/"})
    assert response["Location"] == "/"


def test_totp_required_reveals_code_field(client, backend):
    backend.routes[("POST", "/auth/login")] = BackendHTTPError(401, {"error": "TOTP_REQUIRED"}, "/auth/login")
    response = client.post("/login", {"email": "admin@example.com", "password": "secret"})
    assert response.status_code == 200
    assert response.context["show_totp"] is True
    assert b'name="totp_code"' in response.content

    # 展开后必须填 6 位数字
    response = client.post("/login", {"email": "admin@example.com", "password": "secret", "totp_code": "12"})
    assert response.status_code == 400
    assert response.context["errors"]["totp_code"] == "Please enter a valid 6-digit code"

    backend.routes[("POST", "/auth/login")] = LOGIN_OK
    response = client.post("/login", {"email": "admin@example.com", "password": "secret", "totp_code": "123456"})
    assert response.status_code == 302
    assert backend.calls[-1][3]["totpCode"] == "123456"


def test_totp_invalid_keeps_code_field(client, backend):
    backend.routes[("POST", "/auth/login")] = BackendHTTPError(401, {"error": "TOTP_INVALID"}, "/auth/login")
    response = client.post("/login", {"email": "admin@example.com", "password": "secret"})
    assert response.status_code == 401
    assert response.context["show_totp"] is True
    assert "Invalid two-factor code. Please try again." in _messages(response)


def test_wrong_password(client, backend):
    backend.routes[("POST", "/auth/login")] = BackendHTTPError(401, {"message": "Bad credentials"}, "/auth/login")
    response = client.post("/login", {"email": "admin@example.com", "password": "nope"})
    assert response.status_code == 401
    assert "Invalid email or password." in _messages(response)
    assert TOKEN_KEY not in client.session


def test_backend_down_and_malformed_response(client, backend):
    backend.routes[("POST", "/auth/login")] = BackendUnavailable("timeout")
    response = client.post("/login", {"email": "admin@example.com", "password": "secret"})
    assert response.status_code == 400
    assert "Login failed. Please check your credentials." in _messages(response)

    backend.routes[("POST", "/auth/login")] = {"token": "jwt"}
    response = client.post("/login", {"email": "admin@example.com", "password": "secret"})
    assert "Unexpected server response. Please try again later." in _messages(response)


def test_logout_clears_session_even_if_backend_fails(admin_client, backend):
    response = admin_client.post("/logout")
    assert response.status_code == 302
    assert response["Location"] == "/login"
    assert backend.called("POST", "/auth/logout")
    assert TOKEN_KEY not in admin_client.session


def test_non_admin_account_is_refused(client, backend):
    backend.routes[("POST", "/auth/login")] = {"token": "jwt", "user": {"email": "tutor@example.com", "role": "TUTOR"}}
    response = client.post("/login", {"email": "tutor@example.com", "password": "secret"})
    assert response.status_code == 403
    assert "You are not authorized to access the admin dashboard." in _messages(response)
    assert TOKEN_KEY not in client.session
