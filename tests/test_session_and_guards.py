from types import SimpleNamespace

from django.contrib.messages import get_messages
from django.contrib.sessions.backends.cache import SessionStore

from apps.account import session_store
from apps.account.session_store import TOKEN_KEY, USER_KEY
from apps.admin_api import views as admin_api_views
from apps.backend.client import BackendUnauthorized
from apps.dashboard import views as dashboard_views

from .conftest import FakeBackend


def _request():
    return SimpleNamespace(session=SessionStore())


def test_set_auth_stores_token_and_user():
    request = _request()
    session_store.set_auth(request, {"email": "a@b.lk", "role": "ADMIN"}, "jwt")
    assert session_store.get_token(request) == "jwt"
    assert session_store.get_user(request)["email"] == "a@b.lk"
    assert session_store.is_authenticated(request)
    assert request.session.get_expiry_age() == session_store.TTL


def test_set_auth_without_remember_expires_at_browser_close():
    request = _request()
    session_store.set_auth(request, {"email": "a@b.lk", "role": "ADMIN"}, "jwt", remember=False)
    assert request.session.get_expire_at_browser_close()


def test_update_user_ignores_none_and_logout_clears():
    request = _request()
    session_store.set_auth(request, {"email": "a@b.lk", "name": "A", "role": "ADMIN"}, "jwt")
    session_store.update_user(request, name="Nimal", email=None)
    assert session_store.get_user(request)["name"] == "Nimal"
    assert session_store.get_user(request)["email"] == "a@b.lk"
    session_store.logout(request)
    assert not session_store.is_authenticated(request)


def test_has_role_is_case_insensitive():
    request = _request()
    request.session[TOKEN_KEY] = "t"
    request.session[USER_KEY] = {"role": "super_admin"}
    assert session_store.is_super_admin(request)
    assert session_store.has_role(request, ("ADMIN", "SUPER_ADMIN"))
    assert not session_store.has_role(request, "ADMIN")


def test_protected_page_redirects_to_login_with_next(client):
    response = client.get("/students?status=banned")
    assert response.status_code == 302
    assert response["Location"] == "/login?next=%2Fstudents%3Fstatus%3Dbanned"


def test_unknown_role_is_sent_to_login(client):
    session = client.session
    session[TOKEN_KEY] = "t"
    session[USER_KEY] = {"email": "x@y.lk", "role": "STUDENT"}
    session.save()
    response = client.get("/tutors", follow=True)
    assert response.redirect_chain == [("/login", 302)]
    assert response.status_code == 200
    assert b"Admin sign in" in response.content
    assert TOKEN_KEY not in client.session


def test_admin_create_requires_super_admin(admin_client):
    response = admin_client.get("/admin/create")
    assert response.status_code == 302
    assert response["Location"] == "/admin"


def test_backend_401_flushes_session_and_redirects(admin_client, monkeypatch):
    backend = FakeBackend({("GET", "/student-profile/all"): BackendUnauthorized("/student-profile/all")})
    monkeypatch.setattr(dashboard_views, "client_for", lambda request: backend)
    response = admin_client.get("/students")
    assert response.status_code == 302
    assert response["Location"] == "/login"
    assert TOKEN_KEY not in admin_client.session
    assert any("session has expired" in str(m) for m in get_messages(response.wsgi_request))


def test_backend_401_under_api_returns_json(admin_client, monkeypatch):
    backend = FakeBackend({("GET", "/student-profile/all"): BackendUnauthorized("/student-profile/all")})
    monkeypatch.setattr(admin_api_views, "client_for", lambda request: backend)
    response = admin_client.get("/api/students/enriched")
    assert response.status_code == 401
    assert response.json() == {"code": 401, "message": "Session expired", "data": None}
    assert TOKEN_KEY not in admin_client.session


def test_context_processor_exposes_admin(admin_client, monkeypatch):
    monkeypatch.setattr(dashboard_views, "client_for", lambda request: FakeBackend())
    response = admin_client.get("/admin")
    assert response.status_code == 200
    assert response.context["admin_user"]["name"] == "Test Admin"
    assert response.context["is_super_admin"] is False
