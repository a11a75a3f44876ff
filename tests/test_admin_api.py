from apps.admin_api import views as admin_api_views
from apps.backend.client import BackendUnavailable

from .conftest import FakeBackend, _login


def _use(monkeypatch, backend):
    monkeypatch.setattr(admin_api_views, "client_for", lambda request: backend)
    return backend


def test_requires_login(client):
    response = client.get("/api/dashboard/stats")
    assert response.status_code == 401
    assert response.json()["message"] == "Not authenticated"


def test_rejects_other_roles(client):
    _login(client, role="TUTOR")
    response = client.get("/api/dashboard/stats")
    assert response.status_code == 403
    assert response.json() == {"code": 403, "message": "Forbidden", "data": None}


def test_dashboard_stats_lists_failed_items(admin_client, monkeypatch):
    _use(monkeypatch, FakeBackend({
        ("GET", "/student-profile/count"): {"totalCount": 12},
        ("GET", "/tutor-profile/count"): {"total": 4},
        ("GET", "/modules/count"): 9,
        ("GET", "/admin/withdrawals/revenue"): {"totalRevenue": "15000"},
        ("GET", "/admin/withdrawals/total-pending"): BackendUnavailable("down"),
    }))
    body = admin_client.get("/api/dashboard/stats").json()
    assert body["code"] == 0
    data = body["data"]
    assert data["studentCount"] == 12
    assert data["tutorCount"] == 4
    assert data["moduleCount"] == 9
    assert data["totalRevenue"] == 15000
    assert data["pendingPayments"] is None
    assert data["errors"] == [
        "moduleGrowthPercent", "pendingPayments", "studentGrowthPercent", "tutorGrowthPercent",
    ]


def test_student_details(admin_client, monkeypatch):
    _use(monkeypatch, FakeBackend({
        ("GET", "/payments/totalspent"): {"totalSpent": 750},
        ("GET", "/enrollment/studentmodule"): [{"name": "Maths"}],
    }))
    body = admin_client.get("/api/students/s1/details").json()
    assert body["data"] == {"id": "s1", "total_spent": 750, "modules_enrolled": ["Maths"], "modules_loaded": True}


def test_students_enriched_backend_failure(admin_client, monkeypatch):
    _use(monkeypatch, FakeBackend({("GET", "/student-profile/all"): BackendUnavailable("down")}))
    response = admin_client.get("/api/students/enriched")
    assert response.status_code == 502
    assert response.json()["message"] == "Failed to load students"


def test_tutor_detail_not_found(admin_client, monkeypatch):
    _use(monkeypatch, FakeBackend({("GET", "/tutor-profile/all"): []}))
    response = admin_client.get("/api/tutors/t9")
    assert response.status_code == 404
    assert response.json()["message"] == "Tutor not found"


def test_payments_summary(admin_client, monkeypatch):
    _use(monkeypatch, FakeBackend({
        ("GET", "/admin/withdrawals/total-pending"): {"totalPendingAmount": 100},
        ("GET", "/admin/withdrawals/total-approved"): {"totalApprovedAmount": 200},
        ("GET", "/admin/withdrawals/pending-count"): {"pendingRequests": 1},
    }))
    body = admin_client.get("/api/payments/summary").json()
    assert body["data"] == {"totalPendingAmount": 100, "totalApprovedAmount": 200, "pendingRequests": 1}


def test_health_reports_backend_down(client):
    body = client.get("/health").json()
    assert body["redis"] == "UP"
    assert body["backend"].startswith("DOWN")
