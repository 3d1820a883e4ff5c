from datetime import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from guardshift.db import get_db
from guardshift.deps import get_current_user
from guardshift.main import app
from guardshift.routers import alerts as alerts_router
from guardshift.services import assignments
from guardshift.services import shifts as shift_service
from guardshift.services.events import get_event_sink

from conftest import SHIFT_DAY


@pytest.fixture
def client_for(db, sink):
    def _client(role="ADMIN"):
        def _db():
            yield db

        app.dependency_overrides[get_db] = _db
        app.dependency_overrides[get_event_sink] = lambda: sink
        if role is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = lambda: {"id": 1, "role": role}
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


def _shift_body(customer, site, **overrides):
    body = {
        "customer_id": customer.id,
        "site_id": site.id,
        "date": SHIFT_DAY.isoformat(),
        "start_time": "08:00",
        "end_time": "16:00",
    }
    body.update(overrides)
    return body


def test_healthz(client_for):
    assert client_for().get("/healthz").json() == {"status": "ok"}


def test_requests_without_a_session_are_rejected(client_for):
    response = client_for(role=None).get("/api/shifts")
    assert response.status_code == 401


def test_create_and_fetch_shift(client_for, customer, site):
    client = client_for("MANAGER")

    created = client.post("/api/shifts", json=_shift_body(customer, site, required_workers=2))
    assert created.status_code == 201
    shift_id = created.json()["id"]
    assert created.json()["status"] == "scheduled"

    detail = client.get(f"/api/shifts/{shift_id}").json()
    assert detail["site_name"] == "Main Gate"
    assert detail["open_slots"] == 2

    listed = client.get("/api/shifts", params={"start_date": SHIFT_DAY.isoformat()}).json()
    assert [item["id"] for item in listed] == [shift_id]


def test_invalid_window_returns_validation_error(client_for, customer, site):
    response = client_for().post("/api/shifts", json=_shift_body(customer, site, start_time="16:00", end_time="08:00"))

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_recurring_endpoint_reports_count(client_for, customer, site):
    body = _shift_body(customer, site, start_date="2025-03-02", end_date="2025-03-15", days_of_week=[0, 3])
    body.pop("date")

    response = client_for().post("/api/shifts/recurring", json=body)

    assert response.status_code == 201
    assert response.json()["count"] == 4
    assert response.json()["error"] is None


def test_guard_cannot_create_shifts(client_for, customer, site):
    response = client_for("GUARD").post("/api/shifts", json=_shift_body(customer, site))

    assert response.status_code == 403
    assert response.json() == {
        "error": "permission_denied",
        "detail": "Not allowed to perform shifts.create",
        "action": "shifts.create",
    }


def test_assign_conflicts_carry_context(client_for, sink, make_shift, make_worker):
    client = client_for("DISPATCHER")
    morning = make_shift(time(8, 0), time(16, 0))
    noon = make_shift(time(12, 0), time(20, 0))
    worker = make_worker()

    first = client.post(f"/api/shifts/{morning.id}/assign", json={"worker_id": worker.id})
    assert first.status_code == 201
    assert first.json()["worker"]["full_name"] == "Dana Levi"
    assert sink.names() == ["assignment.created"]

    duplicate = client.post(f"/api/shifts/{morning.id}/assign", json={"worker_id": worker.id})
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "duplicate_assignment"

    conflict = client.post(f"/api/shifts/{noon.id}/assign", json={"worker_id": worker.id})
    assert conflict.status_code == 409
    assert conflict.json()["error"] == "scheduling_conflict"
    assert conflict.json()["conflicting_shift_id"] == morning.id


def test_attendance_round_trip(client_for, db, make_shift, make_worker):
    assignment = assignments.assign(db, make_shift().id, make_worker().id)
    client = client_for("GUARD")

    checked_in = client.post(
        f"/api/attendance/{assignment.id}/check-in", json={"latitude": 31.7683, "longitude": 35.2137}
    )
    assert checked_in.status_code == 200
    assert checked_in.json()["assignment"]["status"] == "checked_in"
    assert checked_in.json()["location_warning"]["site_id"] is not None

    again = client.post(f"/api/attendance/{assignment.id}/check-in")
    assert again.status_code == 409
    assert again.json()["status"] == "checked_in"

    checked_out = client.post(f"/api/attendance/{assignment.id}/check-out")
    assert checked_out.status_code == 200
    assert checked_out.json()["assignment"]["status"] == "checked_out"
    assert checked_out.json()["location_warning"] is None


def test_unassign_and_no_show_endpoints(client_for, db, make_shift, make_worker):
    shift = make_shift(required_workers=2)
    leaving = assignments.assign(db, shift.id, make_worker().id)
    absent = assignments.assign(db, shift.id, make_worker("Omer", "Cohen").id)
    client = client_for("DISPATCHER")

    assert client.delete(f"/api/shifts/{shift.id}/assign/{leaving.id}").json()["status"] == "removed"
    assert client.post(f"/api/assignments/{absent.id}/no-show").json()["status"] == "no_show"
    assert client.delete(f"/api/shifts/{shift.id}/assign/{absent.id}").status_code == 409


def test_delete_shift_is_admin_only(client_for, make_shift):
    shift = make_shift()

    assert client_for("MANAGER").delete(f"/api/shifts/{shift.id}").status_code == 403
    assert client_for("ADMIN").delete(f"/api/shifts/{shift.id}").json() == {"status": "deleted", "shift_id": shift.id}
    assert client_for("ADMIN").get(f"/api/shifts/{shift.id}").status_code == 404


def test_dashboard_endpoints(client_for):
    client = client_for("DISPATCHER")

    snapshot = client.get("/api/dashboard/coverage")
    assert snapshot.status_code == 200
    assert snapshot.json()["sites_with_coverage"] == 0
    assert snapshot.json()["degraded"] == []

    summary = client.get("/api/dashboard/today")
    assert summary.status_code == 200
    assert summary.json()["total_shifts"] == 0

    assert client_for("GUARD").get("/api/dashboard/coverage").status_code == 403


def test_storage_outage_maps_to_retryable_503(client_for, monkeypatch):
    def unavailable(*args, **kwargs):
        raise OperationalError("SELECT shifts", {}, Exception("could not connect"))

    monkeypatch.setattr(shift_service, "list_shifts", unavailable)

    response = client_for().get("/api/shifts")

    assert response.status_code == 503
    assert response.json()["retryable"] is True


def test_alerts_tick_checks_token(client_for, monkeypatch):
    configured = alerts_router.get_settings().model_copy(update={"alerts_tick_token": "s3cret"})
    monkeypatch.setattr(alerts_router, "get_settings", lambda: configured)
    client = client_for(role=None)

    assert client.post("/internal/alerts-tick").status_code == 401
    response = client.post("/internal/alerts-tick", headers={"x-alerts-token": "s3cret"})
    assert response.status_code == 200
    assert response.json() == {"reminders": 0, "overdue": 0}
