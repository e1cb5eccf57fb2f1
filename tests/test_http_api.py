from __future__ import annotations

import csv
import io

import pytest
from flask import Flask
from werkzeug.security import generate_password_hash

from src.staffing_portal.staffing_portal.attendance.controller import register as register_attendance
from src.staffing_portal.staffing_portal.attendance.model import AttendanceExportRow
from src.staffing_portal.staffing_portal.attendance.service import AttendanceService
from src.staffing_portal.staffing_portal.common.datetime_utils import instant_from_civil
from src.staffing_portal.staffing_portal.container import Container
from src.staffing_portal.staffing_portal.core.enums import ErrorKind, Role
from src.staffing_portal.staffing_portal.core.http import status_for
from src.staffing_portal.staffing_portal.leaves.controller import register as register_leaves
from src.staffing_portal.staffing_portal.leaves.service import LeaveService
from src.staffing_portal.staffing_portal.reports.service import AttendanceExportService
from src.staffing_portal.staffing_portal.users.controller import register as register_users
from src.staffing_portal.staffing_portal.users.model import User
from src.staffing_portal.staffing_portal.users.service import AuthService
from tests.attendance.test_attendance_service import OFFICE, InMemoryAttendance, InMemoryUsers, north_of
from tests.leaves.test_leave_service import InMemoryHolidays, InMemoryLeaves

NOW = instant_from_civil(2024, 6, 10, 9, 45)


class Users(InMemoryUsers):
    def get_by_email(self, email):
        return next((u for u in self.users_by_id.values() if u.email == email), None)


class Attendance(InMemoryAttendance):
    def get_export_rows(self, *, start, end, user_id=None):
        return [
            AttendanceExportRow(session=s, user_name="Nima", user_email="nima@example.com")
            for s in self.sessions.values()
            if start <= s.civil_day <= end and (user_id is None or s.user_id == user_id)
        ]


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, user_ids, title, body, metadata):
        self.sent.append((list(user_ids), title))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(notifier):
    users = Users(
        {
            1: User(
                user_id=1,
                name="Nima",
                email="nima@example.com",
                role=Role.STAFF,
                password_hash=generate_password_hash("staff123"),
            ),
            9: User(user_id=9, name="Boss", email="boss@example.com", role=Role.ADMIN),
        }
    )
    attendance = Attendance()
    leaves = InMemoryLeaves()
    holidays = InMemoryHolidays()
    clock = lambda: NOW  # noqa: E731

    container = Container(
        conn=None,
        users_repo=users,
        attendance_repo=attendance,
        leaves_repo=leaves,
        holidays_repo=holidays,
        notifier=notifier,
        auth_service=AuthService(users),
        attendance_service=AttendanceService(attendance, users, clock=clock),
        leave_service=LeaveService(leaves, holidays, users, clock=clock),
        export_service=AttendanceExportService(attendance),
    )

    app = Flask(__name__)
    app.secret_key = "test"
    app.config.update(TESTING=True, CRON_SECRET="s3cret")
    register_users(app, container)
    register_attendance(app, container)
    register_leaves(app, container)
    return app.test_client()


def _sign_in(client, user_id, role):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role.value


def _check_in(client, lat_lng=OFFICE):
    return client.post(
        "/api/attendance/check-in",
        json={"workLocation": "OFFICE", "latitude": lat_lng[0], "longitude": lat_lng[1]},
    )


def test_login_sets_session(client):
    bad = client.post("/api/auth/login", json={"email": "nima@example.com", "password": "nope"})
    assert bad.status_code == 401

    resp = client.post("/api/auth/login", json={"email": "NIMA@example.com", "password": "staff123"})
    assert resp.status_code == 200
    assert resp.get_json()["user"] == {"id": 1, "name": "Nima", "role": "STAFF"}
    assert client.get("/api/auth/me").get_json()["id"] == 1


def test_requires_login(client):
    assert client.post("/api/attendance/check-in", json={}).status_code == 401
    assert client.get("/api/leaves").status_code == 401


def test_admin_cannot_check_in(client):
    _sign_in(client, 9, Role.ADMIN)

    resp = _check_in(client)

    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Forbidden"


def test_check_in_then_second_check_in_conflicts(client, notifier):
    _sign_in(client, 1, Role.STAFF)

    first = _check_in(client)
    assert first.status_code == 201
    body = first.get_json()
    assert body["data"]["status"] == "ON_TIME"
    assert notifier.sent == [([9], "Nima checked in")]

    second = _check_in(client)
    assert second.status_code == 409
    assert second.get_json()["error"] == "ActiveSessionExists"


def test_check_out_outside_radius_is_forbidden(client):
    _sign_in(client, 1, Role.STAFF)
    _check_in(client)

    far = north_of(800)
    resp = client.post("/api/attendance/check-out", json={"latitude": far[0], "longitude": far[1]})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "OutOfRadius"

    near = north_of(100)
    ok = client.post("/api/attendance/check-out", json={"latitude": near[0], "longitude": near[1]})
    assert ok.status_code == 200
    assert ok.get_json()["data"]["check_out_time"] is not None


def test_check_out_without_location_is_bad_request(client):
    _sign_in(client, 1, Role.STAFF)
    _check_in(client)

    resp = client.post("/api/attendance/check-out", json={})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "MissingLocation"


def test_location_ping_requires_session_id(client):
    _sign_in(client, 1, Role.STAFF)

    assert client.post("/api/attendance/location", json={"latitude": 1, "longitude": 2}).status_code == 400


def test_auto_checkout_needs_cron_secret(client):
    _sign_in(client, 1, Role.STAFF)
    _check_in(client)

    assert client.post("/api/attendance/auto-checkout").status_code == 401
    assert (
        client.post("/api/attendance/auto-checkout", headers={"Authorization": "Bearer wrong"}).status_code == 401
    )

    resp = client.post("/api/attendance/auto-checkout", headers={"Authorization": "Bearer s3cret"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["processed"] == 1
    assert body["results"][0]["success"] is True
    assert client.get("/api/attendance/current").get_json()["active_session"] is None


def test_export_csv(client):
    _sign_in(client, 1, Role.STAFF)
    _check_in(client)
    _sign_in(client, 9, Role.ADMIN)

    resp = client.get("/api/attendance/export.csv?start=2024-06-01&end=2024-06-30")

    assert resp.status_code == 200
    assert resp.headers["Content-Disposition"] == "attachment; filename=attendance_20240601_20240630.csv"
    rows = list(csv.DictReader(io.StringIO(resp.data.decode("utf-8-sig"))))
    assert [r["employee_name"] for r in rows] == ["Nima"]
    assert rows[0]["check_out"] == ""

    bad = client.get("/api/attendance/export.csv?start=2024-06-30&end=2024-06-01")
    assert bad.status_code == 400


def test_leave_request_and_approval(client, notifier):
    _sign_in(client, 1, Role.STAFF)
    created = client.post(
        "/api/leaves",
        json={
            "leaveType": "ANNUAL",
            "startDate": "2024-06-10",
            "endDate": "2024-06-12",
            "reason": "Family wedding in Pokhara",
        },
    )
    assert created.status_code == 201
    request_id = created.get_json()["data"]["request_id"]
    assert created.get_json()["data"]["total_days"] == 3

    denied = client.post(f"/api/leaves/{request_id}/approve", json={"action": "approve"})
    assert denied.status_code == 403
    assert client.get("/api/leaves?status=PENDING").status_code == 403

    _sign_in(client, 9, Role.ADMIN)
    assert len(client.get("/api/leaves?status=PENDING").get_json()["leaves"]) == 1

    missing = client.post(f"/api/leaves/{request_id}/approve", json={"action": "reject"})
    assert missing.status_code == 400
    assert missing.get_json()["error"] == "MissingReason"

    approved = client.post(f"/api/leaves/{request_id}/approve", json={"action": "approve"})
    assert approved.status_code == 200
    assert approved.get_json()["data"]["status"] == "APPROVED"
    assert notifier.sent[-1] == ([1], "Your leave request has been approved")

    _sign_in(client, 1, Role.STAFF)
    balances = client.get("/api/leaves/balances?year=2024").get_json()["balances"]
    assert [(b["leave_type"], b["total_used"], b["total_pending"]) for b in balances] == [("ANNUAL", 3, 0)]


def test_leave_with_bad_date_is_rejected(client):
    _sign_in(client, 1, Role.STAFF)

    resp = client.post("/api/leaves", json={"leaveType": "ANNUAL", "startDate": "10/06/2024", "reason": "x" * 12})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "InvalidLeaveInput"


def test_cancel_unknown_leave_is_not_found(client):
    _sign_in(client, 1, Role.STAFF)

    assert client.delete("/api/leaves/404").status_code == 404


@pytest.mark.parametrize(
    "kind, status",
    [
        (ErrorKind.MISSING_LOCATION, 400),
        (ErrorKind.INVALID_HALF_DAY, 400),
        (ErrorKind.OUT_OF_RADIUS, 403),
        (ErrorKind.CHECK_IN_LOCATION_MISSING, 403),
        (ErrorKind.NO_ACTIVE_SESSION, 404),
        (ErrorKind.ACTIVE_SESSION_EXISTS, 409),
        (ErrorKind.HOLIDAY_LOOKUP_FAILURE, 503),
    ],
)
def test_error_status_mapping(kind, status):
    assert status_for(kind) == status
