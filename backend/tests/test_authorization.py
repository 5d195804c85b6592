"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- The ownership guard: owner or admin allowed, other employees denied
- Role-gated endpoints reject the wrong role with 403
- Denials are written to the security event log
- List reads are row-filtered instead of denied
"""

from types import SimpleNamespace

import pytest

from workforce.extensions import db
from workforce.models import Location, SecurityEvent
from workforce.services import attendance_service
from workforce.services.authorization_service import (
    Decision,
    authorize,
    authorize_role,
    require_owner_or_admin,
    scope_to_caller,
)
from workforce.errors import ForbiddenError


ADMIN = SimpleNamespace(id=1, role="admin")
EMPLOYEE = SimpleNamespace(id=2, role="employee")


# =============================================================================
# PURE DECISIONS
# =============================================================================


class TestGuardDecisions:

    def test_admin_allowed_for_any_owner(self):
        assert authorize(ADMIN, 99) is Decision.ALLOW
        assert authorize(ADMIN, None) is Decision.ALLOW

    def test_owner_allowed(self):
        assert authorize(EMPLOYEE, 2) is Decision.ALLOW

    def test_other_employee_denied(self):
        assert authorize(EMPLOYEE, 3) is Decision.DENY

    def test_unresolved_owner_denied_for_employee(self):
        assert authorize(EMPLOYEE, None) is Decision.DENY

    def test_missing_caller_denied(self):
        assert authorize(None, 2) is Decision.DENY

    def test_role_match(self):
        assert authorize_role(ADMIN, "admin") is Decision.ALLOW
        assert authorize_role(EMPLOYEE, "admin") is Decision.DENY
        assert authorize_role(ADMIN, "employee") is Decision.DENY

    def test_require_owner_or_admin_raises_forbidden(self):
        with pytest.raises(ForbiddenError):
            require_owner_or_admin(EMPLOYEE, 3)
        require_owner_or_admin(EMPLOYEE, 2)


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/employees"),
            ("POST", "/api/employees"),
            ("GET", "/api/employees/me"),
            ("GET", "/api/employees/1"),
            ("GET", "/api/locations"),
            ("POST", "/api/locations/checkin"),
            ("PUT", "/api/locations/1/live-update"),
            ("PUT", "/api/locations/1/checkout"),
            ("GET", "/api/payment-records"),
            ("POST", "/api/payment-records"),
            ("GET", "/api/payment-records/stats"),
            ("GET", "/api/payment-records/my-summary"),
            ("GET", "/api/documents"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["kind"] == "unauthenticated"

    def test_garbage_token_rejected(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401


# =============================================================================
# ROLE GATES (403)
# =============================================================================


class TestEmployeeDeniedAdminOperations:

    def test_cannot_list_employees(self, client, alice_headers):
        resp = client.get("/api/employees", headers=alice_headers)
        assert resp.status_code == 403

    def test_cannot_create_employee(self, client, alice_headers):
        resp = client.post(
            "/api/employees",
            json={"name": "Eve", "email": "eve@company.com", "password": "P@ssw0rd123!"},
            headers=alice_headers,
        )
        assert resp.status_code == 403

    def test_cannot_create_payment_record(self, client, alice_headers, employee_a):
        resp = client.post(
            "/api/payment-records",
            json={
                "employee_id": employee_a.id,
                "week_start_date": "2024-01-01",
                "week_end_date": "2024-01-07",
                "basic_salary_cents": 100000,
            },
            headers=alice_headers,
        )
        assert resp.status_code == 403

    def test_cannot_view_payment_stats(self, client, alice_headers):
        resp = client.get("/api/payment-records/stats", headers=alice_headers)
        assert resp.status_code == 403

    def test_denial_is_logged(self, client, alice_headers, employee_a):
        client.get("/api/employees", headers=alice_headers)

        event = db.session.query(SecurityEvent).filter_by(event_type="PERMISSION_DENIED").one()
        assert event.user_id == employee_a.user_id
        assert event.resource == "/api/employees"
        assert event.success is False


class TestAdminDeniedEmployeeOperations:

    def test_admin_cannot_check_in(self, client, admin_headers):
        resp = client.post(
            "/api/locations/checkin",
            json={"latitude": 12.97, "longitude": 77.59},
            headers=admin_headers,
        )
        assert resp.status_code == 403
        assert resp.json["kind"] == "forbidden"

    def test_admin_has_no_payment_summary(self, client, admin_headers):
        resp = client.get("/api/payment-records/my-summary", headers=admin_headers)
        assert resp.status_code == 403


# =============================================================================
# OWNERSHIP: employee A vs employee B vs admin
# =============================================================================


@pytest.fixture
def alice_session(client, alice_headers):
    resp = client.post(
        "/api/locations/checkin",
        json={"latitude": 12.97, "longitude": 77.59},
        headers=alice_headers,
    )
    assert resp.status_code == 201
    return resp.json["location"]["id"]


class TestOwnershipBoundary:

    def test_other_employee_cannot_read_location(self, client, bob_headers, alice_session):
        resp = client.get(f"/api/locations/{alice_session}", headers=bob_headers)
        assert resp.status_code == 403

    def test_other_employee_cannot_live_update(self, client, bob_headers, alice_session):
        resp = client.put(
            f"/api/locations/{alice_session}/live-update",
            json={"latitude": 1.0, "longitude": 1.0},
            headers=bob_headers,
        )
        assert resp.status_code == 403
        assert db.session.get(Location, alice_session).latitude == 12.97

    def test_other_employee_cannot_check_out(self, client, bob_headers, alice_session):
        resp = client.put(f"/api/locations/{alice_session}/checkout", headers=bob_headers)
        assert resp.status_code == 403
        assert db.session.get(Location, alice_session).status == "checked-in"

    def test_ownership_denial_is_logged(self, client, bob_headers, alice_session, employee_b):
        client.get(f"/api/locations/{alice_session}", headers=bob_headers)

        event = db.session.query(SecurityEvent).filter_by(user_id=employee_b.user_id).one()
        assert event.event_type == "PERMISSION_DENIED"
        assert event.reason == "Not authorized to access this location"

    def test_admin_can_read_live_update_and_check_out(self, client, admin_headers, alice_session):
        assert client.get(f"/api/locations/{alice_session}", headers=admin_headers).status_code == 200

        resp = client.put(
            f"/api/locations/{alice_session}/live-update",
            json={"latitude": 12.98, "longitude": 77.60},
            headers=admin_headers,
        )
        assert resp.status_code == 200

        resp = client.put(f"/api/locations/{alice_session}/checkout", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["location"]["status"] == "checked-out"

    def test_owner_can_read(self, client, alice_headers, alice_session):
        resp = client.get(f"/api/locations/{alice_session}", headers=alice_headers)
        assert resp.status_code == 200
        assert resp.json["location"]["id"] == alice_session

    def test_other_employee_profile_forbidden(self, client, bob_headers, employee_a):
        resp = client.get(f"/api/employees/{employee_a.id}", headers=bob_headers)
        assert resp.status_code == 403


# =============================================================================
# ROW-LEVEL FILTERING
# =============================================================================


class TestListScoping:

    def test_scope_to_caller_filters_employee_rows(self, db_session, admin_user, employee_a, employee_b):
        alice = employee_a.user
        bob = employee_b.user
        attendance_service.check_in(alice, {"latitude": 1, "longitude": 1})
        attendance_service.check_in(bob, {"latitude": 2, "longitude": 2})

        base = db.session.query(Location)
        assert base.count() == 2
        assert scope_to_caller(base, admin_user, Location.employee_id).count() == 2

        mine = scope_to_caller(base, alice, Location.employee_id).all()
        assert [loc.employee_id for loc in mine] == [employee_a.id]

    def test_employee_list_only_returns_own_sessions(self, client, alice_headers, bob_headers, employee_a):
        client.post("/api/locations/checkin", json={"latitude": 1, "longitude": 1}, headers=alice_headers)
        client.post("/api/locations/checkin", json={"latitude": 2, "longitude": 2}, headers=bob_headers)

        resp = client.get("/api/locations", headers=alice_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1
        assert resp.json["locations"][0]["employee_id"] == employee_a.id

    def test_employee_cannot_widen_list_with_employee_id(self, client, alice_headers, bob_headers, employee_b):
        client.post("/api/locations/checkin", json={"latitude": 2, "longitude": 2}, headers=bob_headers)

        resp = client.get(f"/api/locations?employee_id={employee_b.id}", headers=alice_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 0

    def test_admin_list_sees_all(self, client, admin_headers, alice_headers, bob_headers):
        client.post("/api/locations/checkin", json={"latitude": 1, "longitude": 1}, headers=alice_headers)
        client.post("/api/locations/checkin", json={"latitude": 2, "longitude": 2}, headers=bob_headers)

        resp = client.get("/api/locations", headers=admin_headers)
        assert resp.json["count"] == 2
