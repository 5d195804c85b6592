"""
Employee directory tests.

Verifies:
- provisioning creates the User and its profile together, with a supplied
  or generated employee code
- email and employee code stay unique
- admin-only management (list, update, delete, password reset)
- deleting an employee removes every row it owns
"""

import re
from datetime import date

import pytest

from conftest import PASSWORD, auth_headers, get_auth_token
from workforce.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from workforce.extensions import db
from workforce.models import (
    Document,
    Employee,
    Location,
    PaymentAdjustment,
    PaymentRecord,
    SessionToken,
    User,
)
from workforce.services import (
    attendance_service,
    document_service,
    employee_service,
    payroll_service,
    session_service,
)
from workforce.services.auth_service import PasswordValidationError


def _new_employee_payload(**overrides) -> dict:
    body = {
        "name": "Ravi Kumar",
        "email": "ravi@company.com",
        "password": PASSWORD,
        "department": "Installations",
        "position": "Field Engineer",
    }
    body.update(overrides)
    return body


# =============================================================================
# PROVISIONING
# =============================================================================


class TestCreateEmployee:

    def test_supplied_code_is_kept(self, admin_user):
        employee = employee_service.create_employee(
            admin_user, _new_employee_payload(employee_code="emp000123")
        )

        assert employee.employee_code == "EMP000123"
        assert employee.status == "active"
        assert employee.user.role == "employee"
        assert employee.user.email == "ravi@company.com"
        assert employee.user.department == "Installations"

    def test_generated_code_format(self, admin_user):
        employee = employee_service.create_employee(admin_user, _new_employee_payload())
        assert re.fullmatch(r"EMP\d{6}", employee.employee_code)

    def test_email_is_normalized(self, admin_user):
        employee = employee_service.create_employee(
            admin_user, _new_employee_payload(email="  Ravi@Company.COM ")
        )
        assert employee.user.email == "ravi@company.com"

    def test_role_in_payload_is_ignored(self, admin_user):
        employee = employee_service.create_employee(admin_user, _new_employee_payload(role="admin"))
        assert employee.user.role == "employee"

    def test_profile_fields_and_emergency_contact(self, admin_user):
        employee = employee_service.create_employee(
            admin_user,
            _new_employee_payload(
                joining_date="2024-03-01",
                phone_number="555-0101",
                emergency_contact={"name": "Meera", "relationship": "Spouse", "phone_number": "555-0199"},
            ),
        )

        assert employee.user.joining_date == date(2024, 3, 1)
        assert employee.user.phone_number == "555-0101"
        assert employee.to_dict()["emergency_contact"] == {
            "name": "Meera",
            "relationship": "Spouse",
            "phone_number": "555-0199",
        }

    def test_duplicate_email_conflicts(self, admin_user, employee_a):
        with pytest.raises(ConflictError):
            employee_service.create_employee(admin_user, _new_employee_payload(email="alice@company.com"))

        assert db.session.query(User).filter_by(email="alice@company.com").count() == 1

    def test_duplicate_code_conflicts(self, admin_user):
        employee_service.create_employee(admin_user, _new_employee_payload(employee_code="EMP000123"))

        with pytest.raises(ConflictError) as exc:
            employee_service.create_employee(
                admin_user,
                _new_employee_payload(email="other@company.com", employee_code="emp000123"),
            )

        assert str(exc.value) == "Employee code already in use"
        assert db.session.query(User).filter_by(email="other@company.com").count() == 0

    @pytest.mark.parametrize(
        "overrides, error",
        [
            ({"name": ""}, ValidationError),
            ({"email": "not-an-email"}, ValidationError),
            ({"password": "short"}, PasswordValidationError),
            ({"password": "alllowercase1!"}, PasswordValidationError),
            ({"emergency_contact": "Meera"}, ValidationError),
            ({"joining_date": "March first"}, ValidationError),
        ],
    )
    def test_invalid_input_rejected(self, admin_user, overrides, error):
        with pytest.raises(error):
            employee_service.create_employee(admin_user, _new_employee_payload(**overrides))

        db.session.rollback()
        assert db.session.query(Employee).count() == 0

    def test_employee_cannot_create(self, employee_a):
        with pytest.raises(ForbiddenError):
            employee_service.create_employee(employee_a.user, _new_employee_payload())


# =============================================================================
# READ / UPDATE / DELETE
# =============================================================================


class TestManageEmployees:

    def test_list_is_newest_first_and_excludes_admins(self, admin_user, employee_a, employee_b):
        employees = employee_service.list_employees(admin_user)
        assert [e.id for e in employees] == [employee_b.id, employee_a.id]

    def test_list_admin_only(self, employee_a):
        with pytest.raises(ForbiddenError):
            employee_service.list_employees(employee_a.user)

    def test_owner_and_admin_can_read(self, admin_user, employee_a):
        assert employee_service.get_employee(employee_a.user, employee_a.id) is employee_a
        assert employee_service.get_employee(admin_user, employee_a.id) is employee_a

    def test_other_employee_cannot_read(self, employee_a, employee_b):
        with pytest.raises(ForbiddenError):
            employee_service.get_employee(employee_b.user, employee_a.id)

    def test_missing_employee(self, admin_user):
        with pytest.raises(NotFoundError):
            employee_service.get_employee(admin_user, 9999)

    def test_admin_has_no_profile(self, admin_user):
        with pytest.raises(NotFoundError) as exc:
            employee_service.get_my_profile(admin_user)
        assert str(exc.value) == "Employee profile not found"

    def test_update_profile_status_and_contact(self, admin_user, employee_a):
        employee = employee_service.update_employee(
            admin_user,
            employee_a.id,
            {
                "department": "Logistics",
                "status": "on-leave",
                "emergency_contact": {"name": "Carol", "relationship": "Sister"},
                "unknown_field": "ignored",
            },
        )

        assert employee.user.department == "Logistics"
        assert employee.user.position == "Technician"
        assert employee.status == "on-leave"
        assert employee.emergency_contact_name == "Carol"
        assert employee.emergency_contact_phone is None

    def test_update_email_to_taken_address_conflicts(self, admin_user, employee_a, employee_b):
        with pytest.raises(ConflictError):
            employee_service.update_employee(admin_user, employee_a.id, {"email": "bob@company.com"})

    def test_update_rejects_unknown_status(self, admin_user, employee_a):
        with pytest.raises(ValidationError):
            employee_service.update_employee(admin_user, employee_a.id, {"status": "retired"})

    def test_update_admin_only(self, employee_a):
        with pytest.raises(ForbiddenError):
            employee_service.update_employee(employee_a.user, employee_a.id, {"department": "Sales"})

    def test_delete_removes_everything_owned(self, admin_user, employee_a, employee_b):
        alice = employee_a.user
        attendance_service.check_in(alice, {"latitude": 1, "longitude": 2})
        payroll_service.create_payment_record(
            admin_user,
            {
                "employee_id": employee_a.id,
                "week_start_date": "2024-01-01",
                "week_end_date": "2024-01-07",
                "basic_salary_cents": 50000,
                "bonuses": [{"description": "Referral", "amount_cents": 1000}],
            },
        )
        document_service.create_document(
            alice,
            {"name": "Passport", "type": "ID", "file_url": "https://files.example.com/p.pdf", "file_type": "application/pdf"},
        )
        session_service.create_session(alice.id)

        employee_id, user_id = employee_a.id, alice.id
        employee_service.delete_employee(admin_user, employee_id)

        assert db.session.get(Employee, employee_id) is None
        assert db.session.get(User, user_id) is None
        assert db.session.query(Location).filter_by(employee_id=employee_id).count() == 0
        assert db.session.query(PaymentRecord).filter_by(employee_id=employee_id).count() == 0
        assert db.session.query(PaymentAdjustment).count() == 0
        assert db.session.query(Document).filter_by(employee_id=employee_id).count() == 0
        assert db.session.query(SessionToken).filter_by(user_id=user_id).count() == 0

        # Bob is untouched
        assert db.session.get(Employee, employee_b.id) is not None

    def test_delete_admin_only(self, employee_a, employee_b):
        with pytest.raises(ForbiddenError):
            employee_service.delete_employee(employee_b.user, employee_a.id)

    def test_reset_password_revokes_sessions(self, admin_user, employee_a):
        session_service.create_session(employee_a.user_id)
        session_service.create_session(employee_a.user_id)

        employee_service.reset_password(admin_user, employee_a.id, "N3w-Password!")

        live = db.session.query(SessionToken).filter_by(user_id=employee_a.user_id, is_revoked=False).count()
        assert live == 0

    def test_reset_password_rejects_weak_password(self, admin_user, employee_a):
        with pytest.raises(PasswordValidationError):
            employee_service.reset_password(admin_user, employee_a.id, "weak")


# =============================================================================
# ROUTES
# =============================================================================


class TestEmployeeRoutes:

    def test_create_and_list(self, client, admin_headers):
        resp = client.post(
            "/api/employees",
            json=_new_employee_payload(employee_code="EMP000123"),
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["employee"]["employee_code"] == "EMP000123"
        assert resp.json["employee"]["user"]["email"] == "ravi@company.com"
        assert "password_hash" not in resp.json["employee"]["user"]

        resp = client.get("/api/employees", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1

    def test_duplicate_email_is_409(self, client, admin_headers, employee_a):
        resp = client.post(
            "/api/employees",
            json=_new_employee_payload(email="alice@company.com"),
            headers=admin_headers,
        )
        assert resp.status_code == 409
        assert resp.json["kind"] == "conflict"

    def test_employee_cannot_list(self, client, alice_headers):
        resp = client.get("/api/employees", headers=alice_headers)
        assert resp.status_code == 403
        assert resp.json["required_roles"] == ["admin"]

    def test_my_profile(self, client, alice_headers, employee_a):
        resp = client.get("/api/employees/me", headers=alice_headers)
        assert resp.status_code == 200
        assert resp.json["employee"]["id"] == employee_a.id
        assert resp.json["employee"]["location_ids"] == []
        assert resp.json["employee"]["document_ids"] == []

    def test_admin_has_no_me_profile(self, client, admin_headers):
        assert client.get("/api/employees/me", headers=admin_headers).status_code == 403

    def test_other_employee_profile_is_403(self, client, bob_headers, employee_a):
        resp = client.get(f"/api/employees/{employee_a.id}", headers=bob_headers)
        assert resp.status_code == 403
        assert resp.json["error"] == "Not authorized to access this employee"

    def test_update_and_delete(self, client, admin_headers, employee_a):
        resp = client.put(
            f"/api/employees/{employee_a.id}",
            json={"position": "Supervisor"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["employee"]["user"]["position"] == "Supervisor"

        employee_id = employee_a.id
        assert client.delete(f"/api/employees/{employee_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/employees/{employee_id}", headers=admin_headers).status_code == 404

    def test_reset_password_flow(self, client, admin_headers, alice_headers, employee_a):
        resp = client.put(
            f"/api/employees/{employee_a.id}/reset-password",
            json={"new_password": "N3w-Password!"},
            headers=admin_headers,
        )
        assert resp.status_code == 200

        # Old token revoked, old password rejected, new password works
        assert client.get("/api/auth/me", headers=alice_headers).status_code == 401
        assert get_auth_token(client, "alice@company.com") is None
        token = get_auth_token(client, "alice@company.com", "N3w-Password!")
        assert token is not None
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 200
