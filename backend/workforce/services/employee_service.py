# Overview: Service-layer operations for the employee directory; profile lookup and provisioning.

"""
Employee Directory

Maps a login User to its Employee profile and resolves the owning user of
any employee-owned resource (Location, PaymentRecord, Document). Admins
provision, update and delete employees here; creating an employee creates
its User in the same transaction.
"""

import secrets

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Employee, User, EMPLOYEE_STATUSES, ROLE_ADMIN, ROLE_EMPLOYEE
from ..validation import ModelValidationPolicy, validate_payload, parse_choice
from . import auth_service, session_service
from .authorization_service import require_owner_or_admin, require_role


USER_PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "department", "position", "phone_number", "address", "joining_date"},
    required_on_create={"name"},
)

EMERGENCY_CONTACT_FIELDS = {
    "name": "emergency_contact_name",
    "relationship": "emergency_contact_relationship",
    "phone_number": "emergency_contact_phone",
}

EMPLOYEE_CODE_PREFIX = "EMP"
MAX_CODE_ATTEMPTS = 20


# -- lookups ------------------------------------------------------------------


def find_by_user(user_id: int) -> Employee:
    employee = db.session.query(Employee).filter_by(user_id=user_id).first()
    if not employee:
        raise NotFoundError("Employee profile not found")
    return employee


def find_by_id(employee_id: int) -> Employee:
    employee = db.session.get(Employee, employee_id)
    if not employee:
        raise NotFoundError("Employee not found")
    return employee


def owner_user_id(resource) -> int | None:
    """User id that owns `resource` (an Employee or anything with .employee)."""
    if isinstance(resource, Employee):
        return resource.user_id
    employee = getattr(resource, "employee", None)
    return employee.user_id if employee else None


# -- provisioning -------------------------------------------------------------


def _generate_employee_code() -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = f"{EMPLOYEE_CODE_PREFIX}{secrets.randbelow(1_000_000):06d}"
        if not db.session.query(Employee.id).filter_by(employee_code=code).first():
            return code
    raise ConflictError("Could not allocate a unique employee code")


def _normalize_code(raw) -> str:
    code = str(raw).strip().upper()
    if not code:
        raise ValidationError("employee_code cannot be blank")
    if len(code) > 32:
        raise ValidationError("employee_code exceeds max length 32")
    return code


def _apply_emergency_contact(employee: Employee, contact) -> None:
    if contact is None:
        return
    if not isinstance(contact, dict):
        raise ValidationError("emergency_contact must be an object")
    for key, column in EMERGENCY_CONTACT_FIELDS.items():
        if key in contact:
            value = contact[key]
            value = str(value).strip() if value is not None else None
            setattr(employee, column, value or None)


def _commit_employee(employee: Employee) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("An employee with this email or code already exists")


def register_employee(payload: dict) -> Employee:
    """
    Create a User (role employee) and its Employee profile in one transaction.

    Shared by admin provisioning and self-registration. The role is always
    employee; admins are never created through this path.
    """
    payload = payload or {}
    profile = validate_payload(
        model=User,
        payload=payload,
        policy=USER_PROFILE_POLICY,
        partial=False,
        ignore_unknown=True,
    )
    name = profile.pop("name")

    user = auth_service.build_user(
        email=payload.get("email"),
        password=payload.get("password"),
        name=name,
        role=ROLE_EMPLOYEE,
        **profile,
    )

    if payload.get("employee_code") not in (None, ""):
        code = _normalize_code(payload["employee_code"])
        if db.session.query(Employee.id).filter_by(employee_code=code).first():
            raise ConflictError("Employee code already in use")
    else:
        code = _generate_employee_code()

    employee = Employee(user=user, employee_code=code, status="active")
    _apply_emergency_contact(employee, payload.get("emergency_contact"))

    db.session.add(user)
    db.session.add(employee)
    _commit_employee(employee)
    return employee


def create_employee(caller, payload: dict) -> Employee:
    require_role(caller, ROLE_ADMIN)
    employee = register_employee(payload)
    current_app.logger.info(
        "Employee %s created by user %s", employee.employee_code, caller.id
    )
    return employee


def list_employees(caller) -> list[Employee]:
    """Admin only. Profiles whose user has the employee role, newest first."""
    require_role(caller, ROLE_ADMIN)
    return (
        db.session.query(Employee)
        .join(User, Employee.user_id == User.id)
        .filter(User.role == ROLE_EMPLOYEE)
        .order_by(Employee.created_at.desc(), Employee.id.desc())
        .all()
    )


def get_employee(caller, employee_id: int) -> Employee:
    employee = find_by_id(employee_id)
    require_owner_or_admin(caller, owner_user_id(employee), "Not authorized to access this employee")
    return employee


def get_my_profile(caller) -> Employee:
    return find_by_user(caller.id)


def update_employee(caller, employee_id: int, payload: dict) -> Employee:
    """
    Partial update of profile fields (on the User), email, status and
    emergency contact. Unknown keys are ignored.
    """
    require_role(caller, ROLE_ADMIN)
    employee = find_by_id(employee_id)
    payload = payload or {}
    user = employee.user

    patch = validate_payload(
        model=User,
        payload=payload,
        policy=USER_PROFILE_POLICY,
        partial=True,
        ignore_unknown=True,
    )
    for key, value in patch.items():
        setattr(user, key, value)

    if payload.get("email") not in (None, ""):
        email = auth_service.normalize_email(payload["email"])
        if email != user.email:
            if auth_service.email_taken(email):
                raise ConflictError("A user with this email already exists")
            user.email = email

    if payload.get("status") not in (None, ""):
        employee.status = parse_choice(payload["status"], "status", EMPLOYEE_STATUSES)

    _apply_emergency_contact(employee, payload.get("emergency_contact"))

    _commit_employee(employee)
    return employee


def delete_employee(caller, employee_id: int) -> None:
    """Deletes the employee's User; the profile and every owned row cascade."""
    require_role(caller, ROLE_ADMIN)
    employee = find_by_id(employee_id)
    code = employee.employee_code

    db.session.delete(employee.user)
    db.session.commit()

    current_app.logger.info("Employee %s deleted by user %s", code, caller.id)


def reset_password(caller, employee_id: int, new_password) -> Employee:
    """Admin only. Sets a new password and revokes the employee's sessions."""
    require_role(caller, ROLE_ADMIN)
    employee = find_by_id(employee_id)

    auth_service.set_password(employee.user, new_password)
    session_service.revoke_all_user_sessions(employee.user_id, "Password reset by admin", commit=False)
    db.session.commit()
    return employee
