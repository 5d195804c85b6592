# Overview: Service-layer authorization decisions; ownership and role checks plus security logging.

"""
Authorization Guard

Two decisions cover every protected operation:
- authorize(caller, owner_user_id): admins always, otherwise only the owner
- authorize_role(caller, role): exact role match

Both are pure. The require_* helpers turn DENY into ForbiddenError for
single-entity operations; list reads never raise and instead narrow the
query with scope_to_caller() (admins see everything, employees their rows).

Denials are recorded as SecurityEvent rows (PERMISSION_DENIED) by the route
layer when a ForbiddenError reaches it; see decorators.error_response().
"""

import enum

from ..errors import ForbiddenError
from ..extensions import db
from ..models import Employee, SecurityEvent, ROLE_ADMIN
from ..time_utils import utcnow


class Decision(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


def authorize(caller, resource_owner_user_id: int | None) -> Decision:
    if caller is None:
        return Decision.DENY
    if caller.role == ROLE_ADMIN:
        return Decision.ALLOW
    if resource_owner_user_id is not None and caller.id == resource_owner_user_id:
        return Decision.ALLOW
    return Decision.DENY


def authorize_role(caller, required_role: str) -> Decision:
    if caller is not None and caller.role == required_role:
        return Decision.ALLOW
    return Decision.DENY


def require_owner_or_admin(caller, resource_owner_user_id: int | None, message: str = "Access denied") -> None:
    if authorize(caller, resource_owner_user_id) is Decision.DENY:
        raise ForbiddenError(message)


def require_role(caller, required_role: str, message: str | None = None) -> None:
    if authorize_role(caller, required_role) is Decision.DENY:
        raise ForbiddenError(message or f"Requires {required_role} role")


def scope_to_caller(query, caller, employee_column):
    """
    Row-level filter for list reads.

    `employee_column` is the owning employee FK of the listed entity
    (e.g. Location.employee_id). Employees without a profile get no rows.
    """
    if caller.role == ROLE_ADMIN:
        return query
    own_employee_ids = db.select(Employee.id).where(Employee.user_id == caller.id)
    return query.filter(employee_column.in_(own_employee_ids))


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Append a security event to the audit trail and commit it.

    event_type examples:
    - PERMISSION_DENIED
    - LOGIN_FAILED
    - LOGOUT
    - PASSWORD_RESET
    """
    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:512] or None,
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()

    return event
