# Overview: Service-layer operations for attendance; check-in, live location updates and check-out.

"""
Attendance Service (geolocated check-in sessions)

One Location row is one session:

    (no open session) --check_in--> checked-in --check_out--> checked-out

- live_update moves the coordinates of a checked-in row; checked-out rows
  are immutable.
- Re-checking out a closed session is rejected so the recorded check-out
  time is never overwritten.
- At most one checked-in row per employee. The pre-check gives the friendly
  message; the partial unique index on locations makes it hold under
  concurrent check-ins, and its IntegrityError maps to the same conflict.
"""

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, InvalidStateError, NotFoundError
from ..extensions import db
from ..models import (
    Location,
    LOCATION_STATUSES,
    ROLE_ADMIN,
    ROLE_EMPLOYEE,
    STATUS_CHECKED_IN,
    STATUS_CHECKED_OUT,
)
from ..time_utils import utcnow
from ..validation import parse_choice, parse_float, parse_optional_float
from . import employee_service
from .authorization_service import require_owner_or_admin, require_role, scope_to_caller


ALREADY_CHECKED_IN = "You are already checked in. Please check out first."
DEFAULT_DEVICE = "Unknown Device"


def _parse_coordinates(payload: dict) -> tuple[float, float]:
    latitude = parse_float(payload.get("latitude"), "latitude", min_value=-90, max_value=90)
    longitude = parse_float(payload.get("longitude"), "longitude", min_value=-180, max_value=180)
    return latitude, longitude


def _parse_accuracy(payload: dict) -> float | None:
    return parse_optional_float(payload.get("accuracy"), "accuracy", min_value=0)


def _optional_text(value, max_len: int) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text[:max_len] or None


def _open_session_for(employee_id: int) -> Location | None:
    return db.session.query(Location).filter_by(
        employee_id=employee_id,
        status=STATUS_CHECKED_IN,
    ).first()


def _get_location_or_404(location_id: int) -> Location:
    location = db.session.get(Location, location_id)
    if not location:
        raise NotFoundError("Location not found")
    return location


def check_in(caller, payload: dict, client_ip: str | None = None) -> Location:
    """
    Open a new session for the caller's own employee profile.

    The employee always comes from the caller, never from the payload.
    """
    require_role(caller, ROLE_EMPLOYEE, "Admins cannot check in. Only employees can check in.")
    employee = employee_service.find_by_user(caller.id)
    payload = payload or {}

    latitude, longitude = _parse_coordinates(payload)
    accuracy = _parse_accuracy(payload)

    if _open_session_for(employee.id):
        raise ConflictError(ALREADY_CHECKED_IN)

    now = utcnow()
    location = Location(
        employee_id=employee.id,
        latitude=latitude,
        longitude=longitude,
        address=_optional_text(payload.get("address"), 255) or f"Lat: {latitude}, Lng: {longitude}",
        device=_optional_text(payload.get("device"), 128) or DEFAULT_DEVICE,
        ip_address=client_ip,
        accuracy=accuracy,
        check_in_time=now,
        status=STATUS_CHECKED_IN,
        last_updated=now,
    )
    db.session.add(location)

    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race against a concurrent check-in
        db.session.rollback()
        raise ConflictError(ALREADY_CHECKED_IN)

    current_app.logger.info(
        "Employee %s checked in at (%s, %s)", employee.employee_code, latitude, longitude
    )
    return location


def live_update(caller, location_id: int, payload: dict) -> Location:
    location = _get_location_or_404(location_id)
    require_owner_or_admin(
        caller,
        employee_service.owner_user_id(location),
        "Not authorized to update this location",
    )
    if not location.is_open:
        raise InvalidStateError("Location session is not active")

    payload = payload or {}
    latitude, longitude = _parse_coordinates(payload)
    accuracy = _parse_accuracy(payload)

    location.latitude = latitude
    location.longitude = longitude
    if accuracy is not None:
        location.accuracy = accuracy
    location.last_updated = utcnow()

    db.session.commit()
    return location


def check_out(caller, location_id: int) -> Location:
    location = _get_location_or_404(location_id)
    require_owner_or_admin(
        caller,
        employee_service.owner_user_id(location),
        "Not authorized to check out from this location",
    )
    if not location.is_open:
        raise InvalidStateError("Location session is already checked out")

    now = utcnow()
    location.check_out_time = now
    location.status = STATUS_CHECKED_OUT
    location.last_updated = now

    db.session.commit()

    current_app.logger.info(
        "Location %s checked out by user %s", location.id, caller.id
    )
    return location


def delete_location(caller, location_id: int) -> None:
    """Admin only; attendance history is otherwise append-only."""
    require_role(caller, ROLE_ADMIN, "Not authorized to delete this location")
    location = _get_location_or_404(location_id)

    db.session.delete(location)
    db.session.commit()

    current_app.logger.info("Location %s deleted by user %s", location_id, caller.id)


def get_location(caller, location_id: int) -> Location:
    location = _get_location_or_404(location_id)
    require_owner_or_admin(
        caller,
        employee_service.owner_user_id(location),
        "Not authorized to access this location",
    )
    return location


def list_locations(caller, *, employee_id: int | None = None, status: str | None = None) -> list[Location]:
    """Newest first. Employees only ever see their own rows."""
    query = scope_to_caller(db.session.query(Location), caller, Location.employee_id)

    if employee_id is not None:
        query = query.filter(Location.employee_id == employee_id)
    if status:
        query = query.filter(Location.status == parse_choice(status, "status", LOCATION_STATUSES))

    return query.order_by(Location.check_in_time.desc(), Location.id.desc()).all()


def current_session(caller) -> Location | None:
    require_role(caller, ROLE_EMPLOYEE)
    employee = employee_service.find_by_user(caller.id)
    return _open_session_for(employee.id)
