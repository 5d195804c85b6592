# Overview: Flask API routes for attendance (location check-in) operations; parses input and returns JSON responses.

"""
Location (Attendance) Routes

SECURITY:
- Check-in and the current-session lookup are for employees only.
- Read, live-update and check-out need the session owner or an admin.
- Delete is admin only.
- Listing is row-filtered: employees see their own sessions.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role, error_response, client_ip
from ..errors import DomainError
from ..models import ROLE_ADMIN, ROLE_EMPLOYEE
from ..services import attendance_service


locations_bp = Blueprint("locations", __name__, url_prefix="/api/locations")


@locations_bp.get("")
@require_auth
def list_locations_route():
    try:
        locations = attendance_service.list_locations(
            g.current_user,
            employee_id=request.args.get("employee_id", type=int),
            status=request.args.get("status"),
        )
        return jsonify({"locations": [loc.to_dict() for loc in locations], "count": len(locations)})
    except DomainError as e:
        return error_response(e)


@locations_bp.get("/current")
@require_auth
@require_role(ROLE_EMPLOYEE)
def current_session_route():
    try:
        location = attendance_service.current_session(g.current_user)
        return jsonify({
            "checked_in": location is not None,
            "location": location.to_dict() if location else None,
        })
    except DomainError as e:
        return error_response(e)


@locations_bp.post("/checkin")
@require_auth
def check_in_route():
    data = request.get_json(silent=True) or {}
    try:
        location = attendance_service.check_in(g.current_user, data, client_ip())
        return jsonify({
            "location": location.to_dict(),
            "message": "Successfully checked in. Location sharing started.",
        }), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to check in")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.get("/<int:location_id>")
@require_auth
def get_location_route(location_id: int):
    try:
        location = attendance_service.get_location(g.current_user, location_id)
        return jsonify({"location": location.to_dict()})
    except DomainError as e:
        return error_response(e)


@locations_bp.put("/<int:location_id>/live-update")
@require_auth
def live_update_route(location_id: int):
    data = request.get_json(silent=True) or {}
    try:
        location = attendance_service.live_update(g.current_user, location_id, data)
        return jsonify({"location": location.to_dict()})
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update location")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.put("/<int:location_id>/checkout")
@require_auth
def check_out_route(location_id: int):
    try:
        location = attendance_service.check_out(g.current_user, location_id)
        return jsonify({"location": location.to_dict(), "message": "Successfully checked out."})
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to check out")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.delete("/<int:location_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_location_route(location_id: int):
    try:
        attendance_service.delete_location(g.current_user, location_id)
        return jsonify({"message": "Location deleted"})
    except DomainError as e:
        return error_response(e)
