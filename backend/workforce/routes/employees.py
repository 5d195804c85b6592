# Overview: Flask API routes for employee directory operations; parses input and returns JSON responses.

"""
Employee Routes

SECURITY:
- Listing, creating, updating, deleting and password resets are admin only.
- GET /<id> is allowed for the employee's own profile and for admins.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role, error_response
from ..errors import DomainError
from ..models import ROLE_ADMIN, ROLE_EMPLOYEE
from ..services import employee_service


employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


@employees_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_employees_route():
    try:
        employees = employee_service.list_employees(g.current_user)
        return jsonify({"employees": [e.to_dict() for e in employees], "count": len(employees)})
    except DomainError as e:
        return error_response(e)


@employees_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_employee_route():
    data = request.get_json(silent=True) or {}
    try:
        employee = employee_service.create_employee(g.current_user, data)
        return jsonify({"employee": employee.to_dict()}), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create employee")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.get("/me")
@require_auth
@require_role(ROLE_EMPLOYEE)
def my_profile_route():
    try:
        employee = employee_service.get_my_profile(g.current_user)
        return jsonify({"employee": employee.to_dict(include_children=True)})
    except DomainError as e:
        return error_response(e)


@employees_bp.get("/<int:employee_id>")
@require_auth
def get_employee_route(employee_id: int):
    try:
        employee = employee_service.get_employee(g.current_user, employee_id)
        return jsonify({"employee": employee.to_dict(include_children=True)})
    except DomainError as e:
        return error_response(e)


@employees_bp.put("/<int:employee_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_employee_route(employee_id: int):
    data = request.get_json(silent=True) or {}
    try:
        employee = employee_service.update_employee(g.current_user, employee_id, data)
        return jsonify({"employee": employee.to_dict()})
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update employee")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.delete("/<int:employee_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_employee_route(employee_id: int):
    try:
        employee_service.delete_employee(g.current_user, employee_id)
        return jsonify({"message": "Employee deleted"})
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete employee")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.put("/<int:employee_id>/reset-password")
@require_auth
@require_role(ROLE_ADMIN)
def reset_password_route(employee_id: int):
    data = request.get_json(silent=True) or {}
    try:
        employee_service.reset_password(g.current_user, employee_id, data.get("new_password"))
        return jsonify({"message": "Password reset successfully"})
    except DomainError as e:
        return error_response(e)
