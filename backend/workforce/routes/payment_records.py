# Overview: Flask API routes for payroll operations; parses input and returns JSON responses.

"""
Payment Record Routes

SECURITY:
- Create, update, delete and stats are admin only.
- my-summary is for employees.
- GET /<id> is allowed for the owning employee (and marks the record viewed)
  and for admins; listing is row-filtered.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role, error_response
from ..errors import DomainError
from ..models import ROLE_ADMIN, ROLE_EMPLOYEE
from ..services import payroll_service


payment_records_bp = Blueprint("payment_records", __name__, url_prefix="/api/payment-records")


@payment_records_bp.get("")
@require_auth
def list_payment_records_route():
    args = request.args
    try:
        page = payroll_service.list_payment_records(
            g.current_user,
            status=args.get("status"),
            employee_id=args.get("employee_id", type=int),
            start_date=args.get("start_date"),
            end_date=args.get("end_date"),
            page=args.get("page", type=int),
            limit=args.get("limit", type=int),
        )
        return jsonify({
            "payment_records": [r.to_dict() for r in page.items],
            "pagination": page.to_dict(),
        })
    except DomainError as e:
        return error_response(e)


@payment_records_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_payment_record_route():
    data = request.get_json(silent=True) or {}
    try:
        record = payroll_service.create_payment_record(g.current_user, data)
        return jsonify({
            "payment_record": record.to_dict(),
            "message": "Payment record created successfully",
        }), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create payment record")
        return jsonify({"error": "Internal server error"}), 500


@payment_records_bp.get("/stats")
@require_auth
@require_role(ROLE_ADMIN)
def payment_stats_route():
    try:
        return jsonify({"stats": payroll_service.payment_stats(g.current_user)})
    except DomainError as e:
        return error_response(e)


@payment_records_bp.get("/my-summary")
@require_auth
@require_role(ROLE_EMPLOYEE)
def my_summary_route():
    try:
        return jsonify(payroll_service.my_payment_summary(g.current_user))
    except DomainError as e:
        return error_response(e)


@payment_records_bp.get("/<int:record_id>")
@require_auth
def get_payment_record_route(record_id: int):
    try:
        record = payroll_service.get_payment_record(g.current_user, record_id)
        return jsonify({"payment_record": record.to_dict()})
    except DomainError as e:
        return error_response(e)


@payment_records_bp.put("/<int:record_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_payment_record_route(record_id: int):
    data = request.get_json(silent=True) or {}
    try:
        record = payroll_service.update_payment_record(g.current_user, record_id, data)
        return jsonify({
            "payment_record": record.to_dict(),
            "message": "Payment record updated successfully",
        })
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update payment record")
        return jsonify({"error": "Internal server error"}), 500


@payment_records_bp.delete("/<int:record_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_payment_record_route(record_id: int):
    try:
        payroll_service.delete_payment_record(g.current_user, record_id)
        return jsonify({"message": "Payment record deleted successfully"})
    except DomainError as e:
        return error_response(e)
