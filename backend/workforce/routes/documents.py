# Overview: Flask API routes for employee documents; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role, error_response
from ..errors import DomainError
from ..models import ROLE_ADMIN
from ..services import document_service


documents_bp = Blueprint("documents", __name__, url_prefix="/api/documents")


@documents_bp.get("")
@require_auth
def list_documents_route():
    try:
        documents = document_service.list_documents(
            g.current_user,
            employee_id=request.args.get("employee_id", type=int),
            status=request.args.get("status"),
        )
        return jsonify({"documents": [d.to_dict() for d in documents], "count": len(documents)})
    except DomainError as e:
        return error_response(e)


@documents_bp.post("")
@require_auth
def create_document_route():
    data = request.get_json(silent=True) or {}
    try:
        document = document_service.create_document(g.current_user, data)
        return jsonify({"document": document.to_dict()}), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create document")
        return jsonify({"error": "Internal server error"}), 500


@documents_bp.get("/<int:document_id>")
@require_auth
def get_document_route(document_id: int):
    try:
        document = document_service.get_document(g.current_user, document_id)
        return jsonify({"document": document.to_dict()})
    except DomainError as e:
        return error_response(e)


@documents_bp.put("/<int:document_id>/verify")
@require_auth
@require_role(ROLE_ADMIN)
def verify_document_route(document_id: int):
    data = request.get_json(silent=True) or {}
    try:
        document = document_service.verify_document(g.current_user, document_id, data.get("status"))
        return jsonify({"document": document.to_dict()})
    except DomainError as e:
        return error_response(e)


@documents_bp.delete("/<int:document_id>")
@require_auth
def delete_document_route(document_id: int):
    try:
        document_service.delete_document(g.current_user, document_id)
        return jsonify({"message": "Document deleted"})
    except DomainError as e:
        return error_response(e)
