# Overview: Service-layer operations for employee documents; metadata registry and verification.

"""
Document Registry

Stores metadata for documents whose bytes live in external storage
(file_url is the reference the storage returned). Ownership and access go
through the employee directory and the authorization guard only.
"""

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Document, DOCUMENT_TYPES, VERIFICATION_STATUSES, ROLE_ADMIN
from ..time_utils import utcnow
from ..validation import parse_choice, require_fields
from . import employee_service
from .authorization_service import require_owner_or_admin, require_role, scope_to_caller


VERDICTS = ("verified", "rejected")


def _text(payload: dict, key: str, max_len: int) -> str:
    value = str(payload.get(key) or "").strip()
    if not value:
        raise ValidationError(f"{key} is required")
    if len(value) > max_len:
        raise ValidationError(f"{key} exceeds max length {max_len}")
    return value


def _get_document_or_404(document_id: int) -> Document:
    document = db.session.get(Document, document_id)
    if not document:
        raise NotFoundError("Document not found")
    return document


def create_document(caller, payload: dict) -> Document:
    """
    Employees register documents for themselves. Admins must name the
    employee_id they act for.
    """
    payload = payload or {}
    require_fields(payload, "name", "type", "file_url", "file_type")

    if caller.role == ROLE_ADMIN:
        employee_id = payload.get("employee_id")
        if isinstance(employee_id, bool) or not isinstance(employee_id, int):
            raise ValidationError("employee_id is required when registering for an employee")
        employee = employee_service.find_by_id(employee_id)
    else:
        employee = employee_service.find_by_user(caller.id)

    document = Document(
        employee_id=employee.id,
        name=_text(payload, "name", 255),
        doc_type=parse_choice(payload.get("type"), "type", DOCUMENT_TYPES),
        file_url=_text(payload, "file_url", 1024),
        file_type=_text(payload, "file_type", 128),
        uploaded_by_user_id=caller.id,
        verification_status="pending",
    )
    db.session.add(document)
    db.session.commit()
    return document


def get_document(caller, document_id: int) -> Document:
    document = _get_document_or_404(document_id)
    require_owner_or_admin(caller, employee_service.owner_user_id(document), "Not authorized to access this document")
    return document


def list_documents(caller, *, employee_id: int | None = None, status: str | None = None) -> list[Document]:
    query = scope_to_caller(db.session.query(Document), caller, Document.employee_id)
    if employee_id is not None:
        query = query.filter(Document.employee_id == employee_id)
    if status:
        query = query.filter(Document.verification_status == parse_choice(status, "status", VERIFICATION_STATUSES))
    return query.order_by(Document.created_at.desc(), Document.id.desc()).all()


def verify_document(caller, document_id: int, status) -> Document:
    require_role(caller, ROLE_ADMIN, "Only admins can verify documents")
    document = _get_document_or_404(document_id)

    document.verification_status = parse_choice(status, "status", VERDICTS)
    document.verified_by_user_id = caller.id
    document.verification_date = utcnow()
    db.session.commit()
    return document


def delete_document(caller, document_id: int) -> None:
    document = _get_document_or_404(document_id)
    require_owner_or_admin(caller, employee_service.owner_user_id(document), "Not authorized to delete this document")

    db.session.delete(document)
    db.session.commit()

    current_app.logger.info("Document %s deleted by user %s", document_id, caller.id)
