from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


DOCUMENT_TYPES = ("ID", "Certificate", "Contract", "Resume", "Other")
VERIFICATION_STATUSES = ("pending", "verified", "rejected")


class Document(db.Model):
    """
    Identity or HR document metadata.

    The file itself lives in external storage; file_url is the reference that
    storage handed back.
    """
    __tablename__ = "documents"
    __table_args__ = (
        db.Index("ix_documents_employee_status", "employee_id", "verification_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    doc_type = db.Column(db.String(32), nullable=False)
    file_url = db.Column(db.String(1024), nullable=False)
    file_type = db.Column(db.String(128), nullable=False)

    uploaded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    verification_status = db.Column(db.String(16), nullable=False, default="pending")
    verified_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    verification_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    employee = db.relationship(
        "Employee",
        backref=db.backref("documents", lazy=True, cascade="all, delete-orphan", order_by="Document.id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_code": self.employee.employee_code if self.employee else None,
            "name": self.name,
            "type": self.doc_type,
            "file_url": self.file_url,
            "file_type": self.file_type,
            "uploaded_by_user_id": self.uploaded_by_user_id,
            "verification_status": self.verification_status,
            "verified_by_user_id": self.verified_by_user_id,
            "verification_date": to_utc_z(self.verification_date) if self.verification_date else None,
            "created_at": to_utc_z(self.created_at),
        }
