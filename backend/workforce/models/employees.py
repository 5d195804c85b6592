from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


EMPLOYEE_STATUSES = ("active", "inactive", "on-leave", "terminated")


class Employee(db.Model):
    """
    Employee profile, one per non-admin User.

    OWNERSHIP: Locations, PaymentRecords and Documents point at the employee
    through employee_id. The `locations` and `documents` collections are
    relationships over those child rows, not stored arrays, so they cannot
    drift from the rows themselves. Deleting an employee deletes the children.
    """
    __tablename__ = "employees"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_employees_user"),
        db.UniqueConstraint("employee_code", name="uq_employees_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Human-readable code, e.g. EMP000123
    employee_code = db.Column(db.String(32), nullable=False)

    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    emergency_contact_name = db.Column(db.String(128), nullable=True)
    emergency_contact_relationship = db.Column(db.String(64), nullable=True)
    emergency_contact_phone = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship(
        "User",
        backref=db.backref("employee", uselist=False, cascade="all, delete-orphan"),
    )

    def to_dict(self, *, include_user: bool = True, include_children: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "employee_code": self.employee_code,
            "status": self.status,
            "emergency_contact": {
                "name": self.emergency_contact_name,
                "relationship": self.emergency_contact_relationship,
                "phone_number": self.emergency_contact_phone,
            },
            "created_at": to_utc_z(self.created_at),
        }
        if include_user and self.user is not None:
            data["user"] = self.user.to_dict()
        if include_children:
            data["location_ids"] = [loc.id for loc in self.locations]
            data["document_ids"] = [doc.id for doc in self.documents]
        return data
