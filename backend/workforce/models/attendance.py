from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


STATUS_CHECKED_IN = "checked-in"
STATUS_CHECKED_OUT = "checked-out"
LOCATION_STATUSES = (STATUS_CHECKED_IN, STATUS_CHECKED_OUT)


class Location(db.Model):
    """
    One geolocated check-in session.

    LIFECYCLE:
    - checked-in: created by check-in; coordinates may be moved by live updates
    - checked-out: terminal; the row is never modified again

    At most one checked-in row exists per employee. The partial unique index
    below enforces this in storage; the service pre-check only produces the
    friendlier error message.
    """
    __tablename__ = "locations"
    __table_args__ = (
        db.Index("ix_locations_employee_status", "employee_id", "status"),
        db.Index(
            "uq_locations_one_open_session",
            "employee_id",
            unique=True,
            sqlite_where=db.text("status = 'checked-in'"),
            postgresql_where=db.text("status = 'checked-in'"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)

    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    address = db.Column(db.String(255), nullable=True)
    device = db.Column(db.String(128), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    # GPS accuracy in meters
    accuracy = db.Column(db.Float, nullable=True)

    check_in_time = db.Column(db.DateTime(timezone=True), nullable=False)
    check_out_time = db.Column(db.DateTime(timezone=True), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=STATUS_CHECKED_IN)

    # Last live update (equals check_in_time until the first update)
    last_updated = db.Column(db.DateTime(timezone=True), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    employee = db.relationship(
        "Employee",
        backref=db.backref(
            "locations",
            lazy=True,
            cascade="all, delete-orphan",
            order_by="Location.check_in_time",
        ),
    )

    @property
    def is_open(self) -> bool:
        return self.status == STATUS_CHECKED_IN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_code": self.employee.employee_code if self.employee else None,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
            "device": self.device,
            "ip_address": self.ip_address,
            "accuracy": self.accuracy,
            "check_in_time": to_utc_z(self.check_in_time),
            "check_out_time": to_utc_z(self.check_out_time) if self.check_out_time else None,
            "status": self.status,
            "last_updated": to_utc_z(self.last_updated),
            "created_at": to_utc_z(self.created_at),
        }
