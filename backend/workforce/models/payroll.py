from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date, format_us_date


PAYMENT_STATUSES = ("pending", "paid", "cancelled")
PAYMENT_METHODS = ("bank_transfer", "cash", "check", "other")

ADJUSTMENT_BONUS = "bonus"
ADJUSTMENT_DEDUCTION = "deduction"


class PaymentRecord(db.Model):
    """
    Weekly pay computation for one employee.

    DERIVED FIELDS (server computed on every create/update, never client input):
    - gross_pay_cents = basic_salary_cents + overtime_amount_cents + sum(bonuses)
    - total_deductions_cents = sum(deductions)
    - net_pay_cents = gross_pay_cents - total_deductions_cents

    UNIQUE: one record per (employee, week_start_date, week_end_date).
    """
    __tablename__ = "payment_records"
    __table_args__ = (
        db.UniqueConstraint(
            "employee_id", "week_start_date", "week_end_date",
            name="uq_payment_records_employee_week",
        ),
        db.Index("ix_payment_records_employee_week", "employee_id", "week_start_date"),
        db.Index("ix_payment_records_status_week", "payment_status", "week_start_date"),
        db.Index("ix_payment_records_week_window", "week_start_date", "week_end_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)

    week_start_date = db.Column(db.Date, nullable=False)
    week_end_date = db.Column(db.Date, nullable=False)

    basic_salary_cents = db.Column(db.Integer, nullable=False, default=0)

    overtime_hours = db.Column(db.Float, nullable=False, default=0)
    overtime_rate_cents = db.Column(db.Integer, nullable=False, default=0)
    overtime_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    # Derived
    gross_pay_cents = db.Column(db.Integer, nullable=False, default=0)
    total_deductions_cents = db.Column(db.Integer, nullable=False, default=0)
    net_pay_cents = db.Column(db.Integer, nullable=False, default=0)

    payment_status = db.Column(db.String(16), nullable=False, default="pending")
    # Stamped when the record first enters "paid"; kept if it later leaves it
    payment_date = db.Column(db.DateTime(timezone=True), nullable=True)
    payment_method = db.Column(db.String(32), nullable=False, default="bank_transfer")
    notes = db.Column(db.String(500), nullable=True)

    uploaded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    is_viewed = db.Column(db.Boolean, nullable=False, default=False)
    viewed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    employee = db.relationship(
        "Employee",
        backref=db.backref("payment_records", lazy=True, cascade="all, delete-orphan"),
    )
    uploaded_by = db.relationship("User", foreign_keys=[uploaded_by_user_id])
    adjustments = db.relationship(
        "PaymentAdjustment",
        back_populates="payment_record",
        cascade="all, delete-orphan",
        order_by="PaymentAdjustment.position",
        lazy=True,
    )

    @property
    def bonuses(self) -> list["PaymentAdjustment"]:
        return [a for a in self.adjustments if a.kind == ADJUSTMENT_BONUS]

    @property
    def deductions(self) -> list["PaymentAdjustment"]:
        return [a for a in self.adjustments if a.kind == ADJUSTMENT_DEDUCTION]

    @property
    def pay_period(self) -> str:
        return f"Week of {format_us_date(self.week_start_date)} - {format_us_date(self.week_end_date)}"

    def to_dict(self) -> dict:
        employee = self.employee
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_code": employee.employee_code if employee else None,
            "employee_name": employee.user.name if employee and employee.user else None,
            "week_start_date": to_iso_date(self.week_start_date),
            "week_end_date": to_iso_date(self.week_end_date),
            "pay_period": self.pay_period,
            "basic_salary_cents": self.basic_salary_cents,
            "overtime": {
                "hours": self.overtime_hours,
                "rate_cents": self.overtime_rate_cents,
                "amount_cents": self.overtime_amount_cents,
            },
            "bonuses": [a.to_dict() for a in self.bonuses],
            "deductions": [a.to_dict() for a in self.deductions],
            "gross_pay_cents": self.gross_pay_cents,
            "total_deductions_cents": self.total_deductions_cents,
            "net_pay_cents": self.net_pay_cents,
            "payment_status": self.payment_status,
            "payment_date": to_utc_z(self.payment_date) if self.payment_date else None,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "uploaded_by_user_id": self.uploaded_by_user_id,
            "is_viewed": self.is_viewed,
            "viewed_at": to_utc_z(self.viewed_at) if self.viewed_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at) if self.updated_at else None,
        }


class PaymentAdjustment(db.Model):
    """Bonus or deduction line of a payment record, ordered by position within its kind."""
    __tablename__ = "payment_adjustments"
    __table_args__ = (
        db.Index("ix_payment_adjustments_record_kind", "payment_record_id", "kind", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    payment_record_id = db.Column(
        db.Integer, db.ForeignKey("payment_records.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # bonus | deduction
    kind = db.Column(db.String(16), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)

    payment_record = db.relationship("PaymentRecord", back_populates="adjustments")

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "amount_cents": self.amount_cents,
        }
