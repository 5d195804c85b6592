# Overview: Service-layer operations for payroll; weekly payment records, derived totals and summaries.

"""
Payroll Service

A PaymentRecord holds one employee's pay for one week window. All money is
integer cents.

DERIVED TOTALS are recomputed here before every commit and are never taken
from the client:
    gross_pay_cents        = basic + overtime amount + sum(bonuses)
    total_deductions_cents = sum(deductions)
    net_pay_cents          = gross_pay_cents - total_deductions_cents

UNIQUENESS: one record per (employee, week_start_date, week_end_date). The
pre-check produces the message; the unique constraint closes the
create/create race and its IntegrityError maps to the same ConflictError.
"""

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    PaymentAdjustment,
    PaymentRecord,
    ADJUSTMENT_BONUS,
    ADJUSTMENT_DEDUCTION,
    PAYMENT_METHODS,
    PAYMENT_STATUSES,
    ROLE_ADMIN,
    ROLE_EMPLOYEE,
)
from ..time_utils import utcnow
from ..validation import (
    MAX_AMOUNT_CENTS,
    parse_cents,
    parse_choice,
    parse_date,
    parse_float,
    parse_line_items,
    require_fields,
)
from . import employee_service
from .authorization_service import require_owner_or_admin, require_role, scope_to_caller


DUPLICATE_WEEK = "Payment record already exists for this employee and week period"
MAX_OVERTIME_HOURS = 168
MAX_NOTES_LENGTH = 500


@dataclass
class Page:
    items: list
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total else 0

    def to_dict(self) -> dict:
        return {"current": self.page, "pages": self.pages, "total": self.total, "limit": self.limit}


# -- parsing ------------------------------------------------------------------


def _parse_overtime(raw) -> tuple[float, int, int]:
    """
    {"hours", "rate_cents", "amount_cents"} -> (hours, rate_cents, amount_cents).

    amount_cents defaults to round(hours * rate_cents) when not given.
    """
    if raw is None:
        return 0.0, 0, 0
    if not isinstance(raw, dict):
        raise ValidationError("overtime must be an object")

    hours = 0.0
    if raw.get("hours") not in (None, ""):
        hours = parse_float(raw["hours"], "overtime.hours", min_value=0, max_value=MAX_OVERTIME_HOURS)
    rate = parse_cents(raw["rate_cents"], "overtime.rate_cents") if raw.get("rate_cents") not in (None, "") else 0

    if raw.get("amount_cents") not in (None, ""):
        amount = parse_cents(raw["amount_cents"], "overtime.amount_cents")
    else:
        amount = int(round(hours * rate))
        if amount > MAX_AMOUNT_CENTS:
            raise ValidationError(f"overtime amount cannot exceed {MAX_AMOUNT_CENTS}")

    return hours, rate, amount


def _parse_notes(value) -> str | None:
    if value is None:
        return None
    notes = str(value).strip()
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(f"notes cannot exceed {MAX_NOTES_LENGTH} characters")
    return notes or None


def _replace_adjustments(record: PaymentRecord, kind: str, items: list[tuple[str, int]]) -> None:
    for existing in [a for a in record.adjustments if a.kind == kind]:
        record.adjustments.remove(existing)
    for position, (description, amount_cents) in enumerate(items):
        record.adjustments.append(
            PaymentAdjustment(kind=kind, position=position, description=description, amount_cents=amount_cents)
        )


def recompute_totals(record: PaymentRecord) -> None:
    gross = (
        (record.basic_salary_cents or 0)
        + (record.overtime_amount_cents or 0)
        + sum(a.amount_cents for a in record.bonuses)
    )
    deductions = sum(a.amount_cents for a in record.deductions)
    net = gross - deductions
    if net < 0:
        raise ValidationError("Deductions cannot exceed gross pay")

    record.gross_pay_cents = gross
    record.total_deductions_cents = deductions
    record.net_pay_cents = net


def _set_status(record: PaymentRecord, status: str) -> None:
    # payment_date records the first time the record became paid
    if status == "paid" and record.payment_status != "paid":
        record.payment_date = utcnow()
    record.payment_status = status


def _commit_record() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(DUPLICATE_WEEK)


def _existing_record_id(employee_id: int, week_start, week_end) -> int | None:
    row = db.session.query(PaymentRecord.id).filter_by(
        employee_id=employee_id,
        week_start_date=week_start,
        week_end_date=week_end,
    ).first()
    return row[0] if row else None


def _get_record_or_404(record_id: int) -> PaymentRecord:
    record = db.session.get(PaymentRecord, record_id)
    if not record:
        raise NotFoundError("Payment record not found")
    return record


# -- operations ---------------------------------------------------------------


def create_payment_record(caller, payload: dict) -> PaymentRecord:
    require_role(caller, ROLE_ADMIN, "Only admins can create payment records")
    payload = payload or {}
    require_fields(payload, "employee_id", "week_start_date", "week_end_date", "basic_salary_cents")

    employee_id = payload["employee_id"]
    if isinstance(employee_id, bool) or not isinstance(employee_id, int):
        raise ValidationError("employee_id must be an integer")
    employee = employee_service.find_by_id(employee_id)

    week_start = parse_date(payload["week_start_date"], "week_start_date")
    week_end = parse_date(payload["week_end_date"], "week_end_date")
    if week_end < week_start:
        raise ValidationError("week_end_date must be on or after week_start_date")

    basic = parse_cents(payload["basic_salary_cents"], "basic_salary_cents")
    hours, rate, overtime_amount = _parse_overtime(payload.get("overtime"))
    bonuses = parse_line_items(payload.get("bonuses"), "bonuses")
    deductions = parse_line_items(payload.get("deductions"), "deductions")
    method = parse_choice(payload.get("payment_method") or "bank_transfer", "payment_method", PAYMENT_METHODS)
    notes = _parse_notes(payload.get("notes"))

    if _existing_record_id(employee.id, week_start, week_end):
        raise ConflictError(DUPLICATE_WEEK)

    record = PaymentRecord(
        employee_id=employee.id,
        week_start_date=week_start,
        week_end_date=week_end,
        basic_salary_cents=basic,
        overtime_hours=hours,
        overtime_rate_cents=rate,
        overtime_amount_cents=overtime_amount,
        payment_status="pending",
        payment_method=method,
        notes=notes,
        uploaded_by_user_id=caller.id,
        is_viewed=False,
    )
    _replace_adjustments(record, ADJUSTMENT_BONUS, bonuses)
    _replace_adjustments(record, ADJUSTMENT_DEDUCTION, deductions)
    recompute_totals(record)

    db.session.add(record)
    _commit_record()

    current_app.logger.info(
        "Payment record %s created for employee %s (%s..%s, net %s cents)",
        record.id, employee.employee_code, week_start, week_end, record.net_pay_cents,
    )
    return record


def update_payment_record(caller, record_id: int, payload: dict) -> PaymentRecord:
    """
    Partial update. Accepts basic_salary_cents, overtime, bonuses, deductions,
    payment_status, payment_method and notes; other keys (including derived
    totals) are ignored.
    """
    require_role(caller, ROLE_ADMIN, "Only admins can update payment records")
    record = _get_record_or_404(record_id)
    payload = payload or {}

    # Parse everything before touching the record
    changes = {}
    if "basic_salary_cents" in payload:
        changes["basic_salary_cents"] = parse_cents(payload["basic_salary_cents"], "basic_salary_cents")
    if "overtime" in payload:
        hours, rate, amount = _parse_overtime(payload["overtime"])
        changes.update(overtime_hours=hours, overtime_rate_cents=rate, overtime_amount_cents=amount)
    if payload.get("payment_method") not in (None, ""):
        changes["payment_method"] = parse_choice(payload["payment_method"], "payment_method", PAYMENT_METHODS)
    if "notes" in payload:
        changes["notes"] = _parse_notes(payload["notes"])
    bonuses = parse_line_items(payload["bonuses"], "bonuses") if "bonuses" in payload else None
    deductions = parse_line_items(payload["deductions"], "deductions") if "deductions" in payload else None
    status = None
    if payload.get("payment_status") not in (None, ""):
        status = parse_choice(payload["payment_status"], "payment_status", PAYMENT_STATUSES)

    for key, value in changes.items():
        setattr(record, key, value)
    if bonuses is not None:
        _replace_adjustments(record, ADJUSTMENT_BONUS, bonuses)
    if deductions is not None:
        _replace_adjustments(record, ADJUSTMENT_DEDUCTION, deductions)
    if status is not None:
        _set_status(record, status)

    try:
        recompute_totals(record)
    except ValidationError:
        db.session.rollback()
        raise
    record.updated_at = utcnow()

    _commit_record()
    return record


def mark_viewed(caller, record: PaymentRecord) -> PaymentRecord:
    """Employee only. First read stamps viewed_at; later reads change nothing."""
    require_role(caller, ROLE_EMPLOYEE)
    require_owner_or_admin(caller, employee_service.owner_user_id(record), "Not authorized to access this payment record")
    if record.is_viewed:
        return record

    record.is_viewed = True
    record.viewed_at = utcnow()
    db.session.commit()
    return record


def get_payment_record(caller, record_id: int) -> PaymentRecord:
    record = _get_record_or_404(record_id)
    require_owner_or_admin(caller, employee_service.owner_user_id(record), "Not authorized to access this payment record")
    if caller.role == ROLE_EMPLOYEE:
        mark_viewed(caller, record)
    return record


def delete_payment_record(caller, record_id: int) -> None:
    require_role(caller, ROLE_ADMIN, "Only admins can delete payment records")
    record = _get_record_or_404(record_id)

    db.session.delete(record)
    db.session.commit()

    current_app.logger.info("Payment record %s deleted by user %s", record_id, caller.id)


def _page_args(page, limit) -> tuple[int, int]:
    config = current_app.config
    default_limit = int(config.get("DEFAULT_PAGE_SIZE", 10))
    max_limit = int(config.get("MAX_PAGE_SIZE", 100))

    page = page if isinstance(page, int) and page > 0 else 1
    limit = limit if isinstance(limit, int) and limit > 0 else default_limit
    return page, min(limit, max_limit)


def list_payment_records(
    caller,
    *,
    status: str | None = None,
    employee_id: int | None = None,
    start_date=None,
    end_date=None,
    page: int | None = None,
    limit: int | None = None,
) -> Page:
    """
    Newest week first. Employees only see their own records, so filtering by
    another employee yields nothing.
    """
    query = scope_to_caller(db.session.query(PaymentRecord), caller, PaymentRecord.employee_id)

    if status:
        query = query.filter(PaymentRecord.payment_status == parse_choice(status, "status", PAYMENT_STATUSES))
    if employee_id is not None:
        query = query.filter(PaymentRecord.employee_id == employee_id)
    if start_date:
        query = query.filter(PaymentRecord.week_start_date >= parse_date(start_date, "start_date"))
    if end_date:
        query = query.filter(PaymentRecord.week_end_date <= parse_date(end_date, "end_date"))

    page, limit = _page_args(page, limit)
    total = query.count()
    items = (
        query.order_by(PaymentRecord.week_start_date.desc(), PaymentRecord.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return Page(items=items, page=page, limit=limit, total=total)


def _aggregate(query) -> dict:
    rows = (
        query.with_entities(
            PaymentRecord.payment_status,
            func.count(PaymentRecord.id),
            func.coalesce(func.sum(PaymentRecord.net_pay_cents), 0),
        )
        .group_by(PaymentRecord.payment_status)
        .all()
    )
    by_status = {status: {"count": 0, "net_pay_cents": 0} for status in PAYMENT_STATUSES}
    for status, count, net in rows:
        by_status[status] = {"count": int(count), "net_pay_cents": int(net)}

    return {
        "by_status": by_status,
        "total_records": sum(v["count"] for v in by_status.values()),
        "total_paid_cents": by_status["paid"]["net_pay_cents"],
        "total_pending_cents": by_status["pending"]["net_pay_cents"],
        "total_net_pay_cents": sum(v["net_pay_cents"] for v in by_status.values()),
    }


def payment_stats(caller) -> dict:
    require_role(caller, ROLE_ADMIN, "Only admins can view payment statistics")
    return _aggregate(db.session.query(PaymentRecord))


def my_payment_summary(caller) -> dict:
    require_role(caller, ROLE_EMPLOYEE, "Only employees have a payment summary")
    employee = employee_service.find_by_user(caller.id)

    scoped = db.session.query(PaymentRecord).filter(PaymentRecord.employee_id == employee.id)
    last_payment = scoped.order_by(PaymentRecord.created_at.desc(), PaymentRecord.id.desc()).first()

    user = employee.user
    return {
        "employee": {
            "id": employee.id,
            "employee_code": employee.employee_code,
            "name": user.name,
            "email": user.email,
            "department": user.department,
            "position": user.position,
        },
        "summary": _aggregate(scoped),
        "last_payment": last_payment.to_dict() if last_payment else None,
    }
