from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from sqlalchemy import Boolean, Date, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .time_utils import parse_iso_date


# Maximum amount: $9,999,999.99 (999,999,999 cents)
MAX_AMOUNT_CENTS = 999_999_999


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{col.key} must be an integer")
        return value

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    if isinstance(coltype, Date):
        return parse_date(value, col.key)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
    ignore_unknown: bool = False,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    ignore_unknown=True drops keys outside the policy instead of rejecting
    them, for payloads that carry fields destined for several models.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            if ignore_unknown:
                continue
            raise ValidationError(f"Field not allowed: {k}")

        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


# -- scalar parsers -----------------------------------------------------------


def parse_float(
    value: Any,
    field: str,
    *,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """
    Parse a finite float from a JSON number or numeric string.

    Booleans, blanks, NaN and infinities are rejected so that nothing
    non-numeric is ever persisted into a coordinate column.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(f"{field} must be a number")
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field} must be a number")
    if math.isnan(result) or math.isinf(result):
        raise ValidationError(f"{field} must be a finite number")
    if min_value is not None and result < min_value:
        raise ValidationError(f"{field} must be >= {min_value:g}")
    if max_value is not None and result > max_value:
        raise ValidationError(f"{field} must be <= {max_value:g}")
    return result


def parse_optional_float(value: Any, field: str, **kwargs) -> float | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_float(value, field, **kwargs)


def parse_cents(value: Any, field: str) -> int:
    """Non-negative integer amount in cents."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer amount in cents")
    if isinstance(value, str):
        stripped = value.strip()
        if not (stripped.isascii() and stripped.isdigit()):
            raise ValidationError(f"{field} must be an integer amount in cents")
        value = int(stripped)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer amount in cents (no decimals)")
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer amount in cents")
    if value < 0:
        raise ValidationError(f"{field} must be >= 0")
    if value > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS}")
    return value


def parse_date(value: Any, field: str) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO-8601 date")
    try:
        parsed = parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date")
    if parsed is None:
        raise ValidationError(f"{field} is required")
    return parsed


def parse_choice(value: Any, field: str, choices: Iterable[str]) -> str:
    allowed = tuple(choices)
    if value not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(allowed)}")
    return value


def parse_line_items(value: Any, field: str) -> list[tuple[str, int]]:
    """Ordered [{description, amount_cents}] list -> [(description, amount_cents)]."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{field} must be a list")
    items = []
    for index, raw in enumerate(value):
        if not isinstance(raw, dict):
            raise ValidationError(f"{field}[{index}] must be an object")
        description = str(raw.get("description") or "").strip()
        if not description:
            raise ValidationError(f"{field}[{index}].description is required")
        if len(description) > 255:
            raise ValidationError(f"{field}[{index}].description exceeds max length 255")
        if "amount_cents" not in raw:
            raise ValidationError(f"{field}[{index}].amount_cents is required")
        items.append((description, parse_cents(raw["amount_cents"], f"{field}[{index}].amount_cents")))
    return items


def require_fields(payload: dict, *fields: str) -> None:
    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
