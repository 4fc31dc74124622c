from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from meatbook.time_utils import parse_iso_date, parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from meatbook.decimal_utils import to_decimal


# Upper bounds keep a typo (an extra zero or three) from landing in the books
MAX_QUANTITY_KG = Decimal("100000")
MAX_AMOUNT = Decimal("999999999.99")

MEAT_TYPES = ("chicken", "goat", "mutton", "beef", "kadai")
PRODUCT_CUTS = ("whole", "breast", "leg", "wing", "boneless", "other")

DEFAULT_MEAT_TYPE = "chicken"
DEFAULT_PRODUCT_CUT = "whole"


class ValidationError(ValueError):
    """400-level input problem."""


class InvalidDateError(ValidationError):
    """400-level malformed calendar day."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., selling more than was purchased)."""


class NotFoundError(LookupError):
    """404-level missing vendor, hotel, purchase, sale or payment."""


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

    # Decimals (quantities, rates, amounts) - never floats
    if isinstance(coltype, Numeric):
        try:
            return to_decimal(value)
        except ValueError:
            raise ValidationError(f"{col.key} must be a number")

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower() or '.' in stripped:
                raise ValidationError(f"{col.key} must be a plain integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        raise ValidationError(f"{col.key} must be an integer")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise ValidationError(f"{col.key} must be a boolean")

    # Calendar days (before DateTime; a datetime is also a date)
    if isinstance(coltype, Date) and not isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            return parse_date_param(value, field=col.key)
        raise ValidationError(f"{col.key} must be a YYYY-MM-DD date")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Tag lists
    if isinstance(coltype, JSON):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValidationError(f"{col.key} must be a list of strings")
        return [v.strip() for v in value if v.strip()]

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
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

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def parse_date_param(value: str | None, *, field: str = "date") -> date | None:
    """Parse a query/body calendar day; InvalidDateError on malformed input."""
    try:
        return parse_iso_date(value)
    except ValueError:
        raise InvalidDateError(f"{field} must be a YYYY-MM-DD date")


def normalize_category(meat_type: str | None, product_cut: str | None) -> tuple[str, str]:
    """Lower-case the category pair, fill defaults, and reject unknown values."""
    meat = (meat_type or DEFAULT_MEAT_TYPE).strip().lower()
    cut = (product_cut or DEFAULT_PRODUCT_CUT).strip().lower()
    if meat not in MEAT_TYPES:
        raise ValidationError("Invalid meat type")
    if cut not in PRODUCT_CUTS:
        raise ValidationError("Invalid product cut")
    return meat, cut


def enforce_rules_trade_line(patch: dict) -> None:
    """Quantity and rate rules shared by purchases, retail sales and hotel bill items."""
    quantity = patch.get("quantity_kg")
    if quantity is None:
        raise ValidationError("quantity_kg is required")
    if quantity < 0:
        raise ValidationError("quantity_kg must be >= 0")
    if quantity > MAX_QUANTITY_KG:
        raise ValidationError(f"quantity_kg cannot exceed {MAX_QUANTITY_KG}")

    rate_per_kg = patch.get("rate_per_kg")
    if rate_per_kg is None:
        raise ValidationError("rate_per_kg is required")
    if rate_per_kg < 0:
        raise ValidationError("rate_per_kg must be >= 0")
    if rate_per_kg > MAX_AMOUNT:
        raise ValidationError(f"rate_per_kg cannot exceed {MAX_AMOUNT}")
    if quantity * rate_per_kg > MAX_AMOUNT:
        raise ValidationError(f"total cannot exceed {MAX_AMOUNT}")


def enforce_rules_vendor_payment(patch: dict) -> None:
    amount = patch.get("amount")
    if amount is None:
        raise ValidationError("amount is required")
    if amount <= 0:
        raise ValidationError("amount must be > 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"amount cannot exceed {MAX_AMOUNT}")
