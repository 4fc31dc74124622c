from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

# Fixed-point scales used everywhere a quantity or amount is reported
MONEY_QUANT = Decimal("0.01")
KG_QUANT = Decimal("0.001")
RATE_QUANT = Decimal("0.0001")

ZERO = Decimal("0")


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a JSON/ORM value into a finite Decimal.

    - None -> None
    - bool is rejected (it is an int subclass)
    - float goes through its shortest repr so 12.5 stays 12.5
    Raises ValueError for anything that is not a finite number.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValueError("empty number")
        try:
            result = Decimal(stripped)
        except InvalidOperation:
            raise ValueError(f"not a number: {value!r}")
    else:
        raise ValueError(f"not a number: {value!r}")

    if not result.is_finite():
        raise ValueError("number must be finite")
    return result


def money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def kg(value: Decimal) -> Decimal:
    return value.quantize(KG_QUANT, rounding=ROUND_HALF_UP)


def rate(value: Decimal) -> Decimal:
    return value.quantize(RATE_QUANT, rounding=ROUND_HALF_UP)


def to_json_number(value: Optional[Decimal]) -> Optional[str]:
    """Decimals serialize as plain strings ("1200.00") so clients never see float drift."""
    if value is None:
        return None
    return format(value, "f")
