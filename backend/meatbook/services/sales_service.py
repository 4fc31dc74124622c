"""
Sales Service - retail sales and hotel bills

Retail sales are single lines. Hotel sales are bills with ordered line
items; the bill header's quantity_kg/total_amount are written here as the
sums of its items and never edited independently.

Stock guard: unless ALLOW_OVERSELL is set, a sale is refused when it would
take the day's sold kg above the day's purchased kg (all categories
combined). Deleting a purchase afterwards can still leave a day oversold;
reports clamp that to zero remaining.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import HotelSale, HotelSaleItem, RetailSale
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_trade_line,
    normalize_category,
    validate_payload,
)
from meatbook.decimal_utils import ZERO, kg, money
from meatbook.time_utils import today_utc
from .concurrency import atomic
from .hotel_service import get_hotel
from .record_store import get_record_store
from .summary_service import build_daily_summary


class SaleNotFoundError(NotFoundError):
    """Raised when a retail sale or hotel bill is not found."""
    pass


class InsufficientStockError(ConflictError):
    """Raised when a sale would sell more kg than were purchased that day."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


RETAIL_POLICY = ModelValidationPolicy(
    writable_fields={"meat_type", "product_cut", "quantity_kg", "rate_per_kg", "customer_note", "date"},
    required_on_create={"quantity_kg", "rate_per_kg"},
)

HOTEL_SALE_POLICY = ModelValidationPolicy(
    writable_fields={"hotel_id", "hotel_name", "bill_number", "is_paid", "date"},
    required_on_create=set(),
)

HOTEL_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"meat_type", "product_cut", "quantity_kg", "rate_per_kg"},
    required_on_create={"quantity_kg", "rate_per_kg"},
)


def _ensure_stock(user_id: int, day: date, requested_kg: Decimal) -> None:
    if current_app.config.get("ALLOW_OVERSELL"):
        return
    summary = build_daily_summary(get_record_store(), user_id, day)
    if summary.total_sold_kg + requested_kg > summary.total_purchased_kg:
        current_app.logger.warning(
            "Oversell rejected: user=%s day=%s requested=%skg remaining=%skg",
            user_id, day, requested_kg, summary.remaining_kg,
        )
        raise InsufficientStockError(
            "Cannot sell more than purchased",
            details={
                "date": day.isoformat(),
                "requested_kg": format(requested_kg, "f"),
                "remaining_kg": format(summary.remaining_kg, "f"),
            },
        )


def _trade_line(patch: dict) -> dict:
    enforce_rules_trade_line(patch)
    patch["meat_type"], patch["product_cut"] = normalize_category(
        patch.get("meat_type"), patch.get("product_cut")
    )
    patch["quantity_kg"] = kg(patch["quantity_kg"])
    patch["rate_per_kg"] = money(patch["rate_per_kg"])
    patch["total"] = money(patch["quantity_kg"] * patch["rate_per_kg"])
    return patch


# ---------------------------------------------------------------------------
# Retail
# ---------------------------------------------------------------------------

def get_retail_sale(sale_id: int, *, user_id: int | None = None) -> RetailSale:
    query = db.session.query(RetailSale).filter(RetailSale.id == sale_id)
    if user_id is not None:
        query = query.filter(RetailSale.user_id == user_id)
    sale = query.first()
    if not sale:
        raise SaleNotFoundError(f"Retail sale {sale_id} not found")
    return sale


def list_retail_sales(user_id: int, *, day: date | None = None) -> list[RetailSale]:
    query = db.session.query(RetailSale).filter(RetailSale.user_id == user_id)
    if day is not None:
        query = query.filter(RetailSale.date == day)
    return query.order_by(RetailSale.date.asc(), RetailSale.id.asc()).all()


def create_retail_sale(*, user_id: int, payload: dict) -> RetailSale:
    patch = _trade_line(
        validate_payload(model=RetailSale, payload=payload, policy=RETAIL_POLICY, partial=False)
    )
    patch["date"] = patch.get("date") or today_utc()

    _ensure_stock(user_id, patch["date"], patch["quantity_kg"])

    def _op():
        sale = RetailSale(user_id=user_id, **patch)
        db.session.add(sale)
        db.session.flush()
        return sale

    return atomic(_op)


def delete_retail_sale(sale_id: int, *, user_id: int) -> None:
    sale = get_retail_sale(sale_id, user_id=user_id)
    db.session.delete(sale)
    db.session.commit()


# ---------------------------------------------------------------------------
# Hotel bills
# ---------------------------------------------------------------------------

def get_hotel_sale(sale_id: int, *, user_id: int | None = None) -> HotelSale:
    query = db.session.query(HotelSale).filter(HotelSale.id == sale_id)
    if user_id is not None:
        query = query.filter(HotelSale.user_id == user_id)
    sale = query.first()
    if not sale:
        raise SaleNotFoundError(f"Hotel sale {sale_id} not found")
    return sale


def list_hotel_sales(
    user_id: int,
    *,
    day: date | None = None,
    hotel_id: int | None = None,
    is_paid: bool | None = None,
) -> list[HotelSale]:
    query = db.session.query(HotelSale).filter(HotelSale.user_id == user_id)
    if day is not None:
        query = query.filter(HotelSale.date == day)
    if hotel_id is not None:
        query = query.filter(HotelSale.hotel_id == hotel_id)
    if is_paid is not None:
        query = query.filter(HotelSale.is_paid.is_(is_paid))
    return query.order_by(HotelSale.date.asc(), HotelSale.id.asc()).all()


def _bill_items(payload: dict) -> list[dict]:
    """
    Line items from the request.

    A payload without "items" but with quantity_kg/rate_per_kg on the header
    is treated as a one-line bill.
    """
    raw_items = payload.get("items")
    if raw_items is None:
        header_line = {
            k: payload[k]
            for k in ("meat_type", "product_cut", "quantity_kg", "rate_per_kg")
            if k in payload
        }
        raw_items = [header_line] if header_line else []
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        try:
            patch = validate_payload(model=HotelSaleItem, payload=raw, policy=HOTEL_ITEM_POLICY, partial=False)
            items.append(_trade_line(patch))
        except ValidationError as exc:
            raise ValidationError(f"items[{index}]: {exc}") from exc
    return items


def create_hotel_sale(*, user_id: int, payload: dict) -> HotelSale:
    """
    Create a hotel bill with its items.

    Either hotel_id (an existing hotel of this user) or hotel_name is required.
    bill_number defaults to "<YYYYMMDD>-<bill id>".

    Raises:
        ValidationError: bad header or item fields
        HotelNotFoundError: hotel_id does not exist for this user
        InsufficientStockError: bill kg exceeds the day's remaining stock
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    items = _bill_items(payload)
    header = {
        k: v for k, v in payload.items()
        if k not in ("items", "meat_type", "product_cut", "quantity_kg", "rate_per_kg")
    }
    patch = validate_payload(model=HotelSale, payload=header, policy=HOTEL_SALE_POLICY, partial=False)
    patch["date"] = patch.get("date") or today_utc()
    patch["is_paid"] = bool(patch.get("is_paid") or False)

    if patch.get("hotel_id") is not None:
        hotel = get_hotel(patch["hotel_id"], user_id=user_id)
        patch["hotel_name"] = patch.get("hotel_name") or hotel.name
    elif not patch.get("hotel_name"):
        raise ValidationError("hotel_id or hotel_name is required")

    bill_kg = sum((item["quantity_kg"] for item in items), ZERO)
    _ensure_stock(user_id, patch["date"], bill_kg)

    def _op():
        sale = HotelSale(
            user_id=user_id,
            quantity_kg=kg(bill_kg),
            total_amount=money(sum((item["total"] for item in items), ZERO)),
            **patch,
        )
        for position, item in enumerate(items):
            sale.items.append(HotelSaleItem(position=position, **item))
        db.session.add(sale)
        db.session.flush()
        if not sale.bill_number:
            sale.bill_number = f"{sale.date:%Y%m%d}-{sale.id}"
            db.session.flush()
        return sale

    sale = atomic(_op)
    current_app.logger.info(
        "Hotel bill %s recorded: hotel=%r items=%s total=%s",
        sale.bill_number, sale.hotel_name, len(items), sale.total_amount,
    )
    return sale


def set_hotel_sale_paid(sale_id: int, *, user_id: int, is_paid: bool) -> HotelSale:
    def _op():
        sale = get_hotel_sale(sale_id, user_id=user_id)
        sale.is_paid = bool(is_paid)
        db.session.flush()
        return sale

    return atomic(_op)


def delete_hotel_sale(sale_id: int, *, user_id: int) -> None:
    """Delete a bill; its items go with it (delete-orphan cascade)."""
    sale = get_hotel_sale(sale_id, user_id=user_id)
    db.session.delete(sale)
    db.session.commit()
