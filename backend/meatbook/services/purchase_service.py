# Overview: Service-layer operations for purchases; keeps the vendor balance in step.

from __future__ import annotations

from datetime import date

from flask import current_app

from ..extensions import db
from ..models import Purchase
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    enforce_rules_trade_line,
    normalize_category,
    validate_payload,
)
from meatbook.decimal_utils import kg, money
from meatbook.time_utils import today_utc
from .concurrency import atomic
from .vendor_service import apply_balance_delta, lock_vendor


class PurchaseNotFoundError(NotFoundError):
    """Raised when a purchase is not found."""
    pass


PURCHASE_POLICY = ModelValidationPolicy(
    writable_fields={"vendor_id", "meat_type", "product_cut", "quantity_kg", "rate_per_kg", "date"},
    required_on_create={"vendor_id", "quantity_kg", "rate_per_kg"},
)


def get_purchase(purchase_id: int, *, user_id: int | None = None) -> Purchase:
    query = db.session.query(Purchase).filter(Purchase.id == purchase_id)
    if user_id is not None:
        query = query.filter(Purchase.user_id == user_id)
    purchase = query.first()
    if not purchase:
        raise PurchaseNotFoundError(f"Purchase {purchase_id} not found")
    return purchase


def list_purchases(
    user_id: int,
    *,
    day: date | None = None,
    vendor_id: int | None = None,
) -> list[Purchase]:
    query = db.session.query(Purchase).filter(Purchase.user_id == user_id)
    if day is not None:
        query = query.filter(Purchase.date == day)
    if vendor_id is not None:
        query = query.filter(Purchase.vendor_id == vendor_id)
    return query.order_by(Purchase.date.asc(), Purchase.id.asc()).all()


def create_purchase(*, user_id: int, payload: dict) -> Purchase:
    """
    Record a purchase and add its total to the vendor's balance.

    total = quantity_kg * rate_per_kg, computed here; a client-sent total is
    not accepted.

    Raises:
        ValidationError: bad quantity/rate/category/date
        VendorNotFoundError: vendor missing or owned by another user
    """
    patch = validate_payload(model=Purchase, payload=payload, policy=PURCHASE_POLICY, partial=False)
    enforce_rules_trade_line(patch)
    patch["meat_type"], patch["product_cut"] = normalize_category(
        patch.get("meat_type"), patch.get("product_cut")
    )
    patch["quantity_kg"] = kg(patch["quantity_kg"])
    patch["rate_per_kg"] = money(patch["rate_per_kg"])
    patch["date"] = patch.get("date") or today_utc()

    def _op():
        vendor = lock_vendor(patch["vendor_id"], user_id=user_id)
        purchase = Purchase(
            user_id=user_id,
            total=money(patch["quantity_kg"] * patch["rate_per_kg"]),
            **patch,
        )
        db.session.add(purchase)
        apply_balance_delta(vendor, purchase.total)
        db.session.flush()
        return purchase

    purchase = atomic(_op)
    current_app.logger.info(
        "Purchase %s recorded: vendor=%s %s-%s %skg total=%s",
        purchase.id, purchase.vendor_id, purchase.meat_type, purchase.product_cut,
        purchase.quantity_kg, purchase.total,
    )
    return purchase


def delete_purchase(purchase_id: int, *, user_id: int) -> None:
    """
    Delete a purchase and take its total back off the vendor's balance.

    Raises:
        PurchaseNotFoundError: If the purchase does not exist for this user
    """
    def _op():
        purchase = get_purchase(purchase_id, user_id=user_id)
        vendor = lock_vendor(purchase.vendor_id)
        apply_balance_delta(vendor, -purchase.total)
        db.session.delete(purchase)
        db.session.flush()
        return purchase.vendor_id, purchase.total

    vendor_id, total = atomic(_op)
    current_app.logger.info("Purchase %s deleted: vendor=%s total=%s reversed", purchase_id, vendor_id, total)
