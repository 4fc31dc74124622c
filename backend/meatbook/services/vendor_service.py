# Overview: Service-layer operations for vendors and vendor payments; owns the vendor balance.

"""
Vendor Service

Vendors are scoped to the owning user via user_id.

BALANCE INVARIANT:
    vendor.balance == SUM(purchase.total) - SUM(vendor_payment.amount)

Every write that moves the balance (purchase create/delete here and in
purchase_service, payment create/delete here) does so inside one atomic()
unit: the vendor row is locked, the delta and the record insert/delete are
flushed together, and the commit is retried on lock/stale-version errors.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Purchase, Vendor, VendorPayment
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    enforce_rules_vendor_payment,
    validate_payload,
)
from meatbook.decimal_utils import ZERO, money
from meatbook.time_utils import today_utc
from .concurrency import atomic, lock_for_update


class VendorNotFoundError(NotFoundError):
    """Raised when a vendor is not found."""
    pass


class PaymentNotFoundError(NotFoundError):
    """Raised when a vendor payment is not found."""
    pass


class VendorInUseError(ConflictError):
    """Raised when deleting a vendor that still has purchases or payments."""
    pass


VENDOR_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "notes", "specializations"},
    required_on_create={"name", "phone"},
)

PAYMENT_POLICY = ModelValidationPolicy(
    writable_fields={"vendor_id", "amount", "notes", "date"},
    required_on_create={"vendor_id", "amount"},
)


def _vendor_query(vendor_id: int, user_id: int | None):
    query = db.session.query(Vendor).filter(Vendor.id == vendor_id)
    if user_id is not None:
        query = query.filter(Vendor.user_id == user_id)
    return query


def get_vendor(vendor_id: int, *, user_id: int | None = None) -> Vendor:
    """
    Get a vendor by ID, optionally scoped to a user.

    Raises:
        VendorNotFoundError: If vendor not found (or owned by someone else)
    """
    vendor = _vendor_query(vendor_id, user_id).first()
    if not vendor:
        raise VendorNotFoundError(f"Vendor {vendor_id} not found")
    return vendor


def lock_vendor(vendor_id: int, *, user_id: int | None = None) -> Vendor:
    """Load a vendor row FOR UPDATE inside the caller's transaction."""
    vendor = lock_for_update(_vendor_query(vendor_id, user_id)).first()
    if not vendor:
        raise VendorNotFoundError(f"Vendor {vendor_id} not found")
    return vendor


def apply_balance_delta(vendor: Vendor, delta: Decimal) -> None:
    """Move the vendor balance by delta (positive = more owed). Caller commits."""
    vendor.balance = money((vendor.balance or ZERO) + delta)


def list_vendors(user_id: int, *, search: str | None = None) -> list[Vendor]:
    query = db.session.query(Vendor).filter(Vendor.user_id == user_id)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            db.or_(
                Vendor.name.ilike(search_term),
                Vendor.phone.ilike(search_term),
            )
        )
    return query.order_by(Vendor.name.asc(), Vendor.id.asc()).all()


def create_vendor(
    *,
    user_id: int,
    name: str | None,
    phone: str | None,
    notes: str | None = None,
    specializations: list[str] | None = None,
) -> Vendor:
    """
    Create a new vendor with a zero balance.

    Raises:
        ValidationError: If name/phone are missing or fields are malformed
    """
    payload = {"name": name, "phone": phone, "notes": notes}
    if specializations is not None:
        payload["specializations"] = specializations
    patch = validate_payload(model=Vendor, payload=payload, policy=VENDOR_POLICY, partial=False)

    vendor = Vendor(user_id=user_id, balance=Decimal("0.00"), **patch)
    db.session.add(vendor)
    db.session.commit()
    return vendor


def update_vendor(vendor_id: int, *, user_id: int, payload: dict) -> Vendor:
    """
    Patch name/phone/notes/specializations. Balance is not client-writable.

    Raises:
        VendorNotFoundError: If vendor not found
        ValidationError: If validation fails
    """
    patch = validate_payload(model=Vendor, payload=payload, policy=VENDOR_POLICY, partial=True)

    def _op():
        vendor = get_vendor(vendor_id, user_id=user_id)
        for key, value in patch.items():
            setattr(vendor, key, value)
        db.session.flush()
        return vendor

    return atomic(_op)


def delete_vendor(vendor_id: int, *, user_id: int) -> None:
    """
    Delete a vendor with no history.

    Raises:
        VendorNotFoundError: If vendor not found
        VendorInUseError: If purchases or payments still reference the vendor
    """
    vendor = get_vendor(vendor_id, user_id=user_id)

    purchase_count = db.session.query(Purchase).filter_by(vendor_id=vendor.id).count()
    payment_count = db.session.query(VendorPayment).filter_by(vendor_id=vendor.id).count()
    if purchase_count or payment_count:
        raise VendorInUseError(
            f"Vendor {vendor_id} has {purchase_count} purchases and {payment_count} payments"
        )

    db.session.delete(vendor)
    db.session.commit()


# ---------------------------------------------------------------------------
# Vendor payments
# ---------------------------------------------------------------------------

def get_vendor_payment(payment_id: int, *, user_id: int | None = None) -> VendorPayment:
    query = db.session.query(VendorPayment).filter(VendorPayment.id == payment_id)
    if user_id is not None:
        query = query.filter(VendorPayment.user_id == user_id)
    payment = query.first()
    if not payment:
        raise PaymentNotFoundError(f"Vendor payment {payment_id} not found")
    return payment


def list_vendor_payments(
    user_id: int,
    *,
    vendor_id: int | None = None,
    day: date | None = None,
) -> list[VendorPayment]:
    query = db.session.query(VendorPayment).filter(VendorPayment.user_id == user_id)
    if vendor_id is not None:
        query = query.filter(VendorPayment.vendor_id == vendor_id)
    if day is not None:
        query = query.filter(VendorPayment.date == day)
    return query.order_by(VendorPayment.date.asc(), VendorPayment.id.asc()).all()


def create_vendor_payment(
    *,
    user_id: int,
    vendor_id,
    amount,
    notes: str | None = None,
    day=None,
) -> VendorPayment:
    """
    Record a payment and reduce the vendor's balance by its amount.

    Raises:
        ValidationError: If amount is missing, not a number, or <= 0
        VendorNotFoundError: If the vendor does not exist for this user
    """
    payload = {"vendor_id": vendor_id, "amount": amount, "notes": notes}
    if day is not None:
        payload["date"] = day
    patch = validate_payload(model=VendorPayment, payload=payload, policy=PAYMENT_POLICY, partial=False)
    enforce_rules_vendor_payment(patch)
    patch["amount"] = money(patch["amount"])
    patch["date"] = patch.get("date") or today_utc()

    def _op():
        vendor = lock_vendor(patch["vendor_id"], user_id=user_id)
        payment = VendorPayment(user_id=user_id, **patch)
        db.session.add(payment)
        apply_balance_delta(vendor, -payment.amount)
        db.session.flush()
        return payment

    payment = atomic(_op)
    current_app.logger.info(
        "Vendor payment %s recorded: vendor=%s amount=%s", payment.id, payment.vendor_id, payment.amount
    )
    return payment


def delete_vendor_payment(payment_id: int, *, user_id: int) -> None:
    """
    Delete a payment and add its amount back to the vendor's balance.

    Raises:
        PaymentNotFoundError: If the payment does not exist for this user
    """
    def _op():
        payment = get_vendor_payment(payment_id, user_id=user_id)
        vendor = lock_vendor(payment.vendor_id)
        apply_balance_delta(vendor, payment.amount)
        db.session.delete(payment)
        db.session.flush()
        return payment.vendor_id, payment.amount

    vendor_id, amount = atomic(_op)
    current_app.logger.info(
        "Vendor payment %s deleted: vendor=%s amount=%s restored", payment_id, vendor_id, amount
    )
