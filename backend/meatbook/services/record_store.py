# Overview: Record store boundary between persistence and the summary engine.

"""
Record Store

The summary engine reads through this interface only. Each backend converts
its own rows into the plain records in records.py; the aggregation code
itself exists once, in summary_service.

Backends:
- SqlAlchemyRecordStore: canonical, reads the Flask-SQLAlchemy session.
- InMemoryRecordStore: lists of records held in process (embedding, tests).

The app reads through the backend named by the RECORD_STORE config key;
only "sqlalchemy" is accepted there, since that is where the services write.

Day filters compare the record's stored calendar day (the `date` column),
never the creation timestamp, so a purchase entered just after midnight
still lands on the business day it was booked for.
"""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from datetime import date
from typing import Callable

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import HotelSale, Purchase, RetailSale, Vendor, VendorPayment
from .records import (
    HotelSaleItemRecord,
    HotelSaleRecord,
    PurchaseRecord,
    RetailSaleRecord,
    VendorPaymentRecord,
    VendorRecord,
)


class StoreUnavailableError(Exception):
    """Raised when the backing store cannot be read. Never masked as an empty result."""
    pass


class RecordStore(ABC):
    @abstractmethod
    def get_purchases(self, user_id: int, day: date | None = None) -> list[PurchaseRecord]:
        ...

    @abstractmethod
    def get_retail_sales(self, user_id: int, day: date | None = None) -> list[RetailSaleRecord]:
        ...

    @abstractmethod
    def get_hotel_sales(self, user_id: int, day: date | None = None) -> list[HotelSaleRecord]:
        ...

    @abstractmethod
    def get_vendor_payments(
        self, user_id: int, vendor_id: int | None = None, day: date | None = None
    ) -> list[VendorPaymentRecord]:
        ...

    @abstractmethod
    def get_vendor(self, vendor_id: int) -> VendorRecord | None:
        ...

    @abstractmethod
    def update_vendor(self, vendor_id: int, **patch) -> VendorRecord | None:
        ...


# ---------------------------------------------------------------------------
# SQLAlchemy
# ---------------------------------------------------------------------------

def vendor_record(vendor: Vendor) -> VendorRecord:
    return VendorRecord(
        id=vendor.id,
        user_id=vendor.user_id,
        name=vendor.name,
        phone=vendor.phone,
        balance=vendor.balance,
        notes=vendor.notes,
        specializations=tuple(vendor.specializations or ()),
    )


def purchase_record(purchase: Purchase) -> PurchaseRecord:
    return PurchaseRecord(
        id=purchase.id,
        user_id=purchase.user_id,
        vendor_id=purchase.vendor_id,
        meat_type=purchase.meat_type,
        product_cut=purchase.product_cut,
        quantity_kg=purchase.quantity_kg,
        rate_per_kg=purchase.rate_per_kg,
        total=purchase.total,
        date=purchase.date,
        timestamp=purchase.timestamp,
        vendor_name=purchase.vendor.name if purchase.vendor else None,
    )


def retail_sale_record(sale: RetailSale) -> RetailSaleRecord:
    return RetailSaleRecord(
        id=sale.id,
        user_id=sale.user_id,
        meat_type=sale.meat_type,
        product_cut=sale.product_cut,
        quantity_kg=sale.quantity_kg,
        rate_per_kg=sale.rate_per_kg,
        total=sale.total,
        date=sale.date,
        timestamp=sale.timestamp,
    )


def hotel_sale_record(sale: HotelSale) -> HotelSaleRecord:
    return HotelSaleRecord(
        id=sale.id,
        user_id=sale.user_id,
        hotel_id=sale.hotel_id,
        hotel_name=sale.hotel_name,
        bill_number=sale.bill_number,
        is_paid=sale.is_paid,
        total_amount=sale.total_amount,
        date=sale.date,
        timestamp=sale.timestamp,
        items=tuple(
            HotelSaleItemRecord(
                id=item.id,
                sale_id=sale.id,
                meat_type=item.meat_type,
                product_cut=item.product_cut,
                quantity_kg=item.quantity_kg,
                rate_per_kg=item.rate_per_kg,
                total=item.total,
            )
            for item in sale.items
        ),
    )


def vendor_payment_record(payment: VendorPayment) -> VendorPaymentRecord:
    return VendorPaymentRecord(
        id=payment.id,
        user_id=payment.user_id,
        vendor_id=payment.vendor_id,
        amount=payment.amount,
        date=payment.date,
        timestamp=payment.timestamp,
        notes=payment.notes,
        vendor_name=payment.vendor.name if payment.vendor else None,
    )


class SqlAlchemyRecordStore(RecordStore):
    """Reads rows through a SQLAlchemy session, in id order within a day."""

    def __init__(self, session=None) -> None:
        self.session = session if session is not None else db.session

    def _fetch(self, what: str, build):
        try:
            return build()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreUnavailableError(f"Failed to load {what}") from exc

    def get_purchases(self, user_id: int, day: date | None = None) -> list[PurchaseRecord]:
        def _build():
            query = self.session.query(Purchase).options(selectinload(Purchase.vendor)).filter(
                Purchase.user_id == user_id
            )
            if day is not None:
                query = query.filter(Purchase.date == day)
            return [purchase_record(p) for p in query.order_by(Purchase.id.asc()).all()]
        return self._fetch("purchases", _build)

    def get_retail_sales(self, user_id: int, day: date | None = None) -> list[RetailSaleRecord]:
        def _build():
            query = self.session.query(RetailSale).filter(RetailSale.user_id == user_id)
            if day is not None:
                query = query.filter(RetailSale.date == day)
            return [retail_sale_record(s) for s in query.order_by(RetailSale.id.asc()).all()]
        return self._fetch("retail sales", _build)

    def get_hotel_sales(self, user_id: int, day: date | None = None) -> list[HotelSaleRecord]:
        def _build():
            query = self.session.query(HotelSale).options(selectinload(HotelSale.items)).filter(
                HotelSale.user_id == user_id
            )
            if day is not None:
                query = query.filter(HotelSale.date == day)
            return [hotel_sale_record(s) for s in query.order_by(HotelSale.id.asc()).all()]
        return self._fetch("hotel sales", _build)

    def get_vendor_payments(
        self, user_id: int, vendor_id: int | None = None, day: date | None = None
    ) -> list[VendorPaymentRecord]:
        def _build():
            query = self.session.query(VendorPayment).options(selectinload(VendorPayment.vendor)).filter(
                VendorPayment.user_id == user_id
            )
            if vendor_id is not None:
                query = query.filter(VendorPayment.vendor_id == vendor_id)
            if day is not None:
                query = query.filter(VendorPayment.date == day)
            return [vendor_payment_record(p) for p in query.order_by(VendorPayment.id.asc()).all()]
        return self._fetch("vendor payments", _build)

    def get_vendor(self, vendor_id: int) -> VendorRecord | None:
        def _build():
            vendor = self.session.query(Vendor).filter_by(id=vendor_id).first()
            return vendor_record(vendor) if vendor else None
        return self._fetch("vendor", _build)

    def update_vendor(self, vendor_id: int, **patch) -> VendorRecord | None:
        def _build():
            vendor = self.session.query(Vendor).filter_by(id=vendor_id).first()
            if vendor is None:
                return None
            for key, value in patch.items():
                setattr(vendor, key, value)
            self.session.flush()
            return vendor_record(vendor)
        return self._fetch("vendor", _build)


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

class InMemoryRecordStore(RecordStore):
    """
    Plain lists of records. Insertion order is preserved, which is also the
    order the summary timeline falls back to on equal timestamps.
    """

    def __init__(self) -> None:
        self.vendors: dict[int, VendorRecord] = {}
        self.purchases: list[PurchaseRecord] = []
        self.retail_sales: list[RetailSaleRecord] = []
        self.hotel_sales: list[HotelSaleRecord] = []
        self.vendor_payments: list[VendorPaymentRecord] = []

    def add(self, record) -> None:
        if isinstance(record, VendorRecord):
            self.vendors[record.id] = record
        elif isinstance(record, PurchaseRecord):
            self.purchases.append(record)
        elif isinstance(record, RetailSaleRecord):
            self.retail_sales.append(record)
        elif isinstance(record, HotelSaleRecord):
            self.hotel_sales.append(record)
        elif isinstance(record, VendorPaymentRecord):
            self.vendor_payments.append(record)
        else:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

    @staticmethod
    def _matches(record, user_id: int, day: date | None) -> bool:
        return record.user_id == user_id and (day is None or record.date == day)

    def get_purchases(self, user_id: int, day: date | None = None) -> list[PurchaseRecord]:
        return [p for p in self.purchases if self._matches(p, user_id, day)]

    def get_retail_sales(self, user_id: int, day: date | None = None) -> list[RetailSaleRecord]:
        return [s for s in self.retail_sales if self._matches(s, user_id, day)]

    def get_hotel_sales(self, user_id: int, day: date | None = None) -> list[HotelSaleRecord]:
        return [s for s in self.hotel_sales if self._matches(s, user_id, day)]

    def get_vendor_payments(
        self, user_id: int, vendor_id: int | None = None, day: date | None = None
    ) -> list[VendorPaymentRecord]:
        return [
            p for p in self.vendor_payments
            if self._matches(p, user_id, day) and (vendor_id is None or p.vendor_id == vendor_id)
        ]

    def get_vendor(self, vendor_id: int) -> VendorRecord | None:
        return self.vendors.get(vendor_id)

    def update_vendor(self, vendor_id: int, **patch) -> VendorRecord | None:
        vendor = self.vendors.get(vendor_id)
        if vendor is None:
            return None
        updated = dataclasses.replace(vendor, **patch)
        self.vendors[vendor_id] = updated
        return updated


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

# Only backends the CRUD services write through can be selected here.
# InMemoryRecordStore is never filled by the app, so it is built directly
# by embedding callers and tests instead.
RECORD_STORES: dict[str, Callable[[], RecordStore]] = {
    "sqlalchemy": lambda: SqlAlchemyRecordStore(db.session),
}


def get_record_store() -> RecordStore:
    """
    Record store configured for the current app (RECORD_STORE).

    Raises ValueError for any name the write path does not use, including
    "memory", rather than serving reports from an empty store.
    """
    name = current_app.config.get("RECORD_STORE", "sqlalchemy")
    factory = RECORD_STORES.get(name)
    if factory is None:
        raise ValueError(
            f"Unknown RECORD_STORE: {name!r} (expected one of {sorted(RECORD_STORES)})"
        )
    return factory()
