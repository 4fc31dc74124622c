# Overview: Plain record types exchanged between the record store and the summary engine.

"""
Record types

The summary engine never sees ORM rows. A RecordStore hands it these frozen
dataclasses, so the same aggregation code runs against SQLAlchemy, an
in-memory list, or anything else that can produce them.

All quantities and amounts are Decimal. Timestamps are UTC-naive datetimes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from meatbook.decimal_utils import to_json_number
from meatbook.time_utils import to_iso_date, to_utc_z


CategoryKey = tuple[str, str]

TransactionType = Literal["purchase", "retail", "hotel", "payment"]


def category_label(key: CategoryKey) -> str:
    """Render (meat_type, product_cut) the way reports show it: "chicken-whole"."""
    return f"{key[0]}-{key[1]}"


@dataclass(frozen=True)
class VendorRecord:
    id: int
    user_id: int
    name: str
    phone: str
    balance: Decimal
    notes: str | None = None
    specializations: tuple[str, ...] = ()


@dataclass(frozen=True)
class PurchaseRecord:
    id: int
    user_id: int
    vendor_id: int
    meat_type: str
    product_cut: str
    quantity_kg: Decimal
    rate_per_kg: Decimal
    total: Decimal
    date: date
    timestamp: datetime
    vendor_name: str | None = None

    @property
    def category(self) -> CategoryKey:
        return (self.meat_type, self.product_cut)


@dataclass(frozen=True)
class RetailSaleRecord:
    id: int
    user_id: int
    meat_type: str
    product_cut: str
    quantity_kg: Decimal
    rate_per_kg: Decimal
    total: Decimal
    date: date
    timestamp: datetime

    @property
    def category(self) -> CategoryKey:
        return (self.meat_type, self.product_cut)


@dataclass(frozen=True)
class HotelSaleItemRecord:
    id: int
    sale_id: int
    meat_type: str
    product_cut: str
    quantity_kg: Decimal
    rate_per_kg: Decimal
    total: Decimal

    @property
    def category(self) -> CategoryKey:
        return (self.meat_type, self.product_cut)


@dataclass(frozen=True)
class HotelSaleRecord:
    id: int
    user_id: int
    hotel_id: int | None
    hotel_name: str
    bill_number: str | None
    is_paid: bool
    total_amount: Decimal
    date: date
    timestamp: datetime
    items: tuple[HotelSaleItemRecord, ...] = ()


@dataclass(frozen=True)
class VendorPaymentRecord:
    id: int
    user_id: int
    vendor_id: int
    amount: Decimal
    date: date
    timestamp: datetime
    notes: str | None = None
    vendor_name: str | None = None


@dataclass(frozen=True)
class DayRecords:
    """Everything one user recorded on one calendar day."""
    purchases: tuple[PurchaseRecord, ...] = ()
    retail_sales: tuple[RetailSaleRecord, ...] = ()
    hotel_sales: tuple[HotelSaleRecord, ...] = ()
    vendor_payments: tuple[VendorPaymentRecord, ...] = ()


@dataclass(frozen=True)
class Transaction:
    """One row of the daily timeline, normalized across record kinds."""
    id: int
    type: TransactionType
    details: str
    quantity_kg: Decimal
    rate_per_kg: Decimal
    total: Decimal
    timestamp: datetime
    meat_type: str | None = None
    product_cut: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "details": self.details,
            "quantity_kg": to_json_number(self.quantity_kg),
            "rate_per_kg": to_json_number(self.rate_per_kg),
            "total": to_json_number(self.total),
            "timestamp": to_utc_z(self.timestamp),
            "meat_type": self.meat_type,
            "product_cut": self.product_cut,
        }


@dataclass(frozen=True)
class ProductInventory:
    meat_type: str
    product_cut: str
    purchased_kg: Decimal
    sold_kg: Decimal
    remaining_kg: Decimal
    avg_cost_per_kg: Decimal
    purchase_cost: Decimal
    sales_revenue: Decimal
    profit: Decimal

    def to_dict(self) -> dict:
        return {
            "meat_type": self.meat_type,
            "product_cut": self.product_cut,
            "purchased_kg": to_json_number(self.purchased_kg),
            "sold_kg": to_json_number(self.sold_kg),
            "remaining_kg": to_json_number(self.remaining_kg),
            "avg_cost_per_kg": to_json_number(self.avg_cost_per_kg),
            "purchase_cost": to_json_number(self.purchase_cost),
            "sales_revenue": to_json_number(self.sales_revenue),
            "profit": to_json_number(self.profit),
        }


@dataclass(frozen=True)
class DailySummary:
    """
    Derived totals for one user and one calendar day.

    remaining_kg is over all categories combined; inventory[].remaining_kg is
    per category. Both are clamped at zero independently, so they need not
    add up when one category is oversold.
    """
    date: date
    total_purchased_kg: Decimal
    total_purchase_cost: Decimal
    total_retail_sales_kg: Decimal
    total_retail_sales_revenue: Decimal
    total_retail_profit: Decimal
    total_hotel_sales_kg: Decimal
    total_hotel_sales_revenue: Decimal
    total_hotel_profit: Decimal
    total_sold_kg: Decimal
    remaining_kg: Decimal
    net_profit: Decimal
    vendor_payments: Decimal
    hotel_bill_count: int
    unpaid_hotel_total: Decimal
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)
    inventory: tuple[ProductInventory, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "date": to_iso_date(self.date),
            "total_purchased_kg": to_json_number(self.total_purchased_kg),
            "total_purchase_cost": to_json_number(self.total_purchase_cost),
            "total_retail_sales_kg": to_json_number(self.total_retail_sales_kg),
            "total_retail_sales_revenue": to_json_number(self.total_retail_sales_revenue),
            "total_retail_profit": to_json_number(self.total_retail_profit),
            "total_hotel_sales_kg": to_json_number(self.total_hotel_sales_kg),
            "total_hotel_sales_revenue": to_json_number(self.total_hotel_sales_revenue),
            "total_hotel_profit": to_json_number(self.total_hotel_profit),
            "total_sold_kg": to_json_number(self.total_sold_kg),
            "remaining_kg": to_json_number(self.remaining_kg),
            "net_profit": to_json_number(self.net_profit),
            "vendor_payments": to_json_number(self.vendor_payments),
            "hotel_bill_count": self.hotel_bill_count,
            "unpaid_hotel_total": to_json_number(self.unpaid_hotel_total),
            "transactions": [t.to_dict() for t in self.transactions],
            "inventory": [i.to_dict() for i in self.inventory],
        }
