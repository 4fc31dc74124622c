# Overview: Daily and range summary builders; the single home of the reconciliation logic.

"""
Summary Service

build_daily_summary(store, user_id, day):
    1. fetch the day's purchases, retail sales, hotel bills (with items) and
       vendor payments through the RecordStore
    2. aggregate purchases into per-category cost (inventory_service)
    3. attribute sales against the whole-day average cost (attribution_service)
    4. total_sold_kg = retail kg + hotel kg
       remaining_kg  = max(0, total_purchased_kg - total_sold_kg)
    5. net_profit = retail profit + hotel profit
       Vendor payments are cash flow, reported separately, never subtracted.
    6. merge everything into a timeline sorted by timestamp
    7. per-category inventory from the cost table and the attribution

Steps 2-7 are pure (summarize_day); only step 1 touches the store. Store
failures propagate as StoreUnavailableError.

build_range_summary recomputes each day independently; there is no
carry-over of stock or cost between days.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from meatbook.decimal_utils import ZERO, kg, money, rate, to_json_number
from meatbook.time_utils import iter_days, to_iso_date
from .attribution_service import SalesAttribution, attribute_sales
from .inventory_service import CategoryCostTable, aggregate_purchases
from .record_store import RecordStore
from .records import DailySummary, DayRecords, ProductInventory, Transaction


def fetch_day_records(store: RecordStore, user_id: int, day: date) -> DayRecords:
    return DayRecords(
        purchases=tuple(store.get_purchases(user_id, day)),
        retail_sales=tuple(store.get_retail_sales(user_id, day)),
        hotel_sales=tuple(store.get_hotel_sales(user_id, day)),
        vendor_payments=tuple(store.get_vendor_payments(user_id, None, day)),
    )


def build_timeline(records: DayRecords) -> list[Transaction]:
    """
    Normalize every record of the day into a Transaction and sort by timestamp.

    Hotel bills expand to one row per line item, stamped with the bill's
    timestamp. The sort is stable: equal timestamps keep the order
    purchases, retail, hotel items, payments, and id order within each.
    """
    rows: list[Transaction] = []

    for p in records.purchases:
        rows.append(Transaction(
            id=p.id,
            type="purchase",
            details=f"Purchase from {p.vendor_name or f'vendor {p.vendor_id}'}",
            quantity_kg=p.quantity_kg,
            rate_per_kg=p.rate_per_kg,
            total=p.total,
            timestamp=p.timestamp,
            meat_type=p.meat_type,
            product_cut=p.product_cut,
        ))

    for s in records.retail_sales:
        rows.append(Transaction(
            id=s.id,
            type="retail",
            details="Retail sale",
            quantity_kg=s.quantity_kg,
            rate_per_kg=s.rate_per_kg,
            total=s.total,
            timestamp=s.timestamp,
            meat_type=s.meat_type,
            product_cut=s.product_cut,
        ))

    for bill in records.hotel_sales:
        details = f"Sale to {bill.hotel_name}"
        if bill.bill_number:
            details += f", Bill: {bill.bill_number}"
        for item in bill.items:
            rows.append(Transaction(
                id=item.id,
                type="hotel",
                details=details,
                quantity_kg=item.quantity_kg,
                rate_per_kg=item.rate_per_kg,
                total=item.total,
                timestamp=bill.timestamp,
                meat_type=item.meat_type,
                product_cut=item.product_cut,
            ))

    for pay in records.vendor_payments:
        rows.append(Transaction(
            id=pay.id,
            type="payment",
            details=f"Payment to {pay.vendor_name or f'vendor {pay.vendor_id}'}",
            quantity_kg=ZERO,
            rate_per_kg=ZERO,
            total=pay.amount,
            timestamp=pay.timestamp,
        ))

    rows.sort(key=lambda t: t.timestamp)
    return rows


def build_inventory(costs: CategoryCostTable, attribution: SalesAttribution) -> list[ProductInventory]:
    rows = []
    for entry in costs.values():
        sales = attribution.by_category.get(entry.key)
        sold_kg = sales.sold_kg if sales else ZERO
        revenue = sales.revenue if sales else ZERO
        cost = sales.cost if sales else ZERO
        rows.append(ProductInventory(
            meat_type=entry.meat_type,
            product_cut=entry.product_cut,
            purchased_kg=kg(entry.purchased_kg),
            sold_kg=kg(sold_kg),
            remaining_kg=kg(max(ZERO, entry.purchased_kg - sold_kg)),
            avg_cost_per_kg=rate(entry.avg_cost_per_kg),
            purchase_cost=money(entry.total_cost),
            sales_revenue=money(revenue),
            profit=money(revenue - cost),
        ))
    return rows


def summarize_day(day: date, records: DayRecords) -> DailySummary:
    """Pure reconciliation of one day's records."""
    costs = aggregate_purchases(records.purchases)
    total_purchased_kg = costs.total_purchased_kg
    total_purchase_cost = costs.total_cost

    attribution = attribute_sales(records.retail_sales, records.hotel_sales, costs)
    retail = attribution.retail
    hotel = attribution.hotel

    total_sold_kg = attribution.total_sold_kg
    vendor_payments = sum((p.amount for p in records.vendor_payments), ZERO)
    unpaid_hotel_total = sum(
        (item.total for bill in records.hotel_sales if not bill.is_paid for item in bill.items),
        ZERO,
    )

    return DailySummary(
        date=day,
        total_purchased_kg=kg(total_purchased_kg),
        total_purchase_cost=money(total_purchase_cost),
        total_retail_sales_kg=kg(retail.sold_kg),
        total_retail_sales_revenue=money(retail.revenue),
        total_retail_profit=money(retail.profit),
        total_hotel_sales_kg=kg(hotel.sold_kg),
        total_hotel_sales_revenue=money(hotel.revenue),
        total_hotel_profit=money(hotel.profit),
        total_sold_kg=kg(total_sold_kg),
        remaining_kg=kg(max(ZERO, total_purchased_kg - total_sold_kg)),
        net_profit=money(retail.profit + hotel.profit),
        vendor_payments=money(vendor_payments),
        hotel_bill_count=len(records.hotel_sales),
        unpaid_hotel_total=money(unpaid_hotel_total),
        transactions=tuple(build_timeline(records)),
        inventory=tuple(build_inventory(costs, attribution)),
    )


def build_daily_summary(store: RecordStore, user_id: int, day: date) -> DailySummary:
    return summarize_day(day, fetch_day_records(store, user_id, day))


def build_range_summary(store: RecordStore, user_id: int, start: date, end: date) -> list[DailySummary]:
    """One independent DailySummary per day in [start, end]; [] when start > end."""
    return [build_daily_summary(store, user_id, day) for day in iter_days(start, end)]


_PERIOD_FIELDS = (
    "total_purchased_kg",
    "total_purchase_cost",
    "total_retail_sales_kg",
    "total_retail_sales_revenue",
    "total_retail_profit",
    "total_hotel_sales_kg",
    "total_hotel_sales_revenue",
    "total_hotel_profit",
    "total_sold_kg",
    "net_profit",
    "vendor_payments",
)


def summarize_range(summaries: Iterable[DailySummary]) -> dict:
    """
    Period totals: field-by-field sums of the daily summaries.

    remaining_kg is summed as reported per day (each already clamped); it is
    not a running stock level because stock does not carry between days.
    """
    summaries = list(summaries)
    totals: dict[str, Decimal] = {name: ZERO for name in _PERIOD_FIELDS}
    remaining = ZERO
    bills = 0
    for s in summaries:
        for name in _PERIOD_FIELDS:
            totals[name] += getattr(s, name)
        remaining += s.remaining_kg
        bills += s.hotel_bill_count

    result = {
        "start": to_iso_date(summaries[0].date) if summaries else None,
        "end": to_iso_date(summaries[-1].date) if summaries else None,
        "days": len(summaries),
        "hotel_bill_count": bills,
        "remaining_kg": to_json_number(remaining),
    }
    result.update({name: to_json_number(value) for name, value in totals.items()})
    return result
