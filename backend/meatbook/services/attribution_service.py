# Overview: Service-layer operations for sales attribution; assigns cost and profit to the day's sales.

"""
Sales Attribution

Cost basis is the WHOLE-DAY weighted average per category, taken from the
finished CategoryCostTable. It is not a running cost and not FIFO/LIFO, so
the profit of a day does not depend on the order its sales were entered.

    profit(sale) = sale.total - sale.quantity_kg * avg_cost_per_kg(category)

Hotel bills are attributed per line item; a bill with no items contributes
nothing to kg, revenue or profit. The bill's stored total_amount is not read
here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from meatbook.decimal_utils import ZERO
from .inventory_service import CategoryCostTable
from .records import CategoryKey, HotelSaleRecord, RetailSaleRecord


@dataclass(frozen=True)
class SaleProfit:
    sale_id: int
    channel: str
    category: CategoryKey
    quantity_kg: Decimal
    revenue: Decimal
    cost: Decimal

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.cost


@dataclass
class ChannelTotals:
    sold_kg: Decimal = ZERO
    revenue: Decimal = ZERO
    cost: Decimal = ZERO

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.cost

    def add(self, line: SaleProfit) -> None:
        self.sold_kg += line.quantity_kg
        self.revenue += line.revenue
        self.cost += line.cost


@dataclass
class SalesAttribution:
    retail: ChannelTotals = field(default_factory=ChannelTotals)
    hotel: ChannelTotals = field(default_factory=ChannelTotals)
    by_category: dict[CategoryKey, ChannelTotals] = field(default_factory=dict)
    lines: list[SaleProfit] = field(default_factory=list)

    @property
    def total_sold_kg(self) -> Decimal:
        return self.retail.sold_kg + self.hotel.sold_kg

    def sold_kg(self, key: CategoryKey) -> Decimal:
        totals = self.by_category.get(key)
        return totals.sold_kg if totals else ZERO

    def record(self, line: SaleProfit, channel_totals: ChannelTotals) -> None:
        channel_totals.add(line)
        self.by_category.setdefault(line.category, ChannelTotals()).add(line)
        self.lines.append(line)


def _line(costs: CategoryCostTable, *, sale_id: int, channel: str, category: CategoryKey,
          quantity_kg: Decimal, revenue: Decimal) -> SaleProfit:
    # Sold-but-never-purchased categories still get an entry (at zero cost)
    entry = costs.ensure(category)
    return SaleProfit(
        sale_id=sale_id,
        channel=channel,
        category=category,
        quantity_kg=quantity_kg,
        revenue=revenue,
        cost=entry.cost_of(quantity_kg),
    )


def attribute_sales(
    retail_sales: Iterable[RetailSaleRecord],
    hotel_sales: Iterable[HotelSaleRecord],
    costs: CategoryCostTable,
) -> SalesAttribution:
    """
    Fold retail sales and hotel bill items into per-channel and per-category
    sold kg, revenue and profit.

    `costs` must already hold every purchase of the day.
    """
    result = SalesAttribution()

    for sale in retail_sales:
        line = _line(
            costs,
            sale_id=sale.id,
            channel="retail",
            category=sale.category,
            quantity_kg=sale.quantity_kg,
            revenue=sale.total,
        )
        result.record(line, result.retail)

    for bill in hotel_sales:
        for item in bill.items:
            line = _line(
                costs,
                sale_id=item.id,
                channel="hotel",
                category=item.category,
                quantity_kg=item.quantity_kg,
                revenue=item.total,
            )
            result.record(line, result.hotel)

    return result
