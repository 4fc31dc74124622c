# Overview: Service-layer operations for inventory; folds purchases into per-category cost totals.

# backend/meatbook/services/inventory_service.py

"""
Meatbook Inventory Invariants (authoritative)

Category model:
- Stock is tracked per category key (meat_type, product_cut), never per lot.
- Inventory is derived from the day's purchase records; no quantity is stored.

Weighted average cost (WAC):
- WAC = SUM(purchase.total) / SUM(purchase.quantity_kg) per category.
- Later purchases at a different rate shift the average by their weight,
  not by a simple mean of rates.
- WAC is 0 when purchased_kg is 0 (a category seen only in sales, or a
  zero-kg purchase). Cost cannot be attributed to such sales.

Purity:
- aggregate_purchases is a fold over a finite sequence with no side effects
  beyond the returned mapping. It never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from meatbook.decimal_utils import ZERO
from .records import CategoryKey, PurchaseRecord


@dataclass
class CategoryCost:
    """Running accumulator for one category."""
    meat_type: str
    product_cut: str
    purchased_kg: Decimal = ZERO
    total_cost: Decimal = ZERO

    @property
    def key(self) -> CategoryKey:
        return (self.meat_type, self.product_cut)

    @property
    def avg_cost_per_kg(self) -> Decimal:
        if self.purchased_kg <= 0:
            return ZERO
        return self.total_cost / self.purchased_kg

    def add(self, quantity_kg: Decimal, total: Decimal) -> None:
        self.purchased_kg += quantity_kg
        self.total_cost += total

    def cost_of(self, quantity_kg: Decimal) -> Decimal:
        """
        Cost attributed to selling quantity_kg at this category's average.

        Multiplies before dividing so a 106.666... average does not leak
        rounding into the result.
        """
        if self.purchased_kg <= 0:
            return ZERO
        return quantity_kg * self.total_cost / self.purchased_kg


class CategoryCostTable:
    """
    Mapping category key -> CategoryCost, in first-seen order.

    ensure() hands back a zero entry for categories that only appear in
    sales so their sold kg is still recorded.
    """

    def __init__(self) -> None:
        self._entries: dict[CategoryKey, CategoryCost] = {}

    def ensure(self, key: CategoryKey) -> CategoryCost:
        entry = self._entries.get(key)
        if entry is None:
            entry = CategoryCost(meat_type=key[0], product_cut=key[1])
            self._entries[key] = entry
        return entry

    def get(self, key: CategoryKey) -> CategoryCost | None:
        return self._entries.get(key)

    def avg_cost_per_kg(self, key: CategoryKey) -> Decimal:
        entry = self._entries.get(key)
        return entry.avg_cost_per_kg if entry else ZERO

    def keys(self) -> list[CategoryKey]:
        return list(self._entries.keys())

    def values(self) -> list[CategoryCost]:
        return list(self._entries.values())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def total_purchased_kg(self) -> Decimal:
        return sum((e.purchased_kg for e in self._entries.values()), ZERO)

    @property
    def total_cost(self) -> Decimal:
        return sum((e.total_cost for e in self._entries.values()), ZERO)


def aggregate_purchases(purchases: Iterable[PurchaseRecord]) -> CategoryCostTable:
    """Fold purchases into per-category purchased kg and total cost."""
    table = CategoryCostTable()
    for purchase in purchases:
        table.ensure(purchase.category).add(purchase.quantity_kg, purchase.total)
    return table
