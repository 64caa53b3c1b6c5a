"""Summary statistics shown above the inventory table."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Tuple

from .schemas import coerce_amount, coerce_quantity

if TYPE_CHECKING:
    from .inventory import InventoryItem

UNCATEGORIZED = "Uncategorized"
CURRENCY_PREFIX = "Rs"


def format_money(amount: Any) -> str:
    value = coerce_amount(amount)
    if value.is_integer():
        return f"{CURRENCY_PREFIX} {int(value):,}"
    return f"{CURRENCY_PREFIX} {value:,.2f}"


@dataclass
class DashboardSummary:
    total_skus: int = 0
    total_units: int = 0
    total_cost_value: float = 0.0
    total_sale_value: float = 0.0
    low_stock_count: int = 0
    stock_by_category: Dict[str, int] = field(default_factory=dict)

    def chart_series(self) -> Tuple[List[str], List[int]]:
        """Labels and bar heights for the stock-per-category chart."""

        return list(self.stock_by_category.keys()), list(self.stock_by_category.values())

    def to_dict(self) -> Dict[str, Any]:
        labels, values = self.chart_series()
        return {
            "total_skus": self.total_skus,
            "total_units": self.total_units,
            "total_cost_value": self.total_cost_value,
            "total_sale_value": self.total_sale_value,
            "low_stock_count": self.low_stock_count,
            "stock_by_category": dict(self.stock_by_category),
            "chart": {"labels": labels, "values": values},
            "display": {
                "total_units": f"{self.total_units:,}",
                "total_cost_value": format_money(self.total_cost_value),
                "total_sale_value": format_money(self.total_sale_value),
            },
        }


def compute_dashboard(items: Iterable["InventoryItem"]) -> DashboardSummary:
    """Aggregate over the full inventory, not the filtered view."""

    summary = DashboardSummary()
    for item in items:
        stock = coerce_quantity(item.stock)
        threshold = coerce_quantity(item.low_stock_threshold)
        summary.total_skus += 1
        summary.total_units += stock
        summary.total_cost_value += coerce_amount(item.cost_price) * stock
        summary.total_sale_value += coerce_amount(item.sale_price) * stock
        if stock <= threshold:
            summary.low_stock_count += 1
        category = item.category or UNCATEGORIZED
        summary.stock_by_category[category] = summary.stock_by_category.get(category, 0) + stock
    return summary


__all__ = ["DashboardSummary", "UNCATEGORIZED", "compute_dashboard", "format_money"]
