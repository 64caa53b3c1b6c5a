"""Predicates behind the inventory table filters and global search."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Iterable, List, Mapping

if TYPE_CHECKING:
    from .inventory import InventoryItem


_TRUTHY = {"1", "true", "yes", "on"}


def _parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class InventoryFilter:
    """Active table filters; empty values mean no constraint."""

    category: str = ""
    brand: str = ""
    compat_text: str = ""
    low_only: bool = False
    search_text: str = ""

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "InventoryFilter":
        return cls(
            category=str(args.get("category") or ""),
            brand=str(args.get("brand") or ""),
            compat_text=str(args.get("compat") or ""),
            low_only=_parse_flag(args.get("low")),
            search_text=str(args.get("q") or ""),
        )

    def cleared(self) -> "InventoryFilter":
        """Reset the side panel filters but keep the global search."""

        return replace(self, category="", brand="", compat_text="", low_only=False)


def _compatibility_text(item: "InventoryItem") -> str:
    return ", ".join(item.compatibility or []).lower()


def matches(item: "InventoryItem", filters: InventoryFilter) -> bool:
    if filters.category and item.category != filters.category:
        return False
    if filters.brand and item.brand != filters.brand:
        return False
    if filters.low_only and not item.is_low:
        return False

    compat = _compatibility_text(item)
    compat_query = filters.compat_text.lower()
    if compat_query and compat_query not in compat:
        return False

    search = filters.search_text.lower()
    if search:
        core = " ".join([item.name, item.sku, item.brand, item.category]).lower()
        if search not in core and search not in compat:
            return False
    return True


def query(items: Iterable["InventoryItem"], filters: InventoryFilter) -> List["InventoryItem"]:
    return [item for item in items if matches(item, filters)]


__all__ = ["InventoryFilter", "matches", "query"]
