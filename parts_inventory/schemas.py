"""Pydantic schemas for item payloads entering the store."""
from __future__ import annotations

import math
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


def coerce_amount(value: Any) -> float:
    """Parse a price, returning ``0.0`` for missing, invalid or negative input."""

    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(parsed) or parsed < 0:
        return 0.0
    return parsed


def coerce_quantity(value: Any) -> int:
    """Parse a stock count or threshold as a non-negative integer."""

    amount = coerce_amount(value)
    return int(amount)


def coerce_compatibility(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple)):
        parts = list(value)
    else:
        return []
    return [text for text in (str(part).strip() for part in parts if part is not None) if text]


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class ItemPayload(BaseModel):
    """Fields a caller may set when creating or editing an item."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    sku: str = ""
    category: str = ""
    brand: str = ""
    cost_price: float = Field(0.0, ge=0)
    sale_price: float = Field(0.0, ge=0)
    stock: int = Field(0, ge=0)
    low_stock_threshold: int = Field(0, ge=0)
    compatibility: List[str] = Field(
        default_factory=list,
        description="Device models the part fits, e.g. 'iPhone 13'.",
    )

    @field_validator("name", "sku", "category", "brand", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        return coerce_text(value)

    @field_validator("cost_price", "sale_price", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> float:
        return coerce_amount(value)

    @field_validator("stock", "low_stock_threshold", mode="before")
    @classmethod
    def _parse_quantity(cls, value: Any) -> int:
        return coerce_quantity(value)

    @field_validator("compatibility", mode="before")
    @classmethod
    def _split_compatibility(cls, value: Any) -> List[str]:
        return coerce_compatibility(value)


__all__ = [
    "ItemPayload",
    "coerce_amount",
    "coerce_compatibility",
    "coerce_quantity",
    "coerce_text",
]
