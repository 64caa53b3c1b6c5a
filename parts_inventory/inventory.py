"""Inventory document model and the in-memory store that owns it."""
from __future__ import annotations

import json
import logging
import uuid
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import RLock
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Set, Union

from . import taxonomy
from .auth import authenticate
from .dashboard import DashboardSummary, compute_dashboard
from .filters import InventoryFilter, query
from .schemas import (
    ItemPayload,
    coerce_amount,
    coerce_compatibility,
    coerce_quantity,
    coerce_text,
)

if TYPE_CHECKING:
    from .storage import DocumentStorage

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 3
STORAGE_KEY = f"parts_inventory_v{SCHEMA_VERSION}"


class InvalidDocumentError(ValueError):
    """Raised when a stored, seeded or imported document cannot be used."""


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _serialize_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_item_id() -> str:
    return uuid.uuid4().hex


@dataclass
class AdminCredentials:
    """Demo login pair stored inside the document."""

    username: str = "admin"
    password: str = "admin123"

    def to_dict(self) -> Dict[str, str]:
        return {"username": self.username, "password": self.password}

    @classmethod
    def from_record(cls, record: Any) -> "AdminCredentials":
        if not isinstance(record, dict):
            raise InvalidDocumentError("admin must be an object with username and password")
        return cls(
            username=str(record.get("username") or ""),
            password=str(record.get("password") or ""),
        )


@dataclass
class InventoryItem:
    """A single catalogued part."""

    id: str
    name: str = ""
    sku: str = ""
    category: str = ""
    brand: str = ""
    cost_price: float = 0.0
    sale_price: float = 0.0
    stock: int = 0
    low_stock_threshold: int = 0
    compatibility: List[str] = field(default_factory=list)
    last_updated: Optional[datetime] = None

    @property
    def is_low(self) -> bool:
        return self.stock <= self.low_stock_threshold

    def apply(self, payload: ItemPayload) -> None:
        self.name = payload.name
        self.sku = payload.sku
        self.category = payload.category
        self.brand = payload.brand
        self.cost_price = payload.cost_price
        self.sale_price = payload.sale_price
        self.stock = payload.stock
        self.low_stock_threshold = payload.low_stock_threshold
        self.compatibility = list(payload.compatibility)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "category": self.category,
            "brand": self.brand,
            "cost_price": self.cost_price,
            "sale_price": self.sale_price,
            "stock": self.stock,
            "low_stock_threshold": self.low_stock_threshold,
            "compatibility": list(self.compatibility),
            "last_updated": _serialize_timestamp(self.last_updated),
        }

    @classmethod
    def from_record(cls, record: Any) -> "InventoryItem":
        if not isinstance(record, dict):
            raise InvalidDocumentError("Inventory entries must be objects")
        item_id = coerce_text(record.get("id")) or new_item_id()
        return cls(
            id=item_id,
            name=coerce_text(record.get("name")),
            sku=coerce_text(record.get("sku")),
            category=coerce_text(record.get("category")),
            brand=coerce_text(record.get("brand")),
            cost_price=coerce_amount(record.get("cost_price")),
            sale_price=coerce_amount(record.get("sale_price")),
            stock=coerce_quantity(record.get("stock")),
            low_stock_threshold=coerce_quantity(record.get("low_stock_threshold")),
            compatibility=coerce_compatibility(record.get("compatibility")),
            last_updated=_parse_timestamp(record.get("last_updated")),
        )


@dataclass
class InventoryDocument:
    """The persisted root: credentials, taxonomies and the item list."""

    version: int = SCHEMA_VERSION
    admin: AdminCredentials = field(default_factory=AdminCredentials)
    categories: List[str] = field(default_factory=list)
    brands: List[str] = field(default_factory=list)
    inventory: List[InventoryItem] = field(default_factory=list)

    def find(self, item_id: str) -> Optional[InventoryItem]:
        for item in self.inventory:
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "admin": self.admin.to_dict(),
            "categories": list(self.categories),
            "brands": list(self.brands),
            "inventory": [item.to_dict() for item in self.inventory],
        }

    @classmethod
    def from_record(cls, record: Any) -> "InventoryDocument":
        if not isinstance(record, dict):
            raise InvalidDocumentError("Document must be a JSON object")
        inventory_raw = record.get("inventory", [])
        if not isinstance(inventory_raw, list):
            raise InvalidDocumentError("inventory must be a list")
        version_raw = record.get("version")
        version = 0
        if isinstance(version_raw, int) and not isinstance(version_raw, bool):
            version = version_raw
        elif isinstance(version_raw, float) and version_raw.is_integer():
            version = int(version_raw)
        admin = (
            AdminCredentials.from_record(record["admin"])
            if "admin" in record
            else AdminCredentials()
        )
        inventory: List[InventoryItem] = []
        seen_ids: Set[str] = set()
        for entry in inventory_raw:
            item = InventoryItem.from_record(entry)
            if item.id in seen_ids:
                item.id = new_item_id()
            seen_ids.add(item.id)
            inventory.append(item)
        categories = record.get("categories")
        brands = record.get("brands")
        return cls(
            version=version,
            admin=admin,
            categories=list(categories) if isinstance(categories, list) else [],
            brands=list(brands) if isinstance(brands, list) else [],
            inventory=inventory,
        )


def parse_document(text: Union[str, bytes]) -> InventoryDocument:
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise InvalidDocumentError("File is not valid JSON") from exc
    return InventoryDocument.from_record(payload)


def _coerce_payload(payload: Union[ItemPayload, Mapping[str, Any]]) -> ItemPayload:
    if isinstance(payload, ItemPayload):
        return payload
    return ItemPayload.model_validate(dict(payload))


@dataclass
class InventoryStore:
    """Owns the live document; every mutation is written straight back to storage."""

    storage: "DocumentStorage"
    document: InventoryDocument = field(init=False)
    _lock: RLock = field(default_factory=RLock, init=False)

    def __post_init__(self) -> None:
        with self._lock:
            self.document = self.storage.load()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def items(self) -> List[InventoryItem]:
        with self._lock:
            return deepcopy(self.document.inventory)

    def get(self, item_id: str) -> Optional[InventoryItem]:
        with self._lock:
            item = self.document.find(item_id)
            return None if item is None else deepcopy(item)

    def categories(self) -> List[str]:
        with self._lock:
            return list(self.document.categories)

    def brands(self) -> List[str]:
        with self._lock:
            return list(self.document.brands)

    def query(self, filters: Optional[InventoryFilter] = None) -> List[InventoryItem]:
        return query(self.items(), filters or InventoryFilter())

    def dashboard(self) -> DashboardSummary:
        return compute_dashboard(self.items())

    def authenticate(self, username: str, password: str) -> bool:
        with self._lock:
            return authenticate(self.document, username, password)

    # ------------------------------------------------------------------
    # Item mutations
    # ------------------------------------------------------------------
    def add(self, payload: Union[ItemPayload, Mapping[str, Any]]) -> InventoryItem:
        data = _coerce_payload(payload)
        with self._lock:
            existing = {item.id for item in self.document.inventory}
            item_id = new_item_id()
            while item_id in existing:
                item_id = new_item_id()
            item = InventoryItem(id=item_id, last_updated=_now())
            item.apply(data)
            self.document.inventory.insert(0, item)
            self._register_taxonomy_locked(item)
            self._commit_locked()
            logger.info("Added item %s (%s)", item.id, item.name)
            return deepcopy(item)

    def update(
        self, item_id: str, payload: Union[ItemPayload, Mapping[str, Any]]
    ) -> Optional[InventoryItem]:
        data = _coerce_payload(payload)
        with self._lock:
            item = self.document.find(item_id)
            if item is None:
                return None
            item.apply(data)
            item.last_updated = _now()
            self._register_taxonomy_locked(item)
            self._commit_locked()
            logger.info("Updated item %s", item_id)
            return deepcopy(item)

    def remove(self, item_id: str) -> bool:
        with self._lock:
            remaining = [item for item in self.document.inventory if item.id != item_id]
            if len(remaining) == len(self.document.inventory):
                return False
            self.document.inventory = remaining
            self._commit_locked()
            logger.info("Removed item %s", item_id)
            return True

    def adjust_stock(self, item_id: str, delta: int) -> Optional[InventoryItem]:
        with self._lock:
            item = self.document.find(item_id)
            if item is None:
                return None
            item.stock = max(0, item.stock + int(delta))
            item.last_updated = _now()
            self._commit_locked()
            logger.debug("Adjusted stock of %s by %s to %s", item_id, delta, item.stock)
            return deepcopy(item)

    # ------------------------------------------------------------------
    # Taxonomy mutations
    # ------------------------------------------------------------------
    def add_category(self, name: str) -> List[str]:
        candidate = coerce_text(name)
        if not candidate:
            raise ValueError("Category name cannot be empty")
        with self._lock:
            taxonomy.push_if_absent(self.document.categories, candidate)
            self._commit_locked()
            return list(self.document.categories)

    def add_brand(self, name: str) -> List[str]:
        candidate = coerce_text(name)
        if not candidate:
            raise ValueError("Brand name cannot be empty")
        with self._lock:
            taxonomy.push_if_absent(self.document.brands, candidate)
            self._commit_locked()
            return list(self.document.brands)

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------
    def export_document(self) -> str:
        with self._lock:
            return self.storage.dumps(self.document)

    def import_document(self, source: Union[str, bytes, Mapping[str, Any]]) -> InventoryDocument:
        """Replace the whole document with an uploaded backup.

        Only a shallow check is made: the backup needs ``inventory`` and
        ``admin`` keys. The current document is untouched on rejection.
        """

        if isinstance(source, (str, bytes)):
            try:
                payload = json.loads(source)
            except ValueError as exc:
                raise InvalidDocumentError("Invalid db.json file.") from exc
        else:
            payload = dict(source)
        if (
            not isinstance(payload, dict)
            or payload.get("inventory") is None
            or payload.get("admin") is None
        ):
            raise InvalidDocumentError("Invalid db.json file.")
        document = InventoryDocument.from_record(payload)
        document.version = SCHEMA_VERSION
        with self._lock:
            self.document = document
            self._commit_locked()
            logger.info("Imported document with %d items", len(document.inventory))
            return deepcopy(document)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _register_taxonomy_locked(self, item: InventoryItem) -> None:
        taxonomy.push_if_absent(self.document.categories, item.category)
        taxonomy.push_if_absent(self.document.brands, item.brand)

    def _commit_locked(self) -> None:
        taxonomy.normalize_document_taxonomies(self.document)
        self.storage.save(self.document)


__all__ = [
    "AdminCredentials",
    "InvalidDocumentError",
    "InventoryDocument",
    "InventoryItem",
    "InventoryStore",
    "SCHEMA_VERSION",
    "STORAGE_KEY",
    "parse_document",
]
