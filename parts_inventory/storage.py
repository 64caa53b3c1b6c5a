"""Loading and saving the inventory document as JSON on disk."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import httpx

from .inventory import (
    AdminCredentials,
    InvalidDocumentError,
    InventoryDocument,
    InventoryItem,
    SCHEMA_VERSION,
    STORAGE_KEY,
    new_item_id,
    parse_document,
)
from .taxonomy import normalize_document_taxonomies

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_FILENAME = f"{STORAGE_KEY}.json"
DEFAULT_SEED_SOURCE = "db.json"

_DEFAULT_CATEGORIES = [
    "Display",
    "Touchscreen Digitizer",
    "Front Glass",
    "Battery",
    "Charging Port",
    "Power IC / PMIC",
    "Audio IC",
    "RF / Baseband / Wi-Fi IC",
    "Storage (eMMC / UFS / NAND)",
    "RAM / DRAM",
    "Speakers",
    "Microphones",
    "Vibration Motor",
    "Front Camera",
    "Rear Camera",
    "Proximity / Light Sensors",
    "Gyroscope / Accelerometer",
    "Fingerprint Sensor",
    "Antenna",
    "SIM Tray & Slot",
    "Frame & Housing",
    "Back Cover",
    "Side Buttons (Power, Volume, Mute)",
]

_DEFAULT_BRANDS = [
    "Apple",
    "Samsung",
    "Xiaomi",
    "Oppo",
    "Vivo",
    "Infinix",
    "Realme",
    "Nokia",
    "Tecno",
    "OnePlus",
    "Huawei",
    "Motorola",
    "Generic",
]


def build_default_document() -> InventoryDocument:
    """Embedded demo dataset used when neither storage nor seed is usable."""

    now = datetime.now(timezone.utc)
    inventory = [
        InventoryItem(
            id=new_item_id(),
            name="iPhone 13 Display (OEM)",
            sku="IP13-DSP-OEM",
            category="Displays",
            brand="Apple",
            cost_price=28000.0,
            sale_price=35000.0,
            stock=4,
            low_stock_threshold=2,
            compatibility=["iPhone 13"],
            last_updated=now,
        ),
        InventoryItem(
            id=new_item_id(),
            name="Samsung Galaxy S21 Battery",
            sku="SMG-S21-BATT",
            category="Batteries",
            brand="Samsung",
            cost_price=9000.0,
            sale_price=12500.0,
            stock=12,
            low_stock_threshold=3,
            compatibility=["Galaxy S21", "Galaxy S21 5G"],
            last_updated=now,
        ),
        InventoryItem(
            id=new_item_id(),
            name="Fast Charger 25W (Type-C)",
            sku="GEN-CHG-25W",
            category="Chargers",
            brand="Generic",
            cost_price=1200.0,
            sale_price=2200.0,
            stock=35,
            low_stock_threshold=8,
            compatibility=["Universal", "Galaxy S Series", "iPhone 15"],
            last_updated=now,
        ),
    ]
    return InventoryDocument(
        version=SCHEMA_VERSION,
        admin=AdminCredentials(username="admin", password="admin123"),
        categories=list(_DEFAULT_CATEGORIES),
        brands=list(_DEFAULT_BRANDS),
        inventory=inventory,
    )


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


class DocumentStorage:
    """Reads and writes the document file, falling back to a seed when needed.

    ``load`` tries the storage file first, accepting it only when its version
    matches :data:`SCHEMA_VERSION`. Otherwise the seed source (a path or an
    http(s) URL) is tried, and finally the embedded default. A seeded
    document is normalized and written back before it is returned.
    """

    def __init__(
        self,
        storage_path: Union[str, Path],
        *,
        seed_source: Optional[Union[str, Path]] = DEFAULT_SEED_SOURCE,
        backup_path: Optional[Union[str, Path]] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 5.0,
    ) -> None:
        self.storage_path = Path(storage_path)
        self.seed_source = None if seed_source is None else str(seed_source)
        self.backup_path = None if backup_path is None else Path(backup_path)
        self.client = client
        self.timeout = timeout

    # public API ---------------------------------------------------------
    def load(self) -> InventoryDocument:
        document = self._read_cached()
        if document is not None:
            normalize_document_taxonomies(document)
            return document
        document = self._read_seed()
        if document is None:
            logger.info("Using embedded default inventory")
            document = build_default_document()
        document.version = SCHEMA_VERSION
        normalize_document_taxonomies(document)
        self.save(document)
        return document

    def save(self, document: InventoryDocument) -> None:
        content = self.dumps(document)
        self._write_text(self.storage_path, content)
        if self.backup_path is not None:
            self._write_text(self.backup_path, content)
        logger.debug("Saved %d items to %s", len(document.inventory), self.storage_path)

    @staticmethod
    def dumps(document: InventoryDocument) -> str:
        return json.dumps(document.to_dict(), indent=2, ensure_ascii=False)

    # helpers ------------------------------------------------------------
    def _read_cached(self) -> Optional[InventoryDocument]:
        if not self.storage_path.exists():
            return None
        try:
            document = parse_document(self.storage_path.read_bytes())
        except (OSError, InvalidDocumentError) as exc:
            logger.warning("Discarding unreadable inventory at %s: %s", self.storage_path, exc)
            return None
        if document.version != SCHEMA_VERSION:
            logger.warning(
                "Discarding inventory at %s with schema version %s (expected %s)",
                self.storage_path,
                document.version,
                SCHEMA_VERSION,
            )
            return None
        return document

    def _read_seed(self) -> Optional[InventoryDocument]:
        if not self.seed_source:
            return None
        try:
            if _is_url(self.seed_source):
                raw = self._fetch_seed(self.seed_source)
            else:
                raw = Path(self.seed_source).read_bytes()
            document = parse_document(raw)
        except (OSError, httpx.HTTPError, InvalidDocumentError) as exc:
            logger.warning("Seed %s unavailable: %s", self.seed_source, exc)
            return None
        logger.info("Seeded inventory from %s", self.seed_source)
        return document

    def _fetch_seed(self, url: str) -> bytes:
        headers = {"Cache-Control": "no-store"}
        if self.client is not None:
            response = self.client.get(url, headers=headers)
        else:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url, headers=headers)
        response.raise_for_status()
        return response.content

    @staticmethod
    def _write_text(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        temp_path.write_text(content, encoding="utf-8")
        temp_path.replace(path)


__all__ = [
    "DEFAULT_SEED_SOURCE",
    "DEFAULT_STORAGE_FILENAME",
    "DocumentStorage",
    "build_default_document",
]
