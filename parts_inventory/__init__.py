"""Parts inventory package."""
from __future__ import annotations

from .filters import InventoryFilter
from .inventory import InventoryDocument, InventoryItem, InventoryStore
from .storage import DocumentStorage

__all__ = [
    "create_app",
    "DocumentStorage",
    "InventoryDocument",
    "InventoryFilter",
    "InventoryItem",
    "InventoryStore",
]


def create_app(*args, **kwargs):
    from .app import create_app as _create_app

    return _create_app(*args, **kwargs)
