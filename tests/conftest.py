from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from flask import Flask
from flask.testing import FlaskClient

from parts_inventory import create_app
from parts_inventory.config import Settings
from parts_inventory.inventory import InventoryStore
from parts_inventory.storage import DocumentStorage


@pytest.fixture()
def storage_path(tmp_path: Path) -> Path:
    return tmp_path / "parts_inventory_v3.json"


@pytest.fixture()
def storage(storage_path: Path) -> DocumentStorage:
    return DocumentStorage(storage_path, seed_source=None)


@pytest.fixture()
def store(storage: DocumentStorage) -> InventoryStore:
    return InventoryStore(storage)


@pytest.fixture()
def app(tmp_path: Path) -> Iterator[Flask]:
    settings = Settings(
        storage_path=tmp_path / "parts_inventory_v3.json",
        seed_source=None,
        environment="test",
        secret_key="test-secret",
    )
    app = create_app(settings)
    app.config.update(TESTING=True)
    yield app


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture()
def logged_in_client(client: FlaskClient) -> FlaskClient:
    response = client.post("/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 200
    return client
