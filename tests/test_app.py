from __future__ import annotations

import json
from io import BytesIO

import xlrd
from flask import Flask
from flask.testing import FlaskClient

from parts_inventory.inventory import SCHEMA_VERSION


def _new_item(client: FlaskClient, **overrides):
    payload = {
        "name": "Redmi Note 12 Charging Port",
        "sku": "XMI-RN12-PORT",
        "category": "Charging Port",
        "brand": "Xiaomi",
        "cost_price": "800",
        "sale_price": "1500",
        "stock": "5",
        "low_stock_threshold": "2",
        "compatibility": "Redmi Note 12, Redmi Note 12 Pro",
    }
    payload.update(overrides)
    response = client.post("/api/items", json=payload)
    assert response.status_code == 201
    return response.get_json()


def test_api_requires_login(client: FlaskClient) -> None:
    assert client.get("/api/items").status_code == 401
    assert client.get("/api/session").get_json() == {"logged_in": False}


def test_login_rejects_bad_credentials(client: FlaskClient) -> None:
    response = client.post("/login", data={"username": "admin", "password": "nope"})
    assert response.status_code == 401
    assert response.get_json()["error"] == "Invalid credentials"


def test_login_and_logout(client: FlaskClient) -> None:
    response = client.post("/login", data={"username": " admin ", "password": "admin123"})
    assert response.status_code == 200
    assert client.get("/api/session").get_json() == {"logged_in": True}

    client.post("/logout")
    assert client.get("/api/items").status_code == 401


def test_item_crud_flow(logged_in_client: FlaskClient) -> None:
    client = logged_in_client
    created = _new_item(client)
    assert created["stock"] == 5
    assert created["compatibility"] == ["Redmi Note 12", "Redmi Note 12 Pro"]

    items = client.get("/api/items").get_json()
    assert items[0]["id"] == created["id"]
    assert len(items) == 4

    update = client.put(
        f"/api/items/{created['id']}",
        json={"name": "Port v2", "stock": 9, "category": "Charging Port", "brand": "Xiaomi"},
    )
    assert update.status_code == 200
    assert update.get_json()["name"] == "Port v2"
    assert client.get(f"/api/items/{created['id']}").get_json()["stock"] == 9

    delete = client.delete(f"/api/items/{created['id']}")
    assert delete.status_code == 204
    assert client.get(f"/api/items/{created['id']}").status_code == 404
    assert client.delete(f"/api/items/{created['id']}").status_code == 404


def test_add_accepts_blank_name(logged_in_client: FlaskClient) -> None:
    response = logged_in_client.post("/api/items", json={"sku": "X"})
    assert response.status_code == 201
    body = response.get_json()
    assert body["name"] == ""
    assert body["sku"] == "X"

    blank = logged_in_client.post("/api/items", json={"name": "   ", "sku": "Y"})
    assert blank.status_code == 201
    assert blank.get_json()["name"] == ""


def test_adjust_rejects_out_of_range_delta(logged_in_client: FlaskClient) -> None:
    created = _new_item(logged_in_client, stock=3)

    response = logged_in_client.post(
        f"/api/items/{created['id']}/adjust",
        data='{"delta": 1e999}',
        content_type="application/json",
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid delta"
    assert logged_in_client.get(f"/api/items/{created['id']}").get_json()["stock"] == 3


def test_adjust_stock_endpoint(logged_in_client: FlaskClient) -> None:
    client = logged_in_client
    created = _new_item(client, stock=1)

    increased = client.post(f"/api/items/{created['id']}/adjust")
    assert increased.get_json()["stock"] == 2

    decreased = client.post(f"/api/items/{created['id']}/adjust", json={"delta": -10})
    assert decreased.get_json()["stock"] == 0

    assert client.post(f"/api/items/{created['id']}/adjust", json={"delta": "x"}).status_code == 400
    assert client.post("/api/items/missing/adjust", json={"delta": 1}).status_code == 404


def test_filters_through_query_args(logged_in_client: FlaskClient) -> None:
    client = logged_in_client
    _new_item(client, stock=1)

    low = client.get("/api/items?low=1").get_json()
    assert [item["sku"] for item in low] == ["XMI-RN12-PORT"]

    compat = client.get("/api/items", query_string={"compat": "galaxy"}).get_json()
    assert [item["sku"] for item in compat] == ["SMG-S21-BATT", "GEN-CHG-25W"]

    search = client.get("/api/items", query_string={"q": "redmi", "brand": "Xiaomi"}).get_json()
    assert len(search) == 1


def test_dashboard_and_taxonomy(logged_in_client: FlaskClient) -> None:
    client = logged_in_client
    _new_item(client, category="charging port", brand="Brand New")

    dashboard = client.get("/api/dashboard").get_json()
    assert dashboard["total_skus"] == 4
    assert dashboard["total_units"] == 4 + 12 + 35 + 5
    assert dashboard["low_stock_count"] == 0
    assert dashboard["chart"]["labels"][0] == "charging port"
    assert dashboard["display"]["total_cost_value"].startswith("Rs ")

    taxonomy = client.get("/api/taxonomy").get_json()
    lowered = [value.lower() for value in taxonomy["categories"]]
    assert lowered.count("charging port") == 1
    assert "Brand New" in taxonomy["brands"]

    created = client.post("/api/categories", json={"name": "Tools"})
    assert created.status_code == 201
    assert "Tools" in created.get_json()["categories"]
    assert client.post("/api/brands", json={"name": ""}).status_code == 400


def test_export_download(logged_in_client: FlaskClient) -> None:
    response = logged_in_client.get("/api/export")

    assert response.status_code == 200
    assert "db.json" in response.headers["Content-Disposition"]
    payload = json.loads(response.data)
    assert payload["version"] == SCHEMA_VERSION
    assert len(payload["inventory"]) == 3


def test_import_upload_replaces_document(logged_in_client: FlaskClient) -> None:
    client = logged_in_client
    exported = json.loads(client.get("/api/export").data)
    exported["inventory"] = exported["inventory"][:1]
    exported["brands"].append("apple")

    response = client.post(
        "/api/import",
        data={"file": (BytesIO(json.dumps(exported).encode("utf-8")), "db.json")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["count"] == 1
    assert [brand.lower() for brand in body["brands"]].count("apple") == 1
    assert len(client.get("/api/items").get_json()) == 1


def test_import_rejects_invalid_file(logged_in_client: FlaskClient) -> None:
    client = logged_in_client

    response = client.post(
        "/api/import",
        data={"file": (BytesIO(b'{"inventory": []}'), "db.json")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid db.json file."
    assert len(client.get("/api/items").get_json()) == 3


def test_import_json_body(logged_in_client: FlaskClient) -> None:
    response = logged_in_client.post(
        "/api/import",
        json={"admin": {"username": "admin", "password": "admin123"}, "inventory": []},
    )

    assert response.status_code == 200
    assert response.get_json()["count"] == 0


def test_export_xls_respects_filters(logged_in_client: FlaskClient) -> None:
    response = logged_in_client.get("/api/items/export.xls?brand=Samsung")

    assert response.status_code == 200
    assert response.mimetype == "application/vnd.ms-excel"
    assert "inventory_export_" in response.headers["Content-Disposition"]
    assert response.headers["Content-Disposition"].endswith(".xls")
    workbook = xlrd.open_workbook(file_contents=response.data)
    sheet = workbook.sheet_by_index(0)
    assert sheet.cell_value(1, 0) == "Items"
    assert sheet.cell_value(1, 1) == 1
    assert sheet.cell_value(3, 0) == "Name"
    assert sheet.cell_value(4, 0) == "Samsung Galaxy S21 Battery"
    assert sheet.cell_value(4, 6) == 12
    assert sheet.cell_value(4, 8) == "Galaxy S21, Galaxy S21 5G"


def test_state_survives_app_restart(app: Flask, tmp_path) -> None:
    from parts_inventory import create_app
    from parts_inventory.config import Settings

    client = app.test_client()
    client.post("/login", json={"username": "admin", "password": "admin123"})
    created = _new_item(client)

    restarted = create_app(
        Settings(storage_path=tmp_path / "parts_inventory_v3.json", seed_source=None)
    )
    other = restarted.test_client()
    other.post("/login", json={"username": "admin", "password": "admin123"})
    assert other.get(f"/api/items/{created['id']}").status_code == 200


def test_app_starts_over_non_utf8_storage_file(tmp_path) -> None:
    from parts_inventory import create_app
    from parts_inventory.config import Settings

    storage_path = tmp_path / "parts_inventory_v3.json"
    storage_path.write_bytes(b'{"version": 3, "name": "\xff\xfe"}')

    app = create_app(Settings(storage_path=storage_path, seed_source=None))
    client = app.test_client()
    client.post("/login", json={"username": "admin", "password": "admin123"})

    assert len(client.get("/api/items").get_json()) == 3
