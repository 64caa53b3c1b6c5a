"""Flask application exposing the parts inventory as a small JSON API."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from functools import wraps
from io import BytesIO
from typing import Any, Dict, Optional, Sequence, Union

import xlwt
from flask import Flask, Response, jsonify, request, session
from pydantic import ValidationError

from .auth import SESSION_FLAG
from .config import Settings, get_settings
from .filters import InventoryFilter
from .inventory import InvalidDocumentError, InventoryItem, InventoryStore
from .schemas import ItemPayload
from .storage import DocumentStorage

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "db.json"

_XLS_FIELDS = [
    "Name",
    "SKU",
    "Category",
    "Brand",
    "Cost Price",
    "Sale Price",
    "Stock",
    "Low Stock Threshold",
    "Compatibility",
    "Last Updated",
]


def create_app(settings: Optional[Settings] = None) -> Flask:
    settings = settings or get_settings()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret_key
    app.permanent_session_lifetime = timedelta(days=365)

    storage = DocumentStorage(
        settings.storage_path,
        seed_source=settings.seed_source,
        backup_path=settings.backup_path,
        timeout=settings.seed_timeout,
    )
    store = InventoryStore(storage)
    app.extensions["parts_inventory"] = store

    def _json_error(message: str, status: int = 400) -> Any:
        return jsonify({"error": message}), status

    def _is_logged_in() -> bool:
        return bool(session.get(SESSION_FLAG))

    def login_required(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not _is_logged_in():
                return _json_error("Authentication required", 401)
            return func(*args, **kwargs)

        return wrapper

    def _parse_item_payload() -> ItemPayload:
        payload = _get_payload(request)
        return ItemPayload.model_validate(payload)

    @app.post("/login")
    def login() -> Any:
        payload = _get_payload(request)
        username = str(payload.get("username") or "")
        password = str(payload.get("password") or "")
        if not store.authenticate(username, password):
            return _json_error("Invalid credentials", 401)
        session[SESSION_FLAG] = True
        session.permanent = True
        return jsonify({"status": "success"})

    @app.post("/logout")
    def logout() -> Any:
        session.pop(SESSION_FLAG, None)
        return jsonify({"status": "success"})

    @app.get("/api/session")
    def session_status() -> Any:
        return jsonify({"logged_in": _is_logged_in()})

    @app.get("/api/items")
    @login_required
    def list_items() -> Any:
        filters = InventoryFilter.from_args(request.args)
        return jsonify([item.to_dict() for item in store.query(filters)])

    @app.post("/api/items")
    @login_required
    def add_item() -> Any:
        try:
            data = _parse_item_payload()
        except (ValidationError, ValueError) as exc:
            return _json_error(str(exc))
        item = store.add(data)
        return jsonify(item.to_dict()), 201

    @app.get("/api/items/<string:item_id>")
    @login_required
    def get_item(item_id: str) -> Any:
        item = store.get(item_id)
        if item is None:
            return _json_error(f"Item '{item_id}' not found", 404)
        return jsonify(item.to_dict())

    @app.put("/api/items/<string:item_id>")
    @login_required
    def update_item(item_id: str) -> Any:
        try:
            data = _parse_item_payload()
        except (ValidationError, ValueError) as exc:
            return _json_error(str(exc))
        item = store.update(item_id, data)
        if item is None:
            return _json_error(f"Item '{item_id}' not found", 404)
        return jsonify(item.to_dict())

    @app.delete("/api/items/<string:item_id>")
    @login_required
    def delete_item(item_id: str) -> Any:
        if not store.remove(item_id):
            return _json_error(f"Item '{item_id}' not found", 404)
        return "", 204

    @app.post("/api/items/<string:item_id>/adjust")
    @login_required
    def adjust_item(item_id: str) -> Any:
        payload = _get_payload(request)
        try:
            delta = int(payload.get("delta", 1))
        except (TypeError, ValueError, OverflowError):
            return _json_error("Invalid delta")
        item = store.adjust_stock(item_id, delta)
        if item is None:
            return _json_error(f"Item '{item_id}' not found", 404)
        return jsonify(item.to_dict())

    @app.get("/api/dashboard")
    @login_required
    def dashboard() -> Any:
        return jsonify(store.dashboard().to_dict())

    @app.get("/api/taxonomy")
    @login_required
    def taxonomy() -> Any:
        return jsonify({"categories": store.categories(), "brands": store.brands()})

    @app.post("/api/categories")
    @login_required
    def create_category() -> Any:
        payload = _get_payload(request)
        try:
            categories = store.add_category(str(payload.get("name") or ""))
        except ValueError as exc:
            return _json_error(str(exc))
        return jsonify({"categories": categories}), 201

    @app.post("/api/brands")
    @login_required
    def create_brand() -> Any:
        payload = _get_payload(request)
        try:
            brands = store.add_brand(str(payload.get("name") or ""))
        except ValueError as exc:
            return _json_error(str(exc))
        return jsonify({"brands": brands}), 201

    @app.get("/api/export")
    @login_required
    def export_document() -> Response:
        response = Response(store.export_document(), mimetype="application/json")
        response.headers["Content-Disposition"] = f"attachment; filename={EXPORT_FILENAME}"
        return response

    @app.get("/api/items/export.xls")
    @login_required
    def export_items_xls() -> Response:
        filters = InventoryFilter.from_args(request.args)
        items = store.query(filters)
        now = datetime.now().astimezone()
        content = _items_to_xls(items, generated_label=now.strftime("%Y-%m-%d %H:%M"))
        response = Response(content, mimetype="application/vnd.ms-excel")
        filename = f"inventory_export_{now.strftime('%Y%m%d_%H%M%S')}.xls"
        response.headers["Content-Disposition"] = f"attachment; filename={filename}"
        return response

    @app.post("/api/import")
    @login_required
    def import_document() -> Any:
        try:
            source = _extract_import_source(request)
            document = store.import_document(source)
        except ValueError as exc:
            logger.warning("Rejected import: %s", exc)
            return _json_error(str(exc))
        return jsonify(
            {
                "status": "success",
                "count": len(document.inventory),
                "categories": document.categories,
                "brands": document.brands,
            }
        )

    return app


def _get_payload(req: Any) -> Dict[str, Any]:
    if req.is_json:
        payload = req.get_json(silent=True)
        return payload if isinstance(payload, dict) else {}
    if req.form:
        return req.form.to_dict()
    payload = req.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _extract_import_source(req: Any) -> Union[bytes, Dict[str, Any]]:
    if req.files:
        upload = req.files.get("file")
        if upload is None or upload.filename == "":
            raise InvalidDocumentError("Missing upload file")
        try:
            raw_bytes = upload.read()
        finally:
            upload.close()
        if not raw_bytes:
            raise InvalidDocumentError("Empty file")
        return raw_bytes
    payload = req.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    raw_bytes = req.get_data()
    if not raw_bytes:
        raise InvalidDocumentError("Unsupported import payload")
    return raw_bytes


def _items_to_xls(items: Sequence[InventoryItem], *, generated_label: str) -> bytes:
    workbook = xlwt.Workbook()
    sheet = workbook.add_sheet("Inventory")
    header_style = xlwt.easyxf("font: bold on; align: horiz center, vert center")
    sheet.write(0, 0, "Generated")
    sheet.write(0, 1, generated_label)
    sheet.write(1, 0, "Items")
    sheet.write(1, 1, len(items))
    for col_index, label in enumerate(_XLS_FIELDS):
        sheet.write(3, col_index, label, header_style)
    for row_index, item in enumerate(items, start=4):
        updated = (
            item.last_updated.astimezone().strftime("%Y-%m-%d %H:%M")
            if item.last_updated
            else ""
        )
        values = [
            item.name,
            item.sku,
            item.category,
            item.brand,
            item.cost_price,
            item.sale_price,
            item.stock,
            item.low_stock_threshold,
            ", ".join(item.compatibility),
            updated,
        ]
        for col_index, value in enumerate(values):
            sheet.write(row_index, col_index, value)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


__all__ = ["create_app"]
