# Overview: Flask API routes for product operations; parses input and returns JSON responses.

# backend/billing/routes/products.py
"""
Product catalogue routes.

Reads are served from the in-memory cache. Every write answers with the
durability outcome so the UI can offer a manual export when the asset folder
is not available.
"""
from flask import Blueprint, request, current_app

from ..errors import NotFound, VolatileQuotaExceeded
from ..storage import get_storage
from ..validation import (
    PRODUCT_DEFAULTS,
    PRODUCT_POLICY,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List products, optionally filtered.

    Query params:
    - category: exact category match (optional)
    - q: case-insensitive substring of name or barcode (optional)
    """
    items = get_storage().products.get_all()

    category = request.args.get("category")
    if category:
        items = [p for p in items if p.get("category") == category]

    term = (request.args.get("q") or "").strip().lower()
    if term:
        items = [
            p for p in items
            if term in str(p.get("name", "")).lower() or term in str(p.get("barcode", "")).lower()
        ]

    return {"items": items, "count": len(items)}


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    product = get_storage().products.get_by_id(product_id)
    if product is None:
        return {"error": "Product not found"}, 404
    return {"product": product}


@products_bp.get("/barcode/<string:barcode>")
def get_product_by_barcode(barcode: str):
    product = get_storage().products.get_by_barcode(barcode)
    if product is None:
        return {"error": "Product not found", "barcode": barcode}, 404
    return {"product": product}


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    product = {**PRODUCT_DEFAULTS, **patch}
    try:
        result = get_storage().products.add(product)
    except VolatileQuotaExceeded as e:
        return {"error": str(e)}, 507
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return {"product": {**product, "id": result.id}, "storage": result.to_dict()}, 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    storage = get_storage()
    existing = storage.products.get_by_id(product_id)
    if existing is None:
        return {"error": "Product not found"}, 404

    product = {**existing, **patch}
    try:
        result = storage.products.update(product)
    except NotFound:
        return {"error": "Product not found"}, 404
    except VolatileQuotaExceeded as e:
        return {"error": str(e)}, 507
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error"}, 500

    return {"product": product, "storage": result.to_dict()}


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        result = get_storage().products.delete(product_id)
    except VolatileQuotaExceeded as e:
        return {"error": str(e)}, 507
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return {"error": "Internal server error"}, 500

    return {"deleted": product_id, "storage": result.to_dict()}
