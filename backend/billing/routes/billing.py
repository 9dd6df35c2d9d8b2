# Overview: Flask API routes for billing: barcode scan lookup, quotes, and bill finalization.

# backend/billing/routes/billing.py
"""
Billing routes

The cart itself lives in the client. Each request carries the cart lines
({"productId", "quantity"}) and the server rebuilds a Cart from the current
products before quoting or finalizing.
"""
from flask import Blueprint, request, jsonify, current_app

from ..errors import InsufficientStock, NotFound, StorageError
from ..services import billing_service
from ..services.billing_service import Cart, format_amount
from ..storage import get_storage
from ..validation import ValidationError

billing_bp = Blueprint("billing", __name__, url_prefix="/api/billing")


def _build_cart(storage, lines) -> Cart:
    if not isinstance(lines, list):
        raise ValidationError("lines must be a list")

    cart = Cart()
    for line in lines:
        if not isinstance(line, dict) or line.get("productId") is None:
            raise ValidationError("each line needs productId and quantity")
        product = storage.products.get_by_id(line.get("productId"))
        if product is None:
            raise NotFound("products", line.get("productId"))
        cart.add(product, line.get("quantity", 1))
    return cart


@billing_bp.post("/scan")
def scan_barcode_route():
    """
    Find-or-offer-create flow for a decoded barcode.

    Body: {"barcode", "lines": [{"productId", "quantity"}]}. Returns the product
    and the updated cart lines when found, otherwise offerCreate with the
    barcode so the UI can open the product form prefilled.
    """
    data = request.get_json(silent=True) or {}
    barcode = str(data.get("barcode") or "").strip()
    storage = get_storage()

    try:
        cart = _build_cart(storage, data.get("lines", []))
        product = billing_service.add_by_barcode(storage, cart, barcode)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFound:
        return jsonify({"error": "Product not found"}), 404
    except InsufficientStock as e:
        return jsonify({"error": str(e), "details": e.details}), 409

    if product is None:
        return jsonify({"found": False, "offerCreate": {"barcode": barcode}})
    return jsonify({"found": True, "product": product, "lines": [line.to_dict() for line in cart]})


@billing_bp.post("/quote")
def quote_route():
    data = request.get_json(silent=True) or {}
    try:
        cart = _build_cart(get_storage(), data.get("lines", []))
        totals = cart.summary(data.get("discountPercent", 0))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFound:
        return jsonify({"error": "Product not found"}), 404
    except InsufficientStock as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except Exception:
        current_app.logger.exception("Failed to quote bill")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"lines": [line.to_dict() for line in cart], "totals": totals.to_dict()})


@billing_bp.post("/finalize")
def finalize_route():
    """
    Complete a bill: decrement stock and append one transaction.

    Body: {"lines": [{"productId", "quantity"}], "discountPercent", "paymentMethod"}
    """
    data = request.get_json(silent=True) or {}
    storage = get_storage()

    try:
        cart = _build_cart(storage, data.get("lines", []))
        result = billing_service.finalize_bill(
            storage,
            cart,
            discount_percent=data.get("discountPercent", 0),
            payment_method=data.get("paymentMethod"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFound:
        return jsonify({"error": "Product not found"}), 404
    except InsufficientStock as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except StorageError as e:
        return jsonify({"error": str(e)}), 507
    except Exception:
        current_app.logger.exception("Failed to complete bill")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Bill completed! Total: %s", format_amount(result.totals.grand_total))
    if not result.durable:
        current_app.logger.warning("Bill %s saved to volatile medium only", result.transaction["id"])
    return jsonify(result.to_dict()), 201
