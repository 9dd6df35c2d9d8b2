# Overview: Flask API routes for expense operations; parses input and returns JSON responses.

# backend/billing/routes/expenses.py
from flask import Blueprint, request, current_app

from ..errors import NotFound, VolatileQuotaExceeded
from ..storage import get_storage
from ..validation import EXPENSE_POLICY, ValidationError, enforce_rules_expense, validate_payload

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
def list_expenses():
    items = get_storage().expenses.get_all()
    return {"items": items, "count": len(items)}


@expenses_bp.get("/range")
def expenses_in_range():
    """Expenses with start <= date <= end (ISO-8601 query params)."""
    start = request.args.get("start")
    end = request.args.get("end")
    if not start or not end:
        return {"error": "start and end required"}, 400

    try:
        items = get_storage().expenses.get_by_date_range(start, end)
    except ValueError as e:
        return {"error": str(e)}, 400
    return {"items": items, "count": len(items)}


@expenses_bp.get("/<int:expense_id>")
def get_expense(expense_id: int):
    expense = get_storage().expenses.get_by_id(expense_id)
    if expense is None:
        return {"error": "Expense not found"}, 404
    return {"expense": expense}


@expenses_bp.post("")
def create_expense_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=EXPENSE_POLICY, partial=False)
        enforce_rules_expense(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    expense = {"note": "", **patch}
    try:
        result = get_storage().expenses.add(expense)
    except VolatileQuotaExceeded as e:
        return {"error": str(e)}, 507
    except Exception:
        current_app.logger.exception("Failed to add expense")
        return {"error": "Internal server error"}, 500

    return {"expense": {**expense, "id": result.id}, "storage": result.to_dict()}, 201


@expenses_bp.put("/<int:expense_id>")
def update_expense_route(expense_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=EXPENSE_POLICY, partial=True)
        enforce_rules_expense(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    storage = get_storage()
    existing = storage.expenses.get_by_id(expense_id)
    if existing is None:
        return {"error": "Expense not found"}, 404

    expense = {**existing, **patch}
    try:
        result = storage.expenses.update(expense)
    except NotFound:
        return {"error": "Expense not found"}, 404
    except VolatileQuotaExceeded as e:
        return {"error": str(e)}, 507
    except Exception:
        current_app.logger.exception("Failed to update expense")
        return {"error": "Internal server error"}, 500

    return {"expense": expense, "storage": result.to_dict()}


@expenses_bp.delete("/<int:expense_id>")
def delete_expense_route(expense_id: int):
    try:
        result = get_storage().expenses.delete(expense_id)
    except VolatileQuotaExceeded as e:
        return {"error": str(e)}, 507
    except Exception:
        current_app.logger.exception("Failed to delete expense")
        return {"error": "Internal server error"}, 500

    return {"deleted": expense_id, "storage": result.to_dict()}
