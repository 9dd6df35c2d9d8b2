# Overview: Flask API routes for reading sales transactions; transactions are append-only.

# backend/billing/routes/transactions.py
from flask import Blueprint, request

from ..storage import get_storage

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.get("")
def list_transactions():
    items = get_storage().transactions.get_all()
    return {"items": items, "count": len(items)}


@transactions_bp.get("/range")
def transactions_in_range():
    """Transactions with start <= date <= end (ISO-8601 query params)."""
    start = request.args.get("start")
    end = request.args.get("end")
    if not start or not end:
        return {"error": "start and end required"}, 400

    try:
        items = get_storage().transactions.get_by_date_range(start, end)
    except ValueError as e:
        return {"error": str(e)}, 400
    return {"items": items, "count": len(items)}


@transactions_bp.get("/<int:transaction_id>")
def get_transaction(transaction_id: int):
    transaction = get_storage().transactions.get_by_id(transaction_id)
    if transaction is None:
        return {"error": "Transaction not found"}, 404
    return {"transaction": transaction}
