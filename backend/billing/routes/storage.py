# Overview: Flask API routes for the asset folder grant, manual export/import, and storage status.

# backend/billing/routes/storage.py
"""
Storage routes

The asset folder grant is an explicit action that has to be repeated every
session; the chosen path is kept in memory only. When no folder is granted,
writes land in the volatile medium and the UI downloads the export artifact
from /export/<store> instead.
"""
from flask import Blueprint, Response, request, current_app

from ..errors import FolderAccessDenied, UnknownStore, VolatileQuotaExceeded
from ..storage import get_storage
from ..validation import ValidationError, validate_record_list

storage_bp = Blueprint("storage", __name__, url_prefix="/api/storage")


@storage_bp.get("/status")
def storage_status():
    return get_storage().status()


@storage_bp.post("/folder")
def select_folder_route():
    """Grant an asset folder. An empty or missing path is a cancelled picker."""
    data = request.get_json(silent=True) or {}
    storage = get_storage()

    try:
        path = data.get("path")
        selected = storage.select_folder(lambda: str(path).strip() if path else None)
    except FolderAccessDenied as e:
        return {"error": str(e)}, 400

    return {"selected": selected, **storage.status()}


@storage_bp.post("/save")
def save_all_route():
    try:
        outcomes = get_storage().save_all()
    except VolatileQuotaExceeded as e:
        return {"error": str(e)}, 507

    return {
        "stores": {
            store: {"durable": outcome.durable, "notice": outcome.notice}
            for store, outcome in outcomes.items()
        }
    }


@storage_bp.post("/reload")
def reload_route():
    storage = get_storage()
    storage.reload()
    return storage.status()


@storage_bp.get("/export/<string:store>")
def export_route(store: str):
    try:
        file_name, body = get_storage().export_store(store)
    except UnknownStore as e:
        return {"error": str(e)}, 404

    return Response(
        body,
        mimetype="application/json",
        headers={"Content-Disposition": f"attachment; filename={file_name}"},
    )


@storage_bp.post("/import/<string:store>")
def import_route(store: str):
    try:
        records = validate_record_list(request.get_json(silent=True))
        count = get_storage().import_store(store, records)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except UnknownStore as e:
        return {"error": str(e)}, 404
    except VolatileQuotaExceeded as e:
        return {"error": str(e)}, 507
    except Exception:
        current_app.logger.exception("Failed to import %s", store)
        return {"error": "Internal server error"}, 500

    return {"store": store, "imported": count}
