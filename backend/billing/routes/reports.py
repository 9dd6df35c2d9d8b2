# Overview: Flask API routes for the income/expense dashboard.

# backend/billing/routes/reports.py
from flask import Blueprint, request

from ..services.reporting_service import dashboard_summary, resolve_date_range
from ..storage import get_storage
from ..validation import ValidationError

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/summary")
def summary_route():
    """
    Dashboard totals, daily series and recent activity.

    Query params:
    - range: today | week | month | all (default today)
    - start, end: ISO-8601 custom range; overrides range when both are given
    """
    start = request.args.get("start")
    end = request.args.get("end")

    try:
        if not (start and end):
            start, end = resolve_date_range(request.args.get("range", "today"))
        summary = dashboard_summary(get_storage(), start, end)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ValueError:
        return {"error": "start and end must be ISO-8601 dates"}, 400

    return summary
