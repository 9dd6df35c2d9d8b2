# Overview: Dashboard figures over transactions and expenses for a date range.

from __future__ import annotations

from datetime import datetime, timedelta

from ..storage import StorageManager
from ..storage.queries import record_datetime
from ..time_utils import utcnow
from ..validation import ValidationError

DATE_RANGE_PRESETS = ("today", "week", "month", "all")
RECENT_ACTIVITY_LIMIT = 20


def resolve_date_range(preset: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """
    Inclusive bounds for a dashboard preset.

    - today: midnight .. 23:59:59
    - week: Sunday midnight .. today 23:59:59
    - month: first day .. last day 23:59:59
    - all: epoch .. now
    """
    now = now or utcnow()
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = now.replace(hour=23, minute=59, second=59, microsecond=0)

    if preset == "today":
        return day_start, day_end
    if preset == "week":
        # weekday(): Monday=0 .. Sunday=6
        days_since_sunday = (now.weekday() + 1) % 7
        return day_start - timedelta(days=days_since_sunday), day_end
    if preset == "month":
        first = day_start.replace(day=1)
        next_month = (first + timedelta(days=32)).replace(day=1)
        last = next_month - timedelta(days=1)
        return first, last.replace(hour=23, minute=59, second=59)
    if preset == "all":
        return datetime(1970, 1, 1), now
    raise ValidationError(f"Unknown date range: {preset}")


def dashboard_summary(storage: StorageManager, start: datetime | str, end: datetime | str) -> dict:
    transactions = storage.transactions.get_by_date_range(start, end)
    expenses = storage.expenses.get_by_date_range(start, end)

    total_income = sum(t.get("grandTotal", 0) for t in transactions)
    total_expenses = sum(e.get("amount", 0) for e in expenses)

    income_by_date: dict[str, float] = {}
    expense_by_date: dict[str, float] = {}
    for t in transactions:
        day = record_datetime(t).date().isoformat()
        income_by_date[day] = income_by_date.get(day, 0) + t.get("grandTotal", 0)
    for e in expenses:
        day = record_datetime(e).date().isoformat()
        expense_by_date[day] = expense_by_date.get(day, 0) + e.get("amount", 0)

    days = sorted(set(income_by_date) | set(expense_by_date))

    activity = [{**t, "type": "income"} for t in transactions] + [{**e, "type": "expense"} for e in expenses]
    activity.sort(key=record_datetime, reverse=True)

    return {
        "totalIncome": total_income,
        "totalExpenses": total_expenses,
        "netProfit": total_income - total_expenses,
        "series": {
            "labels": days,
            "income": [income_by_date.get(d, 0) for d in days],
            "expenses": [expense_by_date.get(d, 0) for d in days],
        },
        "recent": activity[:RECENT_ACTIVITY_LIMIT],
    }
