# Overview: Read-only derived views over the record stores.

from __future__ import annotations

from datetime import datetime

from .cache import PRODUCTS
from .record_store import RecordStore
from ..time_utils import parse_iso_datetime, to_utc_naive


def get_by_barcode(records: RecordStore, barcode: str) -> dict | None:
    """First product whose barcode equals the given string exactly."""
    for product in records.get_all(PRODUCTS):
        if product.get("barcode") == barcode:
            return product
    return None


def _as_bound(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        return to_utc_naive(value)
    parsed = parse_iso_datetime(value)
    if parsed is None:
        raise ValueError("date range bounds are required")
    return parsed


def record_datetime(record: dict) -> datetime | None:
    value = record.get("date")
    if not isinstance(value, str):
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError:
        return None


def get_by_date_range(records: RecordStore, store: str, start: datetime | str, end: datetime | str) -> list[dict]:
    """
    Records whose `date` falls within [start, end], both ends inclusive.

    Records with a missing or unparsable date never match.
    """
    start_dt = _as_bound(start)
    end_dt = _as_bound(end)

    matches = []
    for record in records.get_all(store):
        when = record_datetime(record)
        if when is not None and start_dt <= when <= end_dt:
            matches.append(record)
    return matches
