# Overview: Volatile key/value medium and the in-memory cache mirrored onto it.

"""
Cache layer

The in-memory collections are the authoritative in-process copy of every
store. Each mutation is serialized into the volatile medium first; memory is
only replaced once that write succeeded, so a rejected write (quota) leaves
both the medium and memory at the previous version.
"""
from __future__ import annotations

import copy
import json
import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import VolatileEntry
from ..errors import ParseFailure, UnknownStore, VolatileQuotaExceeded

PRODUCTS = "products"
TRANSACTIONS = "transactions"
EXPENSES = "expenses"
STORES = (PRODUCTS, TRANSACTIONS, EXPENSES)

VOLATILE_KEY_PREFIX = "billing_"


def volatile_key(store: str) -> str:
    return f"{VOLATILE_KEY_PREFIX}{store}"


class VolatileMedium:
    """Flat string keys in the volatile_entries table, bounded by a byte quota."""

    def __init__(self, quota_bytes: int):
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        entry = db.session.get(VolatileEntry, key)
        return entry.value if entry is not None else None

    def set_item(self, key: str, value: str) -> None:
        size = len(value.encode("utf-8"))
        others = (
            db.session.query(db.func.coalesce(db.func.sum(VolatileEntry.size_bytes), 0))
            .filter(VolatileEntry.key != key)
            .scalar()
        )
        required = int(others) + size
        if required > self.quota_bytes:
            raise VolatileQuotaExceeded(key, required, self.quota_bytes)

        entry = db.session.get(VolatileEntry, key)
        if entry is None:
            entry = VolatileEntry(key=key)
            db.session.add(entry)
        entry.value = value
        entry.size_bytes = size
        self._commit()

    def remove_item(self, key: str) -> None:
        db.session.query(VolatileEntry).filter_by(key=key).delete()
        self._commit()

    def clear(self) -> None:
        db.session.query(VolatileEntry).delete()
        self._commit()

    def usage_bytes(self) -> int:
        total = db.session.query(db.func.coalesce(db.func.sum(VolatileEntry.size_bytes), 0)).scalar()
        return int(total)

    def entries(self) -> list[dict]:
        return [entry.to_dict() for entry in db.session.query(VolatileEntry).order_by(VolatileEntry.key).all()]

    def _commit(self) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise


class CacheLayer:
    def __init__(self, volatile: VolatileMedium, logger: logging.Logger, stores=STORES):
        self.volatile = volatile
        self.logger = logger
        self._data: dict[str, list[dict]] = {name: [] for name in stores}

    @property
    def stores(self) -> tuple[str, ...]:
        return tuple(self._data.keys())

    def records(self, store: str) -> list[dict]:
        """Live collection; only the storage layer may mutate it."""
        try:
            return self._data[store]
        except KeyError:
            raise UnknownStore(store) from None

    def snapshot(self, store: str) -> list[dict]:
        return copy.deepcopy(self.records(store))

    def set_memory(self, store: str, records: list[dict]) -> None:
        self.records(store)
        self._data[store] = records

    def load_from_volatile(self) -> None:
        for store in self.stores:
            try:
                records = self._read_volatile(store)
            except ParseFailure as exc:
                self.logger.warning("Ignoring volatile copy of %s: %s", store, exc)
                continue
            if records is not None:
                self._data[store] = records

        self.logger.info(
            "Data loaded from volatile medium: %s",
            {store: len(records) for store, records in self._data.items()},
        )

    def _read_volatile(self, store: str) -> list[dict] | None:
        key = volatile_key(store)
        raw = self.volatile.get_item(key)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ParseFailure(key, str(exc)) from exc
        if not isinstance(data, list):
            raise ParseFailure(key, "expected a JSON array")
        return [item for item in data if isinstance(item, dict)]

    def commit(self, store: str, records: list[dict]) -> None:
        """Write the full collection to the volatile medium, then adopt it in memory."""
        self.records(store)
        self.volatile.set_item(volatile_key(store), json.dumps(records))
        self._data[store] = records

    def persist_all(self) -> None:
        for store in self.stores:
            self.volatile.set_item(volatile_key(store), json.dumps(self._data[store]))
