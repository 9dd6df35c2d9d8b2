# Overview: Generic entity collections (CRUD and id allocation) for any store name.

"""
Record store

Reads come from the cache only and return deep copies; mutating a returned
record has no effect until it is passed back through update().

Every mutation rewrites the whole collection: the durable medium is one JSON
document per store, so there is no partial update to express. The write goes
through SyncController.persist(): volatile first (must succeed), durable
second (best effort). The WriteResult separates the two.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass

from .cache import CacheLayer
from .sync import SyncController, coerce_id
from ..errors import NotFound


@dataclass(frozen=True)
class WriteResult:
    store: str
    id: int | None
    durable: bool
    notice: str | None = None

    @property
    def fallback_export(self) -> bool:
        return not self.durable

    def to_dict(self) -> dict:
        return {
            "store": self.store,
            "id": self.id,
            "durable": self.durable,
            "notice": self.notice,
            "fallbackExport": self.fallback_export,
        }


def next_id(records: list[dict]) -> int:
    return max((coerce_id(r.get("id")) for r in records), default=0) + 1


class RecordStore:
    def __init__(self, cache: CacheLayer, sync: SyncController):
        self.cache = cache
        self.sync = sync

    def get_all(self, store: str) -> list[dict]:
        return self.cache.snapshot(store)

    def get_by_id(self, store: str, record_id: int) -> dict | None:
        for record in self.cache.records(store):
            if record.get("id") == record_id:
                return copy.deepcopy(record)
        return None

    def add(self, store: str, record: dict) -> WriteResult:
        items = self.cache.snapshot(store)
        new_record = copy.deepcopy(record)
        new_record["id"] = next_id(items)
        items.append(new_record)
        return self._write(store, items, new_record["id"])

    def update(self, store: str, record: dict) -> WriteResult:
        record_id = record.get("id")
        items = self.cache.snapshot(store)
        for index, existing in enumerate(items):
            if existing.get("id") == record_id:
                items[index] = copy.deepcopy(record)
                return self._write(store, items, record_id)
        raise NotFound(store, record_id)

    def delete(self, store: str, record_id: int) -> WriteResult:
        items = [r for r in self.cache.snapshot(store) if r.get("id") != record_id]
        return self._write(store, items, record_id)

    def replace_all(self, store: str, records: list[dict]) -> WriteResult:
        """Write a prepared collection in one step (batched updates, compensation)."""
        return self._write(store, copy.deepcopy(records), None)

    def _write(self, store: str, items: list[dict], record_id: int | None) -> WriteResult:
        outcome = self.sync.persist(store, items)
        return WriteResult(store=store, id=record_id, durable=outcome.durable, notice=outcome.notice)
