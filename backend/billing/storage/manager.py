# Overview: Owns one cache, durable backend, sync controller and record store per Flask app.

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from flask import Flask, current_app

from .backends import DurableBackend, detect_backend
from .cache import EXPENSES, PRODUCTS, STORES, TRANSACTIONS, CacheLayer, VolatileMedium
from .queries import get_by_barcode, get_by_date_range
from .record_store import RecordStore, WriteResult
from .sync import SyncController
from ..errors import ReadOnlyStore, UnknownStore
from ..extensions import db

EXTENSION_KEY = "billing_storage"


class StoreFacade:
    """Store-typed view used by routes and services (products, transactions, expenses)."""

    def __init__(self, records: RecordStore, store: str, immutable: bool = False):
        self.records = records
        self.store = store
        self.immutable = immutable

    def get_all(self) -> list[dict]:
        return self.records.get_all(self.store)

    def get_by_id(self, record_id: int) -> dict | None:
        return self.records.get_by_id(self.store, record_id)

    def add(self, record: dict) -> WriteResult:
        return self.records.add(self.store, record)

    def update(self, record: dict) -> WriteResult:
        if self.immutable:
            raise ReadOnlyStore(self.store, "update")
        return self.records.update(self.store, record)

    def delete(self, record_id: int) -> WriteResult:
        if self.immutable:
            raise ReadOnlyStore(self.store, "delete")
        return self.records.delete(self.store, record_id)

    def get_by_date_range(self, start: datetime | str, end: datetime | str) -> list[dict]:
        return get_by_date_range(self.records, self.store, start, end)


class ProductsFacade(StoreFacade):
    def get_by_barcode(self, barcode: str) -> dict | None:
        return get_by_barcode(self.records, barcode)


class StorageManager:
    def __init__(
        self,
        volatile: VolatileMedium,
        backend: DurableBackend,
        logger: logging.Logger,
        seed_default_products: bool = True,
    ):
        self.logger = logger
        self.cache = CacheLayer(volatile, logger)
        self.backend = backend
        self.sync = SyncController(self.cache, backend, logger, seed_default_products=seed_default_products)
        self.records = RecordStore(self.cache, self.sync)

        self.products = ProductsFacade(self.records, PRODUCTS)
        self.transactions = StoreFacade(self.records, TRANSACTIONS, immutable=True)
        self.expenses = StoreFacade(self.records, EXPENSES)

    def initialize(self) -> None:
        self.sync.initialize()

    def facade(self, store: str) -> StoreFacade:
        facades = {PRODUCTS: self.products, TRANSACTIONS: self.transactions, EXPENSES: self.expenses}
        try:
            return facades[store]
        except KeyError:
            raise UnknownStore(store) from None

    def capability(self):
        return self.backend.capability()

    def status(self) -> dict:
        return {
            **self.backend.describe(),
            "counts": {store: len(self.cache.records(store)) for store in self.cache.stores},
            "volatile_usage_bytes": self.cache.volatile.usage_bytes(),
            "volatile_quota_bytes": self.cache.volatile.quota_bytes,
            "volatile_entries": self.cache.volatile.entries(),
        }

    def select_folder(self, picker: Callable[[], object]) -> bool:
        return self.sync.select_folder(picker)

    def save_all(self) -> dict:
        return self.sync.save_all()

    def reload(self) -> None:
        self.sync.load_durable()

    def export_store(self, store: str) -> tuple[str, str]:
        self.facade(store)
        return self.sync.export_store(store)

    def import_store(self, store: str, records: list[dict]) -> int:
        self.facade(store)
        return self.sync.import_store(store, records)


def init_storage(app: Flask) -> StorageManager:
    """Create the per-app storage manager and run the startup load protocol."""
    manager = StorageManager(
        volatile=VolatileMedium(app.config["VOLATILE_QUOTA_BYTES"]),
        backend=detect_backend(app.config),
        logger=app.logger,
        seed_default_products=app.config.get("SEED_DEFAULT_PRODUCTS", True),
    )
    app.extensions[EXTENSION_KEY] = manager

    with app.app_context():
        db.create_all()
        manager.initialize()

    return manager


def get_storage() -> StorageManager:
    return current_app.extensions[EXTENSION_KEY]


__all__ = ["StorageManager", "StoreFacade", "ProductsFacade", "STORES", "init_storage", "get_storage"]
