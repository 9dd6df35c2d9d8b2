# Overview: Load order (volatile, then durable) and write order (volatile, then durable) for all stores.

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Callable

from .backends import DurableBackend, FolderBackend, dump_records, file_name_for
from .cache import EXPENSES, PRODUCTS, CacheLayer
from ..errors import DurableWriteFailed, ParseFailure, UserCancelled, VolatileQuotaExceeded
from ..validation import EXPENSE_POLICY, PRODUCT_POLICY, ValidationError, coerce_number

NUMERIC_FIELDS = {
    PRODUCTS: PRODUCT_POLICY.numeric_fields,
    EXPENSES: EXPENSE_POLICY.numeric_fields,
}

DEFAULT_PRODUCTS = (
    {
        "id": 1,
        "barcode": "1001",
        "name": "Sugar",
        "category": "Grocery",
        "costPrice": 45.00,
        "sellPrice": 50.00,
        "quantityOnHand": 100,
        "unit": "kg",
        "taxPercent": 5,
        "description": "White granulated sugar",
        "imageURL": None,
    },
    {
        "id": 2,
        "barcode": "1002",
        "name": "Dal",
        "category": "Grocery",
        "costPrice": 80.00,
        "sellPrice": 90.00,
        "quantityOnHand": 50,
        "unit": "kg",
        "taxPercent": 5,
        "description": "Yellow split dal",
        "imageURL": None,
    },
)


@dataclass(frozen=True)
class DurabilityOutcome:
    durable: bool
    notice: str | None = None


def coerce_id(value) -> int:
    """Positive integer id, or 0 for missing/invalid values."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return number if number > 0 else 0


def backfill_ids(records: list[dict]) -> bool:
    """
    Assign ids 1..N in iteration order when no record carries a usable id.

    Hand-edited JSON files may omit ids entirely. The migration is skipped as
    soon as one record has a positive id, so it runs at most once per store.
    """
    if not records:
        return False
    if any(coerce_id(record.get("id")) for record in records):
        return False
    for index, record in enumerate(records, start=1):
        record["id"] = index
    return True


def normalize_numbers(store: str, records: list[dict], logger: logging.Logger) -> None:
    """Coerce numeric fields stored as strings in place; unparseable values are left alone."""
    for record in records:
        for key in NUMERIC_FIELDS.get(store, ()):
            value = record.get(key)
            if not isinstance(value, str):
                continue
            try:
                record[key] = coerce_number(key, value)
            except ValidationError:
                logger.warning("Record %s in %s has non-numeric %s: %r", record.get("id"), store, key, value)


class SyncController:
    def __init__(
        self,
        cache: CacheLayer,
        backend: DurableBackend,
        logger: logging.Logger,
        seed_default_products: bool = True,
    ):
        self.cache = cache
        self.backend = backend
        self.logger = logger
        self.seed_default_products = seed_default_products

    def initialize(self) -> None:
        """Startup: volatile load, durable override, id backfill, volatile write-back, seeding."""
        self.cache.load_from_volatile()
        self.load_durable()

        if self.seed_default_products and not self.cache.records(PRODUCTS):
            self.seed_products()

    def load_durable(self) -> None:
        for store in self.cache.stores:
            try:
                payload = self.backend.read(store)
            except ParseFailure as exc:
                self.logger.warning("Treating %s as empty: %s", store, exc)
                payload = []

            # Durable data wins only when it has records
            if payload:
                self.cache.set_memory(store, payload)

        for store in self.cache.stores:
            if backfill_ids(self.cache.records(store)):
                self.logger.info("Assigned sequential ids to legacy %s records", store)
            normalize_numbers(store, self.cache.records(store), self.logger)

        try:
            self.cache.persist_all()
        except VolatileQuotaExceeded as exc:
            self.logger.error("Could not mirror loaded data to volatile medium: %s", exc)

        self.logger.info(
            "Data loaded: %s",
            {store: len(self.cache.records(store)) for store in self.cache.stores},
        )

    def seed_products(self) -> DurabilityOutcome:
        outcome = self.persist(PRODUCTS, [copy.deepcopy(p) for p in DEFAULT_PRODUCTS])
        if not outcome.durable:
            self.logger.info("Default products saved to volatile medium only")
        self.logger.info("Default products added: %d", len(DEFAULT_PRODUCTS))
        return outcome

    def persist(self, store: str, records: list[dict]) -> DurabilityOutcome:
        """
        Volatile write (raises on failure), then best-effort durable write.

        A durable failure never undoes the volatile write; it is reported in
        the outcome so callers can offer the manual export.
        """
        self.cache.commit(store, records)
        return self.write_durable(store)

    def write_durable(self, store: str) -> DurabilityOutcome:
        try:
            self.backend.write(store, self.cache.records(store))
        except DurableWriteFailed as exc:
            self.logger.warning("Could not save %s durably, saved to volatile medium only: %s", store, exc)
            return DurabilityOutcome(durable=False, notice=exc.reason)
        return DurabilityOutcome(durable=True)

    def save_all(self) -> dict[str, DurabilityOutcome]:
        self.cache.persist_all()
        return {store: self.write_durable(store) for store in self.cache.stores}

    def select_folder(self, picker: Callable[[], object]) -> bool:
        """
        Explicit folder grant for this session.

        The picker returns a path, or None / raises UserCancelled when the user
        dismissed it; dismissal is a no-op. After a grant the folder's data is
        loaded so it takes precedence over the volatile copy.
        """
        if not isinstance(self.backend, FolderBackend):
            self.logger.info("Folder access is not supported by the %s backend", self.backend.name)
            return False

        try:
            selected = picker()
            if not selected:
                raise UserCancelled()
        except UserCancelled:
            self.logger.info("Asset folder selection cancelled")
            return False

        folder = self.backend.grant(selected)
        self.logger.info("Asset folder selected: %s", folder)
        self.load_durable()
        return True

    def export_store(self, store: str) -> tuple[str, str]:
        """Manual export artifact for when durable writes are unavailable."""
        return file_name_for(store), dump_records(self.cache.records(store))

    def import_store(self, store: str, records: list[dict]) -> int:
        """Manual import: replace the cached collection (volatile only)."""
        records = copy.deepcopy(records)
        backfill_ids(records)
        normalize_numbers(store, records, self.logger)
        self.cache.commit(store, records)
        self.logger.info("Imported %d %s records", len(records), store)
        return len(records)
