# Overview: Exception taxonomy for the record stores, durable backends, and billing.

from __future__ import annotations


class StorageError(Exception):
    """Base class for record-store failures."""


class UnknownStore(StorageError):
    def __init__(self, store: str):
        super().__init__(f"Unknown store: {store}")
        self.store = store


class NotFound(StorageError):
    """Update or lookup on an id that is not in the store."""

    def __init__(self, store: str, record_id):
        super().__init__(f"No record with id={record_id!r} in {store}")
        self.store = store
        self.record_id = record_id


class ReadOnlyStore(StorageError):
    """Transactions are immutable once appended."""

    def __init__(self, store: str, operation: str):
        super().__init__(f"{operation} is not allowed on {store}")
        self.store = store
        self.operation = operation


class VolatileQuotaExceeded(StorageError):
    """
    The volatile medium refused a write because it would exceed its quota.

    The volatile write is the success contract of every mutation, so this
    error propagates and the in-memory collection is left unchanged.
    """

    def __init__(self, key: str, required: int, quota: int):
        super().__init__(f"Writing {key} needs {required} bytes, quota is {quota}")
        self.key = key
        self.required = required
        self.quota = quota


class DurableWriteFailed(StorageError):
    """Folder not selected, read-only backend, or I/O error. Never leaves the store."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ParseFailure(StorageError):
    """Malformed JSON payload; callers treat the store as empty."""

    def __init__(self, source: str, message: str):
        super().__init__(f"Could not parse {source}: {message}")
        self.source = source


class UserCancelled(StorageError):
    """Folder picker dismissed."""


class FolderAccessDenied(StorageError):
    """The selected path cannot be used as an asset folder."""


class InsufficientStock(Exception):
    """Raised by bill finalization when a line asks for more than is on hand."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}
