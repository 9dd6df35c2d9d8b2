# Overview: Durable persistence strategies: user-granted asset folder or bundled read-only files.

"""
Durable backends

Exactly one backend is active per session, chosen at startup by
detect_backend(). Both read one pretty-printed JSON array per store
(products.json, transactions.json, expenses.json).

- FolderBackend: reads and writes files in a folder the user granted during
  this session. The grant is held in memory only. Until a folder is granted,
  reads fall back to the bundled files and writes fail.
- BundledBackend: reads the JSON files shipped with the application. Writes
  always fail; callers offer a manual export instead.
"""
from __future__ import annotations

import json
import os
import tempfile
from enum import Enum
from pathlib import Path

from ..errors import DurableWriteFailed, FolderAccessDenied, ParseFailure

FILE_NAMES = {
    "products": "products.json",
    "transactions": "transactions.json",
    "expenses": "expenses.json",
}


def file_name_for(store: str) -> str:
    return FILE_NAMES.get(store, f"{store}.json")


def dump_records(records: list[dict]) -> str:
    return json.dumps(records, indent=2, ensure_ascii=False)


class Capability(str, Enum):
    WRITABLE = "writable"
    FOLDER_NOT_SELECTED = "folder-not-selected"
    READ_ONLY = "read-only"


def _read_json_array(path: Path) -> list[dict]:
    if not path.exists():
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ParseFailure(str(path), str(exc)) from exc
    if not text.strip():
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseFailure(str(path), str(exc)) from exc
    if not isinstance(data, list):
        raise ParseFailure(str(path), "expected a JSON array")
    return [item for item in data if isinstance(item, dict)]


class DurableBackend:
    name = "durable"

    def read(self, store: str) -> list[dict]:
        """Return the stored array; missing file is empty, malformed raises ParseFailure."""
        raise NotImplementedError

    def write(self, store: str, records: list[dict]) -> None:
        """Replace the stored array or raise DurableWriteFailed."""
        raise NotImplementedError

    def capability(self) -> Capability:
        raise NotImplementedError

    def describe(self) -> dict:
        return {"backend": self.name, "capability": self.capability().value}


class BundledBackend(DurableBackend):
    name = "bundled"

    def __init__(self, asset_dir: str | os.PathLike):
        self.asset_dir = Path(asset_dir)

    def read(self, store: str) -> list[dict]:
        return _read_json_array(self.asset_dir / file_name_for(store))

    def write(self, store: str, records: list[dict]) -> None:
        raise DurableWriteFailed("read-only backend")

    def capability(self) -> Capability:
        return Capability.READ_ONLY

    def describe(self) -> dict:
        return {**super().describe(), "asset_dir": str(self.asset_dir)}


class FolderBackend(DurableBackend):
    name = "folder"

    def __init__(self, fallback: DurableBackend | None = None, folder: str | os.PathLike | None = None):
        self.fallback = fallback
        self.folder: Path | None = None
        if folder is not None:
            self.grant(folder)

    def grant(self, folder: str | os.PathLike) -> Path:
        path = Path(folder).expanduser()
        if not path.is_dir():
            raise FolderAccessDenied(f"Not a folder: {path}")
        if not os.access(path, os.R_OK | os.W_OK):
            raise FolderAccessDenied(f"Folder is not readable and writable: {path}")
        self.folder = path.resolve()
        return self.folder

    def revoke(self) -> None:
        self.folder = None

    def read(self, store: str) -> list[dict]:
        if self.folder is None:
            return self.fallback.read(store) if self.fallback is not None else []
        return _read_json_array(self.folder / file_name_for(store))

    def write(self, store: str, records: list[dict]) -> None:
        if self.folder is None:
            raise DurableWriteFailed("folder not selected")

        target = self.folder / file_name_for(store)
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.folder, prefix=f".{target.name}.", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(dump_records(records))
            os.replace(tmp_name, target)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise DurableWriteFailed(f"Failed to save {target.name}: {exc}") from exc

    def capability(self) -> Capability:
        return Capability.WRITABLE if self.folder is not None else Capability.FOLDER_NOT_SELECTED

    def describe(self) -> dict:
        return {**super().describe(), "folder": str(self.folder) if self.folder else None}


def detect_backend(config) -> DurableBackend:
    bundled = BundledBackend(config["BUNDLED_ASSET_DIR"])
    if config.get("FOLDER_ACCESS_SUPPORTED", True):
        return FolderBackend(fallback=bundled)
    return bundled
