# backend/billing/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Volatile medium: SQLite key/value table stored in backend/instance/billing.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///billing.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Size limit of the volatile medium across all store keys (5 MiB)
    VOLATILE_QUOTA_BYTES = int(os.environ.get("BILLING_VOLATILE_QUOTA", str(5 * 1024 * 1024)))

    # Capability detection: folder access selects the writable folder backend,
    # otherwise only the read-only bundled JSON files are available.
    FOLDER_ACCESS_SUPPORTED = _env_flag("BILLING_FOLDER_ACCESS", True)
    BUNDLED_ASSET_DIR = os.environ.get(
        "BILLING_BUNDLED_ASSETS",
        os.path.join(os.path.dirname(os.path.abspath(__file__)), "static", "asset"),
    )

    SEED_DEFAULT_PRODUCTS = _env_flag("BILLING_SEED_DEFAULTS", True)
    DEFAULT_PAYMENT_METHOD = os.environ.get("BILLING_PAYMENT_METHOD", "Cash")
