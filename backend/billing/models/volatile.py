from __future__ import annotations

from ..extensions import db
from billing.time_utils import to_utc_z


class VolatileEntry(db.Model):
    """
    One flat string key of the volatile medium.

    Each store is mirrored under its own key (billing_products,
    billing_transactions, billing_expenses) as a JSON-serialized array.
    The table survives restarts but is size-limited by VOLATILE_QUOTA_BYTES.
    """
    __tablename__ = "volatile_entries"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    size_bytes = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<VolatileEntry key={self.key!r} size_bytes={self.size_bytes}>"

    def to_dict(self):
        return {
            "key": self.key,
            "size_bytes": self.size_bytes,
            "updated_at": to_utc_z(self.updated_at),
        }
