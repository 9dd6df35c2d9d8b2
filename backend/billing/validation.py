from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from billing.time_utils import parse_iso_datetime


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class RecordValidationPolicy:
    """
    Central policy layer for schema-less records:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - numeric_fields / date_fields: coerced and type-checked, everything else is text
    - nullable_fields: may be set to null (blank text becomes null too)
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    numeric_fields: set[str] = None  # type: ignore
    date_fields: set[str] = None  # type: ignore
    nullable_fields: set[str] = None  # type: ignore


PRODUCT_POLICY = RecordValidationPolicy(
    writable_fields={
        "barcode", "name", "category", "costPrice", "sellPrice",
        "quantityOnHand", "unit", "taxPercent", "description", "imageURL",
    },
    required_on_create={"barcode", "name", "category", "costPrice", "sellPrice", "quantityOnHand"},
    numeric_fields={"costPrice", "sellPrice", "quantityOnHand", "taxPercent"},
    nullable_fields={"description", "imageURL"},
)

EXPENSE_POLICY = RecordValidationPolicy(
    writable_fields={"date", "amount", "category", "note"},
    required_on_create={"date", "amount", "category"},
    numeric_fields={"amount"},
    date_fields={"date"},
    nullable_fields={"note"},
)

PRODUCT_DEFAULTS = {"unit": "pcs", "taxPercent": 0, "description": "", "imageURL": None}


def coerce_number(key: str, value: Any) -> float | int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be a number")
        try:
            number = float(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be a number")
        if number.is_integer() and "." not in stripped and "e" not in stripped.lower():
            number = int(number)
    else:
        raise ValidationError(f"{key} must be a number")

    if isinstance(number, float) and not math.isfinite(number):
        raise ValidationError(f"{key} must be a finite number")
    return number


def _coerce_value(key: str, value: Any, policy: RecordValidationPolicy):
    if key in (policy.numeric_fields or set()):
        return coerce_number(key, value)

    if key in (policy.date_fields or set()):
        if not isinstance(value, str):
            raise ValidationError(f"{key} must be an ISO-8601 date")
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{key} must be an ISO-8601 date")
        if parsed is None:
            raise ValidationError(f"{key} cannot be blank")
        return value.strip()

    return str(value).strip()


def validate_payload(*, payload: dict, policy: RecordValidationPolicy, partial: bool) -> dict:
    """
    Validates + normalizes incoming JSON against a policy.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    nullable = policy.nullable_fields or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}
    for k, raw in payload.items():
        if raw is None:
            if k not in nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(k, raw, policy)

        if isinstance(val, str) and val == "":
            if k in required:
                raise ValidationError(f"{k} cannot be blank")
            if k in nullable:
                val = None

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that the policy alone does not capture.
    Keep these small and centralized.
    """
    for field in ("costPrice", "sellPrice", "quantityOnHand", "taxPercent"):
        if field in patch and patch[field] < 0:
            raise ValidationError(f"{field} cannot be negative")


def enforce_rules_expense(patch: dict) -> None:
    if "amount" in patch and patch["amount"] <= 0:
        raise ValidationError("amount must be greater than 0")


def validate_discount_percent(value: Any) -> float | int:
    if value is None or value == "":
        return 0
    discount = coerce_number("discountPercent", value)
    if discount < 0 or discount > 100:
        raise ValidationError("discountPercent must be between 0 and 100")
    return discount


def validate_quantity(value: Any) -> float | int:
    quantity = coerce_number("quantity", value)
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    return quantity


def validate_record_list(payload: Any) -> list[dict]:
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise ValidationError("Expected a JSON array of objects")
    return payload
