# Overview: Pytest coverage for payload validation policies.

import pytest

from billing.validation import (
    EXPENSE_POLICY,
    PRODUCT_POLICY,
    ValidationError,
    enforce_rules_expense,
    enforce_rules_product,
    validate_discount_percent,
    validate_payload,
)


def test_numbers_are_coerced_and_text_is_stripped():
    patch = validate_payload(
        payload={"name": "  Tea ", "sellPrice": "12.50", "quantityOnHand": "3"},
        policy=PRODUCT_POLICY,
        partial=True,
    )

    assert patch == {"name": "Tea", "sellPrice": 12.5, "quantityOnHand": 3}


@pytest.mark.parametrize("value", [True, "abc", "", [], "nan"])
def test_rejects_non_numbers(value):
    with pytest.raises(ValidationError):
        validate_payload(payload={"sellPrice": value}, policy=PRODUCT_POLICY, partial=True)


def test_blank_optional_text_becomes_null():
    patch = validate_payload(payload={"imageURL": "  "}, policy=PRODUCT_POLICY, partial=True)

    assert patch == {"imageURL": None}


def test_required_fields_cannot_be_null():
    with pytest.raises(ValidationError):
        validate_payload(payload={"barcode": None}, policy=PRODUCT_POLICY, partial=True)


def test_missing_required_fields_listed():
    with pytest.raises(ValidationError, match="Missing required fields: amount, category"):
        validate_payload(payload={"date": "2024-01-01"}, policy=EXPENSE_POLICY, partial=False)


def test_business_rules():
    with pytest.raises(ValidationError):
        enforce_rules_product({"quantityOnHand": -1})
    with pytest.raises(ValidationError):
        enforce_rules_expense({"amount": 0})
    enforce_rules_product({"quantityOnHand": 0})


def test_discount_percent_bounds():
    assert validate_discount_percent(None) == 0
    assert validate_discount_percent("12.5") == 12.5
    with pytest.raises(ValidationError):
        validate_discount_percent(-1)
    with pytest.raises(ValidationError):
        validate_discount_percent(101)
