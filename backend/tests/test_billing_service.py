# Overview: Pytest coverage for cart rules and bill finalization.

import json
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from billing.errors import InsufficientStock, NotFound, VolatileQuotaExceeded
from billing.services.billing_service import (
    Cart,
    CartLine,
    add_by_barcode,
    compute_totals,
    finalize_bill,
)
from billing.storage import PRODUCTS, TRANSACTIONS, get_storage
from billing.validation import ValidationError
from tests.conftest import make_product


@pytest.fixture
def product_a(storage):
    result = storage.products.add(make_product("A100", name="Rice", sellPrice=50.00, taxPercent=5, quantityOnHand=10))
    return storage.products.get_by_id(result.id)


@pytest.fixture
def product_b(storage):
    result = storage.products.add(make_product("B200", name="Oil", sellPrice=120.00, taxPercent=12, quantityOnHand=3))
    return storage.products.get_by_id(result.id)


class TestCart:
    def test_add_merges_lines_for_same_product(self, product_a):
        cart = Cart()
        cart.add(product_a, 2)
        cart.add(product_a, 3)

        assert len(cart) == 1
        assert cart.find(product_a["id"]).quantity == 5

    def test_add_refuses_more_than_on_hand(self, product_b):
        cart = Cart()
        cart.add(product_b, 2)

        with pytest.raises(InsufficientStock) as exc:
            cart.add(product_b, 2)

        assert exc.value.details["on_hand"] == 3
        assert cart.find(product_b["id"]).quantity == 2

    def test_line_snapshots_product_fields(self, product_a):
        line = Cart().add(product_a)

        assert line.to_dict() == {
            "productId": product_a["id"],
            "name": "Rice",
            "barcode": "A100",
            "quantity": 1,
            "unitPrice": 50.0,
            "taxPercent": 5,
            "unit": "pcs",
        }

    def test_set_quantity_requires_at_least_one(self, product_a):
        cart = Cart()
        cart.add(product_a)

        with pytest.raises(ValidationError):
            cart.set_quantity(product_a["id"], 0)
        assert cart.set_quantity(product_a["id"], 4).quantity == 4

        with pytest.raises(NotFound):
            cart.set_quantity(999, 1)

    def test_remove_and_clear(self, product_a, product_b):
        cart = Cart()
        cart.add(product_a)
        cart.add(product_b)

        cart.remove(product_a["id"])
        assert [line.productId for line in cart] == [product_b["id"]]

        cart.clear()
        assert cart.is_empty()

    def test_summary_rejects_out_of_range_discount(self, product_a):
        cart = Cart()
        cart.add(product_a)

        with pytest.raises(ValidationError):
            cart.summary(150)


class TestTotals:
    def test_documented_example(self):
        line = CartLine(productId=1, name="A", barcode="1", quantity=2, unitPrice=50.00, taxPercent=5, unit="kg")

        totals = compute_totals([line], 10)

        assert totals.subtotal == 100.00
        assert totals.total_tax == 5.00
        assert totals.discount_amount == 10.50
        assert totals.grand_total == 94.50

    def test_no_rounding_is_stored(self):
        line = CartLine(productId=1, name="A", barcode="1", quantity=3, unitPrice=0.333, taxPercent=0, unit="pcs")

        assert compute_totals([line]).subtotal == 0.999


class TestBarcodeFlow:
    def test_known_barcode_is_added(self, storage, product_a):
        cart = Cart()

        assert add_by_barcode(storage, cart, "A100")["id"] == product_a["id"]
        assert cart.find(product_a["id"]).quantity == 1

    def test_unknown_barcode_offers_creation(self, storage):
        cart = Cart()

        assert add_by_barcode(storage, cart, "NEW-1") is None
        assert cart.is_empty()

    def test_blank_barcode(self, storage):
        with pytest.raises(ValidationError):
            add_by_barcode(storage, Cart(), "  ")


class TestFinalizeBill:
    def test_documented_scenario(self, storage, product_a):
        cart = Cart()
        cart.add(product_a, 2)

        result = finalize_bill(storage, cart, discount_percent=10, now=datetime(2024, 3, 5, 10, 0, 0))

        assert storage.products.get_by_id(product_a["id"])["quantityOnHand"] == 8
        transactions = storage.transactions.get_all()
        assert len(transactions) == 1
        tx = transactions[0]
        assert tx["id"] == 1
        assert tx["date"] == "2024-03-05T10:00:00Z"
        assert tx["subtotal"] == 100.00
        assert tx["totalTax"] == 5.00
        assert tx["discount"] == 10.50
        assert tx["grandTotal"] == 94.50
        assert tx["paymentMethod"] == "Cash"
        assert tx["items"] == [{
            "productId": product_a["id"], "name": "Rice", "barcode": "A100",
            "quantity": 2, "unitPrice": 50.0, "taxPercent": 5, "unit": "pcs",
        }]
        assert result.transaction == tx
        assert cart.is_empty()

    def test_insufficient_stock_changes_nothing(self, storage, product_a, product_b):
        cart = Cart()
        cart.add(product_a, 2)
        cart.add(product_b, 3)
        storage.products.update({**product_b, "quantityOnHand": 1})
        products_before = storage.products.get_all()

        with pytest.raises(InsufficientStock) as exc:
            finalize_bill(storage, cart)

        assert exc.value.details["items"][0]["product_id"] == product_b["id"]
        assert storage.products.get_all() == products_before
        assert storage.transactions.get_all() == []
        assert len(cart) == 2

    def test_quantities_are_aggregated_per_product(self, storage, product_b):
        line = CartLine.from_product(product_b, 2)
        cart = Cart(lines=[line, CartLine.from_product(product_b, 2)])

        with pytest.raises(InsufficientStock):
            finalize_bill(storage, cart)

        assert storage.products.get_by_id(product_b["id"])["quantityOnHand"] == 3

    def test_deleted_product_aborts(self, storage, product_a, product_b):
        cart = Cart()
        cart.add(product_a, 1)
        cart.add(product_b, 1)
        storage.products.delete(product_b["id"])

        with pytest.raises(NotFound):
            finalize_bill(storage, cart)

        assert storage.products.get_by_id(product_a["id"])["quantityOnHand"] == 10
        assert storage.transactions.get_all() == []

    def test_empty_cart(self, storage):
        with pytest.raises(ValidationError):
            finalize_bill(storage, Cart())

    def test_rejected_append_restores_products(self, storage, product_a, monkeypatch):
        cart = Cart()
        cart.add(product_a, 4)

        def reject(store, record):
            raise VolatileQuotaExceeded("billing_transactions", 10, 5)

        monkeypatch.setattr(storage.records, "add", reject)

        with pytest.raises(VolatileQuotaExceeded):
            finalize_bill(storage, cart)

        assert storage.products.get_by_id(product_a["id"])["quantityOnHand"] == 10
        assert storage.records.get_all(TRANSACTIONS) == []
        assert len(cart) == 1

    def test_database_error_on_append_restores_products(self, storage, product_a, monkeypatch):
        cart = Cart()
        cart.add(product_a, 2)
        volatile = storage.cache.volatile
        real_set_item = volatile.set_item

        def locked_transactions(key, value):
            if key == "billing_transactions":
                raise OperationalError("UPDATE", {}, Exception("database is locked"))
            return real_set_item(key, value)

        monkeypatch.setattr(volatile, "set_item", locked_transactions)

        with pytest.raises(OperationalError):
            finalize_bill(storage, cart)

        assert storage.products.get_by_id(product_a["id"])["quantityOnHand"] == 10
        assert storage.transactions.get_all() == []
        assert len(cart) == 1

    def test_durability_outcome_without_folder(self, storage, product_a):
        cart = Cart()
        cart.add(product_a)

        result = finalize_bill(storage, cart, payment_method="Card")

        assert result.durable is False
        assert result.transaction_write.notice == "folder not selected"
        assert storage.transactions.get_by_id(1)["paymentMethod"] == "Card"

    def test_payment_method_defaults_to_config(self, make_app):
        app = make_app(DEFAULT_PAYMENT_METHOD="UPI")
        with app.app_context():
            storage = get_storage()
            storage.products.add(make_product("U1"))
            cart = Cart()
            cart.add(storage.products.get_by_barcode("U1"))

            result = finalize_bill(storage, cart)

        assert result.transaction["paymentMethod"] == "UPI"

    def test_string_stock_from_hand_edited_record(self, storage, product_a):
        storage.products.update({**product_a, "quantityOnHand": "3"})
        cart = Cart()
        cart.add(storage.products.get_by_id(product_a["id"]), 2)

        finalize_bill(storage, cart)

        assert storage.products.get_by_id(product_a["id"])["quantityOnHand"] == 1

    def test_unparseable_stock_is_a_validation_error(self, storage, product_a):
        cart = Cart()
        cart.add(product_a, 1)
        storage.products.update({**product_a, "quantityOnHand": "lots"})

        with pytest.raises(ValidationError):
            finalize_bill(storage, cart)
        assert storage.transactions.get_all() == []

    def test_durable_when_folder_granted(self, storage, product_a, asset_folder):
        storage.backend.grant(asset_folder)
        cart = Cart()
        cart.add(product_a, 3)

        result = finalize_bill(storage, cart)

        assert result.durable is True
        saved_products = json.loads((asset_folder / "products.json").read_text())
        saved_transactions = json.loads((asset_folder / "transactions.json").read_text())
        assert saved_products[0]["quantityOnHand"] == 7
        assert len(saved_transactions) == 1
        assert storage.records.get_all(PRODUCTS) == saved_products
