"""
Billing Service - cart handling and bill finalization

WHY: Finalizing a bill is the only operation that changes two stores
together: product quantities go down and one immutable transaction record is
appended.

The sequence is all-or-nothing at the validation level:
1. Re-fetch every product and validate all lines (quantities aggregated per
   product) before anything is written.
2. Commit every product decrement in a single products write.
3. Append the transaction. If the append fails for any reason, the
   previous products collection is written back (compensating step) and the
   error is raised.
4. Clear the cart.

Durable-write failures in steps 2 and 3 never abort; they surface in the
returned WriteResults.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from flask import current_app

from ..errors import InsufficientStock, NotFound
from ..storage import PRODUCTS, TRANSACTIONS, StorageManager, WriteResult
from ..time_utils import to_utc_z, utcnow
from ..validation import ValidationError, coerce_number, validate_discount_percent, validate_quantity


def _dec(value) -> Decimal:
    return Decimal(str(value))


def _on_hand(product: dict):
    # Hand-edited files may carry "10" instead of 10
    return coerce_number("quantityOnHand", product.get("quantityOnHand", 0))


@dataclass
class CartLine:
    productId: int
    name: str
    barcode: str
    quantity: float
    unitPrice: float
    taxPercent: float
    unit: str

    @classmethod
    def from_product(cls, product: dict, quantity) -> "CartLine":
        return cls(
            productId=product["id"],
            name=product.get("name", ""),
            barcode=product.get("barcode", ""),
            quantity=quantity,
            unitPrice=product.get("sellPrice", 0),
            taxPercent=product.get("taxPercent", 0),
            unit=product.get("unit", "pcs"),
        )

    def to_dict(self) -> dict:
        return {
            "productId": self.productId,
            "name": self.name,
            "barcode": self.barcode,
            "quantity": self.quantity,
            "unitPrice": self.unitPrice,
            "taxPercent": self.taxPercent,
            "unit": self.unit,
        }


@dataclass(frozen=True)
class BillTotals:
    subtotal: float
    total_tax: float
    discount_amount: float
    grand_total: float

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "totalTax": self.total_tax,
            "discountAmount": self.discount_amount,
            "grandTotal": self.grand_total,
        }


def compute_totals(lines, discount_percent=0) -> BillTotals:
    """
    lineTotal = quantity * unitPrice, lineTax = lineTotal * taxPercent / 100,
    discount applies to subtotal + tax. Amounts are not rounded; two-decimal
    formatting is a display concern.
    """
    subtotal = Decimal("0")
    total_tax = Decimal("0")
    for line in lines:
        line_total = _dec(line.quantity) * _dec(line.unitPrice)
        subtotal += line_total
        total_tax += line_total * _dec(line.taxPercent) / 100

    discount_amount = (subtotal + total_tax) * _dec(discount_percent) / 100
    grand_total = subtotal + total_tax - discount_amount
    return BillTotals(
        subtotal=float(subtotal),
        total_tax=float(total_tax),
        discount_amount=float(discount_amount),
        grand_total=float(grand_total),
    )


def format_amount(value, symbol: str = "₹") -> str:
    return f"{symbol}{value:.2f}"


@dataclass
class Cart:
    lines: list[CartLine] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def is_empty(self) -> bool:
        return not self.lines

    def find(self, product_id: int) -> CartLine | None:
        for line in self.lines:
            if line.productId == product_id:
                return line
        return None

    def add(self, product: dict, quantity=1) -> CartLine:
        """Add or merge a line; refuses more than the product has on hand."""
        quantity = validate_quantity(quantity)
        on_hand = _on_hand(product)

        existing = self.find(product["id"])
        requested = quantity + (existing.quantity if existing else 0)
        if requested > on_hand:
            raise InsufficientStock(
                f"Only {on_hand} {product.get('unit', '')} available".strip(),
                details={"product_id": product["id"], "requested_quantity": requested, "on_hand": on_hand},
            )

        if existing:
            existing.quantity = requested
            return existing

        line = CartLine.from_product(product, quantity)
        self.lines.append(line)
        return line

    def set_quantity(self, product_id: int, quantity) -> CartLine:
        line = self.find(product_id)
        if line is None:
            raise NotFound("cart", product_id)
        line.quantity = validate_quantity(quantity)
        return line

    def remove(self, product_id: int) -> None:
        self.lines = [line for line in self.lines if line.productId != product_id]

    def clear(self) -> None:
        self.lines = []

    def summary(self, discount_percent=0) -> BillTotals:
        return compute_totals(self.lines, validate_discount_percent(discount_percent))


def add_by_barcode(storage: StorageManager, cart: Cart, barcode: str, quantity=1) -> dict | None:
    """
    Scanned or typed barcode: add the matching product to the cart.

    Returns None when no product matches so the caller can offer to create
    one with that barcode.
    """
    barcode = (barcode or "").strip()
    if not barcode:
        raise ValidationError("Please enter a barcode")

    product = storage.products.get_by_barcode(barcode)
    if product is None:
        return None
    cart.add(product, quantity)
    return product


@dataclass(frozen=True)
class BillResult:
    transaction: dict
    totals: BillTotals
    product_write: WriteResult
    transaction_write: WriteResult

    @property
    def durable(self) -> bool:
        return self.product_write.durable and self.transaction_write.durable

    def to_dict(self) -> dict:
        return {
            "transaction": self.transaction,
            "totals": self.totals.to_dict(),
            "durable": self.durable,
            "storage": {
                "products": self.product_write.to_dict(),
                "transactions": self.transaction_write.to_dict(),
            },
        }


def _validate_on_hand(storage: StorageManager, cart: Cart) -> dict[int, float]:
    requested: dict[int, float] = {}
    for line in cart:
        requested[line.productId] = requested.get(line.productId, 0) + line.quantity

    insufficient = []
    for product_id, qty in requested.items():
        product = storage.products.get_by_id(product_id)
        if product is None:
            raise NotFound(PRODUCTS, product_id)
        on_hand = _on_hand(product)
        if on_hand < qty:
            insufficient.append({
                "product_id": product_id,
                "name": product.get("name"),
                "requested_quantity": qty,
                "on_hand": on_hand,
            })

    if insufficient:
        names = ", ".join(str(item["name"]) for item in insufficient)
        raise InsufficientStock(f"Insufficient quantity for {names}", details={"items": insufficient})

    return requested


def finalize_bill(
    storage: StorageManager,
    cart: Cart,
    *,
    discount_percent=0,
    payment_method: str | None = None,
    now: datetime | None = None,
) -> BillResult:
    if cart.is_empty():
        raise ValidationError("Cart is empty")
    discount_percent = validate_discount_percent(discount_percent)

    requested = _validate_on_hand(storage, cart)

    previous_products = storage.records.get_all(PRODUCTS)
    updated_products = []
    for product in previous_products:
        product = dict(product)
        qty = requested.get(product.get("id"))
        if qty is not None:
            product["quantityOnHand"] = _on_hand(product) - qty
        updated_products.append(product)

    totals = compute_totals(cart.lines, discount_percent)
    transaction = {
        "date": to_utc_z(now or utcnow()),
        "items": [line.to_dict() for line in cart],
        "subtotal": totals.subtotal,
        "totalTax": totals.total_tax,
        "discount": totals.discount_amount,
        "grandTotal": totals.grand_total,
        "paymentMethod": payment_method or current_app.config["DEFAULT_PAYMENT_METHOD"],
    }

    product_write = storage.records.replace_all(PRODUCTS, updated_products)
    try:
        transaction_write = storage.records.add(TRANSACTIONS, transaction)
    except Exception:
        storage.logger.exception("Transaction append failed; restoring product quantities")
        storage.records.replace_all(PRODUCTS, previous_products)
        raise

    transaction["id"] = transaction_write.id
    cart.clear()
    return BillResult(
        transaction=transaction,
        totals=totals,
        product_write=product_write,
        transaction_write=transaction_write,
    )
