"""Cart aggregate: the line-item container of one order.

A cart is opened lazily by the first sale of an order and closed when the
order is paid. Repeat sales of a product merge into the existing line: there
is never more than one CartItem per product.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from sales.cart.events import CartClosed, CartItemAdded, CartOpened
from sales.domain import sales
from sales.shared.money import line_total, round_money


class CartStatus(Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class LineItem:
    """Priced snapshot of a cart line, as consumed by pricing and checkout."""

    product_id: str
    quantity: int
    unit_price: float
    product_code: str | None = None
    product_name: str | None = None

    @property
    def subtotal(self) -> float:
        return line_total(self.unit_price, self.quantity)


@sales.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    product_code = String(max_length=50)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    updated_at = DateTime()


@sales.aggregate
class Cart:
    customer_phone = String(required=True, max_length=20)
    event_type = String(required=True, max_length=20)
    business_day = String(required=True, max_length=10)
    status = String(choices=CartStatus, default=CartStatus.OPEN.value)
    items = HasMany(CartItem)
    created_at = DateTime()

    @invariant.post
    def one_line_per_product(self):
        product_ids = [str(item.product_id) for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A product can only appear once in a cart"]})

    @classmethod
    def open(cls, customer_phone, event_type, business_day):
        cart = cls(
            customer_phone=customer_phone,
            event_type=event_type,
            business_day=business_day,
            status=CartStatus.OPEN.value,
            created_at=datetime.now(UTC),
        )
        cart.raise_(
            CartOpened(
                cart_id=str(cart.id),
                customer_phone=customer_phone,
                event_type=event_type,
                business_day=business_day,
            )
        )
        return cart

    def add_item(self, product_id, quantity, unit_price, product_code=None, product_name=None):
        """Add units of a product; an existing line gets the quantity added and the price refreshed."""
        if CartStatus(self.status) != CartStatus.OPEN:
            raise ValidationError({"status": ["Items can only be added to an open cart"]})

        now = datetime.now(UTC)
        existing = self.item_for(product_id)

        if existing:
            existing.quantity += quantity
            existing.unit_price = unit_price
            existing.updated_at = now
            item = existing
        else:
            item = CartItem(
                product_id=product_id,
                product_code=product_code,
                product_name=product_name,
                quantity=quantity,
                unit_price=unit_price,
                updated_at=now,
            )
            self.add_items(item)

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                product_code=product_code,
                product_name=product_name,
                quantity=quantity,
                line_quantity=item.quantity,
                unit_price=unit_price,
            )
        )
        return item

    def item_for(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def line_items(self):
        return [
            LineItem(
                product_id=str(item.product_id),
                quantity=item.quantity,
                unit_price=item.unit_price,
                product_code=item.product_code,
                product_name=item.product_name,
            )
            for item in self.items
        ]

    @property
    def total(self):
        return round_money(sum(line.subtotal for line in self.line_items()))

    def close(self):
        if CartStatus(self.status) == CartStatus.CLOSED:
            return
        self.status = CartStatus.CLOSED.value
        self.raise_(CartClosed(cart_id=str(self.id)))
