"""Product aggregate: the catalogue entries sold during live and bazaar sessions.

Catalogue editing happens elsewhere; this domain reads price, stock and sale
channel, and decrements stock when a sale is recorded.
"""

from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String

from sales.domain import sales


class SaleType(Enum):
    LIVE = "LIVE"
    BAZAR = "BAZAR"


class StockUpdate(Enum):
    """Outcome of a conditional stock write."""

    OK = "ok"
    CONFLICT = "conflict"


@sales.event(part_of="Product")
class StockDecremented:
    """Units of a product left the shelf through a recorded sale."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining_stock = Integer(required=True)


@sales.aggregate
class Product:
    code = String(required=True, max_length=50)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    sale_type = String(choices=SaleType, default=SaleType.LIVE.value)
    is_active = Boolean(default=True)
    image_url = String(max_length=1024)

    def ensure_sellable(self, quantity, channel):
        """Reject a sale of ``quantity`` units on ``channel`` before anything is written."""
        if not self.is_active:
            raise ValidationError({"product_id": [f"Product {self.code} is not active"]})
        if self.sale_type != channel:
            raise ValidationError({"channel": [f"Product {self.code} is not sold on {channel} sessions"]})
        if quantity > self.stock:
            raise ValidationError(
                {"quantity": [f"Only {self.stock} unit(s) of {self.code} left in stock"]},
            )

    def decrement_stock(self, quantity):
        if quantity > self.stock:
            raise ValidationError({"quantity": [f"Only {self.stock} unit(s) of {self.code} left in stock"]})

        self.stock -= quantity
        self.raise_(
            StockDecremented(
                product_id=str(self.id),
                quantity=quantity,
                remaining_stock=self.stock,
            )
        )
