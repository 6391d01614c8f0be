"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from sales.domain import sales


@sales.event(part_of="Cart")
class CartOpened:
    """A cart was opened to hold the lines of a customer's order for the day."""

    __version__ = 1

    cart_id = Identifier(required=True)
    customer_phone = String(required=True)
    event_type = String(required=True)
    business_day = String(required=True)


@sales.event(part_of="Cart")
class CartItemAdded:
    """Units of a product were put in the cart (new line or merged into an existing one)."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    product_code = String()
    product_name = String()
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)
    unit_price = Float(required=True)


@sales.event(part_of="Cart")
class CartClosed:
    __version__ = 1

    cart_id = Identifier(required=True)
