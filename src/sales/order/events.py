"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from sales.domain import sales


@sales.event(part_of="Order")
class OrderOpened:
    """The first sale of the day for a customer opened a new order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_phone = String(required=True)
    event_type = String(required=True)
    business_day = String(required=True)
    total_amount = Float(required=True)
    opened_at = DateTime()


@sales.event(part_of="Order")
class SaleAdded:
    """A sale was merged into a customer's open order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_phone = String(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    subtotal = Float(required=True)
    total_amount = Float(required=True)


@sales.event(part_of="Order")
class CheckoutStarted:
    """A payment intent was created for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_reference = String(required=True)
    grand_total = Float(required=True)
    coupon_code = String()
    discount_amount = Float()
    shipping_cost = Float()


@sales.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_phone = String(required=True)
    payment_reference = String()
    paid_at = DateTime(required=True)
