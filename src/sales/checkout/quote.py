"""Read-only checkout helpers: an order's line items, its shipping options and a pricing preview."""

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from sales.cart.cart import Cart
from sales.order.order import Order
from sales.pricing.engine import ShippingSelection, price_checkout, shipping_options_for
from sales.shipping.port import PICKUP_OPTION_ID


def load_open_order(order_id) -> Order:
    order = current_domain.repository_for(Order).get(order_id)
    if order.is_paid:
        raise ValidationError({"order_id": ["Order is already paid"]})
    return order


def order_line_items(order):
    """Cart lines of ``order``; an order without a cart or lines cannot be checked out."""
    if not order.cart_id:
        raise ValidationError({"order_id": ["Order has no items"]})

    try:
        cart = current_domain.repository_for(Cart).get(order.cart_id)
    except ObjectNotFoundError:
        raise ValidationError({"order_id": ["Order has no items"]}) from None

    line_items = cart.line_items()
    if not line_items:
        raise ValidationError({"order_id": ["Order has no items"]})
    return line_items


def shipping_options_for_order(order_id, postal_code):
    order = current_domain.repository_for(Order).get(order_id)
    return shipping_options_for(postal_code, order_line_items(order))


def preview_pricing(order_id, shipping_option_id=None, postal_code=None, coupon_code=None, now=None):
    order = load_open_order(order_id)
    selection = ShippingSelection(option_id=shipping_option_id or PICKUP_OPTION_ID, postal_code=postal_code)
    return price_checkout(order_line_items(order), selection, coupon_code=coupon_code, now=now)
