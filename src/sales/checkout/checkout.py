"""Checkout: price an open order and hand it to the payment gateway.

Nothing is committed until the gateway has answered with a payment intent:
the checkout snapshot and the coupon usage are written afterwards. A coupon
redeemed for a payment that is never completed stays counted.
"""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from sales.checkout.quote import load_open_order, order_line_items
from sales.coupon.coupon import Coupon
from sales.customer.customer import ADDRESS_FIELDS, Customer
from sales.domain import sales
from sales.order.order import Order
from sales.payment import get_gateway
from sales.payment.port import Payer, PaymentItem
from sales.pricing.engine import ShippingSelection, price_checkout
from sales.shared.money import from_cents, round_money, to_cents
from sales.shipping.port import PICKUP_OPTION_ID

logger = structlog.get_logger(__name__)

SHIPPING_ITEM_TITLE = "Frete"


@sales.command(part_of="Order")
class StartCheckout:
    order_id = Identifier(required=True)
    shipping_option_id = String(max_length=50, default=PICKUP_OPTION_ID)
    postal_code = String(max_length=20)
    coupon_code = String(max_length=100)
    customer_name = String(max_length=255)
    customer_email = String(max_length=255)
    street = String(max_length=255)
    number = String(max_length=20)
    complement = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=50)


def _absorb_remainder(quantity, unit_cents, diff):
    """Spread ``diff`` cents over ``quantity`` units as ``[(quantity, unit_cents), ...]``.

    When the difference does not divide evenly, one unit is split off to carry
    the leftover so the parts add up exactly.
    """
    per_unit, leftover = divmod(diff, quantity)
    if not leftover:
        return [(quantity, unit_cents + per_unit)]
    return [(quantity - 1, unit_cents + per_unit), (1, unit_cents + per_unit + leftover)]


def _scaled_lines(line_items, subtotal, target, rounding):
    """``(line, quantity, unit_cents)`` parts scaled to ``target``; the last line takes the difference."""
    units = [
        int((Decimal(to_cents(item.unit_price) * target) / subtotal).quantize(Decimal(1), rounding=rounding))
        for item in line_items
    ]
    diff = target - sum(unit * item.quantity for unit, item in zip(units, line_items, strict=True))

    parts = [(item, item.quantity, unit) for item, unit in zip(line_items[:-1], units, strict=False)]
    last = line_items[-1]
    parts.extend((last, quantity, unit) for quantity, unit in _absorb_remainder(last.quantity, units[-1], diff))
    return parts


def build_payment_items(line_items, discount, shipping_cost):
    """Gateway items for a priced order.

    The discount is spread over the product lines in proportion to their
    subtotals; the last line absorbs the rounding difference. Shipping becomes
    its own line and zero-priced lines are dropped. The items always add up to
    the discounted total plus shipping.
    """
    subtotal = sum(to_cents(item.unit_price) * item.quantity for item in line_items)
    target = max(0, subtotal - min(to_cents(discount), subtotal))

    parts = []
    if subtotal > 0:
        parts = _scaled_lines(line_items, subtotal, target, ROUND_HALF_UP)
        if any(unit < 0 for _, _, unit in parts):
            # Rounded shares overshot the target by more than the last line holds
            parts = _scaled_lines(line_items, subtotal, target, ROUND_FLOOR)

    items = [
        PaymentItem(
            title=item.product_name or f"{item.product_code} Produto",
            quantity=quantity,
            unit_price=from_cents(unit),
        )
        for item, quantity, unit in parts
    ]

    if shipping_cost > 0:
        items.append(PaymentItem(title=SHIPPING_ITEM_TITLE, quantity=1, unit_price=round_money(shipping_cost)))

    return [item for item in items if item.unit_price > 0]


def _address(command):
    address = {"cep": command.postal_code}
    for field_name in ADDRESS_FIELDS:
        if field_name != "cep":
            address[field_name] = getattr(command, field_name)
    return address


def _save_customer_data(order, command):
    try:
        current_domain.repository_for(Customer).upsert(
            order.customer_phone,
            name=command.customer_name,
            email=command.customer_email,
            address=_address(command),
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("Customer data not saved at checkout", order_id=str(order.id), error=str(exc))


@sales.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(StartCheckout)
    def start_checkout(self, command):
        order = load_open_order(command.order_id)
        line_items = order_line_items(order)

        selection = ShippingSelection(
            option_id=command.shipping_option_id or PICKUP_OPTION_ID,
            postal_code=command.postal_code,
        )
        if not selection.is_pickup:
            missing = {
                field_name: ["Required for delivery"]
                for field_name in ("postal_code", "street")
                if not getattr(command, field_name)
            }
            if missing:
                raise ValidationError(missing)

        pricing = price_checkout(line_items, selection, coupon_code=command.coupon_code)

        _save_customer_data(order, command)

        items = build_payment_items(line_items, pricing.discount, pricing.shipping_cost)
        if not items:
            raise ValidationError({"order_id": ["Nothing to charge for this order"]})

        intent = get_gateway().create_payment_intent(
            order_id=str(order.id),
            items=items,
            payer=Payer(
                name=command.customer_name,
                phone=order.customer_phone,
                email=command.customer_email,
                address=_address(command),
            ),
            external_reference=str(order.id),
        )

        order.start_checkout(intent.reference, pricing)
        current_domain.repository_for(Order).add(order)

        if pricing.coupon_code:
            coupon_repo = current_domain.repository_for(Coupon)
            coupon = coupon_repo.find_by_code(pricing.coupon_code)
            coupon.redeem()
            coupon_repo.add(coupon)

        logger.info(
            "Checkout started",
            order_id=str(order.id),
            payment_reference=intent.reference,
            grand_total=pricing.grand_total,
            coupon_code=pricing.coupon_code,
            shipping_option=pricing.shipping_option,
        )

        return {
            "order_id": str(order.id),
            "redirect_url": intent.redirect_url,
            "payment_reference": intent.reference,
            "grand_total": pricing.grand_total,
        }
