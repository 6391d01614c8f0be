"""Order aggregate: one open order per customer per business day.

Sales accumulate into the open order until it is paid. Once paid the order is
frozen: later sales for the same customer and day open a new order.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import Index, Q
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, String

from sales.domain import sales
from sales.order.events import CheckoutStarted, OrderOpened, OrderPaid, SaleAdded
from sales.shared.money import round_money

OPEN_ORDER_INDEX = "uq_orders_open_customer_day"


class SalesChannel(Enum):
    LIVE = "LIVE"
    BAZAR = "BAZAR"


@sales.aggregate(
    indexes=[
        Index(
            "customer_phone",
            "business_day",
            unique=True,
            where=Q(is_paid=False),
            name=OPEN_ORDER_INDEX,
        ),
    ]
)
class Order:
    customer_phone = String(required=True, max_length=20)
    event_type = String(choices=SalesChannel, default=SalesChannel.LIVE.value)
    business_day = String(required=True, max_length=10)
    total_amount = Float(default=0.0, min_value=0.0)
    is_paid = Boolean(default=False)
    cart_id = Identifier()
    payment_reference = String(max_length=255)
    coupon_code = String(max_length=100)
    discount_amount = Float(default=0.0)
    shipping_cost = Float(default=0.0)
    shipping_option = String(max_length=100)
    grand_total = Float()
    created_at = DateTime()
    paid_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, customer_phone, channel, business_day, amount):
        now = datetime.now(UTC)
        order = cls(
            customer_phone=customer_phone,
            event_type=channel,
            business_day=business_day,
            total_amount=round_money(amount),
            is_paid=False,
            created_at=now,
        )
        order.raise_(
            OrderOpened(
                order_id=str(order.id),
                customer_phone=customer_phone,
                event_type=channel,
                business_day=business_day,
                total_amount=order.total_amount,
                opened_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Sales
    # -------------------------------------------------------------------
    def _ensure_open(self):
        if self.is_paid:
            raise ValidationError({"order": ["A paid order can no longer be changed"]})

    def accumulate(self, amount, channel=None):
        """Add a sale subtotal to the running total.

        A BAZAR sale promotes the order to the BAZAR channel; it is never demoted.
        """
        self._ensure_open()
        self.total_amount = round_money((self.total_amount or 0.0) + amount)
        if channel == SalesChannel.BAZAR.value:
            self.event_type = SalesChannel.BAZAR.value

    def record_sale(self, product_id, quantity, unit_price):
        subtotal = round_money(unit_price * quantity)
        self.raise_(
            SaleAdded(
                order_id=str(self.id),
                customer_phone=self.customer_phone,
                product_id=str(product_id),
                quantity=quantity,
                unit_price=unit_price,
                subtotal=subtotal,
                total_amount=self.total_amount,
            )
        )

    def attach_cart(self, cart_id):
        self._ensure_open()
        self.cart_id = cart_id

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def start_checkout(self, payment_reference, pricing):
        """Freeze the priced totals and the payment reference of a checkout attempt."""
        self._ensure_open()
        self.payment_reference = payment_reference
        self.coupon_code = pricing.coupon_code
        self.discount_amount = pricing.discount
        self.shipping_cost = pricing.shipping_cost
        self.shipping_option = pricing.shipping_option
        self.grand_total = pricing.grand_total

        self.raise_(
            CheckoutStarted(
                order_id=str(self.id),
                payment_reference=payment_reference,
                grand_total=pricing.grand_total,
                coupon_code=pricing.coupon_code,
                discount_amount=pricing.discount,
                shipping_cost=pricing.shipping_cost,
            )
        )

    def mark_paid(self, payment_reference=None):
        if self.is_paid:
            if payment_reference and self.payment_reference and payment_reference != self.payment_reference:
                raise ValidationError({"payment_reference": ["Order was already paid with another payment"]})
            return False

        now = datetime.now(UTC)
        self.is_paid = True
        self.paid_at = now
        if payment_reference:
            self.payment_reference = payment_reference

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                customer_phone=self.customer_phone,
                payment_reference=self.payment_reference,
                paid_at=now,
            )
        )
        return True
