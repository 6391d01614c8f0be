"""Checkout pricing: products total, coupon discount, shipping and gift status.

Pricing only reads: it never writes coupons, orders or carts. Coupon usage is
counted by the checkout once a payment intent exists.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from sales.coupon.coupon import Coupon
from sales.errors import CouponNotFound, ExternalServiceError
from sales.gift.gift import Gift
from sales.shared.money import round_money
from sales.shipping import get_shipping_quotes
from sales.shipping.port import PICKUP_OPTION, PICKUP_OPTION_ID, ShippingPackageItem

logger = structlog.get_logger(__name__)

CARRIER_KEYWORDS = ("j&t", "correios", "pac", "sedex")


@dataclass(frozen=True)
class ShippingSelection:
    option_id: str = PICKUP_OPTION_ID
    postal_code: str | None = None

    @property
    def is_pickup(self) -> bool:
        return self.option_id == PICKUP_OPTION_ID


@dataclass(frozen=True)
class GiftStatus:
    eligible_gift: Gift | None = None
    progress_gift: Gift | None = None
    percentage_achieved: float = 0.0

    def to_dict(self) -> dict:
        def _gift(gift):
            if gift is None:
                return None
            return {
                "id": str(gift.id),
                "name": gift.name,
                "description": gift.description,
                "minimum_purchase_amount": gift.minimum_purchase_amount,
            }

        return {
            "eligible_gift": _gift(self.eligible_gift),
            "progress_gift": _gift(self.progress_gift),
            "percentage_achieved": self.percentage_achieved,
        }


@dataclass(frozen=True)
class PricingResult:
    products_total: float
    discount: float
    shipping_cost: float
    grand_total: float
    gift_status: GiftStatus
    coupon_code: str | None = None
    shipping_option: str = PICKUP_OPTION_ID


def products_total(line_items) -> float:
    return round_money(sum(item.unit_price * item.quantity for item in line_items))


def resolve_coupon(coupon_code, now=None) -> Coupon | None:
    """The redeemable coupon for ``coupon_code``, or ``None`` when no code was given."""
    code = (coupon_code or "").strip()
    if not code:
        return None

    coupon = current_domain.repository_for(Coupon).find_by_code(code)
    if coupon is None:
        raise CouponNotFound(code.upper())

    coupon.ensure_redeemable(now)
    return coupon


def gift_status(total: float) -> GiftStatus:
    gifts = current_domain.repository_for(Gift).active()

    reached = [g for g in gifts if g.minimum_purchase_amount <= total]
    if reached:
        return GiftStatus(eligible_gift=max(reached, key=lambda g: g.minimum_purchase_amount), percentage_achieved=100.0)

    pending = [g for g in gifts if g.minimum_purchase_amount > total]
    if not pending:
        return GiftStatus()

    target = min(pending, key=lambda g: g.minimum_purchase_amount)
    achieved = min(100.0, total * 100 / target.minimum_purchase_amount)
    return GiftStatus(progress_gift=target, percentage_achieved=round_money(achieved))


def _package(line_items):
    return [
        ShippingPackageItem(product_id=item.product_id, quantity=item.quantity, unit_price=item.unit_price)
        for item in line_items
    ]


def _is_supported_carrier(option) -> bool:
    text = f"{option.company} {option.name}".lower()
    return any(keyword in text for keyword in CARRIER_KEYWORDS)


def shipping_options_for(postal_code, line_items):
    """Options offered at checkout: pickup first, then the supported carriers.

    A failing quote service degrades the list to pickup only.
    """
    options = [PICKUP_OPTION]
    if not postal_code:
        return options

    try:
        quoted = get_shipping_quotes().quote(postal_code, _package(line_items))
    except ExternalServiceError as exc:
        logger.warning("Shipping quote failed, offering pickup only", postal_code=postal_code, error=exc.detail)
        return options

    options.extend(o for o in quoted if not o.is_pickup and o.cost is not None and _is_supported_carrier(o))
    return options


def shipping_cost_for(selection: ShippingSelection, line_items) -> float:
    if selection.is_pickup:
        return 0.0

    if not selection.postal_code:
        raise ValidationError({"postal_code": ["A postal code is required for delivery"]})

    quoted = get_shipping_quotes().quote(selection.postal_code, _package(line_items))
    option = next((o for o in quoted if str(o.id) == str(selection.option_id)), None)
    if option is None:
        raise ValidationError(
            {"shipping_option": [f"Shipping option {selection.option_id!r} is not available for {selection.postal_code}"]}
        )
    return round_money(option.cost)


def price_checkout(line_items, shipping_selection=None, coupon_code=None, now=None) -> PricingResult:
    now = now or datetime.now(UTC)
    selection = shipping_selection or ShippingSelection()

    total = products_total(line_items)

    coupon = resolve_coupon(coupon_code, now)
    discount = coupon.discount_for(total) if coupon else 0.0

    shipping_cost = shipping_cost_for(selection, line_items)
    grand_total = round_money(max(0.0, total - discount) + shipping_cost)

    return PricingResult(
        products_total=total,
        discount=discount,
        shipping_cost=shipping_cost,
        grand_total=grand_total,
        gift_status=gift_status(total),
        coupon_code=coupon.code if coupon else None,
        shipping_option=selection.option_id,
    )
