"""Coupon management: commands and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from sales.coupon.coupon import Coupon, DiscountType
from sales.domain import sales


@sales.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=100)
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(default=0.0, min_value=0.0)
    progressive_tiers = Text()  # JSON: list of {min_value, max_value, percent}
    expires_at = DateTime()
    usage_limit = Integer(min_value=0)


@sales.command(part_of="Coupon")
class DeactivateCoupon:
    coupon_id = Identifier(required=True)


@sales.command_handler(part_of=Coupon)
class ManageCouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        if repo.find_by_code(command.code):
            raise ValidationError({"code": [f"Coupon {command.code.upper()} already exists"]})

        tiers = json.loads(command.progressive_tiers) if command.progressive_tiers else []
        coupon = Coupon.create(
            code=command.code,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            tiers=tiers,
            expires_at=command.expires_at,
            usage_limit=command.usage_limit,
        )
        repo.add(coupon)
        return str(coupon.id)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        coupon.deactivate()
        repo.add(coupon)
