"""Coupon aggregate: discount codes applied at checkout.

Three kinds of discount:

* ``fixed``: a flat amount, never more than the products total.
* ``percentage``: a percentage of the products total.
* ``progressive``: a percentage picked from tiers keyed by the products total.
  A tier covers ``[min_value, max_value)``; ``max_value = None`` is open-ended.
  Tiers are meant to be disjoint; on overlap the first matching tier wins.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from sales.domain import sales
from sales.errors import CouponExhausted, CouponExpired, CouponNotFound
from sales.shared.money import round_money


class DiscountType(Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"
    PROGRESSIVE = "progressive"


@dataclass(frozen=True)
class DiscountTier:
    min_value: float
    max_value: float | None
    percent: float

    def covers(self, amount: float) -> bool:
        if amount < self.min_value:
            return False
        return self.max_value is None or amount < self.max_value

    @classmethod
    def from_dict(cls, data: dict) -> "DiscountTier":
        max_value = data.get("max_value")
        return cls(
            min_value=float(data["min_value"]),
            max_value=float(max_value) if max_value is not None else None,
            percent=float(data["percent"]),
        )

    def to_dict(self) -> dict:
        return {"min_value": self.min_value, "max_value": self.max_value, "percent": self.percent}


@sales.event(part_of="Coupon")
class CouponRedeemed:
    __version__ = 1

    coupon_id = String(required=True)
    code = String(required=True)
    used_count = Integer(required=True)


@sales.aggregate
class Coupon:
    code = String(required=True, max_length=100, unique=True)
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(default=0.0, min_value=0.0)
    progressive_tiers = Text()  # JSON: list of {min_value, max_value, percent}
    expires_at = DateTime()
    usage_limit = Integer(min_value=0)  # None means unlimited
    used_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)

    @classmethod
    def create(cls, code, discount_type, discount_value=0.0, tiers=None, expires_at=None, usage_limit=None):
        tiers = [t if isinstance(t, DiscountTier) else DiscountTier.from_dict(t) for t in (tiers or [])]
        if DiscountType(discount_type) == DiscountType.PROGRESSIVE and not tiers:
            raise ValidationError({"progressive_tiers": ["Progressive coupons need at least one tier"]})

        return cls(
            code=code.strip().upper(),
            discount_type=discount_type,
            discount_value=discount_value or 0.0,
            progressive_tiers=json.dumps([t.to_dict() for t in tiers]),
            expires_at=expires_at,
            usage_limit=usage_limit,
            used_count=0,
            is_active=True,
        )

    def tiers(self):
        data = json.loads(self.progressive_tiers) if self.progressive_tiers else []
        return [DiscountTier.from_dict(item) for item in data]

    def ensure_redeemable(self, now=None):
        """Raise the coupon error that applies, if any."""
        if not self.is_active:
            raise CouponNotFound(self.code)

        now = now or datetime.now(UTC)
        if self.expires_at is not None:
            expires_at = self.expires_at if self.expires_at.tzinfo else self.expires_at.replace(tzinfo=UTC)
            if expires_at < now:
                raise CouponExpired(self.code)

        if self.usage_limit is not None and (self.used_count or 0) >= self.usage_limit:
            raise CouponExhausted(self.code)

    def discount_for(self, products_total):
        kind = DiscountType(self.discount_type)

        if kind == DiscountType.FIXED:
            discount = min(self.discount_value, products_total)
        elif kind == DiscountType.PERCENTAGE:
            discount = products_total * self.discount_value / 100
        else:
            tier = next((t for t in self.tiers() if t.covers(products_total)), None)
            discount = products_total * tier.percent / 100 if tier else 0.0

        return round_money(max(0.0, discount))

    def redeem(self):
        self.used_count = (self.used_count or 0) + 1
        self.raise_(CouponRedeemed(coupon_id=str(self.id), code=self.code, used_count=self.used_count))

    def deactivate(self):
        self.is_active = False
