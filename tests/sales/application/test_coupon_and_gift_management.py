"""Application tests for coupon and gift management commands."""

import json

import pytest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from sales.coupon.coupon import Coupon
from sales.coupon.management import CreateCoupon, DeactivateCoupon
from sales.gift.gift import Gift
from sales.gift.management import CreateGift


def _create_coupon(**overrides):
    values = {"code": "live10", "discount_type": "percentage", "discount_value": 10}
    values.update(overrides)
    return current_domain.process(CreateCoupon(**values), asynchronous=False)


class TestCreateCoupon:
    def test_create(self):
        coupon_id = _create_coupon()
        coupon = current_domain.repository_for(Coupon).get(coupon_id)
        assert coupon.code == "LIVE10"
        assert coupon.is_active is True

    def test_duplicate_code_rejected(self):
        _create_coupon()
        with pytest.raises(ValidationError) as exc:
            _create_coupon(code="LIVE10")
        assert "code" in exc.value.messages

    def test_progressive_tiers(self):
        tiers = [{"min_value": 0, "max_value": 200, "percent": 5}, {"min_value": 200, "max_value": None, "percent": 10}]
        coupon_id = _create_coupon(code="PROG", discount_type="progressive", progressive_tiers=json.dumps(tiers))

        coupon = current_domain.repository_for(Coupon).get(coupon_id)
        assert coupon.discount_for(250.0) == 25.0

    def test_deactivate(self):
        coupon_id = _create_coupon()
        current_domain.process(DeactivateCoupon(coupon_id=coupon_id), asynchronous=False)
        assert current_domain.repository_for(Coupon).get(coupon_id).is_active is False


class TestCreateGift:
    def test_create_gift(self):
        gift_id = current_domain.process(
            CreateGift(name="Necessaire", minimum_purchase_amount=150.0), asynchronous=False
        )
        gifts = current_domain.repository_for(Gift).active()
        assert [str(g.id) for g in gifts] == [gift_id]
