"""Application tests for StartCheckout and ConfirmPayment."""

import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from sales.cart.cart import Cart, CartStatus
from sales.checkout.checkout import StartCheckout
from sales.checkout.confirmation import ConfirmPayment
from sales.coupon.coupon import Coupon
from sales.customer.customer import Customer
from sales.errors import CouponExhausted, ExternalServiceError
from sales.order.aggregation import RecordSale
from sales.order.order import Order


@pytest.fixture()
def open_order(make_product):
    dress = make_product(code="P001", name="Vestido", price=50.0)
    earring = make_product(code="P002", name="Brinco", price=19.9)
    for product, quantity in ((dress, 2), (earring, 1)):
        result = current_domain.process(
            RecordSale(product_id=str(product.id), quantity=quantity, channel="LIVE", customer_phone="3199990000"),
            asynchronous=False,
        )
    return current_domain.repository_for(Order).get(result["order_id"])


def _coupon(code="LIVE10", discount_type="percentage", value=10, **kwargs):
    coupon = Coupon.create(code, discount_type, value, **kwargs)
    current_domain.repository_for(Coupon).add(coupon)
    return coupon


def _checkout(order, **overrides):
    values = {"order_id": str(order.id), "shipping_option_id": "retirada", "customer_name": "Maria"}
    values.update(overrides)
    return current_domain.process(StartCheckout(**values), asynchronous=False)


class TestStartCheckout:
    def test_pickup_checkout(self, open_order, gateway, shipping_quotes):
        result = _checkout(open_order)

        assert result["grand_total"] == 119.9
        assert result["redirect_url"].startswith("https://fake-gateway.example.com/checkout/")

        order = current_domain.repository_for(Order).get(open_order.id)
        assert order.payment_reference == result["payment_reference"]
        assert order.grand_total == 119.9
        assert order.shipping_option == "retirada"
        assert order.is_paid is False

        call = gateway.calls[0]
        assert call["external_reference"] == str(open_order.id)
        assert [(i.title, i.quantity, i.unit_price) for i in call["items"]] == [
            ("Vestido", 2, 50.0),
            ("Brinco", 1, 19.9),
        ]

    def test_delivery_with_coupon(self, open_order, gateway, shipping_quotes):
        _coupon()
        result = _checkout(
            open_order,
            shipping_option_id="1",
            postal_code="30140071",
            street="Rua da Bahia",
            number="100",
            city="Belo Horizonte",
            state="MG",
            coupon_code="live10",
        )

        # 119.90 - 11.99 + 22.50
        assert result["grand_total"] == 130.41

        items = gateway.calls[0]["items"]
        assert items[-1].title == "Frete"
        assert round(sum(i.unit_price * i.quantity for i in items), 2) == 130.41

        order = current_domain.repository_for(Order).get(open_order.id)
        assert order.coupon_code == "LIVE10"
        assert order.discount_amount == 11.99
        assert order.shipping_cost == 22.5

        coupon = current_domain.repository_for(Coupon).find_by_code("LIVE10")
        assert coupon.used_count == 1

    def test_customer_data_saved(self, open_order, gateway, shipping_quotes):
        _checkout(
            open_order,
            shipping_option_id="2",
            postal_code="30140071",
            street="Rua da Bahia",
            number="100",
            customer_email="maria@example.com",
        )

        customer = current_domain.repository_for(Customer).find_by_phone("3199990000")
        assert customer.name == "Maria"
        assert customer.email == "maria@example.com"
        assert customer.cep == "30140071"
        assert customer.street == "Rua da Bahia"

    def test_delivery_requires_address(self, open_order, gateway, shipping_quotes):
        with pytest.raises(ValidationError) as exc:
            _checkout(open_order, shipping_option_id="1")

        assert set(exc.value.messages) == {"postal_code", "street"}
        assert gateway.calls == []

    def test_gateway_failure_writes_nothing(self, open_order, gateway, shipping_quotes):
        _coupon()
        gateway.configure(should_succeed=False)

        with pytest.raises(ExternalServiceError):
            _checkout(open_order, coupon_code="LIVE10")

        order = current_domain.repository_for(Order).get(open_order.id)
        assert order.payment_reference is None
        assert current_domain.repository_for(Coupon).find_by_code("LIVE10").used_count == 0

    def test_exhausted_coupon_rejected_before_gateway(self, open_order, gateway, shipping_quotes):
        coupon = _coupon("ONCE", usage_limit=1)
        coupon.redeem()
        current_domain.repository_for(Coupon).add(coupon)

        with pytest.raises(CouponExhausted):
            _checkout(open_order, coupon_code="ONCE")
        assert gateway.calls == []

    def test_nothing_to_charge(self, open_order, gateway, shipping_quotes):
        _coupon("FREE", "fixed", 1000)
        with pytest.raises(ValidationError) as exc:
            _checkout(open_order, coupon_code="FREE")
        assert "order_id" in exc.value.messages
        assert gateway.calls == []

    def test_paid_order_cannot_check_out(self, open_order, gateway, shipping_quotes):
        current_domain.process(ConfirmPayment(order_id=str(open_order.id), payment_reference="pay-1"), asynchronous=False)
        with pytest.raises(ValidationError):
            _checkout(open_order)

    def test_unknown_order(self, gateway, shipping_quotes):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(StartCheckout(order_id="missing"), asynchronous=False)


class TestConfirmPayment:
    def test_marks_paid_and_closes_cart(self, open_order):
        result = current_domain.process(
            ConfirmPayment(order_id=str(open_order.id), payment_reference="pay-1"), asynchronous=False
        )

        assert result == {"order_id": str(open_order.id), "is_paid": True, "already_paid": False}

        order = current_domain.repository_for(Order).get(open_order.id)
        assert order.is_paid is True
        assert order.paid_at is not None

        cart = current_domain.repository_for(Cart).get(order.cart_id)
        assert cart.status == CartStatus.CLOSED.value

    def test_repeat_confirmation_is_idempotent(self, open_order):
        command = ConfirmPayment(order_id=str(open_order.id), payment_reference="pay-1")
        current_domain.process(command, asynchronous=False)
        result = current_domain.process(command, asynchronous=False)

        assert result["already_paid"] is True

    def test_confirmation_with_other_reference_rejected(self, open_order):
        current_domain.process(ConfirmPayment(order_id=str(open_order.id), payment_reference="pay-1"), asynchronous=False)
        with pytest.raises(ValidationError):
            current_domain.process(
                ConfirmPayment(order_id=str(open_order.id), payment_reference="pay-2"), asynchronous=False
            )
