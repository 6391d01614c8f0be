"""Integration tests for the sales API endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.utils.globals import current_domain

from sales.api import checkout_router, coupon_router, gift_router, register_error_handlers, sale_router
from sales.order import aggregation
from sales.order.order import Order


@pytest.fixture()
def client(gateway, shipping_quotes):
    app = FastAPI()
    app.include_router(sale_router)
    app.include_router(checkout_router)
    app.include_router(coupon_router)
    app.include_router(gift_router)
    register_error_handlers(app)
    return TestClient(app)


def _record(client, product, **overrides):
    payload = {"product_id": str(product.id), "quantity": 1, "channel": "LIVE", "customer_phone": "(31) 99999-0000"}
    payload.update(overrides)
    return client.post("/sales", json=payload)


class TestRecordSaleAPI:
    def test_record_sale_returns_201(self, client, make_product):
        response = _record(client, make_product(), quantity=2)

        assert response.status_code == 201
        data = response.json()
        assert data["is_new_order"] is True
        assert data["customer_phone"] == "3199990000"
        assert data["total_amount"] == 100.0

    def test_second_sale_merges(self, client, make_product):
        product = make_product()
        first = _record(client, product).json()
        second = _record(client, product).json()

        assert second["order_id"] == first["order_id"]
        assert second["is_new_order"] is False

    def test_validation_error_returns_422(self, client, make_product):
        response = _record(client, make_product(stock=1), quantity=5)
        assert response.status_code == 422
        assert "quantity" in response.json()["error"]

    def test_unknown_product_returns_404(self, client):
        response = client.post(
            "/sales", json={"product_id": "missing", "quantity": 1, "channel": "LIVE", "customer_phone": "3199990000"}
        )
        assert response.status_code == 404

    def test_conflict_returns_409(self, client, make_product, monkeypatch):
        product = make_product()
        _record(client, product)

        monkeypatch.setattr(aggregation, "_find_open_order", lambda phone, day: None)
        response = _record(client, product)
        assert response.status_code == 409

    def test_unknown_channel_rejected_by_schema(self, client, make_product):
        response = _record(client, make_product(), channel="ONLINE")
        assert response.status_code == 422


class TestQueryAPI:
    def test_products_by_channel(self, client, make_product):
        make_product(code="L1", name="Vestido Azul")
        make_product(code="L2", name="Saia")
        make_product(code="B1", name="Vestido Bazar", sale_type="BAZAR")

        response = client.get("/products", params={"channel": "LIVE", "q": "vestido"})
        assert response.status_code == 200
        assert [p["code"] for p in response.json()] == ["L1"]

    def test_open_orders_of_the_day(self, client, make_product):
        data = _record(client, make_product()).json()

        response = client.get("/orders", params={"business_day": data["business_day"]})
        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [data["order_id"]]

    def test_invalid_business_day_returns_422(self, client):
        response = client.get("/orders", params={"business_day": "09/03/2024"})
        assert response.status_code == 422

    def test_customer_open_orders(self, client, make_product):
        data = _record(client, make_product()).json()

        response = client.get("/customers/5531999990000/open-orders")
        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [data["order_id"]]


class TestCheckoutAPI:
    def _order(self, client, make_product):
        return _record(client, make_product(price=50.0), quantity=2).json()["order_id"]

    def test_shipping_options(self, client, make_product):
        order_id = self._order(client, make_product)
        response = client.get(f"/orders/{order_id}/shipping-options", params={"postal_code": "30140071"})

        assert response.status_code == 200
        ids = [o["id"] for o in response.json()]
        assert ids[0] == "retirada"
        assert set(ids[1:]) == {"1", "2", "31"}

    def test_shipping_options_degrade_to_pickup(self, client, make_product, shipping_quotes):
        order_id = self._order(client, make_product)
        shipping_quotes.configure(should_succeed=False)

        response = client.get(f"/orders/{order_id}/shipping-options", params={"postal_code": "30140071"})
        assert [o["id"] for o in response.json()] == ["retirada"]

    def test_pricing_preview(self, client, make_product):
        client.post("/coupons", json={"code": "live10", "discount_type": "percentage", "discount_value": 10})
        client.post("/gifts", json={"name": "Necessaire", "minimum_purchase_amount": 200.0})
        order_id = self._order(client, make_product)

        response = client.post(
            f"/orders/{order_id}/pricing",
            json={"shipping_option_id": "2", "postal_code": "30140071", "coupon_code": "LIVE10"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["products_total"] == 100.0
        assert data["discount"] == 10.0
        assert data["shipping_cost"] == 38.9
        assert data["grand_total"] == 128.9
        assert data["gift_status"]["progress_gift"]["name"] == "Necessaire"
        assert data["gift_status"]["percentage_achieved"] == 50.0

    def test_unknown_coupon_returns_422(self, client, make_product):
        order_id = self._order(client, make_product)
        response = client.post(f"/orders/{order_id}/pricing", json={"coupon_code": "NOPE"})

        assert response.status_code == 422
        assert "coupon_code" in response.json()["error"]

    def test_checkout_and_confirm(self, client, make_product, gateway):
        order_id = self._order(client, make_product)

        response = client.post(f"/orders/{order_id}/checkout", json={"customer_name": "Maria"})
        assert response.status_code == 201
        checkout = response.json()
        assert checkout["grand_total"] == 100.0
        assert checkout["redirect_url"]

        response = client.post(
            f"/orders/{order_id}/payment-confirmation",
            json={"payment_reference": checkout["payment_reference"]},
        )
        assert response.status_code == 200
        assert response.json()["already_paid"] is False
        assert current_domain.repository_for(Order).get(order_id).is_paid is True

    def test_gateway_failure_returns_502(self, client, make_product, gateway):
        order_id = self._order(client, make_product)
        gateway.configure(should_succeed=False)

        response = client.post(f"/orders/{order_id}/checkout", json={})
        assert response.status_code == 502
        assert "payment" in response.json()["error"]


class TestSeedAPI:
    def test_create_coupon(self, client):
        response = client.post(
            "/coupons",
            json={
                "code": "prog",
                "discount_type": "progressive",
                "progressive_tiers": [{"min_value": 0, "max_value": None, "percent": 5}],
            },
        )
        assert response.status_code == 201
        assert "coupon_id" in response.json()

    def test_duplicate_coupon_returns_422(self, client):
        payload = {"code": "live10", "discount_type": "fixed", "discount_value": 10}
        client.post("/coupons", json=payload)
        assert client.post("/coupons", json=payload).status_code == 422

    def test_create_gift(self, client):
        response = client.post("/gifts", json={"name": "Chaveiro", "minimum_purchase_amount": 50})
        assert response.status_code == 201
