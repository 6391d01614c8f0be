"""Tests for the Mercado Pago gateway with the HTTP layer mocked."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from sales.errors import ExternalServiceError
from sales.payment.mercadopago_adapter import PREFERENCES_URL, MercadoPagoGateway
from sales.payment.port import Payer, PaymentItem

ITEMS = [PaymentItem(title="Vestido", quantity=2, unit_price=45.0), PaymentItem(title="Frete", quantity=1, unit_price=22.5)]
PAYER = Payer(name="Maria", phone="(31) 99999-0000", email="maria@example.com")


def _response(status_code=201, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload or {}
    response.text = str(payload)
    return response


@pytest.fixture()
def gateway():
    return MercadoPagoGateway(access_token="APP_USR-123", return_url="https://loja.example.com/obrigado")


class TestCreatePaymentIntent:
    def test_creates_preference(self, gateway):
        payload = {"id": "pref-123", "init_point": "https://www.mercadopago.com.br/checkout/v1/redirect?pref_id=pref-123"}
        with patch("sales.payment.mercadopago_adapter.requests.post", return_value=_response(payload=payload)) as post:
            intent = gateway.create_payment_intent("order-1", ITEMS, PAYER, external_reference="order-1")

        assert intent.reference == "pref-123"
        assert intent.redirect_url == payload["init_point"]

        assert post.call_args.args[0] == PREFERENCES_URL
        kwargs = post.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer APP_USR-123"
        body = kwargs["json"]
        assert body["external_reference"] == "order-1"
        assert body["items"][0] == {"title": "Vestido", "quantity": 2, "unit_price": 45.0, "currency_id": "BRL"}
        assert body["payer"]["phone"] == {"area_code": "31", "number": "99990000"}
        assert body["back_urls"]["success"] == "https://loja.example.com/obrigado"

    def test_rejected_preference_raises(self, gateway):
        with patch("sales.payment.mercadopago_adapter.requests.post", return_value=_response(400, {"message": "bad"})):
            with pytest.raises(ExternalServiceError) as exc:
                gateway.create_payment_intent("order-1", ITEMS, PAYER, external_reference="order-1")
        assert exc.value.service == "payment"

    def test_timeout_raises(self, gateway):
        with patch("sales.payment.mercadopago_adapter.requests.post", side_effect=requests.Timeout("slow")):
            with pytest.raises(ExternalServiceError):
                gateway.create_payment_intent("order-1", ITEMS, PAYER, external_reference="order-1")
