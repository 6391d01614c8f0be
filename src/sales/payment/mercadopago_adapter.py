"""Mercado Pago Checkout Pro adapter.

Creates a checkout preference and returns its ``init_point`` as the redirect
URL. Amounts are in BRL.
"""

import requests
import structlog

from sales.errors import ExternalServiceError
from sales.payment.port import Payer, PaymentGateway, PaymentIntent, PaymentItem
from sales.shared.money import CURRENCY
from sales.shared.phone import normalize_for_storage

logger = structlog.get_logger(__name__)

PREFERENCES_URL = "https://api.mercadopago.com/checkout/preferences"
REQUEST_TIMEOUT = 20


class MercadoPagoGateway(PaymentGateway):
    def __init__(self, access_token: str, return_url: str | None = None, notification_url: str | None = None) -> None:
        self.access_token = access_token
        self.return_url = return_url
        self.notification_url = notification_url

    def _preference(self, items, payer, external_reference):
        body = {
            "items": [
                {
                    "title": item.title,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "currency_id": CURRENCY,
                }
                for item in items
            ],
            "external_reference": external_reference,
        }

        payer_data = {}
        if payer.name:
            payer_data["name"] = payer.name
        if payer.email:
            payer_data["email"] = payer.email
        if payer.phone:
            phone = normalize_for_storage(payer.phone)
            payer_data["phone"] = {"area_code": phone[:2], "number": phone[2:]}
        if payer_data:
            body["payer"] = payer_data

        if self.return_url:
            body["back_urls"] = {status: self.return_url for status in ("success", "failure", "pending")}
            body["auto_return"] = "approved"
        if self.notification_url:
            body["notification_url"] = self.notification_url
        return body

    def create_payment_intent(
        self,
        order_id: str,
        items: list[PaymentItem],
        payer: Payer,
        external_reference: str,
    ) -> PaymentIntent:
        try:
            response = requests.post(
                PREFERENCES_URL,
                json=self._preference(items, payer, external_reference),
                headers={
                    "Authorization": f"Bearer {self.access_token}",
                    "X-Idempotency-Key": f"order-{order_id}-{external_reference}",
                },
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise ExternalServiceError("payment", f"Mercado Pago unreachable: {exc}") from exc

        if not response.ok:
            logger.warning(
                "Mercado Pago preference rejected",
                order_id=order_id,
                status=response.status_code,
                body=response.text[:500],
            )
            raise ExternalServiceError("payment", f"Mercado Pago answered {response.status_code}")

        data = response.json()
        return PaymentIntent(reference=str(data["id"]), redirect_url=data["init_point"])
