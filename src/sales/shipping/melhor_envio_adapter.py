"""Melhor Envio shipping quote adapter.

Calls the shipment calculator of the Melhor Envio API. Products carry no
dimensions in this domain, so every unit is quoted as a default small parcel.
"""

import requests
import structlog

from sales.errors import ExternalServiceError
from sales.shipping.port import ShippingOption, ShippingPackageItem, ShippingQuotePort

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://www.melhorenvio.com.br"
REQUEST_TIMEOUT = 15

# Default parcel per unit: centimetres and kilograms
UNIT_PARCEL = {"width": 11, "height": 2, "length": 16, "weight": 0.3}


def _to_float(value) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class MelhorEnvioQuotes(ShippingQuotePort):
    def __init__(self, token: str, origin_postal_code: str, base_url: str = DEFAULT_BASE_URL) -> None:
        self.token = token
        self.origin_postal_code = origin_postal_code
        self.base_url = base_url.rstrip("/")

    def _payload(self, destination_postal_code, items):
        return {
            "from": {"postal_code": self.origin_postal_code},
            "to": {"postal_code": destination_postal_code},
            "products": [
                {
                    "id": item.product_id,
                    "quantity": item.quantity,
                    "insurance_value": item.unit_price,
                    **UNIT_PARCEL,
                }
                for item in items
            ],
        }

    def quote(self, destination_postal_code: str, items: list[ShippingPackageItem]) -> list[ShippingOption]:
        try:
            response = requests.post(
                f"{self.base_url}/api/v2/me/shipment/calculate",
                json=self._payload(destination_postal_code, items),
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    "User-Agent": "live-sales (suporte@loja.example)",
                },
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise ExternalServiceError("shipping", f"Melhor Envio unreachable: {exc}") from exc

        if not response.ok:
            logger.warning("Melhor Envio quote failed", status=response.status_code, body=response.text[:500])
            raise ExternalServiceError("shipping", f"Melhor Envio answered {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise ExternalServiceError("shipping", "Melhor Envio answered with a body that is not JSON") from exc

        if not isinstance(payload, list):
            logger.warning("Melhor Envio quote has an unexpected shape", body=response.text[:500])
            raise ExternalServiceError("shipping", "Melhor Envio answered with an unexpected payload")

        return [option for option in map(self._parse_option, payload) if option is not None]

    @staticmethod
    def _parse_option(raw: dict) -> ShippingOption | None:
        """Turn one calculator entry into an option; errored or unpriced services are skipped."""
        if not isinstance(raw, dict) or raw.get("error"):
            return None

        price = _to_float(raw.get("price"))
        custom_price = _to_float(raw.get("custom_price"))
        if price is None and custom_price is None:
            return None

        company = raw.get("company")
        if isinstance(company, dict):
            company = company.get("name")

        return ShippingOption(
            id=str(raw.get("id")),
            name=str(raw.get("name") or "Transportadora"),
            company=str(company or "Melhor Envio"),
            price=price if price is not None else custom_price,
            delivery_time=str(raw.get("custom_delivery_time") or raw.get("delivery_time") or ""),
            custom_price=custom_price,
        )
