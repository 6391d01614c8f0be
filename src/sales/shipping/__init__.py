"""Shipping quote adapter factory.

``SHIPPING_ADAPTER`` selects the implementation: ``fake`` (default) or
``melhor_envio``.
"""

import os

from sales.shipping.port import ShippingQuotePort

_quotes_instance: ShippingQuotePort | None = None


def get_shipping_quotes() -> ShippingQuotePort:
    """Return the configured shipping quote adapter (singleton)."""
    global _quotes_instance
    if _quotes_instance is None:
        adapter = os.environ.get("SHIPPING_ADAPTER", "fake")
        if adapter == "fake":
            from sales.shipping.fake_adapter import FakeShippingQuotes

            _quotes_instance = FakeShippingQuotes()
        elif adapter == "melhor_envio":
            from sales.shipping.melhor_envio_adapter import DEFAULT_BASE_URL, MelhorEnvioQuotes

            _quotes_instance = MelhorEnvioQuotes(
                token=os.environ["MELHOR_ENVIO_TOKEN"],
                origin_postal_code=os.environ["MELHOR_ENVIO_ORIGIN_CEP"],
                base_url=os.environ.get("MELHOR_ENVIO_URL", DEFAULT_BASE_URL),
            )
        else:
            raise ValueError(f"Unknown shipping adapter: {adapter}")
    return _quotes_instance


def set_shipping_quotes(adapter: ShippingQuotePort) -> None:
    """Override the active adapter (useful for tests)."""
    global _quotes_instance
    _quotes_instance = adapter


def reset_shipping_quotes() -> None:
    global _quotes_instance
    _quotes_instance = None
