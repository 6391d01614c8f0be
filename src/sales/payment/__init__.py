"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (``PAYMENT_GATEWAY=fake``, default)
- MercadoPagoGateway for production (``PAYMENT_GATEWAY=mercadopago``)
"""

import os

from sales.payment.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway."""
    global _current_gateway
    if _current_gateway is None:
        adapter = os.environ.get("PAYMENT_GATEWAY", "fake")
        if adapter == "fake":
            from sales.payment.fake_adapter import FakeGateway

            _current_gateway = FakeGateway()
        elif adapter == "mercadopago":
            from sales.payment.mercadopago_adapter import MercadoPagoGateway

            _current_gateway = MercadoPagoGateway(
                access_token=os.environ["MP_ACCESS_TOKEN"],
                return_url=os.environ.get("CHECKOUT_RETURN_URL"),
                notification_url=os.environ.get("MP_NOTIFICATION_URL"),
            )
        else:
            raise ValueError(f"Unknown payment gateway: {adapter}")
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
