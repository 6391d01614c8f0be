"""Configurable fake payment gateway for development and testing."""

from uuid import uuid4

from sales.errors import ExternalServiceError
from sales.payment.port import Payer, PaymentGateway, PaymentIntent, PaymentItem


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_payment_intent(
        self,
        order_id: str,
        items: list[PaymentItem],
        payer: Payer,
        external_reference: str,
    ) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_payment_intent",
                "order_id": order_id,
                "items": list(items),
                "payer": payer,
                "external_reference": external_reference,
            }
        )

        if not self.should_succeed:
            raise ExternalServiceError("payment", self.failure_reason)

        reference = f"fake_pref_{uuid4().hex[:12]}"
        return PaymentIntent(
            reference=reference,
            redirect_url=f"https://fake-gateway.example.com/checkout/{reference}",
        )
