"""Payment gateway port (abstract interface).

The hosted checkout collaborator: it receives the priced items of an order and
answers with the URL the customer is redirected to for paying.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PaymentItem:
    title: str
    quantity: int
    unit_price: float

    @property
    def amount(self) -> float:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Payer:
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    address: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentIntent:
    """Result of a payment intent creation."""

    reference: str
    redirect_url: str


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_payment_intent(
        self,
        order_id: str,
        items: list[PaymentItem],
        payer: Payer,
        external_reference: str,
    ) -> PaymentIntent:
        """Create a hosted payment for the items.

        Raises ``ExternalServiceError`` when the gateway is unreachable or
        rejects the request.
        """
        ...
