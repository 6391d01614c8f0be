"""Shipping quote port (abstract interface).

Quotes carrier options for delivering an order's items to a postal code.
Adapters: ``FakeShippingQuotes`` (dev/test) and ``MelhorEnvioQuotes``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

PICKUP_OPTION_ID = "retirada"


@dataclass(frozen=True)
class ShippingOption:
    """One carrier service quoted for a destination."""

    id: str
    name: str
    company: str
    price: float
    delivery_time: str = ""
    custom_price: float | None = None

    @property
    def cost(self) -> float:
        """The price charged to the customer: the shop's custom price when set."""
        return self.custom_price if self.custom_price is not None else self.price

    @property
    def is_pickup(self) -> bool:
        return self.id == PICKUP_OPTION_ID


PICKUP_OPTION = ShippingOption(
    id=PICKUP_OPTION_ID,
    name="Retirada",
    company="Loja",
    price=0.0,
    delivery_time="Combinar com a loja",
)


@dataclass(frozen=True)
class ShippingPackageItem:
    product_id: str
    quantity: int
    unit_price: float


class ShippingQuotePort(ABC):
    """Abstract shipping quote interface."""

    @abstractmethod
    def quote(self, destination_postal_code: str, items: list[ShippingPackageItem]) -> list[ShippingOption]:
        """Return the carrier options for the destination.

        Raises ``ExternalServiceError`` when the quoting service fails.
        """
        ...
