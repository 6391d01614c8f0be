"""Configurable fake shipping quotes for development and testing."""

from sales.errors import ExternalServiceError
from sales.shipping.port import ShippingOption, ShippingPackageItem, ShippingQuotePort

DEFAULT_OPTIONS = (
    ShippingOption(id="1", name="PAC", company="Correios", price=22.5, delivery_time="8 dias"),
    ShippingOption(id="2", name="SEDEX", company="Correios", price=38.9, delivery_time="3 dias"),
    ShippingOption(id="31", name=".Package", company="J&T Express", price=19.9, delivery_time="6 dias"),
)


class FakeShippingQuotes(ShippingQuotePort):
    """Returns canned options, or fails on demand."""

    def __init__(self, options=DEFAULT_OPTIONS) -> None:
        self.options: list[ShippingOption] = list(options)
        self.should_succeed: bool = True
        self.failure_reason: str = "Quote service unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool = True, options=None, failure_reason: str = "Quote service unavailable"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        if options is not None:
            self.options = list(options)

    def quote(self, destination_postal_code: str, items: list[ShippingPackageItem]) -> list[ShippingOption]:
        self.calls.append({"destination_postal_code": destination_postal_code, "items": list(items)})
        if not self.should_succeed:
            raise ExternalServiceError("shipping", self.failure_reason)
        return list(self.options)
