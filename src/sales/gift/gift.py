"""Gift aggregate: a freebie unlocked once the products total reaches a threshold."""

from protean.fields import Boolean, Float, String, Text

from sales.domain import sales


@sales.aggregate
class Gift:
    name = String(required=True, max_length=255)
    description = Text()
    minimum_purchase_amount = Float(required=True, min_value=0.0)
    is_active = Boolean(default=True)


@sales.repository(part_of=Gift)
class GiftRepository:
    def active(self) -> list[Gift]:
        return self._dao.query.filter(is_active=True).all().items
