"""Gift management: command and handler."""

from protean import handle
from protean.fields import Float, String, Text
from protean.utils.globals import current_domain

from sales.domain import sales
from sales.gift.gift import Gift


@sales.command(part_of="Gift")
class CreateGift:
    name = String(required=True, max_length=255)
    description = Text()
    minimum_purchase_amount = Float(required=True, min_value=0.0)


@sales.command_handler(part_of=Gift)
class ManageGiftHandler:
    @handle(CreateGift)
    def create_gift(self, command):
        gift = Gift(
            name=command.name,
            description=command.description,
            minimum_purchase_amount=command.minimum_purchase_amount,
            is_active=True,
        )
        current_domain.repository_for(Gift).add(gift)
        return str(gift.id)
