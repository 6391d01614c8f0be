"""Payment confirmation: marks an order paid and closes its cart."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from sales.cart.cart import Cart
from sales.domain import sales
from sales.order.order import Order

logger = structlog.get_logger(__name__)


@sales.command(part_of="Order")
class ConfirmPayment:
    order_id = Identifier(required=True)
    payment_reference = String(max_length=255)


@sales.command_handler(part_of=Order)
class ConfirmPaymentHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        changed = order.mark_paid(command.payment_reference)
        if changed:
            repo.add(order)
            self._close_cart(order)
            logger.info("Order paid", order_id=str(order.id), payment_reference=order.payment_reference)
        else:
            logger.info("Payment confirmation repeated", order_id=str(order.id))

        return {"order_id": str(order.id), "is_paid": True, "already_paid": not changed}

    def _close_cart(self, order):
        if not order.cart_id:
            return
        cart_repo = current_domain.repository_for(Cart)
        try:
            cart = cart_repo.get(order.cart_id)
        except ObjectNotFoundError:
            logger.warning("Paid order references a missing cart", order_id=str(order.id), cart_id=str(order.cart_id))
            return
        cart.close()
        cart_repo.add(cart)
