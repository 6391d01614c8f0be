"""Sale recording: folds "add this product for this customer" into the day's open order.

Find-or-create runs optimistically inside the command's unit of work: when no
open order is visible a new one is inserted, and a ``UniqueViolation`` (or the
store's open-order index rejecting the commit) means a concurrent sale for the
same customer won the insert. The whole command is then re-run once in a fresh
unit of work and merges into the winner's order. A second collision is a
``ConflictError``; there is no retry loop.

Within a process, sales for one customer are applied one unit of work at a
time, commit included, so the second writer always reads the first one's order.
"""

import functools
import threading
from collections import defaultdict

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, TransactionError, ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from sales.cart.cart import Cart, CartStatus
from sales.catalogue.product import Product, StockUpdate
from sales.customer.directory import remember_customer, resolve_customer_phone
from sales.domain import sales
from sales.errors import ConflictError, UniqueViolation
from sales.order.order import Order, SalesChannel
from sales.order.repository import is_open_order_collision
from sales.shared.business_day import business_day
from sales.shared.money import round_money

logger = structlog.get_logger(__name__)

# First attempt plus the single read-after-conflict retry
MAX_OPEN_ATTEMPTS = 2

_customer_locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)
_customer_locks_guard = threading.Lock()


def _customer_lock(customer_phone):
    with _customer_locks_guard:
        return _customer_locks[customer_phone]


def one_open_order_per_customer(handler):
    """Run a sale handler under its customer's lock, re-running it once after a lost open.

    Wraps the ``@handle`` method, so the lock covers the handler's unit of work
    and its commit.
    """

    @functools.wraps(handler)
    def wrapper(self, command):
        phone = resolve_customer_phone(customer_phone=command.customer_phone, instagram=command.instagram)

        with _customer_lock(phone):
            for attempt in range(1, MAX_OPEN_ATTEMPTS + 1):
                try:
                    return handler(self, command)
                except UniqueViolation:
                    pass
                except TransactionError as exc:
                    if not is_open_order_collision(exc):
                        raise

                logger.info("Open order insert lost to a concurrent sale", customer_phone=phone, attempt=attempt)

        raise ConflictError({"order": [f"Could not open or find the open order of {phone}; please retry"]})

    return wrapper


@sales.command(part_of="Order")
class RecordSale:
    """Record ``quantity`` units of a product for a customer on a sales channel.

    The customer is identified by phone or, during live sessions, by
    Instagram handle.
    """

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    channel = String(required=True, choices=SalesChannel)
    customer_phone = String(max_length=30)
    instagram = String(max_length=100)


def _find_open_order(customer_phone, day):
    return current_domain.repository_for(Order).find_open(customer_phone, day)


def _find_or_open_order(customer_phone, channel, day, subtotal):
    """Return ``(order, is_new)`` with ``subtotal`` accounted in the order total.

    Raises ``UniqueViolation`` when the insert finds another writer's order.
    """
    order = _find_open_order(customer_phone, day)
    if order is not None:
        order.accumulate(subtotal, channel)
        return order, False

    order = current_domain.repository_for(Order).insert_open(Order.open(customer_phone, channel, day, subtotal))
    return order, True


def _cart_for(order):
    """The order's cart, opened and attached on the order's first sale."""
    repo = current_domain.repository_for(Cart)

    if order.cart_id:
        try:
            cart = repo.get(order.cart_id)
        except ObjectNotFoundError:
            logger.warning("Order references a missing cart", order_id=str(order.id), cart_id=str(order.cart_id))
        else:
            if CartStatus(cart.status) == CartStatus.OPEN:
                return cart

    cart = Cart.open(order.customer_phone, order.event_type, order.business_day)
    order.attach_cart(str(cart.id))
    return cart


def record_sale(product_id, quantity, channel, customer_phone=None, instagram=None, now=None):
    if quantity is None or quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})

    product_repo = current_domain.repository_for(Product)
    product = product_repo.get(product_id)
    product.ensure_sellable(quantity, channel)

    phone = resolve_customer_phone(customer_phone=customer_phone, instagram=instagram)
    day = business_day(now)
    subtotal = round_money(product.price * quantity)

    # Writes start here; everything above only reads
    order, is_new = _find_or_open_order(phone, channel, day, subtotal)

    cart = _cart_for(order)
    cart.add_item(
        product_id=str(product.id),
        quantity=quantity,
        unit_price=product.price,
        product_code=product.code,
        product_name=product.name,
    )
    current_domain.repository_for(Cart).add(cart)

    order.record_sale(product.id, quantity, product.price)
    current_domain.repository_for(Order).add(order)

    if product_repo.decrement_stock(str(product.id), quantity) == StockUpdate.CONFLICT:
        logger.warning(
            "Sale recorded without stock to cover it",
            product_id=str(product.id),
            quantity=quantity,
            order_id=str(order.id),
        )

    remember_customer(phone, instagram=instagram)

    logger.info(
        "Sale recorded",
        order_id=str(order.id),
        customer_phone=phone,
        product_code=product.code,
        quantity=quantity,
        is_new_order=is_new,
    )

    return {
        "order_id": str(order.id),
        "cart_id": str(cart.id),
        "is_new_order": is_new,
        "customer_phone": phone,
        "business_day": day,
        "total_amount": order.total_amount,
    }


@sales.command_handler(part_of=Order)
class RecordSaleHandler:
    @one_open_order_per_customer
    @handle(RecordSale)
    def record_sale(self, command):
        return record_sale(
            product_id=command.product_id,
            quantity=command.quantity,
            channel=command.channel,
            customer_phone=command.customer_phone,
            instagram=command.instagram,
        )
