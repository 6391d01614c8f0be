"""Order repository: lookups by the aggregation key and the open-order uniqueness rule.

The store keeps at most one unpaid order per (customer phone, business day).
On relational providers the partial unique index declared on ``Order`` is the
arbiter: a second unpaid order fails when its transaction commits.
"""

from protean.exceptions import TransactionError
from sqlalchemy.exc import IntegrityError

from sales.domain import sales
from sales.errors import UniqueViolation
from sales.order.order import OPEN_ORDER_INDEX, Order


def is_open_order_collision(exc: TransactionError) -> bool:
    """True when a failed commit was the open-order index rejecting a second unpaid order."""
    cause = exc.__cause__
    return isinstance(cause, IntegrityError) and OPEN_ORDER_INDEX in str(cause)


@sales.repository(part_of=Order)
class OrderRepository:
    def open_orders(self, customer_phone: str, business_day: str) -> list[Order]:
        """Unpaid orders for the key, most recently created first."""
        return (
            self._dao.query.filter(
                customer_phone=customer_phone,
                business_day=business_day,
                is_paid=False,
            )
            .order_by("-created_at")
            .all()
            .items
        )

    def find_open(self, customer_phone: str, business_day: str) -> Order | None:
        """The unpaid order for the key. Duplicates are tolerated: the newest wins."""
        orders = self.open_orders(customer_phone, business_day)
        return orders[0] if orders else None

    def insert_open(self, order: Order) -> Order:
        """Insert a new unpaid order, or raise ``UniqueViolation`` if one exists for its key."""
        if self.open_orders(order.customer_phone, order.business_day):
            raise UniqueViolation(
                {
                    "order": [
                        f"An unpaid order already exists for {order.customer_phone} on {order.business_day}",
                    ]
                }
            )
        self.add(order)
        return order

    def open_for_day(self, business_day: str, channel: str | None = None) -> list[Order]:
        filters = {"business_day": business_day, "is_paid": False}
        if channel:
            filters["event_type"] = channel
        return self._dao.query.filter(**filters).order_by("-created_at").all().items

    def open_for_customer(self, customer_phone: str) -> list[Order]:
        return self._dao.query.filter(customer_phone=customer_phone, is_paid=False).order_by("-created_at").all().items
