"""Customer directory accessor.

Resolves the customer of a sale to a canonical phone and keeps the directory
tidy along the way. Directory writes here are caches: a failure is logged and
the sale carries on with the resolved phone.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from sales.customer.customer import Customer
from sales.domain import sales
from sales.shared.phone import is_valid_storage_phone, normalize_for_storage, normalize_instagram_handle

logger = structlog.get_logger(__name__)


@sales.repository(part_of=Customer)
class CustomerRepository:
    def find_by_phone(self, phone: str) -> Customer | None:
        canonical = normalize_for_storage(phone)
        if not canonical:
            return None
        return self._dao.query.filter(phone=canonical).all().first

    def find_by_instagram(self, handle: str) -> Customer | None:
        normalized = normalize_instagram_handle(handle)
        if not normalized:
            return None
        return self._dao.query.filter(instagram=normalized).all().first

    def upsert(self, phone: str, name=None, email=None, address=None, instagram=None) -> Customer:
        """Create the customer for ``phone`` or update the given contact fields."""
        customer = self.find_by_phone(phone)
        if customer is None:
            customer = Customer.register(phone, name=name, instagram=instagram)
        elif instagram and not customer.instagram:
            customer.instagram = normalize_instagram_handle(instagram)
        customer.update_contact(name=name, email=email, address=address)
        self.add(customer)
        return customer


def resolve_customer_phone(customer_phone: str | None = None, instagram: str | None = None) -> str:
    """Return the canonical phone of the customer identified by phone or handle.

    Raises ``ValidationError`` when neither identifies a customer with a valid
    phone. No directory write happens before the phone is known to be valid.
    """
    repo = current_domain.repository_for(Customer)

    if customer_phone:
        phone = normalize_for_storage(customer_phone)
        if not is_valid_storage_phone(phone):
            raise ValidationError({"customer_phone": [f"Invalid phone number: {customer_phone!r}"]})
        return phone

    handle = normalize_instagram_handle(instagram)
    if not handle:
        raise ValidationError({"customer": ["A customer phone or Instagram handle is required"]})

    customer = repo.find_by_instagram(handle)
    if customer is None or not customer.phone:
        raise ValidationError({"instagram": [f"No phone registered for @{handle}"]})

    phone = normalize_for_storage(customer.phone)
    if not is_valid_storage_phone(phone):
        raise ValidationError({"instagram": [f"The phone registered for @{handle} is incomplete"]})

    return phone


def remember_customer(phone: str, instagram: str | None = None) -> None:
    """Best-effort directory cache after a sale: ensure the customer exists in canonical form."""
    repo = current_domain.repository_for(Customer)
    try:
        customer = (repo.find_by_instagram(instagram) if instagram else None) or repo.find_by_phone(phone)
        if customer is None:
            repo.add(Customer.register(phone, instagram=instagram))
            return

        changed = customer.canonicalize_phone()
        if instagram and not customer.instagram:
            customer.instagram = normalize_instagram_handle(instagram)
            changed = True
        if changed:
            repo.add(customer)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Customer directory update skipped", phone=phone, instagram=instagram, error=str(exc))
