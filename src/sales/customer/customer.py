"""Customer aggregate: who a sale belongs to.

Customers are identified by their canonical phone number (see
``sales.shared.phone``). Live sales usually identify them by Instagram handle,
which the directory resolves to a phone.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, String

from sales.domain import sales
from sales.shared.phone import is_valid_storage_phone, normalize_for_storage, normalize_instagram_handle

ADDRESS_FIELDS = ("cep", "street", "number", "complement", "city", "state")


@sales.aggregate
class Customer:
    phone = String(required=True, max_length=20, unique=True)
    name = String(max_length=255)
    instagram = String(max_length=100)
    email = String(max_length=255)
    cep = String(max_length=20)
    street = String(max_length=255)
    number = String(max_length=20)
    complement = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=50)
    updated_at = DateTime()

    @classmethod
    def register(cls, phone, name=None, instagram=None):
        canonical = normalize_for_storage(phone)
        if not is_valid_storage_phone(canonical):
            raise ValidationError({"customer_phone": [f"Invalid phone number: {phone!r}"]})

        return cls(
            phone=canonical,
            name=name,
            instagram=normalize_instagram_handle(instagram) or None,
            updated_at=datetime.now(UTC),
        )

    def canonicalize_phone(self):
        """Rewrite the stored phone in storage form. Returns True when it changed."""
        canonical = normalize_for_storage(self.phone)
        if canonical == self.phone:
            return False
        self.phone = canonical
        self.updated_at = datetime.now(UTC)
        return True

    def update_contact(self, name=None, email=None, address=None):
        """Overwrite the provided contact/address values; missing ones are left alone."""
        if name:
            self.name = name
        if email:
            self.email = email
        for field_name in ADDRESS_FIELDS:
            value = (address or {}).get(field_name)
            if value is not None:
                setattr(self, field_name, value)
        self.updated_at = datetime.now(UTC)
