"""Error taxonomy for the sales domain.

``ValidationError`` is protean's own: raised for bad input before any write,
with a ``{field: [messages]}`` payload. The coupon failures specialise it so
callers can show them inline. The remaining errors are protean exceptions
surfaced to the caller as-is.
"""

from protean.exceptions import ProteanException, ValidationError

__all__ = [
    "ConflictError",
    "CouponExhausted",
    "CouponExpired",
    "CouponNotFound",
    "ExternalServiceError",
    "SalesError",
    "UniqueViolation",
    "ValidationError",
]


class CouponNotFound(ValidationError):
    """No active coupon matches the code."""

    def __init__(self, code: str) -> None:
        super().__init__({"coupon_code": [f"Coupon {code!r} not found"]})
        self.code = code


class CouponExpired(ValidationError):
    def __init__(self, code: str) -> None:
        super().__init__({"coupon_code": [f"Coupon {code!r} has expired"]})
        self.code = code


class CouponExhausted(ValidationError):
    def __init__(self, code: str) -> None:
        super().__init__({"coupon_code": [f"Coupon {code!r} reached its usage limit"]})
        self.code = code


class SalesError(ProteanException):
    """Base of the non-validation sales errors; carries a ``{key: [messages]}`` payload."""

    def __init__(self, messages: dict) -> None:
        super().__init__(messages)
        self.messages = messages


class UniqueViolation(SalesError):
    """The store already holds a row for a unique key.

    Raised by repositories that guard a multi-column uniqueness rule. Callers
    treat it as "another writer won the insert".
    """


class ConflictError(SalesError):
    """A write collided twice in a row with a concurrent writer."""


class ExternalServiceError(SalesError):
    """A shipping or payment collaborator was unreachable or answered non-2xx."""

    def __init__(self, service: str, detail: str) -> None:
        super().__init__({service: [detail]})
        self.service = service
        self.detail = detail
