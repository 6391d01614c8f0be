"""Brazilian phone number normalization.

Storage form is DDD + subscriber number without the ``55`` country code
(10 or 11 digits). Sending form prefixes ``55``.
"""

import re

MIN_DDD = 11
MAX_DDD = 99

# DDDs up to this value always carry the ninth mobile digit; above it the
# stored form drops it.
_NINTH_DIGIT_MAX_DDD = 30

_NON_DIGITS = re.compile(r"\D")


def _digits(value: str) -> str:
    return _NON_DIGITS.sub("", value)


def _strip_country_code(clean: str) -> str:
    return clean[2:] if clean.startswith("55") else clean


def _apply_ninth_digit_rule(clean: str) -> str:
    if len(clean) < 10:
        return clean

    ddd_part = clean[:2]
    ddd = int(ddd_part)
    if ddd < MIN_DDD or ddd > MAX_DDD:
        return clean

    number = clean[2:]
    if ddd <= _NINTH_DIGIT_MAX_DDD:
        if len(number) == 8:
            number = f"9{number}"
    elif len(number) == 9 and number.startswith("9"):
        number = number[1:]

    return f"{ddd_part}{number}"


def normalize_for_storage(phone: str | None) -> str:
    """Return the canonical storage form of ``phone``.

    Input that cannot be normalized (too short, bad DDD) is returned as
    digits only, so ``is_valid_storage_phone`` rejects it.
    """
    if not phone:
        return ""
    return _apply_ninth_digit_rule(_strip_country_code(_digits(str(phone))))


def is_valid_storage_phone(phone: str | None) -> bool:
    if not phone or not phone.isdigit() or len(phone) not in (10, 11):
        return False
    return MIN_DDD <= int(phone[:2]) <= MAX_DDD


def normalize_for_sending(phone: str | None) -> str:
    """Storage form prefixed with the Brazilian country code (WhatsApp, gateways)."""
    return f"55{normalize_for_storage(phone)}"


def format_phone_for_display(phone: str | None) -> str:
    """``(31) 9999-0000`` / ``(11) 99999-0000``; unknown shapes come back untouched."""
    if not phone:
        return ""

    stored = normalize_for_storage(phone)
    if len(stored) >= 10:
        ddd, number = stored[:2], stored[2:]
        if len(number) == 9:
            return f"({ddd}) {number[:5]}-{number[5:]}"
        if len(number) == 8:
            return f"({ddd}) {number[:4]}-{number[4:]}"
    return phone


def normalize_instagram_handle(handle: str | None) -> str:
    if not handle:
        return ""
    return handle.replace("@", "").strip().lower()
