"""Business-day partitioning.

Orders and carts are keyed by the shop's local calendar date, stored as a
plain ``YYYY-MM-DD`` string.
"""

import os
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/Sao_Paulo"


def shop_timezone() -> ZoneInfo:
    return ZoneInfo(os.getenv("SALES_TIMEZONE", DEFAULT_TIMEZONE))


def business_day(now: datetime | None = None) -> str:
    """Local calendar date of ``now`` (default: current time) in the shop timezone.

    Naive datetimes are taken as UTC.
    """
    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(shop_timezone()).date().isoformat()


def parse_business_day(value: str) -> str:
    """Validate a ``YYYY-MM-DD`` string and return it normalized."""
    return date.fromisoformat(value).isoformat()
