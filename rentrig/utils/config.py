"""Platform configuration read from environment variables."""

import os
from decimal import Decimal


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


class PlatformConfig:
    """Booking and pricing policy settings."""

    # Fixed platform fee on (rental subtotal + add-ons), not configurable
    SERVICE_FEE_RATE = Decimal("0.10")

    DEFAULT_HOURLY_CAP = int(os.environ.get("DEFAULT_HOURLY_CAP", "24"))
    LICENSED_CATEGORIES = frozenset(
        c.strip().lower()
        for c in os.environ.get("LICENSED_CATEGORIES", "").split(",")
        if c.strip()
    )


class MailConfig:
    """SMTP transport settings."""

    SMTP_HOST = os.environ.get("SMTP_HOST", "")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_SECURE = _parse_bool(os.environ.get("SMTP_SECURE", "false"))
    SMTP_USER = os.environ.get("SMTP_USER", "")
    SMTP_PASS = os.environ.get("SMTP_PASS", "")
    SMTP_FROM = os.environ.get("SMTP_FROM", "")

    @classmethod
    def is_configured(cls) -> bool:
        return bool(cls.SMTP_HOST and cls.SMTP_FROM)
