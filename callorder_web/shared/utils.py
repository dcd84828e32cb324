"""
Shared utilities: phone normalization, money display and local time.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.conf import settings
from django.utils import timezone

CENTS = Decimal('0.01')


def normalize_phone_number(phone: Optional[str]) -> str:
    """
    Normalize a phone number or SIP/tel URI:
    - Strip "sip:" / "tel:" prefixes and the "@host" part
    - Keep only digits and a leading +

    Examples:
        "sip:+1 (207) 507-5278@pbx.example.com" -> "+12075075278"
        "tel:207-507-5278" -> "2075075278"
    """
    if not phone:
        return ""

    phone = phone.replace("sip:", "").replace("tel:", "")
    if "@" in phone:
        phone = phone.split("@")[0]

    phone = phone.strip()
    result = ''
    for i, char in enumerate(phone):
        if char.isdigit():
            result += char
        elif char == '+' and i == 0:
            result += char

    return result


def round_money(value: Decimal) -> Decimal:
    """Round to two fraction digits for presentation"""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value: Decimal, symbol: Optional[str] = None) -> str:
    """
    Format a monetary value for display.
    Example: Decimal("51.4076") -> "£51.41"
    """
    if symbol is None:
        symbol = getattr(settings, 'CURRENCY_SYMBOL', '£')
    return f"{symbol}{round_money(value):,.2f}"


def get_local_now() -> datetime:
    """Current datetime in the configured TIME_ZONE"""
    return timezone.localtime(timezone.now())


def to_local(dt: datetime) -> datetime:
    """
    Convert to the configured TIME_ZONE.
    Naive datetimes are assumed to already be local.
    """
    if timezone.is_naive(dt):
        return timezone.make_aware(dt)
    return timezone.localtime(dt)
