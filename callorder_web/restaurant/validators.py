"""
Input validators shared by the models and the services.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from shared.exceptions import ValidationError

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')
HHMM_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


def validate_busy_hours(entries: Any) -> List[Dict[str, Any]]:
    """
    Validate a busy-hours schedule.

    Each entry is {"day": weekday name, "start": "HH:MM", "end": "HH:MM", "enabled": bool}.
    Day names are stored lower-case.
    """
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ValidationError('busy_hours must be a list')

    cleaned = []
    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValidationError(f'busy_hours entry {idx + 1} must be an object')
        day = entry.get('day')
        start = entry.get('start')
        end = entry.get('end')
        if not isinstance(day, str) or day.strip().lower() not in WEEKDAYS:
            raise ValidationError(f'busy_hours entry {idx + 1}: unknown day', {'day': day})
        if not isinstance(start, str) or not isinstance(end, str) \
                or not HHMM_RE.match(start.strip()) or not HHMM_RE.match(end.strip()):
            raise ValidationError(
                f'busy_hours entry {idx + 1}: times must be zero-padded HH:MM',
                {'start': start, 'end': end},
            )
        cleaned.append({
            'day': day.strip().lower(),
            'start': start.strip(),
            'end': end.strip(),
            'enabled': bool(entry.get('enabled', True)),
        })
    return cleaned


def parse_amount(field: str, value: Any, max_digits: int, decimal_places: int, label: str = '') -> Decimal:
    """
    Parse a non-negative amount that fits a DecimalField(max_digits, decimal_places).

    Values with more decimal places than the column holds are rejected, not rounded.
    """
    label = label or field
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{label} must be a number', {field: value})
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f'{label} must not be negative', {field: value})

    limit = Decimal(10) ** (max_digits - decimal_places)
    if amount >= limit:
        raise ValidationError(f'{label} must be less than {limit}', {field: value})

    exponent = Decimal(1).scaleb(-decimal_places)
    quantized = amount.quantize(exponent)
    if quantized != amount:
        raise ValidationError(f'{label} allows at most {decimal_places} decimal places', {field: value})
    return quantized
