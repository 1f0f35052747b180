"""
Core Utilities

Shared parsing and formatting helpers used across apps.
"""
from datetime import date, datetime, time
from datetime import timezone as dt_timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime, parse_time

TWO_PLACES = Decimal('0.01')


def parse_datetime_value(value) -> datetime | None:
    """
    Parse an ISO-8601 timestamp or a bare date into an aware datetime.

    Bare dates become midnight UTC; naive timestamps are taken as UTC.
    Returns None when the value is empty or unparseable.
    """
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        try:
            parsed = parse_datetime(text)
        except ValueError:
            return None
        if parsed is None:
            try:
                day = parse_date(text)
            except ValueError:
                return None
            if day is None:
                return None
            parsed = datetime.combine(day, time.min)

    if timezone.is_naive(parsed):
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


def parse_date_value(value) -> date | None:
    """Parse 'YYYY-MM-DD' (or a timestamp, keeping its date); None if invalid."""
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        parsed = parse_date(text)
    except ValueError:
        return None
    if parsed is None:
        moment = parse_datetime_value(text)
        return moment.date() if moment else None
    return parsed


def parse_time_value(value) -> time | None:
    """Parse 'HH:MM' or 'HH:MM:SS'; None if empty or invalid."""
    if value in (None, ''):
        return None
    if isinstance(value, time):
        return value
    try:
        return parse_time(str(value).strip())
    except ValueError:
        return None


def parse_decimal(value) -> Decimal | None:
    """Parse a number into Decimal; None if empty or not numeric."""
    if value in (None, ''):
        return None
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def quantize_money(value: Decimal) -> Decimal:
    """Round half-up to cents."""
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_datetime(value: datetime | None) -> str | None:
    """ISO format in UTC with a trailing Z."""
    if value is None:
        return None
    return value.astimezone(dt_timezone.utc).isoformat().replace('+00:00', 'Z')
