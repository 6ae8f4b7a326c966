"""Display formatting helpers (currency, dates, phone numbers)."""
import datetime
from typing import Optional, Union

DateLike = Union[str, datetime.datetime, None]


def parse_datetime(value: DateLike) -> Optional[datetime.datetime]:
    """Parse an ISO-8601 string (``Z`` suffix accepted) into an aware UTC datetime.

    Naive values are interpreted as UTC.  Returns ``None`` for empty or
    unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        dt = value
    else:
        s = str(value).strip()
        if not s:
            return None
        if s.endswith('Z'):
            s = s[:-1] + '+00:00'
        try:
            dt = datetime.datetime.fromisoformat(s)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string with millisecond precision and ``Z``."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def format_currency(amount: Optional[float], symbol: str = '$') -> str:
    """Format *amount* as ``$1,234.50`` (negative values as ``-$12.00``)."""
    value = float(amount or 0)
    sign = '-' if value < 0 else ''
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_date_time(value: DateLike) -> str:
    """Format as ``Mar 5, 2024, 3:07 PM`` (UTC); empty string when unparseable."""
    dt = parse_datetime(value)
    if dt is None:
        return ''
    hour = dt.hour % 12 or 12
    suffix = 'AM' if dt.hour < 12 else 'PM'
    return f"{dt.strftime('%b')} {dt.day}, {dt.year}, {hour}:{dt.minute:02d} {suffix}"


def format_date(value: DateLike) -> str:
    dt = parse_datetime(value)
    if dt is None:
        return ''
    return f"{dt.strftime('%b')} {dt.day}, {dt.year}"


def format_relative_time(value: DateLike,
                         now: Optional[datetime.datetime] = None) -> str:
    """Describe *value* relative to *now*: ``just now``, ``5 minutes ago``,
    ``2 hours ago``, ``3 days ago``; older than a week falls back to
    :func:`format_date`.
    """
    dt = parse_datetime(value)
    if dt is None:
        return ''
    now = parse_datetime(now) if now is not None else datetime.datetime.now(datetime.timezone.utc)
    seconds = int((now - dt).total_seconds())
    if seconds < 60:
        return 'just now'
    for size, unit in ((86400, 'day'), (3600, 'hour'), (60, 'minute')):
        if seconds >= size:
            count = seconds // size
            if unit == 'day' and count >= 7:
                return format_date(dt)
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return 'just now'


def format_phone_number(phone: Optional[str]) -> str:
    """Format a 10-digit number as ``(123) 456-7890``; other input is returned as-is."""
    if not phone:
        return ''
    digits = ''.join(ch for ch in phone if ch.isdigit())
    if len(digits) != 10:
        return phone
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
