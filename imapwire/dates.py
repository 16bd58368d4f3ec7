"""Parsing and formatting of IMAP and RFC 5322 dates."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
_WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

_ZONE = r"(?P<off>[+-]\d{4})(?: \((?P<paren>[A-Z]{3,5})\))?|(?P<name>[A-Z]{3,5})"

_ENVELOPE_RE = re.compile(
    r"(?:(?P<wd>[A-Za-z]{3}), )?"
    r" ?(?P<day>\d{1,2}) (?P<mon>[A-Za-z]{3}) (?P<year>\d{4}|\d{2}) "
    r"(?P<hour>\d{1,2}):(?P<min>\d{2})(?::(?P<sec>\d{2}))? "
    r"(?:" + _ZONE + r")"
)
_DATE_TIME_RE = re.compile(
    r" ?(?P<day>\d{1,2})-(?P<mon>[A-Za-z]{3})-(?P<year>\d{4}) "
    r"(?P<hour>\d{1,2}):(?P<min>\d{2}):(?P<sec>\d{2}) (?P<off>[+-]\d{4})"
)
_DATE_RE = re.compile(r" ?(?P<day>\d{1,2})-(?P<mon>[A-Za-z]{3})-(?P<year>\d{4})")


def _month(name: str) -> int:
    lowered = [m.lower() for m in _MONTHS]
    return lowered.index(name.lower()) + 1


def _valid_zone_name(name: Optional[str]) -> bool:
    if name is None:
        return True
    if name == "UTC" or len(name) == 3:
        return True
    return len(name) in (4, 5) and name.endswith("T")


def _offset(text: str) -> timezone:
    sign = -1 if text[0] == "-" else 1
    delta = timedelta(hours=int(text[1:3]), minutes=int(text[3:5]))
    return timezone(sign * delta)


def _fail(value: str) -> ValueError:
    return ValueError(f"date {value} could not be parsed")


def parse_message_date_time(value: str) -> datetime:
    """Parse a date in any of the RFC 5322 section 3.3 layouts."""
    m = _ENVELOPE_RE.fullmatch(value)
    if m is None:
        raise _fail(value)
    wd = m.group("wd")
    if wd is not None and wd.lower() not in [w.lower() for w in _WEEKDAYS]:
        raise _fail(value)
    if not (_valid_zone_name(m.group("name")) and _valid_zone_name(m.group("paren"))):
        raise _fail(value)
    try:
        month = _month(m.group("mon"))
        year = int(m.group("year"))
        if len(m.group("year")) == 2:
            year += 1900 if year >= 69 else 2000
        tz = _offset(m.group("off")) if m.group("off") else timezone.utc
        return datetime(year, month, int(m.group("day")), int(m.group("hour")),
                        int(m.group("min")), int(m.group("sec") or 0), tzinfo=tz)
    except ValueError:
        raise _fail(value) from None


def parse_date_time(value: str) -> datetime:
    """Parse an IMAP date-time such as ``2-Nov-2009 23:00:00 -0600``."""
    m = _DATE_TIME_RE.fullmatch(value)
    if m is None:
        raise _fail(value)
    try:
        return datetime(int(m.group("year")), _month(m.group("mon")), int(m.group("day")),
                        int(m.group("hour")), int(m.group("min")), int(m.group("sec")),
                        tzinfo=_offset(m.group("off")))
    except ValueError:
        raise _fail(value) from None


def parse_date(value: str) -> datetime:
    """Parse an IMAP date such as ``2-Nov-2009`` as midnight UTC."""
    m = _DATE_RE.fullmatch(value)
    if m is None:
        raise _fail(value)
    try:
        return datetime(int(m.group("year")), _month(m.group("mon")), int(m.group("day")),
                        tzinfo=timezone.utc)
    except ValueError:
        raise _fail(value) from None


def _format_offset(value: datetime) -> str:
    offset = value.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    minutes = abs(minutes)
    return f"{sign}{minutes // 60:02d}{minutes % 60:02d}"


def format_date_time(value: datetime) -> str:
    """Format as an IMAP date-time with a space-padded day."""
    return (f"{value.day:2d}-{_MONTHS[value.month - 1]}-{value.year:04d} "
            f"{value.hour:02d}:{value.minute:02d}:{value.second:02d} {_format_offset(value)}")


def format_date(value: datetime) -> str:
    """Format as an IMAP date with a space-padded day."""
    return f"{value.day:2d}-{_MONTHS[value.month - 1]}-{value.year:04d}"


def format_envelope_date_time(value: datetime) -> str:
    """Format as an RFC 5322 date, as used in envelopes."""
    return (f"{_WEEKDAYS[value.weekday()]}, {value.day:02d} {_MONTHS[value.month - 1]} "
            f"{value.year:04d} {value.hour:02d}:{value.minute:02d}:{value.second:02d} "
            f"{_format_offset(value)}")