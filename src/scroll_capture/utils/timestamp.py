import re
from datetime import datetime, timedelta
from typing import Any, Optional

from dateutil import parser as date_parser

# Month names as rendered by feeds ("January 15, 2023", "JAN 15")
DATE_PATTERN = re.compile(
    r"(JANUARY|FEBRUARY|MARCH|APRIL|MAY|JUNE|JULY|AUGUST|SEPTEMBER|OCTOBER|NOVEMBER|DECEMBER"
    r"|JAN|FEB|MAR|APR|JUN|JUL|AUG|SEP|SEPT|OCT|NOV|DEC)\s+(\d{1,2})(?:,\s+(\d{4}))?",
    re.IGNORECASE,
)

# Compact relative times used by social feeds ("5m", "2h", "3d", "1w", "2mo", "1y")
RELATIVE_PATTERN = re.compile(r"^(\d+)\s*(s|m|min|h|hr|d|w|mo|y|yr)\b", re.IGNORECASE)

RELATIVE_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "min": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "hr": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
    "mo": timedelta(days=30),
    "y": timedelta(days=365),
    "yr": timedelta(days=365),
}


def parse_iso(text: str) -> Optional[datetime]:
    if "T" not in text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_month_text(text: str, now: datetime | None = None) -> Optional[datetime]:
    match = DATE_PATTERN.search(text)
    if not match:
        return None

    month, day, year = match.groups()
    year = int(year) if year else (now or datetime.now()).year
    try:
        return date_parser.parse(f"{month[:3]} {day} {year}")
    except (ValueError, OverflowError):
        return None


def parse_relative_time(text: str, now: datetime | None = None) -> Optional[datetime]:
    """Parse "5m" / "2h" / "3d" style ages into an absolute datetime."""
    match = RELATIVE_PATTERN.match(text.strip())
    if not match:
        return None
    value, unit = int(match.group(1)), match.group(2).lower()
    return (now or datetime.now()) - value * RELATIVE_UNITS[unit]


def parse_datetime(raw: Any, now: datetime | None = None) -> Optional[datetime]:
    """Parse a raw feed timestamp (datetime, ISO, month text, or relative age)."""
    if isinstance(raw, datetime):
        return raw
    if raw is None:
        return None

    text = str(raw).strip()
    if not text:
        return None

    return parse_iso(text) or parse_month_text(text, now) or parse_relative_time(text, now)


def truncate_to_date(raw: Any, now: datetime | None = None) -> str:
    """Reduce a raw timestamp to its calendar date (YYYY-MM-DD).

    Unparseable input falls back to its whitespace-collapsed, case-folded text so
    that identical raw strings still compare equal.
    """
    dt = parse_datetime(raw, now)
    if dt:
        return dt.date().isoformat()
    if raw is None:
        return ""
    return " ".join(str(raw).split()).casefold()
