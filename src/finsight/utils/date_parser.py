"""Date parsing utilities."""

from calendar import monthrange
from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a statement date token into a date object.

    Supports the grammars found on bank statements:
    - Numeric: "01/15/2024", "1-15-24", "15/01/2024" (day-first when the
      first field cannot be a month)
    - ISO-like: "2024-01-15", "2024/1/15"
    - Month names: "Jan 15, 2024", "15 Jan 2024", "January 15th 2024"
    - Partial dates without a year ("01/15", "Jan 15"), which take the year
      of ``today``

    Args:
        date_str: Date token
        today: Reference date supplying missing components (defaults to today)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if date_str is None or not date_str.strip():
        raise ValueError("Empty date string")

    today = today or date.today()
    default = datetime(today.year, 1, 1)
    try:
        return date_parser.parse(date_str.strip(), default=default).date()
    except (ValueError, OverflowError, TypeError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def normalize_date(date_str: str, today: Optional[date] = None) -> date:
    """Best-effort date normalization.

    Unparseable tokens resolve to the processing date instead of being
    dropped.
    """
    today = today or date.today()
    try:
        return parse_date(date_str, today=today)
    except ValueError:
        return today


def get_month_range(month: int, year: int) -> tuple[date, date]:
    """Get the first and last day of a calendar month.

    Args:
        month: Month number (1-12)
        year: Four-digit year

    Returns:
        Tuple of (start_date, end_date), both inclusive

    Raises:
        ValueError: If month is outside 1-12
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}. Expected a value between 1 and 12")
    last_day = monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
