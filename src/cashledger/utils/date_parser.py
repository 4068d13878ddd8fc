"""Date parsing utilities for movement filters."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_RELATIVE_DAYS = {
    "today": 0,
    "hoy": 0,
    "yesterday": -1,
    "ayer": -1,
}


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports:
    - Absolute dates: "2024-01-15", "15/01/2024" (day first), "January 15, 2024"
    - Relative dates: "today"/"hoy", "yesterday"/"ayer", "this month",
      "last month", "this week", "this year"

    Args:
        date_str: Date string

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = date.today()

    if text in _RELATIVE_DAYS:
        return today + timedelta(days=_RELATIVE_DAYS[text])

    if text == "this month":
        return today.replace(day=1)
    if text == "last month":
        return (today - relativedelta(months=1)).replace(day=1)
    if text == "this week":
        return today - timedelta(days=today.weekday())
    if text == "this year":
        return today.replace(month=1, day=1)

    # ISO dates are unambiguous; anything else is read day-first as in es-CO
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
