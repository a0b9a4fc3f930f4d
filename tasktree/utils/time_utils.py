"""Time-spent parsing and formatting helpers for tasktree."""

import re
from typing import Optional

_HOURS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*h")
_MINUTES_RE = re.compile(r"(\d+(?:\.\d+)?)\s*m")


def parse_time_spent(raw: Optional[str]) -> int:
    """
    Parse a free form time-spent string into whole minutes.

    Accepted forms:
        - "2:30"      hours and minutes separated by a colon
        - "2h 30m"    hour and/or minute components, in any combination
        - "1.5h", "45m", "2 h"
        - "3"         a bare number is read as hours

    Args:
        raw: Time-spent string as entered by the user

    Returns:
        Total minutes (rounded to the nearest minute); 0 for empty or
        unparseable input

    Examples:
        >>> parse_time_spent("2h 30m")
        150
        >>> parse_time_spent("1:15")
        75
        >>> parse_time_spent("")
        0
    """
    if not raw:
        return 0

    value = raw.strip().lower()
    if not value:
        return 0

    if ":" in value:
        hours_part, _, minutes_part = value.partition(":")
        return round(_to_float(hours_part) * 60 + _to_float(minutes_part))

    hour_match = _HOURS_RE.search(value)
    minute_match = _MINUTES_RE.search(value)

    hours = 0.0
    if hour_match:
        hours += float(hour_match.group(1))
    if minute_match:
        hours += float(minute_match.group(1)) / 60

    if not hour_match and not minute_match:
        hours = _to_float(value)

    return max(0, round(hours * 60))


def format_minutes(total_minutes: int) -> str:
    """
    Format minutes as a compact time-spent string.

    Args:
        total_minutes: Minutes to format

    Returns:
        "2h 30m", "2h", "45m", or "0m" for zero and negative values
    """
    if total_minutes <= 0:
        return "0m"

    hours, minutes = divmod(int(total_minutes), 60)
    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"


def _to_float(text: str) -> float:
    try:
        return float(text.strip() or 0)
    except ValueError:
        return 0.0
