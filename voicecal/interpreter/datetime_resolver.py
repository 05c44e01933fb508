"""Date and time resolution for spoken calendar commands.

Every function takes the reference moment `now` explicitly so results are
reproducible; nothing here reads the wall clock.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from voicecal.models.constants import IMPLIED_PM_HOURS

logger = logging.getLogger(__name__)


class TimeParseError(ValueError):
    """Raised when a clock expression cannot be read."""


_WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

# A date phrase as it appears inside a command. Shared by the extraction rules.
DATE_TOKEN_PATTERN = (
    r"(?:today|tonight|tomorrow"
    r"|(?:(?:next|this)\s+)?(?:" + "|".join(_WEEKDAYS) + r")"
    r"|\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}/\d{1,2}(?:/\d{2,4})?)"
)

# A clock expression: "3", "3pm", "3:30 p.m.", "noon". Refuses digits that belong to a date.
TIME_TOKEN_PATTERN = (
    r"(?:noon|midnight"
    r"|(?<![\d/:])\d{1,2}(?::\d{2})?(?:\s*(?:[ap]\.m\.|[ap]m)(?![a-z]))?(?![\d/:]))"
)

_WEEKDAY_RE = re.compile(r"^(?:(?:next|this)\s+)?(?P<day>" + "|".join(_WEEKDAYS) + r")$")
_SLASH_DATE_RE = re.compile(r"^(?P<m>\d{1,2})/(?P<d>\d{1,2})(?:/(?P<y>\d{2,4}))?$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK_RE = re.compile(
    r"^(?P<h>\d{1,2})(?::(?P<m>\d{2}))?\s*(?P<meridiem>[ap])?(?:\.?m\.?)?$"
)


def resolve_date(token: str, now: datetime) -> str:
    """Resolve a date phrase to an ISO date string relative to `now`.

    - "today" / "tonight" -> now's date
    - "tomorrow" -> now + 1 day
    - "[next|this] <weekday>" -> next occurrence strictly after today
    - "M/D/YYYY", "M/D/YY" -> that date; "M/D" -> that date in now's year
    - "YYYY-MM-DD" -> unchanged
    - anything else (or an impossible date) -> now's date
    """
    today = now.date()
    t = re.sub(r"\s+", " ", (token or "").strip().lower())

    if t in ("today", "tonight"):
        return today.isoformat()
    if t == "tomorrow":
        return (today + timedelta(days=1)).isoformat()

    m = _WEEKDAY_RE.match(t)
    if m:
        target = _WEEKDAYS.index(m.group("day"))
        offset = (target - today.weekday() + 7) % 7
        if offset == 0:
            offset = 7
        return (today + timedelta(days=offset)).isoformat()

    m = _SLASH_DATE_RE.match(t)
    if m:
        year = int(m.group("y")) if m.group("y") else today.year
        if year < 100:
            year += 2000
        try:
            return date(year, int(m.group("m")), int(m.group("d"))).isoformat()
        except ValueError:
            logger.warning(f"Impossible calendar date '{token}'. Using {today.isoformat()}.")
            return today.isoformat()

    if _ISO_DATE_RE.match(t):
        try:
            return date.fromisoformat(t).isoformat()
        except ValueError:
            logger.warning(f"Impossible calendar date '{token}'. Using {today.isoformat()}.")
            return today.isoformat()

    logger.debug(f"Unrecognized date phrase '{token}'. Using {today.isoformat()}.")
    return today.isoformat()


def _split_clock(text: str) -> Tuple[int, int, Optional[str]]:
    t = (text or "").strip().lower()
    if t == "noon":
        return 12, 0, "p"
    if t == "midnight":
        return 12, 0, "a"
    m = _CLOCK_RE.match(t)
    if not m:
        raise TimeParseError(f"Could not parse time '{text}'")
    hour = int(m.group("h"))
    minute = int(m.group("m") or "0")
    if minute > 59:
        raise TimeParseError(f"Invalid time '{text}'")
    return hour, minute, m.group("meridiem")


def has_meridiem(text: str) -> bool:
    try:
        return _split_clock(text)[2] is not None
    except TimeParseError:
        return False


def convert_to_24_hour(text: str, default_meridiem: Optional[str] = None) -> str:
    """Convert a 12-hour clock expression to "HH:MM:SS".

    "3:00 pm" -> "15:00:00", "12:00 am" -> "00:00:00", "12:00 pm" -> "12:00:00".

    Without am/pm the `default_meridiem` ("am"/"pm") is used when given;
    otherwise hours 1-7 are read as afternoon and anything else as a 24-hour
    clock ("9" -> 09:00, "15:30" -> 15:30).

    Raises:
        TimeParseError: if the expression is not a valid time.
    """
    hour, minute, meridiem = _split_clock(text)
    if meridiem is None and default_meridiem:
        meridiem = default_meridiem.strip().lower()[:1]

    if meridiem:
        if hour < 1 or hour > 12:
            raise TimeParseError(f"Invalid 12-hour time '{text}'")
        if meridiem == "p" and hour != 12:
            hour += 12
        elif meridiem == "a" and hour == 12:
            hour = 0
    elif hour in IMPLIED_PM_HOURS:
        hour += 12

    if hour > 23:
        raise TimeParseError(f"Invalid time '{text}'")
    return f"{hour:02d}:{minute:02d}:00"


def convert_time_range(start_text: str, end_text: str) -> Tuple[str, str]:
    """Convert a spoken range, letting a bare side borrow the other side's am/pm.

    "between 4 and 6 pm" -> ("16:00:00", "18:00:00")
    "from 7:30 pm to 9" -> ("19:30:00", "21:00:00")

    When borrowing would invert the range, "from 11 to 1 pm" moves the start
    to the morning, but a start in the implied-afternoon hours ("between 6 and
    5 pm") stays inverted so the caller can ask for a valid range. A bare end
    that cannot follow the start falls back to the implied-afternoon rule.
    """
    start_has, end_has = has_meridiem(start_text), has_meridiem(end_text)

    if start_has and not end_has:
        start = convert_to_24_hour(start_text)
        end = convert_to_24_hour(end_text)
        if 1 <= _split_clock(end_text)[0] <= 12:
            borrowed_end = convert_to_24_hour(end_text, default_meridiem=_split_clock(start_text)[2])
            if borrowed_end > start:
                end = borrowed_end
        return start, end

    end = convert_to_24_hour(end_text)
    start_hour = _split_clock(start_text)[0]
    if start_has or not end_has or not 1 <= start_hour <= 12:
        return convert_to_24_hour(start_text), end

    borrowed = _split_clock(end_text)[2]
    start = convert_to_24_hour(start_text, default_meridiem=borrowed)
    if start >= end and start_hour not in IMPLIED_PM_HOURS:
        other = "a" if borrowed == "p" else "p"
        start = convert_to_24_hour(start_text, default_meridiem=other)
    return start, end


def is_valid_range(start_time: Optional[str], end_time: Optional[str]) -> bool:
    """True unless both times are present and start is not strictly before end."""
    if not start_time or not end_time:
        return True
    return start_time < end_time
