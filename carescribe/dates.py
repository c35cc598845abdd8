"""
Local calendar date utilities.

Every comparison the engine makes between schedules happens on local calendar
dates. A bare "YYYY-MM-DD" string is a calendar date and never shifts across
timezones; a full timestamp is parsed as-is and, when it carries an offset,
converted into the configured local zone. All datetimes handed out here are
naive local times.
"""

import logging
import re
from datetime import date, datetime, time

import pytz

from carescribe import config

logger = logging.getLogger(__name__)

DATE_ONLY = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
CLOCK_TIME = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


def local_zone():
    """Configured pytz zone, or None for the system local zone."""
    if not config.TIMEZONE:
        return None
    return pytz.timezone(config.TIMEZONE)


def now() -> datetime:
    """Current wall-clock time in the local zone, as a naive datetime."""
    zone = local_zone()
    if zone is None:
        return datetime.now()
    return datetime.now(zone).replace(tzinfo=None)


def to_local(dt: datetime) -> datetime:
    """Convert any datetime to naive local time. Naive input is assumed local."""
    if dt.tzinfo is None:
        return dt
    zone = local_zone()
    if zone is None:
        return dt.astimezone().replace(tzinfo=None)
    return dt.astimezone(zone).replace(tzinfo=None)


def parse_timestamp(value, fallback: datetime | None = None) -> datetime:
    """Parse an ISO date or timestamp into naive local time.

    Date-only strings resolve to local midnight. Anything unparseable
    resolves to ``fallback`` (or the current time).
    """
    if isinstance(value, datetime):
        return to_local(value)
    if isinstance(value, date):
        return datetime.combine(value, time())
    if value:
        text = str(value).strip()
        match = DATE_ONLY.match(text)
        try:
            if match:
                year, month, day = (int(part) for part in match.groups())
                return datetime(year, month, day)
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return to_local(datetime.fromisoformat(text))
        except ValueError:
            logger.debug("Unparseable date %r, using now", value)
    return fallback if fallback is not None else now()


def parse_local_date(value, fallback: datetime | None = None) -> date:
    """Parse a date or timestamp into a local calendar date."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return parse_timestamp(value, fallback).date()


def to_local_date_string(value: date | datetime) -> str:
    """Format as YYYY-MM-DD using the local calendar date."""
    if isinstance(value, datetime):
        value = to_local(value)
    return value.strftime("%Y-%m-%d")


def parse_clock(value: str | None) -> tuple[int, int] | None:
    """Parse "HH:MM" into (hour, minute); None when missing or invalid."""
    if not value:
        return None
    match = CLOCK_TIME.match(str(value).strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def at_clock(day: date, clock: str | None) -> datetime | None:
    """Combine a calendar date with an "HH:MM" time of day."""
    parsed = parse_clock(clock)
    if parsed is None:
        return None
    return datetime(day.year, day.month, day.day, parsed[0], parsed[1])


def sunday_weekday(day: date) -> int:
    """Day of week with Sunday = 0 ... Saturday = 6."""
    return (day.weekday() + 1) % 7


def format_clock(dt: datetime) -> str:
    """Human time of day, e.g. "9:30 AM"."""
    return dt.strftime("%I:%M %p").lstrip("0")
