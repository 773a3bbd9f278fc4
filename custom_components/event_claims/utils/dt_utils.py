# File: utils/dt_utils.py
"""Date and time utilities for Event Claims.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.
   Uses standard library: datetime, zoneinfo, dateutil.

Functions:
    - set_default_timezone: Configure the local calendar
    - dt_now_local: Current local datetime
    - minute_of_day: Parse "HH:MM[:SS]" into minutes since midnight
    - minute_of_day_or_none: Sentinel variant of minute_of_day
    - format_minute_of_day: Minutes since midnight back to "HH:MM"
    - build_window: Validated EligibilityWindow construction
    - is_within_window: Inclusive window membership test
    - window_end_minute / window_label: Window display helpers
    - monday_of_week / end_of_week / start_of_month / end_of_month: Calendar bounds
    - format_period_key / parse_period_key / period_contains: Claim period keys
    - is_discipline_claim_day / next_discipline_claim_date: Claim-day schedule
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
import logging
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Third-party date utilities (no HA dependency)
from dateutil.relativedelta import relativedelta

if TYPE_CHECKING:
    from ..type_defs import EligibilityWindow

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# These mirror const.py values but are defined locally for purity.
# ==============================================================================

DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

MINUTES_PER_DAY = 1440

PERIOD_DAILY = "daily"
PERIOD_WEEKLY = "weekly"
PERIOD_MONTHLY = "monthly"

CLAIM_MODE_ANYTIME = "anytime"
CLAIM_MODE_MONTHLY_FIXED_DAY = "monthly_fixed_day"
CLAIM_MODE_WEEKLY_FRIDAY = "weekly_friday"
CLAIM_MODE_DISABLED = "disabled"

FRIDAY = 4  # date.weekday()


class FormatError(ValueError):
    """Raised when a clock time string cannot be parsed."""


class InvalidWindowError(ValueError):
    """Raised when an eligibility window violates its invariants."""


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this during integration setup to configure the user's timezone.
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware)."""
    return datetime.now(tz or DEFAULT_TIME_ZONE)


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


# ==============================================================================
# Minute-of-day Arithmetic
# ==============================================================================


def minute_of_day(value: str | time | datetime) -> int:
    """Convert a clock time to minutes since midnight.

    Accepts "HH:MM", "HH:MM:SS" and the "YYYY-MM-DD HH:MM:SS" form the backend
    uses for prayer times, as well as `time` and `datetime` objects.

    Raises:
        FormatError: fewer than two numeric colon-separated fields, or an
            hour/minute out of range.

    Examples:
        minute_of_day("12:00") → 720
        minute_of_day("07:50:00") → 470
    """
    if isinstance(value, (datetime, time)):
        return value.hour * 60 + value.minute

    if not isinstance(value, str):
        raise FormatError(f"Unsupported time value: {value!r}")

    text = value.strip()
    # Drop a leading date component ("2025-03-15 12:01:00")
    if " " in text:
        text = text.rsplit(" ", 1)[-1]
    elif "T" in text:
        text = text.rsplit("T", 1)[-1]

    parts = text.split(":")
    if len(parts) < 2:
        raise FormatError(f"Expected HH:MM, got {value!r}")

    try:
        hour = int(parts[0])
        minute = int(parts[1])
    except ValueError as err:
        raise FormatError(f"Non-numeric time fields in {value!r}") from err

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise FormatError(f"Time out of range: {value!r}")

    return hour * 60 + minute


def minute_of_day_or_none(value: str | time | datetime | None) -> int | None:
    """Return minute_of_day(value), or None when the value cannot be parsed."""
    if value is None:
        return None
    try:
        return minute_of_day(value)
    except FormatError as err:
        _LOGGER.debug("Ignoring unparseable time value: %s", err)
        return None


def format_minute_of_day(minute: int) -> str:
    """Format minutes since midnight as "HH:MM"."""
    minute = max(0, min(MINUTES_PER_DAY - 1, minute))
    return f"{minute // 60:02d}:{minute % 60:02d}"


# ==============================================================================
# Eligibility Windows
# ==============================================================================


def build_window(
    start: str | int,
    duration_minutes: int,
    timezone: str,
) -> EligibilityWindow:
    """Build a validated EligibilityWindow.

    Args:
        start: Opening time as "HH:MM[:SS]" or as minutes since midnight
        duration_minutes: Window length (> 0)
        timezone: IANA timezone name the opening time is expressed in

    Raises:
        FormatError: start string cannot be parsed
        InvalidWindowError: window bounds violate the same-day invariant
    """
    opens_at = start if isinstance(start, int) else minute_of_day(start)

    if not 0 <= opens_at < MINUTES_PER_DAY:
        raise InvalidWindowError(f"Window opens outside the day: {opens_at}")
    if duration_minutes <= 0:
        raise InvalidWindowError(f"Window duration must be positive: {duration_minutes}")
    if opens_at + duration_minutes > MINUTES_PER_DAY:
        raise InvalidWindowError(
            f"Window {format_minute_of_day(opens_at)}+{duration_minutes}m crosses midnight"
        )

    return {
        "opens_at_minute_of_day": opens_at,
        "duration_minutes": duration_minutes,
        "timezone": timezone,
    }


def window_end_minute(window: EligibilityWindow) -> int:
    """Return the last minute inside the window, clamped to the same day."""
    end = window["opens_at_minute_of_day"] + window["duration_minutes"]
    return min(end, MINUTES_PER_DAY - 1)


def window_label(window: EligibilityWindow) -> str:
    """Return "HH:MM-HH:MM" for display."""
    return (
        f"{format_minute_of_day(window['opens_at_minute_of_day'])}-"
        f"{format_minute_of_day(window_end_minute(window))}"
    )


def _window_zone(window: EligibilityWindow) -> ZoneInfo | None:
    tz_name = window.get("timezone")
    if not tz_name:
        return None
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        _LOGGER.warning("Unknown window timezone '%s', using local clock", tz_name)
        return None


def is_within_window(
    now: str | time | datetime,
    window: EligibilityWindow,
) -> bool:
    """Return True iff opens <= minute_of_day(now) <= opens + duration.

    Both ends are inclusive. Aware datetimes are converted to the window's
    timezone first; naive values are read as local wall-clock time. An
    unparseable `now` is never inside the window.

    Examples (window opens 12:00 for 20 minutes):
        "12:00" → True, "12:20" → True, "12:21" → False, "11:59" → False
    """
    if isinstance(now, datetime) and now.tzinfo is not None:
        zone = _window_zone(window)
        if zone is not None:
            now = now.astimezone(zone)

    current = minute_of_day_or_none(now)
    if current is None:
        return False

    opens_at = window["opens_at_minute_of_day"]
    return opens_at <= current <= window_end_minute(window)


# ==============================================================================
# Calendar Bounds
# ==============================================================================


def monday_of_week(value: date | datetime) -> date:
    """Return the Monday starting the week containing value."""
    day = _as_date(value)
    return day - timedelta(days=day.weekday())


def end_of_week(value: date | datetime) -> date:
    """Return the Sunday ending the week containing value."""
    return monday_of_week(value) + timedelta(days=6)


def start_of_month(value: date | datetime) -> date:
    """Return the first day of the month containing value."""
    return _as_date(value).replace(day=1)


def end_of_month(value: date | datetime) -> date:
    """Return the last day of the month containing value."""
    return start_of_month(value) + relativedelta(months=1) - timedelta(days=1)


# ==============================================================================
# Claim Period Keys
# ==============================================================================


def format_period_key(kind: str, value: date | datetime) -> str:
    """Format a deterministic claim period key.

    Examples:
        format_period_key("daily", date(2025, 3, 15)) → "daily:2025-03-15"
        format_period_key("weekly", date(2025, 3, 15)) → "weekly:2025-03-10-2025-03-16"
        format_period_key("monthly", date(2025, 3, 15)) → "monthly:2025-03"

    Raises:
        ValueError: unknown period kind
    """
    day = _as_date(value)
    if kind == PERIOD_DAILY:
        return f"{PERIOD_DAILY}:{day.isoformat()}"
    if kind == PERIOD_WEEKLY:
        return (
            f"{PERIOD_WEEKLY}:{monday_of_week(day).isoformat()}"
            f"-{end_of_week(day).isoformat()}"
        )
    if kind == PERIOD_MONTHLY:
        return f"{PERIOD_MONTHLY}:{day.year:04d}-{day.month:02d}"
    raise ValueError(f"Unknown period kind: {kind}")


def parse_period_key(period_key: str) -> tuple[str, date, date]:
    """Return (kind, first_day, last_day) for a period key.

    Raises:
        ValueError: malformed key
    """
    kind, sep, body = period_key.partition(":")
    if not sep:
        raise ValueError(f"Malformed period key: {period_key}")

    if kind == PERIOD_DAILY:
        day = date.fromisoformat(body)
        return kind, day, day
    if kind == PERIOD_WEEKLY:
        # "YYYY-MM-DD-YYYY-MM-DD"
        start = date.fromisoformat(body[:10])
        end = date.fromisoformat(body[11:])
        return kind, start, end
    if kind == PERIOD_MONTHLY:
        first = date.fromisoformat(f"{body}-01")
        return kind, first, end_of_month(first)
    raise ValueError(f"Unknown period kind in key: {period_key}")


def period_suffix(period_key: str) -> str:
    """Return the part of a period key after the kind ("2025-03" for monthly)."""
    return period_key.partition(":")[2]


def period_contains(period_key: str, value: date | datetime) -> bool:
    """Return True if value falls inside the period; False for malformed keys."""
    try:
        _, first, last = parse_period_key(period_key)
    except ValueError:
        return False
    return first <= _as_date(value) <= last


# ==============================================================================
# Discipline Claim Schedule
# ==============================================================================


def is_discipline_claim_day(
    now: date | datetime,
    mode: str,
    claim_day: int,
) -> bool:
    """Return True if discipline rewards may be claimed on this day.

    Modes:
        - anytime: every day
        - monthly_fixed_day: only on day-of-month == claim_day
        - weekly_friday: only on Fridays
        - disabled: never
    """
    day = _as_date(now)
    if mode == CLAIM_MODE_ANYTIME:
        return True
    if mode == CLAIM_MODE_MONTHLY_FIXED_DAY:
        return day.day == claim_day
    if mode == CLAIM_MODE_WEEKLY_FRIDAY:
        return day.weekday() == FRIDAY
    return False


def next_discipline_claim_date(
    now: date | datetime,
    mode: str,
    claim_day: int,
) -> date:
    """Return the next claim date for display.

    For monthly_fixed_day the claim day of this month is returned while it has
    not passed yet (today counts as not passed only when earlier in the month),
    otherwise next month's. For weekly_friday the next Friday strictly after
    today. Other modes return today.
    """
    day = _as_date(now)

    if mode == CLAIM_MODE_MONTHLY_FIXED_DAY:
        wanted = claim_day or 1
        base = day if day.day < wanted else day + relativedelta(months=1)
        # relativedelta clamps to the last day when wanted exceeds month length
        return base + relativedelta(day=wanted)

    if mode == CLAIM_MODE_WEEKLY_FRIDAY:
        diff = (FRIDAY - day.weekday()) % 7 or 7
        return day + timedelta(days=diff)

    return day
