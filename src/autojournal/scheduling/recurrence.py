"""
Recurrence calculation for journal subscriptions.

Computes the next UTC instant a subscription should fire, given its frequency,
selected weekdays, local generation time and IANA timezone. Every frequency is
expressed as a day rule: a predicate deciding whether a local calendar date is
eligible. The earliest eligible date whose generation instant is strictly after
``now`` wins.
"""

import re
from datetime import date, datetime, timedelta, timezone as dt_timezone
from typing import Callable, Iterable, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from autojournal.config import settings
from autojournal.exceptions import InvalidScheduleError
from autojournal.models.db import Frequency

UTC = dt_timezone.utc

# Index matches date.weekday(): Monday is 0
WEEKDAY_TOKENS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

# Frequencies that fire only on selected weekdays
DAY_SELECTING_FREQUENCIES = {
    Frequency.WEEKLY,
    Frequency.FORTNIGHTLY,
    Frequency.MONTHLY,
    Frequency.CUSTOM,
}

# How far back each frequency looks for activity
LOOKBACK_DAYS = {
    Frequency.DAILY: 1,
    Frequency.ALTERNATE_DAY: 2,
    Frequency.WEEKDAYS: 1,  # 3 on Mondays, to cover the weekend
    Frequency.WEEKLY: 7,
    Frequency.CUSTOM: 7,
    Frequency.FORTNIGHTLY: 14,
    Frequency.MONTHLY: 31,
}

TZ_STRATEGY_ZONEINFO = "zoneinfo"
TZ_STRATEGY_OFFSET_ESTIMATE = "offset_estimate"

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

# Day-since-epoch origin for parity rules, and the Monday that starts week 0
_EPOCH = date(1970, 1, 1)
_EPOCH_MONDAY = date(1970, 1, 5)

# Longest gap any rule can produce is a little over a month
_MAX_SEARCH_DAYS = 400

DayRule = Callable[[date, frozenset, date], bool]


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to an aware UTC datetime.

    Naive values are taken to already be UTC (SQLite drops tzinfo on read).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_frequency(value: Union[str, Frequency]) -> Frequency:
    """
    Parse a frequency value.

    Raises:
        InvalidScheduleError: If the value is not a known frequency
    """
    try:
        return Frequency(value)
    except ValueError:
        raise InvalidScheduleError(
            f"Unknown frequency: {value!r}", field="frequency"
        ) from None


def parse_generation_time(value: str) -> tuple[int, int]:
    """
    Parse a local ``HH:MM`` generation time.

    Args:
        value: 24-hour time string, e.g. ``"18:00"``

    Returns:
        (hour, minute) tuple

    Raises:
        InvalidScheduleError: If the value is not a valid ``HH:MM`` time
    """
    match = _TIME_PATTERN.match(value or "")
    if not match:
        raise InvalidScheduleError(
            f"Invalid generation time: {value!r} (expected HH:MM)",
            field="generation_time",
        )
    return int(match.group(1)), int(match.group(2))


def resolve_timezone(name: str) -> ZoneInfo:
    """
    Resolve an IANA timezone name.

    Raises:
        InvalidScheduleError: If the name is not in the timezone database
    """
    if not name:
        raise InvalidScheduleError("Timezone is required", field="timezone")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidScheduleError(
            f"Unknown timezone: {name!r}", field="timezone"
        ) from None


def parse_selected_days(selected_days: Optional[Iterable[str]]) -> frozenset:
    """
    Convert weekday tokens (``mon`` .. ``sun``) to ``date.weekday()`` indexes.

    Raises:
        InvalidScheduleError: If a token is not a known weekday
    """
    indexes = set()
    for token in selected_days or []:
        normalized = str(token).strip().lower()[:3]
        if normalized not in WEEKDAY_TOKENS:
            raise InvalidScheduleError(
                f"Unknown weekday: {token!r}", field="selected_days"
            )
        indexes.add(WEEKDAY_TOKENS.index(normalized))
    return frozenset(indexes)


def validate_schedule(
    frequency: Union[str, Frequency],
    selected_days: Optional[Iterable[str]],
    generation_time: str,
    timezone: str,
) -> Frequency:
    """
    Validate a subscription's recurrence settings.

    Args:
        frequency: Frequency value
        selected_days: Weekday tokens
        generation_time: Local ``HH:MM`` time
        timezone: IANA timezone name

    Returns:
        The parsed Frequency

    Raises:
        InvalidScheduleError: On the first invalid field found
    """
    parsed = parse_frequency(frequency)
    parse_generation_time(generation_time)
    resolve_timezone(timezone)
    days = parse_selected_days(selected_days)
    if parsed in DAY_SELECTING_FREQUENCIES and not days:
        raise InvalidScheduleError(
            f"Frequency {parsed.value!r} requires at least one selected day",
            field="selected_days",
        )
    return parsed


# ---------------------------------------------------------------------------
# Wall-clock to UTC conversion
# ---------------------------------------------------------------------------


def zoneinfo_to_utc(
    local_day: date, hour: int, minute: int, zone: ZoneInfo
) -> datetime:
    """Convert a local wall-clock time to UTC using the IANA database."""
    local = datetime(
        local_day.year, local_day.month, local_day.day, hour, minute, tzinfo=zone
    )
    return local.astimezone(UTC)


def estimate_utc_for_wall_clock(
    local_day: date, hour: int, minute: int, zone: ZoneInfo
) -> datetime:
    """
    Approximate a local wall-clock time in UTC without offset lookup.

    Formats a trial instant (the wall-clock value read as UTC) into the zone,
    measures the minute-of-day difference and shifts the trial back by it. The
    difference is wrapped into +/-12 hours. Can be off by the DST delta near
    transitions.
    """
    trial = datetime(
        local_day.year, local_day.month, local_day.day, hour, minute, tzinfo=UTC
    )
    observed = trial.astimezone(zone)
    delta = (observed.hour * 60 + observed.minute) - (hour * 60 + minute)
    if delta > 720:
        delta -= 1440
    elif delta < -720:
        delta += 1440
    return trial - timedelta(minutes=delta)


_TZ_STRATEGIES = {
    TZ_STRATEGY_ZONEINFO: zoneinfo_to_utc,
    TZ_STRATEGY_OFFSET_ESTIMATE: estimate_utc_for_wall_clock,
}


# ---------------------------------------------------------------------------
# Day rules
# ---------------------------------------------------------------------------


def _days_since_epoch(day: date) -> int:
    return (day - _EPOCH).days


def _week_index(day: date) -> int:
    # Continuous Monday-aligned week count; ISO week numbers reset at year end
    return (day - _EPOCH_MONDAY).days // 7


def _every_day(day: date, days: frozenset, anchor: date) -> bool:
    return True


def _alternate_day(day: date, days: frozenset, anchor: date) -> bool:
    return _days_since_epoch(day) % 2 == _days_since_epoch(anchor) % 2


def _weekdays_only(day: date, days: frozenset, anchor: date) -> bool:
    return day.weekday() < 5


def _selected_weekday(day: date, days: frozenset, anchor: date) -> bool:
    return day.weekday() in days


def _fortnightly(day: date, days: frozenset, anchor: date) -> bool:
    return (
        day.weekday() in days
        and _week_index(day) % 2 == _week_index(anchor) % 2
    )


def _first_selected_weekday_of_month(day: date, days: frozenset, anchor: date) -> bool:
    if day.weekday() not in days:
        return False
    # No earlier day this month may fall on a selected weekday
    for earlier in range(1, day.day):
        if day.replace(day=earlier).weekday() in days:
            return False
    return True


DAY_RULES: dict[Frequency, DayRule] = {
    Frequency.DAILY: _every_day,
    Frequency.ALTERNATE_DAY: _alternate_day,
    Frequency.WEEKDAYS: _weekdays_only,
    Frequency.WEEKLY: _selected_weekday,
    Frequency.CUSTOM: _selected_weekday,
    Frequency.FORTNIGHTLY: _fortnightly,
    Frequency.MONTHLY: _first_selected_weekday_of_month,
}


def _anchor_date(
    anchor: Optional[Union[date, datetime]], now: datetime, zone: ZoneInfo
) -> date:
    if anchor is None:
        return now.astimezone(zone).date()
    if isinstance(anchor, datetime):
        return ensure_utc(anchor).astimezone(zone).date()
    return anchor


def next_run_at(
    frequency: Union[str, Frequency],
    selected_days: Optional[Iterable[str]],
    generation_time: str,
    timezone: str,
    now: datetime,
    anchor: Optional[Union[date, datetime]] = None,
    tz_strategy: Optional[str] = None,
) -> datetime:
    """
    Compute the next UTC instant a subscription should fire.

    Args:
        frequency: Recurrence frequency
        selected_days: Weekday tokens used by weekly, fortnightly, monthly
            and custom frequencies
        generation_time: Local ``HH:MM`` time
        timezone: IANA timezone name
        now: Reference instant; the result is strictly after it
        anchor: Date fixing alternate-day and fortnightly parity. Defaults to
            the local date of ``now``. Pass a stable value (e.g. the
            subscription's creation time) for repeatable results.
        tz_strategy: ``zoneinfo`` or ``offset_estimate``; defaults to
            ``settings.schedule_tz_strategy``

    Returns:
        Aware UTC datetime

    Raises:
        InvalidScheduleError: If the schedule is invalid
    """
    parsed = validate_schedule(frequency, selected_days, generation_time, timezone)
    hour, minute = parse_generation_time(generation_time)
    zone = resolve_timezone(timezone)
    days = parse_selected_days(selected_days)
    now = ensure_utc(now)

    strategy_name = tz_strategy or settings.schedule_tz_strategy
    to_utc = _TZ_STRATEGIES.get(strategy_name)
    if to_utc is None:
        raise InvalidScheduleError(
            f"Unknown timezone strategy: {strategy_name!r}", field="timezone"
        )

    rule = DAY_RULES[parsed]
    anchor_day = _anchor_date(anchor, now, zone)
    candidate = now.astimezone(zone).date()

    for _ in range(_MAX_SEARCH_DAYS):
        if rule(candidate, days, anchor_day):
            instant = to_utc(candidate, hour, minute, zone)
            if instant > now:
                return instant
        candidate += timedelta(days=1)

    raise InvalidScheduleError(
        f"No run found within {_MAX_SEARCH_DAYS} days for frequency {parsed.value!r}"
    )


def lookback_days(
    frequency: Union[str, Frequency], now: datetime, timezone: str = "UTC"
) -> int:
    """
    Number of days of activity a run covers.

    A weekdays run on a local Monday also covers the weekend.
    """
    parsed = parse_frequency(frequency)
    if parsed == Frequency.WEEKDAYS:
        local_now = ensure_utc(now).astimezone(resolve_timezone(timezone))
        if local_now.weekday() == 0:
            return 3
    return LOOKBACK_DAYS[parsed]


def lookback_start(
    frequency: Union[str, Frequency], now: datetime, timezone: str = "UTC"
) -> datetime:
    """Start of the activity window for a run at ``now``."""
    now = ensure_utc(now)
    return now - timedelta(days=lookback_days(frequency, now, timezone))
