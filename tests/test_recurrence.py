"""Tests for recurrence calculation."""

from datetime import date, datetime, timedelta, timezone

import pytest

from autojournal.exceptions import InvalidScheduleError
from autojournal.models.db import Frequency
from autojournal.scheduling.recurrence import (
    TZ_STRATEGY_OFFSET_ESTIMATE,
    TZ_STRATEGY_ZONEINFO,
    ensure_utc,
    estimate_utc_for_wall_clock,
    lookback_days,
    lookback_start,
    next_run_at,
    parse_selected_days,
    resolve_timezone,
    validate_schedule,
)

UTC = timezone.utc


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=UTC)


class TestDaily:
    """Daily rule."""

    def test_later_today(self):
        result = next_run_at("daily", [], "08:00", "UTC", now=utc(2024, 1, 10, 7, 0))
        assert result == utc(2024, 1, 10, 8, 0)

    def test_after_generation_time_rolls_to_tomorrow(self):
        result = next_run_at("daily", [], "08:00", "UTC", now=utc(2024, 1, 10, 9, 0))
        assert result == utc(2024, 1, 11, 8, 0)

    def test_exactly_at_generation_time_is_not_returned(self):
        result = next_run_at("daily", [], "08:00", "UTC", now=utc(2024, 1, 10, 8, 0))
        assert result == utc(2024, 1, 11, 8, 0)

    def test_naive_now_is_treated_as_utc(self):
        result = next_run_at(
            "daily", [], "08:00", "UTC", now=datetime(2024, 1, 10, 7, 0)
        )
        assert result == utc(2024, 1, 10, 8, 0)

    def test_result_is_aware_utc(self):
        result = next_run_at("daily", [], "08:00", "UTC", now=utc(2024, 1, 10, 7, 0))
        assert result.tzinfo is not None
        assert result.utcoffset() == timedelta(0)


class TestWeekdays:
    """Weekdays-only rule."""

    def test_friday_evening_moves_to_monday(self):
        # 2024-01-12 is a Friday
        result = next_run_at(
            "weekdays", [], "18:00", "UTC", now=utc(2024, 1, 12, 19, 0)
        )
        assert result == utc(2024, 1, 15, 18, 0)
        assert result.weekday() == 0

    def test_never_fires_on_weekend(self):
        cursor = utc(2024, 1, 1, 0, 0)
        for _ in range(30):
            cursor = next_run_at("weekdays", [], "18:00", "UTC", now=cursor)
            assert cursor.weekday() < 5


class TestSelectedWeekdays:
    """Weekly and custom rules."""

    def test_custom_mon_wed_sequence(self):
        # 2024-01-09 is a Tuesday
        cursor = utc(2024, 1, 9, 12, 0)
        results = []
        for _ in range(3):
            cursor = next_run_at(
                "custom", ["mon", "wed"], "09:00", "UTC", now=cursor
            )
            results.append(cursor)

        assert results == [
            utc(2024, 1, 10, 9, 0),
            utc(2024, 1, 15, 9, 0),
            utc(2024, 1, 17, 9, 0),
        ]

    def test_weekly_same_day_before_time(self):
        result = next_run_at("weekly", ["wed"], "18:00", "UTC", now=utc(2024, 1, 10, 9))
        assert result == utc(2024, 1, 10, 18, 0)

    def test_weekly_same_day_after_time(self):
        result = next_run_at(
            "weekly", ["wed"], "18:00", "UTC", now=utc(2024, 1, 10, 19)
        )
        assert result == utc(2024, 1, 17, 18, 0)

    def test_day_tokens_are_case_insensitive(self):
        result = next_run_at(
            "weekly", ["Friday"], "18:00", "UTC", now=utc(2024, 1, 10, 19)
        )
        assert result == utc(2024, 1, 12, 18, 0)


class TestAlternateDay:
    """Alternate-day rule."""

    def test_parity_follows_anchor(self):
        result = next_run_at(
            "alternate_day",
            [],
            "18:00",
            "UTC",
            now=utc(2024, 1, 10, 19, 0),
            anchor=date(2024, 1, 10),
        )
        assert result == utc(2024, 1, 12, 18, 0)

    def test_other_parity_anchor(self):
        result = next_run_at(
            "alternate_day",
            [],
            "18:00",
            "UTC",
            now=utc(2024, 1, 10, 19, 0),
            anchor=date(2024, 1, 11),
        )
        assert result == utc(2024, 1, 11, 18, 0)

    def test_consecutive_runs_are_two_days_apart(self):
        anchor = utc(2024, 1, 1, 0, 0)
        first = next_run_at(
            "alternate_day", [], "18:00", "UTC", now=anchor, anchor=anchor
        )
        second = next_run_at(
            "alternate_day", [], "18:00", "UTC", now=first, anchor=anchor
        )
        assert second - first == timedelta(days=2)


class TestFortnightly:
    """Fortnightly rule."""

    def test_skips_off_week(self):
        result = next_run_at(
            "fortnightly",
            ["wed"],
            "18:00",
            "UTC",
            now=utc(2024, 1, 10, 19, 0),
            anchor=date(2024, 1, 10),
        )
        assert result == utc(2024, 1, 24, 18, 0)

    def test_same_day_before_time(self):
        result = next_run_at(
            "fortnightly",
            ["wed"],
            "18:00",
            "UTC",
            now=utc(2024, 1, 10, 17, 0),
            anchor=date(2024, 1, 10),
        )
        assert result == utc(2024, 1, 10, 18, 0)

    def test_multiple_days_stay_in_active_week(self):
        anchor = date(2024, 1, 10)
        first = next_run_at(
            "fortnightly", ["mon", "fri"], "18:00", "UTC",
            now=utc(2024, 1, 10, 19, 0), anchor=anchor,
        )
        second = next_run_at(
            "fortnightly", ["mon", "fri"], "18:00", "UTC",
            now=first, anchor=anchor,
        )
        assert first == utc(2024, 1, 12, 18, 0)
        assert second == utc(2024, 1, 22, 18, 0)


class TestMonthly:
    """Monthly rule: first selected weekday of the month."""

    def test_current_month_passed_moves_to_next_month(self):
        # First Monday of January 2024 is the 1st; of February the 5th
        result = next_run_at(
            "monthly", ["mon"], "18:00", "UTC", now=utc(2024, 1, 10, 12, 0)
        )
        assert result == utc(2024, 2, 5, 18, 0)

    def test_current_month_still_ahead(self):
        result = next_run_at(
            "monthly", ["wed"], "18:00", "UTC", now=utc(2024, 1, 1, 10, 0)
        )
        assert result == utc(2024, 1, 3, 18, 0)

    def test_earliest_of_several_selected_days(self):
        # February 2024 starts on a Thursday
        result = next_run_at(
            "monthly", ["wed", "fri"], "18:00", "UTC", now=utc(2024, 1, 20, 0, 0)
        )
        assert result == utc(2024, 2, 2, 18, 0)


class TestTimezones:
    """Local wall-clock to UTC conversion."""

    def test_winter_offset(self):
        result = next_run_at(
            "daily", [], "18:00", "America/New_York", now=utc(2024, 1, 10, 12, 0)
        )
        assert result == utc(2024, 1, 10, 23, 0)

    def test_summer_offset(self):
        result = next_run_at(
            "daily", [], "18:00", "America/New_York", now=utc(2024, 7, 10, 12, 0)
        )
        assert result == utc(2024, 7, 10, 22, 0)

    def test_dst_start_day(self):
        # Clocks go forward at 02:00 local on 2024-03-10
        result = next_run_at(
            "daily", [], "18:00", "America/New_York", now=utc(2024, 3, 10, 12, 0)
        )
        assert result == utc(2024, 3, 10, 22, 0)

    def test_local_date_decides_the_day(self):
        # 2024-01-11 03:00 UTC is still Wednesday evening in New York
        result = next_run_at(
            "weekly", ["wed"], "23:30", "America/New_York", now=utc(2024, 1, 11, 3, 0)
        )
        assert result == utc(2024, 1, 11, 4, 30)

    def test_half_hour_offset(self):
        result = next_run_at(
            "daily", [], "09:00", "Asia/Kolkata", now=utc(2024, 1, 10, 0, 0)
        )
        assert result == utc(2024, 1, 10, 3, 30)

    @pytest.mark.parametrize(
        "tz_name", ["America/New_York", "Asia/Kolkata", "Europe/Berlin", "UTC"]
    )
    def test_offset_estimate_matches_zoneinfo_outside_transitions(self, tz_name):
        now = utc(2024, 1, 10, 0, 0)
        exact = next_run_at(
            "daily", [], "18:00", tz_name, now=now, tz_strategy=TZ_STRATEGY_ZONEINFO
        )
        estimated = next_run_at(
            "daily",
            [],
            "18:00",
            tz_name,
            now=now,
            tz_strategy=TZ_STRATEGY_OFFSET_ESTIMATE,
        )
        assert estimated == exact

    def test_estimate_wraps_delta(self):
        zone = resolve_timezone("America/New_York")
        result = estimate_utc_for_wall_clock(date(2024, 1, 10), 18, 0, zone)
        assert result == utc(2024, 1, 10, 23, 0)

    def test_unknown_strategy(self):
        with pytest.raises(InvalidScheduleError):
            next_run_at(
                "daily", [], "18:00", "UTC", now=utc(2024, 1, 10), tz_strategy="guess"
            )


SCHEDULES = [
    ("daily", []),
    ("alternate_day", []),
    ("weekdays", []),
    ("weekly", ["thu"]),
    ("custom", ["mon", "wed", "sat"]),
    ("fortnightly", ["tue"]),
    ("monthly", ["fri"]),
]


class TestGuarantees:
    """Strictly-after and idempotence for every frequency."""

    @pytest.mark.parametrize("frequency,days", SCHEDULES)
    @pytest.mark.parametrize("tz_name", ["UTC", "America/Los_Angeles", "Asia/Tokyo"])
    def test_strictly_after_now(self, frequency, days, tz_name):
        anchor = date(2024, 1, 3)
        start = utc(2024, 3, 1, 0, 0)
        for hours in range(0, 24 * 20, 7):
            now = start + timedelta(hours=hours)
            result = next_run_at(
                frequency, days, "08:30", tz_name, now=now, anchor=anchor
            )
            assert result > now

    @pytest.mark.parametrize("frequency,days", SCHEDULES)
    def test_idempotent_before_result(self, frequency, days):
        anchor = date(2024, 1, 3)
        now = utc(2024, 5, 14, 10, 17)
        result = next_run_at(
            frequency, days, "18:00", "Europe/Berlin", now=now, anchor=anchor
        )

        for later in (now, now + (result - now) / 2, result - timedelta(seconds=1)):
            again = next_run_at(
                frequency, days, "18:00", "Europe/Berlin", now=later, anchor=anchor
            )
            assert again == result


class TestValidation:
    """Schedule validation."""

    def test_valid_schedule_returns_frequency(self):
        assert validate_schedule("weekly", ["mon"], "18:00", "UTC") == Frequency.WEEKLY

    @pytest.mark.parametrize(
        "frequency,days,time,tz,field",
        [
            ("hourly", [], "18:00", "UTC", "frequency"),
            ("daily", [], "25:00", "UTC", "generation_time"),
            ("daily", [], "8:00", "UTC", "generation_time"),
            ("daily", [], "18:00", "Mars/Olympus_Mons", "timezone"),
            ("weekly", ["funday"], "18:00", "UTC", "selected_days"),
            ("weekly", [], "18:00", "UTC", "selected_days"),
            ("monthly", None, "18:00", "UTC", "selected_days"),
        ],
    )
    def test_invalid_schedules(self, frequency, days, time, tz, field):
        with pytest.raises(InvalidScheduleError) as exc_info:
            validate_schedule(frequency, days, time, tz)
        assert exc_info.value.field == field

    def test_calculator_rejects_empty_day_set(self):
        with pytest.raises(InvalidScheduleError):
            next_run_at("custom", [], "18:00", "UTC", now=utc(2024, 1, 10))

    def test_parse_selected_days(self):
        assert parse_selected_days(["Mon", "wednesday", "mon"]) == frozenset({0, 2})
        assert parse_selected_days(None) == frozenset()


class TestLookback:
    """Activity window per frequency."""

    @pytest.mark.parametrize(
        "frequency,expected",
        [
            ("daily", 1),
            ("alternate_day", 2),
            ("weekly", 7),
            ("custom", 7),
            ("fortnightly", 14),
            ("monthly", 31),
        ],
    )
    def test_lookback_days(self, frequency, expected):
        assert lookback_days(frequency, utc(2024, 1, 10, 18)) == expected

    def test_weekdays_on_monday_covers_weekend(self):
        assert lookback_days("weekdays", utc(2024, 1, 15, 18)) == 3
        assert lookback_days("weekdays", utc(2024, 1, 16, 18)) == 1

    def test_weekdays_monday_is_the_local_monday(self):
        # Monday evening in Los Angeles is already Tuesday in UTC
        monday_evening = utc(2024, 1, 16, 2)

        assert lookback_days("weekdays", monday_evening, "America/Los_Angeles") == 3
        assert lookback_days("weekdays", monday_evening) == 1
        assert lookback_start(
            "weekdays", monday_evening, "America/Los_Angeles"
        ) == utc(2024, 1, 13, 2)

    def test_unknown_timezone_rejected(self):
        with pytest.raises(InvalidScheduleError):
            lookback_days("weekdays", utc(2024, 1, 16, 2), "Mars/Olympus")

    def test_lookback_start(self):
        now = utc(2024, 1, 10, 18, 0)
        assert lookback_start("weekly", now) == utc(2024, 1, 3, 18, 0)


def test_ensure_utc_converts_aware_values():
    value = datetime(2024, 1, 10, 13, 0, tzinfo=resolve_timezone("America/New_York"))
    assert ensure_utc(value) == utc(2024, 1, 10, 18, 0)
    assert ensure_utc(value).tzinfo == UTC
