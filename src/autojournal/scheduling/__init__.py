"""Recurrence rules and time sources for journal subscriptions."""

from .clock import Clock, FixedClock, SystemClock
from .recurrence import (
    ensure_utc,
    lookback_start,
    next_run_at,
    validate_schedule,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "ensure_utc",
    "lookback_start",
    "next_run_at",
    "validate_schedule",
]
