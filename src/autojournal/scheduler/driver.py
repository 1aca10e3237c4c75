"""
Scheduler tick.

A tick selects the subscriptions inside the due window and processes each one
in its own session, so a failure in one subscription cannot roll back the work
of another. The tick holds no state between calls; time comes from the caller
or an injected clock.
"""

import logging
import uuid
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from autojournal.config import settings
from autojournal.db.connection import background_session
from autojournal.db.repositories.subscription import SubscriptionRepository
from autojournal.exceptions import InvalidScheduleError
from autojournal.models.db import JournalSubscription
from autojournal.pipeline.processor import (
    OutcomeStatus,
    ProcessingOutcome,
    SubscriptionProcessor,
)
from autojournal.scheduling.clock import Clock, SystemClock
from autojournal.scheduling.recurrence import ensure_utc
from autojournal.services.subscription_service import compute_next_run
from autojournal.synthesis.narrator import JournalNarrator

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]
ProcessorFactory = Callable[[Session], SubscriptionProcessor]


@dataclass
class TickSummary:
    """Counts for one scheduler tick."""

    ran_at: datetime
    due: int = 0
    entries_created: int = 0
    no_activity: int = 0
    generation_failed: int = 0
    skipped: int = 0
    errors: int = 0
    outcomes: list[ProcessingOutcome] = field(default_factory=list)

    def record(self, outcome: ProcessingOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status == OutcomeStatus.ENTRY_CREATED:
            self.entries_created += 1
        elif outcome.status == OutcomeStatus.NO_ACTIVITY:
            self.no_activity += 1
        elif outcome.status == OutcomeStatus.GENERATION_FAILED:
            self.generation_failed += 1
        else:
            self.skipped += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "ran_at": self.ran_at.isoformat(),
            "due": self.due,
            "entries_created": self.entries_created,
            "no_activity": self.no_activity,
            "generation_failed": self.generation_failed,
            "skipped": self.skipped,
            "errors": self.errors,
        }


def _resolve_now(now: Optional[datetime], clock: Optional[Clock]) -> datetime:
    if now is None:
        now = (clock or SystemClock()).now()
    return ensure_utc(now)


def _still_due(
    subscription: Optional[JournalSubscription], now: datetime, window_minutes: int
) -> bool:
    """Re-check the due window against the freshly loaded row."""
    if subscription is None or not subscription.is_active:
        return False
    if subscription.next_run_at is None:
        return False
    next_run = ensure_utc(subscription.next_run_at)
    return now - timedelta(minutes=window_minutes) < next_run <= now


def _default_processor_factory() -> ProcessorFactory:
    narrator = JournalNarrator.from_settings()

    def factory(session: Session) -> SubscriptionProcessor:
        return SubscriptionProcessor(session, narrator=narrator)

    return factory


def run_scheduler_tick(
    session_factory: SessionFactory = background_session,
    now: Optional[datetime] = None,
    clock: Optional[Clock] = None,
    window_minutes: Optional[int] = None,
    processor_factory: Optional[ProcessorFactory] = None,
) -> TickSummary:
    """
    Process every subscription that is due at ``now``.

    Args:
        session_factory: Context manager factory yielding a committed-on-exit
            session
        now: Tick instant; taken from ``clock`` when omitted
        clock: Time source used when ``now`` is omitted
        window_minutes: Due window size (defaults to settings)
        processor_factory: Builds a processor for a session

    Returns:
        TickSummary for the tick

    Raises:
        Exception: If the due list cannot be loaded
    """
    now = _resolve_now(now, clock)
    if window_minutes is None:
        window_minutes = settings.due_window_minutes
    summary = TickSummary(ran_at=now)

    with session_factory() as session:
        due_ids: list[uuid.UUID] = [
            s.id for s in SubscriptionRepository(session).get_due(now, window_minutes)
        ]
    summary.due = len(due_ids)
    logger.info(f"Scheduler tick at {now.isoformat()}: {len(due_ids)} due")
    if not due_ids:
        return summary

    factory = processor_factory or _default_processor_factory()

    for subscription_id in due_ids:
        try:
            with session_factory() as session:
                subscription = SubscriptionRepository(session).get(subscription_id)
                if not _still_due(subscription, now, window_minutes):
                    logger.info(
                        f"Subscription {subscription_id} is no longer due, skipping"
                    )
                    continue
                outcome = factory(session).process(subscription, now)
            summary.record(outcome)
        except Exception as e:
            summary.errors += 1
            logger.error(
                f"Error processing subscription {subscription_id}: {e}", exc_info=True
            )

    logger.info(
        f"Scheduler tick complete: {summary.entries_created} created, "
        f"{summary.no_activity} without activity, "
        f"{summary.generation_failed} failed, {summary.errors} errors"
    )
    return summary


def reschedule_stale(
    session: Session,
    now: datetime,
    window_minutes: Optional[int] = None,
    dry_run: bool = False,
) -> list[tuple[uuid.UUID, Optional[datetime]]]:
    """
    Move subscriptions that were missed before the due window to their next run.

    Stale subscriptions are not generated for; they are only rescheduled from
    ``now``. A subscription whose stored schedule is invalid is deactivated.

    Args:
        session: Database session
        now: Reference instant
        window_minutes: Due window size (defaults to settings)
        dry_run: Compute the new times without storing them

    Returns:
        (subscription id, new next run or None) pairs
    """
    now = ensure_utc(now)
    if window_minutes is None:
        window_minutes = settings.due_window_minutes

    results: list[tuple[uuid.UUID, Optional[datetime]]] = []
    for subscription in SubscriptionRepository(session).get_stale(now, window_minutes):
        try:
            next_run = compute_next_run(subscription, now)
        except InvalidScheduleError as e:
            logger.error(
                f"Deactivating stale subscription {subscription.id}: {e}"
            )
            next_run = None

        if not dry_run:
            subscription.next_run_at = next_run
            if next_run is None:
                subscription.is_active = False
        results.append((subscription.id, next_run))

    if not dry_run:
        session.flush()
    logger.info(f"Rescheduled {len(results)} stale subscriptions (dry_run={dry_run})")
    return results
