"""
Background scheduler for recurring journal generation.

Runs a scheduler tick on a fixed interval until stopped. One instance should
be active per deployment; it is created by the caller rather than held as a
module-level singleton.
"""

import logging
import threading
from typing import Callable, Optional

from sqlalchemy.exc import OperationalError

from autojournal.config import settings
from autojournal.db.connection import background_session
from autojournal.scheduler.driver import (
    SessionFactory,
    TickSummary,
    run_scheduler_tick,
)
from autojournal.scheduling.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

TickFn = Callable[..., TickSummary]


class JournalScheduler:
    """
    Interval loop around :func:`run_scheduler_tick`.

    Features:
    - Sequential ticks, one subscription at a time
    - Graceful shutdown via a stop event
    - Backoff when the database is unavailable
    """

    def __init__(
        self,
        interval_minutes: Optional[float] = None,
        clock: Optional[Clock] = None,
        session_factory: SessionFactory = background_session,
        tick: TickFn = run_scheduler_tick,
        db_backoff_seconds: float = 5.0,
    ):
        """
        Initialize the scheduler.

        Args:
            interval_minutes: Minutes between ticks (defaults to settings)
            clock: Time source for each tick
            session_factory: Session factory passed to each tick
            tick: Tick function
            db_backoff_seconds: Wait after a database connection error
        """
        if interval_minutes is None:
            interval_minutes = settings.scheduler_interval_minutes
        self.interval_seconds = interval_minutes * 60
        self.clock = clock or SystemClock()
        self.session_factory = session_factory
        self._tick = tick
        self.db_backoff_seconds = db_backoff_seconds
        self._running = False
        self._stop_event = threading.Event()
        self._ticks = 0
        self._entries_created = 0
        self._tick_failures = 0

    def tick_once(self) -> TickSummary:
        """Run a single tick and fold its results into the worker stats."""
        summary = self._tick(session_factory=self.session_factory, clock=self.clock)
        self._ticks += 1
        self._entries_created += summary.entries_created
        return summary

    def run(self) -> None:
        """
        Main scheduler loop.

        Ticks immediately, then once per interval until stopped.
        """
        logger.info(
            f"Journal scheduler starting (interval {self.interval_seconds:.0f}s)"
        )
        self._running = True

        while not self._stop_event.is_set():
            try:
                self.tick_once()
            except OperationalError as e:
                self._tick_failures += 1
                logger.warning(f"Journal scheduler DB unavailable: {e}")
                self._stop_event.wait(self.db_backoff_seconds)
                continue
            except Exception as e:
                self._tick_failures += 1
                logger.error(f"Error in journal scheduler tick: {e}", exc_info=True)

            self._stop_event.wait(self.interval_seconds)

        logger.info(
            f"Journal scheduler stopped. "
            f"Ticks: {self._ticks}, "
            f"Entries created: {self._entries_created}, "
            f"Failed ticks: {self._tick_failures}"
        )
        self._running = False

    def stop(self) -> None:
        """Signal the scheduler to stop gracefully."""
        logger.info("Journal scheduler stop requested")
        self._stop_event.set()

    @property
    def is_running(self) -> bool:
        """Check if the scheduler loop is currently running."""
        return self._running

    @property
    def stats(self) -> dict[str, int]:
        return {
            "ticks": self._ticks,
            "entries_created": self._entries_created,
            "tick_failures": self._tick_failures,
        }

    def start_in_thread(self) -> threading.Thread:
        """Run the loop in a daemon thread and return the thread."""
        thread = threading.Thread(
            target=self.run,
            daemon=True,
            name="journal-scheduler",
        )
        thread.start()
        logger.info("Journal scheduler thread started")
        return thread
