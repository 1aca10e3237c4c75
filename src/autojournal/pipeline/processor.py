"""
Subscription processor.

Runs one due subscription through activity retrieval, grouping, signal
extraction and content synthesis, persists a draft entry, notifies the user
and reschedules the subscription. Failures are contained: a broken tool fetch
degrades to "no data" for that tool, and a synthesis or persistence failure
becomes a "generation failed" notification. Every pass reschedules.
"""

import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from sqlalchemy.orm import Session

from autojournal.config import settings
from autojournal.db.repositories.activity import ActivityRepository
from autojournal.db.repositories.entry import JournalEntryRepository
from autojournal.db.repositories.subscription import SubscriptionRepository
from autojournal.db.repositories.tool_connection import ToolConnectionRepository
from autojournal.exceptions import ActivityFetchError, InvalidScheduleError
from autojournal.grouping.clustering import cluster_by_shared_refs
from autojournal.grouping.engine import ClusterFn, group_activities
from autojournal.models.activity import (
    ActivityRecord,
    ToolActivityData,
    flatten_activities,
)
from autojournal.models.db import JournalEntry, JournalSubscription
from autojournal.pipeline.notifications import JournalNotifier
from autojournal.scheduling.recurrence import ensure_utc, lookback_start
from autojournal.services.subscription_service import compute_next_run
from autojournal.signals.extractor import extract_signals
from autojournal.synthesis.narrator import JournalNarrator
from autojournal.synthesis.synthesizer import SynthesizedEntry, synthesize_entry

logger = logging.getLogger(__name__)

# (user_id, tool_type, since) -> activities, newest first
ActivityFetcher = Callable[[uuid.UUID, str, datetime], list[ActivityRecord]]


class OutcomeStatus(str, enum.Enum):
    """Terminal state of one processing pass."""

    ENTRY_CREATED = "entry_created"
    NO_ACTIVITY = "no_activity"
    GENERATION_FAILED = "generation_failed"
    SKIPPED_INACTIVE_WORKSPACE = "skipped_inactive_workspace"


@dataclass
class ProcessingOutcome:
    """Result of processing one subscription."""

    subscription_id: uuid.UUID
    status: OutcomeStatus
    entry_id: Optional[uuid.UUID] = None
    missing_tools: list[str] = field(default_factory=list)
    next_run_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def entry_created(self) -> bool:
        return self.status == OutcomeStatus.ENTRY_CREATED


class SubscriptionProcessor:
    """Processes due subscriptions within one session."""

    def __init__(
        self,
        session: Session,
        narrator: Optional[JournalNarrator] = None,
        cluster_fn: ClusterFn = cluster_by_shared_refs,
        fetch_activities: Optional[ActivityFetcher] = None,
        bypass_activity_check: Optional[bool] = None,
        auto_generated_tag: Optional[str] = None,
    ):
        """
        Initialize the processor.

        Args:
            session: Database session; the caller owns commit and rollback
            narrator: Optional AI narrator for draft prose
            cluster_fn: Clustering primitive for cluster grouping
            fetch_activities: Activity source; defaults to the activity table
            bypass_activity_check: Generate even without activity
                (defaults to ``settings.journal_bypass_activity_check``)
            auto_generated_tag: Marker tag added to every generated entry
        """
        self.session = session
        self.narrator = narrator
        self.cluster_fn = cluster_fn
        self.activities = ActivityRepository(session)
        self.entries = JournalEntryRepository(session)
        self.subscriptions = SubscriptionRepository(session)
        self.tool_connections = ToolConnectionRepository(session)
        self.notifier = JournalNotifier(session)
        self._fetch = fetch_activities or self._fetch_from_store
        self.bypass_activity_check = (
            settings.journal_bypass_activity_check
            if bypass_activity_check is None
            else bypass_activity_check
        )
        self.auto_generated_tag = auto_generated_tag or settings.auto_generated_tag

    def process(
        self, subscription: JournalSubscription, now: datetime
    ) -> ProcessingOutcome:
        """
        Process one subscription and reschedule it.

        Never raises for generation problems; store errors while rescheduling
        propagate to the caller.

        Args:
            subscription: Due subscription with its workspace loaded
            now: Current UTC instant

        Returns:
            ProcessingOutcome describing what happened
        """
        now = ensure_utc(now)
        workspace = subscription.workspace
        logger.info(
            f"Processing subscription {subscription.id} for user "
            f"{subscription.user_id} in workspace {subscription.workspace_id}"
        )

        if workspace is None or not workspace.is_active:
            logger.info(f"Skipping subscription {subscription.id}: workspace inactive")
            outcome = ProcessingOutcome(
                subscription_id=subscription.id,
                status=OutcomeStatus.SKIPPED_INACTIVE_WORKSPACE,
            )
        else:
            outcome = self._run(subscription, workspace.name, now)

        outcome.next_run_at = self._reschedule(subscription, now)
        return outcome

    def fetch_tool_activity_data(
        self,
        user_id: uuid.UUID,
        selected_tools: Sequence[str],
        since: datetime,
    ) -> tuple[list[ToolActivityData], list[str]]:
        """
        Fetch activity for each selected tool.

        Tools without an active connection are reported as missing. A failed
        fetch yields an empty activity list for that tool.

        Returns:
            (activity data for connected tools, missing tool types)
        """
        tools = list(dict.fromkeys(selected_tools or []))
        connected = self.tool_connections.get_connected_tool_types(user_id, tools)

        activity_data: list[ToolActivityData] = []
        missing: list[str] = []
        for tool_type in tools:
            if tool_type not in connected:
                missing.append(tool_type)
                continue
            try:
                activities = self._fetch(user_id, tool_type, since)
            except Exception as e:
                error = ActivityFetchError(tool_type, e)
                logger.warning(f"{error} (user {user_id})")
                activities = []
            activity_data.append(ToolActivityData(tool_type, list(activities)))

        return activity_data, missing

    def _fetch_from_store(
        self, user_id: uuid.UUID, tool_type: str, since: datetime
    ) -> list[ActivityRecord]:
        with self.session.begin_nested():
            rows = self.activities.get_since(user_id, tool_type, since)
            return [ActivityRecord.from_model(row) for row in rows]

    def _lookback_start(
        self, subscription: JournalSubscription, now: datetime
    ) -> datetime:
        try:
            return lookback_start(
                subscription.frequency, now, subscription.timezone or "UTC"
            )
        except InvalidScheduleError:
            logger.warning(
                f"Subscription {subscription.id} has an invalid schedule "
                f"({subscription.frequency!r}, {subscription.timezone!r}); "
                "looking back one day"
            )
            return now - timedelta(days=1)

    def _run(
        self,
        subscription: JournalSubscription,
        workspace_name: Optional[str],
        now: datetime,
    ) -> ProcessingOutcome:
        since = self._lookback_start(subscription, now)
        activity_data, missing = self.fetch_tool_activity_data(
            subscription.user_id, subscription.selected_tools or [], since
        )

        if not any(tool.has_data for tool in activity_data):
            if not self.bypass_activity_check:
                logger.info(f"No activity found for subscription {subscription.id}")
                self.notifier.no_activity(
                    subscription.user_id, subscription.workspace_id, workspace_name
                )
                return ProcessingOutcome(
                    subscription_id=subscription.id,
                    status=OutcomeStatus.NO_ACTIVITY,
                    missing_tools=missing,
                )
            logger.info(
                f"Bypassing activity check for subscription {subscription.id}"
            )

        try:
            synthesized = self._synthesize(subscription, activity_data, since, now)
            # Savepoint covers the insert only
            with self.session.begin_nested():
                entry = self._persist_entry(subscription, synthesized)
        except Exception as e:
            logger.error(
                f"Error generating journal entry for subscription "
                f"{subscription.id}: {e}",
                exc_info=True,
            )
            self.notifier.generation_failed(
                subscription.user_id, subscription.workspace_id, workspace_name
            )
            return ProcessingOutcome(
                subscription_id=subscription.id,
                status=OutcomeStatus.GENERATION_FAILED,
                missing_tools=missing,
                error=str(e),
            )

        logger.info(
            f"Created draft journal entry {entry.id} for subscription {subscription.id}"
        )
        self.notifier.entry_ready(
            subscription.user_id, subscription.workspace_id, workspace_name, entry.id
        )
        if missing:
            self.notifier.tools_missing(
                subscription.user_id, subscription.workspace_id, workspace_name, missing
            )

        return ProcessingOutcome(
            subscription_id=subscription.id,
            status=OutcomeStatus.ENTRY_CREATED,
            entry_id=entry.id,
            missing_tools=missing,
        )

    def _synthesize(
        self,
        subscription: JournalSubscription,
        activity_data: list[ToolActivityData],
        since: datetime,
        now: datetime,
    ) -> SynthesizedEntry:
        grouping = None
        if subscription.grouping_method:
            grouping = group_activities(
                flatten_activities(activity_data),
                subscription.grouping_method,
                self.cluster_fn,
            )

        signals = extract_signals(activity_data)
        synthesized = synthesize_entry(
            activity_data,
            framework=subscription.preferred_framework,
            grouping=grouping,
            custom_prompt=subscription.custom_prompt,
            workspace_id=str(subscription.workspace_id),
            signals=signals,
            now=now,
            period_start=since,
            timezone=subscription.timezone,
        )
        if self.narrator is not None:
            synthesized = self.narrator.enhance(synthesized, signals, activity_data)
        return synthesized

    def _persist_entry(
        self, subscription: JournalSubscription, synthesized: SynthesizedEntry
    ) -> JournalEntry:
        tags = list(
            dict.fromkeys([*(subscription.default_tags or []), self.auto_generated_tag])
        )
        return self.entries.create_draft(
            author_id=subscription.user_id,
            workspace_id=subscription.workspace_id,
            title=synthesized.title,
            description=synthesized.description,
            full_content=synthesized.full_content,
            category=subscription.default_category or synthesized.category,
            tags=tags,
            format_data=synthesized.format_data,
        )

    def _reschedule(
        self, subscription: JournalSubscription, now: datetime
    ) -> Optional[datetime]:
        try:
            next_run = compute_next_run(subscription, now)
        except InvalidScheduleError as e:
            logger.error(
                f"Deactivating subscription {subscription.id}: invalid schedule: {e}"
            )
            next_run = None

        self.subscriptions.mark_processed(subscription, now, next_run)
        return next_run
