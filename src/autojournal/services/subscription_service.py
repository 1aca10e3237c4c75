"""
Journal subscription management.

Creates, updates, toggles and deletes a user's recurring journal subscription
for a workspace. Recurrence settings are validated here so that malformed
schedules are rejected when they are saved rather than discovered by the
scheduler.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from autojournal.db.repositories.subscription import SubscriptionRepository
from autojournal.db.repositories.tool_connection import ToolConnectionRepository
from autojournal.db.repositories.workspace import WorkspaceRepository
from autojournal.exceptions import (
    SubscriptionExistsError,
    SubscriptionNotFoundError,
    WorkspaceAccessError,
)
from autojournal.grouping.engine import validate_grouping_method
from autojournal.models.db import Frequency, JournalSubscription
from autojournal.scheduling.recurrence import (
    WEEKDAY_TOKENS,
    next_run_at,
    parse_selected_days,
    validate_schedule,
)

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = ("frequency", "selected_days", "generation_time", "timezone")
UPDATABLE_FIELDS = SCHEDULE_FIELDS + (
    "is_active",
    "selected_tools",
    "custom_prompt",
    "default_category",
    "default_tags",
    "preferred_framework",
    "grouping_method",
)


def _utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


def _normalize_days(selected_days: Optional[Iterable[str]]) -> list[str]:
    # Canonical tokens in weekday order
    return [WEEKDAY_TOKENS[i] for i in sorted(parse_selected_days(selected_days))]


def _normalize_grouping(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return validate_grouping_method(value).value


def compute_next_run(
    subscription: JournalSubscription, now: datetime
) -> datetime:
    """
    Next due instant for a subscription's stored schedule.

    Parity-based frequencies are anchored to the subscription's creation time,
    so repeated calls agree regardless of when they run.

    Raises:
        InvalidScheduleError: If the stored schedule is invalid
    """
    return next_run_at(
        frequency=subscription.frequency,
        selected_days=subscription.selected_days,
        generation_time=subscription.generation_time,
        timezone=subscription.timezone,
        now=now,
        anchor=subscription.created_at or now,
    )


class SubscriptionService:
    """Store-backed operations on journal subscriptions."""

    def __init__(self, session: Session):
        self.session = session
        self.subscriptions = SubscriptionRepository(session)
        self.workspaces = WorkspaceRepository(session)
        self.tool_connections = ToolConnectionRepository(session)

    def _require_membership(self, user_id: uuid.UUID, workspace_id: uuid.UUID) -> None:
        if not self.workspaces.is_active_member(user_id, workspace_id):
            raise WorkspaceAccessError(user_id, workspace_id)

    def _require_subscription(
        self, user_id: uuid.UUID, workspace_id: uuid.UUID
    ) -> JournalSubscription:
        subscription = self.subscriptions.get_for_user_workspace(user_id, workspace_id)
        if subscription is None:
            raise SubscriptionNotFoundError(
                f"No subscription for user {user_id} in workspace {workspace_id}"
            )
        return subscription

    def get_subscription(
        self, user_id: uuid.UUID, workspace_id: uuid.UUID
    ) -> Optional[JournalSubscription]:
        """
        Get a user's subscription for a workspace.

        Raises:
            WorkspaceAccessError: If the user is not an active member
        """
        self._require_membership(user_id, workspace_id)
        return self.subscriptions.get_for_user_workspace(user_id, workspace_id)

    def create_subscription(
        self,
        user_id: uuid.UUID,
        workspace_id: uuid.UUID,
        frequency: str = Frequency.DAILY.value,
        selected_days: Optional[list[str]] = None,
        generation_time: str = "18:00",
        timezone: str = "UTC",
        selected_tools: Optional[list[str]] = None,
        custom_prompt: Optional[str] = None,
        default_category: Optional[str] = None,
        default_tags: Optional[list[str]] = None,
        preferred_framework: Optional[str] = None,
        grouping_method: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> JournalSubscription:
        """
        Create an active subscription and compute its first run.

        Args:
            user_id: Owning user
            workspace_id: Target workspace
            frequency: Recurrence frequency
            selected_days: Weekday tokens for day-selecting frequencies
            generation_time: Local ``HH:MM`` time
            timezone: IANA timezone name
            selected_tools: Tool types to pull activity from
            custom_prompt: Focus note added to generated entries
            default_category: Category for generated entries
            default_tags: Tags for generated entries
            preferred_framework: Framework key used to scaffold entries
            grouping_method: ``temporal`` or ``cluster``
            now: Creation instant (defaults to current UTC time)

        Returns:
            The new subscription

        Raises:
            WorkspaceAccessError: If the user is not an active member
            SubscriptionExistsError: If the user already has one for the workspace
            InvalidScheduleError: If the recurrence settings are invalid
        """
        self._require_membership(user_id, workspace_id)

        if self.subscriptions.get_for_user_workspace(user_id, workspace_id):
            raise SubscriptionExistsError(user_id, workspace_id)

        parsed = validate_schedule(frequency, selected_days, generation_time, timezone)
        now = now or _utc_now()
        days = _normalize_days(selected_days)

        subscription = self.subscriptions.create(
            user_id=user_id,
            workspace_id=workspace_id,
            is_active=True,
            frequency=parsed.value,
            selected_days=days,
            generation_time=generation_time,
            timezone=timezone,
            selected_tools=list(selected_tools or []),
            custom_prompt=custom_prompt,
            default_category=default_category,
            default_tags=list(default_tags or []),
            preferred_framework=preferred_framework or None,
            grouping_method=_normalize_grouping(grouping_method),
            created_at=now,
            next_run_at=next_run_at(
                parsed, days, generation_time, timezone, now=now, anchor=now
            ),
        )

        logger.info(
            f"Created journal subscription for user {user_id} in workspace "
            f"{workspace_id} ({parsed.value}, next run {subscription.next_run_at})"
        )
        return subscription

    def update_subscription(
        self,
        user_id: uuid.UUID,
        workspace_id: uuid.UUID,
        now: Optional[datetime] = None,
        **changes: Any,
    ) -> JournalSubscription:
        """
        Update a subscription and recompute its next run.

        Args:
            user_id: Owning user
            workspace_id: Target workspace
            now: Reference instant for the recomputed run
            **changes: Fields from ``UPDATABLE_FIELDS``

        Returns:
            The updated subscription

        Raises:
            SubscriptionNotFoundError: If no subscription exists
            InvalidScheduleError: If the resulting schedule is invalid
            ValueError: If an unknown field is given
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown subscription fields: {sorted(unknown)}")

        subscription = self._require_subscription(user_id, workspace_id)

        schedule = {
            f: changes.get(f, getattr(subscription, f)) for f in SCHEDULE_FIELDS
        }
        parsed = validate_schedule(**schedule)
        changes["frequency"] = parsed.value
        changes["selected_days"] = _normalize_days(schedule["selected_days"])
        if "grouping_method" in changes:
            changes["grouping_method"] = _normalize_grouping(changes["grouping_method"])
        if "preferred_framework" in changes:
            changes["preferred_framework"] = changes["preferred_framework"] or None

        for key, value in changes.items():
            setattr(subscription, key, value)

        if subscription.is_active:
            subscription.next_run_at = compute_next_run(subscription, now or _utc_now())
        else:
            subscription.next_run_at = None

        self.session.flush()
        logger.info(
            f"Updated journal subscription for user {user_id} in workspace "
            f"{workspace_id} (next run {subscription.next_run_at})"
        )
        return subscription

    def toggle_subscription(
        self,
        user_id: uuid.UUID,
        workspace_id: uuid.UUID,
        is_active: bool,
        now: Optional[datetime] = None,
    ) -> JournalSubscription:
        """
        Activate or pause a subscription.

        Activating recomputes the next run from ``now``; pausing clears it.

        Raises:
            SubscriptionNotFoundError: If no subscription exists
            InvalidScheduleError: If activating a subscription whose stored
                schedule is invalid
        """
        subscription = self._require_subscription(user_id, workspace_id)

        if is_active:
            subscription.next_run_at = compute_next_run(subscription, now or _utc_now())
        else:
            subscription.next_run_at = None
        subscription.is_active = is_active

        self.session.flush()
        state = "active" if is_active else "inactive"
        logger.info(
            f"Toggled journal subscription ({state}) for user {user_id} "
            f"in workspace {workspace_id}"
        )
        return subscription

    def delete_subscription(self, user_id: uuid.UUID, workspace_id: uuid.UUID) -> None:
        """
        Delete a subscription.

        Raises:
            SubscriptionNotFoundError: If no subscription exists
        """
        subscription = self._require_subscription(user_id, workspace_id)
        self.session.delete(subscription)
        self.session.flush()
        logger.info(
            f"Deleted journal subscription for user {user_id} "
            f"in workspace {workspace_id}"
        )

    def get_connected_tools(self, user_id: uuid.UUID) -> list[dict[str, Any]]:
        """List the user's tool connections."""
        return [
            {
                "tool_type": c.tool_type,
                "is_connected": c.is_active,
                "connected_at": c.connected_at.isoformat() if c.connected_at else None,
                "last_used_at": c.last_used_at.isoformat() if c.last_used_at else None,
            }
            for c in self.tool_connections.get_by_user(user_id)
        ]
