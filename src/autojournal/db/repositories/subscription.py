"""
Journal subscription repository.

Holds the due-window query the scheduler uses to pick subscriptions for a tick.
"""

import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from autojournal.db.repositories.base import BaseRepository
from autojournal.models.db import JournalSubscription

DEFAULT_DUE_WINDOW_MINUTES = 30


class SubscriptionRepository(BaseRepository[JournalSubscription]):
    """Repository for JournalSubscription model."""

    def __init__(self, session: Session):
        super().__init__(JournalSubscription, session)

    def get_for_user_workspace(
        self, user_id: uuid.UUID, workspace_id: uuid.UUID
    ) -> Optional[JournalSubscription]:
        """
        Get the subscription for a (user, workspace) pair.

        Args:
            user_id: User UUID
            workspace_id: Workspace UUID

        Returns:
            JournalSubscription instance or None
        """
        stmt = (
            select(JournalSubscription)
            .options(joinedload(JournalSubscription.workspace))
            .where(
                JournalSubscription.user_id == user_id,
                JournalSubscription.workspace_id == workspace_id,
            )
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_user(self, user_id: uuid.UUID) -> List[JournalSubscription]:
        """Get all subscriptions owned by a user."""
        stmt = (
            select(JournalSubscription)
            .where(JournalSubscription.user_id == user_id)
            .order_by(JournalSubscription.created_at)
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_due(
        self, now: datetime, window_minutes: int = DEFAULT_DUE_WINDOW_MINUTES
    ) -> List[JournalSubscription]:
        """
        Get active subscriptions whose next run falls inside the due window.

        A subscription is due when ``now - window < next_run_at <= now``.
        Subscriptions that became due before the window opened are left for
        administrative replay rather than fired late.

        Args:
            now: Current UTC instant
            window_minutes: Size of the due window

        Returns:
            Due subscriptions with their workspace loaded, oldest first
        """
        window_start = now - timedelta(minutes=window_minutes)
        stmt = (
            select(JournalSubscription)
            .options(joinedload(JournalSubscription.workspace))
            .where(
                JournalSubscription.is_active == True,  # noqa: E712
                JournalSubscription.next_run_at.is_not(None),
                JournalSubscription.next_run_at <= now,
                JournalSubscription.next_run_at > window_start,
            )
            .order_by(JournalSubscription.next_run_at)
        )
        return list(self.session.execute(stmt).scalars().unique().all())

    def get_stale(
        self, now: datetime, window_minutes: int = DEFAULT_DUE_WINDOW_MINUTES
    ) -> List[JournalSubscription]:
        """
        Get active subscriptions that were due before the window opened.

        These were missed (e.g. scheduler downtime) and are not picked up by
        :meth:`get_due`.

        Args:
            now: Current UTC instant
            window_minutes: Size of the due window

        Returns:
            Stale subscriptions, oldest first
        """
        window_start = now - timedelta(minutes=window_minutes)
        stmt = (
            select(JournalSubscription)
            .options(joinedload(JournalSubscription.workspace))
            .where(
                JournalSubscription.is_active == True,  # noqa: E712
                JournalSubscription.next_run_at.is_not(None),
                JournalSubscription.next_run_at <= window_start,
            )
            .order_by(JournalSubscription.next_run_at)
        )
        return list(self.session.execute(stmt).scalars().unique().all())

    def mark_processed(
        self,
        subscription: JournalSubscription,
        ran_at: datetime,
        next_run_at: Optional[datetime],
    ) -> JournalSubscription:
        """
        Stamp a processing pass and store the next due instant.

        Args:
            subscription: Subscription that was processed
            ran_at: UTC instant of the pass
            next_run_at: Next UTC due instant, or None to deactivate

        Returns:
            Updated subscription
        """
        subscription.last_run_at = ran_at
        subscription.next_run_at = next_run_at
        if next_run_at is None:
            subscription.is_active = False
        self.session.flush()
        return subscription
