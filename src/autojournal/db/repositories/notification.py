"""Repository for user notifications."""

import uuid
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from autojournal.db.repositories.base import BaseRepository
from autojournal.models.db import Notification


class NotificationRepository(BaseRepository[Notification]):
    """Repository for managing notifications."""

    def __init__(self, session: Session):
        super().__init__(Notification, session)

    def create_system(
        self,
        recipient_id: uuid.UUID,
        title: str,
        message: str,
        related_entity_type: Optional[str],
        related_entity_id: Optional[uuid.UUID],
        data: dict[str, Any],
    ) -> Notification:
        return self.create(
            recipient_id=recipient_id,
            type="SYSTEM",
            title=title,
            message=message,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
            data=data,
        )

    def get_for_recipient(
        self,
        recipient_id: uuid.UUID,
        subtype: Optional[str] = None,
        unread_only: bool = False,
    ) -> List[Notification]:
        stmt = select(Notification).where(Notification.recipient_id == recipient_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read == False)  # noqa: E712
        stmt = stmt.order_by(Notification.created_at)
        notifications = list(self.session.execute(stmt).scalars().all())
        if subtype:
            # Subtype lives inside the JSON payload; filter in Python for portability
            notifications = [
                n for n in notifications if (n.data or {}).get("subtype") == subtype
            ]
        return notifications
