"""
User notifications for auto-generated journal entries.

Notification failures are logged and never interrupt processing.
"""

import logging
import uuid
from typing import Any, Optional, Sequence

from sqlalchemy.orm import Session

from autojournal.db.repositories.notification import NotificationRepository
from autojournal.models.db import Notification, NotificationSubtype

logger = logging.getLogger(__name__)

ENTITY_JOURNAL_ENTRY = "JOURNAL_ENTRY"
ENTITY_WORKSPACE = "WORKSPACE"
DEFAULT_WORKSPACE_NAME = "your workspace"


class JournalNotifier:
    """Emits the notifications a subscription run can produce."""

    def __init__(self, session: Session):
        self.session = session
        self.repo = NotificationRepository(session)

    def _emit(
        self,
        recipient_id: uuid.UUID,
        subtype: NotificationSubtype,
        title: str,
        message: str,
        related_entity_type: str,
        related_entity_id: Optional[uuid.UUID],
        data: dict[str, Any],
    ) -> Optional[Notification]:
        try:
            # Savepoint so a failed insert leaves the caller's transaction usable
            with self.session.begin_nested():
                return self.repo.create_system(
                    recipient_id=recipient_id,
                    title=title,
                    message=message,
                    related_entity_type=related_entity_type,
                    related_entity_id=related_entity_id,
                    data={"subtype": subtype.value, **data},
                )
        except Exception as e:
            logger.error(
                f"Error sending {subtype.value} notification to {recipient_id}: {e}",
                exc_info=True,
            )
            return None

    def entry_ready(
        self,
        user_id: uuid.UUID,
        workspace_id: uuid.UUID,
        workspace_name: Optional[str],
        entry_id: uuid.UUID,
    ) -> Optional[Notification]:
        return self._emit(
            user_id,
            NotificationSubtype.ENTRY_READY,
            title=f"Journal entry ready for {workspace_name or DEFAULT_WORKSPACE_NAME}",
            message="Your auto-generated journal entry is ready for review",
            related_entity_type=ENTITY_JOURNAL_ENTRY,
            related_entity_id=entry_id,
            data={"workspace_id": str(workspace_id), "entry_id": str(entry_id)},
        )

    def no_activity(
        self,
        user_id: uuid.UUID,
        workspace_id: uuid.UUID,
        workspace_name: Optional[str],
    ) -> Optional[Notification]:
        return self._emit(
            user_id,
            NotificationSubtype.NO_ACTIVITY,
            title=f"No activity found for {workspace_name or DEFAULT_WORKSPACE_NAME}",
            message=(
                "No activity was found from your connected tools. "
                "Want to add an entry manually?"
            ),
            related_entity_type=ENTITY_WORKSPACE,
            related_entity_id=workspace_id,
            data={"workspace_id": str(workspace_id)},
        )

    def tools_missing(
        self,
        user_id: uuid.UUID,
        workspace_id: uuid.UUID,
        workspace_name: Optional[str],
        missing_tools: Sequence[str],
    ) -> Optional[Notification]:
        return self._emit(
            user_id,
            NotificationSubtype.TOOLS_MISSING,
            title=f"Missing tools for {workspace_name or DEFAULT_WORKSPACE_NAME}",
            message=(
                f"Your journal entry was generated without {', '.join(missing_tools)}. "
                "Connect them for complete entries."
            ),
            related_entity_type=ENTITY_WORKSPACE,
            related_entity_id=workspace_id,
            data={
                "workspace_id": str(workspace_id),
                "missing_tools": list(missing_tools),
            },
        )

    def generation_failed(
        self,
        user_id: uuid.UUID,
        workspace_id: uuid.UUID,
        workspace_name: Optional[str],
    ) -> Optional[Notification]:
        return self._emit(
            user_id,
            NotificationSubtype.GENERATION_FAILED,
            title=(
                "Journal generation failed for "
                f"{workspace_name or DEFAULT_WORKSPACE_NAME}"
            ),
            message=(
                "There was an issue generating your journal entry. "
                "Please try again later or create one manually."
            ),
            related_entity_type=ENTITY_WORKSPACE,
            related_entity_id=workspace_id,
            data={"workspace_id": str(workspace_id)},
        )
