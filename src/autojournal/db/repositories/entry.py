"""Repository for journal entries."""

import uuid
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from autojournal.db.repositories.base import BaseRepository
from autojournal.models.db import JournalEntry


class JournalEntryRepository(BaseRepository[JournalEntry]):
    """Repository for managing journal entries."""

    def __init__(self, session: Session):
        super().__init__(JournalEntry, session)

    def create_draft(
        self,
        author_id: uuid.UUID,
        workspace_id: uuid.UUID,
        title: str,
        description: str,
        full_content: str,
        category: Optional[str],
        tags: List[str],
        format_data: dict[str, Any],
    ) -> JournalEntry:
        return self.create(
            author_id=author_id,
            workspace_id=workspace_id,
            title=title,
            description=description,
            full_content=full_content,
            category=category,
            tags=tags,
            format_data=format_data,
            visibility="private",
            is_published=False,
        )

    def get_by_author(
        self,
        author_id: uuid.UUID,
        workspace_id: Optional[uuid.UUID] = None,
        limit: Optional[int] = None,
    ) -> List[JournalEntry]:
        stmt = select(JournalEntry).where(JournalEntry.author_id == author_id)
        if workspace_id:
            stmt = stmt.where(JournalEntry.workspace_id == workspace_id)
        stmt = stmt.order_by(JournalEntry.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars().all())
