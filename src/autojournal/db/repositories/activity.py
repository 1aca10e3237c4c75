"""Repository for tool activity records."""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from autojournal.db.repositories.base import BaseRepository
from autojournal.models.db import ToolActivity


class ActivityRepository(BaseRepository[ToolActivity]):
    """Read access to activity recorded by the ingestion services."""

    def __init__(self, session: Session):
        super().__init__(ToolActivity, session)

    def get_since(
        self,
        user_id: uuid.UUID,
        source: str,
        since: datetime,
        limit: Optional[int] = None,
    ) -> List[ToolActivity]:
        stmt = (
            select(ToolActivity)
            .where(
                ToolActivity.user_id == user_id,
                ToolActivity.source == source,
                ToolActivity.timestamp >= since,
            )
            .order_by(ToolActivity.timestamp.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars().all())
