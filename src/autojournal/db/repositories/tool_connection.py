"""Repository for a user's external tool connections."""

import uuid
from typing import Iterable, List, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from autojournal.db.repositories.base import BaseRepository
from autojournal.models.db import ToolConnection


class ToolConnectionRepository(BaseRepository[ToolConnection]):
    """Repository for ToolConnection model."""

    def __init__(self, session: Session):
        super().__init__(ToolConnection, session)

    def get_by_user(self, user_id: uuid.UUID) -> List[ToolConnection]:
        """
        Get every connection record for a user, active or not.

        Args:
            user_id: User UUID

        Returns:
            List of connections ordered by tool type
        """
        stmt = (
            select(ToolConnection)
            .where(ToolConnection.user_id == user_id)
            .order_by(ToolConnection.tool_type)
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_connected_tool_types(
        self, user_id: uuid.UUID, tool_types: Iterable[str]
    ) -> Set[str]:
        """
        Get which of the given tools the user has actively connected.

        Args:
            user_id: User UUID
            tool_types: Tool identifiers to check

        Returns:
            Set of connected tool identifiers
        """
        tool_types = list(tool_types)
        if not tool_types:
            return set()
        stmt = select(ToolConnection.tool_type).where(
            ToolConnection.user_id == user_id,
            ToolConnection.tool_type.in_(tool_types),
            ToolConnection.is_active == True,  # noqa: E712
        )
        return set(self.session.execute(stmt).scalars().all())
