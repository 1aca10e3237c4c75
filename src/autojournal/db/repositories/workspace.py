"""
Workspace repository.
"""

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from autojournal.db.repositories.base import BaseRepository
from autojournal.models.db import Workspace, WorkspaceMember


class WorkspaceRepository(BaseRepository[Workspace]):
    """Repository for Workspace model."""

    def __init__(self, session: Session):
        super().__init__(Workspace, session)

    def get_by_slug(self, slug: str) -> Optional[Workspace]:
        """
        Get workspace by slug.

        Args:
            slug: Workspace slug (URL-friendly identifier)

        Returns:
            Workspace instance or None
        """
        return self.session.query(Workspace).filter(Workspace.slug == slug).first()

    def get_membership(
        self, user_id: uuid.UUID, workspace_id: uuid.UUID
    ) -> Optional[WorkspaceMember]:
        """
        Get a user's membership record for a workspace.

        Args:
            user_id: User UUID
            workspace_id: Workspace UUID

        Returns:
            WorkspaceMember instance or None
        """
        return (
            self.session.query(WorkspaceMember)
            .filter(
                WorkspaceMember.user_id == user_id,
                WorkspaceMember.workspace_id == workspace_id,
            )
            .first()
        )

    def is_active_member(self, user_id: uuid.UUID, workspace_id: uuid.UUID) -> bool:
        """Check whether a user has an active membership in a workspace."""
        membership = self.get_membership(user_id, workspace_id)
        return membership is not None and membership.is_active

    def add_member(
        self, workspace_id: uuid.UUID, user_id: uuid.UUID, role: str = "member"
    ) -> WorkspaceMember:
        """
        Add a user to a workspace, reactivating an existing membership.

        Args:
            workspace_id: Workspace UUID
            user_id: User UUID
            role: Membership role

        Returns:
            WorkspaceMember instance
        """
        membership = self.get_membership(user_id, workspace_id)
        if membership:
            membership.is_active = True
            membership.role = role
        else:
            membership = WorkspaceMember(
                workspace_id=workspace_id, user_id=user_id, role=role, is_active=True
            )
            self.session.add(membership)
        self.session.flush()
        return membership

    def get_active(self, limit: Optional[int] = None, offset: int = 0) -> List[Workspace]:
        """
        Get active workspaces.

        Args:
            limit: Maximum number of records to return
            offset: Number of records to skip

        Returns:
            List of active workspaces
        """
        query = (
            self.session.query(Workspace)
            .filter(Workspace.is_active == True)  # noqa: E712
            .offset(offset)
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def deactivate(self, id: uuid.UUID) -> Optional[Workspace]:
        """
        Deactivate a workspace (soft delete).

        Args:
            id: Workspace UUID

        Returns:
            Updated workspace or None
        """
        return self.update(id, is_active=False)
