"""
Repository layer for database operations.

Provides a clean API for CRUD operations on database models.
"""

from autojournal.db.repositories.activity import ActivityRepository
from autojournal.db.repositories.base import BaseRepository
from autojournal.db.repositories.entry import JournalEntryRepository
from autojournal.db.repositories.notification import NotificationRepository
from autojournal.db.repositories.subscription import SubscriptionRepository
from autojournal.db.repositories.tool_connection import ToolConnectionRepository
from autojournal.db.repositories.workspace import WorkspaceRepository

__all__ = [
    "ActivityRepository",
    "BaseRepository",
    "JournalEntryRepository",
    "NotificationRepository",
    "SubscriptionRepository",
    "ToolConnectionRepository",
    "WorkspaceRepository",
]
