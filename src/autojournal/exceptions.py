"""Custom exceptions for AutoJournal."""

from typing import Optional


class AutoJournalError(Exception):
    """Base class for AutoJournal errors."""


class InvalidScheduleError(AutoJournalError):
    """Raised when a subscription's recurrence settings cannot be scheduled."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class WorkspaceAccessError(AutoJournalError):
    """Raised when a user is not an active member of the target workspace."""

    def __init__(self, user_id, workspace_id):
        self.user_id = user_id
        self.workspace_id = workspace_id
        super().__init__(
            f"Access denied: user {user_id} is not a member of workspace {workspace_id}"
        )


class SubscriptionExistsError(AutoJournalError):
    """Raised when a user already has a subscription for a workspace."""

    def __init__(self, user_id, workspace_id):
        self.user_id = user_id
        self.workspace_id = workspace_id
        super().__init__(
            f"Subscription already exists for user {user_id} in workspace {workspace_id}"
        )


class SubscriptionNotFoundError(AutoJournalError):
    """Raised when a subscription lookup finds nothing."""


class ActivityFetchError(AutoJournalError):
    """Raised when activity for one tool cannot be retrieved."""

    def __init__(self, tool_type: str, cause: Exception):
        self.tool_type = tool_type
        self.cause = cause
        super().__init__(f"Failed to fetch {tool_type} activity: {cause}")


class GenerationError(AutoJournalError):
    """Raised when a draft entry cannot be synthesized or persisted."""
