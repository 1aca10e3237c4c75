"""Tests for journal notifications."""

import uuid
from unittest.mock import patch

from autojournal.db.repositories.notification import NotificationRepository
from autojournal.models.db import NotificationSubtype
from autojournal.pipeline.notifications import JournalNotifier


def test_entry_ready(db_session, sample_user, sample_workspace):
    entry_id = uuid.uuid4()

    notification = JournalNotifier(db_session).entry_ready(
        sample_user.id, sample_workspace.id, sample_workspace.name, entry_id
    )

    assert notification.title == "Journal entry ready for Platform Team"
    assert notification.type == "SYSTEM"
    assert notification.related_entity_type == "JOURNAL_ENTRY"
    assert notification.related_entity_id == entry_id
    assert notification.data == {
        "subtype": NotificationSubtype.ENTRY_READY.value,
        "workspace_id": str(sample_workspace.id),
        "entry_id": str(entry_id),
    }


def test_no_activity(db_session, sample_user, sample_workspace):
    notification = JournalNotifier(db_session).no_activity(
        sample_user.id, sample_workspace.id, sample_workspace.name
    )

    assert notification.related_entity_type == "WORKSPACE"
    assert notification.related_entity_id == sample_workspace.id
    assert notification.data["subtype"] == "journal_auto_no_activity"
    assert "manually" in notification.message


def test_tools_missing(db_session, sample_user, sample_workspace):
    notification = JournalNotifier(db_session).tools_missing(
        sample_user.id, sample_workspace.id, None, ["figma", "slack"]
    )

    assert notification.title == "Missing tools for your workspace"
    assert "figma, slack" in notification.message
    assert notification.data["missing_tools"] == ["figma", "slack"]


def test_generation_failed(db_session, sample_user, sample_workspace):
    notification = JournalNotifier(db_session).generation_failed(
        sample_user.id, sample_workspace.id, sample_workspace.name
    )

    assert notification.title == "Journal generation failed for Platform Team"
    assert notification.data["subtype"] == "journal_auto_generation_failed"



def test_failure_is_swallowed(db_session, sample_user, sample_workspace):
    notifier = JournalNotifier(db_session)

    with patch.object(
        notifier.repo, "create_system", side_effect=RuntimeError("db down")
    ):
        result = notifier.no_activity(
            sample_user.id, sample_workspace.id, sample_workspace.name
        )

    assert result is None
    # Session is still usable after the savepoint rollback
    notifier.no_activity(sample_user.id, sample_workspace.id, sample_workspace.name)
    notifications = NotificationRepository(db_session).get_for_recipient(
        sample_user.id
    )
    assert len(notifications) == 1
