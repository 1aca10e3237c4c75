"""
Pytest configuration and fixtures for AutoJournal tests.

This module provides shared fixtures for testing database models, repositories,
and the scheduling pipeline.
"""

import os

# Keep the module-level engine off PostgreSQL and logs off disk during tests
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")
os.environ.setdefault("LOG_FILE_ENABLED", "false")

import uuid  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Generator, Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from autojournal.db.connection import (  # noqa: E402
    configure_sqlite_engine,
    use_json_for_sqlite,
)
from autojournal.models.activity import ActivityRecord  # noqa: E402
from autojournal.models.db import (  # noqa: E402
    Base,
    JournalSubscription,
    ToolActivity,
    ToolConnection,
    User,
    Workspace,
    WorkspaceMember,
)

UTC = timezone.utc


@pytest.fixture(scope="session")
def test_engine():
    """Create a test database engine using SQLite in-memory."""
    # SQLite uses JSON instead of JSONB
    use_json_for_sqlite(Base.metadata)

    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite_engine(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """
    Create a new database session for a test.

    Each test gets a fresh session with a transaction that is rolled back
    after the test completes, ensuring test isolation.
    """
    connection = test_engine.connect()
    transaction = connection.begin()
    session = sessionmaker(bind=connection)()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def now() -> datetime:
    """Fixed tick instant: Wednesday 2024-01-10 18:05 UTC."""
    return datetime(2024, 1, 10, 18, 5, tzinfo=UTC)


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """Create a sample user for testing."""
    user = User(id=uuid.uuid4(), email="dana@example.com", name="Dana")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def sample_workspace(db_session: Session) -> Workspace:
    """Create a sample workspace for testing."""
    workspace = Workspace(
        id=uuid.uuid4(),
        name="Platform Team",
        slug="platform-team",
        is_active=True,
    )
    db_session.add(workspace)
    db_session.commit()
    db_session.refresh(workspace)
    return workspace


@pytest.fixture
def sample_membership(
    db_session: Session, sample_user: User, sample_workspace: Workspace
) -> WorkspaceMember:
    """Make the sample user an active member of the sample workspace."""
    membership = WorkspaceMember(
        user_id=sample_user.id,
        workspace_id=sample_workspace.id,
        role="member",
        is_active=True,
    )
    db_session.add(membership)
    db_session.commit()
    db_session.refresh(membership)
    return membership


@pytest.fixture
def sample_connections(db_session: Session, sample_user: User) -> list[ToolConnection]:
    """Active github and jira connections for the sample user."""
    connections = [
        ToolConnection(
            user_id=sample_user.id,
            tool_type=tool_type,
            is_active=True,
            connected_at=datetime(2023, 12, 1, tzinfo=UTC),
        )
        for tool_type in ("github", "jira")
    ]
    db_session.add_all(connections)
    db_session.commit()
    return connections


@pytest.fixture
def sample_subscription(
    db_session: Session,
    sample_user: User,
    sample_workspace: Workspace,
    now: datetime,
) -> JournalSubscription:
    """Daily 18:00 UTC subscription that is due at ``now``."""
    subscription = JournalSubscription(
        user_id=sample_user.id,
        workspace_id=sample_workspace.id,
        is_active=True,
        frequency="daily",
        selected_days=[],
        generation_time="18:00",
        timezone="UTC",
        selected_tools=["github", "jira"],
        default_tags=["work"],
        created_at=now - timedelta(days=30),
        next_run_at=now - timedelta(minutes=5),
    )
    db_session.add(subscription)
    db_session.commit()
    db_session.refresh(subscription)
    return subscription


def make_activity(
    id: str,
    source: str = "github",
    source_id: str = "acme/api#1",
    timestamp: datetime = datetime(2024, 1, 10, 12, 0, tzinfo=UTC),
    title: str = "Activity",
    refs: Optional[list[str]] = None,
    raw: Optional[dict] = None,
    description: Optional[str] = None,
) -> ActivityRecord:
    """Build an in-memory activity record."""
    return ActivityRecord(
        id=id,
        source=source,
        source_id=source_id,
        timestamp=timestamp,
        title=title,
        description=description,
        url=f"https://example.com/{id}",
        cross_tool_refs=refs or [],
        raw_data=raw or {},
    )


def add_tool_activity(
    session: Session,
    user_id: uuid.UUID,
    source: str,
    source_id: str,
    timestamp: datetime,
    title: str = "Activity",
    **kwargs,
) -> ToolActivity:
    """Persist a ToolActivity row."""
    activity = ToolActivity(
        user_id=user_id,
        source=source,
        source_id=source_id,
        timestamp=timestamp,
        title=title,
        **kwargs,
    )
    session.add(activity)
    session.flush()
    return activity


@pytest.fixture
def activity_factory():
    """Factory for in-memory activity records."""
    return make_activity


@pytest.fixture
def tool_activity_factory(db_session: Session):
    """Factory persisting ToolActivity rows in the test session."""

    def factory(user_id, source, source_id, timestamp, title="Activity", **kwargs):
        return add_tool_activity(
            db_session, user_id, source, source_id, timestamp, title, **kwargs
        )

    return factory
