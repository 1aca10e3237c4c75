"""
SQLAlchemy database models for AutoJournal.

These models represent the database schema for subscriptions, the activity
records they read, and the draft entries and notifications they produce.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class Frequency(str, enum.Enum):
    """How often a subscription generates a draft entry."""

    DAILY = "daily"
    ALTERNATE_DAY = "alternate_day"
    WEEKDAYS = "weekdays"  # Monday through Friday only
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"  # First selected weekday of each month
    CUSTOM = "custom"  # Any of the selected weekdays


class GroupingMethod(str, enum.Enum):
    """Strategy used to partition activities before synthesis."""

    TEMPORAL = "temporal"  # Calendar-day partition
    CLUSTER = "cluster"  # Shared cross-tool reference clusters


class NotificationSubtype(str, enum.Enum):
    """Subtype carried in a notification's data payload."""

    ENTRY_READY = "journal_auto_entry_ready"
    NO_ACTIVITY = "journal_auto_no_activity"
    TOOLS_MISSING = "journal_auto_tools_missing"
    GENERATION_FAILED = "journal_auto_generation_failed"


class User(Base):
    """Account that owns subscriptions, connections and entries."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"


class Workspace(Base):
    """Workspace that scopes journal entries."""

    __tablename__ = "workspaces"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )  # URL-friendly identifier

    # Status
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true", index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    members: Mapped[list["WorkspaceMember"]] = relationship(
        back_populates="workspace", cascade="all, delete-orphan"
    )
    subscriptions: Mapped[list["JournalSubscription"]] = relationship(
        back_populates="workspace", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Workspace(id={self.id}, name={self.name!r}, slug={self.slug!r})>"


class WorkspaceMember(Base):
    """Membership of a user in a workspace."""

    __tablename__ = "workspace_members"
    __table_args__ = (
        UniqueConstraint("user_id", "workspace_id", name="uq_workspace_member"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(50), nullable=False, default="member", server_default="member"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    workspace: Mapped["Workspace"] = relationship(back_populates="members")

    def __repr__(self) -> str:
        return (
            f"<WorkspaceMember(user_id={self.user_id}, "
            f"workspace_id={self.workspace_id}, is_active={self.is_active})>"
        )


class ToolConnection(Base):
    """A user's connection to an external tool (github, jira, slack, ...)."""

    __tablename__ = "tool_connections"
    __table_args__ = (
        UniqueConstraint("user_id", "tool_type", name="uq_tool_connection"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tool_type: Mapped[str] = mapped_column(String(50), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )
    connected_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<ToolConnection(user_id={self.user_id}, tool_type={self.tool_type!r}, "
            f"is_active={self.is_active})>"
        )


class ToolActivity(Base):
    """
    A timestamped unit of work recorded in a connected tool.

    Populated by the ingestion services; read-only for the journal pipeline.
    """

    __tablename__ = "tool_activities"
    __table_args__ = (
        Index("ix_tool_activities_user_source_ts", "user_id", "source", "timestamp"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source: Mapped[str] = mapped_column(String(50), nullable=False)  # tool type
    source_id: Mapped[str] = mapped_column(
        String(255), nullable=False
    )  # e.g. 'acme/api#42', 'commit:9f2c1ab', 'PROJ-123'
    title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    cross_tool_refs: Mapped[list] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )
    raw_data: Mapped[dict] = mapped_column(
        JSONB, nullable=False, default=dict, server_default="{}"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<ToolActivity(id={self.id}, source={self.source!r}, "
            f"source_id={self.source_id!r})>"
        )


class JournalSubscription(Base):
    """A user's recurring auto-generation settings for one workspace."""

    __tablename__ = "journal_subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "workspace_id", name="uq_journal_subscription"),
        Index("ix_journal_subscriptions_due", "is_active", "next_run_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    # Recurrence rule
    frequency: Mapped[str] = mapped_column(
        String(20), nullable=False, default=Frequency.DAILY.value
    )
    selected_days: Mapped[list] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )  # ['mon', 'wed', ...]
    generation_time: Mapped[str] = mapped_column(
        String(5), nullable=False, default="18:00"
    )  # local HH:MM
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")

    # Generation settings
    selected_tools: Mapped[list] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )
    custom_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    default_category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    default_tags: Mapped[list] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )
    preferred_framework: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True
    )
    grouping_method: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Run tracking (UTC)
    last_run_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    next_run_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    workspace: Mapped["Workspace"] = relationship(back_populates="subscriptions")
    user: Mapped["User"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<JournalSubscription(id={self.id}, user_id={self.user_id}, "
            f"frequency={self.frequency!r}, next_run_at={self.next_run_at})>"
        )


class JournalEntry(Base):
    """A journal entry; auto-generated drafts are private and unpublished."""

    __tablename__ = "journal_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    full_content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    tags: Mapped[list] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )
    visibility: Mapped[str] = mapped_column(
        String(20), nullable=False, default="private", server_default="private"
    )
    is_published: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    format_data: Mapped[dict] = mapped_column(
        JSONB, nullable=False, default=dict, server_default="{}"
    )  # Structured metadata payload (schema_version 1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<JournalEntry(id={self.id}, title={self.title!r})>"


class Notification(Base):
    """In-app notification addressed to a user."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="SYSTEM")
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    related_entity_type: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True
    )  # 'JOURNAL_ENTRY' or 'WORKSPACE'
    related_entity_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    data: Mapped[dict] = mapped_column(
        JSONB, nullable=False, default=dict, server_default="{}"
    )
    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, recipient_id={self.recipient_id}, "
            f"subtype={(self.data or {}).get('subtype')!r})>"
        )
