"""
In-memory activity data models.

Plain dataclasses handed between the processor and the pure grouping, signal
and synthesis steps, so those steps never touch the ORM session.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class ActivityRecord:
    """One unit of tool activity."""

    id: str
    source: str  # tool type, e.g. 'github'
    source_id: str  # reference key, e.g. 'acme/api#42' or 'commit:9f2c1ab'
    timestamp: datetime
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    cross_tool_refs: list[str] = field(default_factory=list)
    raw_data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_model(cls, activity) -> "ActivityRecord":
        """Build a record from a ToolActivity row."""
        return cls(
            id=str(activity.id),
            source=activity.source,
            source_id=activity.source_id or "",
            timestamp=activity.timestamp,
            title=activity.title,
            description=activity.description,
            url=activity.url,
            cross_tool_refs=list(activity.cross_tool_refs or []),
            raw_data=dict(activity.raw_data or {}),
        )


@dataclass
class ToolActivityData:
    """Activities fetched from one selected tool."""

    tool_type: str
    activities: list[ActivityRecord] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return len(self.activities) > 0


def flatten_activities(activity_data: list[ToolActivityData]) -> list[ActivityRecord]:
    """All activities across tools, in fetch order."""
    return [a for tool in activity_data for a in tool.activities]
