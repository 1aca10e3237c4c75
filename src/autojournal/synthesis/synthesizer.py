"""
Templated content synthesis for auto-generated journal drafts.

Builds the title, description, markdown body and structured metadata payload
of a draft entry from per-tool activity, an optional framework scaffold and an
optional grouping result. Deterministic: no model calls.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Optional, Sequence, Union

from autojournal.exceptions import InvalidScheduleError
from autojournal.grouping.engine import GroupingResult
from autojournal.models.activity import ToolActivityData
from autojournal.scheduling.recurrence import UTC, ensure_utc, resolve_timezone
from autojournal.signals.extractor import (
    EDGE_PRIMARY,
    ActivitySignals,
    extract_signals,
)
from autojournal.synthesis.frameworks import FrameworkComponent, get_framework

logger = logging.getLogger(__name__)

FORMAT_SCHEMA_VERSION = 1
GENERIC_TITLE_PREFIX = "Work Summary"
GENERIC_HEADING = "Daily Work Summary"
DEFAULT_CATEGORY = "Daily Summary"
DEFAULT_PRIMARY_FOCUS = "Daily work summary"
NO_TOOLS_PHRASE = "your connected tools"
COMPONENT_PLACEHOLDER = "- _Add your notes here_"

ComponentLike = Union[FrameworkComponent, dict]


@dataclass
class SynthesizedEntry:
    """Content for a new draft entry."""

    title: str
    description: str
    full_content: str
    category: str
    format_data: dict[str, Any] = field(default_factory=dict)


def format_display_date(day: Union[date, datetime]) -> str:
    """Render a date as e.g. ``January 5, 2024``."""
    return f"{day:%B} {day.day}, {day.year}"


def capitalize_tool(tool_type: str) -> str:
    return tool_type[:1].upper() + tool_type[1:]


def generate_title(display_date: str, framework: Optional[str] = None) -> str:
    """Framework title prefix (or the generic one) followed by the date."""
    resolved = get_framework(framework)
    prefix = resolved.title_prefix if resolved else GENERIC_TITLE_PREFIX
    return f"{prefix} - {display_date}"


def generate_description(
    tools_used: Sequence[str], framework: Optional[str] = None
) -> str:
    """One-sentence description naming the tools that had data."""
    tools = ", ".join(tools_used) if tools_used else NO_TOOLS_PHRASE
    resolved = get_framework(framework)
    if resolved:
        return resolved.description_template.format(tools=tools)
    return f"Auto-generated summary of activities from {tools}"


def _component_fields(component: ComponentLike) -> tuple[str, str, str, str]:
    if isinstance(component, FrameworkComponent):
        return component.name, component.label, component.description, component.prompt
    if isinstance(component, dict):
        return tuple(  # type: ignore[return-value]
            str(component.get(key) or "")
            for key in ("name", "label", "description", "prompt")
        )
    return "", "", "", ""


def generate_activity_summary_content(
    activity_data: Sequence[ToolActivityData],
    grouping: Optional[GroupingResult] = None,
) -> str:
    """
    Render the ``## Activity Summary`` section body.

    Lists per-tool activity counts, or per-group counts followed by a per-tool
    breakdown when a grouping result is given.
    """
    with_data = [tool for tool in activity_data if tool.has_data]
    if not with_data:
        return "_No activities recorded._\n\n"

    content = ""
    if grouping and grouping.groups:
        content += f"### Groups ({grouping.method.value})\n"
        for group in grouping.groups:
            content += f"- **{group.key}**: {len(group.activity_ids)} activities\n"
        content += "\n### By Tool\n"
        for tool in with_data:
            content += (
                f"- {capitalize_tool(tool.tool_type)}: "
                f"{len(tool.activities)} activities\n"
            )
        return content + "\n"

    for tool in with_data:
        content += f"### {capitalize_tool(tool.tool_type)}\n"
        content += f"- {len(tool.activities)} activities recorded\n\n"
    return content


def generate_full_content(
    display_date: str,
    activity_summary: str,
    components: Optional[Sequence[ComponentLike]] = None,
    heading: Optional[str] = None,
    custom_prompt: Optional[str] = None,
) -> str:
    """
    Render the markdown body of a draft.

    Components with an empty label are skipped. When no usable component
    remains the generic heading is used.
    """
    blocks = []
    for component in components or []:
        _, label, description, prompt = _component_fields(component)
        if not label:
            continue
        block = f"## {label}\n"
        if description:
            block += f"*{description}*\n"
        if prompt:
            block += f"<!-- {prompt} -->\n"
        block += f"{COMPONENT_PLACEHOLDER}\n\n"
        blocks.append(block)

    if blocks:
        content = f"# {heading or GENERIC_TITLE_PREFIX}\n\n"
    else:
        content = f"# {GENERIC_HEADING}\n\n"
    content += f"**Date:** {display_date}\n\n"
    content += "".join(blocks)
    content += "## Activity Summary\n\n"
    content += activity_summary

    if custom_prompt:
        content += f"\n---\n*Focus: {custom_prompt}*\n"
    return content


def _activity_records(
    activity_data: Sequence[ToolActivityData],
    signals: ActivitySignals,
    now: datetime,
) -> list[dict]:
    records = []
    for tool in activity_data:
        for activity in tool.activities:
            edge_type = signals.edge_for(activity.id)
            timestamp = activity.timestamp or now
            records.append(
                {
                    "id": activity.id,
                    "source": tool.tool_type,
                    "source_id": activity.source_id,
                    "type": "task",
                    "action": "completed",
                    "description": activity.title or activity.description or "Activity",
                    "timestamp": ensure_utc(timestamp).isoformat(),
                    "edge_type": edge_type,
                    "importance": "high" if edge_type == EDGE_PRIMARY else "medium",
                    "evidence": {
                        "type": "link",
                        "url": activity.url or "",
                        "title": activity.title or "Activity",
                    },
                    "cross_tool_refs": list(activity.cross_tool_refs or []),
                }
            )
    return records


def build_format_data(
    title: str,
    activity_data: Sequence[ToolActivityData],
    signals: ActivitySignals,
    now: datetime,
    period_start: datetime,
    framework_key: Optional[str] = None,
    components: Optional[Sequence[FrameworkComponent]] = None,
    grouping: Optional[GroupingResult] = None,
    custom_prompt: Optional[str] = None,
    workspace_id: Optional[str] = None,
    local_date: Optional[date] = None,
) -> dict[str, Any]:
    """Assemble the structured metadata payload stored with the entry."""
    tools_used = [t.tool_type for t in activity_data if t.has_data]
    total = sum(len(t.activities) for t in activity_data)

    format_data: dict[str, Any] = {
        "schema_version": FORMAT_SCHEMA_VERSION,
        "entry_metadata": {
            "title": title,
            "date": (local_date or now.date()).isoformat(),
            "type": "reflection",
            "workspace": workspace_id,
            "privacy": "private",
            "is_automated": True,
            "created_at": now.isoformat(),
        },
        "context": {
            "date_range": {
                "start": period_start.isoformat(),
                "end": now.isoformat(),
            },
            "sources_included": tools_used,
            "total_activities": total,
            "primary_focus": custom_prompt or DEFAULT_PRIMARY_FOCUS,
        },
        "activities": _activity_records(activity_data, signals, now),
        "summary": {
            "total_activities": total,
            "activities_by_source": {
                t.tool_type: len(t.activities) for t in activity_data
            },
            "technologies_used": list(signals.technologies),
        },
        "signals": signals.to_dict(),
        "custom_prompt": custom_prompt,
        "is_auto_generated": True,
        "generated_at": now.isoformat(),
    }

    if framework_key and components:
        format_data["framework"] = framework_key
        format_data["framework_components"] = [
            {**c.to_dict(), "content": ""} for c in components
        ]

    if grouping is not None:
        # Singleton "unclustered" groups share a key, so sizes are summed per key
        group_sizes: dict[str, int] = {}
        for group in grouping.groups:
            group_sizes[group.key] = group_sizes.get(group.key, 0) + len(
                group.activity_ids
            )
        format_data["grouping"] = {
            **grouping.to_dict(),
            "group_count": len(grouping.groups),
            "group_sizes": group_sizes,
        }

    return format_data


def _local_date(now: datetime, timezone: Optional[str]) -> date:
    if not timezone:
        return now.date()
    try:
        return now.astimezone(resolve_timezone(timezone)).date()
    except InvalidScheduleError:
        logger.warning(f"Unknown timezone {timezone!r}, dating entry in UTC")
        return now.date()


def synthesize_entry(
    activity_data: Sequence[ToolActivityData],
    framework: Optional[str] = None,
    grouping: Optional[GroupingResult] = None,
    custom_prompt: Optional[str] = None,
    workspace_id: Optional[str] = None,
    signals: Optional[ActivitySignals] = None,
    now: Optional[datetime] = None,
    period_start: Optional[datetime] = None,
    timezone: Optional[str] = None,
) -> SynthesizedEntry:
    """
    Synthesize a draft entry from activity data.

    Args:
        activity_data: Activities grouped by tool
        framework: Framework key; unknown keys fall back to the generic layout
        grouping: Optional grouping result, reported as counts and keys
        custom_prompt: Focus note appended to the body
        workspace_id: Workspace recorded in the metadata payload
        signals: Pre-computed signals; extracted from ``activity_data`` if None
        now: Generation instant (defaults to the current UTC time)
        period_start: Start of the activity window (defaults to one day back)
        timezone: Subscriber timezone; the entry date is the local date of ``now``

    Returns:
        SynthesizedEntry
    """
    now = ensure_utc(now) if now else datetime.now(UTC)
    period_start = ensure_utc(period_start) if period_start else now - timedelta(days=1)
    if signals is None:
        signals = extract_signals(activity_data)

    resolved = get_framework(framework)
    if framework and resolved is None:
        logger.warning(f"Unknown framework {framework!r}, using generic layout")
    framework_key = resolved.key if resolved else None
    components = list(resolved.components) if resolved else None

    local_date = _local_date(now, timezone)
    display_date = format_display_date(local_date)
    tools_used = [t.tool_type for t in activity_data if t.has_data]

    title = generate_title(display_date, framework_key)
    description = generate_description(tools_used, framework_key)
    full_content = generate_full_content(
        display_date,
        generate_activity_summary_content(activity_data, grouping),
        components=components,
        heading=resolved.title_prefix if resolved else None,
        custom_prompt=custom_prompt,
    )
    format_data = build_format_data(
        title,
        activity_data,
        signals,
        now,
        period_start,
        framework_key=framework_key,
        components=components,
        grouping=grouping,
        custom_prompt=custom_prompt,
        workspace_id=workspace_id,
        local_date=local_date,
    )

    return SynthesizedEntry(
        title=title,
        description=description,
        full_content=full_content,
        category=DEFAULT_CATEGORY,
        format_data=format_data,
    )
