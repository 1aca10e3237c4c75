"""
Heuristic signal extraction from tool activity.

Derives a dominant role, quantitative impact highlights, technologies and
narrative edges from activity titles, reference keys and provider payloads.
Pattern matching only; no model calls.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from autojournal.models.activity import (
    ActivityRecord,
    ToolActivityData,
    flatten_activities,
)
from autojournal.signals.adapters import is_commit_ref, normalize_activity

logger = logging.getLogger(__name__)

ROLE_LED = "Led"
ROLE_DROVE = "Drove"
ROLE_CONTRIBUTED = "Contributed"

EDGE_PRIMARY = "primary"
EDGE_SUPPORTING = "supporting"
EDGE_CONTEXTUAL = "contextual"

MAX_IMPACT_HIGHLIGHTS = 5
MAX_FALLBACK_HIGHLIGHTS = 3
MAX_TECHNOLOGIES = 10

# "40%", "12.5 %", "3 files", "12 tests"
QUANTITATIVE_PATTERN = re.compile(
    r"\d+(?:\.\d+)?\s?%|(?<![\w#!.])\d+(?:[.,]\d+)?\s+[A-Za-z]{2,}"
)


@dataclass
class ActivityEdge:
    """How one activity relates to the narrative."""

    activity_id: str
    edge_type: str
    message: str

    def to_dict(self) -> dict:
        return {
            "activity_id": self.activity_id,
            "type": self.edge_type,
            "message": self.message,
        }


@dataclass
class ActivitySignals:
    """Summary facts derived from a set of activities."""

    dominant_role: str = ROLE_CONTRIBUTED
    impact_highlights: list[str] = field(default_factory=list)
    technologies: list[str] = field(default_factory=list)
    activity_edges: list[ActivityEdge] = field(default_factory=list)

    def edge_for(self, activity_id: str) -> str:
        for edge in self.activity_edges:
            if edge.activity_id == activity_id:
                return edge.edge_type
        return EDGE_CONTEXTUAL

    def to_dict(self) -> dict:
        return {
            "dominant_role": self.dominant_role,
            "impact_highlights": list(self.impact_highlights),
            "technologies": list(self.technologies),
            "activity_edges": [e.to_dict() for e in self.activity_edges],
        }


def _dominant_role(merge_count: int, review_count: int) -> str:
    if merge_count >= 3 or review_count >= 2:
        return ROLE_LED
    if merge_count >= 1:
        return ROLE_DROVE
    return ROLE_CONTRIBUTED


def _quantitative_text(activity: ActivityRecord) -> Optional[str]:
    for text in (activity.title, activity.description):
        if text and QUANTITATIVE_PATTERN.search(text):
            return text.strip()
    return None


def _edge_type(activity: ActivityRecord, is_merge_like: bool) -> str:
    if is_merge_like:
        return EDGE_PRIMARY
    if is_commit_ref(activity.source_id):
        return EDGE_SUPPORTING
    return EDGE_CONTEXTUAL


def _collect(activities: Sequence[ActivityRecord]) -> ActivitySignals:
    merge_count = 0
    review_count = 0
    highlights: list[str] = []
    merge_titles: list[str] = []
    technologies: dict[str, None] = {}
    edges: list[ActivityEdge] = []

    for activity in activities:
        normalized = normalize_activity(activity)
        if normalized.is_merge_like:
            merge_count += 1
            if activity.title:
                merge_titles.append(activity.title.strip())
        if normalized.is_review_like:
            review_count += 1

        text = _quantitative_text(activity)
        if text and text not in highlights:
            highlights.append(text)

        for tech in normalized.labels + (
            [normalized.language] if normalized.language else []
        ):
            technologies.setdefault(tech, None)

        edges.append(
            ActivityEdge(
                activity_id=activity.id,
                edge_type=_edge_type(activity, normalized.is_merge_like),
                message=activity.title or activity.source_id or "Activity",
            )
        )

    if not highlights:
        highlights = list(dict.fromkeys(merge_titles))[:MAX_FALLBACK_HIGHLIGHTS]

    return ActivitySignals(
        dominant_role=_dominant_role(merge_count, review_count),
        impact_highlights=highlights[:MAX_IMPACT_HIGHLIGHTS],
        technologies=list(technologies)[:MAX_TECHNOLOGIES],
        activity_edges=edges,
    )


def extract_signals(activity_data: Sequence[ToolActivityData]) -> ActivitySignals:
    """
    Extract heuristic signals from per-tool activity.

    Never raises: malformed payloads yield default signals.

    Args:
        activity_data: Activities grouped by tool

    Returns:
        ActivitySignals for the whole activity set
    """
    try:
        activities = flatten_activities(list(activity_data))
        return _collect(activities)
    except Exception as e:
        logger.warning(f"Signal extraction failed, using defaults: {e}")
        return ActivitySignals()
