"""
Provider adapters for activity payloads.

Each adapter reads one tool's loosely-typed ``raw_data`` and reports the few
facts the signal extractor needs, so the heuristics never depend on a single
provider's schema.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from autojournal.models.activity import ActivityRecord

# Numeric-id marker in a reference key, e.g. 'acme/api#42'
MERGE_REF_PATTERN = re.compile(r"#\d+")
COMMIT_REF_PREFIX = "commit"

GITHUB_REVIEW_STATES = {"APPROVED", "CHANGES_REQUESTED"}
JIRA_REVIEW_DECISIONS = {"approved", "rejected", "needs_work", "declined"}


@dataclass
class NormalizedActivity:
    """Provider-neutral view of an activity."""

    is_merge_like: bool = False
    is_review_like: bool = False
    labels: list[str] = field(default_factory=list)
    language: Optional[str] = None


def is_commit_ref(source_id: Optional[str]) -> bool:
    return bool(source_id) and source_id.lower().startswith(COMMIT_REF_PREFIX)


def is_merge_ref(source_id: Optional[str]) -> bool:
    """Reference key carries a numeric id and is not a commit reference."""
    if not source_id or is_commit_ref(source_id):
        return False
    return MERGE_REF_PATTERN.search(source_id) is not None


def _names(value: Any) -> list[str]:
    """Read a label list that may hold strings or ``{"name": ...}`` objects."""
    if not isinstance(value, list):
        return []
    names = []
    for item in value:
        if isinstance(item, str) and item.strip():
            names.append(item.strip())
        elif isinstance(item, dict):
            name = item.get("name") or item.get("label") or item.get("title")
            if isinstance(name, str) and name.strip():
                names.append(name.strip())
    return names


def _raw(activity: ActivityRecord) -> dict:
    return activity.raw_data if isinstance(activity.raw_data, dict) else {}


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _github(activity: ActivityRecord) -> NormalizedActivity:
    raw = _raw(activity)
    state = _text(raw.get("state")) or _text(raw.get("reviewState"))
    repo = raw.get("repository")
    language = _text(raw.get("language"))
    if language is None and isinstance(repo, dict):
        language = _text(repo.get("language"))
    return NormalizedActivity(
        is_merge_like=is_merge_ref(activity.source_id),
        is_review_like=bool(state) and state.upper() in GITHUB_REVIEW_STATES,
        labels=_names(raw.get("labels")),
        language=language,
    )


def _gitlab(activity: ActivityRecord) -> NormalizedActivity:
    raw = _raw(activity)
    approved = raw.get("approved") is True or bool(_names(raw.get("approved_by")))
    return NormalizedActivity(
        is_merge_like=is_merge_ref(activity.source_id),
        is_review_like=approved,
        labels=_names(raw.get("labels")),
        language=_text(raw.get("language")),
    )


def _jira(activity: ActivityRecord) -> NormalizedActivity:
    raw = _raw(activity)
    decision = _text(raw.get("decision"))
    reviewer = raw.get("reviewer")
    if decision is None and isinstance(reviewer, dict):
        decision = _text(reviewer.get("decision"))
    return NormalizedActivity(
        is_merge_like=is_merge_ref(activity.source_id),
        is_review_like=bool(decision) and decision.lower() in JIRA_REVIEW_DECISIONS,
        labels=_names(raw.get("labels")) + _names(raw.get("components")),
    )


def _confluence(activity: ActivityRecord) -> NormalizedActivity:
    return NormalizedActivity(
        is_merge_like=is_merge_ref(activity.source_id),
        labels=_names(_raw(activity).get("labels")),
    )


def _slack(activity: ActivityRecord) -> NormalizedActivity:
    return NormalizedActivity(is_merge_like=is_merge_ref(activity.source_id))


def _figma(activity: ActivityRecord) -> NormalizedActivity:
    return NormalizedActivity(
        is_merge_like=is_merge_ref(activity.source_id),
        labels=_names(_raw(activity).get("tags")),
    )


def _generic(activity: ActivityRecord) -> NormalizedActivity:
    raw = _raw(activity)
    return NormalizedActivity(
        is_merge_like=is_merge_ref(activity.source_id),
        labels=_names(raw.get("labels")) or _names(raw.get("tags")),
        language=_text(raw.get("language")),
    )


ADAPTERS: dict[str, Callable[[ActivityRecord], NormalizedActivity]] = {
    "github": _github,
    "gitlab": _gitlab,
    "jira": _jira,
    "confluence": _confluence,
    "slack": _slack,
    "figma": _figma,
}


def normalize_activity(activity: ActivityRecord) -> NormalizedActivity:
    """Normalize an activity with its provider's adapter."""
    adapter = ADAPTERS.get((activity.source or "").lower(), _generic)
    return adapter(activity)
