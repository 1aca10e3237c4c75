"""
Reference clustering for activities.

Activities that mention the same cross-tool reference (a Jira key, a PR, a
Confluence page) are connected in a graph; each connected component with at
least ``min_size`` members becomes a named cluster.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from autojournal.models.activity import ActivityRecord

DEFAULT_MIN_CLUSTER_SIZE = 2


@dataclass
class Cluster:
    """A named set of activity ids."""

    name: str
    activity_ids: list[str] = field(default_factory=list)


def _build_adjacency(activities: Sequence[ActivityRecord]) -> dict[str, set[str]]:
    ref_to_ids: dict[str, list[str]] = {}
    for activity in activities:
        for ref in activity.cross_tool_refs or []:
            ids = ref_to_ids.setdefault(ref, [])
            if activity.id not in ids:
                ids.append(activity.id)

    adjacency: dict[str, set[str]] = {a.id: set() for a in activities}
    for ids in ref_to_ids.values():
        for i, left in enumerate(ids):
            for right in ids[i + 1 :]:
                adjacency[left].add(right)
                adjacency[right].add(left)
    return adjacency


def _connected_components(
    activities: Sequence[ActivityRecord], adjacency: dict[str, set[str]]
) -> list[list[str]]:
    visited: set[str] = set()
    components: list[list[str]] = []
    order = {a.id: i for i, a in enumerate(activities)}

    for activity in activities:
        if activity.id in visited:
            continue
        component = []
        stack = [activity.id]
        visited.add(activity.id)
        while stack:
            current = stack.pop()
            component.append(current)
            for neighbor in adjacency[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    stack.append(neighbor)
        # Keep members in input order
        components.append(sorted(component, key=order.__getitem__))
    return components


def _cluster_name(
    member_ids: list[str], by_id: dict[str, ActivityRecord]
) -> str:
    counts: Counter = Counter()
    first_seen: dict[str, int] = {}
    for activity_id in member_ids:
        for ref in dict.fromkeys(by_id[activity_id].cross_tool_refs or []):
            counts[ref] += 1
            first_seen.setdefault(ref, len(first_seen))
    # Most shared reference; earliest seen wins ties
    return min(counts, key=lambda ref: (-counts[ref], first_seen[ref]))


def cluster_by_shared_refs(
    activities: Sequence[ActivityRecord],
    min_size: int = DEFAULT_MIN_CLUSTER_SIZE,
) -> list[Cluster]:
    """
    Cluster activities connected through shared cross-tool references.

    Args:
        activities: Activities to cluster
        min_size: Smallest component reported as a cluster

    Returns:
        Clusters in order of their first member's position in ``activities``.
        Activities outside every cluster are not returned.
    """
    if not activities:
        return []

    # Duplicate ids would alias graph nodes
    unique = list({a.id: a for a in activities}.values())
    by_id = {a.id: a for a in unique}
    adjacency = _build_adjacency(unique)

    return [
        Cluster(name=_cluster_name(component, by_id), activity_ids=component)
        for component in _connected_components(unique, adjacency)
        if len(component) >= min_size
    ]
