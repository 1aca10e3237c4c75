"""
Activity grouping strategies.

Partitions a subscription's activities before synthesis, either by UTC
calendar day or by shared cross-tool reference clusters.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Union

from autojournal.grouping.clustering import Cluster, cluster_by_shared_refs
from autojournal.models.activity import ActivityRecord
from autojournal.models.db import GroupingMethod
from autojournal.scheduling.recurrence import ensure_utc

logger = logging.getLogger(__name__)

UNCLUSTERED_KEY = "unclustered"

ClusterFn = Callable[[Sequence[ActivityRecord]], list[Cluster]]


@dataclass
class ActivityGroup:
    """Named group of activity ids."""

    key: str
    activity_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"key": self.key, "activity_ids": list(self.activity_ids)}


@dataclass
class GroupingResult:
    """Groups produced by one strategy, in presentation order."""

    method: GroupingMethod
    groups: list[ActivityGroup] = field(default_factory=list)

    @property
    def total_activities(self) -> int:
        return sum(len(g.activity_ids) for g in self.groups)

    def to_dict(self) -> dict:
        return {
            "method": self.method.value,
            "groups": [g.to_dict() for g in self.groups],
        }


def validate_grouping_method(
    value: Optional[Union[str, GroupingMethod]],
) -> GroupingMethod:
    """Map a stored grouping method to a strategy; unknown values mean temporal."""
    if value is None:
        return GroupingMethod.TEMPORAL
    try:
        return GroupingMethod(value)
    except ValueError:
        logger.warning(f"Unknown grouping method {value!r}, using temporal")
        return GroupingMethod.TEMPORAL


def group_by_day(activities: Sequence[ActivityRecord]) -> list[ActivityGroup]:
    """Partition activities by the UTC date of their timestamp."""
    by_day: dict[str, list[str]] = {}
    for activity in activities:
        key = ensure_utc(activity.timestamp).date().isoformat()
        by_day.setdefault(key, []).append(activity.id)
    return [
        ActivityGroup(key=key, activity_ids=ids) for key, ids in sorted(by_day.items())
    ]


def group_by_cluster(
    activities: Sequence[ActivityRecord],
    cluster_fn: ClusterFn = cluster_by_shared_refs,
) -> list[ActivityGroup]:
    """
    Group activities by reference cluster.

    Each cluster becomes a group keyed by its name. Activities not claimed by
    any cluster each get a singleton group keyed ``unclustered``.
    """
    groups = []
    claimed: set[str] = set()
    for cluster in cluster_fn(activities):
        ids = [i for i in cluster.activity_ids if i not in claimed]
        if not ids:
            continue
        claimed.update(ids)
        groups.append(ActivityGroup(key=cluster.name, activity_ids=ids))

    for activity in activities:
        if activity.id not in claimed:
            claimed.add(activity.id)
            groups.append(
                ActivityGroup(key=UNCLUSTERED_KEY, activity_ids=[activity.id])
            )
    return groups


def group_activities(
    activities: Sequence[ActivityRecord],
    method: Optional[Union[str, GroupingMethod]],
    cluster_fn: ClusterFn = cluster_by_shared_refs,
) -> GroupingResult:
    """
    Group activities with the given strategy.

    Args:
        activities: Activities in fetch order
        method: Grouping method; None or unknown values fall back to temporal
        cluster_fn: Clustering primitive used by the cluster strategy

    Returns:
        GroupingResult with the resolved method and its groups
    """
    resolved = validate_grouping_method(method)
    if resolved == GroupingMethod.CLUSTER:
        groups = group_by_cluster(activities, cluster_fn)
    else:
        groups = group_by_day(activities)

    logger.debug(
        f"Grouped {len(activities)} activities into {len(groups)} groups "
        f"({resolved.value})"
    )
    return GroupingResult(method=resolved, groups=groups)
