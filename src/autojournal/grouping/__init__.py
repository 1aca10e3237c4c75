"""Activity grouping strategies (calendar day and reference cluster)."""

from .clustering import Cluster, cluster_by_shared_refs
from .engine import (
    UNCLUSTERED_KEY,
    ActivityGroup,
    GroupingResult,
    group_activities,
    validate_grouping_method,
)

__all__ = [
    "ActivityGroup",
    "Cluster",
    "GroupingResult",
    "UNCLUSTERED_KEY",
    "cluster_by_shared_refs",
    "group_activities",
    "validate_grouping_method",
]
