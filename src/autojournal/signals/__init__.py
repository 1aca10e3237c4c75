"""Heuristic activity signals and provider payload adapters."""

from .adapters import NormalizedActivity, normalize_activity
from .extractor import ActivityEdge, ActivitySignals, extract_signals

__all__ = [
    "ActivityEdge",
    "ActivitySignals",
    "NormalizedActivity",
    "extract_signals",
    "normalize_activity",
]
