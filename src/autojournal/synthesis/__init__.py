"""Draft entry synthesis: framework scaffolds, templated content, AI drafting."""

from .frameworks import (
    CAREER_FRAMEWORKS,
    JOURNAL_FRAMEWORKS,
    Framework,
    FrameworkComponent,
    get_framework,
    get_framework_components,
)
from .synthesizer import SynthesizedEntry, synthesize_entry

__all__ = [
    "CAREER_FRAMEWORKS",
    "JOURNAL_FRAMEWORKS",
    "Framework",
    "FrameworkComponent",
    "SynthesizedEntry",
    "get_framework",
    "get_framework_components",
    "synthesize_entry",
]
