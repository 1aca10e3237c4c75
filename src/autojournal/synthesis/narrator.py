"""Optional OpenAI enhancement for heuristic journal drafts."""

from __future__ import annotations

import copy
import dataclasses
import json
import logging
import time
from typing import Any, Sequence

from openai import OpenAI

from autojournal.config import settings
from autojournal.models.activity import ToolActivityData, flatten_activities
from autojournal.signals.extractor import ActivitySignals
from autojournal.synthesis.synthesizer import SynthesizedEntry

logger = logging.getLogger(__name__)

# Keep prompts bounded for busy periods
MAX_PROMPT_ACTIVITIES = 50

NARRATIVE_PROMPT = """You are drafting a private work journal entry from tool activity.

Return ONLY valid JSON in this exact shape:
{{
  "summary": "2-4 sentences in first person, plain language",
  "components": {{"<component name>": "1-3 sentences"}}
}}

Guidelines:
- Only use facts present in the activity list.
- Fill every requested component; use an empty string if nothing applies.
- Do not invent numbers.

Requested components: {components}
Dominant role: {role}
Impact highlights: {highlights}
Technologies: {technologies}
Focus: {focus}

Activities:
{activities}
"""


class JournalNarrator:
    """Ask an OpenAI model to draft prose for a synthesized entry."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        max_tokens: int = 800,
        timeout_s: float = 60.0,
        client: OpenAI | None = None,
    ):
        self.client = client or OpenAI(api_key=api_key, timeout=timeout_s)
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls) -> JournalNarrator | None:
        """Build a narrator when AI drafting is enabled and a key is configured."""
        if not settings.journal_ai_enabled:
            return None
        if not settings.openai_api_key:
            logger.warning("journal_ai_enabled is set but no OpenAI API key configured")
            return None
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            max_tokens=settings.openai_max_tokens,
            timeout_s=settings.openai_timeout_s,
        )

    def build_prompt(
        self,
        entry: SynthesizedEntry,
        signals: ActivitySignals,
        activity_data: Sequence[ToolActivityData],
    ) -> str:
        components = [
            c["name"] for c in entry.format_data.get("framework_components", [])
        ]
        lines = []
        for activity in flatten_activities(list(activity_data))[:MAX_PROMPT_ACTIVITIES]:
            title = activity.title or activity.description or activity.source_id
            lines.append(f"- [{activity.source}] {title}")

        return NARRATIVE_PROMPT.format(
            components=", ".join(components) or "none",
            role=signals.dominant_role,
            highlights="; ".join(signals.impact_highlights) or "none",
            technologies=", ".join(signals.technologies) or "none",
            focus=entry.format_data.get("custom_prompt") or "none",
            activities="\n".join(lines) or "- none",
        )

    def _request(self, prompt: str) -> tuple[dict[str, Any], dict[str, Any]]:
        start_time = time.time()
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "system",
                    "content": (
                        "You draft concise work journal entries. Return only JSON."
                    ),
                },
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=0.3,
            response_format={"type": "json_object"},
        )
        duration_ms = (time.time() - start_time) * 1000

        content = response.choices[0].message.content
        if not content:
            raise ValueError("Empty journal draft response from OpenAI")

        draft = json.loads(content)
        if not isinstance(draft, dict):
            raise ValueError("Journal draft response is not a JSON object")

        metrics = {
            "llm_draft_ms": duration_ms,
            "llm_model": response.model,
            "llm_total_tokens": response.usage.total_tokens if response.usage else 0,
        }
        return draft, metrics

    def enhance(
        self,
        entry: SynthesizedEntry,
        signals: ActivitySignals,
        activity_data: Sequence[ToolActivityData],
    ) -> SynthesizedEntry:
        """
        Add model-drafted prose to an entry's metadata payload.

        Any failure is logged and the entry is returned unchanged.

        Args:
            entry: Heuristic entry from the synthesizer
            signals: Signals extracted for the same activity
            activity_data: Activities grouped by tool

        Returns:
            A new entry with ``ai_draft`` and filled component slots, or
            ``entry`` itself on failure
        """
        try:
            prompt = self.build_prompt(entry, signals, activity_data)
            draft, metrics = self._request(prompt)
        except Exception as e:
            logger.warning(f"Journal narrative enhancement failed: {e}", exc_info=True)
            return entry

        format_data = copy.deepcopy(entry.format_data)
        drafted = draft.get("components")
        if not isinstance(drafted, dict):
            drafted = {}
        for component in format_data.get("framework_components", []):
            text = drafted.get(component["name"])
            if isinstance(text, str):
                component["content"] = text.strip()

        summary = draft.get("summary")
        format_data["ai_draft"] = {
            "summary": summary.strip() if isinstance(summary, str) else "",
            **metrics,
        }
        logger.info(
            f"Enhanced journal draft with {metrics['llm_model']} "
            f"({metrics['llm_total_tokens']} tokens)"
        )
        return dataclasses.replace(entry, format_data=format_data)
