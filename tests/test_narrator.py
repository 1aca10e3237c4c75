"""Tests for the optional OpenAI narrative enhancer."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from autojournal.models.activity import ToolActivityData
from autojournal.signals import extract_signals
from autojournal.synthesis import synthesize_entry
from autojournal.synthesis.narrator import JournalNarrator

NOW = datetime(2024, 1, 5, 18, 0, tzinfo=timezone.utc)


def _response(content, model="gpt-4o-mini", total_tokens=321):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.model = model
    response.usage.total_tokens = total_tokens
    return response


@pytest.fixture
def activity_data(activity_factory):
    return [
        ToolActivityData(
            "github",
            [
                activity_factory(
                    "gh1", source_id="acme/api#3", title="Cut build time by 30%"
                )
            ],
        )
    ]


@pytest.fixture
def entry(activity_data):
    return synthesize_entry(
        activity_data,
        framework="ONE_ON_ONE",
        custom_prompt="Promotion packet",
        now=NOW,
    )


@pytest.fixture
def mock_client():
    return MagicMock()


@pytest.fixture
def narrator(mock_client):
    return JournalNarrator(api_key="sk-test", client=mock_client)


class TestEnhance:
    """Draft enhancement."""

    def test_fills_components_and_summary(
        self, narrator, mock_client, entry, activity_data
    ):
        mock_client.chat.completions.create.return_value = _response(
            json.dumps(
                {
                    "summary": " Shipped a faster build. ",
                    "components": {"wins": "Cut build time by 30%.", "asks": 7},
                }
            )
        )

        signals = extract_signals(activity_data)
        enhanced = narrator.enhance(entry, signals, activity_data)

        components = {
            c["name"]: c["content"]
            for c in enhanced.format_data["framework_components"]
        }
        assert components["wins"] == "Cut build time by 30%."
        assert components["asks"] == ""
        assert enhanced.format_data["ai_draft"]["summary"] == "Shipped a faster build."
        assert enhanced.format_data["ai_draft"]["llm_model"] == "gpt-4o-mini"
        assert enhanced.format_data["ai_draft"]["llm_total_tokens"] == 321
        assert enhanced.title == entry.title
        assert enhanced.full_content == entry.full_content

    def test_original_entry_untouched(
        self, narrator, mock_client, entry, activity_data
    ):
        mock_client.chat.completions.create.return_value = _response(
            json.dumps({"summary": "x", "components": {"wins": "y"}})
        )

        narrator.enhance(entry, extract_signals(activity_data), activity_data)

        assert "ai_draft" not in entry.format_data
        assert entry.format_data["framework_components"][0]["content"] == ""

    def test_requests_json_object(self, narrator, mock_client, entry, activity_data):
        mock_client.chat.completions.create.return_value = _response("{}")

        narrator.enhance(entry, extract_signals(activity_data), activity_data)

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["model"] == "gpt-4o-mini"

    @pytest.mark.parametrize("content", [None, "", "not json", "[1, 2]"])
    def test_bad_response_keeps_entry(
        self, narrator, mock_client, entry, activity_data, content
    ):
        mock_client.chat.completions.create.return_value = _response(content)

        result = narrator.enhance(entry, extract_signals(activity_data), activity_data)

        assert result is entry

    def test_api_error_keeps_entry(self, narrator, mock_client, entry, activity_data):
        mock_client.chat.completions.create.side_effect = RuntimeError("rate limited")

        result = narrator.enhance(entry, extract_signals(activity_data), activity_data)

        assert result is entry


class TestPrompt:
    """Prompt construction."""

    def test_prompt_includes_context(self, narrator, entry, activity_data):
        signals = extract_signals(activity_data)
        prompt = narrator.build_prompt(entry, signals, activity_data)

        assert "wins, challenges, focus, asks, feedback" in prompt
        assert "Dominant role: Drove" in prompt
        assert "Cut build time by 30%" in prompt
        assert "Focus: Promotion packet" in prompt
        assert "- [github] Cut build time by 30%" in prompt

    def test_prompt_caps_activities(self, narrator, activity_factory):
        data = [
            ToolActivityData(
                "jira",
                [activity_factory(str(i), title=f"Task {i}") for i in range(80)],
            )
        ]
        entry = synthesize_entry(data, now=NOW)

        prompt = narrator.build_prompt(entry, extract_signals(data), data)

        assert "Task 49" in prompt
        assert "Task 50" not in prompt


class TestFromSettings:
    """Construction from settings."""

    def test_disabled(self):
        with patch("autojournal.synthesis.narrator.settings") as mock_settings:
            mock_settings.journal_ai_enabled = False
            mock_settings.openai_api_key = "sk-test"
            assert JournalNarrator.from_settings() is None

    def test_enabled_without_key(self):
        with patch("autojournal.synthesis.narrator.settings") as mock_settings:
            mock_settings.journal_ai_enabled = True
            mock_settings.openai_api_key = ""
            assert JournalNarrator.from_settings() is None

    def test_enabled_with_key(self):
        with (
            patch("autojournal.synthesis.narrator.settings") as mock_settings,
            patch("autojournal.synthesis.narrator.OpenAI") as mock_openai,
        ):
            mock_settings.journal_ai_enabled = True
            mock_settings.openai_api_key = "sk-test"
            mock_settings.openai_model = "gpt-4o"
            mock_settings.openai_max_tokens = 500
            mock_settings.openai_timeout_s = 10.0

            narrator = JournalNarrator.from_settings()

        assert narrator is not None
        assert narrator.model == "gpt-4o"
        assert narrator.max_tokens == 500
        mock_openai.assert_called_once_with(api_key="sk-test", timeout=10.0)
