"""Tests for the Gemini text-analysis provider with a mocked google.genai."""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from panelkit.errors import EnrichmentError
from panelkit.models.enums import FactCheckVerdict, TransferReason
from panelkit.providers.gemini.brain import GeminiTextAnalysisProvider, _extract_json
from panelkit.providers.gemini.config import GeminiConfig
from tests.conftest import make_persona


def _mock_genai_module() -> MagicMock:
    mod = MagicMock()
    types = MagicMock()
    for name in ("GenerateContentConfig", "Tool", "GoogleSearch"):
        setattr(types, name, MagicMock(side_effect=lambda **kw: SimpleNamespace(**kw)))
    mod.types = types
    return mod


def _genai_modules(mock_genai: MagicMock) -> dict[str, Any]:
    return {
        "google": MagicMock(genai=mock_genai),
        "google.genai": mock_genai,
    }


def _provider(*replies: str | Exception) -> tuple[GeminiTextAnalysisProvider, MagicMock]:
    genai = _mock_genai_module()
    chat = MagicMock()
    chat.send_message = AsyncMock(
        side_effect=[r if isinstance(r, Exception) else SimpleNamespace(text=r) for r in replies]
    )
    genai.Client.return_value.aio.chats.create.return_value = chat
    with patch.dict("sys.modules", _genai_modules(genai)):
        provider = GeminiTextAnalysisProvider(GeminiConfig(api_key="test-key"))
    return provider, genai


PERSONA_JSON = json.dumps(
    {
        "context_section": "Seed round for a dental SaaS.",
        "expertise_section": "Growth investor.",
        "character_section": "You are Alice. Direct.",
        "question_section": "What is your churn?",
        "colleagues_section": "- Bob: technical questions.",
        "selected_voice": "Fenrir",
    }
)

BRIEFING_JSON = json.dumps(
    {
        "grade": 140,
        "critique": "Hand-wavy.",
        "memory_update": "Avoided churn numbers.",
        "next_question": "Give me the monthly churn.",
    }
)

VERDICT_TEXT = """Here is my verdict:
```json
{
  "session_summary": "Confident but vague.",
  "final_score": 62,
  "pros": ["Clear market"],
  "cons": ["No metrics"],
  "fact_checks": [
    {"claim": "Dentists spend $2B on software", "verdict": "Misleading",
     "context": "Closer to $1B", "source": "https://example.org"}
  ],
  "improvement_plan": ["Bring churn data"]
}
```"""


class TestExtractJson:
    def test_plain(self) -> None:
        assert _extract_json('{"a": 1}') == {"a": 1}

    def test_fenced(self) -> None:
        assert _extract_json('text\n```json\n{"a": 1}\n```\nmore') == {"a": 1}

    def test_invalid(self) -> None:
        with pytest.raises(ValueError):
            _extract_json("no json here")


class TestConfigurePersona:
    async def test_sections_and_voice(self) -> None:
        provider, genai = _provider(PERSONA_JSON)
        alice, bob = make_persona("alice"), make_persona("bob")

        sections = await provider.configure_persona(alice, [bob], "Dental SaaS pitch")

        assert sections.question == "What is your churn?"
        assert sections.character.startswith("You are Alice")
        assert sections.selected_voice == "Fenrir"

        create = genai.Client.return_value.aio.chats.create
        assert create.call_args.kwargs["model"] == "gemini-2.5-flash"
        chat = create.return_value
        prompt = chat.send_message.call_args.args[0]
        assert "Dental SaaS pitch" in prompt
        assert "Bob" in prompt
        config = chat.send_message.call_args.kwargs["config"]
        assert config.response_mime_type == "application/json"

    async def test_chat_is_reused(self) -> None:
        provider, genai = _provider(PERSONA_JSON, PERSONA_JSON)
        await provider.configure_persona(make_persona("alice"), [], "")
        await provider.configure_persona(make_persona("bob"), [], "")
        assert genai.Client.return_value.aio.chats.create.call_count == 1

    async def test_malformed(self) -> None:
        provider, _ = _provider('{"context_section": "only this"}')
        with pytest.raises(EnrichmentError, match="Malformed persona"):
            await provider.configure_persona(make_persona("alice"), [], "")

    async def test_request_failure_wrapped(self) -> None:
        provider, _ = _provider(RuntimeError("429 quota"))
        with pytest.raises(EnrichmentError, match="429 quota"):
            await provider.configure_persona(make_persona("alice"), [], "")


class TestBriefTransfer:
    async def test_grade_clamped(self) -> None:
        provider, genai = _provider(BRIEFING_JSON)
        briefing = await provider.brief_transfer(
            "Alice", "Bob", "Alice: Churn?", "Covered churn.", TransferReason.COLLEAGUE_INITIATED
        )
        assert briefing.grade == 100
        assert briefing.next_question == "Give me the monthly churn."
        prompt = genai.Client.return_value.aio.chats.create.return_value.send_message.call_args
        assert "Alice: Churn?" in prompt.args[0]


class TestFinalVerdict:
    async def test_parses_fenced_json(self) -> None:
        provider, genai = _provider(VERDICT_TEXT)
        verdict = await provider.final_verdict("Alice: Churn?\nCandidate: Low.")

        assert verdict.score == 62
        assert verdict.summary == "Confident but vague."
        assert verdict.pros == ["Clear market"]
        assert verdict.plan == ["Bring churn data"]
        assert verdict.fact_checks[0].verdict is FactCheckVerdict.MISLEADING
        assert verdict.fact_checks[0].source == "https://example.org"

        config = genai.Client.return_value.aio.chats.create.return_value.send_message.call_args
        assert config.kwargs["config"].tools[0].google_search is not None

    async def test_malformed(self) -> None:
        provider, _ = _provider("I cannot produce a verdict.")
        with pytest.raises(EnrichmentError, match="Malformed verdict"):
            await provider.final_verdict("x")


class TestImport:
    def test_missing_library(self) -> None:
        with (
            patch.dict("sys.modules", {"google": None, "google.genai": None}),
            pytest.raises(ImportError, match="pip install panelkit\\[gemini\\]"),
        ):
            GeminiTextAnalysisProvider(GeminiConfig(api_key="k"))
