"""Mock text-analysis provider for testing."""

from __future__ import annotations

import asyncio
from typing import Any

from panelkit.models.analysis import PromptSections, TransferBriefing, Verdict
from panelkit.models.enums import TransferReason
from panelkit.models.persona import Persona
from panelkit.providers.brain.base import TextAnalysisProvider
from panelkit.voice.realtime.mock import MockCall


class MockTextAnalysisProvider(TextAnalysisProvider):
    """Returns canned results and records every call.

    Args:
        sections: Result of ``configure_persona`` (default: derived from the persona).
        briefing: Result of ``brief_transfer``.
        verdict: Result of ``final_verdict``.
        fail: Exception raised by every call instead of returning.
        delay: Seconds each call sleeps first.
    """

    def __init__(
        self,
        *,
        sections: PromptSections | None = None,
        briefing: TransferBriefing | None = None,
        verdict: Verdict | None = None,
        fail: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.sections = sections
        self.briefing = briefing or TransferBriefing(
            grade=70,
            critique="Answered, but vaguely.",
            memory_update="Candidate gave a partial answer.",
            next_question="Can you quantify that?",
        )
        self.verdict = verdict or Verdict(score=75, summary="Solid session.")
        self.fail = fail
        self.delay = delay
        self.calls: list[MockCall] = []

    @property
    def name(self) -> str:
        return "MockTextAnalysisProvider"

    async def _maybe_fail(self, method: str, args: dict[str, Any]) -> None:
        self.calls.append(MockCall(method=method, args=args))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail is not None:
            raise self.fail

    async def configure_persona(
        self,
        persona: Persona,
        colleagues: list[Persona],
        scenario: str = "",
    ) -> PromptSections:
        await self._maybe_fail(
            "configure_persona",
            {
                "persona_id": persona.id,
                "colleagues": [c.id for c in colleagues],
                "scenario": scenario,
            },
        )
        if self.sections is not None:
            return self.sections
        return PromptSections(
            context=scenario,
            expertise=persona.role,
            character=f"You are {persona.name}.",
            question=f"What is your biggest risk, from {persona.name}'s view?",
            colleagues="\n".join(f"- {c.name} ({c.role})" for c in colleagues),
        )

    async def brief_transfer(
        self,
        from_name: str,
        to_name: str,
        transcript: str,
        summary: str,
        reason: TransferReason,
    ) -> TransferBriefing:
        await self._maybe_fail(
            "brief_transfer",
            {
                "from_name": from_name,
                "to_name": to_name,
                "transcript": transcript,
                "summary": summary,
                "reason": reason,
            },
        )
        return self.briefing

    async def final_verdict(self, transcript: str) -> Verdict:
        await self._maybe_fail("final_verdict", {"transcript": transcript})
        return self.verdict
