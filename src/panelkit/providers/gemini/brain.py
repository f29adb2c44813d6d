"""Gemini text-analysis provider: persona setup, hand-off briefings and the verdict."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from panelkit.errors import EnrichmentError
from panelkit.models.analysis import FactCheck, PromptSections, TransferBriefing, Verdict
from panelkit.models.enums import TransferReason
from panelkit.models.persona import Persona
from panelkit.providers.brain.base import TextAnalysisProvider
from panelkit.providers.gemini.config import GeminiConfig
from panelkit.providers.gemini.prompts import (
    BRAIN_SYSTEM_PROMPT,
    brief_transfer_prompt,
    configure_persona_prompt,
    final_verdict_prompt,
)

logger = logging.getLogger("panelkit.providers.gemini.brain")

_JSON_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


class _PersonaConfigSchema(BaseModel):
    context_section: str = Field(description="Scenario details relevant to this interviewer.")
    expertise_section: str = Field(description="How to behave as this expert (tone, focus).")
    character_section: str = Field(description="Personality; must start with 'You are <Name>'.")
    question_section: str = Field(description="Exactly one specific, hard question.")
    colleagues_section: str = Field(description="Other panel members and when to transfer.")
    selected_voice: Literal["Puck", "Charon", "Kore", "Fenrir", "Zephyr"]


class _BriefingSchema(BaseModel):
    grade: float = Field(description="0-100 grade of the candidate's recent answer.")
    critique: str
    memory_update: str
    next_question: str


class _VerdictPayload(BaseModel):
    session_summary: str = ""
    final_score: float = 0
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    fact_checks: list[FactCheck] = Field(default_factory=list)
    improvement_plan: list[str] = Field(default_factory=list)


def _extract_json(text: str) -> Any:
    """Parse JSON, tolerating a surrounding markdown code block."""
    match = _JSON_BLOCK.search(text)
    raw = match.group(1) if match else text
    return json.loads(raw.strip())


class GeminiTextAnalysisProvider(TextAnalysisProvider):
    """Brain backed by one persistent Gemini chat.

    All three phases share the chat so later calls see earlier context
    (the personas configured, previous briefings).
    """

    def __init__(self, config: GeminiConfig) -> None:
        try:
            from google import genai as _genai
            from google.genai import types as _types
        except ImportError as exc:
            raise ImportError(
                "google-genai is required for GeminiTextAnalysisProvider. "
                "Install it with: pip install panelkit[gemini]"
            ) from exc

        self._config = config
        self._types = _types
        self._client = _genai.Client(api_key=config.api_key.get_secret_value())
        self._chat: Any = None

    @property
    def name(self) -> str:
        return "GeminiTextAnalysisProvider"

    @property
    def model_name(self) -> str:
        return self._config.brain_model

    def _get_chat(self) -> Any:
        if self._chat is None:
            logger.info("Creating Brain chat session (model=%s)", self._config.brain_model)
            self._chat = self._client.aio.chats.create(
                model=self._config.brain_model,
                config=self._types.GenerateContentConfig(
                    system_instruction=BRAIN_SYSTEM_PROMPT,
                    temperature=self._config.temperature,
                ),
            )
        return self._chat

    async def _send(self, prompt: str, config: Any = None) -> str:
        chat = self._get_chat()
        try:
            response = await chat.send_message(prompt, config=config)
        except Exception as exc:
            raise EnrichmentError(f"Gemini Brain request failed: {exc}") from exc
        text = response.text or ""
        logger.debug("Brain response (%d chars)", len(text))
        return text

    def _json_config(self, schema: type[BaseModel]) -> Any:
        return self._types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
        )

    async def configure_persona(
        self,
        persona: Persona,
        colleagues: list[Persona],
        scenario: str = "",
    ) -> PromptSections:
        logger.info("Configuring persona %s", persona.id)
        text = await self._send(
            configure_persona_prompt(persona, colleagues, scenario),
            self._json_config(_PersonaConfigSchema),
        )
        try:
            data = _PersonaConfigSchema.model_validate_json(text)
        except ValidationError as exc:
            raise EnrichmentError(f"Malformed persona configuration: {exc}") from exc
        return PromptSections(
            context=data.context_section,
            expertise=data.expertise_section,
            character=data.character_section,
            question=data.question_section,
            colleagues=data.colleagues_section,
            selected_voice=data.selected_voice,
        )

    async def brief_transfer(
        self,
        from_name: str,
        to_name: str,
        transcript: str,
        summary: str,
        reason: TransferReason,
    ) -> TransferBriefing:
        logger.info("Briefing hand-off %s -> %s (%s)", from_name, to_name, reason)
        text = await self._send(
            brief_transfer_prompt(from_name, to_name, transcript, summary, reason),
            self._json_config(_BriefingSchema),
        )
        try:
            data = _BriefingSchema.model_validate_json(text)
        except ValidationError as exc:
            raise EnrichmentError(f"Malformed hand-off briefing: {exc}") from exc
        return TransferBriefing(
            grade=min(100.0, max(0.0, data.grade)),
            critique=data.critique,
            memory_update=data.memory_update,
            next_question=data.next_question,
        )

    async def final_verdict(self, transcript: str) -> Verdict:
        logger.info("Requesting final verdict (%d chars of transcript)", len(transcript))
        # Search grounding cannot be combined with a response schema
        config = self._types.GenerateContentConfig(
            tools=[self._types.Tool(google_search=self._types.GoogleSearch())],
        )
        text = await self._send(final_verdict_prompt(transcript), config)
        try:
            payload = _VerdictPayload.model_validate(_extract_json(text))
        except (ValueError, ValidationError) as exc:
            raise EnrichmentError(f"Malformed verdict: {exc}") from exc
        return Verdict(
            score=min(100.0, max(0.0, payload.final_score)),
            summary=payload.session_summary,
            fact_checks=payload.fact_checks,
            pros=payload.pros,
            cons=payload.cons,
            plan=payload.improvement_plan,
        )

    async def close(self) -> None:
        """Release the genai client reference."""
        self._chat = None
        self._client = None  # type: ignore[assignment]
