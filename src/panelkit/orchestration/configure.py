"""Pre-session persona configuration through the text-analysis provider."""

from __future__ import annotations

import logging

from panelkit.models.persona import Persona, Roster
from panelkit.orchestration.prompts import render_persona_prompt
from panelkit.providers.brain.base import TextAnalysisProvider
from panelkit.providers.gemini.prompts import AVAILABLE_VOICES

logger = logging.getLogger("panelkit.orchestration.configure")


async def configure_persona(
    brain: TextAnalysisProvider,
    roster: Roster,
    persona: Persona,
    scenario: str = "",
) -> Persona:
    """Generate and store the prompt (and voice) of one persona.

    On failure the persona keeps its existing prompt and voice.
    """
    colleagues = [p for p in roster if p.id != persona.id]
    try:
        sections = await brain.configure_persona(persona, colleagues, scenario)
    except Exception as exc:
        logger.warning("Could not configure persona %s: %s", persona.id, exc)
        return persona

    update: dict[str, str] = {"prompt": render_persona_prompt(persona, sections)}
    voice = sections.selected_voice
    if voice in AVAILABLE_VOICES:
        update["voice"] = voice
    elif voice:
        logger.warning("Ignoring unknown voice %r for %s", voice, persona.id)

    configured = persona.model_copy(update=update)
    roster.replace(configured)
    logger.info("Configured persona %s (voice=%s)", persona.id, configured.voice)
    return configured


async def configure_roster(
    brain: TextAnalysisProvider,
    roster: Roster,
    scenario: str = "",
) -> Roster:
    """Configure every persona of *roster* in place, one at a time.

    Calls run in roster order so a provider that keeps conversation state
    sees the personas already configured. Individual failures are logged
    and never abort setup.
    """
    for persona in list(roster):
        await configure_persona(brain, roster, persona, scenario)
    return roster
