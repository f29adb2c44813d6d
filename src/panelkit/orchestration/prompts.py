"""System instruction assembly for personas."""

from __future__ import annotations

import logging
import re

from panelkit.models.analysis import PromptSections
from panelkit.models.enums import TransferReason
from panelkit.models.persona import Persona
from panelkit.models.transfer import HandoffContext

logger = logging.getLogger("panelkit.orchestration.prompts")

PERSONA_TEMPLATE = """\
# IDENTITY
Name: {name}
Role: {role}

# PROTOCOL
- **TASK:** Ask your question, listen to the answer and, if needed, ask one clarification.
- **LANGUAGE:** Always speak English.
- **ANSWER QUALITY:** Push for a precise, convincing answer.
- **TRANSITION TRIGGER:** Once your question is answered, use the tool you were given.
- **BREVITY IS KING:** Keep your responses concise.

# DYNAMIC CONFIGS

## 1. CONTEXT & TASK
{context}

## 2. YOUR AREA OF EXPERTISE
{expertise}

## 3. YOUR CHARACTER & TONE
{character}

## 4. YOUR ASSIGNED QUESTION
{question}

## 5. CANDIDATE HISTORY (SATISFACTION LEVEL)
{history}

## 6. COLLEAGUES & TRANSFERS
{colleagues}
"""

INITIAL_HISTORY = "Session just started. No history yet."

NUDGE_TEXT = (
    "[SYSTEM NOTICE]: The candidate has been silent for a while. "
    "Briefly check whether they are still there and repeat your question if needed."
)

WELCOME_NOTICE = (
    '[SYSTEM NOTICE]: Welcome the candidate and start the interview when you hear '
    'the "Hello" trigger.'
)

CLOSING_INSTRUCTIONS = """\
[FINAL TURN]
You are the last interviewer. Ask your question and listen to the answer.
Do NOT transfer to anyone. When you are done, thank the candidate, say goodbye
and call the `end_session` tool."""

_QUESTION_SECTION = re.compile(
    r"(#+ 4\. YOUR ASSIGNED QUESTION[ \t]*\r?\n)(.*?)(?=[\r\n]+#+ 5)",
    re.DOTALL,
)
_HISTORY_SECTION = re.compile(
    r"(#+ 5\. CANDIDATE HISTORY \(SATISFACTION LEVEL\)[ \t]*\r?\n)(.*?)(?=[\r\n]+#+ 6|\Z)",
    re.DOTALL,
)


def render_persona_prompt(persona: Persona, sections: PromptSections) -> str:
    """Fill :data:`PERSONA_TEMPLATE` for *persona*."""
    return PERSONA_TEMPLATE.format(
        name=persona.name,
        role=persona.role,
        context=sections.context,
        expertise=sections.expertise,
        character=sections.character,
        question=sections.question,
        history=INITIAL_HISTORY,
        colleagues=sections.colleagues,
    )


def attitude_for(reason: TransferReason, from_name: str) -> str:
    if reason is TransferReason.USER_REQUESTED:
        return (
            "[MODE: USER REQUEST] The candidate asked to speak to you. "
            "Acknowledge this politely (\"I'm here. What's on your mind?\")."
        )
    return (
        f"[MODE: HANDOFF] {from_name} passed the conversation to you. "
        f'Acknowledge them ("Thanks {from_name}") and continue the inquiry seamlessly.'
    )


def build_transfer_block(handoff: HandoffContext, to_name: str) -> str:
    lines = [
        "[SYSTEM EVENT: LIVE TRANSFER]",
        f"FROM: {handoff.from_name}",
        f"TO: {to_name}",
        f"REASON: {handoff.reason}",
        f'CONTEXT: "{handoff.summary}"',
    ]
    if handoff.excerpt:
        lines += ["", "RECENT TRANSCRIPT:", *handoff.excerpt]
    lines += ["", "INSTRUCTION:", attitude_for(handoff.reason, handoff.from_name)]
    return "\n".join(lines)


def build_system_instruction(
    persona_prompt: str,
    *,
    persona_name: str = "",
    candidate_bio: str = "",
    handoff: HandoffContext | None = None,
    final_turn: bool = False,
) -> str:
    """Assemble the instruction a persona's connection opens with.

    The hand-off block goes first so it takes priority; candidate info, the
    welcome notice (first persona only) and closing instructions follow the
    persona's own prompt.
    """
    parts: list[str] = []
    if handoff is not None:
        parts.append(build_transfer_block(handoff, persona_name))
    parts.append(persona_prompt)
    if candidate_bio.strip():
        parts.append(f'[CANDIDATE INFO]: "{candidate_bio.strip()}".')
    if handoff is None:
        parts.append(WELCOME_NOTICE)
    if final_turn:
        parts.append(CLOSING_INSTRUCTIONS)
    return "\n\n".join(parts)


def update_persona_prompt(prompt: str, next_question: str, memory_update: str) -> str:
    """Replace the assigned question and append a memory line to the history.

    A missing section is logged and left alone.
    """
    updated = prompt

    if next_question:
        if _QUESTION_SECTION.search(updated):
            updated = _QUESTION_SECTION.sub(
                lambda m: f"{m.group(1)}{next_question}", updated, count=1
            )
        else:
            logger.warning("Question section not found; prompt question left unchanged")

    if memory_update:
        if _HISTORY_SECTION.search(updated):
            updated = _HISTORY_SECTION.sub(
                lambda m: f"{m.group(1)}{m.group(2).strip()}\n\n- {memory_update}",
                updated,
                count=1,
            )
        else:
            logger.warning("History section not found; memory not recorded")

    return updated
