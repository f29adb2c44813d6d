"""Prompts sent to the Gemini text-analysis model."""

from __future__ import annotations

from panelkit.models.enums import TransferReason
from panelkit.models.persona import Persona

AVAILABLE_VOICES = ("Puck", "Charon", "Kore", "Fenrir", "Zephyr")

BRAIN_SYSTEM_PROMPT = """\
You are the supervisor of a high-pressure panel interview simulator.

A candidate presents their work (a pitch, a thesis, a design, a plan) to a
panel of AI interviewers who speak with them by voice, one at a time, and hand
the conversation to each other. You are never heard by the candidate. You:

1. Configure each interviewer: their context, expertise, tone, the single
   question they must ask, and who their colleagues are.
2. At every hand-off, grade the candidate's last answer (0-100), critique it,
   and write what the departing interviewer should remember and ask next.
3. When the session ends, audit the whole transcript, fact-check the
   candidate's concrete claims and produce a final verdict.

Be specific to the scenario. Generic questions are a failure.
"""


def configure_persona_prompt(persona: Persona, colleagues: list[Persona], scenario: str) -> str:
    if colleagues:
        colleagues_text = "\n".join(f"- {c.name} ({c.role}): {c.description}" for c in colleagues)
    else:
        colleagues_text = "NONE. This interviewer is the only one on the panel."
    voices = "\n".join(f"- {v}" for v in AVAILABLE_VOICES)

    return f"""[CONFIGURE INTERVIEWER]

Scenario:
{scenario or "(not provided)"}

Interviewer:
- Name: {persona.name}
- Role: {persona.role}
- Description: {persona.description}

Colleagues on the panel:
{colleagues_text}

Available voices:
{voices}

Produce this interviewer's configuration:
1. character: start with "You are {persona.name}". Keep their style brief and direct.
2. colleagues: who the colleagues are and when to transfer to them. With no
   colleagues, state that they are the sole interviewer.
3. question: EXACTLY ONE hard, specific question aimed at a weakness of the scenario.
4. selected_voice: the voice that best fits the name and role.
5. English only.

Return JSON matching the schema."""


def brief_transfer_prompt(
    from_name: str,
    to_name: str,
    transcript: str,
    summary: str,
    reason: TransferReason,
) -> str:
    return f"""[HAND-OFF REVIEW]

{from_name} is handing the candidate to {to_name} (reason: {reason}).

{from_name}'s summary:
"{summary}"

Recent transcript:
{transcript or "(empty)"}

Tasks:
1. grade: the candidate's last performance, 0-100.
2. critique: did they answer, dodge or bluff?
3. memory_update: one line {from_name} should remember about the candidate.
4. next_question: the question {from_name} should ask if they speak again,
   following up on the weakest point.

Return JSON matching the schema."""


def final_verdict_prompt(transcript: str) -> str:
    return f"""[FINAL VERDICT]

Transcript:
{transcript or "(empty)"}

You are the lead auditor. Evaluate the candidate's depth, clarity and accuracy.
Use search to fact-check concrete claims (numbers, benchmarks, library
features). Verdicts are one of: Verified, Misleading, False, Unverifiable.
Score 0-100: below 60 failed to defend the premise, 60-80 solid with gaps,
above 80 exceptional.

Answer in English with a single ```json code block and nothing else:
{{
  "session_summary": "2-3 sentences",
  "final_score": 0,
  "pros": ["..."],
  "cons": ["..."],
  "fact_checks": [
    {{"claim": "...", "verdict": "Verified", "context": "...", "source": "..."}}
  ],
  "improvement_plan": ["..."]
}}"""
