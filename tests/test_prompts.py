"""Tests for persona prompt assembly and in-place prompt updates."""

from __future__ import annotations

import logging

import pytest

from panelkit.models.analysis import PromptSections
from panelkit.models.enums import TransferReason
from panelkit.models.transfer import HandoffContext
from panelkit.orchestration.prompts import (
    CLOSING_INSTRUCTIONS,
    INITIAL_HISTORY,
    WELCOME_NOTICE,
    attitude_for,
    build_system_instruction,
    build_transfer_block,
    render_persona_prompt,
    update_persona_prompt,
)
from tests.conftest import make_persona


@pytest.fixture
def prompt() -> str:
    sections = PromptSections(
        context="Seed-stage fintech pitch.",
        expertise="Unit economics.",
        character="You are Alice. Blunt.",
        question="What is your CAC payback?",
        colleagues="- Bob (tech)",
    )
    return render_persona_prompt(make_persona("alice", role="Investor"), sections)


class TestRenderPersonaPrompt:
    def test_sections_filled(self, prompt: str) -> None:
        assert "Name: Alice" in prompt
        assert "Role: Investor" in prompt
        assert "## 4. YOUR ASSIGNED QUESTION\nWhat is your CAC payback?" in prompt
        assert INITIAL_HISTORY in prompt
        assert prompt.rstrip().endswith("- Bob (tech)")


class TestUpdatePersonaPrompt:
    def test_replaces_question(self, prompt: str) -> None:
        updated = update_persona_prompt(prompt, "How do you retain users?", "")
        assert "How do you retain users?" in updated
        assert "What is your CAC payback?" not in updated
        assert "## 5. CANDIDATE HISTORY" in updated

    def test_appends_memory(self, prompt: str) -> None:
        once = update_persona_prompt(prompt, "", "Dodged the CAC question.")
        twice = update_persona_prompt(once, "", "Gave numbers later.")
        history = twice.split("## 5. CANDIDATE HISTORY (SATISFACTION LEVEL)")[1]
        history = history.split("## 6.")[0]
        assert INITIAL_HISTORY in history
        assert history.index("- Dodged the CAC question.") < history.index("- Gave numbers later.")

    def test_other_sections_untouched(self, prompt: str) -> None:
        updated = update_persona_prompt(prompt, "New question?", "Memory.")
        assert "## 6. COLLEAGUES & TRANSFERS\n- Bob (tech)" in updated
        assert "## 3. YOUR CHARACTER & TONE\nYou are Alice. Blunt." in updated

    def test_history_as_last_section(self) -> None:
        prompt = "## 5. CANDIDATE HISTORY (SATISFACTION LEVEL)\nNothing yet."
        updated = update_persona_prompt(prompt, "", "Was nervous.")
        assert updated.endswith("Nothing yet.\n\n- Was nervous.")

    def test_missing_sections_left_alone(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="panelkit.orchestration.prompts"):
            updated = update_persona_prompt("Free-form prompt.", "Q?", "M.")
        assert updated == "Free-form prompt."
        assert len(caplog.records) == 2

    def test_empty_update_is_noop(self, prompt: str) -> None:
        assert update_persona_prompt(prompt, "", "") == prompt


class TestSystemInstruction:
    def test_first_persona_gets_welcome(self, prompt: str) -> None:
        text = build_system_instruction(prompt, persona_name="Alice", candidate_bio="Founder")
        assert text.startswith(prompt)
        assert '[CANDIDATE INFO]: "Founder".' in text
        assert WELCOME_NOTICE in text
        assert CLOSING_INSTRUCTIONS not in text

    def test_blank_bio_omitted(self, prompt: str) -> None:
        text = build_system_instruction(prompt, persona_name="Alice", candidate_bio="  ")
        assert "CANDIDATE INFO" not in text

    def test_handoff_block_comes_first(self, prompt: str) -> None:
        handoff = HandoffContext(
            from_name="Bob",
            reason=TransferReason.COLLEAGUE_INITIATED,
            summary="Covered the stack.",
            excerpt=["Candidate: We use Postgres.", "Bob: Thanks."],
        )
        text = build_system_instruction(prompt, persona_name="Alice", handoff=handoff)
        assert text.startswith("[SYSTEM EVENT: LIVE TRANSFER]")
        assert text.index("RECENT TRANSCRIPT:") < text.index(prompt)
        assert WELCOME_NOTICE not in text

    def test_final_turn_appends_closing(self, prompt: str) -> None:
        text = build_system_instruction(prompt, persona_name="Alice", final_turn=True)
        assert text.endswith(CLOSING_INSTRUCTIONS)


class TestTransferBlock:
    def test_fields(self) -> None:
        handoff = HandoffContext(
            from_name="Bob", reason=TransferReason.USER_REQUESTED, summary="Wants Alice."
        )
        block = build_transfer_block(handoff, "Alice")
        assert "FROM: Bob" in block
        assert "TO: Alice" in block
        assert "REASON: user_requested" in block
        assert 'CONTEXT: "Wants Alice."' in block
        assert "RECENT TRANSCRIPT" not in block

    def test_attitude(self) -> None:
        assert "USER REQUEST" in attitude_for(TransferReason.USER_REQUESTED, "Bob")
        assert "Thanks Bob" in attitude_for(TransferReason.COLLEAGUE_INITIATED, "Bob")
