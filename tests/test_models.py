"""Tests for persona, roster, ledger and transcript models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from panelkit.models.analysis import TransferBriefing, Verdict
from panelkit.models.persona import Persona, Roster, TicketLedger
from panelkit.models.transcript import TranscriptEntry
from tests.conftest import make_persona, make_roster


class TestPersona:
    def test_defaults(self) -> None:
        p = Persona(id="a", name="Alice")
        assert p.tickets == 1
        assert p.voice == "Puck"
        assert p.prompt == ""

    def test_negative_tickets_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Persona(id="a", name="Alice", tickets=-1)


class TestRoster:
    def test_order_preserved(self) -> None:
        roster = make_roster(carol=1, alice=2, bob=0)
        assert roster.ids == ["carol", "alice", "bob"]
        assert roster.first.id == "carol"
        assert len(roster) == 3
        assert "alice" in roster

    def test_duplicate_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate"):
            Roster([make_persona("a"), make_persona("a")])

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError):
            Roster([])

    def test_get_unknown(self) -> None:
        roster = make_roster(alice=1)
        with pytest.raises(KeyError):
            roster.get("nobody")

    def test_resolve_by_id(self) -> None:
        roster = make_roster(alice=1, bob=1)
        assert roster.resolve("bob").id == "bob"

    def test_resolve_by_name_case_insensitive(self) -> None:
        roster = Roster([make_persona("p1", name="Dr. Kore"), make_persona("p2", name="Zephyr")])
        assert roster.resolve("dr. kore").id == "p1"
        assert roster.resolve("  ZEPHYR ").id == "p2"

    def test_resolve_does_not_match_substrings(self) -> None:
        roster = Roster([make_persona("p1", name="Dr. Kore")])
        assert roster.resolve("Kore") is None
        assert roster.resolve("p") is None

    def test_with_prompt_replaces_model(self) -> None:
        roster = make_roster(alice=1)
        before = roster.get("alice")
        updated = roster.with_prompt("alice", "new prompt")
        assert updated.prompt == "new prompt"
        assert roster.get("alice").prompt == "new prompt"
        assert before.prompt != "new prompt"

    def test_replace_requires_known_id(self) -> None:
        roster = make_roster(alice=1)
        with pytest.raises(KeyError):
            roster.replace(make_persona("zed"))


class TestTicketLedger:
    def test_initial_counts(self) -> None:
        ledger = TicketLedger(make_roster(alice=2, bob=1))
        assert ledger.remaining("alice") == 2
        assert ledger.total() == 3
        assert ledger.snapshot() == {"alice": 2, "bob": 1}

    def test_consume(self) -> None:
        ledger = TicketLedger(make_roster(alice=2, bob=1))
        assert ledger.consume("alice") == 1
        assert ledger.consume("alice") == 0
        assert ledger.total() == 1

    def test_consume_never_goes_negative(self) -> None:
        ledger = TicketLedger(make_roster(alice=0))
        with pytest.raises(ValueError):
            ledger.consume("alice")
        assert ledger.remaining("alice") == 0

    def test_eligible_targets_in_roster_order(self) -> None:
        ledger = TicketLedger(make_roster(alice=1, bob=0, carol=1, dave=2))
        assert ledger.eligible_targets() == ["alice", "carol", "dave"]
        assert ledger.eligible_targets(exclude="carol") == ["alice", "dave"]

    def test_ledger_does_not_mutate_personas(self) -> None:
        roster = make_roster(alice=1)
        ledger = TicketLedger(roster)
        ledger.consume("alice")
        assert roster.get("alice").tickets == 1


class TestAnalysisModels:
    def test_briefing_grade_bounds(self) -> None:
        with pytest.raises(ValidationError):
            TransferBriefing(grade=101)

    def test_verdict_defaults(self) -> None:
        v = Verdict()
        assert v.score == 0
        assert v.fact_checks == []


class TestTranscriptEntry:
    def test_as_line(self) -> None:
        entry = TranscriptEntry(speaker="Alice", text="Why now?", sequence=0)
        assert entry.as_line() == "Alice: Why now?"
        assert entry.timestamp.tzinfo is not None
