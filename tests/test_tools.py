"""Tests for tool declarations and transfer validation."""

from __future__ import annotations

import pytest

from panelkit.errors import ToolCallValidationError
from panelkit.models.enums import TransferReason
from panelkit.models.persona import TicketLedger
from panelkit.orchestration.tools import (
    END_SESSION_TOOL_NAME,
    TRANSFER_TOOL_NAME,
    build_tool_set,
    build_transfer_tool,
    is_final_turn,
    validate_transfer,
)
from tests.conftest import make_roster


def _args(colleague: str, reason: str = "colleague_initiated", context: str = "done") -> dict:
    return {"colleague": colleague, "reason": reason, "conversation_context": context}


class TestBuildToolSet:
    def test_transfer_lists_only_eligible_targets(self) -> None:
        roster = make_roster(alice=1, bob=0, carol=2)
        ledger = TicketLedger(roster)
        tools = build_tool_set(roster, ledger, "alice", final_turn=False)

        assert len(tools) == 1
        assert tools[0]["name"] == TRANSFER_TOOL_NAME
        enum = tools[0]["parameters"]["properties"]["colleague"]["enum"]
        assert enum == ["carol"]
        assert "Carol" in tools[0]["description"]

    def test_final_turn_offers_end_session_only(self) -> None:
        roster = make_roster(alice=1, bob=1)
        ledger = TicketLedger(roster)
        tools = build_tool_set(roster, ledger, "alice", final_turn=True)
        assert [t["name"] for t in tools] == [END_SESSION_TOOL_NAME]

    def test_no_targets_offers_end_session(self) -> None:
        roster = make_roster(alice=2, bob=0)
        ledger = TicketLedger(roster)
        tools = build_tool_set(roster, ledger, "alice", final_turn=False)
        assert [t["name"] for t in tools] == [END_SESSION_TOOL_NAME]

    def test_transfer_tool_schema(self) -> None:
        roster = make_roster(alice=1, bob=1)
        tool = build_transfer_tool([roster.get("bob")])
        params = tool["parameters"]
        assert params["required"] == ["colleague", "reason", "conversation_context"]
        assert params["properties"]["reason"]["enum"] == [r.value for r in TransferReason]

    def test_transfer_tool_needs_targets(self) -> None:
        with pytest.raises(ValueError):
            build_transfer_tool([])


class TestIsFinalTurn:
    def test_one_ticket_left_in_total(self) -> None:
        roster = make_roster(alice=1, bob=1)
        ledger = TicketLedger(roster)
        assert not is_final_turn(ledger, "alice")
        ledger.consume("alice")
        assert is_final_turn(ledger, "bob")

    def test_persona_without_tickets(self) -> None:
        ledger = TicketLedger(make_roster(alice=0, bob=3))
        assert is_final_turn(ledger, "alice")

    def test_no_one_else_to_take_over(self) -> None:
        ledger = TicketLedger(make_roster(alice=3, bob=0))
        assert is_final_turn(ledger, "alice")

    def test_plenty_left(self) -> None:
        ledger = TicketLedger(make_roster(alice=2, bob=2, carol=1))
        assert not is_final_turn(ledger, "bob")


class TestValidateTransfer:
    def test_valid(self) -> None:
        roster = make_roster(alice=1, bob=1)
        ledger = TicketLedger(roster)
        request = validate_transfer(
            _args("bob", "user_requested", "asked for Bob"), roster, ledger, "alice"
        )
        assert request.target_id == "bob"
        assert request.reason is TransferReason.USER_REQUESTED
        assert request.context == "asked for Bob"

    def test_resolves_display_name(self) -> None:
        roster = make_roster(alice=1, bob=1)
        ledger = TicketLedger(roster)
        assert validate_transfer(_args("BOB"), roster, ledger, "alice").target_id == "bob"

    def test_reason_defaults_to_colleague_initiated(self) -> None:
        roster = make_roster(alice=1, bob=1)
        ledger = TicketLedger(roster)
        request = validate_transfer({"colleague": "bob"}, roster, ledger, "alice")
        assert request.reason is TransferReason.COLLEAGUE_INITIATED
        assert request.context == ""

    @pytest.mark.parametrize(
        ("arguments", "match"),
        [
            ({}, "Missing"),
            ({"colleague": "   "}, "Missing"),
            ({"colleague": 3}, "Missing"),
            (_args("nobody"), "Unknown transfer target"),
            (_args("alice"), "itself"),
            (_args("carol"), "no tickets"),
            (_args("bob", reason="bored"), "Unknown transfer reason"),
        ],
    )
    def test_rejected(self, arguments: dict, match: str) -> None:
        roster = make_roster(alice=1, bob=1, carol=0)
        ledger = TicketLedger(roster)
        with pytest.raises(ToolCallValidationError, match=match):
            validate_transfer(arguments, roster, ledger, "alice")

    def test_departing_persona_without_tickets(self) -> None:
        roster = make_roster(alice=0, bob=1)
        ledger = TicketLedger(roster)
        with pytest.raises(ToolCallValidationError, match="Departing"):
            validate_transfer(_args("bob"), roster, ledger, "alice")
