"""Tests for the session state machine."""

from __future__ import annotations

import pytest

from panelkit.errors import InvalidTransitionError
from panelkit.models.enums import SessionStatus, SessionTrigger
from panelkit.orchestration.state import (
    TRANSITIONS,
    Connected,
    Disconnected,
    Session,
    can_fire,
)
from panelkit.voice.connection import SessionConnection
from panelkit.voice.realtime.mock import MockRealtimeProvider

S = SessionStatus
T = SessionTrigger


def _walk(session: Session, *triggers: SessionTrigger) -> None:
    for trigger in triggers:
        session.fire(trigger)


class TestTransitions:
    def test_happy_path(self) -> None:
        session = Session()
        _walk(session, T.START, T.OPENED, T.TRANSFER, T.RECONNECT, T.OPENED, T.END)
        assert session.status == S.ENDED
        assert [h.to_status for h in session.history] == [
            S.CONNECTING,
            S.ACTIVE,
            S.TRANSFERRING,
            S.CONNECTING,
            S.ACTIVE,
            S.ENDED,
        ]

    def test_error_returns_to_idle(self) -> None:
        session = Session()
        _walk(session, T.START, T.FAIL)
        assert session.status == S.ERRORED
        session.fire(T.RESET)
        assert session.status == S.IDLE

    @pytest.mark.parametrize("status", [S.CONNECTING, S.ACTIVE, S.TRANSFERRING])
    def test_live_statuses_can_end_and_fail(self, status: SessionStatus) -> None:
        assert can_fire(status, T.END)
        assert can_fire(status, T.FAIL)

    def test_ended_is_terminal(self) -> None:
        for trigger in SessionTrigger:
            assert not can_fire(S.ENDED, trigger)

    def test_transfer_only_from_active(self) -> None:
        sources = {status for (status, trigger) in TRANSITIONS if trigger is T.TRANSFER}
        assert sources == {S.ACTIVE}

    def test_invalid_transition_raises(self) -> None:
        session = Session()
        with pytest.raises(InvalidTransitionError) as exc_info:
            session.fire(T.TRANSFER)
        assert exc_info.value.status == S.IDLE
        assert exc_info.value.trigger == T.TRANSFER
        assert session.status == S.IDLE
        assert session.history == []

    def test_history_records_persona(self) -> None:
        session = Session()
        session.active_persona_id = "alice"
        session.fire(T.START)
        assert session.history[0].persona_id == "alice"
        assert session.history[0].trigger == T.START


class TestConnectionLink:
    def test_starts_disconnected(self) -> None:
        session = Session()
        assert isinstance(session.link, Disconnected)
        assert session.connection is None

    def test_connect_and_disconnect(self) -> None:
        session = Session()
        conn = SessionConnection(MockRealtimeProvider())
        session.connect(conn)
        assert isinstance(session.link, Connected)
        assert session.connection is conn

        assert session.disconnect() is conn
        assert session.connection is None
        assert session.disconnect() is None
