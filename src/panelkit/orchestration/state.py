"""Session state machine for the live panel.

Status changes go through :meth:`Session.fire` and the explicit
:data:`TRANSITIONS` table; anything not in the table raises
:class:`~panelkit.errors.InvalidTransitionError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from panelkit.errors import InvalidTransitionError
from panelkit.models.enums import SessionStatus, SessionTrigger
from panelkit.voice.connection import SessionConnection

logger = logging.getLogger("panelkit.orchestration.state")

_S = SessionStatus
_T = SessionTrigger

TRANSITIONS: dict[tuple[SessionStatus, SessionTrigger], SessionStatus] = {
    (_S.IDLE, _T.START): _S.CONNECTING,
    (_S.CONNECTING, _T.OPENED): _S.ACTIVE,
    (_S.ACTIVE, _T.TRANSFER): _S.TRANSFERRING,
    (_S.TRANSFERRING, _T.RECONNECT): _S.CONNECTING,
    (_S.ACTIVE, _T.END): _S.ENDED,
    (_S.CONNECTING, _T.END): _S.ENDED,
    (_S.TRANSFERRING, _T.END): _S.ENDED,
    (_S.CONNECTING, _T.FAIL): _S.ERRORED,
    (_S.ACTIVE, _T.FAIL): _S.ERRORED,
    (_S.TRANSFERRING, _T.FAIL): _S.ERRORED,
    (_S.ERRORED, _T.RESET): _S.IDLE,
}


def can_fire(status: SessionStatus, trigger: SessionTrigger) -> bool:
    return (status, trigger) in TRANSITIONS


@dataclass(frozen=True)
class Disconnected:
    """No live connection."""


@dataclass(frozen=True)
class Connected:
    """A live connection exists; audio may be sent through it."""

    connection: SessionConnection


ConnectionLink = Disconnected | Connected


class StatusTransition(BaseModel):
    """Audit record for a status change."""

    from_status: SessionStatus
    to_status: SessionStatus
    trigger: SessionTrigger
    persona_id: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


@dataclass
class Session:
    """Status, active persona and connection link of the whole conversation."""

    status: SessionStatus = SessionStatus.IDLE
    active_persona_id: str | None = None
    link: ConnectionLink = field(default_factory=Disconnected)
    handoff_count: int = 0
    history: list[StatusTransition] = field(default_factory=list)

    def fire(self, trigger: SessionTrigger) -> SessionStatus:
        """Apply *trigger* and return the new status."""
        try:
            new_status = TRANSITIONS[(self.status, trigger)]
        except KeyError:
            raise InvalidTransitionError(self.status, trigger) from None
        self.history.append(
            StatusTransition(
                from_status=self.status,
                to_status=new_status,
                trigger=trigger,
                persona_id=self.active_persona_id,
            )
        )
        logger.info("Session %s -> %s (%s)", self.status, new_status, trigger)
        self.status = new_status
        return new_status

    @property
    def connection(self) -> SessionConnection | None:
        if isinstance(self.link, Connected):
            return self.link.connection
        return None

    def connect(self, connection: SessionConnection) -> None:
        self.link = Connected(connection)

    def disconnect(self) -> SessionConnection | None:
        """Drop the link and return the connection that was attached, if any."""
        connection = self.connection
        self.link = Disconnected()
        return connection
