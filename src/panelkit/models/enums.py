"""All string enums for panelkit."""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class SessionStatus(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    ACTIVE = "active"
    TRANSFERRING = "transferring"
    ENDED = "ended"
    ERRORED = "errored"


@unique
class SessionTrigger(StrEnum):
    """Named inputs to the session state machine."""

    START = "start"
    OPENED = "opened"
    TRANSFER = "transfer"
    RECONNECT = "reconnect"
    END = "end"
    FAIL = "fail"
    RESET = "reset"


@unique
class TransferReason(StrEnum):
    COLLEAGUE_INITIATED = "colleague_initiated"
    USER_REQUESTED = "user_requested"


@unique
class FactCheckVerdict(StrEnum):
    VERIFIED = "Verified"
    MISLEADING = "Misleading"
    FALSE = "False"
    UNVERIFIABLE = "Unverifiable"
