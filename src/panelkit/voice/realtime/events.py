"""Events emitted by realtime providers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum, unique
from typing import Any


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(UTC)


@unique
class RealtimeEventType(StrEnum):
    """Kinds of events a live connection produces, in arrival order."""

    OPENED = "opened"
    INPUT_TRANSCRIPT = "input_transcript"
    OUTPUT_TRANSCRIPT = "output_transcript"
    TURN_COMPLETE = "turn_complete"
    TOOL_CALL = "tool_call"
    AUDIO = "audio"
    INTERRUPTED = "interrupted"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class RealtimeEvent:
    """A single event from the backend.

    Only the fields relevant to ``type`` are set.
    """

    type: RealtimeEventType

    session_id: str
    """Id of the :class:`RealtimeSession` that produced the event."""

    text: str = ""
    """Transcript fragment (INPUT_TRANSCRIPT / OUTPUT_TRANSCRIPT)."""

    name: str = ""
    """Function name (TOOL_CALL)."""

    call_id: str = ""
    """Provider-assigned tool call id (TOOL_CALL)."""

    arguments: dict[str, Any] = field(default_factory=dict)
    """Parsed tool call arguments (TOOL_CALL)."""

    audio: bytes = b""
    """Raw 16-bit PCM (AUDIO)."""

    code: str = ""
    """Error code (ERROR)."""

    message: str = ""
    """Human-readable error description (ERROR) or close reason (CLOSED)."""

    timestamp: datetime = field(default_factory=_utcnow)
