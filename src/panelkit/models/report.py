"""End-of-session report."""

from __future__ import annotations

from pydantic import BaseModel, Field

from panelkit.models.analysis import Verdict
from panelkit.models.enums import SessionStatus
from panelkit.models.transcript import TranscriptEntry


class SavedArtifacts(BaseModel):
    """Where the recording and transcript were written."""

    audio_uri: str
    transcript_uri: str
    audio_bytes: int = 0


class SessionReport(BaseModel):
    status: SessionStatus
    transcript: list[TranscriptEntry] = Field(default_factory=list)
    tickets: dict[str, int] = Field(default_factory=dict)
    handoff_count: int = 0
    artifacts: SavedArtifacts | None = None
    verdict: Verdict | None = None
    error: str | None = None
