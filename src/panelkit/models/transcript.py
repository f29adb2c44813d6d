"""Transcript entry model."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class TranscriptEntry(BaseModel):
    """One line of the conversation transcript, in arrival order."""

    speaker: str
    text: str
    sequence: int = Field(ge=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def as_line(self) -> str:
        return f"{self.speaker}: {self.text}"
