"""Abstract base class for session artifact storage."""

from __future__ import annotations

from abc import ABC, abstractmethod

from panelkit.models.report import SavedArtifacts


class ArtifactStore(ABC):
    """Persists the mixed recording and the line transcript of a session.

    Implement this ABC to plug in any storage backend. The library ships
    with :class:`FileArtifactStore` and :class:`InMemoryArtifactStore`.
    """

    @abstractmethod
    async def save(self, audio_wav: bytes, transcript: str) -> SavedArtifacts:
        """Persist one session's WAV bytes and transcript text."""
        ...
