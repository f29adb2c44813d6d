"""In-memory artifact store for development and testing."""

from __future__ import annotations

from panelkit.models.report import SavedArtifacts
from panelkit.store.base import ArtifactStore


class InMemoryArtifactStore(ArtifactStore):
    """Keeps every saved pair in memory; the latest is at ``saved[-1]``."""

    def __init__(self) -> None:
        self.saved: list[tuple[bytes, str]] = []

    @property
    def latest(self) -> tuple[bytes, str] | None:
        return self.saved[-1] if self.saved else None

    async def save(self, audio_wav: bytes, transcript: str) -> SavedArtifacts:
        self.saved.append((audio_wav, transcript))
        index = len(self.saved) - 1
        return SavedArtifacts(
            audio_uri=f"memory://{index}/audio.wav",
            transcript_uri=f"memory://{index}/transcript.txt",
            audio_bytes=len(audio_wav),
        )
