"""Artifact store writing to a local directory."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path

from panelkit.models.report import SavedArtifacts
from panelkit.store.base import ArtifactStore

logger = logging.getLogger("panelkit.store.file")

_WAV_HEADER_SIZE = 44


class FileArtifactStore(ArtifactStore):
    """Writes ``transcript_<timestamp>.wav`` and ``.txt`` into *directory*.

    The directory is created on first save.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    async def save(self, audio_wav: bytes, transcript: str) -> SavedArtifacts:
        if len(audio_wav) <= _WAV_HEADER_SIZE:
            logger.warning(
                "Recording holds no audio (%d bytes); the microphone may not have captured",
                len(audio_wav),
            )
        stamp = datetime.now(UTC).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        audio_path = self._directory / f"transcript_{stamp}.wav"
        text_path = self._directory / f"transcript_{stamp}.txt"
        await asyncio.to_thread(self._write, audio_path, audio_wav, text_path, transcript)
        logger.info("Saved session artifacts to %s (.wav, .txt)", audio_path.with_suffix(""))
        return SavedArtifacts(
            audio_uri=audio_path.resolve().as_uri(),
            transcript_uri=text_path.resolve().as_uri(),
            audio_bytes=len(audio_wav),
        )

    def _write(self, audio_path: Path, audio: bytes, text_path: Path, text: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        audio_path.write_bytes(audio)
        text_path.write_text(text, encoding="utf-8")
