"""AudioFrame data model for captured and synthesized audio."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

SAMPLE_WIDTH = 2
"""Bytes per sample; every frame is mono 16-bit little-endian PCM."""


@dataclass
class AudioFrame:
    """A block of mono PCM16 audio.

    Used for both directions: microphone blocks (16 kHz) on the way to the
    backend and synthesized speech (24 kHz) on the way to the speakers.
    """

    data: bytes
    """Raw audio bytes (mono PCM16, little-endian)."""

    sample_rate: int = 16000
    """Sample rate in Hz."""

    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.data, bytes):
            raise ValueError("AudioFrame.data must be bytes")
        if self.sample_rate <= 0 or self.sample_rate > 192_000:
            raise ValueError(f"sample_rate must be between 1 and 192000, got {self.sample_rate}")
        if len(self.data) % SAMPLE_WIDTH != 0:
            raise ValueError(
                f"data length ({len(self.data)}) is not whole 16-bit samples"
            )

    @property
    def num_samples(self) -> int:
        return len(self.data) // SAMPLE_WIDTH

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.num_samples / self.sample_rate
