"""Runtime configuration for a voice panel session."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class PanelConfig(BaseModel):
    """Tunable parameters for audio, timing and prompt assembly.

    The defaults match a Gemini Live backend (16 kHz in, 24 kHz out).
    """

    # --- Audio ---
    input_sample_rate: int = Field(default=16000, gt=0)
    output_sample_rate: int = Field(default=24000, gt=0)
    frame_size: int = Field(default=1024, gt=0)
    volume_gain: float = Field(default=5.0, gt=0)
    playback_guard_s: float = Field(default=0.02, ge=0)

    # --- Inactivity ---
    idle_window_s: float = Field(default=6.0, gt=0)
    idle_rms_threshold: float = Field(default=0.01, ge=0)
    activity_throttle_s: float = Field(default=0.5, ge=0)

    # --- Connection ---
    connect_timeout_s: float = Field(default=10.0, gt=0)
    reopen_delay_s: float = Field(default=0.25, ge=0)
    greeting_delay_s: float = Field(default=0.2, ge=0)
    greeting_text: str | None = "Hello"
    vad: dict[str, Any] = Field(default_factory=dict)
    """Passed to the provider as ``provider_config`` (e.g. ``silence_duration_ms``)."""

    # --- Transcript / prompts ---
    candidate_label: str = "Candidate"
    candidate_bio: str = ""
    handoff_excerpt_lines: int = Field(default=6, ge=0)
