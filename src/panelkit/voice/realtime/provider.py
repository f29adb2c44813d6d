"""RealtimeVoiceProvider abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from panelkit.voice.realtime.base import RealtimeSession
from panelkit.voice.realtime.events import RealtimeEvent

RealtimeEventCallback = Callable[[RealtimeEvent], Any]
"""Sync or async callable receiving every event a provider emits."""


class RealtimeVoiceProvider(ABC):
    """Abstract base class for speech-to-speech backends.

    Wraps a duplex audio API (e.g. Gemini Live) with built-in VAD and
    transcription.  Providers emit :class:`RealtimeEvent` values to every
    callback registered with :meth:`on_event`; each event carries the id of
    the session that produced it.

    Providers never reconnect on their own.  A lost connection is reported
    as ERROR followed by CLOSED.

    Example:
        provider = GeminiLiveProvider(GeminiConfig(api_key="..."))
        provider.on_event(handle_event)

        await provider.connect(session, system_prompt="You are Alice.", voice="Kore")
        await provider.send_audio(session, audio_bytes)
        await provider.disconnect(session)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g. 'gemini_live')."""
        ...

    @abstractmethod
    async def connect(
        self,
        session: RealtimeSession,
        *,
        system_prompt: str | None = None,
        voice: str | None = None,
        tools: list[dict[str, Any]] | None = None,
        input_sample_rate: int = 16000,
        output_sample_rate: int = 24000,
        provider_config: dict[str, Any] | None = None,
    ) -> None:
        """Open a connection for *session*.

        Returns once the backend accepted the connection; an OPENED event
        is emitted at the same point.

        Args:
            session: The session to connect.
            system_prompt: System instructions for the persona.
            voice: Voice ID for audio output.
            tools: Function declarations the model may call.
            input_sample_rate: Sample rate of input audio (Hz).
            output_sample_rate: Sample rate of output audio (Hz).
            provider_config: Provider-specific options (VAD tuning etc.).
                Each provider documents which keys it accepts.
        """
        ...

    @abstractmethod
    async def send_audio(self, session: RealtimeSession, audio: bytes) -> None:
        """Send a block of 16-bit PCM input audio."""
        ...

    @abstractmethod
    async def send_text(self, session: RealtimeSession, text: str) -> None:
        """Send a complete user text turn."""
        ...

    @abstractmethod
    async def disconnect(self, session: RealtimeSession) -> None:
        """Close the connection for *session*."""
        ...

    async def close(self) -> None:
        """Release all provider resources."""

    @abstractmethod
    def on_event(self, callback: RealtimeEventCallback) -> None:
        """Register a callback for every emitted event."""
        ...
