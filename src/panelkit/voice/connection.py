"""One live backend connection, opened for one persona turn."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

from panelkit.errors import SessionConnectionError
from panelkit.models.persona import Persona
from panelkit.voice.audio_frame import AudioFrame
from panelkit.voice.realtime.base import RealtimeSession, RealtimeSessionState
from panelkit.voice.realtime.provider import RealtimeVoiceProvider

logger = logging.getLogger("panelkit.voice.connection")


class SessionConnection:
    """Single-use wrapper around a provider session.

    The connection is opened once, used for one persona turn and closed.
    Events arrive through the provider's ``on_event`` callbacks tagged with
    :attr:`session_id`; anything tagged with another id belongs to a
    connection that is already gone.

    Args:
        provider: Realtime backend.
        input_sample_rate: Rate of the audio sent with :meth:`send_audio_frame`.
        output_sample_rate: Rate requested for synthesized audio.
        connect_timeout: Seconds to wait for the backend to accept.
        provider_config: Provider-specific options (VAD tuning).
    """

    def __init__(
        self,
        provider: RealtimeVoiceProvider,
        *,
        input_sample_rate: int = 16000,
        output_sample_rate: int = 24000,
        connect_timeout: float = 10.0,
        provider_config: dict[str, Any] | None = None,
    ) -> None:
        self._provider = provider
        self._input_rate = input_sample_rate
        self._output_rate = output_sample_rate
        self._timeout = connect_timeout
        self._provider_config = provider_config

        self._session: RealtimeSession | None = None
        self._open = False
        self._closed = False
        self._send_tasks: set[asyncio.Task[None]] = set()
        self._send_errors = 0

    @property
    def session(self) -> RealtimeSession | None:
        return self._session

    @property
    def session_id(self) -> str | None:
        return self._session.id if self._session is not None else None

    @property
    def is_open(self) -> bool:
        return self._open and not self._closed

    async def open(
        self,
        persona: Persona,
        tool_set: list[dict[str, Any]],
        system_instruction: str,
    ) -> RealtimeSession:
        """Connect to the backend as *persona*.

        Raises:
            SessionConnectionError: The backend refused, failed or timed out.
        """
        if self._session is not None:
            raise SessionConnectionError("SessionConnection can only be opened once")

        session = RealtimeSession(id=uuid.uuid4().hex, persona_id=persona.id)
        self._session = session
        logger.info(
            "Opening session %s for %s (voice=%s, tools=%s)",
            session.id,
            persona.id,
            persona.voice,
            [t.get("name") for t in tool_set],
        )
        try:
            await asyncio.wait_for(
                self._provider.connect(
                    session,
                    system_prompt=system_instruction,
                    voice=persona.voice,
                    tools=tool_set,
                    input_sample_rate=self._input_rate,
                    output_sample_rate=self._output_rate,
                    provider_config=self._provider_config,
                ),
                timeout=self._timeout,
            )
        except TimeoutError as exc:
            await self._abandon(session)
            raise SessionConnectionError(
                f"Timed out after {self._timeout:.1f}s connecting as {persona.id}"
            ) from exc
        except Exception as exc:
            await self._abandon(session)
            raise SessionConnectionError(f"Could not connect as {persona.id}: {exc}") from exc

        if self._closed:
            # close() ran while the handshake was in flight
            await self._abandon(session)
            raise SessionConnectionError("Connection closed while opening")

        self._open = True
        return session

    def send_audio_frame(self, frame: AudioFrame) -> None:
        """Forward a capture frame without waiting for the network."""
        if not self.is_open or self._session is None:
            return
        task = asyncio.get_running_loop().create_task(
            self._provider.send_audio(self._session, frame.data)
        )
        self._send_tasks.add(task)
        task.add_done_callback(self._send_done)

    async def send_text_turn(self, text: str) -> None:
        """Send a complete user text turn.

        Raises:
            SessionConnectionError: The connection is not open or the send failed.
        """
        if not self.is_open or self._session is None:
            raise SessionConnectionError("Cannot send text: connection not open")
        try:
            await self._provider.send_text(self._session, text)
        except Exception as exc:
            raise SessionConnectionError(f"Failed to send text turn: {exc}") from exc

    async def close(self) -> None:
        """Disconnect from the backend. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        was_open = self._open
        self._open = False

        for task in list(self._send_tasks):
            task.cancel()
        self._send_tasks.clear()

        session = self._session
        if session is None or not was_open:
            return
        try:
            await self._provider.disconnect(session)
        except Exception:
            logger.warning("Error disconnecting session %s", session.id, exc_info=True)
        logger.info("Closed session %s (%d send errors)", session.id, self._send_errors)

    async def _abandon(self, session: RealtimeSession) -> None:
        session.state = RealtimeSessionState.ENDED
        try:
            await self._provider.disconnect(session)
        except Exception:
            logger.debug("Error cleaning up failed session %s", session.id, exc_info=True)

    def _send_done(self, task: asyncio.Task[None]) -> None:
        self._send_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._send_errors += 1
            # Log the first failure loudly, then only at debug level
            if self._send_errors == 1:
                logger.warning("Audio send failed: %s", exc)
            else:
                logger.debug("Audio send failed: %s", exc)
