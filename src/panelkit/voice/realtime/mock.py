"""Mock realtime voice provider for testing."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from panelkit.voice.realtime.base import RealtimeSession, RealtimeSessionState
from panelkit.voice.realtime.events import RealtimeEvent, RealtimeEventType
from panelkit.voice.realtime.provider import RealtimeEventCallback, RealtimeVoiceProvider


@dataclass
class MockCall:
    """Record of a method call for test assertions."""

    method: str
    args: dict[str, Any] = field(default_factory=dict)


class MockRealtimeProvider(RealtimeVoiceProvider):
    """Mock realtime voice provider for testing.

    Tracks all method calls and provides helpers to simulate backend
    events (transcripts, audio, tool calls, errors, closes).

    Args:
        auto_open: Emit OPENED as soon as ``connect`` succeeds.
        connect_delay: Seconds ``connect`` sleeps before succeeding.
        fail_connect: Make every ``connect`` raise ``ConnectionError``.

    Example:
        provider = MockRealtimeProvider()
        provider.on_event(events.append)

        await provider.connect(session, system_prompt="Hello")
        assert provider.calls[-1].method == "connect"

        await provider.simulate_output_transcript(session, "Hi there")
        await provider.simulate_tool_call(session, "transfer", {"colleague": "bob"})
    """

    def __init__(
        self,
        *,
        auto_open: bool = True,
        connect_delay: float = 0.0,
        fail_connect: bool = False,
    ) -> None:
        self.auto_open = auto_open
        self.connect_delay = connect_delay
        self.fail_connect = fail_connect

        self.calls: list[MockCall] = []
        self.sent_audio: list[tuple[str, bytes]] = []
        self.sent_texts: list[tuple[str, str]] = []  # (session_id, text)
        self.sessions: list[RealtimeSession] = []
        self._open: dict[str, RealtimeSession] = {}
        self._callbacks: list[RealtimeEventCallback] = []

    @property
    def name(self) -> str:
        return "MockRealtimeProvider"

    @property
    def last_session(self) -> RealtimeSession:
        """The most recently connected session."""
        return self.sessions[-1]

    @property
    def open_sessions(self) -> list[RealtimeSession]:
        return list(self._open.values())

    def connects(self) -> list[MockCall]:
        return [c for c in self.calls if c.method == "connect"]

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
        self.calls.append(
            MockCall(
                method="connect",
                args={
                    "session_id": session.id,
                    "persona_id": session.persona_id,
                    "system_prompt": system_prompt,
                    "voice": voice,
                    "tools": tools,
                    "input_sample_rate": input_sample_rate,
                    "output_sample_rate": output_sample_rate,
                    "provider_config": provider_config,
                },
            )
        )
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.fail_connect:
            session.state = RealtimeSessionState.ENDED
            raise ConnectionError("mock connect failure")

        session.state = RealtimeSessionState.ACTIVE
        session.provider_session_id = f"mock-{session.id}"
        self.sessions.append(session)
        self._open[session.id] = session
        if self.auto_open:
            await self._emit(RealtimeEvent(type=RealtimeEventType.OPENED, session_id=session.id))

    async def send_audio(self, session: RealtimeSession, audio: bytes) -> None:
        self.sent_audio.append((session.id, audio))
        self.calls.append(
            MockCall(method="send_audio", args={"session_id": session.id, "size": len(audio)})
        )

    async def send_text(self, session: RealtimeSession, text: str) -> None:
        self.sent_texts.append((session.id, text))
        self.calls.append(
            MockCall(method="send_text", args={"session_id": session.id, "text": text})
        )

    async def disconnect(self, session: RealtimeSession) -> None:
        self.calls.append(MockCall(method="disconnect", args={"session_id": session.id}))
        was_open = self._open.pop(session.id, None) is not None
        session.state = RealtimeSessionState.ENDED
        if was_open:
            await self._emit(
                RealtimeEvent(
                    type=RealtimeEventType.CLOSED,
                    session_id=session.id,
                    message="client disconnect",
                )
            )

    async def close(self) -> None:
        self._open.clear()
        self.calls.append(MockCall(method="close"))

    def on_event(self, callback: RealtimeEventCallback) -> None:
        self._callbacks.append(callback)

    async def _emit(self, event: RealtimeEvent) -> None:
        for cb in self._callbacks:
            result = cb(event)
            if hasattr(result, "__await__"):
                await result

    # -- Test helpers: simulate backend events --

    async def simulate_opened(self, session: RealtimeSession) -> None:
        """Simulate the backend accepting the connection (when auto_open is off)."""
        await self._emit(RealtimeEvent(type=RealtimeEventType.OPENED, session_id=session.id))

    async def simulate_audio(self, session: RealtimeSession, audio: bytes) -> None:
        """Simulate a block of synthesized speech."""
        await self._emit(
            RealtimeEvent(type=RealtimeEventType.AUDIO, session_id=session.id, audio=audio)
        )

    async def simulate_input_transcript(self, session: RealtimeSession, text: str) -> None:
        """Simulate a fragment of the user's transcribed speech."""
        await self._emit(
            RealtimeEvent(type=RealtimeEventType.INPUT_TRANSCRIPT, session_id=session.id, text=text)
        )

    async def simulate_output_transcript(self, session: RealtimeSession, text: str) -> None:
        """Simulate a fragment of the persona's transcribed speech."""
        await self._emit(
            RealtimeEvent(
                type=RealtimeEventType.OUTPUT_TRANSCRIPT, session_id=session.id, text=text
            )
        )

    async def simulate_turn_complete(self, session: RealtimeSession) -> None:
        """Simulate the end of a model turn."""
        await self._emit(
            RealtimeEvent(type=RealtimeEventType.TURN_COMPLETE, session_id=session.id)
        )

    async def simulate_interrupted(self, session: RealtimeSession) -> None:
        """Simulate the user barging in on the persona."""
        await self._emit(RealtimeEvent(type=RealtimeEventType.INTERRUPTED, session_id=session.id))

    async def simulate_tool_call(
        self,
        session: RealtimeSession,
        name: str,
        arguments: dict[str, Any] | None = None,
        call_id: str = "call-1",
    ) -> None:
        """Simulate a function call from the model."""
        await self._emit(
            RealtimeEvent(
                type=RealtimeEventType.TOOL_CALL,
                session_id=session.id,
                name=name,
                call_id=call_id,
                arguments=arguments or {},
            )
        )

    async def simulate_error(
        self, session: RealtimeSession, code: str = "error", message: str = "mock error"
    ) -> None:
        """Simulate a transport or protocol error."""
        await self._emit(
            RealtimeEvent(
                type=RealtimeEventType.ERROR,
                session_id=session.id,
                code=code,
                message=message,
            )
        )

    async def simulate_closed(self, session: RealtimeSession, reason: str = "server close") -> None:
        """Simulate the backend dropping the connection."""
        self._open.pop(session.id, None)
        session.state = RealtimeSessionState.ENDED
        await self._emit(
            RealtimeEvent(type=RealtimeEventType.CLOSED, session_id=session.id, message=reason)
        )
