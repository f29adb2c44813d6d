"""Google Gemini Live API provider for speech-to-speech conversations."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from panelkit.providers.gemini.config import GeminiConfig
from panelkit.voice.realtime.base import RealtimeSession, RealtimeSessionState
from panelkit.voice.realtime.events import RealtimeEvent, RealtimeEventType
from panelkit.voice.realtime.provider import RealtimeEventCallback, RealtimeVoiceProvider

logger = logging.getLogger("panelkit.providers.gemini.realtime")


class _GoAwayError(Exception):
    """Raised when the server announces it is about to drop the connection."""


class GeminiLiveProvider(RealtimeVoiceProvider):
    """Realtime voice provider using the Google Gemini Live API.

    One ``connect`` opens one live connection.  Server messages are mapped
    to :class:`RealtimeEvent` values; a dropped connection (including a
    GoAway notice) is reported as ERROR followed by CLOSED and is never
    re-established here.

    Requires the ``google-genai`` package.

    Supported ``provider_config`` keys: ``start_of_speech_sensitivity``,
    ``end_of_speech_sensitivity``, ``silence_duration_ms``,
    ``prefix_padding_ms``, ``language``.

    Example:
        provider = GeminiLiveProvider(GeminiConfig(api_key="..."))
        provider.on_event(handle_event)

        await provider.connect(session, system_prompt="You are Alice.", voice="Kore")
        await provider.send_audio(session, audio_bytes)
    """

    def __init__(self, config: GeminiConfig) -> None:
        try:
            from google import genai as _genai
            from google.genai import types as _types
        except ImportError as exc:
            raise ImportError(
                "google-genai is required for GeminiLiveProvider. "
                "Install it with: pip install panelkit[gemini]"
            ) from exc

        self._config = config
        self._types = _types
        # Tighter WebSocket keepalive to detect dead connections faster
        self._client = _genai.Client(
            api_key=config.api_key.get_secret_value(),
            http_options=_types.HttpOptions(
                async_client_args={
                    "ping_interval": 10,
                    "ping_timeout": 5,
                }
            ),
        )

        self._sessions: dict[str, RealtimeSession] = {}
        self._live_sessions: dict[str, Any] = {}
        self._live_ctxmgrs: dict[str, Any] = {}
        self._receive_tasks: dict[str, asyncio.Task[None]] = {}
        self._sample_rates: dict[str, int] = {}
        self._audio_chunk_count: dict[str, int] = {}
        self._send_audio_count: dict[str, int] = {}
        self._closed_emitted: set[str] = set()
        self._callbacks: list[RealtimeEventCallback] = []

    @property
    def name(self) -> str:
        return "GeminiLiveProvider"

    def _build_config(
        self,
        *,
        system_prompt: str | None,
        voice: str | None,
        tools: list[dict[str, Any]] | None,
        provider_config: dict[str, Any] | None,
    ) -> Any:
        types = self._types
        pc = provider_config or {}

        config: dict[str, Any] = {
            "response_modalities": ["AUDIO"],
            "input_audio_transcription": types.AudioTranscriptionConfig(),
            "output_audio_transcription": types.AudioTranscriptionConfig(),
            "temperature": self._config.temperature,
        }

        # --- Voice / language ---
        speech_kwargs: dict[str, Any] = {}
        if voice:
            speech_kwargs["voice_config"] = types.VoiceConfig(
                prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice)
            )
        language = pc.get("language")
        if language:
            speech_kwargs["language_code"] = language
        if speech_kwargs:
            config["speech_config"] = types.SpeechConfig(**speech_kwargs)

        if system_prompt:
            config["system_instruction"] = system_prompt

        # --- VAD ---
        vad_kwargs: dict[str, Any] = {}
        start_sensitivity = pc.get("start_of_speech_sensitivity")
        if start_sensitivity:
            vad_kwargs["start_of_speech_sensitivity"] = start_sensitivity.upper()
        end_sensitivity = pc.get("end_of_speech_sensitivity")
        if end_sensitivity:
            vad_kwargs["end_of_speech_sensitivity"] = end_sensitivity.upper()
        silence_duration_ms = pc.get("silence_duration_ms")
        if silence_duration_ms is not None:
            vad_kwargs["silence_duration_ms"] = int(silence_duration_ms)
        prefix_padding_ms = pc.get("prefix_padding_ms")
        if prefix_padding_ms is not None:
            vad_kwargs["prefix_padding_ms"] = int(prefix_padding_ms)
        if vad_kwargs:
            config["realtime_input_config"] = types.RealtimeInputConfig(
                automatic_activity_detection=types.AutomaticActivityDetection(**vad_kwargs)
            )

        # --- Tools ---
        if tools:
            config["tools"] = [
                types.Tool(
                    function_declarations=[
                        types.FunctionDeclaration(
                            name=tool.get("name", ""),
                            description=tool.get("description", ""),
                            parameters=tool.get("parameters"),
                        )
                        for tool in tools
                    ]
                )
            ]

        return types.LiveConnectConfig(**config)

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
        live_config = self._build_config(
            system_prompt=system_prompt,
            voice=voice,
            tools=tools,
            provider_config=provider_config,
        )

        ctxmgr = self._client.aio.live.connect(
            model=self._config.live_model,
            config=live_config,
        )
        live_session = await ctxmgr.__aenter__()

        self._live_ctxmgrs[session.id] = ctxmgr
        self._live_sessions[session.id] = live_session
        self._sessions[session.id] = session
        self._sample_rates[session.id] = input_sample_rate

        session.state = RealtimeSessionState.ACTIVE
        session.provider_session_id = session.id

        self._receive_tasks[session.id] = asyncio.create_task(
            self._receive_loop(session),
            name=f"gemini_live_recv:{session.id}",
        )

        logger.info(
            "Gemini Live session connected: %s (model=%s)", session.id, self._config.live_model
        )
        await self._emit(RealtimeEvent(type=RealtimeEventType.OPENED, session_id=session.id))

    async def send_audio(self, session: RealtimeSession, audio: bytes) -> None:
        live = self._live_sessions.get(session.id)
        if live is None or session.state != RealtimeSessionState.ACTIVE:
            logger.debug("[Gemini] send_audio: session %s not active", session.id)
            return

        count = self._send_audio_count.get(session.id, 0) + 1
        self._send_audio_count[session.id] = count
        if count == 1:
            logger.info(
                "[Gemini] send_audio: first chunk (%d bytes) for %s",
                len(audio),
                session.id,
            )
        elif count % 100 == 0:
            logger.debug("[Gemini] send_audio: %d chunks sent for %s", count, session.id)

        rate = self._sample_rates.get(session.id, 16000)
        await live.send_realtime_input(
            audio=self._types.Blob(data=audio, mime_type=f"audio/pcm;rate={rate}"),
        )

    async def send_text(self, session: RealtimeSession, text: str) -> None:
        live = self._live_sessions.get(session.id)
        if live is None:
            return

        await live.send_client_content(
            turns=self._types.Content(role="user", parts=[self._types.Part(text=text)]),
            turn_complete=True,
        )

    async def disconnect(self, session: RealtimeSession) -> None:
        task = self._receive_tasks.pop(session.id, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task

        live = self._live_sessions.pop(session.id, None)
        ctxmgr = self._live_ctxmgrs.pop(session.id, None)
        self._sessions.pop(session.id, None)
        self._sample_rates.pop(session.id, None)
        if ctxmgr is not None:
            with contextlib.suppress(Exception):
                await ctxmgr.__aexit__(None, None, None)
        elif live is not None:
            with contextlib.suppress(Exception):
                await live.close()

        sent = self._send_audio_count.pop(session.id, 0)
        received = self._audio_chunk_count.pop(session.id, 0)
        was_active = session.state != RealtimeSessionState.ENDED
        session.state = RealtimeSessionState.ENDED
        if live is not None or was_active:
            logger.info(
                "Gemini session %s disconnected: sent=%d audio chunks, received=%d audio chunks",
                session.id,
                sent,
                received,
            )
            await self._emit_closed(session, "client disconnect")

    async def close(self) -> None:
        for session in list(self._sessions.values()):
            await self.disconnect(session)

    def on_event(self, callback: RealtimeEventCallback) -> None:
        self._callbacks.append(callback)

    # -- Receive loop --

    async def _receive_loop(self, session: RealtimeSession) -> None:
        """Process server messages until the connection ends.

        ``live.receive()`` yields messages for a single model turn (it stops
        after ``turn_complete``), so it is called in an outer loop to keep
        listening across turns.
        """
        live = self._live_sessions.get(session.id)
        if live is None:
            return
        try:
            while True:
                async for response in live.receive():
                    await self._handle_server_response(session, response)
                logger.debug("[Gemini] Turn generator exhausted for session %s", session.id)
        except asyncio.CancelledError:
            raise
        except _GoAwayError:
            await self._lost(session, "go_away", "Server announced disconnect (GoAway)")
        except Exception as exc:
            if session.state == RealtimeSessionState.ENDED:
                return
            logger.warning("Gemini Live connection lost for session %s: %s", session.id, exc)
            await self._lost(session, "connection_lost", str(exc))

    async def _lost(self, session: RealtimeSession, code: str, message: str) -> None:
        session.state = RealtimeSessionState.ENDED
        self._receive_tasks.pop(session.id, None)
        await self._emit(
            RealtimeEvent(
                type=RealtimeEventType.ERROR,
                session_id=session.id,
                code=code,
                message=message,
            )
        )
        await self._emit_closed(session, message)

    async def _handle_server_response(self, session: RealtimeSession, response: Any) -> None:
        """Map one Gemini Live message to events."""
        data = getattr(response, "data", None)
        if data:
            count = self._audio_chunk_count.get(session.id, 0) + 1
            self._audio_chunk_count[session.id] = count
            if count % 50 == 1:
                logger.debug(
                    "[Gemini] audio chunk #%d (%d bytes) for session %s",
                    count,
                    len(data),
                    session.id,
                )
            await self._emit(
                RealtimeEvent(type=RealtimeEventType.AUDIO, session_id=session.id, audio=data)
            )

        tool_call = getattr(response, "tool_call", None)
        if tool_call:
            for fc in tool_call.function_calls or []:
                logger.info("[Gemini] tool_call %s (session %s)", fc.name, session.id)
                await self._emit(
                    RealtimeEvent(
                        type=RealtimeEventType.TOOL_CALL,
                        session_id=session.id,
                        name=fc.name or "",
                        call_id=fc.id or "",
                        arguments=dict(fc.args) if fc.args else {},
                    )
                )

        content = getattr(response, "server_content", None)
        if content:
            tr = getattr(content, "input_transcription", None)
            if tr and tr.text:
                await self._emit(
                    RealtimeEvent(
                        type=RealtimeEventType.INPUT_TRANSCRIPT,
                        session_id=session.id,
                        text=tr.text,
                    )
                )

            tr = getattr(content, "output_transcription", None)
            if tr and tr.text:
                await self._emit(
                    RealtimeEvent(
                        type=RealtimeEventType.OUTPUT_TRANSCRIPT,
                        session_id=session.id,
                        text=tr.text,
                    )
                )

            if getattr(content, "interrupted", False):
                logger.info("[Gemini] interrupted by barge-in (session %s)", session.id)
                await self._emit(
                    RealtimeEvent(type=RealtimeEventType.INTERRUPTED, session_id=session.id)
                )

            if getattr(content, "turn_complete", False):
                logger.info(
                    "[Gemini] turn_complete (session %s, %d audio chunks)",
                    session.id,
                    self._audio_chunk_count.get(session.id, 0),
                )
                self._audio_chunk_count[session.id] = 0
                await self._emit(
                    RealtimeEvent(type=RealtimeEventType.TURN_COMPLETE, session_id=session.id)
                )

        # GoAway last, after everything else in this message was delivered
        go_away = getattr(response, "go_away", None)
        if go_away:
            logger.warning(
                "Gemini GoAway received for session %s (time_left=%s)",
                session.id,
                getattr(go_away, "time_left", "unknown"),
            )
            raise _GoAwayError()

    # -- Callback helpers --

    async def _emit_closed(self, session: RealtimeSession, reason: str) -> None:
        if session.id in self._closed_emitted:
            return
        self._closed_emitted.add(session.id)
        await self._emit(
            RealtimeEvent(type=RealtimeEventType.CLOSED, session_id=session.id, message=reason)
        )

    async def _emit(self, event: RealtimeEvent) -> None:
        for cb in self._callbacks:
            try:
                result = cb(event)
                if hasattr(result, "__await__"):
                    await result
            except Exception:
                logger.exception(
                    "Error in %s callback for session %s", event.type, event.session_id
                )
