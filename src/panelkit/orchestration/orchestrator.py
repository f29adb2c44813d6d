"""Live multi-persona voice session orchestrator.

One :class:`TurnOrchestrator` owns a whole conversation: the session state
machine, the ticket ledger, the single live connection, playback, the
archival recorder and the inactivity monitor.

Every provider event and every background enrichment result is posted to
one inbox queue.  A single pump task drains the inbox and dispatches each
item through a table keyed by event type, holding the same lock as
:meth:`TurnOrchestrator.stop`, so a hand-off runs as one serialized critical
section.

Usage::

    orchestrator = TurnOrchestrator(
        roster,
        GeminiLiveProvider(gemini_config),
        brain=GeminiTextAnalysisProvider(gemini_config),
        store=FileArtifactStore("recordings"),
        capture=AudioCaptureEngine(),
        playback=AudioPlaybackScheduler(sink=SoundDevicePlaybackSink()),
    )
    await orchestrator.start()
    report = await orchestrator.wait_finished()
    await orchestrator.aclose()
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from panelkit.config import PanelConfig
from panelkit.errors import (
    AudioDeviceError,
    EnrichmentError,
    PanelKitError,
    SessionConnectionError,
    ToolCallValidationError,
)
from panelkit.models.analysis import TransferBriefing, Verdict
from panelkit.models.enums import SessionStatus, SessionTrigger
from panelkit.models.persona import Persona, Roster, TicketLedger
from panelkit.models.report import SavedArtifacts, SessionReport
from panelkit.models.transcript import TranscriptEntry
from panelkit.models.transfer import HandoffContext, TransferRequest
from panelkit.orchestration.prompts import (
    NUDGE_TEXT,
    build_system_instruction,
    update_persona_prompt,
)
from panelkit.orchestration.state import Session
from panelkit.orchestration.tools import (
    END_SESSION_TOOL_NAME,
    TRANSFER_TOOL_NAME,
    build_tool_set,
    is_final_turn,
    validate_transfer,
)
from panelkit.providers.brain.base import TextAnalysisProvider
from panelkit.store.base import ArtifactStore
from panelkit.voice.audio_frame import AudioFrame
from panelkit.voice.capture import AudioCaptureEngine
from panelkit.voice.connection import SessionConnection
from panelkit.voice.inactivity import InactivityMonitor
from panelkit.voice.pcm import pcm16_to_float, rms, volume_level
from panelkit.voice.playback import AudioPlaybackScheduler
from panelkit.voice.realtime.events import RealtimeEvent, RealtimeEventType
from panelkit.voice.realtime.provider import RealtimeVoiceProvider
from panelkit.voice.recorder import TranscriptRecorder

logger = logging.getLogger("panelkit.orchestration.orchestrator")

_LIVE_STATUSES = frozenset(
    {SessionStatus.CONNECTING, SessionStatus.ACTIVE, SessionStatus.TRANSFERRING}
)


@dataclass(frozen=True)
class EnrichmentResult:
    """A hand-off briefing for the persona that just left."""

    persona_id: str
    briefing: TransferBriefing


_STOP = object()

InboxItem = RealtimeEvent | EnrichmentResult


class TurnOrchestrator:
    """Runs one conversation across a roster of personas.

    Args:
        roster: Personas in speaking order; the first one opens.
        provider: Realtime backend used for every persona turn.
        brain: Optional text-analysis collaborator for hand-off briefings
            and the final verdict.
        store: Optional destination for the recording and transcript.
        config: Audio, timing and prompt parameters.
        capture: Microphone engine. Without one, feed frames through
            :meth:`on_capture_frame`.
        playback: Playback scheduler (default: timeline only, no device).
        clock: Monotonic clock shared by playback and inactivity detection.
    """

    def __init__(
        self,
        roster: Roster,
        provider: RealtimeVoiceProvider,
        *,
        brain: TextAnalysisProvider | None = None,
        store: ArtifactStore | None = None,
        config: PanelConfig | None = None,
        capture: AudioCaptureEngine | None = None,
        playback: AudioPlaybackScheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._roster = roster
        self._provider = provider
        self._brain = brain
        self._store = store
        self._config = config or PanelConfig()
        self._capture = capture
        self._clock = clock

        cfg = self._config
        self._playback = playback or AudioPlaybackScheduler(
            sample_rate=cfg.output_sample_rate,
            guard_interval=cfg.playback_guard_s,
            gain=cfg.volume_gain,
            clock=clock,
        )
        self._monitor = InactivityMonitor(
            self._on_idle,
            idle_window=cfg.idle_window_s,
            throttle=cfg.activity_throttle_s,
            clock=clock,
        )
        self._recorder = self._new_recorder()
        self._ledger = TicketLedger(roster)
        self._session = Session()

        self._lock = asyncio.Lock()
        self._inbox: asyncio.Queue[Any] | None = None
        self._pump_task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._finished = asyncio.Event()
        self._report: SessionReport | None = None
        self._final_turn = False
        self._muted = False
        self._input_volume = 0.0
        self._briefings: list[TransferBriefing] = []

        self._handlers: dict[RealtimeEventType, Callable[[RealtimeEvent], Awaitable[None]]] = {
            RealtimeEventType.OPENED: self._on_opened,
            RealtimeEventType.INPUT_TRANSCRIPT: self._on_input_transcript,
            RealtimeEventType.OUTPUT_TRANSCRIPT: self._on_output_transcript,
            RealtimeEventType.TURN_COMPLETE: self._on_turn_complete,
            RealtimeEventType.TOOL_CALL: self._on_tool_call,
            RealtimeEventType.AUDIO: self._on_audio,
            RealtimeEventType.INTERRUPTED: self._on_interrupted,
            RealtimeEventType.CLOSED: self._on_closed,
            RealtimeEventType.ERROR: self._on_error,
        }

        provider.on_event(self._post_event)
        if capture is not None:
            capture.on_frame(self.on_capture_frame)

    # -- Properties --

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def session(self) -> Session:
        return self._session

    @property
    def active_persona(self) -> Persona | None:
        pid = self._session.active_persona_id
        return self._roster.get(pid) if pid is not None else None

    @property
    def roster(self) -> Roster:
        return self._roster

    @property
    def ledger(self) -> TicketLedger:
        return self._ledger

    @property
    def transcript(self) -> list[TranscriptEntry]:
        return self._recorder.entries

    @property
    def recorder(self) -> TranscriptRecorder:
        return self._recorder

    @property
    def playback(self) -> AudioPlaybackScheduler:
        return self._playback

    @property
    def monitor(self) -> InactivityMonitor:
        return self._monitor

    @property
    def final_turn(self) -> bool:
        """Whether the active persona may only end the session."""
        return self._final_turn

    @property
    def briefings(self) -> list[TransferBriefing]:
        return list(self._briefings)

    @property
    def report(self) -> SessionReport | None:
        return self._report

    @property
    def input_volume(self) -> float:
        return 0.0 if self._muted else self._input_volume

    @property
    def output_volume(self) -> float:
        return self._playback.output_volume

    @property
    def muted(self) -> bool:
        return self._muted

    def set_muted(self, muted: bool) -> None:
        """Mute the microphone; no frames are produced while muted."""
        self._muted = muted
        if muted:
            self._input_volume = 0.0
        if self._capture is not None:
            self._capture.set_muted(muted)

    # -- Lifecycle --

    async def start(self) -> None:
        """Start capture and open the first persona.

        Raises:
            InvalidTransitionError: The orchestrator is not idle.
            AudioDeviceError: The microphone could not be opened.
            SessionConnectionError: The first connection failed.
        """
        async with self._lock:
            self._session.fire(SessionTrigger.START)
            self._reset_run()

            if self._capture is not None:
                try:
                    await self._capture.start()
                except AudioDeviceError as exc:
                    await self._fail(exc, save=False)
                    raise

            try:
                await self._open_persona(self._roster.first, handoff=None)
            except SessionConnectionError as exc:
                await self._fail(exc)
                raise

    async def stop(self) -> SessionReport | None:
        """End the conversation and return the report. Safe to call repeatedly."""
        async with self._lock:
            if self._session.status in _LIVE_STATUSES:
                await self._end("stopped")
        return self._report

    async def wait_finished(self) -> SessionReport | None:
        """Block until the conversation ends or fails."""
        await self._finished.wait()
        return self._report

    async def aclose(self) -> None:
        """Stop, cancel background work and release providers."""
        await self.stop()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        if self._pump_task is not None and not self._pump_task.done():
            self._pump_task.cancel()
            await asyncio.gather(self._pump_task, return_exceptions=True)
        self._playback.close()
        await self._provider.close()
        if self._brain is not None:
            await self._brain.close()

    # -- Audio input --

    def on_capture_frame(self, frame: AudioFrame) -> None:
        """Handle one microphone frame (called on the event loop thread)."""
        if self._muted or self._session.status not in _LIVE_STATUSES:
            return
        self._recorder.add_local(frame)

        level = frame.metadata.get("rms")
        if level is None:
            level = rms(pcm16_to_float(frame.data))
        self._input_volume = volume_level(level, self._config.volume_gain)

        if self._session.status is not SessionStatus.ACTIVE:
            return
        if level > self._config.idle_rms_threshold:
            self._monitor.activity()
        connection = self._session.connection
        if connection is not None:
            connection.send_audio_frame(frame)

    # -- Inbox --

    def _post_event(self, event: RealtimeEvent) -> None:
        inbox = self._inbox
        if inbox is None:
            logger.debug("No session running, dropping %s", event.type)
            return
        inbox.put_nowait(event)

    async def _pump(self, inbox: asyncio.Queue[Any]) -> None:
        while True:
            item = await inbox.get()
            if item is _STOP:
                return
            async with self._lock:
                try:
                    await self.dispatch(item)
                except Exception:
                    logger.exception("Error dispatching %r", item)

    async def dispatch(self, item: InboxItem) -> None:
        """Route one inbox item. The caller must hold the orchestrator lock."""
        if self._session.status not in _LIVE_STATUSES:
            logger.debug("Session %s, dropping %r", self._session.status, item)
            return

        if isinstance(item, EnrichmentResult):
            self._apply_enrichment(item)
            return

        connection = self._session.connection
        if connection is None or item.session_id != connection.session_id:
            logger.debug("Dropping stale %s from session %s", item.type, item.session_id)
            return

        handler = self._handlers.get(item.type)
        if handler is None:
            logger.warning("No handler for event type %s", item.type)
            return
        await handler(item)

    # -- Event handlers --

    async def _on_opened(self, event: RealtimeEvent) -> None:
        if self._session.status is not SessionStatus.CONNECTING:
            logger.debug("Ignoring OPENED in status %s", self._session.status)
            return
        self._session.fire(SessionTrigger.OPENED)
        self._monitor.arm()
        connection = self._session.connection
        if connection is not None and self._config.greeting_text:
            self._spawn(self._send_greeting(connection), name="panel_greeting")

    async def _on_input_transcript(self, event: RealtimeEvent) -> None:
        self._recorder.add_input_fragment(event.text)
        self._monitor.activity()

    async def _on_output_transcript(self, event: RealtimeEvent) -> None:
        self._recorder.add_output_fragment(event.text)

    async def _on_turn_complete(self, event: RealtimeEvent) -> None:
        persona = self.active_persona
        if persona is not None:
            self._recorder.flush_turn(persona.name)

    async def _on_audio(self, event: RealtimeEvent) -> None:
        frame = AudioFrame(data=event.audio, sample_rate=self._config.output_sample_rate)
        self._playback.schedule(frame)
        self._recorder.add_remote(frame)
        self._monitor.notify_speaking(self._playback.speaking_until)

    async def _on_interrupted(self, event: RealtimeEvent) -> None:
        self._playback.interrupt()
        self._monitor.notify_speaking(None)

    async def _on_tool_call(self, event: RealtimeEvent) -> None:
        if self._session.status is not SessionStatus.ACTIVE:
            logger.warning("Ignoring tool call %s in status %s", event.name, self._session.status)
            return
        self._monitor.activity()

        if event.name == TRANSFER_TOOL_NAME and not self._final_turn:
            await self._handle_transfer(event)
        elif event.name == END_SESSION_TOOL_NAME and self._final_turn:
            logger.info("Persona %s ended the session", self._session.active_persona_id)
            await self._end("end_session")
        else:
            exc = ToolCallValidationError(f"Tool {event.name!r} is not available to this persona")
            logger.warning("Ignoring tool call: %s", exc)

    async def _on_closed(self, event: RealtimeEvent) -> None:
        if self._session.status in (SessionStatus.CONNECTING, SessionStatus.ACTIVE):
            await self._fail(
                SessionConnectionError(f"Connection closed unexpectedly: {event.message}")
            )

    async def _on_error(self, event: RealtimeEvent) -> None:
        await self._fail(SessionConnectionError(f"Backend error [{event.code}]: {event.message}"))

    # -- Hand-off --

    async def _handle_transfer(self, event: RealtimeEvent) -> None:
        departing = self.active_persona
        assert departing is not None
        try:
            request = validate_transfer(event.arguments, self._roster, self._ledger, departing.id)
        except ToolCallValidationError as exc:
            logger.warning("Ignoring transfer from %s: %s", departing.id, exc)
            return

        target = self._roster.get(request.target_id)
        logger.info(
            "Transfer %s -> %s (%s): %s",
            departing.id,
            target.id,
            request.reason,
            request.context,
        )
        self._session.fire(SessionTrigger.TRANSFER)
        self._monitor.disarm()

        self._recorder.flush_turn(departing.name)
        left = self._ledger.consume(departing.id)
        logger.debug("%s has %d tickets left, %d total", departing.id, left, self._ledger.total())

        connection = self._session.disconnect()
        if connection is not None:
            await connection.close()
        self._playback.interrupt()
        self._session.handoff_count += 1

        self._spawn_enrichment(departing, target, request)

        handoff = HandoffContext(
            from_name=departing.name,
            reason=request.reason,
            summary=request.context,
            excerpt=self._recorder.recent_lines(self._config.handoff_excerpt_lines),
        )
        await asyncio.sleep(self._config.reopen_delay_s)

        self._session.fire(SessionTrigger.RECONNECT)
        try:
            await self._open_persona(target, handoff=handoff)
        except SessionConnectionError as exc:
            await self._fail(exc)

    async def _open_persona(self, persona: Persona, *, handoff: HandoffContext | None) -> None:
        final_turn = is_final_turn(self._ledger, persona.id)
        tools = build_tool_set(self._roster, self._ledger, persona.id, final_turn=final_turn)
        instruction = build_system_instruction(
            persona.prompt,
            persona_name=persona.name,
            candidate_bio=self._config.candidate_bio,
            handoff=handoff,
            final_turn=final_turn,
        )
        cfg = self._config
        connection = SessionConnection(
            self._provider,
            input_sample_rate=cfg.input_sample_rate,
            output_sample_rate=cfg.output_sample_rate,
            connect_timeout=cfg.connect_timeout_s,
            provider_config=cfg.vad or None,
        )
        self._session.active_persona_id = persona.id
        self._session.connect(connection)
        self._final_turn = final_turn
        logger.info(
            "Opening persona %s (tickets=%d, total=%d, final_turn=%s)",
            persona.id,
            self._ledger.remaining(persona.id),
            self._ledger.total(),
            final_turn,
        )
        await connection.open(persona, tools, instruction)

    # -- Background work --

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background task %s failed: %s", task.get_name(), task.exception())

    async def _send_greeting(self, connection: SessionConnection) -> None:
        await asyncio.sleep(self._config.greeting_delay_s)
        if self._session.connection is not connection or not connection.is_open:
            return
        text = self._config.greeting_text or ""
        try:
            await connection.send_text_turn(text)
            logger.debug("Sent greeting trigger to %s", connection.session_id)
        except SessionConnectionError as exc:
            logger.warning("Greeting trigger failed: %s", exc)

    async def _on_idle(self) -> None:
        connection = self._session.connection
        if self._session.status is not SessionStatus.ACTIVE or connection is None:
            return
        try:
            await connection.send_text_turn(NUDGE_TEXT)
        except SessionConnectionError as exc:
            logger.warning("Inactivity nudge failed: %s", exc)

    def _spawn_enrichment(
        self, departing: Persona, target: Persona, request: TransferRequest
    ) -> None:
        if self._brain is None:
            return
        inbox = self._inbox
        transcript = self._recorder.transcript_text()
        brain = self._brain

        async def enrich() -> None:
            try:
                briefing = await brain.brief_transfer(
                    departing.name,
                    target.name,
                    transcript,
                    request.context,
                    request.reason,
                )
            except Exception as exc:
                err = exc if isinstance(exc, EnrichmentError) else EnrichmentError(str(exc))
                logger.warning("Hand-off enrichment for %s failed: %s", departing.id, err)
                return
            if inbox is not None:
                inbox.put_nowait(EnrichmentResult(persona_id=departing.id, briefing=briefing))

        self._spawn(enrich(), name=f"panel_enrich:{departing.id}")

    def _apply_enrichment(self, result: EnrichmentResult) -> None:
        persona = self._roster.get(result.persona_id)
        briefing = result.briefing
        self._briefings.append(briefing)
        prompt = update_persona_prompt(
            persona.prompt, briefing.next_question, briefing.memory_update
        )
        self._roster.with_prompt(persona.id, prompt)
        logger.info("Applied briefing to %s (grade %.0f)", persona.id, briefing.grade)

    # -- Teardown --

    def _new_recorder(self) -> TranscriptRecorder:
        return TranscriptRecorder(
            sample_rate=self._config.input_sample_rate,
            remote_rate=self._config.output_sample_rate,
            candidate_label=self._config.candidate_label,
        )

    def _reset_run(self) -> None:
        self._recorder = self._new_recorder()
        self._ledger = TicketLedger(self._roster)
        self._session.handoff_count = 0
        self._briefings.clear()
        self._report = None
        self._finished.clear()
        self._inbox = asyncio.Queue()
        self._pump_task = asyncio.get_running_loop().create_task(
            self._pump(self._inbox), name="panel_pump"
        )

    async def _end(self, reason: str) -> None:
        logger.info("Ending session (%s)", reason)
        self._session.fire(SessionTrigger.END)
        artifacts = await self._teardown(save=True)
        verdict = await self._request_verdict()
        self._finish(SessionStatus.ENDED, artifacts, verdict=verdict)

    async def _fail(self, exc: PanelKitError, *, save: bool = True) -> None:
        logger.error("Session failed: %s", exc)
        self._session.fire(SessionTrigger.FAIL)
        artifacts = await self._teardown(save=save)
        self._finish(SessionStatus.ERRORED, artifacts, error=str(exc))
        self._session.fire(SessionTrigger.RESET)

    async def _teardown(self, *, save: bool) -> SavedArtifacts | None:
        """Release everything live. Never raises."""
        self._monitor.disarm()
        connection = self._session.disconnect()
        if connection is not None:
            await connection.close()
        self._playback.interrupt()
        if self._capture is not None:
            await self._capture.stop()
        self._input_volume = 0.0

        persona = self.active_persona
        if persona is not None:
            self._recorder.flush_turn(persona.name)
        for task in list(self._tasks):
            if task.get_name() == "panel_greeting":
                task.cancel()
        if self._inbox is not None:
            self._inbox.put_nowait(_STOP)
            self._inbox = None

        if not save:
            return None
        return await self._save_artifacts()

    async def _save_artifacts(self) -> SavedArtifacts | None:
        if self._store is None:
            return None
        try:
            audio = self._recorder.export_wav()
            return await self._store.save(audio, self._recorder.transcript_text())
        except Exception:
            logger.exception("Failed to save session artifacts")
            return None

    async def _request_verdict(self) -> Verdict | None:
        if self._brain is None or not self._recorder.entries:
            return None
        try:
            return await self._brain.final_verdict(self._recorder.transcript_text())
        except Exception as exc:
            logger.warning("Final verdict failed: %s", exc)
            return None

    def _finish(
        self,
        status: SessionStatus,
        artifacts: SavedArtifacts | None,
        *,
        verdict: Verdict | None = None,
        error: str | None = None,
    ) -> None:
        self._report = SessionReport(
            status=status,
            transcript=self._recorder.entries,
            tickets=self._ledger.snapshot(),
            handoff_count=self._session.handoff_count,
            artifacts=artifacts,
            verdict=verdict,
            error=error,
        )
        self._finished.set()
        logger.info(
            "Session %s after %d hand-offs, %d transcript lines",
            status,
            self._session.handoff_count,
            len(self._report.transcript),
        )
