"""Gapless playback scheduling for synthesized speech.

Frames from the backend arrive with jitter.  Each one is placed on a
monotonic timeline at ``max(next_start, now + guard_interval)`` and the
cursor advances by the frame's duration, so consecutive frames never overlap
and never reorder.  No drain loop is needed: the timeline itself is the
queue.  A :class:`PlaybackSink` renders the timeline.
"""

from __future__ import annotations

import contextlib
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from panelkit.voice.audio_frame import AudioFrame
from panelkit.voice.pcm import pcm16_to_float, rms, volume_level

logger = logging.getLogger("panelkit.voice.playback")

Clock = Callable[[], float]


@dataclass(frozen=True)
class ScheduledFrame:
    """A frame placed on the playback timeline."""

    start: float
    end: float
    frame: AudioFrame


class PlaybackSink(ABC):
    """Renders scheduled frames to an output device."""

    @abstractmethod
    def write(self, frame: AudioFrame, start: float) -> None:
        """Queue *frame* to start playing at clock time *start*."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Drop everything not yet rendered."""
        ...

    def close(self) -> None:  # noqa: B027
        """Release the output device."""


class AudioPlaybackScheduler:
    """Schedules inbound frames back-to-back and tracks speaking state.

    Args:
        sample_rate: Native rate of the backend's audio (informational; each
            frame's own rate determines its duration).
        guard_interval: Minimum lead, in seconds, before a frame may start.
        gain: Multiplier applied to RMS for the 0..1 output meter.
        sink: Optional renderer; without one the scheduler only keeps time.
        clock: Monotonic clock in seconds.
    """

    def __init__(
        self,
        *,
        sample_rate: int = 24000,
        guard_interval: float = 0.02,
        gain: float = 5.0,
        sink: PlaybackSink | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._sample_rate = sample_rate
        self._guard = guard_interval
        self._gain = gain
        self._sink = sink
        self._clock = clock

        self._next_start = 0.0
        self._pending: deque[ScheduledFrame] = deque()
        self._volume = 0.0
        self._closed = False

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def next_start(self) -> float:
        return self._next_start

    @property
    def speaking(self) -> bool:
        """True while at least one scheduled frame has not finished."""
        self._prune(self._clock())
        return bool(self._pending)

    @property
    def speaking_until(self) -> float | None:
        """Clock time when the last unfinished frame ends, if any."""
        self._prune(self._clock())
        if not self._pending:
            return None
        return self._pending[-1].end

    @property
    def output_volume(self) -> float:
        return self._volume if self.speaking else 0.0

    def schedule(self, frame: AudioFrame) -> ScheduledFrame | None:
        """Place *frame* on the timeline and hand it to the sink."""
        if self._closed:
            logger.debug("Playback closed, dropping %d bytes", len(frame.data))
            return None

        now = self._clock()
        self._prune(now)
        start = max(self._next_start, now + self._guard)
        end = start + frame.duration
        self._next_start = end

        item = ScheduledFrame(start=start, end=end, frame=frame)
        self._pending.append(item)
        self._volume = volume_level(rms(pcm16_to_float(frame.data)), self._gain)

        if self._sink is not None:
            try:
                self._sink.write(frame, start)
            except Exception:
                logger.exception("Playback sink write failed")
        return item

    def interrupt(self) -> int:
        """Cancel every unfinished frame and reset the cursor.

        Returns the number of frames cancelled.
        """
        self._prune(self._clock())
        cancelled = len(self._pending)
        self._pending.clear()
        self._next_start = 0.0
        self._volume = 0.0
        if self._sink is not None:
            try:
                self._sink.clear()
            except Exception:
                logger.exception("Playback sink clear failed")
        if cancelled:
            logger.debug("Playback interrupted, cancelled %d frames", cancelled)
        return cancelled

    def close(self) -> None:
        """Stop playback and release the sink. Safe to call repeatedly."""
        if self._closed:
            return
        self.interrupt()
        self._closed = True
        if self._sink is not None:
            with contextlib.suppress(Exception):
                self._sink.close()

    def _prune(self, now: float) -> None:
        while self._pending and self._pending[0].end <= now:
            self._pending.popleft()


def _import_sounddevice() -> Any:
    try:
        import sounddevice as _sd

        return _sd
    except ImportError as exc:
        raise ImportError(
            "sounddevice is required for SoundDevicePlaybackSink. "
            "Install it with: pip install panelkit[local-audio]"
        ) from exc


class SoundDevicePlaybackSink(PlaybackSink):
    """Persistent callback-driven speaker stream.

    PortAudio's audio thread pulls PCM from a chunk deque and feeds silence
    when nothing is queued.  Gaps between consecutive scheduled frames are
    padded with silence so the rendered stream follows the timeline.

    Args:
        sample_rate: Output rate in Hz (the backend's native rate).
        block_duration_ms: PortAudio block duration.
        device: Sounddevice output device index or name (None = default).
        clock: Must be the same clock the scheduler uses.
    """

    def __init__(
        self,
        *,
        sample_rate: int = 24000,
        block_duration_ms: int = 20,
        device: int | str | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._sd = _import_sounddevice()
        self._sample_rate = sample_rate
        self._clock = clock
        self._buffer: deque[bytes] = deque()
        self._offset = 0  # bytes consumed in the front chunk
        self._lock = threading.Lock()
        self._last_end = 0.0

        blocksize = int(sample_rate * block_duration_ms / 1000)
        self._stream: Any = self._sd.RawOutputStream(
            samplerate=sample_rate,
            blocksize=blocksize,
            channels=1,
            dtype="int16",
            device=device,
            latency="high",
            callback=self._speaker_callback,
        )
        self._stream.start()
        logger.info(
            "Speaker stream: rate=%dHz blocksize=%d device=%s",
            sample_rate,
            blocksize,
            device or "default",
        )

    def write(self, frame: AudioFrame, start: float) -> None:
        with self._lock:
            if self._buffer and start > self._last_end:
                gap = int((start - self._last_end) * self._sample_rate)
                if gap > 0:
                    self._buffer.append(b"\x00\x00" * gap)
            self._buffer.append(frame.data)
            self._last_end = start + frame.duration

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()
            self._offset = 0
            self._last_end = 0.0

    def close(self) -> None:
        self.clear()
        stream = self._stream
        if stream is None:
            return
        self._stream = None
        try:
            stream.abort()
            stream.close()
        except Exception:  # noqa: S110
            logger.debug("Error closing speaker stream", exc_info=True)

    def _speaker_callback(self, outdata: Any, frames: int, time_info: Any, status: Any) -> None:
        """Pull queued audio into the output buffer; fill gaps with silence."""
        if status:
            logger.warning("Speaker callback status: %s", status)

        bytes_needed = frames * 2
        written = 0
        with self._lock:
            buf = self._buffer
            while written < bytes_needed and buf:
                chunk = buf[0]
                avail = len(chunk) - self._offset
                n = min(avail, bytes_needed - written)
                outdata[written : written + n] = chunk[self._offset : self._offset + n]
                written += n
                self._offset += n
                if self._offset >= len(chunk):
                    buf.popleft()
                    self._offset = 0

        if written < bytes_needed:
            outdata[written:] = b"\x00" * (bytes_needed - written)
