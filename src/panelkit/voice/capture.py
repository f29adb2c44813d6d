"""Microphone capture using the system input device.

Requires the ``sounddevice`` optional dependency::

    pip install panelkit[local-audio]

Usage::

    capture = AudioCaptureEngine(sample_rate=16000, frame_size=1024)
    capture.on_frame(handle_frame)
    await capture.start()
    ...
    capture.set_muted(True)   # stops the hardware stream, no frames at all
    await capture.stop()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

from panelkit.errors import AudioDeviceError
from panelkit.voice.audio_frame import AudioFrame
from panelkit.voice.pcm import pcm16_to_float, rms, volume_level

logger = logging.getLogger("panelkit.voice.capture")

CaptureFrameCallback = Callable[[AudioFrame], Any]
"""Receives each captured frame on the event loop thread.

``frame.metadata["rms"]`` holds the block's RMS level (float scale).
"""


def _import_sounddevice() -> Any:
    """Import sounddevice, raising a clear error if missing."""
    try:
        import sounddevice as _sd

        return _sd
    except ImportError as exc:
        raise ImportError(
            "sounddevice is required for AudioCaptureEngine. "
            "Install it with: pip install panelkit[local-audio]"
        ) from exc


class AudioCaptureEngine:
    """Reads fixed-size microphone blocks and fans them out to consumers.

    Args:
        sample_rate: Capture rate in Hz.
        frame_size: Samples per delivered frame.
        gain: Multiplier applied to RMS for the 0..1 volume meter.
        device: Sounddevice input device index or name (None = default).
    """

    def __init__(
        self,
        *,
        sample_rate: int = 16000,
        frame_size: int = 1024,
        gain: float = 5.0,
        device: int | str | None = None,
    ) -> None:
        self._sd = _import_sounddevice()
        self._sample_rate = sample_rate
        self._frame_size = frame_size
        self._gain = gain
        self._device = device

        self._callbacks: list[CaptureFrameCallback] = []
        self._stream: Any = None  # sd.RawInputStream
        self._loop: asyncio.AbstractEventLoop | None = None
        self._muted = False
        self._volume = 0.0
        self._frame_count = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def frame_size(self) -> int:
        return self._frame_size

    @property
    def running(self) -> bool:
        return self._stream is not None

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def volume(self) -> float:
        """Input level of the latest frame, 0..1."""
        return self._volume

    def on_frame(self, callback: CaptureFrameCallback) -> None:
        self._callbacks.append(callback)

    async def start(self) -> None:
        """Open the microphone and begin delivering frames.

        Raises:
            AudioDeviceError: The input device could not be opened.
        """
        if self._stream is not None:
            logger.warning("Capture already running")
            return

        self._loop = asyncio.get_running_loop()
        try:
            stream = self._sd.RawInputStream(
                samplerate=self._sample_rate,
                blocksize=self._frame_size,
                channels=1,
                dtype="int16",
                device=self._device,
                callback=self._audio_callback,
            )
            if not self._muted:
                stream.start()
        except Exception as exc:
            raise AudioDeviceError(f"Could not open microphone: {exc}") from exc

        self._stream = stream
        logger.info(
            "Mic capture started: rate=%d, block=%d samples, device=%s",
            self._sample_rate,
            self._frame_size,
            self._device or "default",
        )

    async def stop(self) -> None:
        """Close the microphone. Safe to call repeatedly."""
        stream = self._stream
        self._stream = None
        self._volume = 0.0
        if stream is None:
            return
        try:
            stream.stop()
        except Exception:
            logger.warning("Error stopping mic stream")
        finally:
            with contextlib.suppress(Exception):
                stream.close()
        logger.info("Mic capture stopped after %d frames", self._frame_count)

    def set_muted(self, muted: bool) -> None:
        """Mute by stopping the hardware stream rather than dropping frames."""
        if muted == self._muted:
            return
        self._muted = muted
        stream = self._stream
        if stream is not None:
            try:
                if muted:
                    stream.stop()
                else:
                    stream.start()
            except Exception:
                logger.exception("Failed to %s mic stream", "stop" if muted else "start")
        if muted:
            self._volume = 0.0
        logger.info("Input muted=%s", muted)

    # -- PortAudio thread --

    def _audio_callback(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.warning("Mic status: %s", status)
        loop = self._loop
        audio_bytes = bytes(indata)
        if loop is not None and loop.is_running():
            loop.call_soon_threadsafe(self._deliver, audio_bytes)
        else:
            self._deliver(audio_bytes)

    # -- Event loop thread --

    def _deliver(self, audio_bytes: bytes) -> None:
        if self._muted or self._stream is None:
            return
        level = rms(pcm16_to_float(audio_bytes))
        self._volume = volume_level(level, self._gain)
        self._frame_count += 1
        frame = AudioFrame(
            data=audio_bytes,
            sample_rate=self._sample_rate,
            metadata={"rms": level},
        )
        for cb in self._callbacks:
            try:
                cb(frame)
            except Exception:
                logger.exception("Error in capture frame callback")
