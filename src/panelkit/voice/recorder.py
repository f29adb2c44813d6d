"""Archival recording and line transcript for a whole conversation.

The capture stream is the master clock: every microphone frame pulls an
equal-length slice of (resampled) backend audio from a FIFO, the two are
summed and hard-clipped, and the mixed block is kept.  At the end all
blocks are written as one mono 16-bit WAV.
"""

from __future__ import annotations

import io
import logging
import time
import wave

import numpy as np
import numpy.typing as npt

from panelkit.models.transcript import TranscriptEntry
from panelkit.voice.audio_frame import AudioFrame
from panelkit.voice.pcm import FloatArray, float_to_pcm16, pcm16_to_float
from panelkit.voice.resampler import LinearResampler

logger = logging.getLogger("panelkit.voice.recorder")

_STATUS_LOG_INTERVAL = 10.0  # seconds


def mix_frames(local: npt.ArrayLike, remote: npt.ArrayLike) -> FloatArray:
    """Sum two equal-length blocks and hard-clip to [-1, 1]."""
    a = np.asarray(local, dtype=np.float32)
    b = np.asarray(remote, dtype=np.float32)
    if a.shape != b.shape:
        raise ValueError(f"mix_frames needs equal lengths, got {a.shape} and {b.shape}")
    return np.clip(a + b, -1.0, 1.0).astype(np.float32)


class TranscriptRecorder:
    """Mixes both audio directions and accumulates the line transcript.

    Args:
        sample_rate: Capture rate; also the rate of the exported WAV.
        remote_rate: Native rate of the backend's synthesized audio.
        candidate_label: Speaker label used for the user's lines.
    """

    def __init__(
        self,
        *,
        sample_rate: int = 16000,
        remote_rate: int = 24000,
        candidate_label: str = "Candidate",
    ) -> None:
        self._sample_rate = sample_rate
        self._resampler = LinearResampler(remote_rate, sample_rate)
        self._candidate_label = candidate_label

        self._remote_fifo: FloatArray = np.zeros(0, dtype=np.float32)
        self._mixed: list[FloatArray] = []

        self._input_buf: list[str] = []
        self._output_buf: list[str] = []
        self._entries: list[TranscriptEntry] = []

        self._local_bytes = 0
        self._remote_bytes = 0
        self._started_at = time.monotonic()
        self._last_log = self._started_at
        self._last_remote_bytes = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def has_audio(self) -> bool:
        return bool(self._mixed)

    @property
    def pending_remote_samples(self) -> int:
        return int(self._remote_fifo.size)

    @property
    def entries(self) -> list[TranscriptEntry]:
        return list(self._entries)

    # -- Audio --

    def add_remote(self, frame: AudioFrame) -> None:
        """Queue backend audio, resampled to the capture rate."""
        self._remote_bytes += len(frame.data)
        samples = pcm16_to_float(frame.data)
        if frame.sample_rate != self._sample_rate:
            if frame.sample_rate != self._resampler.source_rate:
                self._resampler = LinearResampler(frame.sample_rate, self._sample_rate)
            samples = self._resampler.resample(samples)
        self._remote_fifo = np.concatenate((self._remote_fifo, samples))
        self._log_status()

    def add_local(self, frame: AudioFrame) -> FloatArray:
        """Mix one capture frame with queued backend audio and keep it."""
        self._local_bytes += len(frame.data)
        local = pcm16_to_float(frame.data)
        n = local.size
        take = min(n, self._remote_fifo.size)
        remote = np.zeros(n, dtype=np.float32)
        remote[:take] = self._remote_fifo[:take]
        self._remote_fifo = self._remote_fifo[take:]

        mixed = mix_frames(local, remote)
        self._mixed.append(mixed)
        self._log_status()
        return mixed

    def export_wav(self) -> bytes:
        """Concatenate every mixed block into a mono 16-bit PCM WAV."""
        if self._mixed:
            samples = np.concatenate(self._mixed)
        else:
            samples = np.zeros(0, dtype=np.float32)
        buf = io.BytesIO()
        with wave.open(buf, "wb") as w:
            w.setnchannels(1)
            w.setsampwidth(2)
            w.setframerate(self._sample_rate)
            w.writeframes(float_to_pcm16(samples))
        data = buf.getvalue()
        logger.info(
            "Exported recording: %.1fs, %d bytes",
            samples.size / self._sample_rate,
            len(data),
        )
        return data

    # -- Transcript --

    def add_input_fragment(self, text: str) -> None:
        self._input_buf.append(text)

    def add_output_fragment(self, text: str) -> None:
        self._output_buf.append(text)

    def flush_turn(self, persona_name: str) -> list[TranscriptEntry]:
        """Turn buffered fragments into entries: user line first, then persona."""
        added: list[TranscriptEntry] = []
        user_text = "".join(self._input_buf).strip()
        self._input_buf.clear()
        if user_text:
            added.append(self._append(self._candidate_label, user_text))
        persona_text = "".join(self._output_buf).strip()
        self._output_buf.clear()
        if persona_text:
            added.append(self._append(persona_name, persona_text))
        return added

    def recent_lines(self, count: int) -> list[str]:
        if count <= 0:
            return []
        return [e.as_line() for e in self._entries[-count:]]

    def transcript_text(self) -> str:
        return "\n".join(e.as_line() for e in self._entries)

    def _append(self, speaker: str, text: str) -> TranscriptEntry:
        entry = TranscriptEntry(speaker=speaker, text=text, sequence=len(self._entries))
        self._entries.append(entry)
        return entry

    def _log_status(self) -> None:
        now = time.monotonic()
        if now - self._last_log < _STATUS_LOG_INTERVAL:
            return
        remote_delta = self._remote_bytes - self._last_remote_bytes
        logger.info(
            "[%.0fs] %s | mic %dKB / ai %dKB",
            now - self._started_at,
            "AI speaking" if remote_delta > 0 else "listening",
            self._local_bytes // 1024,
            self._remote_bytes // 1024,
        )
        self._last_log = now
        self._last_remote_bytes = self._remote_bytes
