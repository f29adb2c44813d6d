"""Tests for TranscriptRecorder mixing and line transcript."""

from __future__ import annotations

import io
import wave

import numpy as np
import pytest

from panelkit.voice.pcm import pcm16_to_float
from panelkit.voice.recorder import TranscriptRecorder, mix_frames
from tests.conftest import make_pcm, make_silence


@pytest.fixture
def recorder() -> TranscriptRecorder:
    return TranscriptRecorder(sample_rate=16000, remote_rate=24000, candidate_label="Candidate")


class TestMixFrames:
    def test_sum_is_clipped(self) -> None:
        out = mix_frames([0.8, -0.8, 0.2], [0.5, -0.5, 0.1])
        np.testing.assert_allclose(out, [1.0, -1.0, 0.3], atol=1e-6)

    def test_length_mismatch(self) -> None:
        with pytest.raises(ValueError):
            mix_frames([0.0, 0.0], [0.0])


class TestAudioMixing:
    def test_local_only_is_zero_padded(self, recorder: TranscriptRecorder) -> None:
        mixed = recorder.add_local(make_pcm(160, amplitude=0.25))
        assert mixed.size == 160
        np.testing.assert_allclose(mixed, 0.25, atol=1e-3)

    def test_remote_is_resampled_and_consumed_fifo(self, recorder: TranscriptRecorder) -> None:
        recorder.add_remote(make_pcm(480, amplitude=0.5, rate=24000))
        assert recorder.pending_remote_samples == 320

        first = recorder.add_local(make_silence(200))
        np.testing.assert_allclose(first, 0.5, atol=1e-3)
        assert recorder.pending_remote_samples == 120

        second = recorder.add_local(make_silence(200))
        np.testing.assert_allclose(second[:120], 0.5, atol=1e-3)
        np.testing.assert_array_equal(second[120:], 0.0)
        assert recorder.pending_remote_samples == 0

    def test_mix_clamps(self, recorder: TranscriptRecorder) -> None:
        recorder.add_remote(make_pcm(240, amplitude=0.9, rate=24000))
        mixed = recorder.add_local(make_pcm(160, amplitude=0.9))
        assert float(np.max(mixed)) == pytest.approx(1.0)

    def test_remote_at_capture_rate_is_not_resampled(self, recorder: TranscriptRecorder) -> None:
        recorder.add_remote(make_pcm(100, rate=16000))
        assert recorder.pending_remote_samples == 100


class TestExportWav:
    def test_wav_format(self, recorder: TranscriptRecorder) -> None:
        assert not recorder.has_audio
        recorder.add_local(make_pcm(1600, amplitude=0.1))
        recorder.add_local(make_pcm(1600, amplitude=0.1))
        assert recorder.has_audio

        data = recorder.export_wav()
        with wave.open(io.BytesIO(data), "rb") as w:
            assert w.getnchannels() == 1
            assert w.getsampwidth() == 2
            assert w.getframerate() == 16000
            assert w.getnframes() == 3200
            samples = pcm16_to_float(w.readframes(3200))
        np.testing.assert_allclose(samples, 0.1, atol=1e-3)

    def test_empty_export_is_header_only(self, recorder: TranscriptRecorder) -> None:
        assert len(recorder.export_wav()) == 44


class TestTranscript:
    def test_flush_orders_candidate_then_persona(self, recorder: TranscriptRecorder) -> None:
        recorder.add_output_fragment("What is ")
        recorder.add_input_fragment("Hello")
        recorder.add_output_fragment("your moat?")
        entries = recorder.flush_turn("Alice")

        assert [e.as_line() for e in entries] == ["Candidate: Hello", "Alice: What is your moat?"]
        assert [e.sequence for e in recorder.entries] == [0, 1]

    def test_empty_buffers_produce_nothing(self, recorder: TranscriptRecorder) -> None:
        recorder.add_input_fragment("   ")
        assert recorder.flush_turn("Alice") == []
        assert recorder.entries == []

    def test_buffers_cleared_after_flush(self, recorder: TranscriptRecorder) -> None:
        recorder.add_output_fragment("One.")
        recorder.flush_turn("Alice")
        recorder.add_output_fragment("Two.")
        recorder.flush_turn("Bob")
        assert recorder.transcript_text() == "Alice: One.\nBob: Two."

    def test_recent_lines(self, recorder: TranscriptRecorder) -> None:
        for i in range(5):
            recorder.add_output_fragment(f"line {i}")
            recorder.flush_turn("Alice")
        assert recorder.recent_lines(2) == ["Alice: line 3", "Alice: line 4"]
        assert recorder.recent_lines(0) == []
        assert len(recorder.recent_lines(50)) == 5
