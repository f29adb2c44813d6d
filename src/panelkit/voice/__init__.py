"""Audio capture, playback, recording and the live backend connection."""

from panelkit.voice.audio_frame import AudioFrame
from panelkit.voice.capture import AudioCaptureEngine
from panelkit.voice.connection import SessionConnection
from panelkit.voice.inactivity import InactivityMonitor
from panelkit.voice.playback import (
    AudioPlaybackScheduler,
    PlaybackSink,
    ScheduledFrame,
    SoundDevicePlaybackSink,
)
from panelkit.voice.recorder import TranscriptRecorder, mix_frames
from panelkit.voice.resampler import LinearResampler

__all__ = [
    "AudioCaptureEngine",
    "AudioFrame",
    "AudioPlaybackScheduler",
    "InactivityMonitor",
    "LinearResampler",
    "PlaybackSink",
    "ScheduledFrame",
    "SessionConnection",
    "SoundDevicePlaybackSink",
    "TranscriptRecorder",
    "mix_frames",
]
