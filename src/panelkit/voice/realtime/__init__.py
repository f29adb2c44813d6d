"""Realtime speech-to-speech provider support."""

from panelkit.voice.realtime.base import RealtimeSession, RealtimeSessionState
from panelkit.voice.realtime.events import RealtimeEvent, RealtimeEventType
from panelkit.voice.realtime.mock import MockCall, MockRealtimeProvider
from panelkit.voice.realtime.provider import RealtimeEventCallback, RealtimeVoiceProvider

__all__ = [
    # Core types
    "RealtimeSession",
    "RealtimeSessionState",
    # Events
    "RealtimeEvent",
    "RealtimeEventCallback",
    "RealtimeEventType",
    # ABCs
    "RealtimeVoiceProvider",
    # Mocks
    "MockCall",
    "MockRealtimeProvider",
]
