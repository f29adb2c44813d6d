"""panelkit - Live multi-persona voice panels over a realtime speech backend."""

from panelkit._version import __version__
from panelkit.config import PanelConfig
from panelkit.errors import (
    AudioDeviceError,
    EnrichmentError,
    InvalidTransitionError,
    PanelKitError,
    SessionConnectionError,
    ToolCallValidationError,
)
from panelkit.models import (
    FactCheck,
    FactCheckVerdict,
    HandoffContext,
    Persona,
    PromptSections,
    Roster,
    SavedArtifacts,
    SessionReport,
    SessionStatus,
    SessionTrigger,
    TicketLedger,
    TranscriptEntry,
    TransferBriefing,
    TransferReason,
    TransferRequest,
    Verdict,
)
from panelkit.orchestration import TurnOrchestrator, configure_roster
from panelkit.providers.brain import MockTextAnalysisProvider, TextAnalysisProvider
from panelkit.store import ArtifactStore, FileArtifactStore, InMemoryArtifactStore
from panelkit.voice import (
    AudioCaptureEngine,
    AudioFrame,
    AudioPlaybackScheduler,
    SoundDevicePlaybackSink,
    TranscriptRecorder,
)
from panelkit.voice.realtime import (
    MockRealtimeProvider,
    RealtimeEvent,
    RealtimeEventType,
    RealtimeVoiceProvider,
)

__all__ = [
    # Orchestration
    "PanelConfig",
    "TurnOrchestrator",
    "configure_roster",
    # Errors
    "AudioDeviceError",
    "EnrichmentError",
    "InvalidTransitionError",
    "PanelKitError",
    "SessionConnectionError",
    "ToolCallValidationError",
    # Models
    "FactCheck",
    "FactCheckVerdict",
    "HandoffContext",
    "Persona",
    "PromptSections",
    "Roster",
    "SavedArtifacts",
    "SessionReport",
    "SessionStatus",
    "SessionTrigger",
    "TicketLedger",
    "TranscriptEntry",
    "TransferBriefing",
    "TransferReason",
    "TransferRequest",
    "Verdict",
    # Providers
    "MockRealtimeProvider",
    "MockTextAnalysisProvider",
    "RealtimeEvent",
    "RealtimeEventType",
    "RealtimeVoiceProvider",
    "TextAnalysisProvider",
    # Audio
    "AudioCaptureEngine",
    "AudioFrame",
    "AudioPlaybackScheduler",
    "SoundDevicePlaybackSink",
    "TranscriptRecorder",
    # Storage
    "ArtifactStore",
    "FileArtifactStore",
    "InMemoryArtifactStore",
    "__version__",
]
