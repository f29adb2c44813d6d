"""Exception hierarchy for panelkit."""

from __future__ import annotations

__all__ = [
    "AudioDeviceError",
    "EnrichmentError",
    "InvalidTransitionError",
    "PanelKitError",
    "SessionConnectionError",
    "ToolCallValidationError",
]


class PanelKitError(Exception):
    """Base exception for all panelkit errors."""


class SessionConnectionError(PanelKitError):
    """Opening or using the realtime backend connection failed."""


class ToolCallValidationError(PanelKitError):
    """A tool call from the model named an unknown or exhausted target."""


class EnrichmentError(PanelKitError):
    """The background text-analysis collaborator failed."""


class AudioDeviceError(PanelKitError):
    """The microphone could not be opened (missing device, permission denied)."""


class InvalidTransitionError(PanelKitError):
    """A session state transition is not allowed from the current status."""

    def __init__(self, status: str, trigger: str) -> None:
        super().__init__(f"Transition {trigger!r} not allowed from status {status!r}")
        self.status = status
        self.trigger = trigger
