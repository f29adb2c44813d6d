"""Data models for panelkit."""

from panelkit.models.analysis import FactCheck, PromptSections, TransferBriefing, Verdict
from panelkit.models.enums import (
    FactCheckVerdict,
    SessionStatus,
    SessionTrigger,
    TransferReason,
)
from panelkit.models.persona import Persona, Roster, TicketLedger
from panelkit.models.report import SavedArtifacts, SessionReport
from panelkit.models.transcript import TranscriptEntry
from panelkit.models.transfer import HandoffContext, TransferRequest

__all__ = [
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
]
