"""Text-analysis collaborator ("Brain") abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from panelkit.models.analysis import PromptSections, TransferBriefing, Verdict
from panelkit.models.enums import TransferReason
from panelkit.models.persona import Persona


class TextAnalysisProvider(ABC):
    """Background model that prepares personas and assesses the candidate.

    Calls have arbitrary latency and may fail; callers treat every failure
    as non-fatal for the live conversation.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g. 'gemini_brain')."""
        ...

    @abstractmethod
    async def configure_persona(
        self,
        persona: Persona,
        colleagues: list[Persona],
        scenario: str = "",
    ) -> PromptSections:
        """Generate the prompt sections and voice for one persona."""
        ...

    @abstractmethod
    async def brief_transfer(
        self,
        from_name: str,
        to_name: str,
        transcript: str,
        summary: str,
        reason: TransferReason,
    ) -> TransferBriefing:
        """Grade the candidate's last exchange at a hand-off."""
        ...

    @abstractmethod
    async def final_verdict(self, transcript: str) -> Verdict:
        """Evaluate the whole conversation."""
        ...

    async def close(self) -> None:
        """Release provider resources."""
