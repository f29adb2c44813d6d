"""Text-analysis collaborator providers."""

from panelkit.providers.brain.base import TextAnalysisProvider
from panelkit.providers.brain.mock import MockTextAnalysisProvider

__all__ = ["MockTextAnalysisProvider", "TextAnalysisProvider"]
