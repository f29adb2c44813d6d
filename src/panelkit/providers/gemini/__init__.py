"""Google Gemini providers."""

from panelkit.providers.gemini.brain import GeminiTextAnalysisProvider
from panelkit.providers.gemini.config import GeminiConfig
from panelkit.providers.gemini.realtime import GeminiLiveProvider

__all__ = ["GeminiConfig", "GeminiLiveProvider", "GeminiTextAnalysisProvider"]
