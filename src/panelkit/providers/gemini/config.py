"""Google Gemini provider configuration."""

from __future__ import annotations

from pydantic import BaseModel, SecretStr


class GeminiConfig(BaseModel):
    """Google Gemini configuration shared by the live and Brain providers."""

    api_key: SecretStr
    live_model: str = "gemini-2.5-flash-native-audio-preview-09-2025"
    brain_model: str = "gemini-2.5-flash"
    temperature: float = 1.0
