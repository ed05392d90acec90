"""Pydantic models for the API layer.

Request fields are optional at the model level so that a missing field is
reported by the relay as a 400 with a specific message, after authentication.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProcessFormRequest(BaseModel):
    """Form image to extract fields from."""
    image: str | None = Field(None, description="Base64 data URL or plain image URL")


class TranscribeRequest(BaseModel):
    """Recorded audio as a data URI."""
    model_config = ConfigDict(populate_by_name=True)

    audio_uri: str | None = Field(None, alias="audioUri", description="data:audio/m4a;base64,...")


class TranscriptionResponse(BaseModel):
    transcription: str


class SpeechRequest(BaseModel):
    text: str | None = None


class SpeechResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audio_base64: str = Field(..., alias="audioBase64")


class ChatProxyRequest(BaseModel):
    """OpenAI-style chat payload forwarded by the chat and vision proxies."""
    messages: list[dict[str, Any]] | None = None
    model: str | None = None
    max_tokens: int = Field(500, gt=0)
    temperature: float = Field(0.7, ge=0.0, le=2.0)


class SessionRequest(BaseModel):
    """Realtime session options. Both fall back to server defaults."""
    model: str | None = None
    voice: str | None = None
