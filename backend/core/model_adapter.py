"""Model API adapter for the relay functions.

One instance is built at startup and shared by every request. Each method
makes exactly one upstream call with retries disabled; failures surface as
UpstreamError so the caller decides whether to retry.
"""

from typing import Any

import httpx
import openai
import structlog
from langchain_core.messages import BaseMessage, HumanMessage
from langchain_openai import ChatOpenAI

from backend.core.config import Settings
from backend.core.data_uri import DecodedMedia
from backend.core.errors import UpstreamError
from backend.forms.prompts import FORM_EXTRACTION_PROMPT

logger = structlog.get_logger(__name__)

# The mobile recorder always produces AAC in an m4a container
TRANSCRIPTION_FILE_NAME = "audio.m4a"
TRANSCRIPTION_CONTENT_TYPE = "audio/m4a"


def _message_text(message: BaseMessage) -> str:
    """Flatten LangChain message content into plain text."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class ModelAdapter:
    """Wraps the OpenAI SDK (audio, speech, chat) and ChatOpenAI (extraction)."""

    def __init__(
        self,
        settings: Settings,
        client: openai.OpenAI | None = None,
        extraction_llm: ChatOpenAI | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.settings = settings

        self._client = client or openai.OpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            max_retries=0,
        )

        self.extraction_llm = extraction_llm or ChatOpenAI(
            model=settings.form_extraction_model,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            max_tokens=settings.form_extraction_max_tokens,
            max_retries=0,
        )

        self._http = http_client or httpx.Client(
            base_url=settings.openai_base_url,
            headers={"Authorization": f"Bearer {settings.openai_api_key}"},
        )

    def is_healthy(self) -> bool:
        """True if an API key is configured. Does not call the API."""
        return bool(self.settings.openai_api_key)

    def extract_form_fields(self, image: str) -> str:
        """Ask the vision model for the field descriptors of a form image.

        Args:
            image: Data URL or plain URL of the form image.

        Returns:
            The model's raw JSON text, unparsed.

        Raises:
            UpstreamError: If the call fails or the response has no content.
        """
        message = HumanMessage(content=[
            {"type": "text", "text": FORM_EXTRACTION_PROMPT},
            {"type": "image_url", "image_url": {"url": image}},
        ])
        model = self.extraction_llm.bind(response_format={"type": "json_object"})

        logger.debug("model.extract", model=self.settings.form_extraction_model)
        try:
            response = model.invoke([message])
        except openai.OpenAIError as e:
            logger.error("model.extract_failed", error=str(e))
            raise UpstreamError(str(e)) from e

        text = _message_text(response)
        if not text.strip():
            logger.error("model.extract_empty")
            raise UpstreamError("No content in model response")
        return text

    def transcribe(self, media: DecodedMedia) -> str:
        """Run speech-to-text on decoded audio.

        The bytes are always presented as `audio.m4a` / `audio/m4a`, the
        format the client records in, whatever the data URI declared.
        """
        logger.debug("model.transcribe", model=self.settings.transcription_model, size=len(media))
        try:
            transcription = self._client.audio.transcriptions.create(
                file=(TRANSCRIPTION_FILE_NAME, media.data, TRANSCRIPTION_CONTENT_TYPE),
                model=self.settings.transcription_model,
            )
        except openai.OpenAIError as e:
            logger.error("model.transcribe_failed", error=str(e))
            raise UpstreamError(str(e)) from e

        return transcription.text

    def synthesize_speech(self, text: str) -> bytes:
        """Turn text into audio bytes."""
        logger.debug("model.speech", model=self.settings.tts_model, voice=self.settings.tts_voice)
        try:
            speech = self._client.audio.speech.create(
                model=self.settings.tts_model,
                voice=self.settings.tts_voice,
                input=text,
            )
        except openai.OpenAIError as e:
            logger.error("model.speech_failed", error=str(e))
            raise UpstreamError(str(e)) from e

        return speech.content

    def chat_completion(
        self,
        messages: list[dict[str, Any]],
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> dict[str, Any]:
        """Forward a chat completion and return the full completion object."""
        logger.debug("model.chat", model=model, messages=len(messages))
        try:
            completion = self._client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.OpenAIError as e:
            logger.error("model.chat_failed", model=model, error=str(e))
            raise UpstreamError(str(e)) from e

        return completion.model_dump(mode="json")

    def create_realtime_session(self, model: str, voice: str) -> dict[str, Any]:
        """Request an ephemeral realtime session token."""
        logger.debug("model.session", model=model, voice=voice)
        try:
            response = self._http.post("/realtime/sessions", json={"model": model, "voice": voice})
        except httpx.HTTPError as e:
            logger.error("model.session_failed", error=str(e))
            raise UpstreamError(str(e)) from e

        if response.is_error:
            logger.error("model.session_rejected", status=response.status_code, details=response.text[:500])
            raise UpstreamError("Failed to create session")

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("Session response was not valid JSON") from e
