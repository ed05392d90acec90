"""FastAPI endpoints for the relay service.

POST /process-form     - extract form field descriptors from an image
POST /transcribe-audio - speech-to-text on a data URI recording
POST /text-to-speech   - synthesize speech for a piece of text
POST /openai-proxy     - forward a chat completion with the server model
POST /openai-vision    - forward a vision completion with signed storage images
POST /oai-session      - mint an ephemeral realtime session
GET /health            - component health check
"""

import base64
import time
from typing import Any, TypeVar

import structlog
from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ValidationError

from backend.api.dependencies import RelayServices, get_services, read_payload, require_identity
from backend.api.schemas import (
    ChatProxyRequest,
    ProcessFormRequest,
    SessionRequest,
    SpeechRequest,
    SpeechResponse,
    TranscribeRequest,
    TranscriptionResponse,
)
from backend.core.auth_gate import Identity
from backend.core.data_uri import decode_data_uri
from backend.core.errors import BadRequest
from backend.forms.fields import check_field_descriptors

logger = structlog.get_logger(__name__)

router = APIRouter()

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(payload: Any, model: type[ModelT], error_message: str | None = None) -> ModelT:
    """Validate a raw JSON body against a request model.

    Args:
        payload: Decoded JSON body, or None if the body was empty.
        model: Request model to validate into.
        error_message: Message for the BadRequest raised on validation failure.
            Defaults to the first pydantic error.

    Raises:
        BadRequest: If the body is not a JSON object or fails validation.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object")

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        if error_message:
            raise BadRequest(error_message) from e
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise BadRequest(f"Invalid request: {field}: {first['msg']}") from e


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


@router.post("/process-form")
def process_form(
    payload: Any = Depends(read_payload),
    identity: Identity = Depends(require_identity),
    services: RelayServices = Depends(get_services),
):
    """Extract field descriptors from a form image and relay the model's JSON verbatim."""
    start = time.monotonic()
    body = parse_payload(payload, ProcessFormRequest)
    if not body.image:
        raise BadRequest("Missing image in request body")

    logger.info("relay.process_form.request", image_len=len(body.image))
    raw_text = services.model.extract_form_fields(body.image)

    # Passed through unchanged either way; the caller owns validation
    check = check_field_descriptors(raw_text)
    if not check.matches:
        logger.warning("relay.process_form.schema_mismatch", violations=check.violations[:5])

    logger.info("relay.process_form.response", fields=check.field_count, latency_ms=_elapsed_ms(start))
    return Response(content=raw_text, media_type="application/json")


@router.post("/transcribe-audio", response_model=TranscriptionResponse)
def transcribe_audio(
    payload: Any = Depends(read_payload),
    identity: Identity = Depends(require_identity),
    services: RelayServices = Depends(get_services),
):
    """Decode a data URI recording and transcribe it."""
    start = time.monotonic()
    body = parse_payload(payload, TranscribeRequest)
    if not body.audio_uri:
        raise BadRequest("Missing audioUri")

    media = decode_data_uri(body.audio_uri, expected_prefix="audio/")
    logger.info("relay.transcribe.request", mime_type=media.mime_type, size=len(media))

    text = services.model.transcribe(media)

    logger.info("relay.transcribe.response", chars=len(text), latency_ms=_elapsed_ms(start))
    return TranscriptionResponse(transcription=text)


@router.post("/text-to-speech", response_model=SpeechResponse)
def text_to_speech(
    payload: Any = Depends(read_payload),
    identity: Identity = Depends(require_identity),
    services: RelayServices = Depends(get_services),
):
    """Synthesize speech and return it base64-encoded."""
    start = time.monotonic()
    body = parse_payload(payload, SpeechRequest)
    if not body.text:
        raise BadRequest("Missing text")

    logger.info("relay.speech.request", chars=len(body.text))
    audio = services.model.synthesize_speech(body.text)

    logger.info("relay.speech.response", size=len(audio), latency_ms=_elapsed_ms(start))
    return SpeechResponse(audio_base64=base64.b64encode(audio).decode("ascii"))


@router.post("/openai-proxy")
def openai_proxy(
    payload: Any = Depends(read_payload),
    identity: Identity = Depends(require_identity),
    services: RelayServices = Depends(get_services),
):
    """Forward a chat completion. The model is always chosen server-side."""
    start = time.monotonic()
    body = parse_payload(payload, ChatProxyRequest, "Invalid request: messages array is required")
    if body.messages is None:
        raise BadRequest("Invalid request: messages array is required")

    model = services.settings.proxy_model
    if body.model and body.model != model:
        logger.info("relay.proxy.model_ignored", requested=body.model, selected=model)

    logger.info("relay.proxy.request", model=model, messages=len(body.messages))
    completion = services.model.chat_completion(body.messages, model, body.max_tokens, body.temperature)

    logger.info("relay.proxy.response", latency_ms=_elapsed_ms(start))
    return completion


@router.post("/openai-vision")
def openai_vision(
    payload: Any = Depends(read_payload),
    identity: Identity = Depends(require_identity),
    services: RelayServices = Depends(get_services),
):
    """Forward a vision completion after signing the caller's storage images."""
    start = time.monotonic()
    body = parse_payload(payload, ChatProxyRequest, "Invalid request: messages array is required")
    if body.messages is None:
        raise BadRequest("Invalid request: messages array is required")

    model = body.model or services.settings.vision_model
    messages = services.signer.sign_message_images(body.messages, identity)

    logger.info("relay.vision.request", model=model, messages=len(messages))
    completion = services.model.chat_completion(messages, model, body.max_tokens, body.temperature)

    logger.info("relay.vision.response", latency_ms=_elapsed_ms(start))
    return completion


@router.post("/oai-session")
def oai_session(
    payload: Any = Depends(read_payload),
    identity: Identity = Depends(require_identity),
    services: RelayServices = Depends(get_services),
):
    """Create an ephemeral realtime session for the voice chat screen."""
    body = parse_payload(payload, SessionRequest)
    model = body.model or services.settings.session_model
    voice = body.voice or services.settings.session_voice

    logger.info("relay.session.request", model=model, voice=voice)
    return services.model.create_realtime_session(model, voice)


@router.get("/health")
def health(req: Request):
    """Check whether the upstream collaborators are configured."""
    services = getattr(req.app.state, "services", None)
    components = {}

    if services is None:
        components = {"openai": "error", "supabase": "error", "storage_signing": "error"}
    else:
        components["openai"] = "ok" if services.model.is_healthy() else "error"
        components["supabase"] = "ok" if services.settings.supabase_url else "error"
        components["storage_signing"] = "ok" if services.signer.enabled else "error"

    errors = [k for k, v in components.items() if v == "error"]
    if not errors:
        status = "healthy"
    elif len(errors) == len(components):
        status = "unhealthy"
    else:
        status = "degraded"

    return {"status": status, "components": components}


@router.get("/")
@router.head("/")
def root_health():
    """Basic liveness probe for the hosting platform."""
    return {"status": "ok", "service": "form-relay"}
