"""Unit tests for Pydantic API schemas."""

import pytest
from pydantic import ValidationError

from backend.api.schemas import (
    ChatProxyRequest,
    SessionRequest,
    SpeechResponse,
    TranscribeRequest,
    TranscriptionResponse,
)


class TestTranscribeRequest:

    def test_reads_camel_case_field(self):
        req = TranscribeRequest.model_validate({"audioUri": "data:audio/m4a;base64,QUJD"})
        assert req.audio_uri == "data:audio/m4a;base64,QUJD"

    def test_missing_field_is_none(self):
        assert TranscribeRequest.model_validate({}).audio_uri is None

    def test_extra_fields_ignored(self):
        req = TranscribeRequest.model_validate({"audioUri": "x", "duration": 3.2})
        assert req.audio_uri == "x"


class TestResponses:

    def test_transcription_serialization(self):
        assert TranscriptionResponse(transcription="hello").model_dump() == {"transcription": "hello"}

    def test_speech_uses_camel_case_alias(self):
        resp = SpeechResponse(audio_base64="SUQz")
        assert resp.model_dump(by_alias=True) == {"audioBase64": "SUQz"}


class TestChatProxyRequest:

    def test_defaults(self):
        req = ChatProxyRequest(messages=[{"role": "user", "content": "hi"}])
        assert req.max_tokens == 500
        assert req.temperature == 0.7
        assert req.model is None

    def test_messages_must_be_list(self):
        with pytest.raises(ValidationError):
            ChatProxyRequest.model_validate({"messages": "hi"})

    def test_non_positive_max_tokens_rejected(self):
        with pytest.raises(ValidationError):
            ChatProxyRequest(messages=[], max_tokens=0)

    def test_temperature_bounds(self):
        with pytest.raises(ValidationError):
            ChatProxyRequest(messages=[], temperature=3.5)


class TestSessionRequest:

    def test_all_optional(self):
        req = SessionRequest()
        assert req.model is None and req.voice is None
