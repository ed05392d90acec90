"""Data URI parsing for media payloads.

A payload looks like `data:<mime>;base64,<payload>`. Parsing is done in two
explicit stages: split the header from the payload on the first comma, then
validate the header before decoding. Any deviation is a BadRequest.
"""

import base64
import binascii
from dataclasses import dataclass

from backend.core.errors import BadRequest

_SCHEME = "data:"
_BASE64_MARKER = ";base64"


@dataclass(frozen=True)
class DecodedMedia:
    """Raw media bytes plus the MIME type they were declared with."""
    mime_type: str
    data: bytes

    def __len__(self) -> int:
        return len(self.data)


def split_data_uri(uri: str) -> tuple[str, str]:
    """Split a data URI into (header, payload) on the first comma.

    Raises:
        BadRequest: If there is no comma separator.
    """
    header, sep, payload = uri.partition(",")
    if not sep:
        raise BadRequest("Malformed data URI: missing ',' separator")
    return header, payload


def parse_header(header: str, expected_prefix: str = "") -> str:
    """Validate a `data:<mime>;base64` header and return the MIME type.

    Args:
        header: Everything before the first comma.
        expected_prefix: MIME prefix the payload must declare, e.g. "audio/".

    Raises:
        BadRequest: If the header is not a base64 data URI header or the MIME
            type does not start with expected_prefix.
    """
    if not header.startswith(_SCHEME) or not header.endswith(_BASE64_MARKER):
        raise BadRequest("Malformed data URI: expected 'data:<mime>;base64' header")

    mime_type = header[len(_SCHEME):-len(_BASE64_MARKER)].strip().lower()
    # Drop parameters such as ";codecs=opus"
    mime_type = mime_type.split(";", 1)[0]
    if not mime_type or "/" not in mime_type:
        raise BadRequest("Malformed data URI: missing MIME type")
    if expected_prefix and not mime_type.startswith(expected_prefix):
        raise BadRequest(f"Unsupported media type '{mime_type}', expected {expected_prefix}*")
    return mime_type


def decode_data_uri(uri: str, expected_prefix: str = "") -> DecodedMedia:
    """Decode a base64 data URI into raw bytes.

    Args:
        uri: The full data URI string.
        expected_prefix: Required MIME prefix, or "" to accept any type.

    Returns:
        DecodedMedia with the declared MIME type and decoded bytes.

    Raises:
        BadRequest: On a missing separator, a bad header, or invalid base64.
    """
    header, payload = split_data_uri(uri.strip())
    mime_type = parse_header(header, expected_prefix)

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise BadRequest("Malformed data URI: payload is not valid base64") from e

    if not data:
        raise BadRequest("Malformed data URI: empty payload")
    return DecodedMedia(mime_type=mime_type, data=data)


def encode_data_uri(data: bytes, mime_type: str) -> str:
    """Inverse of decode_data_uri."""
    return f"{_SCHEME}{mime_type}{_BASE64_MARKER},{base64.b64encode(data).decode('ascii')}"
