"""Error taxonomy for the relay functions.

Every failure site raises one of the RelayError subclasses below. The status
code comes from STATUS_CODES, never from the message text.
"""

from enum import Enum

from starlette.responses import JSONResponse

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    BAD_REQUEST = "bad_request"
    UPSTREAM_ERROR = "upstream_error"
    CONFIGURATION_ERROR = "configuration_error"


STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UPSTREAM_ERROR: 500,
    ErrorKind.CONFIGURATION_ERROR: 500,
}


class RelayError(Exception):
    """Base class for classified relay failures."""
    kind: ErrorKind = ErrorKind.UPSTREAM_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    @property
    def public_message(self) -> str:
        """Message safe to return to the caller."""
        return self.message


class Unauthenticated(RelayError):
    """Missing, invalid or expired bearer token."""
    kind = ErrorKind.UNAUTHENTICATED


class BadRequest(RelayError):
    """Missing or malformed required input."""
    kind = ErrorKind.BAD_REQUEST


class UpstreamError(RelayError):
    """The model API or backend failed or returned something unusable."""
    kind = ErrorKind.UPSTREAM_ERROR


class ConfigurationError(RelayError):
    """A required secret or environment value is absent."""
    kind = ErrorKind.CONFIGURATION_ERROR

    @property
    def public_message(self) -> str:
        # Do not tell callers which variable is missing
        return "Server configuration error"


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the uniform `{"error": ...}` envelope with CORS headers."""
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers=CORS_HEADERS,
    )


def relay_error_response(exc: RelayError) -> JSONResponse:
    return error_response(exc.status_code, exc.public_message)
