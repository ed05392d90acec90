"""Request-scoped dependencies for the relay routes.

The process-wide clients are bundled into RelayServices at startup and read
back from app.state for each request.
"""

from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import Depends, Header, Request

from backend.core.auth_gate import AuthGate, Identity
from backend.core.config import Settings
from backend.core.errors import BadRequest, ConfigurationError
from backend.core.model_adapter import ModelAdapter
from backend.core.storage_signer import StorageSigner

logger = structlog.get_logger(__name__)


@dataclass
class RelayServices:
    """Clients shared by every request in this process."""
    settings: Settings
    auth_gate: AuthGate
    model: ModelAdapter
    signer: StorageSigner


def build_services(settings: Settings) -> RelayServices:
    """Construct the shared clients once per process."""
    return RelayServices(
        settings=settings,
        auth_gate=AuthGate.from_settings(settings),
        model=ModelAdapter(settings),
        signer=StorageSigner.from_settings(settings),
    )


def get_services(request: Request) -> RelayServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise ConfigurationError("Relay services are not initialized")
    return services


def require_identity(
    authorization: str | None = Header(default=None),
    services: RelayServices = Depends(get_services),
) -> Identity:
    """Auth gate as a dependency. Resolved before the route parses its payload."""
    return services.auth_gate.resolve(authorization)


async def read_payload(
    request: Request,
    identity: Identity = Depends(require_identity),
) -> Any:
    """Decoded JSON body, read only once the caller is authenticated.

    Returns None for an empty body. Depending on require_identity keeps a
    malformed body from masking a missing or rejected token.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return await request.json()
    except ValueError as e:
        raise BadRequest("Malformed request body") from e
