"""Shared fixtures for all tests."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from backend.api.dependencies import RelayServices
from backend.core.auth_gate import AuthGate
from backend.core.config import Settings
from backend.core.model_adapter import ModelAdapter
from backend.core.storage_signer import StorageSigner
from backend.main import app

SUPABASE_URL = "https://demo-project.supabase.co"
USER_ID = "8d0f6c1e-user-42"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="test-openai-key",
        supabase_url=SUPABASE_URL,
        supabase_anon_key="test-anon-key",
        supabase_service_role_key="test-service-role-key",
    )


@pytest.fixture
def supabase_client(mocker):
    """Fake anon-key Supabase client whose get_user accepts any token."""
    client = mocker.MagicMock()
    client.auth.get_user.return_value = SimpleNamespace(user=SimpleNamespace(id=USER_ID))
    return client


@pytest.fixture
def service_client(mocker):
    """Fake service-role Supabase client that signs every object."""
    client = mocker.MagicMock()
    client.storage.from_.return_value.create_signed_url.side_effect = (
        lambda path, expires_in: {"signedURL": f"{SUPABASE_URL}/storage/v1/object/sign/{path}?token=t"}
    )
    return client


@pytest.fixture
def model(mocker):
    adapter = mocker.create_autospec(ModelAdapter, instance=True)
    adapter.is_healthy.return_value = True
    return adapter


@pytest.fixture
def services(settings, supabase_client, service_client, model) -> RelayServices:
    return RelayServices(
        settings=settings,
        auth_gate=AuthGate(supabase_client),
        model=model,
        signer=StorageSigner(settings.supabase_url, service_client),
    )


@pytest.fixture
def client(services):
    """TestClient with services injected directly (lifespan is not run)."""
    app.state.services = services
    yield TestClient(app)
    del app.state.services


@pytest.fixture
def bare_client():
    """TestClient for an app whose services were never built."""
    if hasattr(app.state, "services"):
        del app.state.services
    return TestClient(app)
