"""Environment-backed settings for the relay service.

Secrets are read once when the app starts. A missing required value raises
ConfigurationError so the process fails fast instead of making degraded calls.
"""

import os

import structlog
from pydantic import BaseModel

from backend.core.errors import ConfigurationError

logger = structlog.get_logger(__name__)

REQUIRED_ENV_VARS = ("OPENAI_API_KEY", "SUPABASE_URL", "SUPABASE_ANON_KEY")


class Settings(BaseModel):
    """Resolved configuration. Treat as immutable after startup."""
    openai_api_key: str
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str | None = None

    openai_base_url: str = "https://api.openai.com/v1"
    form_extraction_model: str = "gpt-4o"
    form_extraction_max_tokens: int = 2000
    transcription_model: str = "whisper-1"
    tts_model: str = "tts-1"
    tts_voice: str = "alloy"
    proxy_model: str = "gpt-4o"
    vision_model: str = "gpt-4o"
    session_model: str = "gpt-4o-realtime-preview-2024-12-17"
    session_voice: str = "alloy"

    model_config = {"frozen": True}


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build Settings from the process environment.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        Populated Settings instance.

    Raises:
        ConfigurationError: If any of REQUIRED_ENV_VARS is missing or blank.
    """
    env = os.environ if environ is None else environ

    missing = [name for name in REQUIRED_ENV_VARS if not env.get(name, "").strip()]
    if missing:
        logger.error("config.missing_env", missing=missing)
        raise ConfigurationError(f"Required environment variables are not set: {', '.join(missing)}")

    optional = {
        "openai_base_url": env.get("OPENAI_BASE_URL"),
        "form_extraction_model": env.get("FORM_EXTRACTION_MODEL"),
        "form_extraction_max_tokens": env.get("FORM_EXTRACTION_MAX_TOKENS"),
        "transcription_model": env.get("TRANSCRIPTION_MODEL"),
        "tts_model": env.get("TTS_MODEL"),
        "tts_voice": env.get("TTS_VOICE"),
        "proxy_model": env.get("OAI_PROXY_MODEL"),
        "vision_model": env.get("OAI_VISION_MODEL"),
        "session_model": env.get("OAI_SESSION_MODEL"),
        "session_voice": env.get("OAI_SESSION_VOICE"),
    }

    return Settings(
        openai_api_key=env["OPENAI_API_KEY"],
        supabase_url=env["SUPABASE_URL"].rstrip("/"),
        supabase_anon_key=env["SUPABASE_ANON_KEY"],
        supabase_service_role_key=env.get("SUPABASE_SERVICE_ROLE_KEY") or None,
        **{k: v for k, v in optional.items() if v},
    )
