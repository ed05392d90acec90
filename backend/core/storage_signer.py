"""Signs public Supabase storage URLs inside vision messages.

Form images live in storage buckets that are not readable by the model API.
Before the vision proxy forwards a conversation, each image reference that
points at this project's public storage path is swapped for a short-lived
signed URL, provided the object path belongs to the caller.
"""

import copy
from typing import Any
from urllib.parse import unquote, urlparse

import structlog
from supabase import Client, StorageException, create_client

from backend.core.auth_gate import Identity
from backend.core.config import Settings
from backend.core.errors import ConfigurationError

logger = structlog.get_logger(__name__)

PUBLIC_OBJECT_MARKER = "/storage/v1/object/public/"
SIGNED_URL_TTL_SECONDS = 60 * 60


def split_storage_path(url: str, supabase_url: str) -> tuple[str, str] | None:
    """Return (bucket, object_path) for a public storage URL of this project.

    Returns None for any URL that is not a public object URL on supabase_url.
    """
    if not url.startswith(supabase_url) or PUBLIC_OBJECT_MARKER not in url:
        return None

    path = unquote(urlparse(url).path)
    _, sep, bucket_and_path = path.partition(PUBLIC_OBJECT_MARKER)
    if not sep:
        return None

    bucket, _, object_path = bucket_and_path.partition("/")
    if not bucket or not object_path:
        return None
    return bucket, object_path


class StorageSigner:
    """Creates signed URLs with the service-role client."""

    def __init__(self, supabase_url: str, client: Client | None):
        self.supabase_url = supabase_url
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageSigner":
        client = None
        if settings.supabase_service_role_key:
            client = create_client(settings.supabase_url, settings.supabase_service_role_key)
        else:
            logger.warning("storage.no_service_role_key")
        return cls(settings.supabase_url, client)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def _sign(self, bucket: str, object_path: str) -> str | None:
        try:
            result = self._client.storage.from_(bucket).create_signed_url(object_path, SIGNED_URL_TTL_SECONDS)
        except StorageException as e:
            logger.warning("storage.sign_failed", bucket=bucket, error=str(e))
            return None
        if not result:
            return None
        return result.get("signedURL") or result.get("signedUrl")

    def sign_message_images(self, messages: list[dict[str, Any]], identity: Identity) -> list[dict[str, Any]]:
        """Return a copy of messages with the caller's storage images signed.

        Only `image_url` parts of `user` messages are considered. URLs for
        objects whose path does not contain the caller's user id are left as
        they are.

        Raises:
            ConfigurationError: If no service-role key is configured.
        """
        if not self.enabled:
            raise ConfigurationError("SUPABASE_SERVICE_ROLE_KEY is not set")

        processed = copy.deepcopy(messages)
        signed = 0

        for message in processed:
            if not isinstance(message, dict) or message.get("role") != "user":
                continue
            content = message.get("content")
            if not isinstance(content, list):
                continue

            for item in content:
                if not isinstance(item, dict) or item.get("type") != "image_url":
                    continue
                image_url = item.get("image_url")
                if not isinstance(image_url, dict) or not isinstance(image_url.get("url"), str):
                    continue

                location = split_storage_path(image_url["url"], self.supabase_url)
                if location is None:
                    continue
                bucket, object_path = location

                if identity.user_id not in object_path:
                    logger.warning("storage.foreign_object_skipped", bucket=bucket)
                    continue

                signed_url = self._sign(bucket, object_path)
                if signed_url:
                    image_url["url"] = signed_url
                    signed += 1

        logger.debug("storage.signed", count=signed)
        return processed
