#!/usr/bin/env python3
"""Send a local media file to a running relay.

Usage:
  python scripts/invoke_relay.py transcribe recording.m4a --token <jwt>
  python scripts/invoke_relay.py process-form form.jpg --token <jwt>
"""

import argparse
import json
import mimetypes
import os
import sys
from pathlib import Path

# Add project root to sys.path so we can import backend packages
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import httpx
from dotenv import load_dotenv

from backend.core.data_uri import encode_data_uri

ENDPOINTS = {
    "transcribe": ("/transcribe-audio", "audioUri", "audio/m4a"),
    "process-form": ("/process-form", "image", "image/jpeg"),
}


def build_payload(command: str, path: Path) -> tuple[str, dict]:
    """Encode a file as a data URI under the field the endpoint expects."""
    endpoint, field, default_mime = ENDPOINTS[command]
    mime_type = mimetypes.guess_type(path.name)[0] or default_mime
    return endpoint, {field: encode_data_uri(path.read_bytes(), mime_type)}


def main():
    parser = argparse.ArgumentParser(description="Invoke a form relay endpoint with a local file.")
    parser.add_argument("command", choices=sorted(ENDPOINTS))
    parser.add_argument("file", type=Path)
    parser.add_argument("--token", help="Supabase access token (defaults to RELAY_TOKEN)")
    parser.add_argument("--url", help="Relay base URL (defaults to RELAY_URL or http://localhost:8000)")
    args = parser.parse_args()

    load_dotenv(project_root / ".env")

    token = args.token or os.environ.get("RELAY_TOKEN")
    base_url = args.url or os.environ.get("RELAY_URL", "http://localhost:8000")
    if not token:
        parser.error("an access token is required (--token or RELAY_TOKEN)")
    if not args.file.is_file():
        parser.error(f"{args.file} is not a file")

    endpoint, payload = build_payload(args.command, args.file)
    response = httpx.post(
        f"{base_url.rstrip('/')}{endpoint}",
        json=payload,
        headers={"Authorization": f"Bearer {token}"},
        timeout=120,
    )

    print(f"HTTP {response.status_code}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)

    sys.exit(0 if response.is_success else 1)


if __name__ == "__main__":
    main()
