"""Firestore client construction (REST-based, no firebase-admin).

Built once at startup from Settings, using either
CACHEASIDE_DOCUMENT_STORE_CREDENTIALS_KEY (JSON string) or
CACHEASIDE_DOCUMENT_STORE_CREDENTIALS_PATH (file path). With neither set the
client is unauthenticated, for the Firestore emulator.
"""

import json
import logging
from pathlib import Path

import httpx

from cacheaside.core.config import Settings, env_name
from cacheaside.domain.exceptions import ConfigurationException
from cacheaside.infrastructure.documents._rest_client import (
    FirestoreRESTClient,
    _get_credentials,
)

logger = logging.getLogger(__name__)


def _load_key_dict(settings: Settings) -> dict | None:
    """Return service account dict from env key or file path, or None if neither is set."""
    key = settings.document_store_credentials_key
    key_json = key.get_secret_value() if key else None
    if key_json:
        try:
            return json.loads(key_json)
        except json.JSONDecodeError:
            name = env_name("document_store_credentials_key")
            logger.error("%s is not valid JSON", name)
            raise ConfigurationException(invalid={name: "not valid JSON"}) from None
    path = settings.document_store_credentials_path
    if path:
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_file():
            name = env_name("document_store_credentials_path")
            logger.error("%s set but file not found: %s", name, resolved)
            raise ConfigurationException(invalid={name: f"file not found: {resolved}"})
        with open(resolved, encoding="utf-8") as f:
            return json.load(f)
    return None


def create_firestore_client(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> FirestoreRESTClient:
    """Build the shared Firestore REST client from settings.

    Args:
        settings: Loaded settings.
        http_client: Optional injected httpx client (tests, custom transports).

    Raises:
        ConfigurationException: If configured credentials cannot be loaded.
    """
    key_dict = _load_key_dict(settings)
    credentials = _get_credentials(key_dict) if key_dict else None
    if credentials is None:
        logger.info("Document store credentials not set; sending unauthenticated requests")
    return FirestoreRESTClient(
        settings.document_store_uri,
        settings.document_store_project,
        settings.document_store_database,
        credentials,
        app_name=settings.document_store_app_name,
        timeout=settings.document_store_timeout_seconds,
        http_client=http_client,
    )
