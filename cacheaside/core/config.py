"""Library configuration (settings and environment).

Single source of truth for connection settings and cache policy. Uses
pydantic-settings with .env support. The document store URI, project,
database, application name and the cache URI are required; a missing
value is a startup-time ConfigurationException, never a runtime error.
"""

import logging
from functools import lru_cache

from pydantic import SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cacheaside.core.constants import (
    CACHE_KEY_SEP,
    DEFAULT_CACHE_EXPIRY,
    ENV_PREFIX,
)
from cacheaside.domain.exceptions import ConfigurationException

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings loaded from CACHEASIDE_* environment variables and .env.

    Connection settings have no defaults. Policy settings (TTL, namespace,
    timeouts) default to values suitable for local development.
    """

    # Document store (Firestore REST)
    document_store_uri: str
    document_store_project: str
    document_store_database: str
    document_store_app_name: str
    # Service account: key (JSON string) or path (file). Neither = unauthenticated (emulator).
    document_store_credentials_key: SecretStr | None = None
    document_store_credentials_path: str | None = None
    document_store_timeout_seconds: float = 30.0

    # Cache (Redis)
    cache_uri: str
    cache_default_ttl: int = DEFAULT_CACHE_EXPIRY
    cache_namespace: str = ""
    cache_socket_timeout: float = 5.0

    debug: bool = False

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator(
        "document_store_uri",
        "document_store_project",
        "document_store_database",
        "document_store_app_name",
        "cache_uri",
    )
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("document_store_uri")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("cache_default_ttl")
    @classmethod
    def ttl_not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be >= 0 (0 means never expire)")
        return value

    @field_validator("cache_namespace")
    @classmethod
    def namespace_without_separator(cls, value: str) -> str:
        if CACHE_KEY_SEP in value:
            raise ValueError(f"must not contain {CACHE_KEY_SEP!r}")
        return value


def env_name(field: str) -> str:
    return f"{ENV_PREFIX}{field}".upper()


def load_settings() -> Settings:
    """Build Settings from the environment, translating validation errors.

    Raises:
        ConfigurationException: If required variables are missing or any
            value fails validation.
    """
    try:
        return Settings()
    except ValidationError as e:
        missing: list[str] = []
        invalid: dict[str, str] = {}
        for err in e.errors():
            name = env_name(str(err["loc"][0])) if err["loc"] else ENV_PREFIX
            if err["type"] == "missing":
                logger.error("%s was not set", name)
                missing.append(name)
            else:
                logger.error("%s is invalid: %s", name, err["msg"])
                invalid[name] = err["msg"]
        raise ConfigurationException(missing=missing, invalid=invalid) from None


@lru_cache
def get_settings() -> Settings:
    """Return cached settings. Call get_settings.cache_clear() after changing env in tests."""
    return load_settings()
