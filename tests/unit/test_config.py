"""Tests for Settings loading and client construction from configuration."""

import os

import pytest

from cacheaside.core.config import Settings, env_name, get_settings, load_settings
from cacheaside.domain.exceptions import ConfigurationException
from cacheaside.infrastructure.documents.client import create_firestore_client

REQUIRED = {
    "CACHEASIDE_DOCUMENT_STORE_URI": "http://localhost:8080/v1/",
    "CACHEASIDE_DOCUMENT_STORE_PROJECT": "demo",
    "CACHEASIDE_DOCUMENT_STORE_DATABASE": "(default)",
    "CACHEASIDE_DOCUMENT_STORE_APP_NAME": "orders-service",
    "CACHEASIDE_CACHE_URI": "redis://localhost:6379/0",
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without CACHEASIDE_* variables and with a fresh settings cache."""
    for name in list(os.environ):
        if name.startswith("CACHEASIDE_"):
            monkeypatch.delenv(name)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def required_env(monkeypatch):
    for name, value in REQUIRED.items():
        monkeypatch.setenv(name, value)


def test_env_name() -> None:
    assert env_name("cache_uri") == "CACHEASIDE_CACHE_URI"


def test_loads_required_and_defaults(required_env) -> None:
    settings = load_settings()

    assert settings.document_store_uri == "http://localhost:8080/v1"
    assert settings.document_store_app_name == "orders-service"
    assert settings.cache_default_ttl == 3600
    assert settings.cache_namespace == ""
    assert settings.document_store_credentials_key is None


def test_get_settings_is_cached(required_env) -> None:
    assert get_settings() is get_settings()


def test_missing_variables_are_all_reported(monkeypatch) -> None:
    monkeypatch.setenv("CACHEASIDE_CACHE_URI", "redis://localhost")

    with pytest.raises(ConfigurationException) as exc_info:
        load_settings()

    err = exc_info.value
    assert err.error_code == "CONFIGURATION_ERROR"
    assert sorted(err.details["missing"]) == [
        "CACHEASIDE_DOCUMENT_STORE_APP_NAME",
        "CACHEASIDE_DOCUMENT_STORE_DATABASE",
        "CACHEASIDE_DOCUMENT_STORE_PROJECT",
        "CACHEASIDE_DOCUMENT_STORE_URI",
    ]
    assert "CACHEASIDE_DOCUMENT_STORE_URI" in err.message


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("CACHEASIDE_CACHE_DEFAULT_TTL", "-5"),
        ("CACHEASIDE_CACHE_DEFAULT_TTL", "soon"),
        ("CACHEASIDE_CACHE_NAMESPACE", "a:b"),
        ("CACHEASIDE_CACHE_URI", "   "),
    ],
)
def test_invalid_values_are_reported(required_env, monkeypatch, name, value) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationException) as exc_info:
        load_settings()

    assert list(exc_info.value.details["invalid"]) == [name]
    assert exc_info.value.details["missing"] == []


def test_credentials_key_must_be_json(required_env, monkeypatch) -> None:
    monkeypatch.setenv("CACHEASIDE_DOCUMENT_STORE_CREDENTIALS_KEY", "{not json")

    with pytest.raises(ConfigurationException) as exc_info:
        create_firestore_client(load_settings())

    assert "CACHEASIDE_DOCUMENT_STORE_CREDENTIALS_KEY" in exc_info.value.details["invalid"]


def test_credentials_path_must_exist(required_env, monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("CACHEASIDE_DOCUMENT_STORE_CREDENTIALS_PATH", str(tmp_path / "nope.json"))

    with pytest.raises(ConfigurationException) as exc_info:
        create_firestore_client(load_settings())

    assert "CACHEASIDE_DOCUMENT_STORE_CREDENTIALS_PATH" in exc_info.value.details["invalid"]


@pytest.mark.asyncio
async def test_client_without_credentials_is_unauthenticated(required_env) -> None:
    client = create_firestore_client(load_settings())
    try:
        assert await client.get_token() is None
    finally:
        await client.aclose()


def test_settings_accept_explicit_values() -> None:
    settings = Settings(
        document_store_uri="https://firestore.googleapis.com/v1",
        document_store_project="p",
        document_store_database="(default)",
        document_store_app_name="svc",
        cache_uri="redis://cache:6379/1",
        cache_default_ttl=0,
        cache_namespace="svc",
    )
    assert settings.cache_default_ttl == 0
    assert settings.cache_namespace == "svc"
