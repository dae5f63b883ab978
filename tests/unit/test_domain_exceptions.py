"""Tests for domain exceptions (error_code, message, details)."""

import pytest

from cacheaside.domain.exceptions import (
    CacheAsideException,
    ConfigurationException,
    DocumentStoreException,
    RecordAlreadyExistsException,
    RecordDecodeException,
)


def test_base_exception_default_error_code() -> None:
    """Base CacheAsideException uses class name as error_code when not provided."""
    exc = CacheAsideException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "CacheAsideException"
    assert exc.details == {}
    assert str(exc) == "Something failed"


def test_base_exception_custom_error_code_and_details() -> None:
    exc = CacheAsideException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.error_code == "CUSTOM"
    assert exc.details == {"key": "value"}


def test_configuration_exception_lists_variables() -> None:
    """ConfigurationException names missing and invalid variables in its message."""
    exc = ConfigurationException(
        missing=["CACHEASIDE_CACHE_URI"],
        invalid={"CACHEASIDE_CACHE_DEFAULT_TTL": "must be >= 0"},
    )
    assert exc.error_code == "CONFIGURATION_ERROR"
    assert exc.message == (
        "Invalid configuration (missing: CACHEASIDE_CACHE_URI; "
        "invalid: CACHEASIDE_CACHE_DEFAULT_TTL)"
    )
    assert exc.details["invalid"] == {"CACHEASIDE_CACHE_DEFAULT_TTL": "must be >= 0"}


def test_configuration_exception_without_names() -> None:
    exc = ConfigurationException()
    assert exc.message == "Invalid configuration"
    assert exc.details == {"missing": [], "invalid": {}}


def test_document_store_exception_details() -> None:
    exc = DocumentStoreException("Document store find failed: timeout", "users", "u1")
    assert exc.error_code == "DOCUMENT_STORE_ERROR"
    assert exc.details == {"collection": "users", "record_id": "u1"}


def test_document_store_exception_without_location() -> None:
    """DocumentStoreException with no collection or id has empty details."""
    assert DocumentStoreException("down").details == {}


def test_record_already_exists() -> None:
    exc = RecordAlreadyExistsException("users", "u1")
    assert exc.message == "A record with this id already exists: users/u1"
    assert exc.error_code == "RECORD_ALREADY_EXISTS"
    assert isinstance(exc, DocumentStoreException)


def test_record_decode_exception() -> None:
    exc = RecordDecodeException("User", "field required", "users", "u1")
    assert exc.message == "Could not decode User from document: field required"
    assert exc.error_code == "RECORD_DECODE_ERROR"
    assert exc.details == {"collection": "users", "record_id": "u1", "model": "User"}


@pytest.mark.parametrize(
    "exc",
    [
        ConfigurationException(),
        DocumentStoreException("x"),
        RecordAlreadyExistsException("c", "i"),
        RecordDecodeException("M", "r"),
    ],
)
def test_all_inherit_from_base(exc) -> None:
    assert isinstance(exc, CacheAsideException)
