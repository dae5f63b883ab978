"""Domain exceptions for cacheaside.

Only authoritative failures are represented here. Cache (advisory)
failures never leave the cache adapter, so they have no exception type;
a missing record is a None result, not an error.
"""

from typing import Any


class CacheAsideException(Exception):
    """Base exception for all cacheaside errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. collection, record_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationException(CacheAsideException):
    """Raised at startup when required settings are missing or invalid."""

    def __init__(
        self,
        missing: list[str] | None = None,
        invalid: dict[str, str] | None = None,
    ) -> None:
        """Initialize with the offending variable names.

        Args:
            missing: Environment variables that were not set.
            invalid: Environment variables mapped to their validation message.
        """
        missing = missing or []
        invalid = invalid or {}
        parts = []
        if missing:
            parts.append(f"missing: {', '.join(missing)}")
        if invalid:
            parts.append(f"invalid: {', '.join(sorted(invalid))}")
        message = "Invalid configuration"
        if parts:
            message = f"{message} ({'; '.join(parts)})"
        super().__init__(
            message,
            "CONFIGURATION_ERROR",
            {"missing": missing, "invalid": invalid},
        )


class DocumentStoreException(CacheAsideException):
    """Raised when the document store (source of truth) cannot serve a request.

    Distinct from "not found": callers can tell "doesn't exist" (None)
    from "couldn't check" (this exception).
    """

    def __init__(
        self,
        message: str,
        collection: str | None = None,
        record_id: str | None = None,
        error_code: str = "DOCUMENT_STORE_ERROR",
    ) -> None:
        """Initialize with message and optional location of the failure.

        Args:
            message: Description of the failure.
            collection: Collection the operation targeted.
            record_id: Document ID the operation targeted.
            error_code: Machine-readable code (subclasses override).
        """
        details: dict[str, Any] = {}
        if collection:
            details["collection"] = collection
        if record_id:
            details["record_id"] = record_id
        super().__init__(message, error_code, details)


class RecordAlreadyExistsException(DocumentStoreException):
    """Raised when inserting a record whose identifier already exists."""

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(
            f"A record with this id already exists: {collection}/{record_id}",
            collection,
            record_id,
            "RECORD_ALREADY_EXISTS",
        )


class RecordDecodeException(DocumentStoreException):
    """Raised when a stored document does not match the record type's schema."""

    def __init__(
        self,
        model: str,
        reason: str,
        collection: str | None = None,
        record_id: str | None = None,
    ) -> None:
        """Initialize with the model name and the decode failure reason.

        Args:
            model: Record class name.
            reason: Why the document could not be decoded.
            collection: Collection the document came from.
            record_id: Document ID.
        """
        super().__init__(
            f"Could not decode {model} from document: {reason}",
            collection,
            record_id,
            "RECORD_DECODE_ERROR",
        )
        self.details["model"] = model
