"""Storage backend protocol and data types.

This module defines the capability set every object storage backend
provides, the value types flowing through it, and the error taxonomy
shared by the backends and the ``ObjectStorage`` facade.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, Callable, ContextManager, Mapping, Protocol


DestinationOpener = Callable[[], ContextManager[BinaryIO]]


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class StorageConfigError(StorageError):
    """Raised when the storage configuration is missing or invalid."""


class UnsupportedOperationError(StorageError):
    """Raised when the configured provider does not offer an operation."""

    def __init__(self, operation: str, provider: str) -> None:
        super().__init__(f"{provider} storage does not support {operation} operation")
        self.operation = operation
        self.provider = provider


class StorageTransportError(StorageError):
    """Raised when the underlying network or protocol call fails."""


class ObjectNotFoundError(StorageTransportError):
    """Raised when a metadata lookup targets a key that does not exist."""


class StorageIntegrityError(StorageError):
    """Raised for empty sources and post-upload size mismatches."""

    def __init__(
        self,
        message: str,
        *,
        expected_size: int | None = None,
        actual_size: int | None = None,
    ) -> None:
        super().__init__(message)
        self.expected_size = expected_size
        self.actual_size = actual_size


class StorageStatusError(StorageError):
    """Raised when a plain HTTP call answers with a non-success status."""

    def __init__(self, message: str, *, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Metadata from a HEAD object request."""

    size_bytes: int
    etag: str | None = None
    content_type: str | None = None
    last_modified: datetime | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ListPage:
    """One page of keys returned by a listing call."""

    keys: list[str]
    continuation_token: str | None = None

    @property
    def has_more(self) -> bool:
        return bool(self.continuation_token)


@dataclass(frozen=True, slots=True)
class UploadOptions:
    """Per-call upload options.

    Attributes:
        headers: Request headers sent when fetching a remote source URL.
            Ignored for local files.
        content_type: Overrides the inferred or fetched content type.
    """

    headers: Mapping[str, str] = field(default_factory=dict)
    content_type: str | None = None


class StorageBackend(Protocol):
    """Protocol defining the capability set of an object storage backend.

    Backends that cannot offer an operation raise
    ``UnsupportedOperationError`` instead of performing any I/O.
    """

    supports_metadata: bool

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content.

        Raises:
            ObjectNotFoundError: If the object doesn't exist.
            StorageError: If the operation fails.
        """
        ...

    def list_objects(
        self,
        *,
        bucket: str,
        prefix: str,
        max_keys: int,
        continuation_token: str | None = None,
    ) -> ListPage:
        """List up to ``max_keys`` keys under ``prefix``.

        Args:
            bucket: Target bucket name.
            prefix: Key prefix filter.
            max_keys: Page size, already clamped by the caller.
            continuation_token: Token from a previous page to resume after.

        Returns:
            ListPage with keys in provider order and the next token, if any.
        """
        ...

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: BinaryIO,
        size: int,
        content_type: str,
    ) -> None:
        """Store ``size`` bytes read from ``body`` under ``object_key``."""
        ...

    def get_object(
        self,
        *,
        bucket: str,
        object_key: str,
        open_destination: DestinationOpener,
    ) -> None:
        """Stream the object content into the stream ``open_destination`` returns.

        The opener is called at most once and its result is used as a context
        manager. Backends that can detect a failed request before any bytes
        arrive call it only after that check.
        """
        ...

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage."""
        ...

    def presign_get(self, *, bucket: str, object_key: str, expires_in: int) -> str:
        """Generate a presigned URL for a GET request."""
        ...

    def presign_put(self, *, bucket: str, object_key: str, expires_in: int) -> str:
        """Generate a presigned URL for a PUT request."""
        ...
