"""Unified client for S3-compatible object storage and BunnyCDN storage."""

from objstore.app.services.object_storage import MAX_LIST_KEYS, ObjectStorage
from objstore.infra.storage import (
    ListPage,
    ObjectHead,
    ObjectNotFoundError,
    ProviderKind,
    StorageConfig,
    StorageConfigError,
    StorageError,
    StorageIntegrityError,
    StorageStatusError,
    StorageTransportError,
    UnsupportedOperationError,
    UploadOptions,
)

__version__ = "0.1.0"

__all__ = [
    "MAX_LIST_KEYS",
    "ListPage",
    "ObjectHead",
    "ObjectNotFoundError",
    "ObjectStorage",
    "ProviderKind",
    "StorageConfig",
    "StorageConfigError",
    "StorageError",
    "StorageIntegrityError",
    "StorageStatusError",
    "StorageTransportError",
    "UnsupportedOperationError",
    "UploadOptions",
]
