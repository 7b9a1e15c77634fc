"""Object storage backends.

This package provides the backend capability protocol and its two
implementations: an S3-compatible backend (boto3) and a direct-HTTP
backend for BunnyCDN storage zones.
"""

from .client import (
    ListPage,
    ObjectHead,
    ObjectNotFoundError,
    StorageBackend,
    StorageConfigError,
    StorageError,
    StorageIntegrityError,
    StorageStatusError,
    StorageTransportError,
    UnsupportedOperationError,
    UploadOptions,
)
from .endpoint import ProviderKind, StorageConfig, classify_endpoint, normalize_config

__all__ = [
    "ListPage",
    "ObjectHead",
    "ObjectNotFoundError",
    "ProviderKind",
    "StorageBackend",
    "StorageConfig",
    "StorageConfigError",
    "StorageError",
    "StorageIntegrityError",
    "StorageStatusError",
    "StorageTransportError",
    "UnsupportedOperationError",
    "UploadOptions",
    "classify_endpoint",
    "normalize_config",
]
