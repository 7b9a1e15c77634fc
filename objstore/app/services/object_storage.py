"""Object storage facade.

``ObjectStorage`` classifies the configured endpoint once, picks the
matching backend (S3-compatible or direct HTTP) and exposes the public
operations on top of it. Uploads are verified by reading back the stored
size whenever the backend can report metadata.

A failed verification leaves the uploaded object in place. A failed S3
download leaves the partially written target file on disk; the direct-HTTP
backend opens the target only once the object answers 200.
"""

from __future__ import annotations

import functools
import io
import mimetypes
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import BinaryIO, Iterator, Mapping, Union

import requests

from objstore.common.config import Settings, get_settings
from objstore.common.logging import get_storage_logger
from objstore.infra.observability.metrics import LATENCY, OPERATIONS
from objstore.infra.storage.client import (
    ListPage,
    ObjectHead,
    ObjectNotFoundError,
    StorageBackend,
    StorageIntegrityError,
    StorageStatusError,
    StorageTransportError,
    UploadOptions,
)
from objstore.infra.storage.endpoint import (
    ProviderKind,
    StorageConfig,
    classify_endpoint,
    normalize_config,
)
from objstore.infra.storage.http_client import HttpStorageBackend
from objstore.infra.storage.s3_client import S3StorageBackend

logger = get_storage_logger()

# ListObjectsV2 never returns more than 1000 keys per page
MAX_LIST_KEYS = 1000
DEFAULT_CONTENT_TYPE = "application/octet-stream"

Source = Union[str, "os.PathLike[str]"]
TTL = Union[int, timedelta]


@dataclass(frozen=True, slots=True)
class _UploadSource:
    body: BinaryIO
    size: int
    content_type: str | None


def is_remote_source(source: Source) -> bool:
    return isinstance(source, str) and source.lower().startswith(
        ("http://", "https://")
    )


def guess_content_type(name: str) -> str:
    content_type, _ = mimetypes.guess_type(name)
    return content_type or DEFAULT_CONTENT_TYPE


def _ttl_seconds(ttl: TTL) -> int:
    if isinstance(ttl, timedelta):
        return int(ttl.total_seconds())
    return int(ttl)


class ObjectStorage:
    """Unified client over S3-compatible providers and BunnyCDN storage.

    The backend is chosen once at construction and never changes; the
    instance holds no mutable state afterwards.
    """

    def __init__(
        self,
        config: StorageConfig,
        *,
        settings: Settings | None = None,
        backend: StorageBackend | None = None,
        http_session: requests.Session | None = None,
    ) -> None:
        """Normalize the configuration and build the provider backend.

        Args:
            config: Endpoint, optional region and credentials.
            settings: Transfer and presign defaults. Read from the
                environment when omitted.
            backend: Pre-built backend, mainly for tests.
            http_session: Session used for remote sources and the
                direct-HTTP backend.

        Raises:
            StorageConfigError: If the endpoint is empty.
        """
        self._settings = settings or get_settings()
        self._config = normalize_config(config)
        self._provider = classify_endpoint(self._config.endpoint)
        self._http = http_session or requests.Session()
        self._backend = backend or self._build_backend()

        logger.info(
            "storage client initialized provider=%s endpoint=%s region=%s",
            self._provider.value,
            self._config.endpoint,
            self._config.region,
            extra={
                "extra": {
                    "provider": self._provider.value,
                    "endpoint": self._config.endpoint,
                    "region": self._config.region,
                }
            },
        )

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, **kwargs
    ) -> "ObjectStorage":
        settings = settings or get_settings()
        config = StorageConfig(
            endpoint=settings.STORAGE_ENDPOINT or "",
            region=settings.STORAGE_REGION,
            access_key_id=settings.STORAGE_ACCESS_KEY_ID or "",
            secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY or "",
        )
        return cls(config, settings=settings, **kwargs)

    def _build_backend(self) -> StorageBackend:
        if self._provider.uses_direct_http:
            return HttpStorageBackend(
                config=self._config,
                session=self._http,
                chunk_size=self._settings.STORAGE_HTTP_CHUNK_SIZE,
            )
        return S3StorageBackend(config=self._config, settings=self._settings)

    @property
    def config(self) -> StorageConfig:
        return self._config

    @property
    def provider(self) -> ProviderKind:
        return self._provider

    @contextmanager
    def _observe(self, operation: str, **fields) -> Iterator[None]:
        provider = self._provider.value
        start = time.perf_counter()
        try:
            yield
        except Exception as exc:
            elapsed = time.perf_counter() - start
            OPERATIONS.labels(provider, operation, "error").inc()
            LATENCY.labels(provider, operation).observe(elapsed)
            logger.warning(
                "storage_error operation=%s provider=%s error=%s",
                operation,
                provider,
                exc,
                extra={
                    "extra": {
                        "operation": operation,
                        "provider": provider,
                        "duration_ms": round(elapsed * 1000, 3),
                        "exception": repr(exc),
                        **fields,
                    }
                },
            )
            raise

        elapsed = time.perf_counter() - start
        OPERATIONS.labels(provider, operation, "success").inc()
        LATENCY.labels(provider, operation).observe(elapsed)
        logger.debug(
            "storage operation=%s provider=%s duration_ms=%.3f",
            operation,
            provider,
            round(elapsed * 1000, 3),
            extra={
                "extra": {
                    "operation": operation,
                    "provider": provider,
                    "duration_ms": round(elapsed * 1000, 3),
                    **fields,
                }
            },
        )

    def info(self, bucket: str, key: str) -> ObjectHead:
        """Return stored metadata for ``key``.

        Raises:
            UnsupportedOperationError: On the direct-HTTP provider.
            ObjectNotFoundError: If the key does not exist.
        """
        with self._observe("info", bucket=bucket, key=key):
            return self._backend.head_object(bucket=bucket, object_key=key)

    def exists(self, bucket: str, key: str) -> bool:
        try:
            self.info(bucket, key)
        except ObjectNotFoundError:
            return False
        return True

    def list(
        self,
        bucket: str,
        prefix: str = "",
        length: int = MAX_LIST_KEYS,
        *,
        continuation_token: str | None = None,
    ) -> ListPage:
        """List up to ``length`` keys (never more than 1000) under ``prefix``.

        Pass the returned ``continuation_token`` back to read the next page;
        an empty token marks the last page.
        """
        if length < 1:
            raise ValueError("length must be at least 1")
        max_keys = min(int(length), MAX_LIST_KEYS)
        with self._observe("list", bucket=bucket, prefix=prefix):
            return self._backend.list_objects(
                bucket=bucket,
                prefix=prefix,
                max_keys=max_keys,
                continuation_token=continuation_token or None,
            )

    def upload(
        self,
        bucket: str,
        source: Source,
        key: str,
        options: UploadOptions | None = None,
    ) -> None:
        """Upload a local file or the body of a remote URL to ``key``.

        Args:
            bucket: Destination bucket (storage zone for BunnyCDN).
            source: Local path, or an ``http(s)://`` URL fetched with
                ``options.headers``.
            key: Destination object key.
            options: Content type override and remote fetch headers.

        Raises:
            StorageStatusError: If the remote source does not answer 200,
                or the direct-HTTP PUT is rejected.
            StorageIntegrityError: If the source is empty or the stored
                size differs from the source size.
        """
        options = options or UploadOptions()
        with self._observe("upload", bucket=bucket, key=key):
            with self._open_source(source, options.headers) as src:
                if src.size <= 0:
                    raise StorageIntegrityError(
                        "zero size file", expected_size=0, actual_size=src.size
                    )

                content_type = (
                    options.content_type
                    or src.content_type
                    or guess_content_type(key)
                )
                self._backend.put_object(
                    bucket=bucket,
                    object_key=key,
                    body=src.body,
                    size=src.size,
                    content_type=content_type,
                )

            if self._backend.supports_metadata:
                self._verify_upload(bucket, key, src.size)

        logger.info(
            "uploaded object bucket=%s key=%s size_bytes=%s content_type=%s",
            bucket,
            key,
            src.size,
            content_type,
            extra={
                "extra": {
                    "bucket": bucket,
                    "key": key,
                    "size_bytes": src.size,
                    "content_type": content_type,
                    "provider": self._provider.value,
                }
            },
        )

    @contextmanager
    def _open_source(
        self, source: Source, headers: Mapping[str, str]
    ) -> Iterator[_UploadSource]:
        if is_remote_source(source):
            with self._fetch_remote(str(source), headers) as src:
                yield src
            return

        with open(source, "rb") as fh:
            size = os.fstat(fh.fileno()).st_size
            yield _UploadSource(body=fh, size=size, content_type=None)

    @contextmanager
    def _fetch_remote(
        self, url: str, headers: Mapping[str, str]
    ) -> Iterator[_UploadSource]:
        request_headers = dict(headers)
        if not any(name.lower() == "accept-encoding" for name in request_headers):
            request_headers["Accept-Encoding"] = "identity"

        try:
            response = self._http.get(url, headers=request_headers, stream=True)
        except requests.RequestException as exc:
            raise StorageTransportError(f"Failed to fetch {url}: {exc}") from exc

        with response:
            if response.status_code != 200:
                raise StorageStatusError(
                    f"source fetch failed, status: {response.status_code}",
                    status_code=response.status_code,
                    body=response.text,
                )

            content_type = response.headers.get("Content-Type") or None
            length = (response.headers.get("Content-Length") or "").strip()
            encoding = (response.headers.get("Content-Encoding") or "").strip().lower()
            if length.isdigit() and encoding in ("", "identity"):
                yield _UploadSource(
                    body=response.raw, size=int(length), content_type=content_type
                )
                return

            # Unknown or encoded length: buffer the decoded body to learn its size.
            buffer = io.BytesIO()
            try:
                for chunk in response.iter_content(
                    chunk_size=self._settings.STORAGE_HTTP_CHUNK_SIZE
                ):
                    buffer.write(chunk)
            except requests.RequestException as exc:
                raise StorageTransportError(f"Failed to read {url}: {exc}") from exc
            size = buffer.tell()
            buffer.seek(0)
            yield _UploadSource(body=buffer, size=size, content_type=content_type)

    def _verify_upload(self, bucket: str, key: str, expected_size: int) -> None:
        head = self._backend.head_object(bucket=bucket, object_key=key)
        if head.size_bytes != expected_size:
            # TODO: delete the mismatched object once callers agree on cleanup semantics
            raise StorageIntegrityError(
                f"upload verification failed: expected {expected_size} bytes, "
                f"stored {head.size_bytes} bytes",
                expected_size=expected_size,
                actual_size=head.size_bytes,
            )

    def download(self, bucket: str, key: str, target_path: Source) -> None:
        """Write the object to ``target_path``, truncating any existing file."""
        with self._observe("download", bucket=bucket, key=key):
            self._backend.get_object(
                bucket=bucket,
                object_key=key,
                open_destination=functools.partial(open, target_path, "wb"),
            )

    def delete(self, bucket: str, key: str) -> None:
        with self._observe("delete", bucket=bucket, key=key):
            self._backend.delete_object(bucket=bucket, object_key=key)

    def presign_get(self, bucket: str, key: str, ttl: TTL | None = None) -> str:
        """Return a time-limited GET URL; ``ttl`` defaults to the settings value."""
        expires_in = _ttl_seconds(
            ttl if ttl is not None else self._settings.STORAGE_PRESIGN_EXPIRES_SECONDS
        )
        with self._observe("presign_get", bucket=bucket, key=key):
            return self._backend.presign_get(
                bucket=bucket, object_key=key, expires_in=expires_in
            )

    def presign_put(self, bucket: str, key: str, ttl: TTL | None = None) -> str:
        """Return a time-limited PUT URL; ``ttl`` defaults to the settings value."""
        expires_in = _ttl_seconds(
            ttl if ttl is not None else self._settings.STORAGE_PRESIGN_EXPIRES_SECONDS
        )
        with self._observe("presign_put", bucket=bucket, key=key):
            return self._backend.presign_put(
                bucket=bucket, object_key=key, expires_in=expires_in
            )
