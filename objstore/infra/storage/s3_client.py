"""S3-compatible storage backend implementation.

This module provides the standard-protocol backend used for AWS S3,
Cloudflare R2, Backblaze B2 and other S3-compatible services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, BinaryIO

from objstore.infra.storage.client import (
    DestinationOpener,
    ListPage,
    ObjectHead,
    ObjectNotFoundError,
    StorageError,
    StorageTransportError,
)

if TYPE_CHECKING:
    from objstore.common.config import Settings
    from objstore.infra.storage.endpoint import StorageConfig

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _error_code(exc: Exception) -> str | None:
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    code = response.get("Error", {}).get("Code")
    return str(code) if code is not None else None


class S3StorageBackend:
    """S3-compatible object storage backend.

    Uses boto3 for all storage operations. Uploads and downloads go through
    boto3's managed transfer so large objects are split into parts.
    """

    supports_metadata = True

    def __init__(self, *, config: "StorageConfig", settings: "Settings") -> None:
        """Initialize the boto3 client from a normalized configuration.

        Args:
            config: Normalized endpoint, region and credentials.
            settings: Settings holding addressing style and transfer sizes.

        Raises:
            StorageError: If boto3 is not installed.
        """
        self._config = config
        self._client = self._build_client(config, settings)
        self._transfer_config = self._build_transfer_config(settings)

    @staticmethod
    def _build_client(config: "StorageConfig", settings: "Settings") -> Any:
        """Create a boto3 S3 client from the configuration."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3"
            ) from exc

        addressing_style = (settings.STORAGE_ADDRESSING_STYLE or "path").strip().lower()
        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": addressing_style},
        )

        return boto3.client(
            "s3",
            endpoint_url=config.endpoint,
            region_name=config.region,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            config=boto_config,
        )

    @staticmethod
    def _build_transfer_config(settings: "Settings") -> Any:
        from boto3.s3.transfer import TransferConfig

        return TransferConfig(
            multipart_threshold=int(settings.STORAGE_MULTIPART_THRESHOLD_BYTES),
            multipart_chunksize=int(settings.STORAGE_PART_SIZE_BYTES),
        )

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content."""
        try:
            response = self._client.head_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(
                    f"Object not found: {bucket}/{object_key}"
                ) from exc
            raise StorageTransportError(f"Failed to get object metadata: {exc}") from exc

        size = response.get("ContentLength")
        return ObjectHead(
            size_bytes=int(size) if size is not None else 0,
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
            last_modified=response.get("LastModified"),
            metadata=dict(response.get("Metadata") or {}),
        )

    def list_objects(
        self,
        *,
        bucket: str,
        prefix: str,
        max_keys: int,
        continuation_token: str | None = None,
    ) -> ListPage:
        """List one page of keys with ListObjectsV2."""
        params: dict[str, Any] = {
            "Bucket": bucket,
            "Prefix": prefix,
            "MaxKeys": int(max_keys),
        }
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        try:
            response = self._client.list_objects_v2(**params)
        except Exception as exc:
            raise StorageTransportError(f"Failed to list objects: {exc}") from exc

        keys = [str(obj["Key"]) for obj in response.get("Contents") or []]
        return ListPage(
            keys=keys,
            continuation_token=response.get("NextContinuationToken") or None,
        )

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: BinaryIO,
        size: int,
        content_type: str,
    ) -> None:
        """Upload a stream through boto3's managed transfer."""
        try:
            self._client.upload_fileobj(
                body,
                bucket,
                object_key,
                ExtraArgs={"ContentType": content_type},
                Config=self._transfer_config,
            )
        except Exception as exc:
            raise StorageTransportError(f"Failed to upload object: {exc}") from exc

    def get_object(
        self,
        *,
        bucket: str,
        object_key: str,
        open_destination: DestinationOpener,
    ) -> None:
        """Download an object into a freshly opened destination stream."""
        with open_destination() as destination:
            try:
                self._client.download_fileobj(
                    bucket,
                    object_key,
                    destination,
                    Config=self._transfer_config,
                )
            except Exception as exc:
                raise StorageTransportError(
                    f"Failed to download object: {exc}"
                ) from exc

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage."""
        try:
            self._client.delete_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise StorageTransportError(f"Failed to delete object: {exc}") from exc

    def presign_get(self, *, bucket: str, object_key: str, expires_in: int) -> str:
        """Generate a presigned URL for downloading an object."""
        return self._presign("get_object", bucket, object_key, expires_in)

    def presign_put(self, *, bucket: str, object_key: str, expires_in: int) -> str:
        """Generate a presigned URL for uploading an object."""
        return self._presign("put_object", bucket, object_key, expires_in)

    def _presign(
        self, client_method: str, bucket: str, object_key: str, expires_in: int
    ) -> str:
        try:
            url = self._client.generate_presigned_url(
                client_method,
                Params={"Bucket": bucket, "Key": object_key},
                ExpiresIn=int(expires_in),
            )
        except Exception as exc:
            raise StorageTransportError(
                f"Failed to generate presigned URL: {exc}"
            ) from exc

        if not url:
            raise StorageTransportError("Generated presigned URL is empty")

        return str(url)
