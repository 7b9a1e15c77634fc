"""Direct-HTTP storage backend for providers without an S3 API.

Objects live at ``{endpoint}/{bucket}/{key}`` and every request is
authenticated with an ``AccessKey`` header carrying the secret key.
Metadata, listing and presigning are not offered by this protocol.

Dependencies:
    - requests
"""

from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO, Iterator

import requests

from objstore.infra.storage.client import (
    DestinationOpener,
    ListPage,
    ObjectHead,
    StorageStatusError,
    StorageTransportError,
    UnsupportedOperationError,
)

if TYPE_CHECKING:
    from objstore.infra.storage.endpoint import StorageConfig

ACCESS_KEY_HEADER = "AccessKey"
DEFAULT_CHUNK_SIZE = 64 * 1024


class _SizedBody:
    """Stream wrapper that reports a known length to requests.

    requests sends a body it cannot size with chunked transfer encoding;
    exposing ``__len__`` makes it send ``Content-Length`` instead, even for
    non-seekable streams such as a remote response body.
    """

    def __init__(self, body: BinaryIO, size: int, chunk_size: int) -> None:
        self._body = body
        self._size = int(size)
        self._chunk_size = chunk_size

    def __len__(self) -> int:
        return self._size

    def read(self, amt: int | None = None) -> bytes:
        if amt is None or amt < 0:
            return self._body.read()
        return self._body.read(amt)

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self._body.read(self._chunk_size)
            if not chunk:
                return
            yield chunk


class HttpStorageBackend:
    """Plain HTTP object storage backend (BunnyCDN storage zones)."""

    supports_metadata = False
    provider_name = "bunnycdn"

    def __init__(
        self,
        *,
        config: "StorageConfig",
        session: requests.Session | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._endpoint = config.endpoint.rstrip("/")
        self._secret = config.secret_access_key
        self._session = session or requests.Session()
        self._chunk_size = int(chunk_size)

    def object_url(self, bucket: str, object_key: str) -> str:
        return f"{self._endpoint}/{bucket}/{object_key}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        headers = {ACCESS_KEY_HEADER: self._secret, **kwargs.pop("headers", {})}
        try:
            return self._session.request(method, url, headers=headers, **kwargs)
        except requests.RequestException as exc:
            raise StorageTransportError(f"{method} {url} failed: {exc}") from exc

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        raise UnsupportedOperationError("Info", self.provider_name)

    def list_objects(
        self,
        *,
        bucket: str,
        prefix: str,
        max_keys: int,
        continuation_token: str | None = None,
    ) -> ListPage:
        raise UnsupportedOperationError("List", self.provider_name)

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: BinaryIO,
        size: int,
        content_type: str,
    ) -> None:
        """Upload ``size`` bytes from the stream with a single PUT request."""
        url = self.object_url(bucket, object_key)
        response = self._request(
            "PUT",
            url,
            data=_SizedBody(body, size, self._chunk_size),
            headers={"Content-Type": content_type, "Content-Length": str(size)},
        )
        with response:
            if response.status_code >= 300:
                raise StorageStatusError(
                    f"upload failed: {response.text}",
                    status_code=response.status_code,
                    body=response.text,
                )

    def get_object(
        self,
        *,
        bucket: str,
        object_key: str,
        open_destination: DestinationOpener,
    ) -> None:
        """Stream the object body chunk by chunk.

        The destination is opened only after a 200 answer, so a failed
        request leaves an existing target untouched.
        """
        url = self.object_url(bucket, object_key)
        response = self._request("GET", url, stream=True)
        with response:
            if response.status_code != 200:
                raise StorageStatusError(
                    f"download failed, status: {response.status_code}",
                    status_code=response.status_code,
                    body=response.text,
                )
            try:
                with open_destination() as destination:
                    for chunk in response.iter_content(chunk_size=self._chunk_size):
                        if chunk:
                            destination.write(chunk)
            except requests.RequestException as exc:
                raise StorageTransportError(f"failed to read body: {exc}") from exc

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        url = self.object_url(bucket, object_key)
        response = self._request("DELETE", url)
        with response:
            if response.status_code >= 300:
                raise StorageStatusError(
                    f"delete failed: {response.text}",
                    status_code=response.status_code,
                    body=response.text,
                )

    def presign_get(self, *, bucket: str, object_key: str, expires_in: int) -> str:
        raise UnsupportedOperationError("Presign", self.provider_name)

    def presign_put(self, *, bucket: str, object_key: str, expires_in: int) -> str:
        raise UnsupportedOperationError("Presign", self.provider_name)
