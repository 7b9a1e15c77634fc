"""Tests for the direct-HTTP storage backend."""

import contextlib
import io
from unittest.mock import MagicMock

import pytest
import requests

from objstore.infra.storage.client import (
    StorageStatusError,
    StorageTransportError,
    UnsupportedOperationError,
)
from objstore.infra.storage.endpoint import StorageConfig, normalize_config
from objstore.infra.storage.http_client import HttpStorageBackend
from tests.infra.mock_http import make_response


class TestHttpStorageBackend:
    """Test HttpStorageBackend implementation."""

    @pytest.fixture
    def session(self):
        return MagicMock(spec=requests.Session)

    @pytest.fixture
    def client(self, session):
        config = normalize_config(
            StorageConfig(
                endpoint="storage.bunnycdn.com",
                access_key_id="unused-id",
                secret_access_key="zone-password",
            )
        )
        return HttpStorageBackend(config=config, session=session, chunk_size=4)

    def test_object_url(self, client):
        assert (
            client.object_url("zone", "img/cat.jpg")
            == "https://storage.bunnycdn.com/zone/img/cat.jpg"
        )

    def test_put_object(self, client, session):
        response = make_response(201)
        session.request.return_value = response
        body = io.BytesIO(b"hello")

        client.put_object(
            bucket="zone",
            object_key="hello.txt",
            body=body,
            size=5,
            content_type="text/plain",
        )

        args, kwargs = session.request.call_args
        assert args == ("PUT", "https://storage.bunnycdn.com/zone/hello.txt")
        assert kwargs["headers"] == {
            "AccessKey": "zone-password",
            "Content-Type": "text/plain",
            "Content-Length": "5",
        }
        assert len(kwargs["data"]) == 5
        assert kwargs["data"].read() == b"hello"
        response.__exit__.assert_called_once()

    def test_put_object_non_seekable_body_is_not_chunked(self, client, session):
        class ReadOnlyStream:
            def __init__(self, data):
                self._buffer = io.BytesIO(data)

            def read(self, amt=-1):
                return self._buffer.read(amt)

        session.request.return_value = make_response(201)

        client.put_object(
            bucket="zone",
            object_key="stream.bin",
            body=ReadOnlyStream(b"0123456789"),
            size=10,
            content_type="application/octet-stream",
        )

        kwargs = session.request.call_args.kwargs
        assert kwargs["headers"]["Content-Length"] == "10"

        prepared = requests.Request(
            "PUT",
            "https://storage.bunnycdn.com/zone/stream.bin",
            headers=kwargs["headers"],
            data=kwargs["data"],
        ).prepare()
        assert prepared.headers["Content-Length"] == "10"
        assert "Transfer-Encoding" not in prepared.headers
        assert b"".join(prepared.body) == b"0123456789"

    def test_access_key_id_is_never_sent(self, client, session):
        session.request.return_value = make_response(200)

        client.delete_object(bucket="zone", object_key="a.txt")

        headers = session.request.call_args.kwargs["headers"]
        assert "unused-id" not in headers.values()

    def test_put_object_rejected(self, client, session):
        response = make_response(401, body=b"Unauthorized")
        session.request.return_value = response

        with pytest.raises(StorageStatusError, match="upload failed: Unauthorized") as exc_info:
            client.put_object(
                bucket="zone",
                object_key="hello.txt",
                body=io.BytesIO(b"hello"),
                size=5,
                content_type="text/plain",
            )

        assert exc_info.value.status_code == 401
        assert exc_info.value.body == "Unauthorized"
        response.__exit__.assert_called_once()

    def test_get_object_streams_body(self, client, session):
        session.request.return_value = make_response(200, body=b"0123456789")
        destination = io.BytesIO()

        client.get_object(
            bucket="zone",
            object_key="digits.txt",
            open_destination=lambda: contextlib.nullcontext(destination),
        )

        assert destination.getvalue() == b"0123456789"
        args, kwargs = session.request.call_args
        assert args == ("GET", "https://storage.bunnycdn.com/zone/digits.txt")
        assert kwargs["stream"] is True
        assert kwargs["headers"] == {"AccessKey": "zone-password"}

    @pytest.mark.parametrize("status_code", [201, 204, 404])
    def test_get_object_requires_200(self, client, session, status_code):
        response = make_response(status_code, body=b"nope")
        session.request.return_value = response
        opener = MagicMock()

        with pytest.raises(StorageStatusError, match=f"status: {status_code}"):
            client.get_object(bucket="zone", object_key="a.txt", open_destination=opener)

        opener.assert_not_called()
        response.__exit__.assert_called_once()

    def test_delete_object(self, client, session):
        session.request.return_value = make_response(200)

        client.delete_object(bucket="zone", object_key="a.txt")

        session.request.assert_called_once_with(
            "DELETE",
            "https://storage.bunnycdn.com/zone/a.txt",
            headers={"AccessKey": "zone-password"},
        )

    def test_delete_object_rejected(self, client, session):
        session.request.return_value = make_response(404, body=b"Object Not Found")

        with pytest.raises(StorageStatusError, match="delete failed: Object Not Found"):
            client.delete_object(bucket="zone", object_key="a.txt")

    def test_transport_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("boom")

        with pytest.raises(StorageTransportError, match="boom"):
            client.delete_object(bucket="zone", object_key="a.txt")

    @pytest.mark.parametrize(
        ("method", "kwargs", "operation"),
        [
            ("head_object", {}, "Info"),
            ("list_objects", {"prefix": "", "max_keys": 10}, "List"),
            ("presign_get", {"expires_in": 60}, "Presign"),
            ("presign_put", {"expires_in": 60}, "Presign"),
        ],
    )
    def test_unsupported_operations(self, client, session, method, kwargs, operation):
        if method != "list_objects":
            kwargs = {"object_key": "a.txt", **kwargs}

        with pytest.raises(UnsupportedOperationError) as exc_info:
            getattr(client, method)(bucket="zone", **kwargs)

        assert exc_info.value.operation == operation
        assert exc_info.value.provider == "bunnycdn"
        session.request.assert_not_called()

    def test_supports_metadata_flag(self, client):
        assert client.supports_metadata is False
