"""
Tests for response deserialization.

Covers Content-Type inference, explicit response types, response
transforms, and failures reported as deserialization errors.
"""

from __future__ import annotations

import httpx
import pytest

from functions_do import (
    Blob,
    FormData,
    FunctionsClient,
    FunctionsErrorKind,
    HttpxResponse,
    ResponseType,
    deserialize_body,
)
from functions_do.client import infer_response_type

from .conftest import RecordingTransport


def make_response(content: bytes, content_type: str | None = None, status: int = 200) -> httpx.Response:
    headers = {"content-type": content_type} if content_type else {}
    return httpx.Response(status, headers=headers, content=content)


class TestInferResponseType:
    """Tests for mapping Content-Type to a decoding."""

    @pytest.mark.parametrize(
        "content_type, expected",
        [
            ("application/json", ResponseType.JSON),
            ("application/json; charset=utf-8", ResponseType.JSON),
            ("Application/JSON", ResponseType.JSON),
            ("application/problem+json", ResponseType.JSON),
            ("text/plain", ResponseType.TEXT),
            ("text/plain;charset=utf-8", ResponseType.TEXT),
            ("text/html", ResponseType.TEXT),
            ("application/octet-stream", ResponseType.BLOB),
            ("multipart/form-data; boundary=xyz", ResponseType.FORM_DATA),
            ("application/x-www-form-urlencoded", ResponseType.FORM_DATA),
            (None, ResponseType.JSON),
            ("", ResponseType.JSON),
            ("image/png", ResponseType.JSON),
        ],
    )
    def test_infer(self, content_type, expected):
        assert infer_response_type(content_type) is expected


class TestDeserializeBody:
    """Tests for decoding by Content-Type."""

    async def test_json(self):
        response = HttpxResponse(make_response(b'{"foo":"bar"}', "application/json"))
        assert await deserialize_body(response) == {"foo": "bar"}

    async def test_text(self):
        response = HttpxResponse(make_response(b"hello", "text/plain"))
        assert await deserialize_body(response) == "hello"

    async def test_octet_stream_is_blob(self):
        response = HttpxResponse(make_response(b"\x89PNG", "application/octet-stream"))

        data = await deserialize_body(response)

        assert data == Blob(b"\x89PNG", "application/octet-stream")

    async def test_urlencoded_form(self):
        response = HttpxResponse(make_response(b"a=1&b=two&a=3", "application/x-www-form-urlencoded"))

        data = await deserialize_body(response)

        assert isinstance(data, FormData)
        assert data.get_all("a") == ["1", "3"]
        assert data.get("b") == "two"

    async def test_multipart_form(self):
        body = (
            b"--xyz\r\n"
            b'Content-Disposition: form-data; name="title"\r\n'
            b"\r\n"
            b"report\r\n"
            b"--xyz\r\n"
            b'Content-Disposition: form-data; name="file"; filename="a.txt"\r\n'
            b"Content-Type: text/plain\r\n"
            b"\r\n"
            b"file body\r\n"
            b"--xyz--\r\n"
        )
        response = HttpxResponse(make_response(body, "multipart/form-data; boundary=xyz"))

        data = await deserialize_body(response)

        assert data.get("title") == "report"
        [file_field] = [f for f in data.fields() if f.name == "file"]
        assert file_field.filename == "a.txt"
        assert file_field.value == b"file body"

    async def test_missing_content_type_defaults_to_json(self):
        response = HttpxResponse(make_response(b"[1, 2]"))
        assert await deserialize_body(response) == [1, 2]

    async def test_empty_body_is_none(self):
        response = HttpxResponse(make_response(b""))
        assert await deserialize_body(response) is None

    async def test_explicit_type_wins_over_content_type(self):
        response = HttpxResponse(make_response(b'{"a":1}', "application/json"))
        assert await deserialize_body(response, ResponseType.TEXT) == '{"a":1}'

    async def test_array_buffer(self):
        response = HttpxResponse(make_response(b"raw", "text/plain"))
        assert await deserialize_body(response, ResponseType.ARRAY_BUFFER) == b"raw"


class TestResponseTypeOption:
    """The response_type hint through invoke."""

    @pytest.mark.parametrize(
        "response_type, expected",
        [
            ("json", {"a": 1}),
            ("text", '{"a":1}'),
            ("arrayBuffer", b'{"a":1}'),
            ("blob", Blob(b'{"a":1}', "text/plain")),
        ],
    )
    async def test_hint_is_honored(
        self, response_type, expected, client: FunctionsClient, transport: RecordingTransport
    ):
        transport.response = make_response(b'{"a":1}', "text/plain")

        data, error = await client.invoke("hello", response_type=response_type)

        assert error is None
        assert data == expected

    async def test_invalid_hint_raises(self, client: FunctionsClient):
        with pytest.raises(ValueError):
            await client.invoke("hello", response_type="xml")


class TestDeserializationErrors:
    """Failures while decoding the body."""

    async def test_malformed_json(self, client: FunctionsClient, transport: RecordingTransport):
        transport.response = make_response(b"{not json", "application/json")

        data, error = await client.invoke("hello")

        assert data is None
        assert error.kind is FunctionsErrorKind.DESERIALIZATION
        assert isinstance(error.context, ValueError)

    async def test_unrecognized_type_that_is_not_json(
        self, client: FunctionsClient, transport: RecordingTransport
    ):
        transport.response = make_response(b"\x89PNG", "image/png")

        _, error = await client.invoke("hello")

        assert error.kind is FunctionsErrorKind.DESERIALIZATION

    async def test_malformed_body_on_error_status_is_deserialization_error(
        self, client: FunctionsClient, transport: RecordingTransport
    ):
        transport.response = make_response(b"<html>", "application/json", status=500)

        _, error = await client.invoke("hello")

        assert error.kind is FunctionsErrorKind.DESERIALIZATION


class TestResponseTransform:
    """Tests for custom response deserialization."""

    async def test_transform_receives_raw_response(
        self, client: FunctionsClient, transport: RecordingTransport
    ):
        transport.response = make_response(b"a,b\n1,2", "text/csv")

        async def parse_csv(response):
            text = await response.text()
            return [line.split(",") for line in text.splitlines()]

        data, error = await client.invoke("export", response_transform=parse_csv)

        assert error is None
        assert data == [["a", "b"], ["1", "2"]]

    async def test_sync_transform(self, client: FunctionsClient, transport: RecordingTransport):
        transport.response = make_response(b"", status=204)

        data, error = await client.invoke("hello", response_transform=lambda response: response.status)

        assert error is None
        assert data == 204

    async def test_transform_output_is_http_error_context(
        self, client: FunctionsClient, transport: RecordingTransport
    ):
        transport.response = make_response(b"denied", "text/plain", status=401)

        async def upper(response):
            return (await response.text()).upper()

        _, error = await client.invoke("hello", response_transform=upper)

        assert error.kind is FunctionsErrorKind.HTTP
        assert error.context == "DENIED"

    async def test_raising_transform(self, client: FunctionsClient, transport: RecordingTransport):
        def broken(response):
            raise KeyError("missing")

        _, error = await client.invoke("hello", response_transform=broken)

        assert error.kind is FunctionsErrorKind.DESERIALIZATION
        assert isinstance(error.__cause__, KeyError)

    async def test_reading_body_twice_is_deserialization_error(
        self, client: FunctionsClient, transport: RecordingTransport
    ):
        async def twice(response):
            await response.text()
            return await response.json()

        _, error = await client.invoke("hello", response_transform=twice)

        assert error.kind is FunctionsErrorKind.DESERIALIZATION
        assert isinstance(error.context, RuntimeError)
