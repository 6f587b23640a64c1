"""
FunctionsClient - HTTP invocation of named remote functions.

The client serializes an input value into a POST request, sends it through
a pluggable transport, classifies the response and decodes the body into a
``FunctionsResponse``.
"""

from __future__ import annotations

import dataclasses
import datetime
import inspect
import io
import json
import logging
import threading
from typing import Any, Mapping
from urllib.parse import unquote

import httpx
from pydantic import BaseModel

from .errors import (
    FunctionsError,
    FunctionsErrorKind,
    deserialization_error,
    fetch_error,
    http_error,
    relay_error,
    serialization_error,
)
from .transport import resolve_fetch
from .types import (
    Blob,
    FormData,
    FunctionInvokeOptions,
    FunctionRequest,
    FunctionsResponse,
    InvokeMode,
    RequestInit,
    RequestTransform,
    Response,
    ResponseTransform,
    ResponseType,
    Transport,
    media_type,
)

logger = logging.getLogger(__name__)

__all__ = ["FunctionsClient", "serialize_body", "deserialize_body"]

RELAY_ERROR_HEADER = "x-relay-error"

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_TEXT = "text/plain"
CONTENT_TYPE_BINARY = "application/octet-stream"

# Request init fields a request transform may return
_REQUEST_INIT_FIELDS = frozenset(RequestInit.__annotations__)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _json_default(value: Any) -> Any:
    """Encode the non-native values json.dumps is commonly handed."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _is_file_like(value: Any) -> bool:
    return isinstance(value, io.IOBase) and value.readable()


def serialize_body(value: Any) -> RequestInit:
    """
    Build request init fields from an input value by its runtime type.

    - bytes-like, Blob and binary file objects: raw bytes, application/octet-stream
    - str: raw text, text/plain
    - FormData: the container itself, no Content-Type (the transport adds
      the multipart boundary)
    - None: no body
    - anything else: JSON text, application/json

    Raises:
        TypeError, ValueError: If the value cannot be JSON encoded
    """
    if value is None:
        return {}

    if isinstance(value, Blob):
        return {"headers": {"Content-Type": CONTENT_TYPE_BINARY}, "body": value.data}

    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"headers": {"Content-Type": CONTENT_TYPE_BINARY}, "body": bytes(value)}

    if isinstance(value, str):
        return {"headers": {"Content-Type": CONTENT_TYPE_TEXT}, "body": value}

    if isinstance(value, FormData):
        return {"body": value}

    if _is_file_like(value):
        content = value.read()
        if isinstance(content, str):
            content = content.encode("utf-8")
        return {"headers": {"Content-Type": CONTENT_TYPE_BINARY}, "body": bytes(content)}

    return {
        "headers": {"Content-Type": CONTENT_TYPE_JSON},
        "body": json.dumps(value, default=_json_default, allow_nan=False),
    }


def infer_response_type(content_type: str | None) -> ResponseType:
    """Map a response Content-Type to the way its body is decoded."""
    kind = media_type(content_type)
    if kind == CONTENT_TYPE_JSON or kind.endswith("+json"):
        return ResponseType.JSON
    if kind.startswith("text/"):
        return ResponseType.TEXT
    if kind == CONTENT_TYPE_BINARY:
        return ResponseType.BLOB
    if kind in ("multipart/form-data", "application/x-www-form-urlencoded"):
        return ResponseType.FORM_DATA
    # Missing or unrecognized: JSON
    return ResponseType.JSON


async def deserialize_body(response: Response, response_type: ResponseType | None = None) -> Any:
    """
    Decode a response body.

    An explicit ``response_type`` wins over the response's Content-Type.
    An empty body decoded as JSON yields ``None``.
    """
    if response_type is None:
        response_type = infer_response_type(response.headers.get("content-type"))

    if response_type is ResponseType.JSON:
        text = await response.text()
        if not text.strip():
            return None
        return json.loads(text)
    if response_type is ResponseType.TEXT:
        return await response.text()
    if response_type is ResponseType.ARRAY_BUFFER:
        return await response.array_buffer()
    if response_type is ResponseType.BLOB:
        return await response.blob()
    return await response.form_data()


class FunctionsClient:
    """
    Client for invoking remote functions over HTTP.

    Every call is a POST to ``<url>/<function_name>``. Failures are returned
    as ``FunctionsResponse(data=None, error=FunctionsError)`` unless
    ``throw_on_error`` is set, in which case the error is raised.

    Example:
        client = FunctionsClient("https://project.example.com/functions/v1")
        client.set_auth(access_token)

        data, error = await client.invoke("hello", {"name": "world"})
        if error:
            print(error.kind, error.message)
    """

    __slots__ = ("_url", "_headers", "_fetch", "_throw_on_error", "_lock")

    def __init__(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        custom_fetch: Transport | None = None,
        throw_on_error: bool = False,
    ) -> None:
        """
        Initialize the client.

        Args:
            url: Base URL the function names are resolved against
            headers: Headers sent with every call; they win over per-call headers
            custom_fetch: Transport to use instead of the default HttpxTransport
            throw_on_error: Raise FunctionsError instead of returning it
        """
        self._url = url
        self._headers = httpx.Headers(headers or {})
        self._fetch = resolve_fetch(custom_fetch)
        self._throw_on_error = throw_on_error
        self._lock = threading.Lock()

    @property
    def url(self) -> str:
        return self._url

    @property
    def headers(self) -> httpx.Headers:
        """A copy of the headers sent with every call."""
        return self._headers.copy()

    @property
    def throw_on_error(self) -> bool:
        return self._throw_on_error

    def set_auth(self, token: str) -> None:
        """
        Updates the authorization header.

        Args:
            token: The new token sent as ``Authorization: Bearer <token>``
        """
        with self._lock:
            # Swap in a new object so in-flight calls keep their snapshot
            headers = self._headers.copy()
            headers["Authorization"] = f"Bearer {token}"
            self._headers = headers

    async def invoke(
        self,
        function_name: str,
        input: Any = None,
        *,
        headers: Mapping[str, str] | None = None,
        response_type: ResponseType | str | None = None,
        request_transform: RequestTransform | None = None,
        response_transform: ResponseTransform | None = None,
        options: FunctionInvokeOptions | None = None,
    ) -> FunctionsResponse[Any]:
        """
        Invoke a function.

        Args:
            function_name: Name of the function, resolved against the base URL
            input: Value sent as the request body
            headers: Extra headers for this call
            response_type: How to decode the body: json, text, arrayBuffer,
                           blob or formData (default: inferred from Content-Type)
            request_transform: Builds the request init from ``input`` instead of
                               the type-based encoding
            response_transform: Decodes the response instead of the
                                Content-Type based decoding
            options: Full options object (overrides the keyword arguments)

        Returns:
            FunctionsResponse with either data or error set

        Raises:
            FunctionsError: Only when throw_on_error is set
            ValueError: If response_type and response_transform are combined
        """
        if options is None:
            options = FunctionInvokeOptions(
                headers=headers,
                response_type=response_type,
                request_transform=request_transform,
                response_transform=response_transform,
            )

        try:
            data = await self._invoke(function_name, input, options)
        except FunctionsError as error:
            logger.debug("Invoking %s failed with %s error: %s", function_name, error.kind.value, error)
            if self._throw_on_error:
                raise
            return FunctionsResponse.failure(error)

        return FunctionsResponse.success(data)

    async def _invoke(self, function_name: str, input: Any, options: FunctionInvokeOptions) -> Any:
        # Snapshot before the first suspension point
        base_headers = self._headers

        request = await self._build_request(input, options, base_headers)

        try:
            request.url = self._resolve_url(function_name)
            logger.debug("Invoking function %s at %s", function_name, request.url)
            response = await self._fetch(request)
        except Exception as e:
            raise fetch_error(e) from e

        logger.debug("Function %s responded with %d", function_name, response.status)

        if response.headers.get(RELAY_ERROR_HEADER) == "true":
            logger.warning("Relay error invoking function %s", function_name)
            try:
                body = await response.text()
            except Exception as e:
                raise FunctionsError(FunctionsErrorKind.RELAY, context=e) from e
            raise relay_error(body)

        try:
            if options.response_mode is InvokeMode.CUSTOM:
                data = await _maybe_await(options.response_transform(response))
            else:
                data = await deserialize_body(response, options.response_type)
        except Exception as e:
            raise deserialization_error(e) from e

        if not response.ok:
            raise http_error(response.status, response.status_text, data)

        return data

    async def _build_request(
        self,
        input: Any,
        options: FunctionInvokeOptions,
        base_headers: httpx.Headers,
    ) -> FunctionRequest:
        try:
            if options.request_mode is InvokeMode.CUSTOM:
                init = dict(await _maybe_await(options.request_transform(input)) or {})
            else:
                init = dict(serialize_body(input))
            request = _request_from_init(init)
            # Lowest to highest precedence: serialized, per-call, client headers
            if options.headers:
                request.headers.update(options.headers)
        except Exception as e:
            raise serialization_error(e) from e

        request.headers.update(base_headers)
        if isinstance(request.body, FormData):
            # The transport must supply the multipart boundary
            request.headers.pop("content-type", None)
        return request

    def _resolve_url(self, function_name: str) -> str:
        """
        Resolve a function name against the base URL.

        Raises:
            ValueError: If the name is empty or resolves outside the base URL
        """
        if not function_name:
            raise ValueError("Function name must not be empty")

        base = httpx.URL(self._url if self._url.endswith("/") else f"{self._url}/")
        target = base.join(function_name)
        if (
            target.scheme != base.scheme
            or target.host != base.host
            or target.port != base.port
            or not target.path.startswith(base.path)
            # The join does not resolve percent-encoded dot segments
            or any(unquote(segment) in (".", "..") for segment in target.path.split("/"))
        ):
            raise ValueError(f"Function name {function_name!r} resolves outside of {self._url}")
        return str(target)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._url!r})"


def _request_from_init(init: dict[str, Any]) -> FunctionRequest:
    """Validate request init fields and build a POST request from them."""
    if "method" in init:
        logger.debug("Ignoring method %r: functions are always invoked with POST", init.pop("method"))

    unknown = set(init) - _REQUEST_INIT_FIELDS
    if unknown:
        raise TypeError(f"Unsupported request option(s): {', '.join(sorted(unknown))}")

    body = init.get("body")
    if body is not None and not isinstance(body, (str, bytes, FormData)):
        raise TypeError(f"Request body must be str, bytes or FormData, not {type(body).__name__}")

    return FunctionRequest(
        url="",
        method="POST",
        headers=httpx.Headers(init.get("headers") or {}),
        body=body,
        cache=init.get("cache"),
        credentials=init.get("credentials"),
        redirect=init.get("redirect") or "follow",
        referrer=init.get("referrer"),
        integrity=init.get("integrity"),
        timeout=init.get("timeout"),
        extensions=dict(init.get("extensions") or {}),
    )
