"""
Default httpx-backed transport for functions-do.

A transport is any async callable taking a ``FunctionRequest`` and returning
a ``Response``. ``HttpxTransport`` is used when the client is not given one.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from .types import Blob, FormData, FunctionRequest, Transport

logger = logging.getLogger(__name__)

__all__ = ["HttpxResponse", "HttpxTransport", "resolve_fetch"]


class HttpxResponse:
    """
    Response descriptor wrapping an ``httpx.Response``.

    Body readers behave like fetch: a second read raises ``RuntimeError``.
    """

    __slots__ = ("_response", "_body_used")

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._body_used = False

    @property
    def status(self) -> int:
        return self._response.status_code

    @property
    def status_text(self) -> str:
        return self._response.reason_phrase

    @property
    def ok(self) -> bool:
        return self._response.is_success

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def body_used(self) -> bool:
        return self._body_used

    @property
    def raw(self) -> httpx.Response:
        """The underlying httpx response."""
        return self._response

    async def _consume(self) -> bytes:
        if self._body_used:
            raise RuntimeError("Body has already been consumed")
        self._body_used = True
        return await self._response.aread()

    async def text(self) -> str:
        await self._consume()
        return self._response.text

    async def json(self) -> Any:
        return json.loads(await self.text())

    async def array_buffer(self) -> bytes:
        return await self._consume()

    async def blob(self) -> Blob:
        data = await self._consume()
        return Blob(data, self._response.headers.get("content-type", ""))

    async def form_data(self) -> FormData:
        data = await self._consume()
        return FormData.parse(data, self._response.headers.get("content-type", ""))

    def __repr__(self) -> str:
        return f"<HttpxResponse [{self.status}]>"


class HttpxTransport:
    """
    Transport sending requests with ``httpx.AsyncClient``.

    Without an injected client a fresh ``AsyncClient`` is opened per request;
    no connections are kept between calls.

    Example:
        # Share an existing client (e.g. with a mock transport in tests)
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = FunctionsClient(url, custom_fetch=HttpxTransport(http))
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = 30.0,
    ) -> None:
        self._client = client
        self._timeout = timeout

    async def __call__(self, request: FunctionRequest) -> HttpxResponse:
        if self._client is not None:
            return await self._send(self._client, request)

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._send(client, request)

    async def _send(self, client: httpx.AsyncClient, request: FunctionRequest) -> HttpxResponse:
        kwargs: dict[str, Any] = {"headers": request.headers}

        body = request.body
        if isinstance(body, FormData):
            # httpx generates the multipart boundary and Content-Type
            kwargs["files"] = body.to_httpx_files()
        elif body is not None:
            kwargs["content"] = body

        if request.timeout is not None:
            kwargs["timeout"] = request.timeout
        if request.extensions:
            kwargs["extensions"] = request.extensions

        http_request = client.build_request(request.method, request.url, **kwargs)
        logger.debug("Sending %s %s", http_request.method, http_request.url)

        response = await client.send(
            http_request,
            follow_redirects=request.redirect == "follow",
        )
        if request.redirect == "error" and response.is_redirect:
            await response.aclose()
            raise httpx.TooManyRedirects(
                f"Redirect to {response.headers.get('location')!r} not allowed",
                request=http_request,
            )

        # Buffer the body before the per-request client closes
        await response.aread()
        return HttpxResponse(response)


def resolve_fetch(custom_fetch: Transport | None = None) -> Transport:
    """Return the custom transport, or a default ``HttpxTransport``."""
    if custom_fetch is not None:
        return custom_fetch
    return HttpxTransport()
