"""
Type definitions for functions-do

This module contains the request, response and option types shared by the
client, the default transport and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from email import policy
from email.parser import BytesParser
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    Iterator,
    Mapping,
    Protocol,
    TypeAlias,
    TypedDict,
    TypeVar,
    Union,
)
from urllib.parse import parse_qsl

import httpx

from .errors import FunctionsError

T = TypeVar("T")


class ResponseType(str, Enum):
    """How a response body should be decoded when no transform is given."""
    JSON = "json"
    TEXT = "text"
    ARRAY_BUFFER = "arrayBuffer"
    BLOB = "blob"
    FORM_DATA = "formData"


class InvokeMode(str, Enum):
    """Customization mode of one side of an invocation."""
    AUTO = "auto"
    CUSTOM = "custom"


def media_type(content_type: str | None) -> str:
    """Strip parameters (charset, boundary) from a Content-Type value."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


@dataclass(frozen=True)
class Blob:
    """Binary payload tagged with its media type."""
    data: bytes
    type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    def text(self, encoding: str = "utf-8") -> str:
        return self.data.decode(encoding)

    def __bytes__(self) -> bytes:
        return self.data


@dataclass
class FormField:
    """A single entry of a FormData container."""
    name: str
    value: str | bytes
    filename: str | None = None
    content_type: str | None = None


class FormData:
    """
    Multipart form container.

    Mirrors the browser ``FormData``: ordered, multi-valued fields where
    a field is either a plain string or a file with a filename.

    Example::

        form = FormData()
        form.append("title", "report")
        form.append("file", b"...", filename="report.pdf", content_type="application/pdf")
    """

    def __init__(self, fields: Mapping[str, str | bytes] | None = None) -> None:
        self._fields: list[FormField] = []
        if fields:
            for name, value in fields.items():
                self.append(name, value)

    def append(
        self,
        name: str,
        value: str | bytes,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> None:
        if isinstance(value, bytes) and filename is None:
            filename = "blob"
        self._fields.append(FormField(name, value, filename, content_type))

    def set(
        self,
        name: str,
        value: str | bytes,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> None:
        """Replace every existing value of ``name`` with a single value."""
        self.delete(name)
        self.append(name, value, filename, content_type)

    def delete(self, name: str) -> None:
        self._fields = [f for f in self._fields if f.name != name]

    def get(self, name: str) -> str | bytes | None:
        for f in self._fields:
            if f.name == name:
                return f.value
        return None

    def get_all(self, name: str) -> list[str | bytes]:
        return [f.value for f in self._fields if f.name == name]

    def fields(self) -> list[FormField]:
        return list(self._fields)

    def __contains__(self, name: object) -> bool:
        return any(f.name == name for f in self._fields)

    def __iter__(self) -> Iterator[tuple[str, str | bytes]]:
        for f in self._fields:
            yield f.name, f.value

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FormData):
            return NotImplemented
        return self._fields == other._fields

    def __repr__(self) -> str:
        return f"FormData({[(f.name, f.value) for f in self._fields]!r})"

    def to_httpx_files(self) -> list[tuple[str, tuple[str | None, str | bytes, str | None]]]:
        """
        Render the container as an httpx ``files`` list.

        Plain fields are passed with a ``None`` filename so httpx still
        encodes them as multipart parts.
        """
        return [(f.name, (f.filename, f.value, f.content_type)) for f in self._fields]

    @classmethod
    def parse(cls, body: bytes, content_type: str) -> FormData:
        """
        Parse a ``multipart/form-data`` or ``application/x-www-form-urlencoded`` body.

        Raises:
            ValueError: If the content type is not a form type or the body is malformed
        """
        kind = media_type(content_type)
        if kind == "application/x-www-form-urlencoded":
            form = cls()
            for name, value in parse_qsl(body.decode("utf-8"), keep_blank_values=True):
                form.append(name, value)
            return form
        if kind != "multipart/form-data":
            raise ValueError(f"Cannot parse form data from content type: {content_type!r}")

        header = f"Content-Type: {content_type}\r\n\r\n".encode("latin-1")
        message = BytesParser(policy=policy.HTTP).parsebytes(header + body)
        if not message.is_multipart():
            raise ValueError("Malformed multipart body")

        form = cls()
        for part in message.iter_parts():
            name = part.get_param("name", header="content-disposition")
            if name is None:
                raise ValueError("Multipart part is missing a field name")
            filename = part.get_filename()
            payload = part.get_payload(decode=True) or b""
            if filename is None:
                form.append(name, payload.decode(part.get_content_charset() or "utf-8"))
            else:
                form.append(name, payload, filename=filename, content_type=part.get_content_type())
        return form


class RequestInit(TypedDict, total=False):
    """Request fields a request transform may return. ``method`` is not settable."""
    headers: Mapping[str, str]
    body: str | bytes | FormData | None
    cache: str
    credentials: str
    redirect: str
    referrer: str
    integrity: str
    timeout: float | None
    extensions: dict[str, Any]


@dataclass
class FunctionRequest:
    """Request descriptor handed to the transport."""
    url: str
    method: str = "POST"
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: str | bytes | FormData | None = None
    cache: str | None = None
    credentials: str | None = None
    redirect: str = "follow"
    referrer: str | None = None
    integrity: str | None = None
    timeout: float | None = None
    extensions: dict[str, Any] = field(default_factory=dict)


class Response(Protocol):
    """
    Response descriptor returned by a transport.

    Each body reader may be used at most once per response.
    """

    @property
    def status(self) -> int: ...

    @property
    def status_text(self) -> str: ...

    @property
    def ok(self) -> bool: ...

    @property
    def headers(self) -> Mapping[str, str]: ...

    async def text(self) -> str: ...

    async def json(self) -> Any: ...

    async def array_buffer(self) -> bytes: ...

    async def blob(self) -> Blob: ...

    async def form_data(self) -> FormData: ...


# Type aliases
Transport: TypeAlias = Callable[[FunctionRequest], Awaitable[Response]]
RequestTransform: TypeAlias = Callable[[Any], Union[RequestInit, Mapping[str, Any], Awaitable[Mapping[str, Any]]]]
ResponseTransform: TypeAlias = Callable[[Response], Union[Any, Awaitable[Any]]]


@dataclass
class FunctionInvokeOptions:
    """
    Per-call options for ``FunctionsClient.invoke``.

    Each side of the exchange is either automatic (type-based encoding,
    optional ``response_type`` hint) or fully custom (a transform). A
    response transform and a response type hint are mutually exclusive.
    """
    headers: Mapping[str, str] | None = None
    response_type: ResponseType | str | None = None
    request_transform: RequestTransform | None = None
    response_transform: ResponseTransform | None = None

    def __post_init__(self) -> None:
        if self.response_type is not None and self.response_transform is not None:
            raise ValueError("response_type and response_transform cannot be combined")
        if self.response_type is not None:
            self.response_type = ResponseType(self.response_type)

    @property
    def request_mode(self) -> InvokeMode:
        return InvokeMode.CUSTOM if self.request_transform is not None else InvokeMode.AUTO

    @property
    def response_mode(self) -> InvokeMode:
        return InvokeMode.CUSTOM if self.response_transform is not None else InvokeMode.AUTO


@dataclass(frozen=True)
class FunctionsResponse(Generic[T]):
    """
    Result of an invocation.

    On success ``error`` is ``None``; on failure ``data`` is ``None``.
    Unpacks as ``data, error = result``.
    """
    data: T | None
    error: FunctionsError | None = None

    def __post_init__(self) -> None:
        if self.error is not None and self.data is not None:
            raise ValueError("A failed response cannot carry data")

    @classmethod
    def success(cls, data: T) -> FunctionsResponse[T]:
        return cls(data=data, error=None)

    @classmethod
    def failure(cls, error: FunctionsError) -> FunctionsResponse[T]:
        return cls(data=None, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def __iter__(self) -> Iterator[Any]:
        yield self.data
        yield self.error
