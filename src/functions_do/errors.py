"""
Error taxonomy for functions-do.

Every failure of ``FunctionsClient.invoke`` is reported as a single
``FunctionsError`` type tagged with a ``kind`` discriminant:

- serialization: the request body could not be built
- fetch: the transport failed, no response exists
- relay: the relay in front of the function reported a failure
- deserialization: the response body could not be decoded
- http: the function answered with a status outside 2xx
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class FunctionsErrorKind(str, Enum):
    """Discriminant of a FunctionsError."""
    SERIALIZATION = "serialization"
    FETCH = "fetch"
    RELAY = "relay"
    DESERIALIZATION = "deserialization"
    HTTP = "http"


# Default human-readable message per kind
ERROR_MESSAGES: dict[FunctionsErrorKind, str] = {
    FunctionsErrorKind.SERIALIZATION: "Failed to serialize the request for the function",
    FunctionsErrorKind.FETCH: "Failed to send a request to the function",
    FunctionsErrorKind.RELAY: "Relay error invoking the function",
    FunctionsErrorKind.DESERIALIZATION: "Failed to deserialize the function response",
    FunctionsErrorKind.HTTP: "Function returned a non-2xx status code",
}


class FunctionsError(Exception):
    """
    Error raised or returned when a function invocation fails.

    The same type is used for every failure; inspect ``kind`` to tell them
    apart rather than catching subclasses.

    Example:
        ```python
        data, error = await client.invoke("hello", {"name": "world"})
        if error is not None and error.kind is FunctionsErrorKind.HTTP:
            print(f"HTTP {error.status}: {error.context}")
        ```

    Attributes:
        kind: Which step of the invocation failed.
        message: Human-readable error message.
        context: The underlying cause (exception, relay body text, or the
                 parsed response body for HTTP errors).
        status: HTTP status code (HTTP errors only).
        status_text: HTTP reason phrase (HTTP errors only).
    """

    def __init__(
        self,
        kind: FunctionsErrorKind,
        message: str | None = None,
        context: Any = None,
        *,
        status: int | None = None,
        status_text: str | None = None,
    ) -> None:
        kind = FunctionsErrorKind(kind)
        message = message or ERROR_MESSAGES[kind]
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.context = context
        self.status = status
        self.status_text = status_text
        if isinstance(context, BaseException):
            self.__cause__ = context

    def __str__(self) -> str:
        if self.kind is FunctionsErrorKind.HTTP and self.status is not None:
            return f"{self.message} (status {self.status})"
        if isinstance(self.context, BaseException) and str(self.context):
            return f"{self.message}: {self.context}"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.kind.value!r}, {self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Return a dictionary representation of the error."""
        result: dict[str, Any] = {
            "name": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.kind is FunctionsErrorKind.HTTP:
            result["status"] = self.status
            result["status_text"] = self.status_text
            result["context"] = self.context
        elif isinstance(self.context, BaseException):
            result["context"] = repr(self.context)
        else:
            result["context"] = self.context
        return result


def serialization_error(cause: BaseException) -> FunctionsError:
    return FunctionsError(FunctionsErrorKind.SERIALIZATION, context=cause)


def fetch_error(cause: BaseException) -> FunctionsError:
    return FunctionsError(FunctionsErrorKind.FETCH, context=cause)


def relay_error(body: str) -> FunctionsError:
    return FunctionsError(FunctionsErrorKind.RELAY, context=body)


def deserialization_error(cause: BaseException) -> FunctionsError:
    return FunctionsError(FunctionsErrorKind.DESERIALIZATION, context=cause)


def http_error(status: int, status_text: str, body: Any) -> FunctionsError:
    return FunctionsError(
        FunctionsErrorKind.HTTP,
        context=body,
        status=status,
        status_text=status_text,
    )


def is_error_kind(error: BaseException | None, kind: FunctionsErrorKind | str) -> bool:
    """
    Check if an error is a FunctionsError of a specific kind.

    Example:
        ```python
        result = await client.invoke("hello")
        if is_error_kind(result.error, FunctionsErrorKind.FETCH):
            # Network is unreachable
            pass
        ```
    """
    return isinstance(error, FunctionsError) and error.kind == FunctionsErrorKind(kind)
