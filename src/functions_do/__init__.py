"""
functions-do - Invoke remote functions over HTTP.

This package provides a Python client for calling named functions behind
an HTTP endpoint with support for:
- Automatic request encoding by input type (JSON, text, binary, multipart)
- Response decoding by Content-Type or an explicit response type
- Request/response transforms for full control over the exchange
- Errors returned as values or raised, at the caller's choice

Example usage:
    from functions_do import FunctionsClient

    async def main():
        client = FunctionsClient("https://project.example.com/functions/v1")
        client.set_auth("your-access-token")

        data, error = await client.invoke("hello", {"name": "world"})
        if error:
            print(f"{error.kind.value}: {error.message}")
        else:
            print(data)

    import asyncio
    asyncio.run(main())
"""

from __future__ import annotations

__version__ = "0.1.0"

from .client import FunctionsClient, deserialize_body, serialize_body
from .config import configure, configure_from_env, create_client, get_config, FunctionsConfig
from .errors import FunctionsError, FunctionsErrorKind, is_error_kind
from .transport import HttpxResponse, HttpxTransport
from .types import (
    Blob,
    FormData,
    FunctionInvokeOptions,
    FunctionRequest,
    FunctionsResponse,
    InvokeMode,
    RequestInit,
    Response,
    ResponseType,
    Transport,
)

__all__ = [
    # Main API
    "FunctionsClient",
    "FunctionsResponse",
    "FunctionInvokeOptions",
    "InvokeMode",
    "ResponseType",
    # Body types
    "Blob",
    "FormData",
    # Transport
    "Transport",
    "FunctionRequest",
    "RequestInit",
    "Response",
    "HttpxTransport",
    "HttpxResponse",
    # Errors
    "FunctionsError",
    "FunctionsErrorKind",
    "is_error_kind",
    # Codec
    "serialize_body",
    "deserialize_body",
    # Configuration
    "configure",
    "configure_from_env",
    "create_client",
    "get_config",
    "FunctionsConfig",
    # Version
    "__version__",
]
