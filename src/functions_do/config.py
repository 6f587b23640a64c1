"""
Configuration management for functions-do

This module provides global configuration for the functions client,
seeded from environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .client import FunctionsClient

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class FunctionsConfig:
    """Functions client configuration."""
    url: str | None = None
    token: str | None = None
    throw_on_error: bool = False
    timeout: float = DEFAULT_TIMEOUT


def _get_env(key: str) -> str | None:
    """Get environment variable value."""
    return os.environ.get(key)


def _env_flag(key: str) -> bool | None:
    value = _get_env(key)
    if value is None:
        return None
    return value.strip().lower() in _TRUTHY


def _env_timeout(key: str, strict: bool = True) -> float | None:
    value = _get_env(key)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        if not strict:
            logger.warning("Ignoring %s: not a number of seconds: %r", key, value)
            return None
        raise ValueError(f"{key} must be a number of seconds, got {value!r}") from None


def _load_env(strict: bool = True) -> dict[str, Any]:
    return {
        "url": _get_env("FUNCTIONS_URL"),
        "token": _get_env("FUNCTIONS_TOKEN") or _get_env("DO_TOKEN"),
        "throw_on_error": _env_flag("FUNCTIONS_THROW_ON_ERROR"),
        "timeout": _env_timeout("FUNCTIONS_TIMEOUT", strict),
    }


# Global configuration
_global_config: dict[str, Any] = _load_env(strict=False)


def configure(
    *,
    url: str | None = None,
    token: str | None = None,
    throw_on_error: bool | None = None,
    timeout: float | None = None,
) -> None:
    """
    Configure functions-do settings.

    Args:
        url: Base URL the function names are resolved against
        token: Bearer token sent in the Authorization header
        throw_on_error: Raise FunctionsError instead of returning it
        timeout: Default transport timeout in seconds (default: 30.0)

    Example::

        from functions_do import configure

        configure(url="https://project.example.com/functions/v1", token="...")
    """
    if url is not None:
        _global_config["url"] = url
    if token is not None:
        _global_config["token"] = token
    if throw_on_error is not None:
        _global_config["throw_on_error"] = throw_on_error
    if timeout is not None:
        _global_config["timeout"] = timeout


def get_config() -> FunctionsConfig:
    """
    Get current configuration.

    Returns:
        Current configuration object
    """
    timeout = _global_config.get("timeout")
    return FunctionsConfig(
        url=_global_config.get("url"),
        token=_global_config.get("token"),
        throw_on_error=bool(_global_config.get("throw_on_error")),
        timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
    )


def configure_from_env() -> None:
    """
    Configure from environment variables.

    Reads from:
        - FUNCTIONS_URL
        - FUNCTIONS_TOKEN or DO_TOKEN
        - FUNCTIONS_THROW_ON_ERROR
        - FUNCTIONS_TIMEOUT

    Raises:
        ValueError: If FUNCTIONS_TIMEOUT is not a number
    """
    configure(**_load_env())


def reset_config() -> None:
    """Drop every value set through configure() and reload the environment."""
    _global_config.clear()
    _global_config.update(_load_env(strict=False))


def create_client(**overrides: Any) -> FunctionsClient:
    """
    Create a FunctionsClient from the current configuration.

    Args:
        **overrides: Any of url, token, throw_on_error, timeout, headers,
                     custom_fetch

    Raises:
        ValueError: If no base URL is configured
    """
    from .client import FunctionsClient
    from .transport import HttpxTransport

    config = get_config()
    url = overrides.pop("url", None) or config.url
    if not url:
        raise ValueError("Functions URL required. Set via url parameter or FUNCTIONS_URL env var.")

    token = overrides.pop("token", None) or config.token
    throw_on_error = overrides.pop("throw_on_error", None)
    timeout = overrides.pop("timeout", None)
    custom_fetch = overrides.pop("custom_fetch", None) or HttpxTransport(
        timeout=config.timeout if timeout is None else timeout
    )

    client = FunctionsClient(
        url,
        headers=overrides.pop("headers", None),
        custom_fetch=custom_fetch,
        throw_on_error=config.throw_on_error if throw_on_error is None else throw_on_error,
    )
    if overrides:
        raise TypeError(f"Unexpected options: {', '.join(sorted(overrides))}")
    if token:
        client.set_auth(token)
    return client
