#!/usr/bin/env python3
"""
functions-do CLI

Invoke remote functions from the command line.

Usage:
    functions-do invoke NAME    - Invoke a function and print its result
    functions-do config         - Show the resolved configuration
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import click

from .config import configure_from_env, create_client, get_config
from .errors import FunctionsError
from .types import Blob, FormData, ResponseType


# Color codes for terminal output
class Colors:
    RESET = "\x1b[0m"
    BRIGHT = "\x1b[1m"
    DIM = "\x1b[2m"
    GREEN = "\x1b[32m"
    RED = "\x1b[31m"
    CYAN = "\x1b[36m"
    GRAY = "\x1b[90m"


def print_error(message: str, error: Exception | None = None) -> None:
    """Print error message."""
    click.echo(f"{Colors.RED}Error:{Colors.RESET} {message}", err=True)
    if error and str(error):
        click.echo(str(error), err=True)


def run_async(coro: Any) -> Any:
    """Run an async function synchronously."""
    return asyncio.run(coro)


def parse_header(value: str) -> tuple[str, str]:
    """Parse a 'Name: value' header argument."""
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise click.BadParameter(f"Expected 'Name: value', got {value!r}")
    return name.strip(), header_value.strip()


def format_data(data: Any) -> str:
    """Render decoded response data for the terminal."""
    if isinstance(data, str):
        return data
    if isinstance(data, Blob):
        return f"<{data.size} bytes {data.type or 'binary'}>"
    if isinstance(data, bytes):
        return f"<{len(data)} bytes>"
    if isinstance(data, FormData):
        return json.dumps(
            {name: value if isinstance(value, str) else f"<{len(value)} bytes>" for name, value in data},
            indent=2,
        )
    return json.dumps(data, indent=2, default=str)


def mask_token(token: str | None) -> str:
    if not token:
        return "(not set)"
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}...{token[-4:]}"


@click.group()
@click.option("--debug", is_flag=True, help="Show debug information")
def cli(debug: bool) -> None:
    """
    functions-do CLI - Invoke remote functions over HTTP
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG)

    try:
        configure_from_env()
    except ValueError as e:
        print_error(str(e))
        raise SystemExit(1)


@cli.command()
@click.argument("name")
@click.option("--data", "data", help="JSON value sent as the request body")
@click.option("--text", "text", help="Plain text sent as the request body")
@click.option("-H", "--header", "headers", multiple=True, help="Extra header, 'Name: value'")
@click.option(
    "--response-type",
    type=click.Choice([t.value for t in ResponseType]),
    help="How to decode the response (default: from Content-Type)",
)
@click.option("--url", help="Base URL (default: FUNCTIONS_URL)")
@click.option("--token", help="Bearer token (default: FUNCTIONS_TOKEN)")
def invoke(
    name: str,
    data: str | None,
    text: str | None,
    headers: tuple[str, ...],
    response_type: str | None,
    url: str | None,
    token: str | None,
) -> None:
    """Invoke function NAME and print its result."""
    if data is not None and text is not None:
        raise click.UsageError("--data and --text cannot be combined")

    body: Any = text
    if data is not None:
        try:
            body = json.loads(data)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"Invalid JSON: {e}", param_hint="--data")

    extra_headers = dict(parse_header(h) for h in headers)

    try:
        client = create_client(url=url, token=token, throw_on_error=False)
    except ValueError as e:
        print_error(str(e))
        raise SystemExit(1)

    result = run_async(
        client.invoke(name, body, headers=extra_headers, response_type=response_type)
    )

    if result.error is not None:
        report_error(result.error)
        raise SystemExit(1)

    click.echo(format_data(result.data))


def report_error(error: FunctionsError) -> None:
    """Print a failed invocation, including the function's error body."""
    print_error(f"[{error.kind.value}] {error.message}")
    if error.status is not None:
        click.echo(f"{Colors.GRAY}Status:{Colors.RESET} {error.status} {error.status_text or ''}", err=True)
    if error.context is not None:
        click.echo(f"{Colors.GRAY}Details:{Colors.RESET} {format_data(error.context)}", err=True)


@cli.command()
def config() -> None:
    """Show the resolved configuration."""
    current = get_config()
    click.echo(f"{Colors.BRIGHT}functions-do configuration{Colors.RESET}\n")
    click.echo(f"  {Colors.CYAN}URL:{Colors.RESET}            {current.url or '(not set)'}")
    click.echo(f"  {Colors.CYAN}Token:{Colors.RESET}          {mask_token(current.token)}")
    click.echo(f"  {Colors.CYAN}Throw on error:{Colors.RESET} {current.throw_on_error}")
    click.echo(f"  {Colors.CYAN}Timeout:{Colors.RESET}        {current.timeout}s")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
