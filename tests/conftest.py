"""
Pytest configuration and fixtures for functions-do tests.

This module provides fixtures for:
- A recording transport standing in for the network
- Clients wired to that transport
- Loading the YAML conformance scenarios
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import httpx
import pytest
import yaml

from functions_do import FunctionsClient, FunctionRequest, HttpxResponse

BASE_URL = "https://project.example.com/functions/v1"

CONFORMANCE_DIR = Path(__file__).parent / "conformance"


class RecordingTransport:
    """
    Transport double that records every request.

    Returns a fresh HttpxResponse around ``response`` for each call, or
    raises ``error`` when set.
    """

    def __init__(
        self,
        response: httpx.Response | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.response = response if response is not None else httpx.Response(200, json={})
        self.error = error
        self.requests: list[FunctionRequest] = []

    async def __call__(self, request: FunctionRequest) -> HttpxResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return HttpxResponse(self.response)

    @property
    def last_request(self) -> FunctionRequest:
        assert self.requests, "No request was sent"
        return self.requests[-1]


# ============================================================================
# Unit Test Fixtures
# ============================================================================

@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def transport() -> RecordingTransport:
    """Create a transport answering 200 with an empty JSON object."""
    return RecordingTransport()


@pytest.fixture
def client(transport: RecordingTransport) -> FunctionsClient:
    """Create a client returning errors as values."""
    return FunctionsClient(BASE_URL, custom_fetch=transport)


@pytest.fixture
def throwing_client(transport: RecordingTransport) -> FunctionsClient:
    """Create a client raising errors."""
    return FunctionsClient(BASE_URL, custom_fetch=transport, throw_on_error=True)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Remove functions-do environment variables and reset global config."""
    from functions_do.config import reset_config

    for key in (
        "FUNCTIONS_URL",
        "FUNCTIONS_TOKEN",
        "DO_TOKEN",
        "FUNCTIONS_THROW_ON_ERROR",
        "FUNCTIONS_TIMEOUT",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield monkeypatch
    monkeypatch.undo()
    reset_config()


# ============================================================================
# Conformance Scenarios
# ============================================================================

def load_test_specs(spec_dir: Path) -> list[dict[str, Any]]:
    """Load all conformance scenarios from YAML files."""
    specs = []
    if not spec_dir.exists():
        return specs

    for spec_file in sorted(spec_dir.glob("*.yaml")):
        with open(spec_file) as f:
            spec = yaml.safe_load(f)
            if spec and "tests" in spec:
                for test in spec["tests"]:
                    test["_file"] = spec_file.name
                    test["_category"] = spec.get("name", spec_file.stem)
                    specs.append(test)
    return specs


def pytest_generate_tests(metafunc):
    """Generate test cases from conformance scenarios."""
    if "conformance_test" in metafunc.fixturenames:
        spec_dir = Path(os.environ.get("TEST_SPEC_DIR", CONFORMANCE_DIR))
        tests = load_test_specs(spec_dir)
        if tests:
            metafunc.parametrize(
                "conformance_test",
                tests,
                ids=[f"{t.get('_category', 'test')}::{t['name']}" for t in tests]
            )
        else:
            # No tests found - skip
            metafunc.parametrize("conformance_test", [{}], ids=["no_specs_found"])
