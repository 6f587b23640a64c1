"""
Test suite for functions-do.

This package contains:
- Unit tests for the client, codec, errors, transport, config and CLI
- YAML-driven conformance scenarios (conformance/*.yaml)
"""
