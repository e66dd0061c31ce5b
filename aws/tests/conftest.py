"""Shared test fixtures for command relay tests."""

import base64
import json
import os
import sys
from unittest.mock import MagicMock

import pytest

# Ensure aws/ is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import relay_lambda  # noqa: E402

TEST_SECRET = "abc123"


def make_event(path="/turn-on", body=None, headers=None, base64_body=False):
    """Build an API Gateway HTTP API (v2) proxy event."""
    if isinstance(body, dict):
        body = json.dumps(body)
    if base64_body and body is not None:
        body = base64.b64encode(body.encode()).decode()
    return {
        "version": "2.0",
        "rawPath": path,
        "headers": headers or {},
        "body": body,
        "isBase64Encoded": base64_body,
        "requestContext": {"http": {"method": "POST", "path": path}},
    }


@pytest.fixture(autouse=True)
def no_ambient_secret(monkeypatch):
    """Tests start with no secret configured, whatever the host shell has."""
    monkeypatch.delenv("IFTTT_SECRETKEY", raising=False)


@pytest.fixture
def secret(monkeypatch):
    monkeypatch.setenv("IFTTT_SECRETKEY", TEST_SECRET)
    return TEST_SECRET


@pytest.fixture
def table(monkeypatch):
    """Stand-in DynamoDB table cached as the Lambda's table resource."""
    mock_table = MagicMock()
    monkeypatch.setattr(relay_lambda, "_table", mock_table)
    return mock_table
