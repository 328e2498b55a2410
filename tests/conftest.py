"""Pytest session bootstrap and shared fakes.

- Ensure `goto_client/` is importable without installation
- Provide a scripted fake transport so no test reaches the network
"""

import json
import os
import sys

import pytest

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from goto_client.domain.interfaces.transport import RawResponse  # noqa: E402
from goto_client.domain.models.auth import AuthContext  # noqa: E402
from goto_client.infrastructure.http.retry import RetryConfig, RetryPolicy  # noqa: E402


def json_response(status, payload):
    return RawResponse(status=status, body=json.dumps(payload).encode(), headers={"Content-Type": "application/json"})


def stream_response(chunks, status=200):
    closed = {"count": 0}

    def _close():
        closed["count"] += 1

    resp = RawResponse(status=status, chunks=iter(list(chunks)), closer=_close)
    resp.closed = closed  # test-only handle
    return resp


class FakeTransport:
    """Plays back scripted responses and records every call.

    Each script entry is a RawResponse, an exception instance (raised),
    or a callable taking the call kwargs and returning either.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.calls = []

    def send(self, method, path, *, headers=None, json_body=None, form_fields=None,
             query=None, stream=False, timeout=None, cancel=None):
        call = {
            "method": method,
            "path": path,
            "headers": dict(headers or {}),
            "json_body": json_body,
            "form_fields": form_fields,
            "query": query,
            "stream": stream,
            "timeout": timeout,
        }
        self.calls.append(call)
        if not self.script:
            raise AssertionError(f"Unexpected request: {method} {path}")
        item = self.script.pop(0)
        if callable(item) and not isinstance(item, RawResponse):
            item = item(call)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def auth():
    return AuthContext(api_key="test-key-123", tenant_id="tenant-a")


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def retry_policy(sleeps):
    return RetryPolicy(RetryConfig(max_attempts=3, base_delay=1.0), sleep=sleeps.append)
