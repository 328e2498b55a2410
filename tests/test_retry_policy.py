import threading
import time

import pytest

from goto_client.domain.models.errors import (
    AuthError,
    CancelledError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TransportError,
    ValidationError,
)
from goto_client.domain.services.error_mapper import map_http_error
from goto_client.infrastructure.http.cancellation import CancellationToken
from goto_client.infrastructure.http.retry import RetryConfig, RetryPolicy, RetryState

from conftest import FakeTransport, json_response


def _classified(transport):
    """Operation that maps the transport's status like a resource client does."""
    def _op():
        resp = transport.send("GET", "/api/catalog/products")
        if not resp.ok:
            raise map_http_error(resp.status, resp.body)
        return resp.json()
    return _op


def test_two_503_then_success_takes_three_attempts(retry_policy, sleeps):
    transport = FakeTransport(
        json_response(503, {"error": "unavailable"}),
        json_response(503, {"error": "unavailable"}),
        json_response(200, {"ok": True}),
    )
    state = RetryState()
    result = retry_policy.execute(_classified(transport), max_attempts=3, base_delay=1.0, state=state)

    assert result == {"ok": True}
    assert len(transport.calls) == 3
    assert state.attempt == 3
    assert sleeps == [1.0, 2.0]
    assert state.delays == [1.0, 2.0]


def test_auth_error_is_not_retried(retry_policy, sleeps):
    transport = FakeTransport(json_response(401, {"error": "invalid api key"}))
    with pytest.raises(AuthError) as exc:
        retry_policy.execute(_classified(transport), max_attempts=3)
    assert exc.value.message == "invalid api key"
    assert len(transport.calls) == 1
    assert sleeps == []


@pytest.mark.parametrize("error", [
    ValidationError("bad input", status=400),
    NotFoundError("missing", status=404),
    CancelledError("stop"),
])
def test_terminal_errors_raise_after_one_attempt(retry_policy, sleeps, error):
    calls = []

    def _op():
        calls.append(1)
        raise error

    with pytest.raises(type(error)):
        retry_policy.execute(_op)
    assert len(calls) == 1
    assert sleeps == []


def test_exhausted_attempts_raise_last_error(retry_policy, sleeps):
    errors = [ServerError("first", status=500), TransportError("second"), ServerError("third", status=502)]
    seen = []

    def _op():
        err = errors[len(seen)]
        seen.append(err)
        raise err

    with pytest.raises(ServerError) as exc:
        retry_policy.execute(_op)
    assert exc.value.message == "third"
    assert len(seen) == 3
    assert sleeps == [1.0, 2.0]


def test_rate_limit_is_retried_as_server_error(retry_policy):
    attempts = []

    def _op():
        attempts.append(1)
        if len(attempts) == 1:
            raise RateLimitError("slow down", status=429)
        return "done"

    assert retry_policy.execute(_op) == "done"
    assert len(attempts) == 2


def test_delay_schedule_doubles_and_caps():
    policy = RetryPolicy(RetryConfig(max_attempts=6, base_delay=0.5, max_delay=3.0))
    assert [policy.get_delay(k) for k in range(2, 7)] == [0.5, 1.0, 2.0, 3.0, 3.0]
    assert policy.get_delay(1) == 0.0


def test_non_client_exceptions_propagate_untouched(retry_policy, sleeps):
    def _op():
        raise KeyError("bug")

    with pytest.raises(KeyError):
        retry_policy.execute(_op)
    assert sleeps == []


def test_cancelled_token_stops_before_first_attempt(retry_policy):
    token = CancellationToken()
    token.cancel()
    calls = []
    with pytest.raises(CancelledError):
        retry_policy.execute(lambda: calls.append(1), cancel=token)
    assert calls == []


def test_invalid_config_rejected():
    from goto_client.domain.models.errors import ConfigError
    with pytest.raises(ConfigError):
        RetryConfig(max_attempts=0)


def test_cancel_during_backoff_stops_without_another_attempt():
    policy = RetryPolicy(RetryConfig(max_attempts=3, base_delay=10.0))
    token = CancellationToken()
    calls = []

    def _op():
        calls.append(1)
        raise ServerError("unavailable", status=503)

    timer = threading.Timer(0.05, token.cancel)
    timer.start()
    start = time.monotonic()
    try:
        with pytest.raises(CancelledError):
            policy.execute(_op, cancel=token)
    finally:
        timer.cancel()
    assert time.monotonic() - start < 5.0
    assert len(calls) == 1


def test_wait_hook_sees_schedule_with_cancel_token():
    waits = []

    def _wait(delay, cancel):
        waits.append((delay, cancel))
        return False

    policy = RetryPolicy(RetryConfig(max_attempts=3, base_delay=1.0), wait=_wait)
    token = CancellationToken()
    transport = FakeTransport(
        json_response(502, {"error": "bad gateway"}),
        json_response(503, {"error": "unavailable"}),
        json_response(200, {"ok": True}),
    )
    assert policy.execute(_classified(transport), cancel=token) == {"ok": True}
    assert waits == [(1.0, token), (2.0, token)]


def test_wait_hook_reporting_cancellation_raises():
    policy = RetryPolicy(RetryConfig(max_attempts=3), wait=lambda delay, cancel: True)
    calls = []

    def _op():
        calls.append(1)
        raise TransportError("refused")

    with pytest.raises(CancelledError):
        policy.execute(_op)
    assert len(calls) == 1
