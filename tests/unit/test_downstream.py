import httpx
import pytest

from shared.core.downstream import (
    CircuitBreaker,
    CircuitState,
    DownstreamClient,
    DownstreamError,
    DownstreamUnavailable,
    FailurePolicy,
    unwrap,
)
from shared.core.logging_config import set_request_context


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _client(handler, breaker=None):
    return DownstreamClient(
        "sibling",
        "http://sibling.test/api/",
        breaker=breaker or CircuitBreaker(failure_threshold=2, reset_timeout=10),
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_breaker_opens_after_threshold_and_half_opens():
    clock = FakeClock()
    breaker = CircuitBreaker(failure_threshold=2, reset_timeout=10, clock=clock)

    breaker.record_failure()
    assert breaker.state == CircuitState.CLOSED
    breaker.record_failure()
    assert breaker.state == CircuitState.OPEN
    assert not breaker.allow_request()

    clock.now = 10
    assert breaker.state == CircuitState.HALF_OPEN
    assert breaker.allow_request()

    # A failed probe re-opens immediately
    breaker.record_failure()
    assert breaker.state == CircuitState.OPEN

    clock.now = 25
    breaker.record_success()
    assert breaker.state == CircuitState.CLOSED


def test_success_resets_failure_count():
    breaker = CircuitBreaker(failure_threshold=2)
    breaker.record_failure()
    breaker.record_success()
    breaker.record_failure()
    assert breaker.state == CircuitState.CLOSED


def test_request_returns_payload_and_joins_url():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"success": True, "data": {"id": 1}})

    payload = _client(handler).request("GET", "/products/1")
    assert unwrap(payload) == {"id": 1}
    assert seen == ["http://sibling.test/api/products/1"]


def test_client_error_keeps_message_and_does_not_trip_breaker():
    breaker = CircuitBreaker(failure_threshold=1)
    client = _client(lambda r: httpx.Response(400, json={"success": False, "message": "Insufficient stock"}), breaker)

    with pytest.raises(DownstreamError) as exc_info:
        client.request("POST", "/inventory/reserve", json={})
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Insufficient stock"
    assert breaker.state == CircuitState.CLOSED


def test_server_errors_open_circuit():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, text="unavailable")

    client = _client(handler)
    for _ in range(2):
        with pytest.raises(DownstreamError):
            client.request("GET", "/anything")

    with pytest.raises(DownstreamUnavailable, match="circuit open"):
        client.request("GET", "/anything")
    assert len(calls) == 2


def test_connection_error_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(DownstreamUnavailable):
        _client(handler).request("GET", "/anything")


def test_fail_open_returns_fallback():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = _client(handler)
    assert client.call("GET", "/x", policy=FailurePolicy.FAIL_OPEN, fallback=[]) == []
    with pytest.raises(DownstreamUnavailable):
        client.call("GET", "/x", policy=FailurePolicy.FAIL_CLOSED)


def test_request_context_is_propagated():
    headers = {}

    def handler(request):
        headers.update(request.headers)
        return httpx.Response(200, json={"success": True})

    set_request_context(request_id="req-1", user_id="user-7")
    try:
        _client(handler).request("GET", "/ping")
    finally:
        set_request_context()

    assert headers["x-request-id"] == "req-1"
    assert headers["x-correlation-id"] == "req-1"
    assert headers["x-user-id"] == "user-7"
