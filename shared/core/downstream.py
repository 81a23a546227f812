"""
Synchronous HTTP client for calls between sibling services.

Every call goes through a circuit breaker and carries an explicit timeout.
Callers choose what happens when a sibling is unavailable:

* ``FailurePolicy.FAIL_CLOSED`` - the error propagates and the current
  request fails (rendered as 502 by the exception handlers).
* ``FailurePolicy.FAIL_OPEN`` - the error is logged and a caller supplied
  fallback value is returned so the request continues in degraded mode.
"""

import threading
import time
from enum import Enum
from typing import Any, Callable, Optional

import httpx

from .logging_config import get_logger, propagation_headers

logger = get_logger(__name__)


class FailurePolicy(str, Enum):
    FAIL_CLOSED = "fail_closed"
    FAIL_OPEN = "fail_open"


class DownstreamError(Exception):
    """A sibling service answered with an error or could not be reached."""

    def __init__(
        self,
        service: str,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message
        self.status_code = status_code
        self.payload = payload


class DownstreamUnavailable(DownstreamError):
    """Network error, timeout or open circuit."""


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Consecutive-failure circuit breaker.

    Opens after ``failure_threshold`` consecutive failures and lets a single
    probe through once ``reset_timeout`` seconds have passed. A failed probe
    re-opens the circuit; a successful one closes it.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._failures = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state()

    def _state(self) -> CircuitState:
        if self._opened_at is None:
            return CircuitState.CLOSED
        if self._clock() - self._opened_at >= self.reset_timeout:
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    def allow_request(self) -> bool:
        with self._lock:
            return self._state() != CircuitState.OPEN

    def record_success(self) -> None:
        with self._lock:
            self._failures = 0
            self._opened_at = None

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            if self._state() == CircuitState.HALF_OPEN or self._failures >= self.failure_threshold:
                self._opened_at = self._clock()


class DownstreamClient:
    """JSON-over-HTTP client for one sibling service.

    ``http_client`` lets callers supply a preconfigured ``httpx.Client``
    (tests hand in a ``TestClient`` so calls stay in-process); without it a
    short-lived client is opened per call.
    """

    def __init__(
        self,
        service: str,
        base_url: str,
        timeout: float = 5.0,
        breaker: Optional[CircuitBreaker] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.service = service
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.breaker = breaker or CircuitBreaker()
        self.http_client = http_client

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict] = None,
    ) -> Any:
        if not self.breaker.allow_request():
            raise DownstreamUnavailable(self.service, "circuit open")

        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = propagation_headers()
        try:
            if self.http_client is not None:
                response = self.http_client.request(
                    method, url, json=json, params=params, headers=headers, timeout=self.timeout
                )
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.request(method, url, json=json, params=params, headers=headers)
        except httpx.HTTPError as exc:
            self.breaker.record_failure()
            raise DownstreamUnavailable(self.service, str(exc) or exc.__class__.__name__) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 500:
            self.breaker.record_failure()
        else:
            self.breaker.record_success()

        if response.status_code >= 400:
            message = payload.get("message") if isinstance(payload, dict) else None
            raise DownstreamError(
                self.service,
                message or f"HTTP {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )
        return payload

    def call(
        self,
        method: str,
        path: str,
        *,
        policy: FailurePolicy = FailurePolicy.FAIL_CLOSED,
        fallback: Any = None,
        json: Any = None,
        params: Optional[dict] = None,
    ) -> Any:
        """``request`` with the failure policy applied."""
        try:
            return self.request(method, path, json=json, params=params)
        except DownstreamError as exc:
            if policy == FailurePolicy.FAIL_CLOSED:
                raise
            logger.warning(
                f"{self.service} call failed, continuing degraded: {method} {path}",
                extra={"extra_fields": {"error": exc.message, "status_code": exc.status_code}},
            )
            return fallback


def unwrap(payload: Any) -> Any:
    """Return the ``data`` member of a sibling's success envelope."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload
