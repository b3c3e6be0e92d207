"""
Retry and cancellation primitives for the transport.

The retry loop is modelled as a small state machine (``RetryState``) so the
attempt counter and backoff schedule can be exercised without any network.
"""

import random
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from vpsie_client.core.errors import RequestCancelledError

DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded exponential backoff with jitter.

    ``max_attempts`` counts every send, including the first one.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = 0.5
    max_delay: float = 8.0
    factor: float = 2.0
    jitter_factor: float = 0.1

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")

    def calculate_delay(self, attempt: int) -> float:
        """Backoff (before jitter) after the given 1-based attempt."""
        delay = self.base_delay * (self.factor ** (attempt - 1))
        return min(delay, self.max_delay)

    def add_jitter(self, delay: float, rand: float) -> float:
        """Spread ``delay`` by +/- jitter_factor/2 using ``rand`` in [0, 1)."""
        jitter_amount = delay * self.jitter_factor * (rand - 0.5)
        return max(0.0, delay + jitter_amount)

    @staticmethod
    def is_retryable_status(status: int) -> bool:
        """Server errors are transient; everything else is final."""
        return status >= 500


class RetryState:
    """Attempt counter for a single call. Never shared between calls."""

    def __init__(self, policy: RetryPolicy, rand: Callable[[], float] = random.random):
        self.policy = policy
        self.attempt = 0
        self._rand = rand

    def begin_attempt(self) -> int:
        """Start the next attempt and return its 1-based number."""
        if self.exhausted:
            raise RuntimeError("retry budget already spent")
        self.attempt += 1
        return self.attempt

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.policy.max_attempts

    def next_delay(self) -> float:
        """Delay to wait before the next attempt."""
        delay = self.policy.calculate_delay(self.attempt)
        return self.policy.add_jitter(delay, self._rand())


class CancelToken:
    """
    Cooperative cancellation signal with an optional deadline.

    One token may be shared by several calls; cancelling it aborts all of
    them at their next checkpoint.

    Example:
        token = CancelToken(timeout=30)
        threading.Timer(5, token.cancel).start()
        client.backups.list(cancel=token)

    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Cancel every call using this token."""
        self._event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelledError()
        if self.expired:
            raise RequestCancelledError("Request deadline exceeded")

    def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless cancelled first."""
        remaining = self.remaining()
        if remaining is None or seconds < remaining:
            if self._event.wait(seconds):
                raise RequestCancelledError()
            return
        # The deadline falls inside the wait
        if self._event.wait(remaining):
            raise RequestCancelledError()
        raise RequestCancelledError("Request deadline exceeded")
