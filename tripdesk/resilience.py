"""Retry with linear backoff, plus a wall-clock deadline race for blocking calls."""

from __future__ import annotations

from concurrent.futures import Future, TimeoutError as FutureTimeoutError
import logging
import threading
import time
from typing import Callable, TypeVar

from tripdesk.contracts import RetryPolicy
from tripdesk.errors import RetriesExhausted, TimeoutExceeded


T = TypeVar("T")

RetryObserver = Callable[[int, Exception], None]
SleepFn = Callable[[float], None]

logger = logging.getLogger(__name__)


def log_failed_attempt(attempt: int, error: Exception) -> None:
    logger.warning("Attempt %d failed: %s", attempt, error)


class ResilientInvoker:
    """Runs a zero-argument callable up to `policy.max_attempts` times.

    Waits `policy.base_delay_seconds * attempt` between attempts and reports each
    failed attempt to the observer. No jitter and no delay cap.
    """

    def __init__(
        self,
        observer: RetryObserver | None = None,
        *,
        sleep_fn: SleepFn = time.sleep,
    ) -> None:
        self._observer = observer or log_failed_attempt
        self._sleep_fn = sleep_fn

    def execute(self, operation: Callable[[], T], policy: RetryPolicy) -> T:
        for attempt in range(1, policy.max_attempts + 1):
            try:
                return operation()
            except Exception as exc:
                self._observer(attempt, exc)
                if attempt >= policy.max_attempts:
                    raise RetriesExhausted(policy.max_attempts, exc) from exc
                self._sleep_fn(policy.delay_after(attempt))
        raise RuntimeError("Unreachable retry state.")


def call_with_deadline(operation: Callable[[], T], timeout_seconds: float) -> T:
    """Race `operation` against a timer; whichever settles first wins.

    The operation runs on a daemon thread. When the deadline passes first it is
    abandoned, not cancelled, and its eventual result is dropped.
    """
    if timeout_seconds <= 0:
        raise ValueError("timeout_seconds must be > 0")

    future: Future = Future()

    def _run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = operation()
        except BaseException as exc:  # handed to the waiting caller
            future.set_exception(exc)
        else:
            future.set_result(result)

    threading.Thread(target=_run, name="tripdesk-deadline", daemon=True).start()
    try:
        return future.result(timeout=timeout_seconds)
    except FutureTimeoutError:
        if future.done():
            # The operation itself raised a TimeoutError.
            raise
        raise TimeoutExceeded(timeout_seconds) from None
