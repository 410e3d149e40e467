"""Shared cancellation and deadline state for one wait operation."""

import threading
import time
from typing import Optional


class WaitTimeoutError(TimeoutError):
    """The shared deadline elapsed before every endpoint connected."""

    def __init__(self, message: str = "deadline exceeded") -> None:
        super().__init__(message)


class WaitCancelledError(RuntimeError):
    """The wait was cancelled, usually because a sibling endpoint failed."""

    def __init__(self, cause: Optional[BaseException] = None) -> None:
        message = "wait cancelled"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.cause = cause


class WaitContext:
    """Deadline plus cancellation signal shared by all endpoint loops.

    ``timeout`` of 0 (or less) installs no deadline. Cancellation is
    idempotent; the first cause passed to ``cancel`` is kept.
    """

    def __init__(self, timeout: float = 0.0) -> None:
        self._deadline: Optional[float] = None
        if timeout > 0:
            self._deadline = time.monotonic() + timeout
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._cause: Optional[BaseException] = None
        self._cancelled = False

    @property
    def deadline(self) -> Optional[float]:
        """Monotonic deadline, or None when unbounded."""
        return self._deadline

    @property
    def cause(self) -> Optional[BaseException]:
        return self._cause

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline (never negative), None if unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def cancel(self, cause: Optional[BaseException] = None) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._cause = cause
        self._event.set()

    def done(self) -> bool:
        return self._event.is_set() or self.expired()

    def error(self) -> Optional[Exception]:
        """Return the reason the context finished, or None if it is still live.

        Any cancellation is reported as ``WaitCancelledError``, even one made
        after the deadline passed. An elapsed deadline without a cancellation
        is reported as ``WaitTimeoutError``.
        """
        if self._event.is_set():
            return WaitCancelledError(self._cause)
        if self.expired():
            return WaitTimeoutError()
        return None

    def sleep(self, seconds: float) -> bool:
        """Block for ``seconds`` or until the context finishes.

        Returns True when the context finished (cancelled or deadline passed).
        """
        budget = max(0.0, seconds)
        remaining = self.remaining()
        if remaining is not None:
            budget = min(budget, remaining)
        if budget > 0:
            self._event.wait(budget)
        return self.done()


__all__ = ["WaitCancelledError", "WaitContext", "WaitTimeoutError"]
