"""Caller-supplied deadline and cancellation for blocking collector calls."""

from __future__ import annotations

import threading
import time


class Deadline:
    """An absolute monotonic expiry paired with a cancellation event.

    ``Deadline()`` never expires on its own but can still be cancelled.
    """

    def __init__(self, timeout: float | None = None, cancel_event: threading.Event | None = None):
        self.expires_at = None if timeout is None else time.monotonic() + timeout
        self._cancelled = cancel_event or threading.Event()

    def remaining(self) -> float | None:
        """Seconds left, ``None`` when unbounded. Never negative."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        if self.cancelled:
            return True
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``, waking early on cancellation or expiry.

        Returns True when the full interval elapsed.
        """
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._cancelled.wait(remaining)
            return False
        return not self._cancelled.wait(seconds)

    def clamp(self, timeout: float) -> float:
        """Shorten ``timeout`` so it does not outlive the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return min(timeout, remaining)


def sleep_between_pages(seconds: float, deadline: Deadline | None) -> bool:
    """Fixed pause between page fetches; False if the deadline cut it short."""
    if deadline is None:
        time.sleep(seconds)
        return True
    return deadline.sleep(seconds)
