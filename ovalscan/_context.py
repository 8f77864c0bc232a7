"""Scan cancellation context.

A ScanContext is shared read-only by every worker of one scan. It combines
an explicit cancel flag with an optional monotonic deadline; handlers call
``raise_if_cancelled()`` before touching the host.
"""

from __future__ import annotations

import threading
import time

from ovalscan.exceptions import ScanCancelledError


class ScanContext:
    """Cancellation signal and deadline for one scan."""

    def __init__(self, deadline: float | None = None):
        # Monotonic clock value after which the scan counts as cancelled
        self.deadline = deadline
        self._cancelled = threading.Event()
        self._reason = ""

    @classmethod
    def with_timeout(cls, seconds: float | None) -> ScanContext:
        """Context that expires ``seconds`` from now (None or 0: never)."""
        if not seconds:
            return cls()
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self, reason: str = "Scan cancelled") -> None:
        if not self._cancelled.is_set():
            self._reason = reason
            self._cancelled.set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set() or self.expired

    @property
    def reason(self) -> str:
        if self._cancelled.is_set():
            return self._reason
        if self.expired:
            return "Scan deadline exceeded"
        return ""

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise ScanCancelledError(f"Cancelled: {self.reason}")
