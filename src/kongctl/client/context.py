"""Per-call deadline and cancellation token."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

DEFAULT_TIMEOUT = 30.0


@dataclass(slots=True)
class RequestContext:
    """
    Deadline and cancel flag shared between a caller and an in-flight request.

    The deadline is measured on :func:`time.monotonic`. Cancellation is
    thread-safe so another thread (or a signal handler) may abort a request
    that is about to be sent.
    """

    deadline: float
    _canceled: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def with_timeout(cls, seconds: float = DEFAULT_TIMEOUT) -> "RequestContext":
        if seconds <= 0:
            raise ValueError("timeout must be positive")
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._canceled.set()

    @property
    def canceled(self) -> bool:
        return self._canceled.is_set()

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative."""

        return max(0.0, self.deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.deadline
