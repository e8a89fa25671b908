"""
Per-invocation request context.

A context either carries a deadline (profile timeout > 0) or only a
cancel signal. Network code receives the context explicitly and calls
``check`` before doing work and ``remaining`` to size its timeouts.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from ..errors import DeadlineError

logger = logging.getLogger("ipctl.client.context")


class RequestContext:
    """Deadline and cancellation shared by every call in one invocation.

    A *timeout* of zero means no deadline; ``cancel`` still works.
    """
    def __init__(self, timeout: int = 0, clock: Callable[[], float] = time.monotonic):
        """Create a context.

        Args:
            timeout: Seconds until the deadline; 0 for none.
            clock: Monotonic time source.
        """
        self._clock = clock
        self.started_at = clock()
        self.timeout = timeout
        self.deadline: Optional[float] = self.started_at + timeout if timeout > 0 else None
        self._cancelled = threading.Event()
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    @classmethod
    def background(cls) -> "RequestContext":
        """A context with no deadline."""
        return cls(0)

    @classmethod
    def with_timeout(cls, seconds: int) -> "RequestContext":
        """A context expiring *seconds* from now."""
        return cls(seconds)

    @property
    def has_deadline(self) -> bool:
        """True when a timeout was set."""
        return self.deadline is not None

    @property
    def cancelled(self) -> bool:
        """True once ``cancel`` has been called."""
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        """True once the deadline has passed."""
        return self.deadline is not None and self._clock() >= self.deadline

    @property
    def done(self) -> bool:
        """True when cancelled or expired."""
        return self.cancelled or self.expired

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or ``None`` without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self._clock())

    def check(self) -> None:
        """Raise ``DeadlineError`` if the context is cancelled or expired."""
        if self.cancelled:
            raise DeadlineError("context canceled")
        if self.expired:
            raise DeadlineError("context deadline exceeded")

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Register *callback* to run when the context is cancelled."""
        with self._lock:
            self._callbacks.append(callback)

    def cancel(self) -> None:
        """Signal cancellation; callbacks run once."""
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()
        logger.debug("request context cancelled")
