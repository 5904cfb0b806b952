"""Per-operation deadline and cancellation scope."""

import threading
import time
from typing import Optional

from judgestore.core.errors import DeadlineExceeded, OperationCancelled


class OperationContext:
    """Bounded, cancellable scope for one store operation.

    The deadline is fixed at construction. ``cancel()`` may be called from any
    thread; the store checks the context before touching the database and again
    before committing, and rolls back if either check fails.
    """

    def __init__(self, timeout: float, clock=time.monotonic):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self._clock = clock
        self.timeout = timeout
        self.deadline = clock() + timeout
        self._cancelled = threading.Event()

    @classmethod
    def with_timeout(cls, seconds: float) -> "OperationContext":
        return cls(seconds)

    @classmethod
    def from_settings(cls, settings) -> "OperationContext":
        return cls(settings.operation_timeout_seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float:
        return max(0.0, self.deadline - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def check(self, operation: Optional[str] = None) -> None:
        """Raise if the operation may no longer proceed."""
        if self.cancelled:
            raise OperationCancelled("Operation cancelled by caller", operation)
        if self.expired:
            raise DeadlineExceeded(
                f"Operation exceeded its {self.timeout:.3f}s deadline", operation
            )
