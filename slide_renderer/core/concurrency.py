"""
Concurrency Gate
================

Admission control for renders. Each render holds a slot for its whole
lifetime; when all slots are taken new requests are rejected outright,
never queued. The counter is only touched from the event loop, so the
check-and-increment in :meth:`ConcurrencyGate.admit` cannot interleave.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator

from slide_renderer.config.logging import get_logger
from slide_renderer.core.exceptions import Busy

logger = get_logger(__name__)


class ConcurrencyGate:
    """Counter-based limit on simultaneous renders."""

    def __init__(self, max_concurrency: int = 1):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self.in_flight = 0
        self.logger: Any = logger.bind(component="concurrency_gate")

    @property
    def is_full(self) -> bool:
        return self.in_flight >= self.max_concurrency

    def try_acquire(self) -> bool:
        """Take a slot if one is free. Never blocks."""
        if self.is_full:
            return False
        self.in_flight += 1
        return True

    def release(self) -> None:
        if self.in_flight <= 0:
            raise RuntimeError("ConcurrencyGate released more times than acquired")
        self.in_flight -= 1

    @contextmanager
    def admit(self) -> Iterator["ConcurrencyGate"]:
        """
        Hold a slot for the duration of the block.

        Raises:
            Busy: All slots are taken; the counter is left unchanged
        """
        if not self.try_acquire():
            self.logger.warning(
                "Render rejected at capacity",
                in_flight=self.in_flight,
                max_concurrency=self.max_concurrency,
            )
            raise Busy(self.max_concurrency)
        try:
            yield self
        finally:
            self.release()

    def snapshot(self) -> Dict[str, int]:
        return {"inFlight": self.in_flight, "maxConcurrency": self.max_concurrency}
