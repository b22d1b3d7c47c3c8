"""
Test Helpers
============

Helper functions for common testing operations.
"""

import asyncio
import time
from typing import Callable


async def wait_for_condition(
    condition: Callable[[], bool],
    timeout: float = 5.0,
    interval: float = 0.01,
    error_message: str = "Condition not met within timeout",
) -> None:
    """Wait for a condition to become true."""
    start_time = time.monotonic()

    while time.monotonic() - start_time < timeout:
        if condition():
            return
        await asyncio.sleep(interval)

    raise TimeoutError(error_message)
