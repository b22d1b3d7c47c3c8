"""
Browser Diagnostics
===================

Collects console output, uncaught page errors and failed sub-requests for
a single page so failures can be returned to the caller with context.
"""

from collections import deque
from typing import Any, Deque, List

from playwright.async_api import ConsoleMessage, Error, Page, Request

DEFAULT_CAPACITY = 300


class BrowserLogCollector:
    """Bounded FIFO of formatted page events; oldest lines are dropped."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self._lines: Deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._lines.maxlen or 0

    def push(self, kind: str, message: Any) -> None:
        self._lines.append(f"[{kind}] {message}")

    def attach(self, page: Page) -> None:
        """Subscribe to the page's console, pageerror and requestfailed events."""
        page.on("console", self._on_console)
        page.on("pageerror", self._on_page_error)
        page.on("requestfailed", self._on_request_failed)

    def lines(self) -> List[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def _on_console(self, message: ConsoleMessage) -> None:
        self.push(f"console.{message.type}", message.text)

    def _on_page_error(self, error: Error) -> None:
        self.push("pageerror", getattr(error, "stack", None) or str(error))

    def _on_request_failed(self, request: Request) -> None:
        self.push("requestfailed", f"{request.method} {request.url} -> {request.failure or 'unknown'}")
