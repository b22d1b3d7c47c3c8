"""
E2E Test Configuration
======================

Fixtures that drive a real headless Chromium. The whole suite is skipped
when Playwright's browser cannot be launched on this machine.
"""

from typing import AsyncGenerator

import httpx
import pytest

from slide_renderer.api.main import create_app
from slide_renderer.config.settings import Settings
from slide_renderer.core.exceptions import BrowserLaunchFailure
from slide_renderer.core.rendering.browser_session import BrowserSession


@pytest.fixture
def e2e_settings() -> Settings:
    return Settings(
        environment="testing",
        max_concurrency=1,
        device_scale_factor=2.0,
        render_signal_timeout_ms=3000,
        default_timeout_ms=20000,
    )


@pytest.fixture
async def chromium_session(e2e_settings: Settings) -> AsyncGenerator[BrowserSession, None]:
    session = BrowserSession(e2e_settings)
    try:
        await session.acquire()
    except BrowserLaunchFailure as e:
        await session.close()
        pytest.skip(f"Chromium not available: {e}")
    yield session
    await session.close()


@pytest.fixture
async def e2e_client(
    e2e_settings: Settings, chromium_session: BrowserSession
) -> AsyncGenerator[httpx.AsyncClient, None]:
    app = create_app(e2e_settings, browser_session=chromium_session)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://renderer.test") as client:
        yield client
