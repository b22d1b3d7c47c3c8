"""
Test Configuration
==================

Pytest fixtures shared by the unit, integration and e2e suites.
The browser is faked unless a test asks for a real one.
"""

from typing import AsyncGenerator, Dict, Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from slide_renderer.api.main import create_app
from slide_renderer.config.settings import Settings
from slide_renderer.core.rendering.renderer import TemplateRenderer
from slide_renderer.models.schemas import TemplateId

from tests.utils.mocks import FakeBrowser, FakeBrowserSession, PageScript

HOOK_TEMPLATE = TemplateId.KONTEKST_CAROUSEL_V1_SLIDE_1_HOOK.value


@pytest.fixture
def test_settings() -> Settings:
    """Test settings fixture."""
    return Settings(
        environment="testing",
        log_level="DEBUG",
        max_concurrency=1,
        device_scale_factor=2.0,
        default_timeout_ms=5000,
        render_signal_timeout_ms=1000,
        json_limit="10mb",
    )


@pytest.fixture
def page_script() -> PageScript:
    return PageScript()


@pytest.fixture
def fake_browser(page_script: PageScript) -> FakeBrowser:
    return FakeBrowser(page_script)


@pytest.fixture
def browser_session(fake_browser: FakeBrowser, test_settings: Settings) -> FakeBrowserSession:
    return FakeBrowserSession(fake_browser, test_settings)


@pytest.fixture
def renderer(browser_session: FakeBrowserSession, test_settings: Settings) -> TemplateRenderer:
    return TemplateRenderer(browser_session, settings=test_settings)


@pytest.fixture
def app(test_settings: Settings, browser_session: FakeBrowserSession) -> FastAPI:
    """FastAPI application wired to the fake browser."""
    return create_app(test_settings, browser_session=browser_session)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async HTTP client bound to the ASGI app."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://renderer.test") as c:
        yield c


@pytest.fixture
def sync_client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def hook_payload() -> Dict[str, Any]:
    return {
        "template_id": HOOK_TEMPLATE,
        "title": "Hello",
        "subtitle": "Five things nobody tells you",
        "brand": "KONTEKST",
    }
