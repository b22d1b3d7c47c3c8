"""
Unit Tests for the Browser Session
==================================
"""

import asyncio

import pytest

from slide_renderer.core.exceptions import BrowserLaunchFailure
from slide_renderer.core.rendering.browser_session import LAUNCH_ARGS, BrowserSession

from tests.utils.mocks import FakeBrowser, FakeBrowserSession, mock_async_playwright


class TestBrowserLaunch:
    """Launching Chromium through Playwright."""

    @pytest.mark.asyncio
    async def test_launch_uses_container_flags(self, test_settings):
        browser = FakeBrowser()
        patcher, playwright = mock_async_playwright(browser)

        with patcher:
            session = BrowserSession(test_settings)
            assert await session.acquire() is browser

        playwright.chromium.launch.assert_awaited_once()
        kwargs = playwright.chromium.launch.call_args.kwargs
        assert kwargs["headless"] is True
        for flag in ("--no-sandbox", "--disable-gpu", "--disable-dev-shm-usage"):
            assert flag in kwargs["args"]
        assert kwargs["args"] == LAUNCH_ARGS
        assert session.launched

    @pytest.mark.asyncio
    async def test_launch_failure_is_wrapped(self, test_settings):
        patcher, _ = mock_async_playwright(launch_error=RuntimeError("no chromium"))

        with patcher:
            session = BrowserSession(test_settings)
            with pytest.raises(BrowserLaunchFailure, match="no chromium"):
                await session.acquire()
        assert not session.launched

    @pytest.mark.asyncio
    async def test_launch_failure_stops_driver(self, test_settings):
        patcher, playwright = mock_async_playwright(launch_error=RuntimeError("no chromium"))

        with patcher:
            session = BrowserSession(test_settings)
            for _ in range(2):
                with pytest.raises(BrowserLaunchFailure):
                    await session.acquire()

        playwright.stop.assert_awaited_once()
        assert session._playwright is None
        playwright.chromium.launch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_failure_survives_driver_stop_error(self, test_settings):
        patcher, playwright = mock_async_playwright(launch_error=RuntimeError("no chromium"))
        playwright.stop.side_effect = RuntimeError("driver gone")

        with patcher:
            session = BrowserSession(test_settings)
            with pytest.raises(BrowserLaunchFailure, match="no chromium"):
                await session.acquire()

        assert session._playwright is None

    @pytest.mark.asyncio
    async def test_close_stops_browser_and_driver(self, test_settings):
        browser = FakeBrowser()
        patcher, playwright = mock_async_playwright(browser)

        with patcher:
            session = BrowserSession(test_settings)
            await session.acquire()
            await session.close()

        assert browser.closed
        playwright.stop.assert_awaited_once()
        assert not session.launched

    @pytest.mark.asyncio
    async def test_close_before_launch(self, test_settings):
        await BrowserSession(test_settings).close()


class TestMemoizedLaunch:
    """The launch happens once, even under concurrent first use."""

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_share_one_launch(self, test_settings):
        session = FakeBrowserSession(FakeBrowser(), test_settings, launch_delay=0.05)

        browsers = await asyncio.gather(*(session.acquire() for _ in range(10)))

        assert session.launch_count == 1
        assert all(b is session.browser for b in browsers)

    @pytest.mark.asyncio
    async def test_failed_launch_is_not_retried(self, test_settings):
        session = FakeBrowserSession(
            FakeBrowser(), test_settings, launch_error=RuntimeError("boom"), launch_delay=0.01
        )

        results = await asyncio.gather(
            *(session.acquire() for _ in range(3)), return_exceptions=True
        )
        assert all(isinstance(r, BrowserLaunchFailure) for r in results)

        with pytest.raises(BrowserLaunchFailure):
            await session.acquire()
        assert session.launch_count == 1

    @pytest.mark.asyncio
    async def test_close_resets_failed_launch(self, test_settings):
        session = FakeBrowserSession(FakeBrowser(), test_settings, launch_error=RuntimeError("boom"))
        with pytest.raises(BrowserLaunchFailure):
            await session.acquire()

        await session.close()
        session.launch_error = None

        assert await session.acquire() is session.browser
        assert session.launch_count == 2

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_launch(self, test_settings):
        session = FakeBrowserSession(FakeBrowser(), test_settings, launch_delay=0.05)

        waiter = asyncio.ensure_future(session.acquire())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        assert await session.acquire() is session.browser
        assert session.launch_count == 1


class TestRenderContext:
    @pytest.mark.asyncio
    async def test_context_configuration(self, test_settings):
        browser = FakeBrowser()
        session = FakeBrowserSession(browser, test_settings)

        render_context = await session.new_render_context()

        context = browser.contexts[0]
        assert context.options == {
            "viewport": {"width": 1080, "height": 1350},
            "device_scale_factor": 2.0,
        }
        assert context.default_timeout == test_settings.default_timeout_ms
        assert context.default_navigation_timeout == test_settings.default_timeout_ms
        assert render_context.page is context.page

    @pytest.mark.asyncio
    async def test_each_request_gets_fresh_context(self, test_settings):
        browser = FakeBrowser()
        session = FakeBrowserSession(browser, test_settings)

        first = await session.new_render_context()
        second = await session.new_render_context()

        assert first.context is not second.context
        assert first.page is not second.page

    @pytest.mark.asyncio
    async def test_close_swallows_errors(self, test_settings):
        browser = FakeBrowser()
        session = FakeBrowserSession(browser, test_settings)
        render_context = await session.new_render_context()

        async def broken_close():
            raise RuntimeError("already gone")

        render_context.page.close = broken_close
        await render_context.close()

        assert render_context.context.closed
        assert browser.open_contexts == 0
