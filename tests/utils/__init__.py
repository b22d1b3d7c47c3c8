"""Test utilities: Playwright fakes and assertion helpers."""
