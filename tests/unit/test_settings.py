"""
Unit Tests for Settings
=======================
"""

import pytest
from pydantic import ValidationError

from slide_renderer.config.settings import Settings, parse_byte_size


@pytest.mark.parametrize(
    "value, expected",
    [("10mb", 10 * 1024 * 1024), ("512kb", 512 * 1024), ("100", 100), ("1GB", 1024**3),
     ("1.5mb", int(1.5 * 1024 * 1024))],
)
def test_parse_byte_size(value, expected):
    assert parse_byte_size(value) == expected


def test_parse_byte_size_rejects_garbage():
    with pytest.raises(ValueError):
        parse_byte_size("ten megabytes")


def test_defaults(monkeypatch):
    for name in ["PORT", "MAX_CONCURRENCY", "DSF", "DEVICE_SCALE_FACTOR", "JSON_LIMIT",
                 "DEFAULT_TIMEOUT_MS", "RENDER_SIGNAL_TIMEOUT_MS"]:
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.port == 10000
    assert settings.json_limit_bytes == 10 * 1024 * 1024
    assert settings.max_concurrency == 1
    assert settings.device_scale_factor == 2.0
    assert settings.default_timeout_ms == 60000
    assert settings.render_signal_timeout_ms == 20000
    assert settings.viewport == {"width": 1080, "height": 1350}


def test_environment_variables(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("MAX_CONCURRENCY", "3")
    monkeypatch.setenv("DSF", "1")
    monkeypatch.setenv("RENDER_SIGNAL_TIMEOUT_MS", "5000")
    monkeypatch.setenv("JSON_LIMIT", "1mb")

    settings = Settings(_env_file=None)

    assert settings.port == 8080
    assert settings.max_concurrency == 3
    assert settings.device_scale_factor == 1.0
    assert settings.render_signal_timeout_ms == 5000
    assert settings.json_limit_bytes == 1024 * 1024


@pytest.mark.parametrize(
    "overrides",
    [{"environment": "staging"}, {"log_level": "LOUD"}, {"json_limit": "lots"},
     {"max_concurrency": 0}, {"device_scale_factor": 0}],
)
def test_invalid_values(overrides):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)
