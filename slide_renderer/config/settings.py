"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Variable names match the deployment environment (PORT, MAX_CONCURRENCY, DSF, ...).
"""

import re
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_BYTE_UNITS = {
    "b": 1,
    "kb": 1024,
    "mb": 1024**2,
    "gb": 1024**3,
}

_BYTE_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(b|kb|mb|gb)?\s*$", re.IGNORECASE)


def parse_byte_size(value: str) -> int:
    """Parse a human size such as ``10mb`` or ``512kb`` into bytes."""
    match = _BYTE_SIZE_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid byte size: {value!r}")
    number, unit = match.groups()
    return int(float(number) * _BYTE_UNITS[(unit or "b").lower()])


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Slide Renderer", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=10000, description="Server port")
    json_limit: str = Field(default="10mb", description="Maximum JSON request body size")

    # Admission control
    max_concurrency: int = Field(default=1, ge=1, description="Maximum simultaneous renders")

    # Browser Configuration
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    viewport_width: int = Field(default=1080, gt=0, description="Viewport width in CSS pixels")
    viewport_height: int = Field(default=1350, gt=0, description="Viewport height in CSS pixels")
    device_scale_factor: float = Field(
        default=2.0,
        gt=0,
        validation_alias=AliasChoices("device_scale_factor", "dsf"),
        description="Device pixel ratio used for rendering",
    )
    default_timeout_ms: int = Field(
        default=60000, gt=0, description="Default and navigation timeout for browser contexts"
    )
    render_signal_timeout_ms: int = Field(
        default=20000, gt=0, description="How long to wait for the template render signal"
    )

    # Diagnostics
    browser_log_capacity: int = Field(
        default=300, gt=0, description="Browser log lines kept per render"
    )
    html_snapshot_chars: int = Field(
        default=2000, ge=0, description="HTML snapshot length attached when #canvas is missing"
    )
    failure_screenshot: bool = Field(
        default=False, description="Attach a full-page screenshot when #canvas is missing"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("json_limit")
    @classmethod
    def validate_json_limit(cls, v: str) -> str:
        """Reject limits that cannot be parsed."""
        parse_byte_size(v)
        return v

    @property
    def json_limit_bytes(self) -> int:
        return parse_byte_size(self.json_limit)

    @property
    def viewport(self) -> dict:
        return {"width": self.viewport_width, "height": self.viewport_height}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


# Global settings instance - will be initialized when needed
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
