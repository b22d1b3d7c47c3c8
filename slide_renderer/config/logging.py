"""
Logging Configuration
=====================

All output goes to stdout through one console handler, which is what the
container platform collects.

Application events are logged with structlog. In production each event is
handed to the standard library as a message plus ``extra`` fields and
rendered by python-json-logger, so renderer events and uvicorn/Playwright
records come out as the same one-line JSON objects. Elsewhere structlog
renders its own coloured console lines.
"""

import logging
import logging.config
import sys
from typing import Any, Dict, List, Optional

import structlog
from structlog.types import Processor

from .settings import Settings, get_settings

JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Third-party loggers and the level they are held at.
LIBRARY_LOG_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.error": "INFO",
    "playwright": "WARNING",
    "asyncio": "WARNING",
}


def is_json_output(settings: Settings) -> bool:
    return settings.environment == "production"


def build_processors(settings: Settings) -> List[Processor]:
    """structlog processor chain for the current environment."""
    processors: List[Processor] = [structlog.stdlib.filter_by_level]

    if is_json_output(settings):
        # Logger name, level and time come from the JSON formatter.
        processors += [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.render_to_log_kwargs,
        ]
    else:
        processors += [
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]
    return processors


def get_logging_config(settings: Settings) -> Dict[str, Any]:
    """
    Standard library logging configuration.

    Also passed to uvicorn as its ``log_config`` so the server's own loggers
    share the console handler.
    """
    if is_json_output(settings):
        formatter: Dict[str, Any] = {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": JSON_FORMAT,
        }
    else:
        formatter = {"format": "%(message)s"}

    access_level = "WARNING" if is_json_output(settings) else "INFO"
    loggers: Dict[str, Any] = {
        name: {"level": level, "handlers": ["console"], "propagate": False}
        for name, level in {**LIBRARY_LOG_LEVELS, "uvicorn.access": access_level}.items()
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"console": formatter},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.log_level,
                "formatter": "console",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"level": settings.log_level, "handlers": ["console"]},
        "loggers": loggers,
    }


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure structlog and the standard library for the renderer."""
    settings = settings or get_settings()

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(get_logging_config(settings))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


# Initialize logging on import
configure_logging()
