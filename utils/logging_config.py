"""Unified logging configuration with Rich, shared by both services."""
import logging
import logging.config
import time
from typing import Any, Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("requests")


def build_logging_config(level: str = "INFO") -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                # RichHandler renders time and level itself
                "format": "%(name)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "default": {
                "class": "rich.logging.RichHandler",
                "formatter": "default",
                "level": "DEBUG",
                "rich_tracebacks": True,
                "show_time": True,
                "show_path": False,
                "log_time_format": "%Y-%m-%d %H:%M:%S",
                "markup": False,
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            "": {"handlers": ["default"], "level": level, "propagate": False},
        },
    }


def configure_logging(level: str = "INFO") -> None:
    """Apply the Rich logging configuration to the root and uvicorn loggers."""
    logging.config.dictConfig(build_logging_config(level))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request with the response status and duration."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response
