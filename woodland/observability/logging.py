from __future__ import annotations

import logging
from logging.config import dictConfig

from asgi_correlation_id.context import correlation_id
from pythonjsonlogger import jsonlogger


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the X-Request-ID of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id.get() or "-"
        return True


def configure_logging(level: str = "INFO", *, json_output: bool = True) -> None:
    formatter: dict
    if json_output:
        formatter = {
            "()": jsonlogger.JsonFormatter,
            "fmt": (
                "%(asctime)s %(levelname)s %(name)s "
                "%(message)s %(correlation_id)s"
            ),
        }
    else:
        formatter = {
            "format": (
                "%(asctime)s [%(correlation_id)s] %(levelname)s %(name)s: "
                "%(message)s"
            )
        }
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"with_correlation": {"()": CorrelationIdFilter}},
            "formatters": {"default": formatter},
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["with_correlation"],
                }
            },
            "root": {"handlers": ["default"], "level": level},
            "loggers": {
                "uvicorn.error": {
                    "handlers": ["default"],
                    "level": level,
                    "propagate": False,
                },
                "uvicorn.access": {
                    "handlers": ["default"],
                    "level": level,
                    "propagate": False,
                },
                "woodland": {"level": level},
            },
        }
    )
