"""Logging setup and structured logging helpers.

Context fields are passed to the stdlib logger as ``extra={"context": {...}}``
and merged into the JSON payload by JsonFormatter.
"""

import json
import logging
from logging.config import dictConfig
from typing import Any


def setup_logging(level: str = "INFO", json_output: bool = True) -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonFormatter,
                },
                "plain": {
                    "format": "%(levelname)s %(name)s: %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_output else "plain",
                    "stream": "ext://sys.stderr",
                },
            },
            "root": {
                "level": level,
                "handlers": ["console"],
            },
            "loggers": {
                "botocore": {"level": "WARNING"},
                "urllib3": {"level": "WARNING"},
                "httpx": {"level": "WARNING"},
            },
        }
    )


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            payload.update(context)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)



def log_with_context(
    logger: logging.Logger,
    level: int,
    msg: str,
    **kwargs: Any,
) -> None:
    """
    Log with structured context fields.

    Example:
        log_with_context(
            logger, logging.INFO, "download complete",
            object="s3://bucket/key", bytes_written=1024,
        )
    """
    logger.log(level, msg, extra={"context": kwargs})


def log_exception(
    logger: logging.Logger,
    exc: BaseException,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log an exception with context and optional traceback.

    ``error_type`` and, for service errors, ``error_code`` are added to the
    context automatically.
    """
    context = {"error_type": type(exc).__name__, **kwargs}
    code = getattr(exc, "code", None)
    if code:
        context["error_code"] = code
    exc_info = (type(exc), exc, exc.__traceback__) if include_traceback else None
    logger.log(level, msg, exc_info=exc_info, extra={"context": context})
