import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

from docbrief.config import LOG_DIR


# LogRecord attributes that never go into the JSON body
_RESERVED_ATTRS = {
    "name", "msg", "args", "levelname", "levelno",
    "pathname", "filename", "module", "exc_info",
    "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread",
    "threadName", "processName", "process", "message",
    "taskName",
}

_NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "openai", "posthog", "qdrant_client")

# Set by the HTTP middleware for the lifetime of one request
_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)


def bind_request_id(request_id: str) -> contextvars.Token:
    return _request_id.set(request_id)


def reset_request_id(token: contextvars.Token):
    _request_id.reset(token)


def current_request_id() -> Optional[str]:
    return _request_id.get()


class RequestContextFilter(logging.Filter):
    """Stamps the active request id on records that don't carry one."""

    def filter(self, record: logging.LogRecord) -> bool:

        if not getattr(record, "request_id", None):
            record.request_id = _request_id.get()

        return True


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Fields passed through ``extra=`` are merged into the top level;
    a field that collides with a base key is written as ``extra_<key>``.
    """

    def format(self, record: logging.LogRecord) -> str:

        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        for key, value in record.__dict__.items():

            if key.startswith("_") or key in _RESERVED_ATTRS:
                continue

            if value is None and key == "request_id":
                continue

            if key in log_data:
                log_data[f"extra_{key}"] = value
            else:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = LOG_DIR):
    """
    Route every logger through JSON handlers on stdout and, when
    ``log_dir`` is set, ``<log_dir>/app.log``.
    """
    formatter = JSONFormatter()
    context = RequestContextFilter()

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.FileHandler(os.path.join(log_dir, "app.log"), encoding="utf-8")
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers = []

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context)
        root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_request_error(logger, request_id, endpoint, error, **kwargs):

    logger.error(
        f"{endpoint}_failed",
        extra={
            "request_id": request_id,
            "endpoint": endpoint,
            "error": str(error),
            "error_type": type(error).__name__,
            **kwargs,
        },
        exc_info=True,
    )
