"""
Structured logging for the Financial Aggregator API.

Every line is a JSON object carrying ``timestamp``, ``level``, ``logger``
and ``event`` (the first positional argument to the log call), plus any
request-scoped values bound through ``structlog.contextvars``:

- request_id: set by the request middleware for every traced request
- account_id: set by account routes once the path ID is known
"""
import logging
import sys
import time
import uuid
from typing import Any, Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars


def configure_logging(level: str = "INFO") -> None:
    """Route structlog through stdlib logging and render JSON to stdout."""
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level.upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def generate_request_id() -> str:
    return str(uuid.uuid4())


def set_request_context(request_id: str) -> None:
    """Start a fresh logging context for one request."""
    clear_contextvars()
    bind_contextvars(request_id=request_id)


def set_account_context(account_id: str) -> None:
    bind_contextvars(account_id=account_id)


def clear_request_context() -> None:
    clear_contextvars()


class TimedOperation:
    """
    Log ``<event>_started`` on entry and ``<event>_completed`` or
    ``<event>_failed`` on exit, each with ``duration_ms``.
    """

    def __init__(
        self,
        event: str,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        **fields: Any,
    ):
        self.event = event
        self.logger = logger or get_logger()
        self.fields = fields
        self.duration_ms: float = 0
        self._started: float = 0

    def __enter__(self) -> "TimedOperation":
        self._started = time.perf_counter()
        self.logger.info(f"{self.event}_started", **self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration_ms = round((time.perf_counter() - self._started) * 1000, 2)
        if exc_type is None:
            self.logger.info(f"{self.event}_completed", duration_ms=self.duration_ms, **self.fields)
        else:
            self.logger.warning(
                f"{self.event}_failed",
                duration_ms=self.duration_ms,
                error=str(exc_val),
                **self.fields,
            )
