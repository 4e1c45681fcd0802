"""Observability for whatnow, built on Pydantic Logfire.

Modules log through the standard library (`logging.getLogger(__name__)`) and
put structured fields in `extra=`. `configure_logfire` routes those records
to Logfire alongside the spans opened with `span()` in the service layer.
"""

import logging

import logfire
from fastapi import FastAPI

from whatnow.core.config import settings


logger = logging.getLogger(__name__)

SERVICE_NAME = "whatnow"
SERVICE_VERSION = "0.1.0"


def configure_logfire(level: int = logging.INFO) -> None:
    """Configure Logfire and attach it to the root logger.

    Nothing leaves the process unless `LOGFIRE_TOKEN` is set.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name=SERVICE_NAME,
        service_version=SERVICE_VERSION,
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )

    root = logging.getLogger()
    if not any(isinstance(h, logfire.LogfireLoggingHandler) for h in root.handlers):
        root.addHandler(logfire.LogfireLoggingHandler())
    root.setLevel(level)

    logger.info("Logfire configured", extra={"environment": settings.environment})


def instrument_fastapi(app: FastAPI) -> None:
    """Trace every request handled by `app`."""
    logfire.instrument_fastapi(app)
    logger.debug("FastAPI instrumentation enabled")


def span(name: str) -> logfire.LogfireSpan:
    """Open a span named `<module>.<function>` around a service call."""
    return logfire.span(name)


def log_with_user_context(
    logger: logging.Logger,
    level: str,
    message: str,
    user_id: str | None = None,
    **context: object,
) -> None:
    """Log `message` at `level` with `context` as structured fields.

    `user_id` is attached only when known, so anonymous events stay clean.
    """
    if user_id:
        context = {"user_id": user_id, **context}
    getattr(logger, level.lower())(message, extra=context)
