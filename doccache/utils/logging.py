"""Structured logging setup using structlog.

One shared processor chain (context vars, log level, timestamps, stack
info) ends in either a coloured ConsoleRenderer for development or a
JSONRenderer for production.  The environment comes from the ``app_env``
argument, else ``DOCCACHE_APP_ENV``, else ``APP_ENV``.

Standard-library ``logging`` is routed through the same renderer so that
driver libraries (redis, pymongo, motor) log in the same format as the
cache events emitted here.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from doccache.config.settings import Settings


def _resolve_env(app_env: str | None) -> str:
    if app_env:
        return app_env
    return os.environ.get("DOCCACHE_APP_ENV") or os.environ.get("APP_ENV", "development")


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    app_env: str | None = None,
) -> structlog.BoundLogger:
    """Configure structlog for the current environment.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON lines regardless of environment.
        app_env: Deployment environment; ``"production"`` selects JSON.

    Returns:
        The root structlog logger.
    """
    use_json = json_output or _resolve_env(app_env) == "production"
    level = logging.getLevelName(log_level.upper())

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*shared_processors, renderer],
        # Filtering happens before the processor chain, so per-lookup debug
        # events cost almost nothing when the level is INFO or above.
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    return structlog.get_logger()


def configure_from_settings(app_settings: Settings) -> structlog.BoundLogger:
    """Apply ``log_level`` and ``app_env`` from a :class:`Settings` instance."""
    return configure_logging(log_level=app_settings.log_level, app_env=app_settings.app_env)


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound to *name*.

    Never configures logging itself; the host application (or
    ``DocumentDataSource.initialize(settings=...)``) decides where output goes.
    """
    return structlog.get_logger(logger_name=name)
