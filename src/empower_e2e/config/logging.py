"""Log routing for the e2e harness.

Harness events are structlog calls; records from httpx and SQLAlchemy arrive
through stdlib logging. Both pass through one ``ProcessorFormatter`` on a
single stderr handler, so stdout stays free for command results. ``--log-json``
switches that handler to one JSON object per line for CI log collectors.

While a suite is open every event carries its ``chain_id``
(see ``suite_log_context``).
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import AbstractContextManager
from typing import Any

import structlog

HARNESS_LOGGER = "empower_e2e"
# Chatty at INFO; kept at WARNING even with --verbose.
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy")

_SHARED: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    colors = sys.stderr.isatty() and "NO_COLOR" not in os.environ
    return structlog.dev.ConsoleRenderer(colors=colors)


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler and set harness verbosity.

    Harness loggers log at DEBUG with *verbose*, otherwise WARNING.
    Calling this again replaces the handler instead of stacking another.
    """
    structlog.configure(
        processors=[*_SHARED, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger(HARNESS_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def suite_log_context(chain_id: str, **extra: Any) -> AbstractContextManager[None]:
    """Bind ``chain_id`` (and *extra*) to every event logged inside the block."""
    return structlog.contextvars.bound_contextvars(chain_id=chain_id, **extra)
