"""
structlog setup for the engine.

Engine events (numbers issued, triage results, billing flags) are routed
through the standard library root logger so that host applications keep
control of handlers. LOG_FORMAT picks the renderer: "json" emits one
object per line, anything else a coloured console line. Fields bound
with bind_context() (patient_id, encounter_id) ride along on every event.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from hms_engine.config.config import get_settings


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def configure_logging() -> None:
    """Install the structlog pipeline and a stdout handler on the root logger."""
    settings = get_settings()
    pre_chain = _pre_chain()

    # Exceptions are rendered inline by the JSON renderer only; the console
    # renderer prints its own traceback.
    tail: list[Processor] = [structlog.stdlib.ProcessorFormatter.wrap_for_formatter]
    if settings.log_format == "json":
        tail.insert(0, structlog.processors.format_exc_info)

    structlog.configure(
        processors=pre_chain + tail,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(settings.log_format),
            foreign_pre_chain=pre_chain,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(settings.log_level.upper())

    # python-arango logs every HTTP request through urllib3
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)


def bind_context(**fields: Any) -> None:
    """
    Bind caller context to all subsequent log entries in this context.

    Replaces any previously bound context, e.g. when the front desk
    switches from one patient to the next.
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**fields)
