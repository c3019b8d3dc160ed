"""
Structured logging configuration for campusgate.

Feature decisions and mutations are logged with structlog as key-value
events, so an admin audit trail can be grepped or shipped as JSON lines::

    import structlog
    logger = structlog.get_logger()

    logger.info("feature_mutated", feature_id="attendance", role="student", enabled=False)

Call ``configure_logging()`` once at process startup (the CLI does this in
its root group).  Library users that never call it still get structlog's
default console output.
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure structlog + stdlib logging for the process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Emit JSON lines instead of coloured console output.

    Safe to call more than once; the stderr handler is only installed once.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    root = logging.getLogger()
    existing = [
        h
        for h in root.handlers
        if isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), structlog.stdlib.ProcessorFormatter)
    ]
    if existing:
        # Re-point the installed handler at the new renderer and current stderr
        for h in existing:
            h.setFormatter(formatter)
            h.setStream(sys.stderr)
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.setLevel(log_level)


def bind_session_user(user_id: str, role: str) -> None:
    """Attach the signed-in user to every log line emitted in this context."""
    structlog.contextvars.bind_contextvars(user_id=user_id, role=role)


def clear_session_user() -> None:
    structlog.contextvars.unbind_contextvars("user_id", "role")
