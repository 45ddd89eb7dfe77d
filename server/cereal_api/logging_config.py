# ─────────────────────────────────────────────────────────────────────────────
# Logging Configuration — structlog over the stdlib root logger
# ─────────────────────────────────────────────────────────────────────────────


import logging
import sys

import structlog

# Library loggers that duplicate our own request / query logging.
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine")


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog for structured logging.

    Every event is a snake_case name plus key/value context, e.g.
    ``logger.info("cereal_created", cereal_id=12)``. JSON output is meant for
    log shipping; the console renderer is for local development.

    Third-party stdlib loggers (uvicorn, SQLAlchemy) flow through the same
    handler so a single stream carries everything.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    # ConsoleRenderer prints tracebacks itself; JSON needs them as a string field.
    renderers: list[structlog.types.Processor] = (
        [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        if json_output
        else [structlog.dev.ConsoleRenderer()]
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )

    # shared_processors already ran in structlog.configure(); only strip the
    # meta keys and render here, otherwise timestamps and levels are doubled.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *renderers,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper()))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
