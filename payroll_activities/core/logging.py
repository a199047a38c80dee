import logging
import sys

import structlog


def _stderr_logger(*args) -> structlog.PrintLogger:
    # looked up per logger so a replaced sys.stderr is always honoured
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]
    renderer = structlog.dev.ConsoleRenderer() if fmt == "console" else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors
        + [
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        logger_factory=_stderr_logger,
    )

    logging.basicConfig(level=level.upper())


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
