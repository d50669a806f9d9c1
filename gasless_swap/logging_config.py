"""
Structlog setup for the swap CLI.

Log lines go to stderr so stdout only carries the swap result. A terminal gets
colored key=value lines and anything else gets JSON.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog


NOISY_LOGGERS = ("httpcore", "httpx")


def setup_logging(
    log_level: str = "INFO",
    *,
    json_logs: Optional[bool] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Route structlog and stdlib logging through one handler.

    Args:
        log_level: Name of the stdlib logging level (e.g. ``"INFO"``)
        json_logs: Force JSON (True) or console (False) output. ``None`` picks
            console output only when ``stream`` is a TTY.
        stream: Destination, stderr by default
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    if stream is None:
        stream = sys.stderr
    if json_logs is None:
        json_logs = not stream.isatty()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdlib loggers (providers, smart account) share the same renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
