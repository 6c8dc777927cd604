"""structlog configuration for applications embedding dapi.

dapi modules log through the stdlib ``logging`` module and never configure
logging on import. Hosts that want dapi's output rendered call
:func:`configure_logging`, which installs one named handler on the root
logger and routes every record through structlog's ProcessorFormatter:

- console (default): ``ConsoleRenderer``, colored when the stream is a tty
- JSON (``log_json=True``): one JSON object per line

Handlers installed by the host itself are left alone.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

HANDLER_NAME = "dapi"

# Loggers that stay at WARNING even when dapi runs verbose.
QUIET_LOGGERS = ("pluggy",)


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(*, log_json: bool, stream: TextIO) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    isatty = getattr(stream, "isatty", None)
    return structlog.dev.ConsoleRenderer(colors=bool(isatty and isatty()))


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Configure structlog and route the ``dapi`` logger tree to *stream*.

    Calling it again replaces the handler from the previous call.

    Args:
        verbose: Log the ``dapi`` tree at DEBUG. When False, only WARNING+.
        log_json: Use the JSON renderer instead of the console renderer.
        stream: Output stream; defaults to ``sys.stderr``.

    Returns:
        The installed handler.
    """
    stream = stream if stream is not None else sys.stderr
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(log_json=log_json, stream=stream),
        ],
    )

    handler = logging.StreamHandler(stream)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if h.get_name() == HANDLER_NAME]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("dapi").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
