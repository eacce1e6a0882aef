"""Structured logging setup using structlog.

One processor chain (context vars, log level, timestamps, stack info) ends
in either a coloured ConsoleRenderer or a JSONRenderer.  JSON is used when
``json_output`` is set or ``APP_ENV`` is ``"production"``.

Standard-library records (httpx, httpcore, aiosqlite) go through the same
renderer via ``ProcessorFormatter``.  Those libraries are held at WARNING
unless nsaide itself logs at DEBUG, since every cache miss would otherwise
emit a request line.
"""

import logging
import os
import sys
from typing import TextIO

import structlog

_CHATTY_LIBRARIES = ("httpx", "httpcore", "aiosqlite")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _select_renderer(use_json: bool, out: TextIO) -> structlog.types.Processor:
    if use_json:
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    isatty = getattr(out, "isatty", None)
    return structlog.dev.ConsoleRenderer(colors=bool(isatty and isatty()))


def _bridge_stdlib(
    shared: list[structlog.types.Processor],
    renderer: structlog.types.Processor,
    out: TextIO,
    level: str,
) -> None:
    handler = logging.StreamHandler(out)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    library_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR.
        json_output: Force JSON rendering regardless of ``APP_ENV``.
        stream: Destination for every record.  Defaults to stdout; the CLI
                passes stderr so command output stays machine-readable.

    Returns:
        The root structlog logger.
    """
    level = log_level.upper()
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    out = stream or sys.stdout

    shared = _shared_processors()
    renderer = _select_renderer(use_json, out)

    structlog.configure(
        processors=[*shared, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )
    _bridge_stdlib(shared, renderer, out, level)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound with *name*.

    Library callers that never ran :func:`configure_logging` get its
    defaults on first use.
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
