"""structlog configuration for cdl.

The library only emits stdlib ``logging`` records under the ``cdl``
logger, passing structured fields through ``extra=`` (for example
``error_kind`` and ``breadcrumb`` on validation failures). It never
configures handlers. The CLI calls :func:`configure_logging` once, which
installs a single structlog-formatted handler on the ``cdl`` logger and
leaves the root logger and other libraries alone.

Two output modes:
- Human (default): console-rendered output to stderr
- JSON (--log-json): one JSON object per line to stderr
"""

from __future__ import annotations

import logging
import sys

import structlog

CDL_LOGGER = "cdl"
HANDLER_NAME = "cdl-structlog"


def _level(*, verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return logging.WARNING


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_json: bool = False,
) -> None:
    """Route ``cdl`` log records through structlog.

    Safe to call repeatedly; the previously installed handler is replaced.

    Args:
        verbose: DEBUG-level output. Takes precedence over *quiet*.
        quiet: Only ERROR and above.
        log_json: Use JSON renderer instead of console renderer.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
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
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)

    cdl_logger = logging.getLogger(CDL_LOGGER)
    for old in [h for h in cdl_logger.handlers if h.get_name() == HANDLER_NAME]:
        cdl_logger.removeHandler(old)
    cdl_logger.addHandler(handler)
    cdl_logger.setLevel(_level(verbose=verbose, quiet=quiet))
    cdl_logger.propagate = False
