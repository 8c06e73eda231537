"""Structured logging via structlog, shared by client and server.

Configures structlog once at process startup. Module code keeps using
`logging.getLogger(__name__)`; the stdlib bridge routes those records to
the same stream.

Renderer selection:
  debug=True   `ConsoleRenderer` with colours for interactive use.
  debug=False  `JSONRenderer` for machine-parseable logs.

Callers may append extra processors (the server injects its request ID
this way) ahead of the renderer.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence

import structlog


def configure_structlog(debug: bool = True, extra_processors: Sequence = ()) -> None:
    """Configure structlog for the process lifetime.

    Calling multiple times is safe: structlog is idempotent.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        *extra_processors,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )
