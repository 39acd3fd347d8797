"""structlog setup for the scheduling passes.

Run warnings and pass progress go to stderr; the CLI's own progress stays on stdout.
"""

import logging
import sys

import structlog


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Route structlog output to stderr at the given level.

    Args:
        json_output: Render one JSON object per line instead of console text.
        log_level: Level name; unknown names fall back to INFO.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def get_logger(name: str):
    return structlog.get_logger(name)
