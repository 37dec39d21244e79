import logging
import os
import sys
import structlog


def _configure_structlog(level_name: str = None, fmt: str = None):
    """Configure structlog on top of stdlib logging.

    LOG_LEVEL picks the level, LOG_FORMAT=json switches the console
    renderer for a JSON one (what log shippers in the cluster expect).
    """
    level_name = (level_name or os.environ.get('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = (fmt or os.environ.get('LOG_FORMAT', 'console')).lower()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    renderer = structlog.processors.JSONRenderer() if fmt == 'json' else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None):
    """Return a configured structured logger."""
    if not getattr(get_logger, "_configured", False):
        _configure_structlog()
        get_logger._configured = True
    return structlog.get_logger(name)
