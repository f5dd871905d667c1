import logging
import sys
import structlog
from structlog.types import Processor


def configure_logging(log_level: str = "INFO", is_debug: bool = False):
    """Route structlog and stdlib logging to stdout.

    Events are coloured console lines when ``is_debug`` is set, one JSON
    object per line otherwise.
    """
    # werkzeug and GitPython log through the stdlib
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level.upper(),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.dict_tracebacks,
        structlog.processors.UnicodeDecoder(),
    ]
    if is_debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.get_logger(__name__).info(
        "logging.configured",
        renderer="console" if is_debug else "json",
        level=log_level.upper(),
    )
