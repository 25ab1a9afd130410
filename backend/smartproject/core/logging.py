import logging
import sys
import structlog

def configure_logging(env: str = "dev", level: str | None = None) -> None:
    shared_processors = [
        # request_id / method / path bound per request by the app middleware
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if env == "prod":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level_name = (level or ("INFO" if env == "prod" else "DEBUG")).upper()
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )
    # SQL echo stays off
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def bind_request_context(**values) -> None:
    """Start a fresh log context for one request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


logger = structlog.get_logger()
