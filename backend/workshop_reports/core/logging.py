import logging
import sys
import structlog

LEVELS = {
    "dev": logging.DEBUG,
    "test": logging.WARNING,
    "prod": logging.INFO,
}

def configure_logging(env: str = "dev") -> None:
    """Structured logs: console in dev/test, one JSON object per line in prod."""
    shared_processors = [
        # session_id / workshop_id bound by callers ride along on every event
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if env == "prod":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=env == "dev")

    structlog.configure(
        processors=shared_processors + [renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=LEVELS.get(env, logging.INFO),
    )

logger = structlog.get_logger("workshop_reports")
