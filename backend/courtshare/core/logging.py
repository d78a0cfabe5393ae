"""
structlog setup for the reservation service.

Every event is a snake_case name plus key/value context, e.g.
`reservation_created reservation_id=12 court_id=3`. Three layers of context end
up on each line:

  - process: service name, environment and facility timezone (bound once here)
  - request: request_id, method and path (bound by RequestLoggingMiddleware)
  - call site: ids of the reservation, court, invite or user involved

Production renders JSON for log shipping; anything else renders for a terminal.
Stdlib loggers (uvicorn, SQLAlchemy, alembic) go through the same formatter.
"""

import logging
import sys

import structlog
from courtshare.core.config import Settings, get_settings


def _service_context(settings: Settings):
    static = {
        "service": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "facility_tz": settings.FACILITY_TIMEZONE,
    }

    def add_service_context(logger, method_name, event_dict):
        for key, value in static.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_service_context


def setup_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    production = settings.ENVIRONMENT == "production"

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if production:
        # Static process context goes on JSON lines only
        shared_processors.insert(1, _service_context(settings))
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Request lines come from the middleware; per-statement SQL is only for DEBUG=true
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.DEBUG else logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
