"""Logging and error tracking configuration."""
import logging
import logging.config
import sys

import sentry_sdk
import structlog
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from judgestore.core.config import Settings, get_settings


def setup_logging(settings: Settings = None):
    """Configure stdlib logging and structlog for the store process."""
    settings = settings or get_settings()

    log_level = settings.log_level.upper()

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            },
            "json": {
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
                "class": "pythonjsonlogger.jsonlogger.JsonFormatter" if settings.is_production else "logging.Formatter"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "json" if settings.is_production else "standard",
                "stream": sys.stdout
            }
        },
        "loggers": {
            "": {  # root logger
                "level": log_level,
                "handlers": ["console"],
                "propagate": False
            },
            "sqlalchemy.engine": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False
            }
        }
    }

    logging.config.dictConfig(logging_config)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured for {settings.environment} environment")


def init_error_tracking(settings: Settings = None) -> bool:
    """Initialise Sentry when a DSN is configured. Returns whether it was enabled."""
    settings = settings or get_settings()
    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1,
        integrations=[SqlalchemyIntegration()],
        attach_stacktrace=True,
        send_default_pii=False,  # submissions carry user source code
        max_breadcrumbs=50,
    )
    return True
