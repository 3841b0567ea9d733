import logging
import os
from logging.config import dictConfig

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    """Configure process-wide logging from TRAILMARK_* environment flags.

    ``TRAILMARK_TELEMETRY_LOG=0`` silences telemetry lines.
    ``TRAILMARK_SQL_ECHO=1`` logs SQL statements.
    """
    level = os.getenv("TRAILMARK_LOG_LEVEL", "INFO").upper()
    telemetry_level = "INFO" if os.getenv("TRAILMARK_TELEMETRY_LOG", "1") == "1" else "WARNING"
    sql_level = "INFO" if os.getenv("TRAILMARK_SQL_ECHO", "0") == "1" else "WARNING"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": DEFAULT_LOG_FORMAT},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
            "loggers": {
                "trailmark.telemetry": {"level": telemetry_level},
                "sqlalchemy.engine": {"level": sql_level},
                "alembic": {"level": "INFO"},
            },
        }
    )

    if os.getenv("TRAILMARK_DEBUG_HTTP", "0") == "1":
        logging.getLogger("uvicorn.access").setLevel(logging.DEBUG)
        logging.getLogger("httpx").setLevel(logging.DEBUG)
