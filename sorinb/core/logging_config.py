"""Console logging setup shared by the API server and the CLI scripts."""

import logging
import logging.config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Third-party libraries (reduce noise)
QUIET_LOGGERS = {
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "asyncio": "WARNING",
}


def configure_logging(log_level: str = "INFO") -> None:
    """Configure the root logger and the sorinb package logger."""
    level = log_level.upper()
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT, "datefmt": LOG_DATE_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "sorinb": {"level": level, "handlers": ["console"], "propagate": False},
            **{name: {"level": lvl} for name, lvl in QUIET_LOGGERS.items()},
        },
        "root": {"level": level, "handlers": ["console"]},
    }
    logging.config.dictConfig(config)
    logging.getLogger(__name__).debug("Logging configured at %s", level)
