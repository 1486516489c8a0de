import sys
from logging.config import dictConfig
from fishstock.core.config import APP_ENV

LOG_LEVEL = "DEBUG" if APP_ENV == "development" else "INFO"

ACCESS_FORMAT = (
    "%(asctime)s | ACCESS | %(request_id)s | %(client_addr)s | "
    "%(user_id)s | %(method)s %(path)s | %(status_code)s | "
    "%(process_time_ms)sms"
)


def build_logging_config(level: str = LOG_LEVEL) -> dict:
    """Three streams: application logs, the access log and ledger alerts.

    Alerts go to stderr and also propagate to root so they end up in the
    normal application log.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s"},
            "access": {"format": ACCESS_FORMAT},
            "alert": {"format": "%(asctime)s | ALERT | %(levelname)s | %(name)s | %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "default",
            },
            "access_console": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "access",
            },
            "alert_console": {
                "class": "logging.StreamHandler",
                "stream": sys.stderr,
                "formatter": "alert",
                "level": "WARNING",
            },
        },
        "loggers": {
            # request_logging_middleware
            "access": {
                "handlers": ["access_console"],
                "level": "INFO",
                "propagate": False,
            },
            # broken ledger invariants
            "fishstock.alerts": {
                "handlers": ["alert_console"],
                "level": "WARNING",
                "propagate": True,
            },
            "apscheduler": {"level": "WARNING"},
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
    }


def setup_logging(level: str = LOG_LEVEL):
    dictConfig(build_logging_config(level))
