import logging.config
import sys

# Payout defects, failed ledger writes and replay or integrity mismatches.
# Follow-up: scripts/reconcile_payouts.py.
RECONCILIATION_LOGGER = "casinoapi.reconciliation"


def setup_logging(log_level: str = "INFO"):
    log_level = log_level.upper()

    LOGGING_CONFIG = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)s\n%(pathname)s:%(lineno)d\n%(message)s",
            },
            "simple": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s",
            },
            "reconciliation": {
                "format": "%(asctime)s | RECONCILE | %(levelname)-8s | %(message)s",
            },
        },
        "handlers": {
            "console": {
                "formatter": "simple",
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
            },
            "error_console": {
                "formatter": "detailed",
                "class": "logging.StreamHandler",
                "stream": sys.stderr,
                "level": "WARNING",
            },
            "reconciliation_console": {
                "formatter": "reconciliation",
                "class": "logging.StreamHandler",
                "stream": sys.stderr,
            },
        },
        "loggers": {
            "": {  # root logger
                "handlers": ["console"],
                "level": log_level,
                "propagate": True,
            },
            "casinoapi": {
                "handlers": ["console", "error_console"],
                "level": log_level,
                "propagate": False,
            },
            RECONCILIATION_LOGGER: {
                "handlers": ["reconciliation_console"],
                "level": "INFO",
                "propagate": False,
            },
            # Statement logging stays off even at DEBUG.
            "sqlalchemy.engine": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }
    logging.config.dictConfig(LOGGING_CONFIG)
