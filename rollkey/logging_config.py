"""
Logging configuration for the API server.

Clients poll the seed endpoint before every chain start and load
balancers poll /health, so both are dropped from the access log. The
verifier's audit events stay at INFO whatever the service level is.
"""

import logging
import logging.config
import re
from typing import Any, Dict, Iterable

QUIET_PATHS = ("/health", "/api/v1/auth/seed")
AUDIT_LOGGER = "rollkey.modules.auth.verifier"

# uvicorn access lines look like: 127.0.0.1:5000 - "GET /health HTTP/1.1" 200
_REQUEST_LINE = re.compile(r'"(?P<method>[A-Z]+) (?P<path>[^ ?"]+)')


class QuietPathFilter(logging.Filter):
    """Drops uvicorn access lines for GET requests to the given paths."""

    def __init__(self, paths: Iterable[str] = QUIET_PATHS):
        super().__init__()
        self.paths = frozenset(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True
        match = _REQUEST_LINE.search(record.getMessage())
        if match and match.group("method") == "GET" and match.group("path") in self.paths:
            return False
        return True


def get_logging_config(level: str = "INFO", quiet_paths: Iterable[str] = QUIET_PATHS) -> Dict[str, Any]:
    """
    Build the dictConfig used by main() and passed to uvicorn.

    Args:
        level: Level for uvicorn and rollkey loggers
        quiet_paths: Paths whose GET access lines are suppressed
    """
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "quiet_paths": {
                "()": QuietPathFilter,
                "paths": tuple(quiet_paths),
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "access": {
                "format": "%(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout"
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["quiet_paths"]
            }
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": level, "propagate": False},
            "rollkey": {"handlers": ["default"], "level": level, "propagate": False},
            AUDIT_LOGGER: {
                "handlers": ["default"],
                "level": "DEBUG" if level == "DEBUG" else "INFO",
                "propagate": False,
            },
        },
        "root": {
            "level": level,
            "handlers": ["default"]
        }
    }
