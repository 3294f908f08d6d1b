"""structlog setup for the auth core.

Log lines are JSON objects on stdout. Credentials never reach the output:
fields named like a credential are replaced wholesale, and anything shaped
like a JWT or a bearer header inside other string values is masked.
"""

import logging
import re
import sys
from typing import Any, Dict

import structlog

SENSITIVE_KEYS = {
    "authorization",
    "secret",
    "password",
    "token",
    "hash",
}

REDACTED = "REDACTED"

_JWT_PATTERN = re.compile(r"eyJ[\w-]*\.[\w-]+\.[\w-]+")
_BEARER_PATTERN = re.compile(r"(?i)bearer\s+\S+")


def _scrub(value: str) -> str:
    value = _BEARER_PATTERN.sub(f"Bearer {REDACTED}", value)
    return _JWT_PATTERN.sub(REDACTED, value)


def redact_sensitive(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Redact credentials from log entries.

    The event name itself is left alone.
    """
    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            event_dict[key] = REDACTED
        elif isinstance(value, str):
            event_dict[key] = _scrub(value)

    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog output through the JSON renderer at log_level.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR; unknown names fall back to INFO
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    # asyncpg and uvicorn log through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a logger, bound to logger_name when a name is given."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger_name=name)
    return logger
