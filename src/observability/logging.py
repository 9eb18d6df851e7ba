"""structlog setup for the proxy and the smart cacher.

Every entry is stamped with the service version and the correlation ID of
the request or warm-up run that produced it, so one traversal can be
followed across the catalog fetch, each batch round and the checkpoint
write:

    {"event": "warmup_batch_completed", "manga": "one-piece", "chapter": 3,
     "start": 10, "first_missing": 12, "service": "manga-proxy",
     "version": "3.1.0", "correlation_id": "warmup-5f0c9a1e2b3d", ...}
"""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, WrappedLogger

from src.models.config import APP_VERSION
from src.observability.context import get_correlation_id

SERVICE_NAME = "manga-proxy"

# stdlib loggers that are chatty at INFO during a warm-up run
_NOISY_LOGGERS = ("apscheduler.executors.default", "apscheduler.scheduler")


def add_correlation_id(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    corr_id = get_correlation_id()
    event_dict["correlation_id"] = corr_id if corr_id else "none"
    return event_dict


def add_service_info(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", APP_VERSION)
    return event_dict


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog and the stdlib root logger for the process.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Unknown names fall
            back to INFO.
        json_output: JSON lines for log shipping; coloured console output
            otherwise.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_correlation_id,
        add_service_info,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # uvicorn and apscheduler log through stdlib logging
    logging.basicConfig(level=log_level, stream=sys.stderr, format="%(message)s")
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
