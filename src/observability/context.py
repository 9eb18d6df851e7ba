"""Correlation ID context management for request and job tracing.

Every proxy request and every scheduled run gets its own correlation ID,
stored in a ContextVar so it follows the work across ``await`` points and
into background cache writes spawned from the request.

Usage:
    from src.observability.context import correlation_id_context

    with correlation_id_context(f"warmup-{stamp}"):
        await engine.run()
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

_correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)


def new_correlation_id(prefix: Optional[str] = None) -> str:
    """Short random ID, optionally prefixed (e.g. "req-1a2b3c4d5e6f")"""
    token = uuid.uuid4().hex[:12]
    return f"{prefix}-{token}" if prefix else token


def set_correlation_id(corr_id: Optional[str] = None) -> str:
    """Set the correlation ID for the current context.

    Args:
        corr_id: Optional correlation ID. If None, generates one.

    Returns:
        The correlation ID that was set.
    """
    if corr_id is None:
        corr_id = new_correlation_id()
    _correlation_id_var.set(corr_id)
    return corr_id


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


@contextmanager
def correlation_id_context(
    corr_id: Optional[str] = None,
) -> Generator[str, None, None]:
    """Scope a correlation ID, restoring the previous one on exit."""
    if corr_id is None:
        corr_id = new_correlation_id()

    token = _correlation_id_var.set(corr_id)
    try:
        yield corr_id
    finally:
        _correlation_id_var.reset(token)
