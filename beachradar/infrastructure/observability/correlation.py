"""Request-scoped correlation ids.

The id is held in a contextvar so it follows a request across await points.
LoggingMiddleware binds it for the duration of a request and restores the
previous value afterwards; services read it when they start an operation.
"""

from contextvars import ContextVar, Token
from typing import Any
from uuid import uuid4

CORRELATION_KEY = "correlation_id"

_correlation_id: ContextVar[str] = ContextVar(CORRELATION_KEY, default="")


def generate_correlation_id() -> str:
    return uuid4().hex


def get_correlation_id() -> str:
    """Current correlation id, empty outside a request."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> Token[str]:
    """Bind a correlation id to the current context.

    Returns:
        Token for reset_correlation_id().
    """
    return _correlation_id.set(correlation_id)


def reset_correlation_id(token: Token[str]) -> None:
    """Restore the correlation id that was current before set_correlation_id()."""
    _correlation_id.reset(token)


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor filling in correlation_id when it is not bound."""
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault(CORRELATION_KEY, correlation_id)
    return event_dict
