"""Request-scoped logging context.

A single context variable carries the fields every log line of the
current request should include: the request and correlation IDs plus
whatever ledger identifiers (user, account, order) get bound on the way.
"""

import time
import uuid
from contextvars import ContextVar, Token
from typing import Any, Optional

_log_fields: ContextVar[dict[str, Any]] = ContextVar("folio_log_fields", default={})


def generate_request_id() -> str:
    """Generate a unique request ID using UUID4."""
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Request ID of the request being served, or ``""`` outside one."""
    return _log_fields.get().get("request_id", "")


def get_correlation_id() -> str:
    fields = _log_fields.get()
    return fields.get("correlation_id", fields.get("request_id", ""))


def get_context_dict() -> dict[str, Any]:
    """Fields to merge into a log entry, in the order they were bound."""
    return dict(_log_fields.get())


def bind_context(**fields: Any) -> None:
    """Attach identifiers such as ``account_id`` to the current request's logs.

    Does nothing outside a ``RequestContext``.
    """
    current = _log_fields.get()
    if "request_id" in current:
        _log_fields.set({**current, **fields})


class RequestContext:
    """Context manager that scopes log fields to one request.

    The correlation ID defaults to the request ID and is only logged
    when a caller supplied a different one.

    Example:
        with RequestContext(request_id="abc-123", user_id=4):
            logger.info("placing order")  # carries request_id and user_id
    """

    def __init__(self, request_id: str = "", correlation_id: str = "", **fields: Any):
        self.request_id = request_id or generate_request_id()
        self.correlation_id = correlation_id or self.request_id
        self.fields = fields
        self._token: Optional[Token] = None
        self._started = time.perf_counter()

    def __enter__(self) -> "RequestContext":
        scoped = {"request_id": self.request_id}
        if self.correlation_id != self.request_id:
            scoped["correlation_id"] = self.correlation_id
        scoped.update(self.fields)
        self._token = _log_fields.set(scoped)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_fields.reset(self._token)
            self._token = None

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000

    def bind(self, **fields: Any) -> None:
        self.fields.update(fields)
        bind_context(**fields)
