"""Request tracing middleware.

Every HTTP request runs inside a ``RequestContext`` so that log lines
emitted while serving it carry the request ID, and, when the query
string names them, the user and account the request acts on.
"""

import logging
from typing import Optional
from urllib.parse import parse_qs

from src.logging_config.config import DEFAULT_LOGGING_CONFIG, LoggingConfig
from src.logging_config.context import RequestContext, generate_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"


def _header(scope, name: str) -> Optional[str]:
    wanted = name.lower().encode()
    for key, value in scope.get("headers", []):
        if key.lower() == wanted and value:
            return value.decode("utf-8", errors="replace")
    return None


class RequestTracingMiddleware:
    """ASGI middleware binding tracing IDs and ledger identifiers to logs.

    Incoming ``X-Request-ID`` / ``X-Correlation-ID`` headers are reused,
    otherwise a request ID is generated. Both are echoed on the response.

    Usage:
        app.add_middleware(RequestTracingMiddleware)
    """

    def __init__(self, app, config: Optional[LoggingConfig] = None):
        self.app = app
        self.config = config or DEFAULT_LOGGING_CONFIG

    def _query_fields(self, scope) -> dict[str, str]:
        raw = scope.get("query_string", b"").decode("latin-1")
        params = parse_qs(raw)
        return {
            field: params[param][0]
            for param, field in self.config.context_params.items()
            if params.get(param)
        }

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _header(scope, REQUEST_ID_HEADER) or generate_request_id()
        correlation_id = _header(scope, CORRELATION_ID_HEADER) or request_id
        tracing_headers = [
            (REQUEST_ID_HEADER.lower().encode(), request_id.encode()),
            (CORRELATION_ID_HEADER.lower().encode(), correlation_id.encode()),
        ]

        method = scope.get("method", "")
        path = scope.get("path", "")
        traced = path not in self.config.exclude_paths
        status_code = 500

        async def send_with_ids(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
                message = {**message, "headers": [*message.get("headers", []), *tracing_headers]}
            await send(message)

        with RequestContext(request_id, correlation_id, **self._query_fields(scope)) as ctx:
            if traced:
                logger.info("%s %s started", method, path, extra={"method": method, "path": path})
            try:
                await self.app(scope, receive, send_with_ids)
            finally:
                if traced:
                    logger.log(
                        logging.WARNING if status_code >= 400 else logging.INFO,
                        "%s %s -> %d",
                        method,
                        path,
                        status_code,
                        extra={
                            "method": method,
                            "path": path,
                            "status_code": status_code,
                            "duration_ms": round(ctx.elapsed_ms, 2),
                        },
                    )
