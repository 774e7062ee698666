"""Error Handling Middleware.

Last line of defence for exceptions that get past FastAPI's own
handlers, so clients always receive the JSON error envelope.
"""

import json
import logging
from typing import Any, Dict, Optional

from src.api_errors.config import DEFAULT_ERROR_CONFIG, ErrorConfig
from src.api_errors.exceptions import FolioAPIError
from src.api_errors.handlers import ErrorResponse, build_error_response

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware:
    """ASGI middleware converting escaped exceptions to error responses.

    If the response has already started nothing can be rewritten, and
    the exception propagates to the server.
    """

    def __init__(self, app: Any, config: Optional[ErrorConfig] = None):
        self.app = app
        self.config = config or DEFAULT_ERROR_CONFIG

    async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = False

        async def track_start(message: Dict[str, Any]) -> None:
            nonlocal started
            started = started or message["type"] == "http.response.start"
            await send(message)

        try:
            await self.app(scope, receive, track_start)
        except Exception as exc:
            if started:
                logger.error(f"Exception after response started on {scope.get('path')}")
                raise
            headers = exc.headers if isinstance(exc, FolioAPIError) else None
            await self._send_error(send, build_error_response(exc, self.config), headers)

    @staticmethod
    async def _send_error(
        send: Any,
        error_response: ErrorResponse,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        body = json.dumps(error_response.to_dict()).encode("utf-8")
        raw_headers = [
            (b"content-type", b"application/json"),
            (b"content-length", str(len(body)).encode()),
        ]
        raw_headers.extend((k.lower().encode(), v.encode()) for k, v in (headers or {}).items())

        await send({
            "type": "http.response.start",
            "status": error_response.status_code,
            "headers": raw_headers,
        })
        await send({"type": "http.response.body", "body": body})
