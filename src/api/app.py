"""FastAPI Application Factory.

Creates and configures the Folio API application with full
middleware stack: security headers, request tracing, error
handling, and CORS.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.api.config import DEFAULT_API_CONFIG, APIConfig
from src.api.models import HealthResponse
from src.api.routes import accounts, orders, portfolio, transactions, user
from src.api_errors import ErrorConfig, ErrorHandlingMiddleware, register_exception_handlers
from src.db.engine import get_sync_engine, init_db
from src.logging_config import RequestTracingMiddleware, configure_logging
from src.settings import Settings, get_settings

logger = logging.getLogger(__name__)


# ── Security Headers Middleware ───────────────────────────────────────


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to all HTTP responses."""

    def __init__(self, app: Any, enable_hsts: bool = False):
        super().__init__(app)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response


# ── Lifespan (startup / shutdown) ────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize logging and the schema at startup."""
    # ── Startup ──
    configure_logging()
    init_db()
    logger.info("Folio API starting up")
    yield
    # ── Shutdown ──
    logger.info("Folio API shutting down")


# ── App Factory ──────────────────────────────────────────────────────


def create_app(
    config: Optional[APIConfig] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Middleware stack (outermost → innermost):
        SecurityHeaders → RequestTracing → ErrorHandling → CORS → App

    Args:
        config: API configuration. Uses defaults if not provided.
        settings: Runtime settings. Read from the environment if not provided.

    Returns:
        Configured FastAPI application.
    """
    config = config or DEFAULT_API_CONFIG
    settings = settings or get_settings()
    prefix = settings.api_prefix or config.prefix

    app = FastAPI(
        title=config.title,
        version=config.version,
        description=config.description,
        docs_url=config.docs_url,
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    error_config = ErrorConfig(suppress_internal_details=not settings.expose_internal_errors)
    register_exception_handlers(app, error_config)

    # ── Middleware stack ──────────────────────────────────────────
    # add_middleware prepends, so order here is innermost-first.

    # 1. CORS (innermost, handles preflight before routing)
    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or config.cors_origins,
        allow_credentials=True,
        allow_methods=config.cors_methods,
        allow_headers=config.cors_headers,
    )

    # 2. Error handling (catches unhandled exceptions → structured JSON responses)
    app.add_middleware(ErrorHandlingMiddleware, config=error_config)

    # 3. Request tracing (assigns X-Request-ID, logs lifecycle)
    app.add_middleware(RequestTracingMiddleware)

    # 4. Security headers (outermost, always adds headers)
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=config.enable_hsts)

    # ── Health check ─────────────────────────────────────────────

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        components = {}

        try:
            with get_sync_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
            components["database"] = "ok"
        except Exception as e:
            logger.warning(f"Health check database query failed: {e}")
            components["database"] = f"error: {type(e).__name__}"

        overall = "ok" if all(v == "ok" for v in components.values()) else "degraded"
        return HealthResponse(status=overall, version=config.version, components=components)

    # ── Route modules ────────────────────────────────────────────

    app.include_router(accounts.router, prefix=prefix)
    app.include_router(orders.router, prefix=prefix)
    app.include_router(portfolio.router, prefix=prefix)
    app.include_router(transactions.router, prefix=prefix)
    app.include_router(user.router, prefix=prefix)

    logger.info(f"Folio API v{config.version} initialized")
    return app
