"""API Configuration.

Static settings for the REST API. Deployment-specific values
(prefix, CORS origins) come from ``src.settings``.
"""

from dataclasses import dataclass, field


@dataclass
class APIConfig:
    """Core API settings."""

    title: str = "Folio API"
    version: str = "1.0.0"
    description: str = "Portfolio ledger, order book and holdings valuation"
    prefix: str = "/api"
    docs_url: str = "/docs"
    cors_origins: list[str] = field(default_factory=lambda: [
        "http://localhost:3000",   # Web client
        "http://localhost:8000",   # API self-reference
    ])
    cors_methods: list[str] = field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    cors_headers: list[str] = field(default_factory=lambda: ["*"])
    enable_hsts: bool = False


DEFAULT_API_CONFIG = APIConfig()
