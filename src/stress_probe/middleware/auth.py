"""API Key authentication middleware."""

import hmac
import os

from flask import jsonify, request

# Exact endpoints that bypass authentication
PUBLIC_ENDPOINTS = frozenset([
    "/",  # Host identity, refreshed through the load balancer
    "/health",
    "/ready",
    "/prometheus",  # Prometheus scraping
    "/apidocs",  # Swagger UI
    "/apispec.json",  # OpenAPI spec
])

# Prefixes that bypass authentication
PUBLIC_PREFIXES = (
    "/flasgger_static/",  # Swagger static assets
)


def init_auth(app, config_override=None):
    """Initialize API key authentication middleware.

    When API_KEY is set, every non-public endpoint requires a matching
    X-API-Key header. Starting a stress campaign saturates the host, so
    anything reachable through a public load balancer should set a key.

    If API_KEY is not set, authentication is disabled (dev mode).

    Args:
        app: Flask application instance
        config_override: Optional config dict (for testing)
    """
    # If config_override explicitly sets API_KEY (even to None), use that value
    if config_override is not None and "API_KEY" in config_override:
        api_key = config_override["API_KEY"]
    else:
        api_key = os.getenv("API_KEY")
    app.config["API_KEY"] = api_key

    if api_key:
        app.logger.info("API key authentication enabled")
    else:
        app.logger.info("API key authentication disabled (API_KEY not set)")

    @app.before_request
    def authenticate():
        """Check the API key for protected endpoints."""
        api_key = app.config.get("API_KEY")

        if not api_key:
            return None

        if request.path in PUBLIC_ENDPOINTS:
            return None
        if request.path.startswith(PUBLIC_PREFIXES):
            return None

        # Timing-safe comparison
        provided_key = request.headers.get("X-API-Key")
        if provided_key and hmac.compare_digest(provided_key, api_key):
            return None

        app.logger.warning(
            "Unauthorized request to %s from %s", request.path, request.remote_addr
        )
        return (
            jsonify(
                {
                    "error": "Unauthorized",
                    "message": "Valid API key required in X-API-Key header",
                }
            ),
            401,
        )
