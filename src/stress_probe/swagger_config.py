"""Swagger/OpenAPI configuration for StressProbe API."""

import os

from flasgger import Swagger

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs",
}

SWAGGER_TEMPLATE = {
    "info": {
        "title": "StressProbe API",
        "description": "Saturates every CPU core of a single host on demand and reports "
        "per-core utilization, to check that load balancer health checks and "
        "auto-scaling policies react to load.",
        "version": os.getenv("APP_VERSION", "dev"),
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "ApiKeyAuth": {
            "type": "apiKey",
            "in": "header",
            "name": "X-API-Key",
            "description": "Required when the API_KEY env var is set.",
        }
    },
    "security": [{"ApiKeyAuth": []}],
    "tags": [
        {"name": "Health", "description": "Health and host identity endpoints"},
        {"name": "CPU Stress", "description": "Start and stop CPU stress campaigns"},
        {"name": "Utilization", "description": "Per-core CPU usage sampling"},
    ],
}


def init_swagger(app):
    """Initialize Swagger documentation for the app.

    Args:
        app: Flask application instance

    Returns:
        Swagger instance
    """
    app.config["SWAGGER"] = SWAGGER_CONFIG
    return Swagger(app, template=SWAGGER_TEMPLATE)
