"""Application factory for StressProbe.

This module bootstraps the Flask application by wiring together:
- Swagger/OpenAPI documentation
- Authentication middleware (API key)
- Security headers middleware
- Prometheus metrics
- Stress controller, utilization sampler and host identity client
- Route handlers
"""

import atexit
import logging
import os
import weakref

from flask import Flask
from prometheus_flask_exporter import PrometheusMetrics
from werkzeug.middleware.proxy_fix import ProxyFix

from stress_probe.constants import DEFAULT_PORT, METADATA_TIMEOUT
from stress_probe.middleware import init_auth, init_security_headers
from stress_probe.services import HostIdentityClient, StressController, UtilizationSampler
from stress_probe.stress_probe_service import StressProbeService
from stress_probe.swagger_config import init_swagger


# Controllers stopped on interpreter exit; one hook for every app created
_controllers = weakref.WeakSet()


@atexit.register
def _shutdown_controllers():
    for controller in list(_controllers):
        controller.shutdown()


def _int_or_none(value):
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def create_app(config_override: dict | None = None):
    """Application factory for creating the Flask app.

    Args:
        config_override: Optional config dict for testing. Supports:
            - API_KEY: Enable authentication with this key
            - STRESS_WORKERS: Workers per campaign (default: logical cores)
            - METADATA_URL: Instance metadata service base URL
            - METADATA_TIMEOUT: Metadata request timeout in seconds

    Returns:
        Flask application instance
    """
    app = Flask(__name__)

    # Trust X-Forwarded-* from one proxy hop (the load balancer)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    # Base config from environment
    app.config.from_mapping(
        ENVIRONMENT=os.getenv("ENVIRONMENT", "local"),
        APP_VERSION=os.getenv("APP_VERSION", "dev"),
        STRESS_WORKERS=_int_or_none(os.getenv("STRESS_WORKERS")),
        METADATA_URL=os.getenv("METADATA_URL"),
        METADATA_TIMEOUT=float(os.getenv("METADATA_TIMEOUT", METADATA_TIMEOUT)),
    )

    # Apply config overrides (for testing)
    if config_override:
        app.config.update(config_override)

    # Setup logging
    logging.basicConfig(level=logging.INFO)
    app.logger.setLevel(logging.INFO)

    # Initialize Swagger/OpenAPI documentation
    init_swagger(app)

    # Initialize middleware
    init_auth(app, config_override)
    init_security_headers(app)

    # Prometheus exposition; /metrics is the JSON utilization endpoint
    metrics = PrometheusMetrics(app, path="/prometheus")

    service_logger = logging.getLogger(StressProbeService.__name__)
    controller = StressController(
        worker_count=app.config["STRESS_WORKERS"],
        logger=service_logger,
    )
    _controllers.add(controller)
    host_identity = HostIdentityClient(
        url=app.config["METADATA_URL"],
        timeout=app.config["METADATA_TIMEOUT"],
    )

    # Register service (wires all routes)
    service = StressProbeService(
        app=app,
        metrics=metrics,
        controller=controller,
        sampler=UtilizationSampler(),
        host_identity=host_identity,
    )
    app.extensions["stress_probe"] = service

    return app


# For local dev: `python -m stress_probe.app`
if __name__ == "__main__":
    app = create_app()
    port = int(os.getenv("PORT", DEFAULT_PORT))
    app.run(host="0.0.0.0", port=port, debug=True, use_reloader=False)
