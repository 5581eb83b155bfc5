"""StressProbe service providing the HTTP control surface.

This module contains the StressProbeService class which registers all API
routes. The routes are thin: campaign control goes to StressController,
utilization readings to UtilizationSampler, host identity to
HostIdentityClient.
"""

import logging
import os
import socket
from datetime import datetime, timezone
from typing import Optional

import psutil
from flask import jsonify, request
from flasgger import swag_from
from prometheus_client import Gauge

from stress_probe.openapi_specs import (
    APP_INFO_SPEC,
    CPU_METRICS_SPEC,
    HEALTH_CHECK_SPEC,
    READY_SPEC,
    STRESS_START_SPEC,
    STRESS_STATUS_SPEC,
    STRESS_STOP_SPEC,
)
from stress_probe.services.cpu_sampler import UtilizationSampler
from stress_probe.services.host_identity import HostIdentityClient
from stress_probe.services.stress_controller import StressController


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StressProbeService:
    """
    Encapsulates all stress-probe endpoints.
    """

    def __init__(
        self,
        app,
        metrics=None,
        controller: Optional[StressController] = None,
        sampler: Optional[UtilizationSampler] = None,
        host_identity: Optional[HostIdentityClient] = None,
    ):
        """
        Initialize StressProbeService with Flask app and optional dependencies.

        Args:
            app: Flask application instance
            metrics: PrometheusMetrics instance (optional)
            controller: StressController owning the worker pool.
                        If not provided, a new instance is created.
            sampler: UtilizationSampler for per-core usage.
                     If not provided, a new instance is created (seeding its baseline).
            host_identity: HostIdentityClient for instance id / zone lookups.
        """
        self.app = app
        self.metrics = metrics
        self.logger = logging.getLogger(self.__class__.__name__)
        self.controller = controller or StressController(logger=self.logger)
        self.sampler = sampler or UtilizationSampler()
        self.host_identity = host_identity or HostIdentityClient()

        self._register_metrics()
        self._register_routes()

    def _register_metrics(self):
        """Expose campaign state as Prometheus gauges."""
        if self.metrics is None:
            return

        self.metrics.info(
            "stress_probe_app_info",
            "Application info",
            version=os.getenv("APP_VERSION", "dev"),
        )
        Gauge(
            "stress_probe_active_workers",
            "CPU stress worker processes currently running",
            registry=self.metrics.registry,
        ).set_function(lambda: self.controller.active_count)
        Gauge(
            "stress_probe_stressing",
            "1 while a CPU stress campaign is running",
            registry=self.metrics.registry,
        ).set_function(lambda: 1 if self.controller.is_stressing else 0)

    def _register_routes(self):
        """Wire endpoints to Flask routes."""
        self.app.add_url_rule("/", "app_info", self.app_info, methods=["GET"])
        self.app.add_url_rule("/health", "health_check", self.health_check, methods=["GET"])
        self.app.add_url_rule("/ready", "ready_check", self.ready, methods=["GET"])

        # CPU stress campaign control (non-blocking, multi-process)
        self.app.add_url_rule("/stress", "stress_start", self.stress_start, methods=["POST"])
        self.app.add_url_rule("/stop-stress", "stress_stop", self.stress_stop, methods=["POST"])
        self.app.add_url_rule("/stress/status", "stress_status", self.stress_status, methods=["GET"])

        # Per-core utilization (Prometheus exposition lives on /prometheus)
        self.app.add_url_rule("/metrics", "cpu_metrics", self.cpu_metrics, methods=["GET"])

    # ---- Endpoints ----

    @swag_from(APP_INFO_SPEC)
    def app_info(self):
        identity = self.host_identity.get_identity()
        return jsonify({
            "message": "Stress Probe - Load Balancer Stress Test",
            "hostname": socket.gethostname(),
            "instance_id": identity.instance_id,
            "availability_zone": identity.availability_zone,
            "cpu_cores": psutil.cpu_count(logical=True),
            "version": os.getenv("APP_VERSION", "dev"),
            "environment": os.getenv("ENVIRONMENT", "local"),
            "timestamp": _now(),
        })

    @swag_from(HEALTH_CHECK_SPEC)
    def health_check(self):
        return jsonify({
            "status": "healthy",
            "timestamp": _now(),
        }), 200

    @swag_from(READY_SPEC)
    def ready(self):
        """Readiness probe."""
        return jsonify({
            "status": "ready",
            "timestamp": _now(),
        })

    @swag_from(STRESS_START_SPEC)
    def stress_start(self):
        """Start a CPU stress campaign on every core."""
        data = request.get_json(silent=True) or {}

        try:
            result = self.controller.start(data.get("duration"))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        if not result.started:
            return jsonify({
                "success": False,
                "message": "Stress test already running",
                "reason": result.reason,
                "campaign_id": result.campaign_id,
                "timestamp": _now(),
            })

        return jsonify({
            "success": True,
            "message": "Stress test started",
            "campaign_id": result.campaign_id,
            "duration": result.duration_ms,
            "workers": len(result.workers),
            "check_status": "/stress/status",
            "stop_endpoint": "/stop-stress",
            "timestamp": _now(),
        })

    @swag_from(STRESS_STOP_SPEC)
    def stress_stop(self):
        """Stop all CPU stress workers."""
        stopped = self.controller.stop()
        return jsonify({
            "success": True,
            "message": "Stress test stopped",
            "stopped_workers": stopped,
            "timestamp": _now(),
        })

    @swag_from(STRESS_STATUS_SPEC)
    def stress_status(self):
        status = self.controller.status()
        status["timestamp"] = _now()
        return jsonify(status)

    @swag_from(CPU_METRICS_SPEC)
    def cpu_metrics(self):
        """Per-core usage since the previous call, plus stress state."""
        sample = self.sampler.sample()
        payload = {"is_stressing": self.controller.is_stressing}
        payload.update(sample.to_dict())
        payload["timestamp"] = _now()
        return jsonify(payload)
