# src/stress_probe/openapi_specs.py
"""
OpenAPI/Swagger specifications for StressProbe API endpoints.

Each spec is a dictionary that can be used with flasgger's swag_from decorator.
"""

_TIMESTAMP = {"type": "string", "format": "date-time"}

# ---- Health Endpoints ----

APP_INFO_SPEC = {
    "tags": ["Health"],
    "summary": "Application Info",
    "description": "Returns application info and the identity of the host serving the request. "
    "Refresh repeatedly through a load balancer to see which instance answers.",
    "responses": {
        200: {
            "description": "Application and host info",
            "schema": {
                "type": "object",
                "properties": {
                    "message": {"type": "string", "example": "Stress Probe - Load Balancer Stress Test"},
                    "hostname": {"type": "string", "example": "ip-10-0-1-23"},
                    "instance_id": {"type": "string", "example": "i-0abc123def4567890"},
                    "availability_zone": {"type": "string", "example": "eu-west-2a"},
                    "cpu_cores": {"type": "integer", "example": 4},
                    "version": {"type": "string", "example": "dev"},
                    "environment": {"type": "string", "example": "local"},
                    "timestamp": _TIMESTAMP,
                },
            },
        },
    },
}

HEALTH_CHECK_SPEC = {
    "tags": ["Health"],
    "summary": "Health Check",
    "description": "Static liveness response for load balancer target health checks.",
    "responses": {
        200: {
            "description": "Service is healthy",
            "schema": {
                "type": "object",
                "properties": {
                    "status": {"type": "string", "example": "healthy"},
                    "timestamp": _TIMESTAMP,
                },
            },
        },
    },
}

READY_SPEC = {
    "tags": ["Health"],
    "summary": "Readiness Check",
    "description": "Returns readiness status. Stays responsive while a stress campaign runs.",
    "responses": {
        200: {
            "description": "Service is ready to accept traffic",
            "schema": {
                "type": "object",
                "properties": {
                    "status": {"type": "string", "example": "ready"},
                    "timestamp": _TIMESTAMP,
                },
            },
        },
    },
}

# ---- CPU Stress ----

STRESS_START_SPEC = {
    "tags": ["CPU Stress"],
    "summary": "Start CPU Stress",
    "description": "Spawns one CPU-burning worker process per logical core for the given duration. "
    "Returns immediately. If a campaign is already running, nothing is spawned and "
    "success is false.",
    "parameters": [
        {
            "name": "body",
            "in": "body",
            "required": True,
            "schema": {
                "type": "object",
                "required": ["duration"],
                "properties": {
                    "duration": {
                        "type": "integer",
                        "minimum": 1,
                        "maximum": 1800000,
                        "example": 60000,
                        "description": "Campaign duration in milliseconds",
                    },
                },
            },
        },
    ],
    "responses": {
        200: {
            "description": "Campaign started, or rejected because one is already running",
            "schema": {
                "type": "object",
                "properties": {
                    "success": {"type": "boolean", "example": True},
                    "message": {"type": "string", "example": "Stress test started"},
                    "campaign_id": {"type": "string", "example": "stress_1735689600000"},
                    "duration": {"type": "integer", "example": 60000},
                    "workers": {"type": "integer", "example": 4},
                    "timestamp": _TIMESTAMP,
                },
            },
        },
        400: {"description": "Missing or invalid duration"},
    },
}

STRESS_STOP_SPEC = {
    "tags": ["CPU Stress"],
    "summary": "Stop CPU Stress",
    "description": "Terminates every active worker. Succeeds as a no-op when idle.",
    "responses": {
        200: {
            "description": "Workers stopped",
            "schema": {
                "type": "object",
                "properties": {
                    "success": {"type": "boolean", "example": True},
                    "message": {"type": "string", "example": "Stress test stopped"},
                    "stopped_workers": {"type": "array", "items": {"type": "string"}},
                    "timestamp": _TIMESTAMP,
                },
            },
        },
    },
}

STRESS_STATUS_SPEC = {
    "tags": ["CPU Stress"],
    "summary": "CPU Stress Status",
    "description": "Returns the current campaign and the state of each active worker.",
    "responses": {
        200: {
            "description": "Campaign status",
            "schema": {
                "type": "object",
                "properties": {
                    "is_stressing": {"type": "boolean"},
                    "campaign_id": {"type": "string"},
                    "duration_ms": {"type": "integer"},
                    "started_at": _TIMESTAMP,
                    "active_workers": {"type": "integer"},
                    "workers": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "worker_id": {"type": "string"},
                                "deadline": _TIMESTAMP,
                                "alive": {"type": "boolean"},
                                "completed": {"type": "boolean"},
                                "exit_code": {"type": "integer"},
                            },
                        },
                    },
                    "timestamp": _TIMESTAMP,
                },
            },
        },
    },
}

# ---- Utilization ----

CPU_METRICS_SPEC = {
    "tags": ["Utilization"],
    "summary": "Per-core CPU Usage",
    "description": "Per-core usage percent since the previous call, load averages, "
    "and whether a stress campaign is running. Poll at a fixed interval.",
    "responses": {
        200: {
            "description": "Utilization sample",
            "schema": {
                "type": "object",
                "properties": {
                    "is_stressing": {"type": "boolean", "example": False},
                    "cpus": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "core": {"type": "integer", "example": 0},
                                "usage": {"type": "integer", "example": 97},
                            },
                        },
                    },
                    "load_avg": {
                        "type": "array",
                        "items": {"type": "number"},
                        "example": [3.91, 2.02, 0.87],
                    },
                    "total_cpus": {"type": "integer", "example": 4},
                    "timestamp": _TIMESTAMP,
                },
            },
        },
    },
}
