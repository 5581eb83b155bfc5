"""Application constants for stress-probe.

Centralizes magic numbers and configuration values to improve maintainability.
"""

# =============================================================================
# CPU Stress Limits
# =============================================================================
STRESS_MIN_DURATION_MS = 1
STRESS_MAX_DURATION_MS = 1_800_000  # 30 minutes

# Campaign ID prefix; worker IDs are "<campaign_id>_worker_<n>"
CAMPAIGN_PREFIX = "stress_"

# Rejection reason when a campaign is already active
REASON_ALREADY_RUNNING = "already running"

# =============================================================================
# Process Management
# =============================================================================
PROCESS_TERMINATE_TIMEOUT = 1  # seconds

# =============================================================================
# Sampling
# =============================================================================
LOAD_AVERAGE_PRECISION = 2
LOAD_AVERAGE_FALLBACK = (0.0, 0.0, 0.0)

# =============================================================================
# Instance Metadata (host identity)
# =============================================================================
METADATA_DEFAULT_URL = "http://169.254.169.254/latest"
METADATA_TIMEOUT = 2  # seconds
METADATA_TOKEN_TTL_SECONDS = 21600
METADATA_RETRY_SECONDS = 60  # backoff after the service was unreachable
METADATA_INSTANCE_ID_PATH = "meta-data/instance-id"
METADATA_AZ_PATH = "meta-data/placement/availability-zone"

FALLBACK_INSTANCE_ID = "localhost-dev"
FALLBACK_AVAILABILITY_ZONE = "local"

# =============================================================================
# HTTP Settings
# =============================================================================
DEFAULT_PORT = 8080
