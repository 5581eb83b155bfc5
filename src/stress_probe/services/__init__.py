"""Services module for stress-probe.

This module provides service abstractions for:
- CPU stress campaigns (StressController)
- Per-core utilization sampling (UtilizationSampler)
- Host identity lookup (HostIdentityClient)
"""

from stress_probe.services.stress_controller import StressController, validate_duration
from stress_probe.services.cpu_sampler import (
    CoreTimes,
    CpuSample,
    UtilizationSampler,
    compute_usage,
    read_cpu_snapshot,
    read_load_averages,
)
from stress_probe.services.host_identity import HostIdentity, HostIdentityClient

__all__ = [
    "StressController",
    "validate_duration",
    "CoreTimes",
    "CpuSample",
    "UtilizationSampler",
    "compute_usage",
    "read_cpu_snapshot",
    "read_load_averages",
    "HostIdentity",
    "HostIdentityClient",
]
