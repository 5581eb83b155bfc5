"""Worker module for CPU load generation.

Workers run in separate processes so every logical core can be saturated
while the Flask process stays responsive.
"""

from stress_probe.workers.base import StartResult, WorkerHandle
from stress_probe.workers.cpu_worker import burn_cpu, spin_until

__all__ = [
    "StartResult",
    "WorkerHandle",
    "burn_cpu",
    "spin_until",
]
