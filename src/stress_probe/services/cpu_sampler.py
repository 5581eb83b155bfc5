"""Per-core CPU utilization sampler.

Usage is computed from two snapshots of the cumulative per-core CPU time
counters: the fraction of the elapsed time between them that a core spent
non-idle. The sampler keeps the previous snapshot and swaps it for the
current one on every call, so each reading covers exactly the interval
since the previous reading.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

import psutil

from stress_probe.constants import LOAD_AVERAGE_FALLBACK, LOAD_AVERAGE_PRECISION


class CoreTimes(NamedTuple):
    """Cumulative CPU time counters for one core, in seconds since boot."""

    user: float
    nice: float
    system: float
    idle: float
    irq: float

    @property
    def total(self) -> float:
        return self.user + self.nice + self.system + self.idle + self.irq

    @classmethod
    def from_psutil(cls, times) -> "CoreTimes":
        # nice and irq are not reported on every platform
        return cls(
            user=times.user,
            nice=getattr(times, "nice", 0.0),
            system=times.system,
            idle=times.idle,
            irq=getattr(times, "irq", 0.0),
        )


CpuSnapshot = Tuple[CoreTimes, ...]


def read_cpu_snapshot() -> CpuSnapshot:
    """Read the current per-core time counters from the OS."""
    return tuple(CoreTimes.from_psutil(t) for t in psutil.cpu_times(percpu=True))


def compute_usage(prev: Sequence[CoreTimes], curr: Sequence[CoreTimes]) -> List[float]:
    """Usage percent per core between two snapshots, clamped to [0, 100].

    A core reports 0 when no time elapsed (or the counters went backwards),
    and when the previous snapshot has no entry for it.
    """
    usage = []
    for i, core in enumerate(curr):
        if i >= len(prev):
            usage.append(0.0)
            continue

        total_delta = core.total - prev[i].total
        idle_delta = core.idle - prev[i].idle
        if total_delta <= 0:
            usage.append(0.0)
            continue

        percent = (1 - idle_delta / total_delta) * 100
        usage.append(max(0.0, min(100.0, percent)))
    return usage


def read_load_averages() -> Tuple[float, float, float]:
    """1, 5 and 15 minute load averages, or zeros if the OS refuses."""
    try:
        return psutil.getloadavg()
    except (OSError, AttributeError):
        return LOAD_AVERAGE_FALLBACK


@dataclass
class CpuSample:
    """One utilization reading for display."""

    per_core_usage: List[int] = field(default_factory=list)
    load_averages: List[float] = field(default_factory=list)
    core_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cpus": [
                {"core": i, "usage": usage}
                for i, usage in enumerate(self.per_core_usage)
            ],
            "load_avg": list(self.load_averages),
            "total_cpus": self.core_count,
        }


class UtilizationSampler:
    """Computes per-core usage relative to the previous call.

    A baseline snapshot is taken at construction, so the first sample()
    already measures a real interval.
    """

    def __init__(
        self,
        snapshot_fn: Callable[[], CpuSnapshot] = read_cpu_snapshot,
        loadavg_fn: Callable[[], Sequence[float]] = read_load_averages,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize sampler and seed the baseline snapshot.

        Args:
            snapshot_fn: Returns the current per-core CoreTimes tuple.
            loadavg_fn: Returns the (1, 5, 15) minute load averages.
            logger: Optional logger instance.
        """
        self._snapshot_fn = snapshot_fn
        self._loadavg_fn = loadavg_fn
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger(self.__class__.__name__)
        self._previous: CpuSnapshot = tuple(snapshot_fn())

    @property
    def previous_snapshot(self) -> CpuSnapshot:
        with self._lock:
            return self._previous

    def sample(self) -> CpuSample:
        """Take a snapshot, compute usage against the previous one, and keep it."""
        current = tuple(self._snapshot_fn())
        with self._lock:
            previous = self._previous
            usage = compute_usage(previous, current)
            self._previous = current

        if len(previous) != len(current):
            self._logger.warning(
                "Core count changed between samples: previous=%s current=%s",
                len(previous), len(current),
            )

        load_averages = [
            round(value, LOAD_AVERAGE_PRECISION) for value in self._loadavg_fn()
        ]

        return CpuSample(
            per_core_usage=[int(round(u)) for u in usage],
            load_averages=load_averages,
            core_count=len(current),
        )
