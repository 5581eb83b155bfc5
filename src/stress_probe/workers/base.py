"""Worker handle and campaign result types.

A campaign spawns one worker process per logical core. The controller keeps
one WorkerHandle per process and drops it when the process exits or is
stopped.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class WorkerHandle:
    """A single CPU-burning worker process owned by the controller."""

    worker_id: str
    deadline: float  # epoch seconds
    process: Any = field(default=None, repr=False)
    completed: bool = False
    exit_code: Optional[int] = None

    @property
    def sentinel(self):
        return self.process.sentinel

    def is_alive(self) -> bool:
        return self.process is not None and self.process.is_alive()

    def mark_exited(self) -> None:
        """Record the process exit code and flag the handle as completed."""
        self.completed = True
        if self.process is not None:
            self.exit_code = self.process.exitcode

    def to_dict(self) -> Dict[str, Any]:
        """Convert handle to dictionary for JSON serialization."""
        return {
            "worker_id": self.worker_id,
            "deadline": datetime.fromtimestamp(self.deadline, timezone.utc).isoformat(),
            "alive": self.is_alive(),
            "completed": self.completed,
            "exit_code": self.exit_code,
        }


@dataclass
class StartResult:
    """Outcome of a start request.

    A rejected start (campaign already active) is not an error: started is
    False and reason says why.
    """

    started: bool
    reason: Optional[str] = None
    campaign_id: Optional[str] = None
    duration_ms: Optional[int] = None
    workers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "started": self.started,
            "campaign_id": self.campaign_id,
            "duration_ms": self.duration_ms,
            "workers": list(self.workers),
        }
        if self.reason:
            result["reason"] = self.reason
        return result
