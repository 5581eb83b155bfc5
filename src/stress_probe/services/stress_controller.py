"""Stress controller service for running CPU stress campaigns.

Owns the pool of worker processes and the only piece of shared state in the
service: the set of active worker handles. Whether a campaign is running is
derived from that set, so "stressing" and "has live handles" cannot drift
apart.
"""

import logging
import math
import multiprocessing
import threading
import time
from datetime import datetime, timezone
from multiprocessing.connection import wait
from typing import Any, Callable, Dict, List, Optional

import psutil

from stress_probe.constants import (
    CAMPAIGN_PREFIX,
    PROCESS_TERMINATE_TIMEOUT,
    REASON_ALREADY_RUNNING,
    STRESS_MAX_DURATION_MS,
    STRESS_MIN_DURATION_MS,
)
from stress_probe.workers.base import StartResult, WorkerHandle
from stress_probe.workers.cpu_worker import burn_cpu


def validate_duration(duration_ms: Any) -> int:
    """Validate a campaign duration and return it as whole milliseconds.

    Raises:
        ValueError: If the duration is missing, not a number, or out of range
    """
    if duration_ms is None:
        raise ValueError("duration is required (milliseconds)")
    if isinstance(duration_ms, bool) or not isinstance(duration_ms, (int, float)):
        raise ValueError("duration must be a number of milliseconds")
    if isinstance(duration_ms, float) and not math.isfinite(duration_ms):
        raise ValueError("duration must be a finite number")
    # Compare before int() so arbitrarily large JSON integers never reach float math
    if duration_ms > STRESS_MAX_DURATION_MS:
        raise ValueError(f"duration must be at most {STRESS_MAX_DURATION_MS} ms")

    duration_ms = int(duration_ms)
    if duration_ms < STRESS_MIN_DURATION_MS:
        raise ValueError("duration must be a positive number of milliseconds")
    return duration_ms


class StressController:
    """Runs at most one CPU stress campaign at a time.

    A campaign is one worker process per logical core, each burning CPU
    until a shared deadline. A daemon supervisor thread waits on the process
    sentinels and drops each handle as its process exits; the campaign ends
    when the last handle is gone.

    Every mutation of the handle set (spawn, exit cleanup, stop) happens
    under one lock. An exit event for a handle that stop() already removed
    is ignored.
    """

    def __init__(
        self,
        worker_count: Optional[int] = None,
        worker_target: Callable[[str, float], None] = burn_cpu,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize stress controller.

        Args:
            worker_count: Workers per campaign. Defaults to the logical core count.
            worker_target: Pickle-able process target taking (worker_id, deadline).
            logger: Optional logger instance. If not provided, creates one.
        """
        self._workers: Dict[str, WorkerHandle] = {}
        self._lock = threading.Lock()
        self._worker_count = worker_count
        self._worker_target = worker_target
        self._logger = logger or logging.getLogger(self.__class__.__name__)

        self._campaign_id: Optional[str] = None
        self._duration_ms: Optional[int] = None
        self._started_at: Optional[str] = None

    @property
    def worker_count(self) -> int:
        """Number of workers a new campaign will spawn."""
        if self._worker_count:
            return self._worker_count
        return psutil.cpu_count(logical=True) or 1

    @property
    def is_stressing(self) -> bool:
        with self._lock:
            return bool(self._workers)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._workers)

    def start(self, duration_ms: Any) -> StartResult:
        """Start a campaign of worker_count workers for duration_ms.

        Returns immediately after spawning. If a campaign is already active,
        nothing is spawned and the result carries started=False.

        Raises:
            ValueError: If duration_ms is invalid
        """
        duration_ms = validate_duration(duration_ms)

        with self._lock:
            if self._workers:
                self._logger.info(
                    "CPU stress already running: campaign_id=%s", self._campaign_id
                )
                return StartResult(
                    started=False,
                    reason=REASON_ALREADY_RUNNING,
                    campaign_id=self._campaign_id,
                    duration_ms=self._duration_ms,
                    workers=list(self._workers),
                )

            self._reset()

            campaign_id = f"{CAMPAIGN_PREFIX}{int(time.time() * 1000)}"
            deadline = time.time() + duration_ms / 1000.0
            count = self.worker_count

            self._logger.info(
                "Starting CPU stress: campaign_id=%s workers=%s duration_ms=%s",
                campaign_id, count, duration_ms,
            )

            handles = []
            try:
                for i in range(count):
                    worker_id = f"{campaign_id}_worker_{i}"
                    process = multiprocessing.Process(
                        target=self._worker_target,
                        args=(worker_id, deadline),
                        name=worker_id,
                        daemon=True,
                    )
                    process.start()
                    handle = WorkerHandle(
                        worker_id=worker_id, deadline=deadline, process=process
                    )
                    self._workers[worker_id] = handle
                    handles.append(handle)
            except OSError:
                self._logger.exception(
                    "Failed to spawn CPU workers: campaign_id=%s", campaign_id
                )
                self._terminate_all()
                raise

            self._campaign_id = campaign_id
            self._duration_ms = duration_ms
            self._started_at = datetime.now(timezone.utc).isoformat()

            supervisor = threading.Thread(
                target=self._supervise,
                args=(campaign_id, handles),
                name=f"{campaign_id}_supervisor",
                daemon=True,
            )
            supervisor.start()

        return StartResult(
            started=True,
            campaign_id=campaign_id,
            duration_ms=duration_ms,
            workers=[h.worker_id for h in handles],
        )

    def stop(self) -> List[str]:
        """Terminate every active worker. Safe to call when idle.

        Returns:
            IDs of the workers that were stopped (empty when idle)
        """
        with self._lock:
            stopped = self._terminate_all()
            campaign_id = self._campaign_id

        if stopped:
            self._logger.info(
                "CPU stress stopped: campaign_id=%s workers=%s",
                campaign_id, len(stopped),
            )
        return stopped

    def shutdown(self) -> None:
        """Stop any campaign on interpreter exit. Registered with atexit."""
        stopped = self.stop()
        if stopped:
            self._logger.info("Shutdown stopped %s CPU workers", len(stopped))

    def status(self) -> Dict[str, Any]:
        """Current campaign state (safe for JSON serialization)."""
        with self._lock:
            return {
                "is_stressing": bool(self._workers),
                "campaign_id": self._campaign_id,
                "duration_ms": self._duration_ms,
                "started_at": self._started_at,
                "active_workers": len(self._workers),
                "workers": [h.to_dict() for h in self._workers.values()],
            }

    def _terminate_all(self) -> List[str]:
        """Terminate and forget every active worker.

        Must be called with lock held.
        """
        handles = list(self._workers.values())
        self._workers.clear()

        for handle in handles:
            self._terminate_process(handle.process)
            handle.mark_exited()

        return [h.worker_id for h in handles]

    def _reset(self) -> None:
        """Terminate tracked workers and any untracked campaign process still alive.

        Untracked survivors are workers whose handle was dropped while the
        process outlived its kill. Must be called with lock held.
        """
        self._terminate_all()

        for process in multiprocessing.active_children():
            if process.name and process.name.startswith(CAMPAIGN_PREFIX):
                self._logger.warning("Reaping stray CPU worker: name=%s", process.name)
                self._terminate_process(process)

    def _terminate_process(self, process: multiprocessing.Process) -> None:
        if process.is_alive():
            process.terminate()
            process.join(timeout=PROCESS_TERMINATE_TIMEOUT)
        if process.is_alive():
            self._logger.warning(
                "Worker ignored SIGTERM, killing: worker_id=%s", process.name
            )
            process.kill()
            process.join(timeout=PROCESS_TERMINATE_TIMEOUT)

    def _supervise(self, campaign_id: str, handles: List[WorkerHandle]) -> None:
        """Wait for each worker process of a campaign to exit."""
        pending = {h.sentinel: h for h in handles}
        while pending:
            for sentinel in wait(list(pending)):
                self._on_worker_exit(pending.pop(sentinel))

        self._logger.debug("Supervisor finished: campaign_id=%s", campaign_id)

    def _on_worker_exit(self, handle: WorkerHandle) -> None:
        """Drop the handle of an exited worker, ending the campaign if it was last."""
        with self._lock:
            handle.process.join(timeout=PROCESS_TERMINATE_TIMEOUT)
            handle.mark_exited()

            if self._workers.get(handle.worker_id) is not handle:
                return  # removed by stop()
            del self._workers[handle.worker_id]
            remaining = len(self._workers)
            campaign_id = self._campaign_id

        if handle.exit_code:
            self._logger.warning(
                "CPU worker failed: worker_id=%s exit_code=%s",
                handle.worker_id, handle.exit_code,
            )
        if remaining == 0:
            self._logger.info("CPU stress completed: campaign_id=%s", campaign_id)
