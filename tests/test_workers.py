"""Tests for the CPU burn worker and worker handle types."""

import multiprocessing
import time
from unittest.mock import patch

import pytest

from stress_probe.workers import StartResult, WorkerHandle, burn_cpu, spin_until


class TestSpinUntil:
    """Tests for the busy loop."""

    def test_past_deadline_returns_immediately(self):
        assert spin_until(time.time() - 1) == 0

    def test_spins_until_deadline(self):
        start = time.time()
        iterations = spin_until(start + 0.05)

        assert iterations > 0
        assert time.time() >= start + 0.05


class TestBurnCpu:
    """Tests for the process target."""

    def test_completes_normally(self):
        assert burn_cpu("worker_test", time.time() - 1) is None

    def test_failure_is_logged_and_exits_nonzero(self, caplog):
        with patch(
            "stress_probe.workers.cpu_worker.spin_until",
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(SystemExit) as exc_info:
                burn_cpu("worker_test", time.time() + 1)

        assert exc_info.value.code == 1
        assert "CPU worker failed: worker_id=worker_test" in caplog.text

    def test_runs_in_separate_process(self):
        process = multiprocessing.Process(target=burn_cpu, args=("worker_proc", time.time() + 0.1))
        process.start()
        process.join(timeout=10)

        assert process.exitcode == 0


class TestWorkerHandle:
    """Tests for WorkerHandle."""

    def test_to_dict_before_exit(self):
        handle = WorkerHandle(worker_id="stress_1_worker_0", deadline=0.0)
        data = handle.to_dict()

        assert data == {
            "worker_id": "stress_1_worker_0",
            "deadline": "1970-01-01T00:00:00+00:00",
            "alive": False,
            "completed": False,
            "exit_code": None,
        }

    def test_mark_exited_records_exit_code(self):
        process = multiprocessing.Process(target=burn_cpu, args=("worker_exit", time.time()))
        process.start()
        process.join(timeout=10)

        handle = WorkerHandle(worker_id="worker_exit", deadline=time.time(), process=process)
        handle.mark_exited()

        assert handle.completed is True
        assert handle.exit_code == 0
        assert handle.is_alive() is False


class TestStartResult:
    """Tests for StartResult."""

    def test_started_to_dict(self):
        result = StartResult(started=True, campaign_id="stress_1", duration_ms=5000, workers=["a", "b"])

        assert result.to_dict() == {
            "started": True,
            "campaign_id": "stress_1",
            "duration_ms": 5000,
            "workers": ["a", "b"],
        }

    def test_rejected_includes_reason(self):
        result = StartResult(started=False, reason="already running")

        assert result.to_dict()["reason"] == "already running"
