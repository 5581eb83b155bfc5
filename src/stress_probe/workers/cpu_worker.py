"""CPU burn worker.

Runs in its own process and keeps one core busy with floating-point work
until a deadline passes. The process exit code is the completion signal:
0 when the deadline was reached, 1 when the loop raised.
"""

import logging
import math
import random
import sys
import time


logger = logging.getLogger(__name__)


def spin_until(deadline: float) -> int:
    """Busy-loop until the epoch-seconds deadline. Returns iteration count.

    Never sleeps or yields, so the core stays near 100% utilization.
    """
    iterations = 0
    while time.time() < deadline:
        math.sqrt(random.random())
        iterations += 1
    return iterations


def burn_cpu(worker_id: str, deadline: float) -> None:
    """Standalone worker function for multiprocessing.

    Pickle-able target for multiprocessing.Process.

    Args:
        worker_id: Unique identifier for this worker instance
        deadline: Epoch seconds at which the worker stops burning
    """
    try:
        iterations = spin_until(deadline)
    except Exception:
        logger.exception("CPU worker failed: worker_id=%s", worker_id)
        sys.exit(1)

    logger.debug(
        "CPU worker finished: worker_id=%s iterations=%s", worker_id, iterations
    )
