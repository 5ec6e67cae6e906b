"""Adaptive choice of how many measured runs to perform.

The sampler spends roughly :data:`TARGET_SECONDS` of wall time on each
(test, tool) pair: two initial runs estimate the per-iteration cost, and
the remaining count is derived from that estimate and clamped into
``[min_runs, max_runs]``.  The initial estimates are real measurements
and are kept in the returned sample set.
"""

from __future__ import annotations

import statistics
from typing import Callable

from benchify.errors import ExecutionError
from benchify.logging import get_logger

log = get_logger("sampler")

TARGET_SECONDS = 2.5
DEFAULT_MIN_RUNS = 10
DEFAULT_MAX_RUNS = 1000
INITIAL_ESTIMATES = 2

# (phase, completed, total) with phase one of "warmup", "estimate",
# "measure", "done".
SampleProgress = Callable[[str, int, int], None]


def target_iterations(mean_s: float, min_runs: int, max_runs: int) -> int:
    """Number of runs needed to fill :data:`TARGET_SECONDS`, clamped.

    >>> target_iterations(0.05, 10, 1000)
    50
    """
    if mean_s <= 0:
        return max_runs
    preferred = int(TARGET_SECONDS / mean_s)
    return min(max_runs, max(min_runs, preferred))


class AdaptiveSampler:
    """Collect a sample set for one (test, tool) pair.

    Args:
        run_once: Performs one execution and returns its duration in
            seconds.  Raises :class:`ExecutionError` on failure.
        min_runs: Lower bound on the number of measured runs.
        max_runs: Upper bound on the number of measured runs.
        warmup: Unmeasured runs performed (and discarded) first.
        progress: Optional ``(phase, completed, total)`` callback.
    """

    def __init__(
        self,
        run_once: Callable[[], float],
        *,
        min_runs: int = DEFAULT_MIN_RUNS,
        max_runs: int = DEFAULT_MAX_RUNS,
        warmup: int = 0,
        progress: SampleProgress | None = None,
    ) -> None:
        self.run_once = run_once
        self.min_runs = min_runs
        self.max_runs = max_runs
        self.warmup = warmup
        self.progress = progress

    def _report(self, phase: str, completed: int, total: int) -> None:
        if self.progress is not None:
            self.progress(phase, completed, total)

    def _run(self, phase: str) -> float:
        try:
            return self.run_once()
        except ExecutionError as exc:
            raise ExecutionError(f"Failure during {phase}: {exc}") from exc

    def sample(self) -> list[float]:
        """Run warmup, initial estimates and the remaining iterations.

        Returns:
            The ordered sample set: initial estimates followed by the
            remaining measured runs.

        Raises:
            ExecutionError: If any run fails.  Samples taken so far are
                discarded.
        """
        for i in range(self.warmup):
            self._run("warmup")
            self._report("warmup", i + 1, self.warmup)

        num_initial = min(self.max_runs, INITIAL_ESTIMATES)
        samples: list[float] = []
        for i in range(num_initial):
            samples.append(self._run("initial estimates"))
            self._report("estimate", i + 1, num_initial)

        if samples:
            estimate = statistics.mean(samples)
            target = target_iterations(estimate, self.min_runs, self.max_runs)
        else:
            estimate = 0.0
            target = 0
        log.debug(
            "Estimated %.6fs per iteration; planning %d runs",
            estimate,
            target,
        )

        for i in range(num_initial, target):
            samples.append(self._run(f"benchmarking run #{i}"))
            self._report("measure", i + 1, target)

        self._report("done", len(samples), len(samples))
        return samples
