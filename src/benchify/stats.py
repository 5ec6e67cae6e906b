"""Summary statistics for a sample set.

A sample set is the ordered list of durations (in seconds) collected for
one (test, tool) pair.  It is reduced to a :class:`Statistics` record on
demand; the record is never mutated afterwards.
"""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class Statistics:
    """Summary of a non-empty sample set.  All times are in seconds."""

    mean: float
    stdev: float  # sample standard deviation (Bessel's correction)
    min: float
    max: float
    count: int

    def ratio_to(self, baseline: Statistics) -> float:
        """Return ``self.mean / baseline.mean``.

        A zero baseline mean yields ``inf`` (or ``nan`` when both are zero)
        instead of raising.
        """
        if baseline.mean == 0:
            return float("nan") if self.mean == 0 else float("inf")
        return self.mean / baseline.mean

    def to_dict(self) -> dict[str, float | int]:
        """Serialize to a dict with rounded values."""
        return {
            "mean": round(self.mean, 9),
            "stdev": round(self.stdev, 9),
            "min": round(self.min, 9),
            "max": round(self.max, 9),
            "count": self.count,
        }


def compute_statistics(samples: Sequence[float]) -> Statistics:
    """Reduce *samples* to a :class:`Statistics` record.

    The standard deviation divides by ``count - 1``.  With a single
    sample it is reported as 0.0.

    Callers must never pass an empty sequence.
    """
    assert len(samples) > 0, "cannot compute statistics of an empty sample set"

    count = len(samples)
    mean = float(statistics.mean(samples))
    stdev = statistics.stdev(samples, xbar=mean) if count >= 2 else 0.0

    return Statistics(
        mean=mean,
        stdev=stdev,
        min=min(samples),
        max=max(samples),
        count=count,
    )
