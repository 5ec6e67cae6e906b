"""Benchmark outcomes and their grouped views.

Hierarchy::

    BenchifyResults (one benchmark execution)
      → outcomes: tuple[PairOutcome, ...]   (test-major, tool-minor)
        → samples (seconds) or error message
      → main_tool: optional comparison baseline

The results are assembled once, after every pair has finished or failed,
and are read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass

from benchify.stats import Statistics, compute_statistics


# ---------------------------------------------------------------------------
# Pair-level outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PairOutcome:
    """Outcome of one (test, tool) pair: a sample set or a failure."""

    test: str
    tool: str
    samples: tuple[float, ...] | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if (self.samples is None) == (self.error is None):
            raise ValueError("PairOutcome needs exactly one of samples and error")
        if self.samples is not None and not self.samples:
            raise ValueError("PairOutcome samples must not be empty")

    @classmethod
    def success(cls, test: str, tool: str, samples: list[float]) -> PairOutcome:
        return cls(test=test, tool=tool, samples=tuple(samples))

    @classmethod
    def failure(cls, test: str, tool: str, error: str) -> PairOutcome:
        return cls(test=test, tool=tool, error=error)

    @property
    def ok(self) -> bool:
        return self.samples is not None

    @property
    def statistics(self) -> Statistics | None:
        """Statistics of the sample set, or None for a failed pair."""
        if self.samples is None:
            return None
        return compute_statistics(self.samples)

    def to_dict(self) -> dict[str, object]:
        d: dict[str, object] = {"test": self.test, "tool": self.tool}
        if self.samples is not None:
            d["samples"] = list(self.samples)
            d["statistics"] = compute_statistics(self.samples).to_dict()
        else:
            d["error"] = self.error
        return d


# Either computed statistics or a formatted failure message.
StatsOrError = Statistics | str


# ---------------------------------------------------------------------------
# Run-level results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchifyResults:
    """All pair outcomes of a run plus the optional main (baseline) tool."""

    outcomes: tuple[PairOutcome, ...]
    main_tool: str | None = None

    @property
    def test_names(self) -> list[str]:
        """Test names in declaration order."""
        return list(dict.fromkeys(o.test for o in self.outcomes))

    @property
    def tool_names(self) -> list[str]:
        """Tool names in declaration order."""
        return list(dict.fromkeys(o.tool for o in self.outcomes))

    def outcome(self, test: str, tool: str) -> PairOutcome | None:
        for o in self.outcomes:
            if o.test == test and o.tool == tool:
                return o
        return None

    def by_test(self) -> list[tuple[str, list[tuple[str, StatsOrError]]]]:
        """Group outcomes by test, in declaration order.

        Each entry maps a tool to its Statistics, or to the failure
        message if the pair failed.
        """
        grouped: dict[str, list[tuple[str, StatsOrError]]] = {}
        for o in self.outcomes:
            stats = o.statistics
            entry: StatsOrError = stats if stats is not None else str(o.error)
            grouped.setdefault(o.test, []).append((o.tool, entry))
        return list(grouped.items())

    def by_tool(self) -> list[tuple[str, list[tuple[str, Statistics]]]]:
        """Group successful outcomes by tool, in declaration order.

        Failed pairs are left out; a tool that failed every test does
        not appear at all.
        """
        grouped: dict[str, list[tuple[str, Statistics]]] = {}
        for o in self.outcomes:
            stats = o.statistics
            if stats is not None:
                grouped.setdefault(o.tool, []).append((o.test, stats))
        return list(grouped.items())

    def baseline_for(self, test: str) -> str | None:
        """Pick the tool that ratios for *test* are computed against.

        The main tool when one is configured and it succeeded for this
        test; otherwise the successful tool with the lowest mean.  None
        when no usable baseline exists.
        """
        entries = [
            (o.tool, stats)
            for o in self.outcomes
            if o.test == test and (stats := o.statistics) is not None
        ]
        if self.main_tool is not None:
            for tool, _stats in entries:
                if tool == self.main_tool:
                    return tool
            return None
        if not entries:
            return None
        return min(entries, key=lambda e: e[1].mean)[0]

    def ratios_for(self, test: str) -> dict[str, float]:
        """``mean / baseline mean`` for each successful tool of *test*.

        Empty when no baseline can be chosen.
        """
        baseline = self.baseline_for(test)
        if baseline is None:
            return {}
        groups = dict(self.by_test())
        entries = groups.get(test, [])
        base_stats = next(s for t, s in entries if t == baseline)
        assert isinstance(base_stats, Statistics)
        return {
            tool: 1.0 if tool == baseline else stats.ratio_to(base_stats)
            for tool, stats in entries
            if isinstance(stats, Statistics)
        }

    def to_dict(self) -> dict[str, object]:
        return {
            "main_tool": self.main_tool,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
