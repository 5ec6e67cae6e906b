"""Benchmark execution engine.

Orchestrates, for every (test, tool) pair in declaration order
(test-major, tool-minor):

1. Preparation (the runner's ``prepare`` shell command)
2. Warm-up runs (unmeasured)
3. Adaptive sampling of the run step
4. Cleanup (the runner's ``cleanup`` shell command)

A failing pair is recorded in its outcome and does not stop its
siblings.  With ``parallel_prep`` every preparation step is started up
front on a thread pool, throttled by the :class:`ConcurrencyLimiter`;
if any of them fails the whole run is aborted before any measurement.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

from benchify.config import BenchifyConfig, Runner, Test, Tool
from benchify.errors import ConfigError, ExecutionError, PreparationError
from benchify.interpolate import interpolate, interpolate_args
from benchify.limiter import ConcurrencyLimiter
from benchify.logging import get_logger, pair_logger
from benchify.results import BenchifyResults, PairOutcome
from benchify.sampler import AdaptiveSampler
from benchify.stats import compute_statistics
from benchify.timing import TimedResult, run_shell, run_timed

log = get_logger("runner")


# ---------------------------------------------------------------------------
# Progress callback
# ---------------------------------------------------------------------------


@dataclass
class BenchProgress:
    """Progress info passed to the callback."""

    phase: str  # "prepare", "warmup", "estimate", "measure", "cleanup", "done", "failed"
    test: str
    tool: str
    completed: int = 0
    total: int = 0
    pairs_done: int = 0
    pairs_total: int = 0
    detail: str = ""


ProgressCallback = Callable[[BenchProgress], None]

# Runs one iteration for (tool, test) and returns its duration.
IterationFn = Callable[[Tool, Test], float]


# ---------------------------------------------------------------------------
# Single commands
# ---------------------------------------------------------------------------


def run_step(phase: str, tool: Tool, test: Test, command: str) -> None:
    """Run a prepare/cleanup shell command for one pair.

    Raises:
        ExecutionError: If the shell cannot be spawned or the command
            exits non-zero.
    """
    cmd = interpolate(command, test)
    log.debug("%s of %s for %s: `%s`", phase, tool.name, test.tag, cmd)
    try:
        status = run_shell(cmd)
    except OSError as exc:
        raise ExecutionError(f"{phase} of {tool.name} for {test.tag} could not start: {exc}") from exc
    if status != 0:
        raise ExecutionError(
            f"{phase} of {tool.name} for {test.tag} failed with status code {status}"
        )
    log.debug("%s exited successfully", phase)


def build_command(tool: Tool, runner: Runner, test: Test) -> str | list[str]:
    """The program invocation for one iteration.

    Raises:
        ConfigError: If the runner does not set exactly one of
            ``run_args`` and ``run_cmd``.
    """
    if not runner.well_formed:
        raise ConfigError(
            f"Runner '{test.tag}' for '{tool.name}' must set exactly one of run_args and run_cmd"
        )
    if runner.run_args is not None:
        return [tool.program, *interpolate_args(runner.run_args, test)]
    assert runner.run_cmd is not None
    return interpolate(runner.run_cmd, test)


def parse_reported_timing(timed: TimedResult) -> float:
    """Validate a program's self-reported duration against the wall clock.

    The program's stdout must be a single finite, non-negative number of
    seconds, strictly less than the externally measured wall time.

    Raises:
        ExecutionError: If stdout is not UTF-8 text holding a number, or
            the reported value is negative, not finite, or not below the
            measured one.
    """
    try:
        text = timed.stdout.decode("utf-8").strip()
    except UnicodeDecodeError:
        raise ExecutionError(
            f"Expected a timing in seconds on stdout, got binary output {timed.stdout[:20]!r}"
        ) from None
    try:
        reported = float(text)
    except ValueError:
        raise ExecutionError(f"Expected a timing in seconds on stdout, got {text[:80]!r}") from None
    if not math.isfinite(reported) or reported < 0:
        raise ExecutionError(f"Program reported an invalid elapsed time at stdout: {text!r}")
    if not reported < timed.wall_time_s:
        raise ExecutionError(
            f"Program lied about elapsed time at stdout: {reported}s is not less than "
            f"{timed.wall_time_s}s"
        )
    return reported


def run_iteration(tool: Tool, test: Test) -> float:
    """Execute one measured run of *tool* for *test*.

    Returns:
        The duration in seconds: the self-reported one when the test
        declares ``stdout_is_timing``, else the measured wall time.

    Raises:
        ExecutionError: If the program cannot be spawned, exits
            non-zero, or misreports its timing.
    """
    runner = tool.runner_for(test.tag)
    command = build_command(tool, runner, test)
    stdin_command = interpolate(test.stdin_from_cmd, test) if test.stdin_from_cmd else None

    log.debug("Running %s with %r", tool.program, command)
    try:
        timed = run_timed(command, stdin_command=stdin_command)
    except OSError as exc:
        raise ExecutionError(f"Could not run {tool.name}: {exc}") from exc

    if not timed.ok:
        detail = timed.stderr_tail()
        raise ExecutionError(
            f"Command exited with non zero status code {timed.exit_code}"
            + (f": {detail}" if detail else "")
        )
    log.debug("Ran %s in %.3f ms", tool.name, timed.wall_time_s * 1000)

    if test.stdout_is_timing:
        return parse_reported_timing(timed)
    return timed.wall_time_s


# ---------------------------------------------------------------------------
# BenchRunner
# ---------------------------------------------------------------------------


class BenchRunner:
    """Executes a benchmark run according to a BenchifyConfig.

    Usage::

        config = load_config(Path("benchify.yaml"))
        results = BenchRunner(config).run()
    """

    def __init__(
        self,
        config: BenchifyConfig,
        *,
        limiter: ConcurrencyLimiter | None = None,
        iteration: IterationFn = run_iteration,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.config = config
        self.limiter = limiter or ConcurrencyLimiter()
        if config.max_parallel is not None:
            self.limiter.set_limit(config.max_parallel)
        self.iteration = iteration
        self.progress: Any = progress_callback or self._default_progress
        self._pairs_done = 0

    @property
    def pairs(self) -> list[tuple[Test, Tool]]:
        """All (test, tool) pairs in test-major declaration order."""
        return [(test, tool) for test in self.config.tests for tool in self.config.tools]

    def run(self) -> BenchifyResults:
        """Execute the full benchmark.

        Raises:
            PreparationError: If ``parallel_prep`` is set and any
                preparation step fails.
        """
        pairs = self.pairs
        self._pairs_done = 0
        if self.config.parallel_prep:
            self._prepare_all(pairs)

        outcomes: list[PairOutcome] = []
        current_test: str | None = None
        for test, tool in pairs:
            if test.name != current_test:
                log.info("Running tests for %s", test.name)
                current_test = test.name
            outcomes.append(self._benchmark_pair(test, tool))
            self._pairs_done += 1

        return BenchifyResults(outcomes=tuple(outcomes), main_tool=self.config.main_tool)

    def _prepare_all(self, pairs: list[tuple[Test, Tool]]) -> None:
        """Run every preparation step concurrently and wait for all of them."""
        log.info("Preparing %d pairs in parallel (limit %d)", len(pairs), self.limiter.limit)

        def _prepare(pair: tuple[Test, Tool]) -> str | None:
            test, tool = pair
            try:
                self.limiter.run_exclusively(self._prepare_pair, test, tool)
            except (ExecutionError, ConfigError) as exc:
                plog = pair_logger("runner", test=test.name, tool=tool.name, tag=test.tag)
                plog.error("Preparation failed: %s", exc)
                return str(exc)
            return None

        with ThreadPoolExecutor(max_workers=max(len(pairs), 1)) as pool:
            failures = [err for err in pool.map(_prepare, pairs) if err is not None]

        if failures:
            raise PreparationError(
                f"Preparation failed for {len(failures)} of {len(pairs)} pairs: {failures[0]}"
            )

    def _prepare_pair(self, test: Test, tool: Tool) -> None:
        runner = tool.runner_for(test.tag)
        if runner.prepare:
            self._emit("prepare", test, tool)
            run_step("Preparation", tool, test, runner.prepare)

    def _cleanup_pair(self, test: Test, tool: Tool) -> None:
        runner = tool.runner_for(test.tag)
        if runner.cleanup:
            self._emit("cleanup", test, tool)
            self.limiter.run_exclusively(run_step, "Clean up", tool, test, runner.cleanup)

    def _benchmark_pair(self, test: Test, tool: Tool) -> PairOutcome:
        """Prepare, sample and clean up one pair, capturing any failure."""
        plog = pair_logger("runner", test=test.name, tool=tool.name, tag=test.tag)
        plog.info("Testing tool %s", tool.name)
        phase = "preparation"
        try:
            plog.debug("Runner: %r", tool.runner_for(test.tag))
            if not self.config.parallel_prep:
                self.limiter.run_exclusively(self._prepare_pair, test, tool)

            phase = "measurement"
            sampler = AdaptiveSampler(
                lambda: self.iteration(tool, test),
                min_runs=self.config.min_runs,
                max_runs=self.config.max_runs,
                warmup=self.config.warmup_for(tool, test),
                progress=lambda p, done, total: self._emit(p, test, tool, done, total),
            )
            samples = sampler.sample()

            phase = "cleanup"
            self._cleanup_pair(test, tool)
        except (ExecutionError, ConfigError) as exc:
            plog.error("failed during %s: %s", phase, exc)
            self._emit("failed", test, tool, detail=str(exc))
            return PairOutcome.failure(test.name, tool.name, str(exc))

        stats = compute_statistics(samples)
        self._emit(
            "done",
            test,
            tool,
            stats.count,
            stats.count,
            detail=f"Mean {stats.mean * 1000:.3f} ms in {stats.count} runs",
        )
        return PairOutcome.success(test.name, tool.name, samples)

    def _emit(
        self,
        phase: str,
        test: Test,
        tool: Tool,
        completed: int = 0,
        total: int = 0,
        *,
        detail: str = "",
    ) -> None:
        self.progress(
            BenchProgress(
                phase=phase,
                test=test.name,
                tool=tool.name,
                completed=completed,
                total=total,
                pairs_done=self._pairs_done,
                pairs_total=len(self.config.tests) * len(self.config.tools),
                detail=detail,
            )
        )

    @staticmethod
    def _default_progress(progress: BenchProgress) -> None:
        """Default progress callback: log milestones, keep per-run noise at DEBUG."""
        prefix = f"[{progress.test}] [{progress.tool}]"
        if progress.phase in ("done", "failed"):
            status = progress.detail or progress.phase
            log.info(
                "  [%d/%d] %s %s",
                progress.pairs_done + 1,
                progress.pairs_total,
                prefix,
                status,
            )
        elif progress.phase in ("prepare", "cleanup"):
            log.debug("%s %s", prefix, progress.phase)
        else:
            log.debug(
                "%s %s %d/%d",
                prefix,
                progress.phase,
                progress.completed,
                progress.total,
            )
