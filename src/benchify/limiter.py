"""Process-wide gate for CPU-heavy child processes.

A :class:`ConcurrencyLimiter` bounds how many callers may be inside
:meth:`ConcurrencyLimiter.run_exclusively` at once.  It only knows about
work started through it in this process, which is enough to keep a burst
of parallel preparation steps from oversubscribing the machine.

The limiter is a plain object: the runner owns one and hands it to
whatever needs it, so tests can build as many independent limiters as
they like.
"""

from __future__ import annotations

import os
import threading
from typing import Callable, TypeVar

from benchify.logging import get_logger

log = get_logger("limiter")

T = TypeVar("T")

DEFAULT_POLL_INTERVAL = 0.1


def available_cpus() -> int:
    """Number of processing units available on this host (at least 1)."""
    return os.cpu_count() or 1


class ConcurrencyLimiter:
    """Bound the number of concurrently running callables.

    Invariant: ``in_use <= limit <= total`` at all times.

    Args:
        limit: Initial ceiling.  Defaults to *total*.  Clamped into
            ``[1, total]``.
        poll_interval: Longest time a waiting caller sleeps before
            re-checking for a free slot.
        total: Number of processing units on the host.  Defaults to
            :func:`available_cpus`.
    """

    def __init__(
        self,
        limit: int | None = None,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        total: int | None = None,
    ) -> None:
        self._total = max(total if total is not None else available_cpus(), 1)
        self._limit = self._total if limit is None else min(max(limit, 1), self._total)
        self._in_use = 0
        self._poll_interval = poll_interval
        self._cond = threading.Condition(threading.Lock())

    @property
    def total(self) -> int:
        return self._total

    @property
    def limit(self) -> int:
        with self._cond:
            return self._limit

    @property
    def in_use(self) -> int:
        with self._cond:
            return self._in_use

    def set_limit(self, n: int) -> int:
        """Change the ceiling and return the effective value.

        The ceiling never drops below the number of slots currently in
        use and never exceeds the number of processing units.
        """
        with self._cond:
            self._limit = min(self._total, max(n, self._in_use, 1))
            effective = self._limit
            self._cond.notify_all()
        if effective != n:
            log.debug("Requested limit %d clamped to %d", n, effective)
        return effective

    def _acquire(self) -> None:
        with self._cond:
            while self._in_use >= self._limit:
                self._cond.wait(self._poll_interval)
            self._in_use += 1

    def _release(self) -> None:
        with self._cond:
            self._in_use -= 1
            self._cond.notify()

    def run_exclusively(self, fn: Callable[..., T], *args: object, **kwargs: object) -> T:
        """Wait for a free slot, then call ``fn(*args, **kwargs)``.

        The slot is released however *fn* exits, and its result (or
        exception) is passed through unchanged.  The internal lock is
        not held while *fn* runs.
        """
        self._acquire()
        try:
            return fn(*args, **kwargs)
        finally:
            self._release()
