"""Exception types shared across benchify.

Per-pair problems (:class:`ExecutionError`, or a :class:`ConfigError`
from a malformed runner) are caught by the runner and stored in that
pair's outcome.  A :class:`ConfigError` while loading the file and a
:class:`PreparationError` abort the whole run.
"""

from __future__ import annotations


class BenchifyError(Exception):
    """Base class for all benchify errors."""


class ConfigError(BenchifyError, ValueError):
    """The configuration file is malformed or violates an invariant."""


class ExecutionError(BenchifyError):
    """A command for one (test, tool) pair could not complete."""


class PreparationError(BenchifyError):
    """One or more preparation steps failed during parallel preparation."""
