"""Logging setup for benchify.

The ``benchify`` logger gets a console handler whose verbosity follows
the CLI flags and an optional file handler that always logs at DEBUG, so
that a failed pair can be diagnosed from the log without re-running the
benchmark.  Messages about one (test, tool) pair go through a
:class:`PairLogger`, which tags every record with the pair and its tag.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping

_LOGGER_NAME = "benchify"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"


def _console_level(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the top-level benchify logger.

    Calling it again replaces the handlers installed by a previous call.

    Args:
        verbose: Console shows DEBUG records.
        quiet: Console shows WARNING and above.  Ignored if *verbose*.
        log_file: Also write every record, at DEBUG, to this path.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(_console_level(verbose, quiet))
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a named child logger under the benchify namespace."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


class PairLogger(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger adapter for messages about one (test, tool) pair.

    Messages are prefixed with ``[test] [tool] (tag T)`` and the record
    carries ``test``, ``tool`` and ``tag`` attributes for handlers that
    want them.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        pair = dict(self.extra or {})
        kwargs["extra"] = {**pair, **kwargs.get("extra", {})}
        return f"[{pair['test']}] [{pair['tool']}] (tag {pair['tag']}) {msg}", kwargs


def pair_logger(name: str, *, test: str, tool: str, tag: str) -> PairLogger:
    """A :class:`PairLogger` on top of ``get_logger(name)``."""
    return PairLogger(get_logger(name), {"test": test, "tool": tool, "tag": tag})
