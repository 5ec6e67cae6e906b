"""Process execution with wall-clock timing.

These are the blocking primitives the runner builds on: run a program
(argument list) or a shell command, optionally feeding its standard input
from another shell command, and report exit status plus elapsed wall
time.  Output is captured as raw bytes, since benchmarked tools often
write binary data.  Failing to spawn a process raises :class:`OSError`
to the caller.
"""

from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass

from benchify.logging import get_logger

log = get_logger("timing")


# ---------------------------------------------------------------------------
# TimedResult
# ---------------------------------------------------------------------------


@dataclass
class TimedResult:
    """Result of a timed subprocess execution."""

    wall_time_s: float
    exit_code: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def stderr_tail(self) -> str:
        """Last non-empty line of stderr, decoded leniently ("" if none)."""
        lines = self.stderr.decode("utf-8", errors="replace").strip().splitlines()
        return lines[-1] if lines else ""


# ---------------------------------------------------------------------------
# Core timing implementation
# ---------------------------------------------------------------------------


def run_timed(
    command: str | list[str],
    *,
    stdin_command: str | None = None,
) -> TimedResult:
    """Execute a command and measure its wall-clock duration.

    Args:
        command: Argument list (executed directly) or shell command
            string (executed with ``sh -c``).
        stdin_command: Shell command whose standard output becomes the
            standard input of *command*.  Without it, stdin is
            ``/dev/null``.

    Returns:
        TimedResult with the elapsed time and captured output.  Only the
        lifetime of *command* is timed, not the feeder's start-up.

    Raises:
        OSError: If either process cannot be spawned.
    """
    feeder: subprocess.Popen[bytes] | None = None
    if stdin_command is not None:
        log.debug("Feeding stdin from `%s`", stdin_command)
        feeder = subprocess.Popen(
            stdin_command,
            shell=True,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
        )
    stdin = feeder.stdout if feeder is not None else subprocess.DEVNULL

    try:
        wall_start = time.monotonic()
        proc = subprocess.Popen(
            command,
            shell=isinstance(command, str),
            stdin=stdin,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        # The child owns the read end of the pipe now.
        if feeder is not None and feeder.stdout is not None:
            feeder.stdout.close()
        stdout, stderr = proc.communicate()
        wall_time = time.monotonic() - wall_start
    finally:
        if feeder is not None:
            _reap_feeder(feeder)

    return TimedResult(
        wall_time_s=wall_time,
        exit_code=proc.returncode,
        stdout=stdout,
        stderr=stderr,
    )


def _reap_feeder(feeder: subprocess.Popen[bytes]) -> None:
    """Wait for the stdin feeder, killing it if it outlives the program."""
    if feeder.stdout is not None and not feeder.stdout.closed:
        feeder.stdout.close()
    try:
        feeder.wait(timeout=5)
    except subprocess.TimeoutExpired:
        feeder.kill()
        feeder.wait()


# ---------------------------------------------------------------------------
# Untimed helpers
# ---------------------------------------------------------------------------


def run_shell(command: str) -> int:
    """Run a shell command with all stdio discarded and return its exit code.

    Raises:
        OSError: If the shell cannot be spawned.
    """
    log.debug("Running `%s`", command)
    proc = subprocess.run(
        command,
        shell=True,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    return proc.returncode


def check_executable(program: str, args: list[str] | None = None) -> bool:
    """Return True if ``program args...`` can be spawned.

    Only spawning matters; the exit status is ignored, since many tools
    exit non-zero for ``--version`` style probes.
    """
    try:
        subprocess.run(
            [program, *(args or [])],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=30,
        )
    except subprocess.TimeoutExpired:
        log.debug("%s spawned but did not exit; treating as executable", program)
    except OSError as exc:
        log.debug("Could not execute %s %s: %s", program, args or [], exc)
        return False
    return True
