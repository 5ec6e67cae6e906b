"""Substitution of test details into runner commands.

Runner commands may reference a small, closed set of tokens:

    {NAME}  name of the test
    {TAG}   the test's tag
    {FILE}  the test's input file (left untouched if the test has none)
    {...}   the test's extra arguments

In shell strings, ``"{...}"`` and ``'{...}'`` expand to the raw
space-joined arguments, while a bare ``{...}`` expands to the
individually quoted arguments.  In argument lists, an element that is
exactly ``{...}`` (or ``...``) is replaced by the extra arguments.
"""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from benchify.config import Runner, Test

FILE_TOKEN = "{FILE}"
EXTRA_TOKEN = "{...}"


def interpolate(template: str, test: Test) -> str:
    """Return *template* with every token replaced for *test*."""
    extra = list(test.extra_args)
    joined = " ".join(extra)
    quoted = " ".join(shlex.quote(a) for a in extra)

    text = (
        template.replace("{NAME}", test.name)
        .replace("{TAG}", test.tag)
        .replace(f'"{EXTRA_TOKEN}"', joined)
        .replace(f"'{EXTRA_TOKEN}'", joined)
        .replace(EXTRA_TOKEN, quoted)
    )
    if test.file is not None:
        text = text.replace(FILE_TOKEN, test.file)
    return text


def interpolate_args(args: list[str], test: Test) -> list[str]:
    """Interpolate each element of an argument list.

    ``{...}`` and ``...`` elements are spliced into the extra arguments
    verbatim (no quoting is needed since no shell is involved).
    """
    result: list[str] = []
    for arg in args:
        if arg in (EXTRA_TOKEN, "..."):
            result.extend(test.extra_args)
        else:
            result.append(interpolate(arg, test))
    return result


def runner_needs_file(runner: Runner) -> bool:
    """Whether any of the runner's commands references ``{FILE}``."""
    commands = [runner.prepare, runner.cleanup, runner.run_cmd, *(runner.run_args or [])]
    return any(cmd is not None and FILE_TOKEN in cmd for cmd in commands)
