"""Summary formatting for benchmark results.

Produces the markdown tables printed after a run and written to
``summary_<test>.md``: one row per tool with mean ± standard deviation
in milliseconds and the ratio to the baseline tool, whose name is shown
in bold.
"""

from __future__ import annotations

from benchify.results import BenchifyResults
from benchify.stats import Statistics

_HEADER = ("", "Mean (ms)", "StdDev (ms)", "Ratio")


def _ms(seconds: float) -> str:
    return f"{seconds * 1000:.3f}"


def summary_rows(results: BenchifyResults, test: str) -> list[tuple[str, str, str, str]]:
    """Cells (name, mean, stdev, ratio) for each tool of *test*.

    Failed pairs show ``FAIL`` in place of numbers and the error text in
    the ratio column.  Ratios are ``N/A`` when no baseline exists.
    """
    baseline = results.baseline_for(test)
    ratios = results.ratios_for(test)
    entries = dict(results.by_test()).get(test, [])

    rows: list[tuple[str, str, str, str]] = []
    for tool, stats in entries:
        name = f"**{tool}**" if tool == baseline else tool
        if isinstance(stats, Statistics):
            ratio = f"{ratios[tool]:.3f}" if tool in ratios else "N/A"
            rows.append((name, _ms(stats.mean), _ms(stats.stdev), ratio))
        else:
            rows.append((name, "FAIL", "FAIL", stats.replace("\n", " ")))
    return rows


def format_summary(results: BenchifyResults, test: str) -> str:
    """Format the markdown comparison table for one test."""
    rows = summary_rows(results, test)
    widths = [max(len(r[i]) for r in [_HEADER, *rows]) for i in range(4)]
    nw, mw, sw, rw = widths

    lines = [
        f"| {_HEADER[0]:<{nw}} | {_HEADER[1]:<{mw}} ± {_HEADER[2]:<{sw}} | {_HEADER[3]:<{rw}} |",
        f"|:{'-' * nw}-|-{'-' * mw}---{'-' * sw}:|-{'-' * rw}:|",
    ]
    for name, mean, stdev, ratio in rows:
        lines.append(f"| {name:<{nw}} | {mean:>{mw}} ± {stdev:>{sw}} | {ratio:>{rw}} |")
    return "\n".join(lines) + "\n"


def format_results(results: BenchifyResults) -> str:
    """Format every test's summary under a ``# <test>`` heading."""
    sections = []
    for test in results.test_names:
        sections.append(f"# {test}\n\n{format_summary(results, test)}")
    return "\n".join(sections)


def format_tool_overview(results: BenchifyResults) -> str:
    """List each tool's successful tests with mean and run count."""
    lines: list[str] = []
    for tool, entries in results.by_tool():
        lines.append(f"{tool}:")
        width = max(len(test) for test, _ in entries)
        for test, stats in entries:
            lines.append(
                f"  {test:<{width}}  {_ms(stats.mean):>10} ms "
                f"(min {_ms(stats.min)}, max {_ms(stats.max)}, {stats.count} runs)"
            )
    return "\n".join(lines)
