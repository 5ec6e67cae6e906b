"""Write benchmark results to a results directory.

Files produced::

    data.csv            one row per measured sample (long format)
    summary_<test>.md   the markdown comparison table for each test
    results.json        all outcomes, samples and statistics
"""

from __future__ import annotations

import csv
import io
import json
import re
from pathlib import Path

from benchify.display import format_summary
from benchify.logging import get_logger
from benchify.results import BenchifyResults

log = get_logger("export")

_UNSAFE_CHARS = re.compile(r"[\\/]")


def export_csv(results: BenchifyResults) -> str:
    """Export every sample of every successful pair as CSV.

    Columns: Test, Executor, Timing (s)
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(["Test", "Executor", "Timing (s)"])
    for outcome in results.outcomes:
        if outcome.samples is None:
            continue
        for sample in outcome.samples:
            writer.writerow([outcome.test, outcome.tool, repr(sample)])
    return output.getvalue()


def summary_filename(test: str) -> str:
    """File name for a test's summary, with path separators neutralised."""
    safe = _UNSAFE_CHARS.sub("_", test)
    return f"summary_{safe}.md"


def export_markdown(results: BenchifyResults, test: str) -> str:
    """Markdown document for one test's summary."""
    return f"# Summary of runs for {test}\n\n{format_summary(results, test)}"


def save_results(results: BenchifyResults, results_dir: Path) -> list[Path]:
    """Write all result files into *results_dir*, creating it if needed.

    Returns:
        The paths written, in order.

    Raises:
        OSError: If the directory or any file cannot be written.
    """
    results_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []

    data_path = results_dir / "data.csv"
    data_path.write_text(export_csv(results))
    written.append(data_path)

    json_path = results_dir / "results.json"
    json_path.write_text(json.dumps(results.to_dict(), indent=2) + "\n")
    written.append(json_path)

    for test in results.test_names:
        path = results_dir / summary_filename(test)
        path.write_text(export_markdown(results, test))
        written.append(path)

    log.info("Wrote %d files to %s", len(written), results_dir)
    return written
