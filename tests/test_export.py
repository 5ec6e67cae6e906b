"""Tests for benchify.export — result files."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from benchify.export import export_csv, export_markdown, save_results, summary_filename
from benchify_test_helpers import make_results


class TestExportCsv(unittest.TestCase):
    def test_long_format(self) -> None:
        results = make_results({("t", "a"): [0.5, 0.25], ("t", "b"): "failed", ("u", "a"): [1.0]})
        lines = export_csv(results).splitlines()
        self.assertEqual(
            lines,
            [
                "Test,Executor,Timing (s)",
                "t,a,0.5",
                "t,a,0.25",
                "u,a,1.0",
            ],
        )

    def test_quotes_commas(self) -> None:
        results = make_results({("a,b", "x"): [0.1]})
        self.assertIn('"a,b",x,0.1', export_csv(results))


class TestSummaryFiles(unittest.TestCase):
    def test_filename(self) -> None:
        self.assertEqual(summary_filename("small"), "summary_small.md")
        self.assertEqual(summary_filename("a/b\\c"), "summary_a_b_c.md")

    def test_markdown_heading(self) -> None:
        results = make_results({("t", "a"): [0.1]})
        text = export_markdown(results, "t")
        self.assertTrue(text.startswith("# Summary of runs for t\n\n|"))


class TestSaveResults(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.base = Path(self.tmpdir.name)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_writes_all_files(self) -> None:
        results = make_results({("t1", "a"): [0.1], ("t2", "a"): "boom"}, main_tool="a")
        out = self.base / "nested" / "results"
        written = save_results(results, out)

        self.assertEqual(
            [p.name for p in written],
            ["data.csv", "results.json", "summary_t1.md", "summary_t2.md"],
        )
        for path in written:
            self.assertTrue(path.is_file())

        data = json.loads((out / "results.json").read_text())
        self.assertEqual(data["main_tool"], "a")
        self.assertEqual(data["outcomes"][1]["error"], "boom")
        self.assertIn("FAIL", (out / "summary_t2.md").read_text())

    def test_existing_directory(self) -> None:
        results = make_results({("t", "a"): [0.1]})
        save_results(results, self.base)
        save_results(results, self.base)
        self.assertTrue((self.base / "data.csv").exists())


if __name__ == "__main__":
    unittest.main()
