"""Tests for benchify.cli — the Click entry point."""

from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path
from typing import Any

import yaml
from click.testing import CliRunner

from benchify import __version__
from benchify.cli import main


def _config(results_dir: Path, **kwargs: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "benchify_version": 1,
        "tags": ["sh"],
        "min_runs": 2,
        "max_runs": 2,
        "results_dir": str(results_dir),
        "tools": [
            {"name": "quick", "program": "sh", "runners": {"sh": {"run_args": ["-c", "true"]}}},
            {"name": "shell", "program": "sh", "runners": {"sh": {"run_cmd": "true {...}"}}},
        ],
        "tests": [{"name": "noop", "tag": "sh", "extra_args": ["x"]}],
    }
    data.update(kwargs)
    return data


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.base = Path(self.tmpdir.name)
        self.config_path = self.base / "benchify.yaml"

    def tearDown(self) -> None:
        logger = logging.getLogger("benchify")
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        self.tmpdir.cleanup()

    def write(self, data: dict[str, Any]) -> None:
        self.config_path.write_text(yaml.safe_dump(data))

    def invoke(self, *args: str) -> Any:
        return CliRunner().invoke(main, list(args))


class TestHelp(CliTestCase):
    def test_help(self) -> None:
        result = self.invoke("--help")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("BENCHIFY_YAML", result.output)
        self.assertIn("--parallel-prep", result.output)
        self.assertIn("--main-tool", result.output)
        self.assertIn("--template", result.output)

    def test_version(self) -> None:
        result = self.invoke("--version")
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.output)


class TestTemplate(CliTestCase):
    def test_writes_template(self) -> None:
        result = self.invoke("--template", str(self.config_path))
        self.assertEqual(result.exit_code, 0)
        self.assertIn("benchify_version: 1", self.config_path.read_text())

    def test_refuses_to_overwrite(self) -> None:
        self.config_path.write_text("keep me\n")
        result = self.invoke("--template", str(self.config_path))
        self.assertEqual(result.exit_code, 1)
        self.assertIn("already exists", result.output)
        self.assertEqual(self.config_path.read_text(), "keep me\n")


class TestConfigErrors(CliTestCase):
    def test_missing_config(self) -> None:
        result = self.invoke(str(self.base / "missing.yaml"))
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Configuration not found", result.output)

    def test_invalid_config(self) -> None:
        self.write(_config(self.base / "out", min_runs=5, max_runs=2))
        result = self.invoke(str(self.config_path), "--skip-checks")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error: min_runs:", result.output)
        self.assertFalse((self.base / "out").exists())

    def test_cli_override_fixes_config(self) -> None:
        self.write(_config(self.base / "out", min_runs=5, max_runs=2))
        result = self.invoke(str(self.config_path), "--skip-checks", "-q", "--min-runs", "1")
        self.assertEqual(result.exit_code, 0, result.output)

    def test_malformed_yaml(self) -> None:
        self.config_path.write_text("tools: [\n")
        result = self.invoke(str(self.config_path))
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.output)


class TestRun(CliTestCase):
    def test_end_to_end(self) -> None:
        out = self.base / "results"
        self.write(_config(out))
        result = self.invoke(str(self.config_path), "-q", "--by-tool")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("# noop", result.output)
        self.assertIn("quick", result.output)
        self.assertIn("shell", result.output)
        self.assertIn("2 runs", result.output)

        self.assertTrue((out / "data.csv").is_file())
        self.assertTrue((out / "results.json").is_file())
        self.assertTrue((out / "summary_noop.md").is_file())
        rows = (out / "data.csv").read_text().splitlines()
        self.assertEqual(len(rows), 1 + 2 * 2)

    def test_results_dir_override(self) -> None:
        self.write(_config(self.base / "unused"))
        other = self.base / "other"
        result = self.invoke(str(self.config_path), "-q", "--results-dir", str(other))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertTrue((other / "data.csv").is_file())
        self.assertFalse((self.base / "unused").exists())

    def test_failed_parallel_prep_exits(self) -> None:
        data = _config(self.base / "out", parallel_prep=True)
        data["tools"][0]["runners"]["sh"]["prepare"] = "exit 1"
        self.write(data)
        result = self.invoke(str(self.config_path), "-q")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Preparation failed", result.output)
        self.assertFalse((self.base / "out").exists())

    def test_failed_pair_still_reported(self) -> None:
        data = _config(self.base / "out")
        data["tools"][0]["runners"]["sh"]["run_args"] = ["-c", "exit 7"]
        self.write(data)
        result = self.invoke(str(self.config_path), "-q")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("FAIL", result.output)
        self.assertIn("status code 7", result.output)

    def test_unwritable_results_dir(self) -> None:
        blocker = self.base / "blocker"
        blocker.write_text("not a directory\n")
        self.write(_config(blocker / "results"))
        result = self.invoke(str(self.config_path), "-q")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error: could not save results", result.output)
        self.assertIsInstance(result.exception, SystemExit)

    def test_log_file(self) -> None:
        self.write(_config(self.base / "out"))
        log_path = self.base / "run.log"
        result = self.invoke(str(self.config_path), "-q", "--log-file", str(log_path))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Testing tool quick", log_path.read_text())


if __name__ == "__main__":
    unittest.main()
