"""Benchmark configuration loading and validation.

Handles:
- Loading a ``benchify.yaml`` file into :class:`BenchifyConfig`.
- Applying CLI overrides on top of file values.
- Sanity checks (tag coverage, runner shape, program existence, test
  files) collected as a list of :class:`ValidationError`.
- Writing the commented template configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from benchify.errors import ConfigError
from benchify.interpolate import runner_needs_file
from benchify.logging import get_logger
from benchify.sampler import DEFAULT_MAX_RUNS, DEFAULT_MIN_RUNS
from benchify.timing import check_executable

log = get_logger("config")

SUPPORTED_VERSION = 1
DEFAULT_RESULTS_DIR = Path("./benchify-results/")


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Runner:
    """How one tool is invoked for tests of one tag."""

    prepare: str | None = None
    run_args: list[str] | None = None
    run_cmd: str | None = None
    cleanup: str | None = None
    warmup: int | None = None

    @property
    def well_formed(self) -> bool:
        """Exactly one of ``run_args`` and ``run_cmd`` is set."""
        return (self.run_args is None) != (self.run_cmd is None)


@dataclass(frozen=True)
class Tool:
    """An external program under comparison."""

    name: str
    program: str
    install_instructions: str = ""
    existence_confirmation: list[str] | None = None
    runners: dict[str, Runner] = field(default_factory=dict)

    def runner_for(self, tag: str) -> Runner:
        try:
            return self.runners[tag]
        except KeyError:
            raise ConfigError(f"Tool '{self.name}' has no runner for tag '{tag}'") from None


@dataclass(frozen=True)
class Test:
    """A named workload applied to every tool."""

    __test__ = False  # keep pytest from collecting this class

    name: str
    tag: str
    file: str | None = None
    extra_args: tuple[str, ...] = ()
    stdin_from_cmd: str | None = None
    stdout_is_timing: bool = False


@dataclass
class BenchifyConfig:
    """Resolved configuration for a benchmark run."""

    benchify_version: int = SUPPORTED_VERSION
    tags: list[str] = field(default_factory=list)
    tools: list[Tool] = field(default_factory=list)
    tests: list[Test] = field(default_factory=list)

    # Iteration control
    warmup: int | None = None
    min_runs: int = DEFAULT_MIN_RUNS
    max_runs: int = DEFAULT_MAX_RUNS

    # Execution strategy
    parallel_prep: bool = False
    max_parallel: int | None = None  # None = number of CPUs

    # Output
    main_tool: str | None = None
    results_dir: Path = field(default_factory=lambda: DEFAULT_RESULTS_DIR)

    def tool(self, name: str) -> Tool | None:
        for t in self.tools:
            if t.name == name:
                return t
        return None

    def warmup_for(self, tool: Tool, test: Test) -> int:
        """Per-runner warmup, falling back to the global one."""
        runner_warmup = tool.runner_for(test.tag).warmup
        if runner_warmup is not None:
            return runner_warmup
        return self.warmup or 0


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _expect(value: Any, kind: type | tuple[type, ...], where: str) -> Any:
    if not isinstance(value, kind):
        names = kind.__name__ if isinstance(kind, type) else "/".join(k.__name__ for k in kind)
        raise ConfigError(f"{where} must be of type {names}, got {type(value).__name__}")
    return value


def _optional(data: dict[str, Any], key: str, kind: type, where: str) -> Any:
    value = data.get(key)
    if value is None:
        return None
    return _expect(value, kind, f"{where}.{key}")


def _string_list(value: Any, where: str) -> list[str]:
    _expect(value, list, where)
    return [str(_expect(v, (str, int, float), f"{where}[]")) for v in value]


def _parse_runner(data: Any, where: str) -> Runner:
    data = _expect(data or {}, dict, where)
    run_args = data.get("run_args")
    return Runner(
        prepare=_optional(data, "prepare", str, where),
        run_args=_string_list(run_args, f"{where}.run_args") if run_args is not None else None,
        run_cmd=_optional(data, "run_cmd", str, where),
        cleanup=_optional(data, "cleanup", str, where),
        warmup=_optional(data, "warmup", int, where),
    )


def _parse_tool(data: Any, index: int) -> Tool:
    where = f"tools[{index}]"
    data = _expect(data, dict, where)
    for key in ("name", "program"):
        if key not in data:
            raise ConfigError(f"{where} is missing required field '{key}'")
    name = str(data["name"])
    runners_data = _expect(data.get("runners") or {}, dict, f"{where}.runners")
    confirmation = data.get("existence_confirmation")
    return Tool(
        name=name,
        program=str(data["program"]),
        install_instructions=str(data.get("install_instructions", "")),
        existence_confirmation=(
            _string_list(confirmation, f"{where}.existence_confirmation")
            if confirmation is not None
            else None
        ),
        runners={
            str(tag): _parse_runner(r, f"{where}.runners.{tag}") for tag, r in runners_data.items()
        },
    )


def _parse_test(data: Any, index: int) -> Test:
    where = f"tests[{index}]"
    data = _expect(data, dict, where)
    for key in ("name", "tag"):
        if key not in data:
            raise ConfigError(f"{where} is missing required field '{key}'")
    extra = data.get("extra_args")
    return Test(
        name=str(data["name"]),
        tag=str(data["tag"]),
        file=str(data["file"]) if data.get("file") is not None else None,
        extra_args=tuple(_string_list(extra, f"{where}.extra_args")) if extra else (),
        stdin_from_cmd=_optional(data, "stdin_from_cmd", str, where),
        stdout_is_timing=bool(data.get("stdout_is_timing", False)),
    )


def config_from_dict(
    data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> BenchifyConfig:
    """Build a BenchifyConfig from a parsed YAML mapping.

    CLI overrides take precedence over file values for: warmup,
    min_runs, max_runs, parallel_prep, max_parallel, main_tool and
    results_dir.  Override values of None are ignored.

    Raises:
        ConfigError: If a field has the wrong shape.
    """
    data = _expect(data, dict, "configuration")
    cli = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    def pick(key: str, kind: type, default: Any) -> Any:
        if key in cli:
            return cli[key]
        value = data.get(key)
        if value is None:
            return default
        return _expect(value, kind, key)

    tags = data.get("tags") or []
    results_dir = pick("results_dir", str, None)

    return BenchifyConfig(
        benchify_version=_expect(data.get("benchify_version", 0), int, "benchify_version"),
        tags=_string_list(tags, "tags"),
        tools=[_parse_tool(t, i) for i, t in enumerate(_expect(data.get("tools") or [], list, "tools"))],
        tests=[_parse_test(t, i) for i, t in enumerate(_expect(data.get("tests") or [], list, "tests"))],
        warmup=pick("warmup", int, None),
        min_runs=pick("min_runs", int, DEFAULT_MIN_RUNS),
        max_runs=pick("max_runs", int, DEFAULT_MAX_RUNS),
        parallel_prep=bool(pick("parallel_prep", bool, False)),
        max_parallel=pick("max_parallel", int, None),
        main_tool=pick("main_tool", str, None),
        results_dir=Path(results_dir) if results_dir is not None else DEFAULT_RESULTS_DIR,
    )


def load_config(
    path: Path,
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> BenchifyConfig:
    """Load and parse a benchify YAML file.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ConfigError: If the file is not valid YAML or has the wrong shape.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a YAML mapping, got {type(data).__name__}")

    return config_from_dict(data, cli_overrides=cli_overrides)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str


def validate_config(
    config: BenchifyConfig,
    *,
    check_programs: bool = True,
    check_files: bool = True,
) -> list[ValidationError]:
    """Validate a benchmark configuration.

    Returns a list of validation errors.  Empty list means valid.
    *check_programs* and *check_files* control the checks that touch the
    host (spawning each tool, looking for test files).
    """
    errors: list[ValidationError] = []

    if config.benchify_version != SUPPORTED_VERSION:
        errors.append(
            ValidationError(
                field="benchify_version",
                message=(
                    f"Found config for version {config.benchify_version}. "
                    f"Currently only version {SUPPORTED_VERSION} is supported."
                ),
            )
        )

    if config.min_runs < 1:
        errors.append(
            ValidationError(
                field="min_runs",
                message=f"Min runs must be at least 1 (got {config.min_runs}).",
            )
        )
    if config.min_runs > config.max_runs:
        errors.append(
            ValidationError(
                field="min_runs",
                message=(
                    f"Min runs ({config.min_runs}) is greater than max runs ({config.max_runs})."
                ),
            )
        )

    if config.warmup is not None and config.warmup < 0:
        errors.append(
            ValidationError(
                field="warmup",
                message=f"Warmup runs cannot be negative (got {config.warmup}).",
            )
        )

    if config.max_parallel is not None and config.max_parallel < 1:
        errors.append(
            ValidationError(
                field="max_parallel",
                message=f"max_parallel must be at least 1 (got {config.max_parallel}).",
            )
        )

    if config.results_dir.is_file():
        errors.append(
            ValidationError(
                field="results_dir",
                message=f"Results dir {config.results_dir} already exists as a file.",
            )
        )

    tool_names = [t.name for t in config.tools]
    if not config.tools:
        errors.append(ValidationError(field="tools", message="No tools defined."))
    if not config.tests:
        errors.append(ValidationError(field="tests", message="No tests defined."))
    for kind, names in (("tool", tool_names), ("test", [t.name for t in config.tests])):
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            errors.append(
                ValidationError(
                    field=f"{kind}s",
                    message=f"Duplicate {kind} names: {', '.join(duplicates)}",
                )
            )

    if config.main_tool is not None and config.main_tool not in tool_names:
        errors.append(
            ValidationError(
                field="main_tool",
                message=(
                    f"Main tool '{config.main_tool}' is not one of the known tools. "
                    f"Expected one of: {', '.join(tool_names)}"
                ),
            )
        )

    declared = set(config.tags)
    tag_needs_file_due_to: dict[str, list[str]] = {}

    for tool in config.tools:
        log.debug("Confirming sanity for tool %s", tool.name)

        for tag, runner in tool.runners.items():
            if not runner.well_formed:
                errors.append(
                    ValidationError(
                        field=f"tools.{tool.name}.runners.{tag}",
                        message=(
                            f"Runner '{tag}' for '{tool.name}' should have exactly one of "
                            f"run_cmd and run_args set. Got {runner.run_cmd!r} and "
                            f"{runner.run_args!r} respectively."
                        ),
                    )
                )

        tool_tags = set(tool.runners)
        missing = sorted(declared - tool_tags)
        extra = sorted(tool_tags - declared)
        if missing:
            errors.append(
                ValidationError(
                    field=f"tools.{tool.name}.runners",
                    message=f"Not all runners for '{tool.name}' have been defined. "
                    f"Missing: {', '.join(missing)}",
                )
            )
        if extra:
            errors.append(
                ValidationError(
                    field=f"tools.{tool.name}.runners",
                    message=f"Invalid set of runner tags found for '{tool.name}'. "
                    f"Found extra: {', '.join(extra)}",
                )
            )

        if check_programs and not check_executable(tool.program, tool.existence_confirmation):
            errors.append(
                ValidationError(
                    field=f"tools.{tool.name}.program",
                    message=(
                        f"Could not confirm that '{tool.name}' can be executed.\n"
                        f"\tSuggested install instructions:\n"
                        f"\t\t{tool.install_instructions}"
                    ),
                )
            )

        for tag in sorted(declared & tool_tags):
            if runner_needs_file(tool.runners[tag]):
                tag_needs_file_due_to.setdefault(tag, []).append(tool.name)

    for test in config.tests:
        log.debug("Confirming sanity for test %s", test.name)

        if test.tag not in declared:
            errors.append(
                ValidationError(
                    field=f"tests.{test.name}.tag",
                    message=(
                        f"Invalid tag '{test.tag}' for test '{test.name}'. "
                        f"Expected one of: {', '.join(sorted(declared))}"
                    ),
                )
            )

        if test.file is not None:
            if check_files and not Path(test.file).exists():
                errors.append(
                    ValidationError(
                        field=f"tests.{test.name}.file",
                        message=(
                            f"Could not find file {test.file} for test '{test.name}'. "
                            f"Are you sure it exists?"
                        ),
                    )
                )
        elif test.tag in tag_needs_file_due_to:
            errors.append(
                ValidationError(
                    field=f"tests.{test.name}.file",
                    message=(
                        f"Test '{test.name}' needs a file specified due to runner(s): "
                        f"{', '.join(tag_needs_file_due_to[test.tag])}"
                    ),
                )
            )

    return errors


# ---------------------------------------------------------------------------
# Template
# ---------------------------------------------------------------------------


def template_text() -> str:
    """Return the commented template configuration shipped with benchify."""
    return resources.files("benchify").joinpath("template.yaml").read_text(encoding="utf-8")


def write_template(path: Path) -> None:
    """Write the template configuration to *path*.

    Raises:
        FileExistsError: If *path* already exists.
    """
    if path.exists():
        raise FileExistsError(f"{path} already exists. Not overwriting.")
    path.write_text(template_text())
