"""Command-line interface for benchify.

Provides the ``benchify`` entry point: load a configuration, validate it,
run every (test, tool) pair, save the results and print the summaries.
"""

from __future__ import annotations

from pathlib import Path

import click

from benchify import __version__
from benchify.logging import setup_logging

DEFAULT_CONFIG = Path("./benchify.yaml")


@click.command()
@click.version_option(version=__version__)
@click.argument(
    "benchify_yaml",
    type=click.Path(path_type=Path),
    default=DEFAULT_CONFIG,
)
@click.option(
    "--template",
    is_flag=True,
    default=False,
    help="Write a template configuration to BENCHIFY_YAML and exit.",
)
@click.option(
    "--parallel-prep/--no-parallel-prep",
    default=None,
    help="Run all preparation steps in parallel before measuring.",
)
@click.option(
    "--max-parallel",
    type=int,
    default=None,
    help="Most preparation steps running at once (default: number of CPUs).",
)
@click.option("--warmup", type=int, default=None, help="Warm-up runs per pair (default: 0).")
@click.option("--min-runs", type=int, default=None, help="Minimum measured runs (default: 10).")
@click.option("--max-runs", type=int, default=None, help="Maximum measured runs (default: 1000).")
@click.option(
    "--main-tool",
    type=str,
    default=None,
    help="Tool to compare against (default: fastest per test).",
)
@click.option(
    "--results-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Results output directory (default: ./benchify-results/).",
)
@click.option(
    "--skip-checks",
    is_flag=True,
    default=False,
    help="Do not spawn tools or look for test files during validation.",
)
@click.option(
    "--by-tool",
    is_flag=True,
    default=False,
    help="Also print each tool's results across tests.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show errors.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
def main(  # noqa: PLR0913
    benchify_yaml: Path,
    template: bool,
    parallel_prep: bool | None,
    max_parallel: int | None,
    warmup: int | None,
    min_runs: int | None,
    max_runs: int | None,
    main_tool: str | None,
    results_dir: Path | None,
    skip_checks: bool,
    by_tool: bool,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """benchify — compare command-line tools across a shared set of tests.

    BENCHIFY_YAML is the configuration file (default: ./benchify.yaml).

    \b
    Examples:
        # Start from a commented template
        benchify --template

        # Run the benchmark described in benchify.yaml
        benchify

        # Compare against a fixed tool, with parallel preparation
        benchify bench.yaml --main-tool gzip --parallel-prep
    """
    from benchify.config import load_config, validate_config, write_template
    from benchify.errors import ConfigError, PreparationError
    from benchify.runner import BenchRunner

    log = setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    if template:
        try:
            write_template(benchify_yaml)
        except FileExistsError as exc:
            click.echo(f"Error: {exc}", err=True)
            raise SystemExit(1) from exc
        click.echo(f"Wrote template to {benchify_yaml}")
        return

    cli_overrides: dict[str, object] = {
        "parallel_prep": parallel_prep,
        "max_parallel": max_parallel,
        "warmup": warmup,
        "min_runs": min_runs,
        "max_runs": max_runs,
        "main_tool": main_tool,
        "results_dir": str(results_dir) if results_dir is not None else None,
    }

    try:
        config = load_config(benchify_yaml, cli_overrides=cli_overrides)
    except (FileNotFoundError, ConfigError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    errors = validate_config(config, check_programs=not skip_checks, check_files=not skip_checks)
    if errors:
        for e in errors:
            click.echo(f"Error: {e.field}: {e.message}", err=True)
        raise SystemExit(1)

    runner = BenchRunner(config)
    try:
        results = runner.run()
    except PreparationError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    from benchify.display import format_results, format_tool_overview
    from benchify.export import save_results

    try:
        save_results(results, config.results_dir)
    except OSError as exc:
        click.echo(f"Error: could not save results to {config.results_dir}: {exc}", err=True)
        raise SystemExit(1) from exc

    click.echo()
    click.echo(format_results(results))
    if by_tool:
        click.echo(format_tool_overview(results))
        click.echo()
    log.info("Results saved to: %s", config.results_dir)
