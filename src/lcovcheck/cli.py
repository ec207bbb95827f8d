"""Command-line interface for lcovcheck."""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from lcovcheck import __version__
from lcovcheck.adapters.lcov import ReadError, parse_coverage
from lcovcheck.analyzers.thresholds import evaluate_thresholds
from lcovcheck.config import ConfigError, load_config, parse_threshold_option, validate_config
from lcovcheck.reporters.github_comment import (
    CommentOptions,
    format_coverage_comment,
    post_comment_from_env,
)
from lcovcheck.reporters.terminal import reporter

logger = logging.getLogger(__name__)
console = Console()

# Masking thresholds
_MIN_MASKED_VALUE_LENGTH = 8
_SENSITIVE_KEYS = frozenset({"token"})


def _configure_logging(*, verbose: bool) -> None:
    """Send log records to stderr through rich, DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _config_to_dict(config: Any) -> dict[str, Any]:
    """Convert LcovCheckConfig to dictionary for display."""
    result = asdict(config)
    # Remove the raw field as it's redundant
    result.pop("raw", None)
    return result


def _mask_sensitive_values(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Recursively mask sensitive values in configuration dict."""
    result = copy.deepcopy(config_dict)

    def _mask_dict(data: dict[str, Any]) -> None:
        for key, value in data.items():
            if key in _SENSITIVE_KEYS and isinstance(value, str) and value:
                # Show first 4 chars, mask the rest
                if len(value) > _MIN_MASKED_VALUE_LENGTH:
                    data[key] = f"{value[:4]}...{value[-4:]}"
                else:
                    data[key] = "***"
            elif isinstance(value, dict):
                _mask_dict(value)

    _mask_dict(result)
    return result


def _parse_threshold_values(
    _ctx: click.Context, _param: click.Parameter, values: tuple[str, ...]
) -> list[tuple[str, float]]:
    parsed: list[tuple[str, float]] = []
    for value in values:
        try:
            parsed.append(parse_threshold_option(value))
        except ConfigError as exc:
            raise click.BadParameter(str(exc)) from exc
    return parsed


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr.")
@click.version_option(version=__version__, prog_name="lcovcheck")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """lcovcheck: LCOV coverage summaries and threshold checks for CI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose=verbose)


@cli.command()
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory (where .lcovcheck.yml lives).",
)
@click.option(
    "--lcov-path",
    default=None,
    help="LCOV report to read (default: coverage.lcov_path, then coverage/lcov.info).",
)
@click.option(
    "--min-coverage",
    type=float,
    default=None,
    help="Minimum line coverage percentage (shorthand for --threshold lines=N).",
)
@click.option(
    "--threshold",
    "threshold_values",
    multiple=True,
    metavar="METRIC=PERCENT",
    callback=_parse_threshold_values,
    help="Minimum percentage for a metric (lines, statements, functions, branches).",
)
@click.option(
    "--comment/--no-comment",
    default=None,
    help="Post or update the pull-request comment (default: github.post_comment).",
)
@click.option(
    "--github-token",
    default=None,
    help="GitHub token for posting the comment (default: github.token / GITHUB_TOKEN).",
)
@click.option(
    "--comment-file",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Also write the rendered comment body to this file.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Print the coverage summary and verdict as JSON.",
)
def report(
    path: str,
    lcov_path: str | None,
    min_coverage: float | None,
    threshold_values: list[tuple[str, float]],
    comment: bool | None,
    github_token: str | None,
    comment_file: str | None,
    *,
    as_json: bool,
) -> None:
    """Summarize an LCOV report and check it against coverage thresholds.

    Exits with status 1 when the report cannot be read or a threshold is not met.

    Example:
      lcovcheck report --lcov-path coverage/lcov.info --min-coverage 80
      lcovcheck report --threshold lines=80 --threshold functions=70 --no-comment
    """
    try:
        config = load_config(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise SystemExit(1) from e

    lcov_file = Path(lcov_path) if lcov_path else config.lcov_file
    thresholds = dict(config.coverage.thresholds)
    if min_coverage is not None:
        thresholds["lines"] = min_coverage
    thresholds.update(threshold_values)

    try:
        summary = parse_coverage(lcov_file)
    except ReadError as exc:
        if as_json:
            click.echo(json.dumps({"error": str(exc), "path": exc.path}, indent=2))
        else:
            reporter.print_error(str(exc))
        raise SystemExit(1) from exc

    logger.info("Parsed coverage data for %d file(s)", len(summary.files))
    verdict = evaluate_thresholds(summary, thresholds)
    logger.info("Threshold check: %s", verdict.summary)

    options = CommentOptions(
        thresholds=thresholds,
        show_file_coverage=config.report.show_file_coverage,
        max_files=config.report.max_files,
    )
    body = format_coverage_comment(summary, options, config.report.comment_marker)

    if comment_file:
        Path(comment_file).write_text(body, encoding="utf-8")
        logger.info("Wrote coverage comment to %s", comment_file)

    should_post = config.github.post_comment if comment is None else comment
    comment_url: str | None = None
    if should_post:
        token = github_token or config.github.token
        if token:
            comment_url = post_comment_from_env(body, token, config.report.comment_marker)
        elif not as_json:
            reporter.print_warning("No GitHub token provided, skipping comment creation")

    if as_json:
        payload = {
            "summary": summary.to_dict(),
            "verdict": {
                "passed": verdict.passed,
                "failures": list(verdict.failures),
                "summary": verdict.summary,
            },
            "comment_url": comment_url,
        }
        click.echo(json.dumps(payload, indent=2))
    else:
        reporter.print_coverage_summary(summary, thresholds)
        reporter.print_file_coverage(summary)
        if comment_url:
            reporter.print_success(f"Posted coverage comment: {comment_url}")
        reporter.print_verdict(verdict)

    if not verdict.passed:
        raise SystemExit(1)


@cli.group("config")
def config_group() -> None:
    """Inspect `.lcovcheck.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
@click.option(
    "--no-mask",
    is_flag=True,
    help="Show sensitive values unmasked (use with caution).",
)
def config_show(path: str, *, as_json: bool, no_mask: bool) -> None:
    """Display resolved configuration with the GitHub token masked.

    Example:
      lcovcheck config show
      lcovcheck config show --json-output
    """
    try:
        config = load_config(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    config_dict = _config_to_dict(config)
    if not no_mask:
        config_dict = _mask_sensitive_values(config_dict)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        console.print()
        console.print("[bold cyan]Configuration:[/bold cyan]")
        console.print()
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
def config_validate(path: str) -> None:
    """Validate `.lcovcheck.yml` configuration.

    Example:
      lcovcheck config validate
    """
    try:
        config = load_config(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    errors = validate_config(config)

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()

    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")

    console.print()
    console.print(
        "[dim]Fix these errors in .lcovcheck.yml and run 'lcovcheck config validate' again.[/dim]"
    )
    raise click.Abort
