"""Configuration parsing from ``.lcovcheck.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from lcovcheck.models.coverage import METRICS
from lcovcheck.utils.git import compute_comment_marker

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".lcovcheck.yml"
DEFAULT_LCOV_PATH = "coverage/lcov.info"
DEFAULT_COMMENT_MARKER = compute_comment_marker("lcovcheck:coverage")
DEFAULT_MAX_FILES = 20

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")
_MAX_PERCENTAGE = 100.0


class ConfigError(ValueError):
    """Raised when a configuration value cannot be interpreted."""


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        logger.warning("Ignoring non-mapping '%s' section in %s", name, CONFIG_FILENAME)
        return {}
    return value


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _as_int(value: Any, default: int, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer %s: %r (using %d)", name, value, default)
        return default


@dataclass
class CoverageConfig:
    """Coverage input and threshold configuration."""

    lcov_path: str = DEFAULT_LCOV_PATH
    """Path to the LCOV report, relative to the project root."""

    thresholds: dict[str, float] = field(default_factory=dict)
    """Minimum percentage per metric (lines, statements, functions, branches)."""


@dataclass
class ReportConfig:
    """Comment rendering configuration."""

    show_file_coverage: bool = True
    """Include the per-file table in the PR comment."""

    max_files: int = DEFAULT_MAX_FILES
    """Maximum number of files listed in the per-file table."""

    comment_marker: str = DEFAULT_COMMENT_MARKER
    """Hidden marker identifying the comment to update on later runs."""


@dataclass
class GitHubConfig:
    """GitHub integration configuration."""

    token: str = ""
    """Token used to post PR comments (supports ${ENV_VAR} expansion)."""

    post_comment: bool = True
    """Post or update a coverage comment when running for a pull request."""


@dataclass
class LcovCheckConfig:
    """Complete configuration from ``.lcovcheck.yml``."""

    root: str
    """Project root directory."""

    coverage: CoverageConfig = field(default_factory=CoverageConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""

    @property
    def lcov_file(self) -> Path:
        """Absolute path of the configured LCOV report."""
        path = Path(self.coverage.lcov_path)
        if path.is_absolute():
            return path
        return Path(self.root) / path


def _parse_thresholds(raw: Any) -> dict[str, float]:
    """Parse a ``metric: percent`` mapping, dropping entries that are not numbers."""
    if not isinstance(raw, dict):
        return {}
    thresholds: dict[str, float] = {}
    for metric, value in raw.items():
        if value is None or value == "":
            continue
        try:
            thresholds[str(metric)] = float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric threshold for %s: %r", metric, value)
    return thresholds


def _parse_coverage_config(raw: dict[str, Any]) -> CoverageConfig:
    """Parse coverage configuration from raw YAML."""
    coverage_raw = _section(raw, "coverage")

    thresholds = _parse_thresholds(coverage_raw.get("thresholds", {}))
    min_coverage = os.environ.get("LCOVCHECK_MIN_COVERAGE", "").strip()
    if min_coverage and "lines" not in thresholds:
        try:
            thresholds["lines"] = float(min_coverage)
        except ValueError:
            logger.warning("Ignoring non-numeric LCOVCHECK_MIN_COVERAGE: %r", min_coverage)

    lcov_path = coverage_raw.get("lcov_path")
    if lcov_path is None:
        lcov_path = os.environ.get("LCOVCHECK_LCOV_PATH", DEFAULT_LCOV_PATH)

    return CoverageConfig(lcov_path=str(lcov_path), thresholds=thresholds)


def _parse_report_config(raw: dict[str, Any]) -> ReportConfig:
    """Parse comment rendering configuration from raw YAML."""
    report_raw = _section(raw, "report")

    return ReportConfig(
        show_file_coverage=_as_bool(report_raw.get("show_file_coverage", True)),
        max_files=_as_int(
            report_raw.get("max_files", DEFAULT_MAX_FILES), DEFAULT_MAX_FILES, "report.max_files"
        ),
        comment_marker=str(report_raw.get("comment_marker", DEFAULT_COMMENT_MARKER)),
    )


def _parse_github_config(raw: dict[str, Any]) -> GitHubConfig:
    """Parse GitHub integration configuration from raw YAML."""
    github_raw = _section(raw, "github")

    return GitHubConfig(
        token=str(github_raw.get("token", os.environ.get("GITHUB_TOKEN", ""))),
        post_comment=_as_bool(github_raw.get("post_comment", True)),
    )


def load_config(root: str | Path) -> LcovCheckConfig:
    """Load and parse the complete ``.lcovcheck.yml`` configuration.

    Falls back to defaults and environment variables when the YAML file is
    missing or incomplete.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        else:
            logger.debug("%s is empty or not a mapping; using defaults", config_file)

    return LcovCheckConfig(
        root=str(root_path),
        coverage=_parse_coverage_config(raw),
        report=_parse_report_config(raw),
        github=_parse_github_config(raw),
        raw=raw,
    )


def parse_threshold_option(value: str) -> tuple[str, float]:
    """Parse a ``METRIC=PERCENT`` command-line threshold.

    Raises:
        ConfigError: If the value is not of the form ``metric=number`` or names
            an unknown metric.
    """
    metric, sep, pct = value.partition("=")
    metric = metric.strip().lower()
    if not sep or not metric:
        raise ConfigError(f"expected METRIC=PERCENT, got {value!r}")
    if metric not in METRICS:
        raise ConfigError(f"unknown metric {metric!r} (choose from {', '.join(METRICS)})")
    try:
        return metric, float(pct)
    except ValueError as exc:
        raise ConfigError(f"threshold for {metric} must be a number, got {pct!r}") from exc


def _validate_coverage_config(coverage: CoverageConfig) -> list[str]:
    """Validate coverage input and threshold settings."""
    errors: list[str] = []

    if not coverage.lcov_path:
        errors.append("coverage.lcov_path must not be empty")

    for metric, threshold in coverage.thresholds.items():
        if metric not in METRICS:
            errors.append(
                f"coverage.thresholds.{metric} is not a known metric "
                f"(choose from: {', '.join(METRICS)})"
            )
        if not 0.0 <= threshold <= _MAX_PERCENTAGE:
            errors.append(
                f"coverage.thresholds.{metric} must be between 0 and 100 (got: {threshold})"
            )

    return errors


def _validate_report_config(report: ReportConfig) -> list[str]:
    """Validate comment rendering settings."""
    errors: list[str] = []

    if report.max_files < 1:
        errors.append(f"report.max_files must be at least 1 (got: {report.max_files})")

    if not report.comment_marker.strip():
        errors.append("report.comment_marker must not be empty")

    return errors


def validate_config(config: LcovCheckConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []
    errors.extend(_validate_coverage_config(config.coverage))
    errors.extend(_validate_report_config(config.report))
    return errors
