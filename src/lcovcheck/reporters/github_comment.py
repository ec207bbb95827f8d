"""GitHub comment reporter for posting coverage summaries to PRs.

Renders a :class:`CoverageSummary` as a markdown/HTML comment and creates or
updates it on the pull request, using a hidden marker to find the previous
comment so each run edits the same one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lcovcheck.analyzers.thresholds import format_number
from lcovcheck.config import DEFAULT_COMMENT_MARKER, DEFAULT_MAX_FILES
from lcovcheck.utils.git import GitHubAPI, GitHubAPIError, get_pr_info_from_env

if TYPE_CHECKING:
    from collections.abc import Mapping

    from lcovcheck.models.coverage import (
        CoverageMetrics,
        CoverageSummary,
        FileCoverage,
        MetricRecord,
    )
    from lcovcheck.utils.git import GitHubPRInfo

logger = logging.getLogger(__name__)

# Display limits
_MAX_PATH_LENGTH = 40
_MAX_UNCOVERED_LENGTH = 30

# Per-file emoji bands
_GOOD_PCT = 80.0
_FAIR_PCT = 60.0

_SUMMARY_ROWS = (
    ("lines", "Lines"),
    ("statements", "Statements"),
    ("functions", "Functions"),
    ("branches", "Branches"),
)


@dataclass
class CommentOptions:
    """Rendering options for the coverage comment."""

    thresholds: Mapping[str, float] = field(default_factory=dict)
    """Per-metric thresholds shown next to the percentages."""

    show_file_coverage: bool = True
    """Include the collapsible per-file table."""

    max_files: int = DEFAULT_MAX_FILES
    """Maximum number of files listed in the per-file table."""


def _summary_row(record: MetricRecord, category: str, threshold: float | None) -> str:
    status = "🔵"
    percent = f"{format_number(record.pct)}%"
    if threshold is not None:
        percent = f"{percent} (🎯 {format_number(threshold)}%)"
        status = "🟢" if record.pct >= threshold else "🔴"

    return (
        f'<td align="center">{status}</td>'
        f'<td align="left">{category}</td>'
        f'<td align="right">{percent}</td>'
        f'<td align="right">{record.covered} / {record.total}</td>'
    )


def format_summary_table(total: CoverageMetrics, thresholds: Mapping[str, float]) -> str:
    """Render the aggregate metrics as a single-line HTML table."""
    rows = "".join(
        f"<tr>{_summary_row(getattr(total, metric), label, thresholds.get(metric))}</tr>"
        for metric, label in _SUMMARY_ROWS
    )
    return (
        "<table>"
        "<thead><tr>"
        '<th align="center">Status</th>'
        '<th align="left">Category</th>'
        '<th align="right">Percentage</th>'
        '<th align="right">Covered / Total</th>'
        "</tr></thead>"
        f"<tbody>{rows}</tbody>"
        "</table>"
    )


def _format_percentage(record: MetricRecord) -> str:
    if record.pct >= _GOOD_PCT:
        emoji = "🟢"
    elif record.pct >= _FAIR_PCT:
        emoji = "🟡"
    else:
        emoji = "🔴"
    return f"{emoji} {format_number(record.pct)}%"


def format_line_ranges(lines: tuple[int, ...] | list[int]) -> str:
    """Collapse ascending line numbers into ranges (``[1, 2, 3, 7]`` -> ``1-3, 7``).

    Long results are cut to fit a table cell; an empty input renders as ``-``.
    """
    if not lines:
        return "-"

    ranges: list[str] = []
    start = end = lines[0]
    for line in lines[1:]:
        if line == end + 1:
            end = line
            continue
        ranges.append(str(start) if start == end else f"{start}-{end}")
        start = end = line
    ranges.append(str(start) if start == end else f"{start}-{end}")

    text = ", ".join(ranges)
    if len(text) > _MAX_UNCOVERED_LENGTH:
        return text[: _MAX_UNCOVERED_LENGTH - 3] + "..."
    return text


def _display_path(path: str) -> str:
    if len(path) > _MAX_PATH_LENGTH:
        return "..." + path[-(_MAX_PATH_LENGTH - 3) :]
    return path


def _file_row(path: str, coverage: FileCoverage) -> str:
    return (
        f"| `{_display_path(path)}` "
        f"| {_format_percentage(coverage.lines)} "
        f"| {_format_percentage(coverage.statements)} "
        f"| {_format_percentage(coverage.functions)} "
        f"| {_format_percentage(coverage.branches)} "
        f"| {format_line_ranges(coverage.uncovered_lines)} |"
    )


def format_file_section(files: Mapping[str, FileCoverage], max_files: int) -> str:
    """Render the collapsible per-file table, or an empty string when there are no files."""
    entries = list(files.items())[:max_files]
    if not entries:
        return ""

    lines: list[str] = []
    lines.append("<details>")
    lines.append(f"<summary>📁 File Coverage ({len(entries)} files)</summary>")
    lines.append("")
    lines.append("| File | Lines | Statements | Functions | Branches | Uncovered Lines |")
    lines.append("|------|-------|------------|-----------|----------|-----------------|")
    lines.extend(_file_row(path, coverage) for path, coverage in entries)
    lines.append("")
    lines.append("</details>")
    return "\n".join(lines)


def format_coverage_comment(
    summary: CoverageSummary,
    options: CommentOptions | None = None,
    marker: str = DEFAULT_COMMENT_MARKER,
) -> str:
    """Render the full PR comment body, ending with *marker*."""
    options = options or CommentOptions()

    sections: list[str] = []
    sections.append("## Coverage Report")
    sections.append("")
    sections.append(format_summary_table(summary.total, options.thresholds))
    sections.append("")

    if options.show_file_coverage:
        file_section = format_file_section(summary.files, options.max_files)
        if file_section:
            sections.append(file_section)
            sections.append("")

    sections.append(marker)
    return "\n".join(sections)


class GitHubCommentReporter:
    """Reporter that posts coverage summaries as GitHub PR comments."""

    def __init__(
        self, github_token: str | None = None, marker: str = DEFAULT_COMMENT_MARKER
    ) -> None:
        """Initialize the GitHub comment reporter.

        Args:
            github_token: GitHub token. If not provided, will try to read
                from GITHUB_TOKEN environment variable.
            marker: Hidden marker identifying the comment to update.

        Raises:
            GitHubAPIError: If no token is available.
        """
        self._api = GitHubAPI(token=github_token)
        self._marker = marker

    @property
    def marker(self) -> str:
        return self._marker

    def post_comment(self, pr_info: GitHubPRInfo, body: str) -> dict[str, str]:
        """Create or update the coverage comment with an already-rendered *body*.

        Returns:
            Dict with status and comment URL.

        Raises:
            GitHubAPIError: If posting the comment fails.
        """
        logger.info(
            "Posting coverage report to PR #%d in %s/%s",
            pr_info.pr_number,
            pr_info.owner,
            pr_info.repo,
        )

        result = self._api.upsert_comment(pr_info, body, self._marker)

        logger.info("Successfully posted comment: %s", result.get("html_url"))

        return {
            "status": "success",
            "comment_url": result.get("html_url", ""),
        }


def post_comment_from_env(
    body: str,
    github_token: str | None = None,
    marker: str = DEFAULT_COMMENT_MARKER,
) -> str | None:
    """Post *body* to the current pull request when running in GitHub Actions.

    Returns:
        The comment URL, or None when there is no PR context or posting failed.
    """
    pr_info = get_pr_info_from_env()
    if not pr_info:
        logger.info("No pull request context found, skipping comment creation")
        return None

    try:
        reporter = GitHubCommentReporter(github_token=github_token, marker=marker)
        result = reporter.post_comment(pr_info, body)
    except GitHubAPIError as exc:
        logger.warning("Failed to post coverage comment: %s", exc)
        return None

    return result["comment_url"]
