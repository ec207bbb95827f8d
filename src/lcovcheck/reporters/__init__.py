"""Reporters for outputting coverage results."""

from __future__ import annotations

from lcovcheck.reporters.github_comment import (
    CommentOptions,
    GitHubCommentReporter,
    format_coverage_comment,
)
from lcovcheck.reporters.terminal import reporter

__all__ = [
    "CommentOptions",
    "GitHubCommentReporter",
    "format_coverage_comment",
    "reporter",
]
