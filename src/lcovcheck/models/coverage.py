"""Coverage summary models.

Every value here is an immutable record built once per run. Percentages are
expressed on a 0-100 scale and rounded to two decimal places.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

METRICS: tuple[str, ...] = ("lines", "statements", "functions", "branches")
"""Metric names, in display order."""

TOTAL_KEY = "total"

_PCT_SCALE = 100


def _round_half_up(pct: float) -> float:
    """Round a percentage to two decimals, halves away from zero (``3.125`` -> ``3.13``)."""
    return math.floor(pct * _PCT_SCALE + 0.5) / _PCT_SCALE


@dataclass(frozen=True)
class MetricRecord:
    """Counts and percentage for one coverage metric."""

    total: int = 0
    """Number of measurable items (lines, functions or branches)."""

    covered: int = 0
    """Items executed at least once."""

    skipped: int = 0
    """Items never executed (``total - covered``)."""

    pct: float = 0.0
    """``covered / total * 100`` rounded to two decimals, 0 when ``total`` is 0."""

    @classmethod
    def from_counts(cls, total: int, covered: int) -> MetricRecord:
        """Build a record from raw counts.

        ``covered`` is clamped into ``[0, total]`` so that headers reporting more
        hits than items still yield a consistent record.
        """
        total = max(total, 0)
        covered = min(max(covered, 0), total)
        pct = 0.0 if total == 0 else _round_half_up(covered / total * 100)
        return cls(total=total, covered=covered, skipped=total - covered, pct=pct)

    def __add__(self, other: MetricRecord) -> MetricRecord:
        return MetricRecord.from_counts(self.total + other.total, self.covered + other.covered)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "covered": self.covered,
            "skipped": self.skipped,
            "pct": self.pct,
        }


@dataclass(frozen=True)
class CoverageMetrics:
    """The four metrics tracked for a file or for the whole report.

    LCOV has no notion of statements, so ``statements`` always mirrors
    ``lines``.
    """

    lines: MetricRecord = field(default_factory=MetricRecord)
    statements: MetricRecord = field(default_factory=MetricRecord)
    functions: MetricRecord = field(default_factory=MetricRecord)
    branches: MetricRecord = field(default_factory=MetricRecord)

    def get(self, metric: str) -> MetricRecord | None:
        """Return the record for *metric*, or None for an unknown name."""
        if metric not in METRICS:
            return None
        record: MetricRecord = getattr(self, metric)
        return record

    def to_dict(self) -> dict[str, Any]:
        return {metric: getattr(self, metric).to_dict() for metric in METRICS}


@dataclass(frozen=True)
class FileCoverage(CoverageMetrics):
    """Coverage metrics for a single source file."""

    uncovered_lines: tuple[int, ...] = ()
    """Strictly ascending line numbers that were never executed."""

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["uncoveredLines"] = list(self.uncovered_lines)
        return data


@dataclass(frozen=True)
class CoverageSummary:
    """Per-file coverage plus the aggregate over every file.

    The aggregate sums counts across files and recomputes percentages from the
    sums, so ``total.lines.pct`` is not the mean of the per-file percentages.
    """

    files: Mapping[str, FileCoverage] = field(default_factory=dict)
    """Coverage per source path, in report order."""

    total: CoverageMetrics = field(default_factory=CoverageMetrics)
    """Aggregate across all files."""

    @classmethod
    def from_files(cls, files: Mapping[str, FileCoverage]) -> CoverageSummary:
        """Build a summary whose total is the sum of *files*."""
        return cls(files=dict(files), total=aggregate(files.values()))

    def __getitem__(self, key: str) -> CoverageMetrics:
        if key == TOTAL_KEY:
            return self.total
        return self.files[key]

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-summary shape: ``total`` first, then each file."""
        data: dict[str, Any] = {TOTAL_KEY: self.total.to_dict()}
        for path, file_cov in self.files.items():
            data[path] = file_cov.to_dict()
        return data


@dataclass(frozen=True)
class Verdict:
    """Outcome of comparing aggregate coverage against thresholds."""

    passed: bool
    failures: tuple[str, ...] = ()
    summary: str = ""


def aggregate(files: Iterable[CoverageMetrics]) -> CoverageMetrics:
    """Sum line, function and branch counts across *files*."""
    lines = MetricRecord()
    functions = MetricRecord()
    branches = MetricRecord()
    for file_cov in files:
        lines += file_cov.lines
        functions += file_cov.functions
        branches += file_cov.branches
    return CoverageMetrics(
        lines=lines,
        statements=lines,
        functions=functions,
        branches=branches,
    )
