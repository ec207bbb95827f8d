"""lcovcheck: LCOV coverage summaries and threshold checks."""

from __future__ import annotations

__version__ = "0.1.0"

from lcovcheck.adapters.lcov import ReadError, parse_coverage, parse_lcov_string
from lcovcheck.analyzers.thresholds import evaluate_thresholds
from lcovcheck.models.coverage import (
    CoverageMetrics,
    CoverageSummary,
    FileCoverage,
    MetricRecord,
    Verdict,
)

__all__ = [
    "CoverageMetrics",
    "CoverageSummary",
    "FileCoverage",
    "MetricRecord",
    "ReadError",
    "Verdict",
    "__version__",
    "evaluate_thresholds",
    "parse_coverage",
    "parse_lcov_string",
]
