"""Data models for lcovcheck."""

from lcovcheck.models.coverage import (
    METRICS,
    CoverageMetrics,
    CoverageSummary,
    FileCoverage,
    MetricRecord,
    Verdict,
)

__all__ = [
    "METRICS",
    "CoverageMetrics",
    "CoverageSummary",
    "FileCoverage",
    "MetricRecord",
    "Verdict",
]
