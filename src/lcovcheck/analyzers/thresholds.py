"""Threshold evaluation for aggregate coverage."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lcovcheck.models.coverage import Verdict

if TYPE_CHECKING:
    from collections.abc import Mapping

    from lcovcheck.models.coverage import CoverageSummary

logger = logging.getLogger(__name__)

NO_THRESHOLDS_SUMMARY = "No thresholds defined - all checks passed"


def format_number(value: float) -> str:
    """Format a percentage without a trailing ``.0`` for whole numbers."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def metric_label(metric: str) -> str:
    """Upper-case the first character of *metric* (``lines`` -> ``Lines``)."""
    return metric[:1].upper() + metric[1:]


def evaluate_thresholds(
    summary: CoverageSummary,
    thresholds: Mapping[str, float] | None = None,
) -> Verdict:
    """Compare the aggregate coverage in *summary* against *thresholds*.

    Each failing metric contributes one message, in the iteration order of
    *thresholds*. A percentage equal to its threshold passes. Metrics the
    summary does not track are skipped but still counted in the summary line.
    """
    if not thresholds:
        return Verdict(passed=True, failures=(), summary=NO_THRESHOLDS_SUMMARY)

    failures: list[str] = []
    for metric, threshold in thresholds.items():
        record = summary.total.get(metric)
        if record is None:
            logger.debug("Ignoring threshold for unknown metric %r", metric)
            continue
        if record.pct < threshold:
            failures.append(
                f"{metric_label(metric)} coverage {format_number(record.pct)}% "
                f"is below threshold {format_number(threshold)}%"
            )

    total_thresholds = len(thresholds)
    if failures:
        message = f"{len(failures)} of {total_thresholds} thresholds failed"
    else:
        message = f"All {total_thresholds} thresholds passed"

    return Verdict(passed=not failures, failures=tuple(failures), summary=message)
