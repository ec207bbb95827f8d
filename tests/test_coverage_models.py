"""Tests for coverage summary models (models/coverage.py)."""

from __future__ import annotations

import dataclasses

import pytest

from lcovcheck.models.coverage import (
    METRICS,
    CoverageMetrics,
    CoverageSummary,
    FileCoverage,
    MetricRecord,
    aggregate,
)


def _file(lines: tuple[int, int], functions: tuple[int, int] = (0, 0)) -> FileCoverage:
    line_record = MetricRecord.from_counts(*lines)
    return FileCoverage(
        lines=line_record,
        statements=line_record,
        functions=MetricRecord.from_counts(*functions),
        branches=MetricRecord(),
    )


class TestMetricRecord:
    def test_from_counts(self) -> None:
        record = MetricRecord.from_counts(8, 6)
        assert record == MetricRecord(total=8, covered=6, skipped=2, pct=75.0)

    def test_zero_total_is_zero_percent(self) -> None:
        record = MetricRecord.from_counts(0, 0)
        assert record.pct == 0
        assert record.skipped == 0

    def test_rounds_to_two_decimals(self) -> None:
        assert MetricRecord.from_counts(3, 1).pct == 33.33
        assert MetricRecord.from_counts(3, 2).pct == 66.67
        assert MetricRecord.from_counts(7, 1).pct == 14.29

    @pytest.mark.parametrize(
        ("total", "covered", "expected"), [(32, 1, 3.13), (32, 5, 15.63), (8, 1, 12.5)]
    )
    def test_exact_halves_round_up(self, total: int, covered: int, expected: float) -> None:
        assert MetricRecord.from_counts(total, covered).pct == expected

    def test_covered_clamped_to_total(self) -> None:
        record = MetricRecord.from_counts(2, 5)
        assert record.covered == 2
        assert record.skipped == 0
        assert record.pct == 100.0

    def test_negative_counts_clamped(self) -> None:
        record = MetricRecord.from_counts(-3, -1)
        assert record == MetricRecord(total=0, covered=0, skipped=0, pct=0.0)

    @pytest.mark.parametrize(("total", "covered"), [(0, 0), (1, 0), (1, 1), (10, 3), (997, 996)])
    def test_covered_plus_skipped_equals_total(self, total: int, covered: int) -> None:
        record = MetricRecord.from_counts(total, covered)
        assert record.covered + record.skipped == record.total

    def test_addition_recomputes_pct(self) -> None:
        combined = MetricRecord.from_counts(1, 1) + MetricRecord.from_counts(3, 0)
        assert combined == MetricRecord(total=4, covered=1, skipped=3, pct=25.0)

    def test_immutable(self) -> None:
        record = MetricRecord.from_counts(1, 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.total = 5  # type: ignore[misc]

    def test_to_dict(self) -> None:
        assert MetricRecord.from_counts(4, 3).to_dict() == {
            "total": 4,
            "covered": 3,
            "skipped": 1,
            "pct": 75.0,
        }


class TestCoverageMetrics:
    def test_get_known_metric(self) -> None:
        metrics = CoverageMetrics(lines=MetricRecord.from_counts(2, 1))
        assert metrics.get("lines") == MetricRecord.from_counts(2, 1)

    def test_get_unknown_metric(self) -> None:
        assert CoverageMetrics().get("mutations") is None
        assert CoverageMetrics().get("to_dict") is None

    def test_to_dict_has_every_metric(self) -> None:
        assert list(CoverageMetrics().to_dict()) == list(METRICS)


class TestAggregate:
    def test_sums_counts_not_percentages(self) -> None:
        files = [_file((1, 1)), _file((99, 0))]
        total = aggregate(files)

        # Mean of per-file pcts would be 50%; summed counts give 1%.
        assert total.lines == MetricRecord(total=100, covered=1, skipped=99, pct=1.0)
        assert total.statements == total.lines

    def test_sums_functions(self) -> None:
        total = aggregate([_file((1, 1), (2, 1)), _file((1, 1), (3, 3))])
        assert total.functions == MetricRecord.from_counts(5, 4)

    def test_empty(self) -> None:
        assert aggregate([]) == CoverageMetrics()


class TestCoverageSummary:
    def test_from_files_builds_total(self) -> None:
        summary = CoverageSummary.from_files({"a": _file((3, 2)), "b": _file((2, 2))})
        assert summary.total.lines == MetricRecord.from_counts(5, 4)

    def test_getitem_total_and_files(self) -> None:
        a = _file((3, 2))
        summary = CoverageSummary.from_files({"a": a})
        assert summary["total"] is summary.total
        assert summary["a"] is a

    def test_getitem_missing_file(self) -> None:
        summary = CoverageSummary.from_files({})
        with pytest.raises(KeyError):
            summary["nope"]

    def test_file_named_total_does_not_shadow_aggregate(self) -> None:
        summary = CoverageSummary.from_files({"total": _file((4, 1)), "x": _file((4, 3))})
        assert summary.total.lines == MetricRecord.from_counts(8, 4)
        assert summary.files["total"].lines == MetricRecord.from_counts(4, 1)

    def test_to_dict_shape(self) -> None:
        file_cov = dataclasses.replace(_file((3, 2)), uncovered_lines=(2,))
        data = CoverageSummary.from_files({"src/a.ts": file_cov}).to_dict()

        assert list(data) == ["total", "src/a.ts"]
        assert "uncoveredLines" not in data["total"]
        assert data["src/a.ts"]["uncoveredLines"] == [2]
        assert data["src/a.ts"]["lines"] == {
            "total": 3,
            "covered": 2,
            "skipped": 1,
            "pct": 66.67,
        }

    def test_structural_equality(self) -> None:
        first = CoverageSummary.from_files({"a": _file((3, 2))})
        second = CoverageSummary.from_files({"a": _file((3, 2))})
        assert first == second
