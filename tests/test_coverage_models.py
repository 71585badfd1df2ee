"""Tests for the unified coverage models (adapters/coverage/base.py)."""

from __future__ import annotations

import pytest

from covpush.adapters.coverage.base import (
    CoverageFormat,
    CoverageMetric,
    CoverageSummary,
    UnsupportedFormatError,
    istanbul_percent,
    percent,
)

# ── percent helpers ──────────────────────────────────────────────


def test_percent_zero_total_is_fully_covered() -> None:
    assert percent(0, 0) == 100.0


def test_percent_from_counts() -> None:
    assert percent(20, 30) == pytest.approx(66.6666666, rel=1e-6)


def test_istanbul_percent_rounds_down_to_two_decimals() -> None:
    assert istanbul_percent(2, 3) == 66.66
    assert istanbul_percent(1, 3) == 33.33
    assert istanbul_percent(0, 0) == 100.0


# ── CoverageMetric ───────────────────────────────────────────────


def test_metric_defaults_are_unreported() -> None:
    metric = CoverageMetric()

    assert metric.total == 0
    assert metric.covered == 0
    assert metric.skipped == 0
    assert metric.pct is None
    assert not metric.is_reported


def test_metric_from_counts_derives_percentage() -> None:
    metric = CoverageMetric.from_counts(total=4, covered=1)

    assert metric.pct == 25.0
    assert metric.is_reported


def test_metric_nan_is_not_reported() -> None:
    assert not CoverageMetric(pct=float("nan")).is_reported


def test_metric_to_dict_marks_unreported_as_unknown() -> None:
    assert CoverageMetric().to_dict()["pct"] == "Unknown"
    assert CoverageMetric(total=2, covered=1, pct=50.0).to_dict() == {
        "total": 2,
        "covered": 1,
        "skipped": 0,
        "pct": 50.0,
    }


# ── CoverageSummary ──────────────────────────────────────────────


def test_summary_metric_lookup() -> None:
    lines = CoverageMetric(total=10, covered=7, pct=70.0)
    summary = CoverageSummary(lines=lines)

    assert summary.metric("lines") is lines
    with pytest.raises(KeyError):
        summary.metric("regions")


def test_summary_merge_sums_counts_and_rederives_pct() -> None:
    first = CoverageSummary(
        lines=CoverageMetric(total=10, covered=5, pct=50.0),
        branches=CoverageMetric(total=0, covered=0, pct=100.0),
    )
    second = CoverageSummary(lines=CoverageMetric(total=20, covered=15, pct=75.0))

    merged = first.merge(second)

    assert merged.lines.total == 30
    assert merged.lines.covered == 20
    assert merged.lines.pct == 66.66
    assert merged.branches.pct == 100.0


def test_summary_is_immutable() -> None:
    summary = CoverageSummary()

    with pytest.raises(AttributeError):
        summary.lines = CoverageMetric()  # type: ignore[misc]


def test_summary_to_dict_has_all_buckets() -> None:
    data = CoverageSummary().to_dict()

    assert set(data) == {"lines", "statements", "branches", "functions"}


# ── CoverageFormat ───────────────────────────────────────────────


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("summary", CoverageFormat.SUMMARY),
        ("istanbul", CoverageFormat.ISTANBUL),
        ("LCOV", CoverageFormat.LCOV),
        (" cobertura ", CoverageFormat.COBERTURA),
    ],
)
def test_coverage_format_parse(value: str, expected: CoverageFormat) -> None:
    assert CoverageFormat.parse(value) is expected


def test_coverage_format_parse_unknown() -> None:
    with pytest.raises(UnsupportedFormatError, match="Unknown coverage format 'jacoco'"):
        CoverageFormat.parse("jacoco")
