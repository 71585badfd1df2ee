"""Tests for format dispatch (adapters/registry.py)."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

from covpush.adapters import get_adapter, load_summary, normalize
from covpush.adapters.coverage import (
    CoberturaAdapter,
    CoverageError,
    CoverageFormat,
    IstanbulAdapter,
    LcovAdapter,
    MalformedInputError,
    MissingFieldError,
    SummaryAdapter,
    UnsupportedFormatError,
)

_SUMMARY_JSON = json.dumps(
    {
        "total": {
            "lines": {"total": 10, "covered": 7, "skipped": 0, "pct": 70},
            "statements": {"total": 10, "covered": 7, "skipped": 0, "pct": 70},
            "functions": {"total": 2, "covered": 2, "skipped": 0, "pct": 100},
            "branches": {"total": 4, "covered": 1, "skipped": 0, "pct": 25},
        }
    }
)

_LCOV = "SF:/a.c\nLF:10\nLH:5\nend_of_record\nSF:/b.c\nLF:20\nLH:15\nend_of_record\n"

_COBERTURA = (
    '<coverage lines-valid="50" lines-covered="25" line-rate="0.5" '
    'branches-valid="10" branches-covered="5" branch-rate="0.5"/>'
)


def _write_file(root: Path, rel: str, content: str) -> Path:
    """Write *content* to a file under *root*."""
    f = root / rel
    f.parent.mkdir(parents=True, exist_ok=True)
    f.write_text(content, encoding="utf-8")
    return f


# ── Adapter selection ────────────────────────────────────────────


@pytest.mark.parametrize(
    ("coverage_format", "adapter_cls"),
    [
        ("summary", SummaryAdapter),
        ("istanbul", IstanbulAdapter),
        ("lcov", LcovAdapter),
        ("cobertura", CoberturaAdapter),
        (CoverageFormat.LCOV, LcovAdapter),
    ],
)
def test_get_adapter(coverage_format: str | CoverageFormat, adapter_cls: type) -> None:
    assert isinstance(get_adapter(coverage_format), adapter_cls)


def test_every_format_has_an_adapter() -> None:
    for fmt in CoverageFormat:
        assert get_adapter(fmt).name == fmt.value


def test_get_adapter_unknown_format() -> None:
    with pytest.raises(UnsupportedFormatError):
        get_adapter("clover")


# ── normalize ────────────────────────────────────────────────────


def test_normalize_summary_copies_pct() -> None:
    summary = normalize("summary", _SUMMARY_JSON, filename="coverage-summary.json")

    assert summary.lines.pct == 70


def test_normalize_lcov_aggregates() -> None:
    summary = normalize("lcov", _LCOV)

    assert (summary.lines.total, summary.lines.covered) == (30, 20)
    assert summary.lines.pct == pytest.approx(200 / 3)


def test_normalize_cobertura() -> None:
    summary = normalize("cobertura", _COBERTURA, filename="coverage.xml")

    assert (summary.lines.total, summary.lines.covered, summary.lines.pct) == (50, 25, 50.0)
    assert summary.functions.pct is None


@pytest.mark.parametrize("coverage_format", ["summary", "istanbul"])
def test_normalize_json_formats_require_json_suffix(coverage_format: str) -> None:
    with pytest.raises(MalformedInputError, match="should be \\(jest\\) json formatted"):
        normalize(coverage_format, "{}", filename="coverage.txt")


def test_normalize_text_formats_accept_any_suffix() -> None:
    summary = normalize("lcov", _LCOV, filename="lcov.info.json")

    assert summary.lines.total == 30


def test_normalize_unknown_format() -> None:
    with pytest.raises(UnsupportedFormatError, match="Unknown coverage format 'clover'"):
        normalize("clover", "")


def test_normalize_missing_total() -> None:
    with pytest.raises(MissingFieldError):
        normalize("summary", "{}", filename="coverage-summary.json")


def test_normalize_unreported_vs_zero_total() -> None:
    lcov = normalize("lcov", "SF:/a.c\nLF:3\nLH:3\nend_of_record\n")
    cobertura = normalize("cobertura", _COBERTURA)

    assert lcov.branches.total == 0
    assert lcov.branches.pct == 100.0
    assert lcov.statements.pct is None
    assert cobertura.functions.pct is None


# ── load_summary ─────────────────────────────────────────────────


def test_load_summary_reads_file(tmp_path: Path) -> None:
    path = _write_file(tmp_path, "coverage/coverage-summary.json", _SUMMARY_JSON)

    summary = load_summary(path, "summary")

    assert summary.branches.pct == 25


def test_load_summary_checks_suffix_before_reading(tmp_path: Path) -> None:
    with pytest.raises(MalformedInputError, match="json formatted"):
        load_summary(tmp_path / "does-not-exist.info", "istanbul")


def test_load_summary_missing_file(tmp_path: Path) -> None:
    with pytest.raises(CoverageError, match="Failed to read coverage file"):
        load_summary(tmp_path / "lcov.info", "lcov")


def test_load_summary_non_utf8(tmp_path: Path) -> None:
    path = tmp_path / "lcov.info"
    path.write_bytes(b"SF:/a.c\n\xff\xfe\n")

    with pytest.raises(MalformedInputError, match="not UTF-8"):
        load_summary(path, "lcov")
