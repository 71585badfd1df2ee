"""Base classes and data models for coverage adapters."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

FLAVORS = ("lines", "statements", "branches", "functions")
"""Metric buckets every summary carries, in istanbul's summary order."""


class CoverageError(Exception):
    """Base class for coverage normalization failures."""


class UnsupportedFormatError(CoverageError):
    """Raised when a coverage format tag is not recognized."""


class MalformedInputError(CoverageError):
    """Raised when file contents do not match the declared format."""


class MissingFieldError(CoverageError):
    """Raised when a required field is absent from a coverage report."""


class CoverageFormat(Enum):
    """Supported coverage report formats."""

    SUMMARY = "summary"
    ISTANBUL = "istanbul"
    LCOV = "lcov"
    COBERTURA = "cobertura"

    @classmethod
    def parse(cls, value: str | CoverageFormat) -> CoverageFormat:
        """Resolve a format tag, raising UnsupportedFormatError if unknown."""
        if isinstance(value, CoverageFormat):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            msg = f"Unknown coverage format '{value}'"
            raise UnsupportedFormatError(msg) from None


def percent(covered: int, total: int) -> float:
    """Return covered/total as a percentage, 100.0 when nothing is tracked."""
    if total == 0:
        return 100.0
    return (covered / total) * 100.0


@dataclass(frozen=True)
class CoverageMetric:
    """Totals for one coverage bucket (lines, statements, branches or functions)."""

    total: int = 0
    covered: int = 0
    skipped: int = 0
    pct: float | None = None
    """Percentage covered, or None when the source format does not report it."""

    @classmethod
    def from_counts(cls, total: int, covered: int) -> CoverageMetric:
        """Build a metric whose percentage is derived from the counts."""
        return cls(total=total, covered=covered, pct=percent(covered, total))

    @property
    def is_reported(self) -> bool:
        """Return True if the percentage is a finite number."""
        return self.pct is not None and math.isfinite(self.pct)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "covered": self.covered,
            "skipped": self.skipped,
            "pct": self.pct if self.is_reported else "Unknown",
        }


@dataclass(frozen=True)
class CoverageSummary:
    """Normalized coverage totals for a whole project.

    This is the unified shape that every adapter (summary, istanbul, LCOV,
    Cobertura) reduces its native report to.
    """

    lines: CoverageMetric = field(default_factory=CoverageMetric)
    statements: CoverageMetric = field(default_factory=CoverageMetric)
    branches: CoverageMetric = field(default_factory=CoverageMetric)
    functions: CoverageMetric = field(default_factory=CoverageMetric)

    def metric(self, flavor: str) -> CoverageMetric:
        """Return the bucket named *flavor*."""
        if flavor not in FLAVORS:
            msg = f"Unknown coverage flavor '{flavor}'"
            raise KeyError(msg)
        metric: CoverageMetric = getattr(self, flavor)
        return metric

    def merge(self, other: CoverageSummary) -> CoverageSummary:
        """Return a new summary with counts summed and percentages re-derived."""
        merged: dict[str, CoverageMetric] = {}
        for flavor in FLAVORS:
            mine = self.metric(flavor)
            theirs = other.metric(flavor)
            total = mine.total + theirs.total
            covered = mine.covered + theirs.covered
            merged[flavor] = CoverageMetric(
                total=total,
                covered=covered,
                skipped=mine.skipped + theirs.skipped,
                pct=istanbul_percent(covered, total),
            )
        return CoverageSummary(**merged)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Render the summary in istanbul's ``json-summary`` shape."""
        return {flavor: self.metric(flavor).to_dict() for flavor in FLAVORS}


def istanbul_percent(covered: int, total: int) -> float:
    """Percentage rounded down to two decimals, as istanbul reports it."""
    if total > 0:
        return math.floor(covered * 100 * 100 / total) / 100
    return 100.0


class CoverageAdapter(ABC):
    """Abstract base class for coverage report adapters.

    Each concrete adapter knows how to read one native report format and
    reduce it to the unified CoverageSummary.
    """

    json_only: bool = False
    """Whether the report file must carry a ``.json`` suffix."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Format identifier (e.g. 'istanbul', 'lcov')."""

    @abstractmethod
    def parse(self, contents: str) -> CoverageSummary:
        """Parse report contents into a CoverageSummary.

        Args:
            contents: Raw text of the coverage report.

        Returns:
            The normalized summary.

        Raises:
            MalformedInputError: If the contents cannot be parsed.
        """
