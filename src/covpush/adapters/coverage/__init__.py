"""Coverage adapters for unified coverage summaries."""

from covpush.adapters.coverage.base import (
    FLAVORS,
    CoverageAdapter,
    CoverageError,
    CoverageFormat,
    CoverageMetric,
    CoverageSummary,
    MalformedInputError,
    MissingFieldError,
    UnsupportedFormatError,
)
from covpush.adapters.coverage.cobertura import CoberturaAdapter
from covpush.adapters.coverage.istanbul import IstanbulAdapter
from covpush.adapters.coverage.lcov import LcovAdapter
from covpush.adapters.coverage.summary import SummaryAdapter

__all__ = [
    "FLAVORS",
    "CoberturaAdapter",
    "CoverageAdapter",
    "CoverageError",
    "CoverageFormat",
    "CoverageMetric",
    "CoverageSummary",
    "IstanbulAdapter",
    "LcovAdapter",
    "MalformedInputError",
    "MissingFieldError",
    "SummaryAdapter",
    "UnsupportedFormatError",
]
