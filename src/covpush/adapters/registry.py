"""Adapter registry — selection of the coverage adapter for a report format.

Every ``CoverageFormat`` member maps to exactly one adapter class; adding a
format means adding an enum member and its adapter here.
"""

from __future__ import annotations

import logging
from pathlib import Path

from covpush.adapters.coverage.base import (
    CoverageAdapter,
    CoverageError,
    CoverageFormat,
    CoverageSummary,
    MalformedInputError,
    UnsupportedFormatError,
)
from covpush.adapters.coverage.cobertura import CoberturaAdapter
from covpush.adapters.coverage.istanbul import IstanbulAdapter
from covpush.adapters.coverage.lcov import LcovAdapter
from covpush.adapters.coverage.summary import SummaryAdapter

logger = logging.getLogger(__name__)

_ADAPTERS: dict[CoverageFormat, type[CoverageAdapter]] = {
    CoverageFormat.SUMMARY: SummaryAdapter,
    CoverageFormat.ISTANBUL: IstanbulAdapter,
    CoverageFormat.LCOV: LcovAdapter,
    CoverageFormat.COBERTURA: CoberturaAdapter,
}


def get_adapter(coverage_format: str | CoverageFormat) -> CoverageAdapter:
    """Return a fresh adapter instance for *coverage_format*.

    Raises:
        UnsupportedFormatError: If the format is not recognized.
    """
    fmt = CoverageFormat.parse(coverage_format)
    adapter_cls = _ADAPTERS.get(fmt)
    if adapter_cls is None:
        msg = f"No adapter registered for coverage format '{fmt.value}'"
        raise UnsupportedFormatError(msg)
    return adapter_cls()


def normalize(
    coverage_format: str | CoverageFormat,
    contents: str,
    *,
    filename: str | None = None,
) -> CoverageSummary:
    """Reduce a coverage report to the unified CoverageSummary.

    Args:
        coverage_format: One of ``summary``, ``istanbul``, ``lcov``, ``cobertura``.
        contents: Raw text of the report.
        filename: Name of the report file, checked for a ``.json`` suffix
            when the format is JSON based.

    Returns:
        The normalized summary.

    Raises:
        UnsupportedFormatError: Unknown format tag.
        MalformedInputError: Contents do not parse as the declared format.
        MissingFieldError: A summary report has no ``total`` entry.
    """
    adapter = get_adapter(coverage_format)
    if adapter.json_only and filename is not None and not filename.endswith(".json"):
        msg = f"Coverage file '{filename}' should be (jest) json formatted"
        raise MalformedInputError(msg)

    logger.info("Normalizing %s coverage report", adapter.name)
    return adapter.parse(contents)


def load_summary(path: str | Path, coverage_format: str | CoverageFormat) -> CoverageSummary:
    """Read a coverage report from disk and normalize it."""
    coverage_file = Path(path)
    # Validate the format before touching the file system.
    adapter = get_adapter(coverage_format)
    if adapter.json_only and not coverage_file.name.endswith(".json"):
        msg = f"Coverage file '{coverage_file}' should be (jest) json formatted"
        raise MalformedInputError(msg)

    try:
        contents = coverage_file.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        msg = f"Coverage file '{coverage_file}' is not UTF-8 text: {e}"
        raise MalformedInputError(msg) from e
    except OSError as e:
        msg = f"Failed to read coverage file '{coverage_file}': {e}"
        raise CoverageError(msg) from e

    return normalize(coverage_format, contents, filename=coverage_file.name)
