"""Adapter for pre-aggregated ``json-summary`` reports (jest/istanbul).

Jest's ``coverageReporters: ["json-summary"]`` writes
``coverage/coverage-summary.json`` with a ``total`` entry that already
carries every bucket and its percentage.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any

from covpush.adapters.coverage.base import (
    FLAVORS,
    CoverageAdapter,
    CoverageMetric,
    CoverageSummary,
    MalformedInputError,
    MissingFieldError,
)

logger = logging.getLogger(__name__)


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)) and math.isfinite(value):
        return int(value)
    return 0


def _as_pct(value: Any) -> float | None:
    # istanbul writes "Unknown" when a bucket has nothing to measure
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


class SummaryAdapter(CoverageAdapter):
    """Reads the ``total`` entry of a coverage summary file as-is."""

    json_only = True

    @property
    def name(self) -> str:
        return "summary"

    def parse(self, contents: str) -> CoverageSummary:
        """Copy the ``total`` buckets through without re-deriving percentages.

        Summary format:
        {
          "total": {
            "lines": {"total": 10, "covered": 7, "skipped": 0, "pct": 70},
            "statements": {...},
            "functions": {...},
            "branches": {...}
          },
          "/path/to/file.ts": {...}
        }
        """
        try:
            data = json.loads(contents)
        except json.JSONDecodeError as e:
            msg = f"Invalid coverage summary JSON: {e}"
            raise MalformedInputError(msg) from e

        total = data.get("total") if isinstance(data, dict) else None
        if not isinstance(total, dict):
            msg = "Coverage file is not a coverage summary file (no 'total' entry)"
            raise MissingFieldError(msg)

        buckets: dict[str, CoverageMetric] = {}
        for flavor in FLAVORS:
            raw = total.get(flavor)
            if not isinstance(raw, dict):
                logger.debug("Summary has no '%s' bucket", flavor)
                buckets[flavor] = CoverageMetric()
                continue
            buckets[flavor] = CoverageMetric(
                total=_as_int(raw.get("total")),
                covered=_as_int(raw.get("covered")),
                skipped=0,
                pct=_as_pct(raw.get("pct")),
            )

        return CoverageSummary(**buckets)
