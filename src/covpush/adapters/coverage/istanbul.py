"""Istanbul/c8 coverage adapter for JavaScript/TypeScript reports.

Istanbul is the de facto standard coverage tool for JS/TS. Jest, Vitest and
c8 all write its ``coverage-final.json`` format, which carries raw hit maps
per file rather than totals.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from covpush.adapters.coverage.base import (
    CoverageAdapter,
    CoverageMetric,
    CoverageSummary,
    MalformedInputError,
    istanbul_percent,
)

logger = logging.getLogger(__name__)

_HIT_MAPS = ("s", "f")


# ── Per-file merging ─────────────────────────────────────────────


def _unwrap(file_data: Any) -> dict[str, Any]:
    """Return the raw file coverage, accepting ``{"data": {...}}`` wrappers."""
    if isinstance(file_data, dict) and isinstance(file_data.get("data"), dict):
        return dict(file_data["data"])
    if isinstance(file_data, dict):
        return dict(file_data)
    msg = "Istanbul file coverage entries must be JSON objects"
    raise MalformedInputError(msg)


def _merge_file(into: dict[str, Any], other: dict[str, Any]) -> None:
    """Add the hit counts of *other* into *into* (same source file)."""
    for key in _HIT_MAPS:
        merged = dict(into.get(key, {}))
        for item_id, count in other.get(key, {}).items():
            merged[item_id] = merged.get(item_id, 0) + count
        into[key] = merged

    branches = dict(into.get("b", {}))
    for branch_id, counts in other.get("b", {}).items():
        existing = branches.get(branch_id)
        if not existing:
            branches[branch_id] = list(counts)
            continue
        width = max(len(existing), len(counts))
        branches[branch_id] = [
            (existing[i] if i < len(existing) else 0) + (counts[i] if i < len(counts) else 0)
            for i in range(width)
        ]
    into["b"] = branches

    for key in ("statementMap", "fnMap", "branchMap"):
        into[key] = {**other.get(key, {}), **into.get(key, {})}


def merge_coverage_map(istanbul_data: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Collapse an istanbul coverage map into one record per source path."""
    files: dict[str, dict[str, Any]] = {}
    for key, raw in istanbul_data.items():
        data = _unwrap(raw)
        path = str(data.get("path") or key)
        if path in files:
            _merge_file(files[path], data)
        else:
            files[path] = data
    return files


# ── Per-file summary ─────────────────────────────────────────────


def _simple_totals(hits: dict[str, Any]) -> CoverageMetric:
    total = len(hits)
    covered = sum(1 for count in hits.values() if count)
    return CoverageMetric(total=total, covered=covered, pct=istanbul_percent(covered, total))


def _line_hits(data: dict[str, Any]) -> dict[int, int]:
    """Collapse statement hits onto their starting line (max per line)."""
    statement_map = data.get("statementMap", {})
    lines: dict[int, int] = {}
    for stmt_id, count in data.get("s", {}).items():
        stmt_info = statement_map.get(stmt_id)
        if not stmt_info:
            continue
        line = stmt_info.get("start", {}).get("line")
        if line is None:
            continue
        if line not in lines or lines[line] < count:
            lines[line] = count
    return lines


def _branch_totals(data: dict[str, Any]) -> CoverageMetric:
    total = 0
    covered = 0
    for counts in data.get("b", {}).values():
        if not isinstance(counts, list):
            continue
        total += len(counts)
        covered += sum(1 for c in counts if c > 0)
    return CoverageMetric(total=total, covered=covered, pct=istanbul_percent(covered, total))


def summarize_file(data: dict[str, Any]) -> CoverageSummary:
    """Compute the istanbul summary of a single file's coverage."""
    lines = _line_hits(data)
    covered_lines = sum(1 for count in lines.values() if count > 0)
    return CoverageSummary(
        lines=CoverageMetric(
            total=len(lines),
            covered=covered_lines,
            pct=istanbul_percent(covered_lines, len(lines)),
        ),
        statements=_simple_totals(data.get("s", {})),
        branches=_branch_totals(data),
        functions=_simple_totals(data.get("f", {})),
    )


# ── Adapter ──────────────────────────────────────────────────────


class IstanbulAdapter(CoverageAdapter):
    """Istanbul coverage adapter.

    Merges the per-file records of a ``coverage-final.json`` map, summarizes
    each file and sums the file summaries into one project summary.
    """

    json_only = True

    @property
    def name(self) -> str:
        return "istanbul"

    def parse(self, contents: str) -> CoverageSummary:
        """Parse Istanbul JSON coverage format into a summary.

        Istanbul format:
        {
          "/path/to/file.ts": {
            "path": "/path/to/file.ts",
            "statementMap": { "0": {...}, "1": {...} },
            "fnMap": { "0": {...}, "1": {...} },
            "branchMap": { "0": {...}, "1": {...} },
            "s": { "0": 1, "1": 0, ... },  // statement hit counts
            "f": { "0": 1, "1": 0, ... },  // function hit counts
            "b": { "0": [1, 0], ... }       // branch hit counts per location
          }
        }
        """
        try:
            istanbul_data = json.loads(contents)
        except json.JSONDecodeError as e:
            msg = f"Invalid istanbul coverage JSON: {e}"
            raise MalformedInputError(msg) from e

        if not isinstance(istanbul_data, dict):
            msg = "Istanbul coverage must be a JSON object keyed by file path"
            raise MalformedInputError(msg)

        try:
            files = merge_coverage_map(istanbul_data)
            logger.debug("Summarizing istanbul coverage for %d file(s)", len(files))

            summary = summarize_file({})
            for data in files.values():
                summary = summary.merge(summarize_file(data))
        except (AttributeError, TypeError) as e:
            msg = f"Unexpected istanbul coverage structure: {e}"
            raise MalformedInputError(msg) from e
        return summary
