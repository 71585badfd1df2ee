"""LCOV tracefile adapter.

LCOV ``.info`` files are written by lcov/geninfo, gcovr, c8, Jest,
cargo-llvm-cov and most other coverage tools as an interchange format.
Each ``SF:`` ... ``end_of_record`` block describes one source file.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from covpush.adapters.coverage.base import (
    CoverageAdapter,
    CoverageMetric,
    CoverageSummary,
    MalformedInputError,
)

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────

# LCOV record keys
_LCOV_TN = "TN"
_LCOV_SF = "SF"
_LCOV_FN = "FN"
_LCOV_FNDA = "FNDA"
_LCOV_FNF = "FNF"
_LCOV_FNH = "FNH"
_LCOV_DA = "DA"
_LCOV_LF = "LF"
_LCOV_LH = "LH"
_LCOV_BRDA = "BRDA"
_LCOV_BRF = "BRF"
_LCOV_BRH = "BRH"
_LCOV_END = "end_of_record"
_LCOV_DA_PARTS = 2
_LCOV_BRDA_PARTS = 4

_FN_RE = re.compile(r"^(\d+)(?:,\d+)?,\s*(.*)$")
_FNDA_RE = re.compile(r"^(\d+),\s*(.*)$")

_SUMMARY_KEYS = {_LCOV_LF, _LCOV_LH, _LCOV_FNF, _LCOV_FNH, _LCOV_BRF, _LCOV_BRH}


@dataclass(frozen=True)
class LcovCounts:
    """Instrumented/hit counts of one flavor within one LCOV section."""

    instrumented: int = 0
    hit: int = 0


@dataclass(frozen=True)
class LcovSection:
    """Summary of one ``SF:`` record."""

    path: str
    lines: LcovCounts
    functions: LcovCounts
    branches: LcovCounts


@dataclass
class _LcovRecordState:
    path: str | None = None
    fns: set[str] = field(default_factory=set)
    fnda: dict[str, int] = field(default_factory=dict)
    da: dict[int, int] = field(default_factory=dict)
    brda: list[int] = field(default_factory=list)
    totals: dict[str, int] = field(default_factory=dict)
    touched: bool = False

    def to_section(self) -> LcovSection:
        """Prefer the LF/LH-style summary lines, fall back to the detail lines."""
        lines = LcovCounts(
            instrumented=self.totals.get(_LCOV_LF, len(self.da)),
            hit=self.totals.get(_LCOV_LH, sum(1 for cnt in self.da.values() if cnt > 0)),
        )
        function_names = self.fns | set(self.fnda)
        functions = LcovCounts(
            instrumented=self.totals.get(_LCOV_FNF, len(function_names)),
            hit=self.totals.get(_LCOV_FNH, sum(1 for cnt in self.fnda.values() if cnt > 0)),
        )
        branches = LcovCounts(
            instrumented=self.totals.get(_LCOV_BRF, len(self.brda)),
            hit=self.totals.get(_LCOV_BRH, sum(1 for taken in self.brda if taken > 0)),
        )
        return LcovSection(
            path=self.path or "",
            lines=lines,
            functions=functions,
            branches=branches,
        )


def _to_int(key: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        msg = f"Invalid LCOV {key} value: {value!r}"
        raise MalformedInputError(msg) from None


def _apply_lcov_key(key: str, value: str, state: _LcovRecordState) -> None:
    if key in _SUMMARY_KEYS:
        state.totals[key] = _to_int(key, value)
    elif key == _LCOV_FN:
        match = _FN_RE.match(value)
        if not match:
            msg = f"Invalid LCOV FN record: {value!r}"
            raise MalformedInputError(msg)
        state.fns.add(match.group(2).strip())
    elif key == _LCOV_FNDA:
        match = _FNDA_RE.match(value)
        if not match:
            msg = f"Invalid LCOV FNDA record: {value!r}"
            raise MalformedInputError(msg)
        name = match.group(2).strip()
        state.fnda[name] = state.fnda.get(name, 0) + int(match.group(1))
    elif key == _LCOV_DA:
        parts = value.split(",")
        if len(parts) < _LCOV_DA_PARTS:
            msg = f"Invalid LCOV DA record: {value!r}"
            raise MalformedInputError(msg)
        line_number = _to_int(key, parts[0])
        state.da[line_number] = state.da.get(line_number, 0) + _to_int(key, parts[1])
    elif key == _LCOV_BRDA:
        parts = value.split(",")
        if len(parts) < _LCOV_BRDA_PARTS:
            msg = f"Invalid LCOV BRDA record: {value!r}"
            raise MalformedInputError(msg)
        taken_s = parts[3].strip()
        state.brda.append(0 if taken_s == "-" else _to_int(key, taken_s))
    else:
        # TN, VER, FNL/FNA and other extensions carry nothing we sum
        return
    state.touched = True


def parse_lcov(content: str) -> list[LcovSection]:
    """Parse LCOV tracefile text into one summary per section.

    Raises:
        MalformedInputError: If a numeric field does not parse or the text
            contains no LCOV records at all.
    """
    sections: list[LcovSection] = []
    state = _LcovRecordState()
    seen_record = False

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line == _LCOV_END:
            if state.path is not None or state.touched:
                sections.append(state.to_section())
            state = _LcovRecordState()
            seen_record = True
            continue
        if ":" not in line:
            msg = f"Unexpected line in LCOV data: {line!r}"
            raise MalformedInputError(msg)
        key, _, value = line.partition(":")
        if key == _LCOV_SF:
            if state.path is not None or state.touched:
                sections.append(state.to_section())
            state = _LcovRecordState(path=value.strip())
            seen_record = True
        elif key == _LCOV_TN:
            seen_record = True
        else:
            _apply_lcov_key(key, value, state)
            seen_record = seen_record or state.touched

    if state.path is not None or state.touched:
        sections.append(state.to_section())

    if not seen_record:
        msg = "No LCOV records found"
        raise MalformedInputError(msg)
    return sections


def sections_to_summary(sections: list[LcovSection]) -> CoverageSummary:
    """Sum per-section counts into one summary.

    Percentages are derived from the summed counts (100 when nothing was
    instrumented). LCOV has no statement granularity, so ``statements`` is
    left unreported.
    """
    totals = {"lines": [0, 0], "functions": [0, 0], "branches": [0, 0]}
    for section in sections:
        for flavor, counts in totals.items():
            section_counts: LcovCounts = getattr(section, flavor)
            counts[0] += section_counts.instrumented
            counts[1] += section_counts.hit

    return CoverageSummary(
        lines=CoverageMetric.from_counts(*totals["lines"]),
        statements=CoverageMetric(),
        branches=CoverageMetric.from_counts(*totals["branches"]),
        functions=CoverageMetric.from_counts(*totals["functions"]),
    )


class LcovAdapter(CoverageAdapter):
    """LCOV adapter: sums instrumented/hit counts across all sections."""

    @property
    def name(self) -> str:
        return "lcov"

    def parse(self, contents: str) -> CoverageSummary:
        sections = parse_lcov(contents)
        logger.debug("Parsed %d LCOV section(s)", len(sections))
        return sections_to_summary(sections)
