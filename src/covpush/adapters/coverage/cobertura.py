"""Cobertura XML coverage adapter.

Cobertura's XML format is written by coverage.py (``coverage xml``), gcovr,
Coverlet, istanbul's ``cobertura`` reporter and many CI tools. Only the
project totals on the root ``<coverage>`` element are read.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException, ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

from covpush.adapters.coverage.base import (
    CoverageAdapter,
    CoverageMetric,
    CoverageSummary,
    MalformedInputError,
)

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)

_ROOT_TAG = "coverage"


def _number_attr(element: XmlElement, key: str) -> float:
    value = element.get(key)
    if value is None:
        msg = f"Cobertura <coverage> element is missing the '{key}' attribute"
        raise MalformedInputError(msg)
    try:
        number = float(value.strip())
    except ValueError:
        msg = f"Cobertura attribute '{key}' is not a number: {value!r}"
        raise MalformedInputError(msg) from None
    if not math.isfinite(number):
        msg = f"Cobertura attribute '{key}' is not a finite number: {value!r}"
        raise MalformedInputError(msg)
    return number


def _metric(root: XmlElement, valid_key: str, covered_key: str, rate_key: str) -> CoverageMetric:
    # The rate is taken as reported, not re-derived from valid/covered.
    return CoverageMetric(
        total=int(_number_attr(root, valid_key)),
        covered=int(_number_attr(root, covered_key)),
        skipped=0,
        pct=_number_attr(root, rate_key) * 100,
    )


class CoberturaAdapter(CoverageAdapter):
    """Cobertura adapter: reads line and branch totals off the root element.

    Cobertura does not report statement or function totals on the root, so
    those buckets are left unreported.
    """

    @property
    def name(self) -> str:
        return "cobertura"

    def parse(self, contents: str) -> CoverageSummary:
        """Parse Cobertura XML into a summary.

        Cobertura format:
        <coverage line-rate="0.5" branch-rate="0.25" lines-covered="25"
                  lines-valid="50" branches-covered="1" branches-valid="4" ...>
          <sources>...</sources>
          <packages>...</packages>
        </coverage>
        """
        try:
            root = ElementTree.fromstring(contents)
        except (DefusedParseError, DefusedXmlException) as e:
            msg = f"Invalid Cobertura XML: {e}"
            raise MalformedInputError(msg) from e

        if root.tag != _ROOT_TAG:
            msg = f"Cobertura XML root is not <{_ROOT_TAG}>: <{root.tag}>"
            raise MalformedInputError(msg)

        summary = CoverageSummary(
            lines=_metric(root, "lines-valid", "lines-covered", "line-rate"),
            statements=CoverageMetric(),
            branches=_metric(root, "branches-valid", "branches-covered", "branch-rate"),
            functions=CoverageMetric(),
        )
        logger.debug(
            "Cobertura totals: lines %s/%s, branches %s/%s",
            summary.lines.covered,
            summary.lines.total,
            summary.branches.covered,
            summary.branches.total,
        )
        return summary
