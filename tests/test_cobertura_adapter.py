"""Tests for the Cobertura adapter (adapters/coverage/cobertura.py)."""

from __future__ import annotations

import pytest

from covpush.adapters.coverage.base import MalformedInputError
from covpush.adapters.coverage.cobertura import CoberturaAdapter

_SAMPLE_COBERTURA = """<?xml version="1.0" ?>
<!DOCTYPE coverage SYSTEM "http://cobertura.sourceforge.net/xml/coverage-04.dtd">
<coverage version="7.4.0" timestamp="1700000000000" lines-valid="50" lines-covered="25"
          line-rate="0.5" branches-covered="3" branches-valid="4" branch-rate="0.75"
          complexity="0">
    <sources>
        <source>/project/src</source>
    </sources>
    <packages>
        <package name="app" line-rate="0.5" branch-rate="0.75" complexity="0">
            <classes>
                <class name="main.py" filename="app/main.py" line-rate="0.5" branch-rate="0.75">
                    <methods/>
                    <lines>
                        <line number="1" hits="1"/>
                        <line number="2" hits="0"/>
                    </lines>
                </class>
            </classes>
        </package>
    </packages>
</coverage>
"""


def _cobertura(**attrs: str) -> str:
    defaults = {
        "lines-valid": "50",
        "lines-covered": "25",
        "line-rate": "0.5",
        "branches-valid": "4",
        "branches-covered": "3",
        "branch-rate": "0.75",
    }
    defaults.update(attrs)
    rendered = " ".join(f'{key}="{value}"' for key, value in defaults.items() if value)
    return f"<coverage {rendered}><packages/></coverage>"


@pytest.fixture
def adapter() -> CoberturaAdapter:
    return CoberturaAdapter()


def test_identity(adapter: CoberturaAdapter) -> None:
    assert adapter.name == "cobertura"
    assert not adapter.json_only


def test_parse_reads_root_totals(adapter: CoberturaAdapter) -> None:
    summary = adapter.parse(_SAMPLE_COBERTURA)

    assert summary.lines.total == 50
    assert summary.lines.covered == 25
    assert summary.lines.pct == 50.0
    assert summary.branches.total == 4
    assert summary.branches.covered == 3
    assert summary.branches.pct == 75.0


def test_parse_uses_rate_not_counts(adapter: CoberturaAdapter) -> None:
    # line-rate disagrees with 25/50 on purpose
    summary = adapter.parse(_cobertura(**{"line-rate": "0.4"}))

    assert summary.lines.pct == pytest.approx(40.0)
    assert summary.lines.covered == 25


def test_parse_leaves_statements_and_functions_unreported(adapter: CoberturaAdapter) -> None:
    summary = adapter.parse(_SAMPLE_COBERTURA)

    for metric in (summary.statements, summary.functions):
        assert metric.total == 0
        assert metric.covered == 0
        assert metric.pct is None


def test_parse_zero_valid_keeps_reported_rate(adapter: CoberturaAdapter) -> None:
    summary = adapter.parse(
        _cobertura(**{"branches-valid": "0", "branches-covered": "0", "branch-rate": "0"})
    )

    assert summary.branches.total == 0
    assert summary.branches.pct == 0.0


def test_parse_missing_attribute(adapter: CoberturaAdapter) -> None:
    with pytest.raises(MalformedInputError, match="'branch-rate'"):
        adapter.parse(_cobertura(**{"branch-rate": ""}))


def test_parse_non_numeric_attribute(adapter: CoberturaAdapter) -> None:
    with pytest.raises(MalformedInputError, match="not a number"):
        adapter.parse(_cobertura(**{"lines-valid": "lots"}))


def test_parse_wrong_root(adapter: CoberturaAdapter) -> None:
    with pytest.raises(MalformedInputError, match="root is not <coverage>"):
        adapter.parse('<report name="jacoco"/>')


def test_parse_invalid_xml(adapter: CoberturaAdapter) -> None:
    with pytest.raises(MalformedInputError, match="Invalid Cobertura XML"):
        adapter.parse("<coverage")


def test_parse_rejects_entity_expansion(adapter: CoberturaAdapter) -> None:
    payload = (
        '<?xml version="1.0"?>\n'
        '<!DOCTYPE coverage [<!ENTITY boom "boom">]>\n'
        '<coverage lines-valid="&boom;"/>'
    )

    with pytest.raises(MalformedInputError):
        adapter.parse(payload)
