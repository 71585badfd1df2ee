"""Publishing helpers for uploading coverage percentages to a metrics endpoint."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

import click
import requests

from covpush.adapters.coverage.base import CoverageSummary

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

PUBLISH_ORDER = ("branches", "statements", "functions", "lines")
"""Order in which flavors are published."""

_HTTP_SUCCESS_MIN = 200
_HTTP_SUCCESS_MAX = 300


class PublishError(RuntimeError):
    """Raised when the metrics endpoint rejects a record or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None, reason: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


@dataclass(frozen=True)
class PublishContext:
    """Where and how to publish a coverage summary."""

    project: str
    tag: str
    url: str = ""
    token: str = ""
    dry_run: bool = False
    timeout_seconds: float | None = None
    """Request timeout; None leaves it to the network stack."""


@dataclass(frozen=True)
class PublishRecord:
    """Request body for one coverage flavor."""

    project: str
    flavor: str
    value: float
    tag: str
    covered_items: int
    total_items: int

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


def _echo_record(record: PublishRecord) -> None:
    click.echo(json.dumps(record.to_payload()))


def build_records(summary: CoverageSummary, context: PublishContext) -> list[PublishRecord]:
    """Build one record per flavor that has a finite percentage, in publish order."""
    records: list[PublishRecord] = []
    for flavor in PUBLISH_ORDER:
        metric = summary.metric(flavor)
        if metric.pct is None or not math.isfinite(metric.pct):
            logger.debug("Skipping %s: not reported by this coverage format", flavor)
            continue
        records.append(
            PublishRecord(
                project=context.project,
                flavor=flavor,
                value=metric.pct,
                tag=context.tag,
                covered_items=metric.covered,
                total_items=metric.total,
            )
        )
    return records


def post_coverage_record(context: PublishContext, record: PublishRecord) -> None:
    """POST a single record to the metrics endpoint.

    Raises:
        PublishError: On a non-2xx response or a transport failure.
    """
    try:
        response = requests.post(
            context.url,
            headers={
                "Authorization": f"Bearer {context.token}",
                "Content-Type": "application/json",
            },
            json=record.to_payload(),
            timeout=context.timeout_seconds,
        )
    except requests.RequestException as e:
        msg = f"Failed to publish coverage: {e}"
        raise PublishError(msg) from e

    if response.status_code < _HTTP_SUCCESS_MIN or response.status_code >= _HTTP_SUCCESS_MAX:
        reason = response.reason or ""
        raise PublishError(
            f"Failed to publish coverage: {response.status_code} {reason}".rstrip(),
            status_code=response.status_code,
            reason=reason,
        )
    logger.info("Published %s coverage (%s)", record.flavor, response.status_code)


def publish_summary(
    summary: CoverageSummary,
    context: PublishContext,
    *,
    emit: Callable[[PublishRecord], None] | None = None,
) -> list[PublishRecord]:
    """Publish every reported flavor of *summary*, stopping at the first failure.

    Without a token nothing is sent; this is not an error. In dry-run mode
    each record is handed to *emit* (stdout by default) instead of the network.

    Returns:
        The records that were published or emitted.

    Raises:
        PublishError: If the endpoint rejects a record; later flavors are not sent.
    """
    if not context.token:
        logger.debug("No authorization token configured; skipping publish")
        return []

    emit = emit or _echo_record
    published: list[PublishRecord] = []
    for record in build_records(summary, context):
        if context.dry_run:
            emit(record)
        else:
            post_coverage_record(context, record)
        published.append(record)
    return published
