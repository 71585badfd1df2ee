"""covpush CLI — normalize a coverage report and publish its percentages."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.logging import RichHandler

from covpush import __version__
from covpush.adapters import load_summary
from covpush.adapters.coverage.base import CoverageError, CoverageFormat
from covpush.config import ConfigError, load_config, validate_publish_config
from covpush.reporters.terminal import console, reporter
from covpush.utils.ci_context import detect_ci_context
from covpush.utils.publish_client import PublishContext, PublishError, publish_summary

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

# GitHub Actions exposes action inputs as INPUT_<NAME> with the name upper-cased.
_DRY_RUN_ENVVARS = ("INPUT_DRY-RUN", "COVPUSH_DRY_RUN")


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _dry_run_from_env(environ: Mapping[str, str]) -> bool:
    """Return True only when a dry-run input is exactly ``"true"``."""
    return any(environ.get(name, "").strip() == "true" for name in _DRY_RUN_ENVVARS)


def _resolve_project(explicit: str, repo_name: str | None) -> str:
    if explicit:
        return explicit
    if repo_name:
        return repo_name
    return Path.cwd().name


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--coverage-file",
    envvar=["INPUT_COVERAGE-FILE", "COVPUSH_COVERAGE_FILE"],
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Coverage report to publish.",
)
@click.option(
    "--authorization-token",
    "token",
    envvar=["INPUT_AUTHORIZATION-TOKEN", "COVPUSH_TOKEN"],
    default=None,
    help="Bearer token for the metrics endpoint. Without one nothing is published.",
)
@click.option(
    "--url",
    envvar=["INPUT_URL", "COVPUSH_URL"],
    default=None,
    help="Metrics endpoint receiving one POST per coverage flavor.",
)
@click.option(
    "--project-name",
    "project",
    envvar=["INPUT_PROJECT-NAME", "COVPUSH_PROJECT"],
    default=None,
    help="Project name (defaults to the repository name).",
)
@click.option(
    "--coverage-format",
    envvar=["INPUT_COVERAGE-FORMAT", "COVPUSH_COVERAGE_FORMAT"],
    type=click.Choice([f.value for f in CoverageFormat], case_sensitive=False),
    default=None,
    help="Report format (default: istanbul).",
)
@click.option(
    "--tag",
    envvar="COVPUSH_TAG",
    default=None,
    help="Revision tag (defaults to pr-<number> in a pull request, main otherwise).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Print the records instead of sending them.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: .covpush.yml if present).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="covpush")
def cli(
    coverage_file: Path,
    token: str | None,
    url: str | None,
    project: str | None,
    coverage_format: str | None,
    tag: str | None,
    config_path: Path | None,
    *,
    dry_run: bool,
    verbose: bool,
) -> None:
    """Publish coverage percentages from a summary, istanbul, LCOV or Cobertura report.

    Example:
      covpush --coverage-file coverage/lcov.info --coverage-format lcov \\
        --url https://metrics.example.com/coverage --authorization-token "$TOKEN"
    """
    _configure_logging(verbose=verbose)
    dry_run = dry_run or _dry_run_from_env(os.environ)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    publish = config.publish.with_overrides(
        url=url, token=token, project=project, coverage_format=coverage_format
    )
    errors = validate_publish_config(publish, dry_run=dry_run)
    if errors:
        reporter.print_error(f"Found {len(errors)} configuration error(s):")
        for idx, error in enumerate(errors, start=1):
            console.print(f"  {idx}. [red]{error}[/red]")
        raise click.Abort

    ci_context = detect_ci_context()
    context = PublishContext(
        project=_resolve_project(publish.project, ci_context.repo_name),
        tag=tag or ci_context.tag,
        url=publish.url,
        token=publish.token,
        dry_run=dry_run,
        timeout_seconds=publish.timeout_seconds,
    )
    logger.info("Publishing %s as %s/%s", coverage_file, context.project, context.tag)

    try:
        summary = load_summary(coverage_file, publish.coverage_format)
    except CoverageError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    reporter.print_coverage_summary(summary, title=f"{context.project} ({context.tag})")

    if not context.token:
        reporter.print_warning("No authorization token configured; skipping publish")
        return

    try:
        records = publish_summary(summary, context, emit=reporter.print_publish_record)
    except PublishError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    if dry_run:
        reporter.print_info(f"Dry run: {len(records)} record(s) not sent")
    else:
        reporter.print_success(f"Published {len(records)} coverage metric(s) to {context.url}")
