"""CI and PR context detection utilities."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

# Expected number of parts when splitting "owner/repo"
_OWNER_REPO_PARTS = 2

DEFAULT_TAG = "main"


@dataclass(frozen=True)
class CIContext:
    """Detected CI/PR execution context."""

    is_ci: bool = False
    """Running in CI environment."""

    is_pr: bool = False
    """Running in context of a pull request."""

    pr_number: int | None = None
    """PR number if in PR context."""

    branch: str | None = None
    """Current branch name."""

    commit_sha: str | None = None
    """Current commit SHA."""

    repo_owner: str | None = None
    """Repository owner (org or user)."""

    repo_name: str | None = None
    """Repository name."""

    @property
    def tag(self) -> str:
        """Revision tag for published records."""
        return derive_tag(self.pr_number)


def derive_tag(pr_number: int | None) -> str:
    """Return ``pr-<number>`` inside a pull request, ``main`` otherwise."""
    if pr_number is not None:
        return f"pr-{pr_number}"
    return DEFAULT_TAG


def _parse_int(value: Any) -> int | None:
    """Parse a string or int, return None if invalid."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _read_github_event(event_path: str | None) -> dict[str, Any]:
    """Load the GitHub Actions event payload, or an empty dict."""
    if not event_path:
        return {}
    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read GitHub event payload %s: %s", event_path, e)
        return {}
    return payload if isinstance(payload, dict) else {}


def _github_pr_number(env: Mapping[str, str]) -> int | None:
    explicit = _parse_int(env.get("GITHUB_PR_NUMBER"))
    if explicit is not None:
        return explicit
    pull_request = _read_github_event(env.get("GITHUB_EVENT_PATH")).get("pull_request")
    if isinstance(pull_request, dict):
        return _parse_int(pull_request.get("number"))
    return None


def detect_ci_context(environ: Mapping[str, str] | None = None) -> CIContext:
    """Detect CI and PR context from environment variables.

    Supports GitHub Actions, GitLab CI, CircleCI, and generic CI detection.

    Args:
        environ: Environment to inspect; defaults to ``os.environ``.

    Returns:
        CIContext with detected values.
    """
    env = os.environ if environ is None else environ

    # GitHub Actions
    if env.get("GITHUB_ACTIONS") == "true":
        pr_number = _github_pr_number(env)

        # Extract repo info from GITHUB_REPOSITORY (format: owner/repo)
        repo_full = env.get("GITHUB_REPOSITORY", "")
        repo_parts = repo_full.split("/") if repo_full else []
        repo_owner = repo_parts[0] if len(repo_parts) == _OWNER_REPO_PARTS else None
        repo_name = repo_parts[1] if len(repo_parts) == _OWNER_REPO_PARTS else None

        return CIContext(
            is_ci=True,
            is_pr=pr_number is not None,
            pr_number=pr_number,
            branch=env.get("GITHUB_HEAD_REF") or env.get("GITHUB_REF_NAME"),
            commit_sha=env.get("GITHUB_SHA"),
            repo_owner=repo_owner,
            repo_name=repo_name,
        )

    # GitLab CI
    if env.get("GITLAB_CI") == "true":
        pr_number = _parse_int(env.get("CI_MERGE_REQUEST_IID"))
        return CIContext(
            is_ci=True,
            is_pr=pr_number is not None,
            pr_number=pr_number,
            branch=env.get("CI_COMMIT_REF_NAME"),
            commit_sha=env.get("CI_COMMIT_SHA"),
            repo_owner=env.get("CI_PROJECT_NAMESPACE"),
            repo_name=env.get("CI_PROJECT_NAME"),
        )

    # CircleCI
    if env.get("CIRCLECI") == "true":
        pr_num_str = (
            env.get("CIRCLE_PR_NUMBER") or env.get("CIRCLE_PULL_REQUEST", "").split("/")[-1]
        )
        pr_number = _parse_int(pr_num_str)
        return CIContext(
            is_ci=True,
            is_pr=pr_number is not None,
            pr_number=pr_number,
            branch=env.get("CIRCLE_BRANCH"),
            commit_sha=env.get("CIRCLE_SHA1"),
            repo_owner=env.get("CIRCLE_PROJECT_USERNAME"),
            repo_name=env.get("CIRCLE_PROJECT_REPONAME"),
        )

    # Generic CI detection (CI env var)
    if env.get("CI") == "true":
        return CIContext(is_ci=True)

    # Not in CI
    return CIContext()
