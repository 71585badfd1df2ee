"""Configuration parsing from ``.covpush.yml``."""

from __future__ import annotations

import dataclasses
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import yaml

from covpush.adapters.coverage.base import CoverageFormat

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".covpush.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_VALID_URL_SCHEMES = {"http", "https"}


class ConfigError(ValueError):
    """Raised when the configuration file cannot be loaded or is invalid."""


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


@dataclass(frozen=True)
class PublishConfig:
    """Publishing configuration."""

    url: str = ""
    """Metrics endpoint that receives one POST per coverage flavor."""

    token: str = ""
    """Bearer token (supports ${ENV_VAR} expansion). Empty disables publishing."""

    project: str = ""
    """Project name attached to every record."""

    coverage_format: str = CoverageFormat.ISTANBUL.value
    """Report format: summary, istanbul, lcov or cobertura."""

    timeout_seconds: float | None = None
    """Per-request timeout; unset leaves it to the network stack."""

    def with_overrides(self, **overrides: Any) -> PublishConfig:
        """Return a copy where every non-None override replaces the file value."""
        return dataclasses.replace(
            self, **{key: value for key, value in overrides.items() if value is not None}
        )


@dataclass
class CovpushConfig:
    """Top-level configuration."""

    publish: PublishConfig = field(default_factory=PublishConfig)


def _str_or_default(value: Any, default: str) -> str:
    """Stringify a YAML scalar; a blank or null value keeps the default."""
    if value is None:
        return default
    return str(value)


def _parse_timeout(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        msg = f"publish.timeout_seconds must be a number, got {value!r}"
        raise ConfigError(msg) from e


def _parse_publish_config(raw: dict[str, Any]) -> PublishConfig:
    """Parse the publish section from raw YAML."""
    publish_raw = raw.get("publish", {})
    if not isinstance(publish_raw, dict):
        publish_raw = {}

    default = PublishConfig()
    return PublishConfig(
        url=_str_or_default(publish_raw.get("url"), default.url),
        token=_str_or_default(publish_raw.get("token"), default.token),
        project=_str_or_default(publish_raw.get("project"), default.project),
        coverage_format=_str_or_default(
            publish_raw.get("coverage_format"), default.coverage_format
        ),
        timeout_seconds=_parse_timeout(publish_raw.get("timeout_seconds")),
    )


def load_config(path: str | Path | None = None) -> CovpushConfig:
    """Load ``.covpush.yml``.

    Args:
        path: Config file to read. Defaults to ``.covpush.yml`` in the
            working directory; a missing default file yields defaults.

    Raises:
        ConfigError: If an explicitly given file is missing or the YAML
            cannot be parsed.
    """
    explicit = path is not None
    config_path = Path(path) if path is not None else Path.cwd() / CONFIG_FILENAME

    if not config_path.is_file():
        if explicit:
            msg = f"Config file not found: {config_path}"
            raise ConfigError(msg)
        return CovpushConfig()

    try:
        parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        msg = f"Failed to load {config_path}: {e}"
        raise ConfigError(msg) from e

    raw: dict[str, Any] = _resolve_dict(parsed) if isinstance(parsed, dict) else {}
    logger.debug("Loaded configuration from %s", config_path)
    return CovpushConfig(publish=_parse_publish_config(raw))


def validate_publish_config(publish: PublishConfig, *, dry_run: bool = False) -> list[str]:
    """Validate resolved publish settings and return a list of error messages."""
    errors: list[str] = []

    if publish.coverage_format.strip().lower() not in {f.value for f in CoverageFormat}:
        valid = ", ".join(f.value for f in CoverageFormat)
        errors.append(
            f"publish.coverage_format '{publish.coverage_format}' is invalid (expected: {valid})"
        )

    if publish.url:
        scheme = urlsplit(publish.url).scheme
        if scheme not in _VALID_URL_SCHEMES:
            errors.append(f"publish.url must be an http(s) URL, got '{publish.url}'")
    elif publish.token and not dry_run:
        errors.append("publish.url is required when an authorization token is set")

    if publish.timeout_seconds is not None and publish.timeout_seconds <= 0:
        errors.append("publish.timeout_seconds must be positive")

    return errors


def validate_config(config: CovpushConfig, *, dry_run: bool = False) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    return validate_publish_config(config.publish, dry_run=dry_run)
