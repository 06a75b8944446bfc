"""Configuration loading for sitesync.

Settings come from three layers, later ones winning: DEFAULT_CONFIG, the project's
``sitesync.yaml``, and explicit overrides (usually CLI options). The result is an
immutable SiteConfig handed to every component that needs it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .hashing import DEFAULT_ALGORITHM, Hasher
from .log import fields

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "sitesync.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "markdown_dir": "markdown",
    "css_dir": "css",
    "output_dir": "build",
    "bucket": None,
    "region": "us-east-2",
    "endpoint_url": None,
    "upload": True,
    "local_output": True,
    "upload_concurrency": 8,
    "upload_batch_size": 32,
    "hash_algorithm": DEFAULT_ALGORITHM,
    "timeout": None,
    "connect_timeout": 10,
    "read_timeout": 60,
    "fail_on_upload_error": False,
}

_PATH_KEYS = ("markdown_dir", "css_dir", "output_dir")
_POSITIVE_INT_KEYS = ("upload_concurrency", "upload_batch_size")


class ConfigError(ValueError):
    """Raised for invalid configuration files or values."""


@dataclass(frozen=True)
class SiteConfig:
    """Resolved settings for one build run.

    Attributes:
        markdown_dir: Root of the Markdown sources.
        css_dir: Root of the stylesheet sources.
        output_dir: Build output root; stylesheets go under ``output_dir/css``.
        bucket: Destination bucket, if any.
        region: Bucket region.
        endpoint_url: Custom S3 endpoint (MinIO and similar).
        upload: Whether changed files are uploaded.
        local_output: Whether the build is written to output_dir.
        upload_concurrency: Maximum concurrent uploads.
        upload_batch_size: Artifacts queued before a batch is dispatched.
        hash_algorithm: hashlib algorithm used for change detection.
        timeout: Optional bound on the whole run, in seconds.
        connect_timeout: Object store connect timeout, in seconds.
        read_timeout: Object store read timeout, in seconds.
        fail_on_upload_error: Whether upload failures fail the run.
    """

    markdown_dir: Path
    css_dir: Path
    output_dir: Path
    bucket: str | None = None
    region: str = "us-east-2"
    endpoint_url: str | None = None
    upload: bool = True
    local_output: bool = True
    upload_concurrency: int = 8
    upload_batch_size: int = 32
    hash_algorithm: str = DEFAULT_ALGORITHM
    timeout: float | None = None
    connect_timeout: float = 10
    read_timeout: float = 60
    fail_on_upload_error: bool = False

    @property
    def css_output_dir(self) -> Path:
        return self.output_dir / "css"


def read_config_file(project_root: Path) -> dict[str, Any]:
    """Read ``sitesync.yaml`` from the project root.

    Returns:
        The mapping in the file, or an empty dict when there is no file.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    config_path = project_root / CONFIG_FILENAME
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        try:
            loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{config_path}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ConfigError(f"{config_path}: expected a mapping at the top level")
    return loaded


def load_config(
    project_root: Path, overrides: Mapping[str, Any] | None = None
) -> SiteConfig:
    """Load the site configuration.

    Args:
        project_root: Directory holding ``sitesync.yaml``; relative source and
            output directories resolve against it.
        overrides: Values taking precedence over the file. ``None`` values are
            ignored so unset CLI options fall through.

    Returns:
        Resolved SiteConfig.

    Raises:
        ConfigError: If the file or a value is invalid.
    """
    config = DEFAULT_CONFIG.copy()
    for key, value in read_config_file(project_root).items():
        if key not in DEFAULT_CONFIG:
            logger.warning("ignoring unknown config key", extra=fields(key=key))
            continue
        config[key] = value
    for key, value in (overrides or {}).items():
        if value is not None:
            config[key] = value

    for key in _PATH_KEYS:
        path = Path(str(config[key]))
        config[key] = path if path.is_absolute() else project_root / path
    for key in _POSITIVE_INT_KEYS:
        if not isinstance(config[key], int) or config[key] < 1:
            raise ConfigError(f"{key} must be a positive integer, got {config[key]!r}")
    if config["timeout"] is not None and float(config["timeout"]) <= 0:
        raise ConfigError(f"timeout must be positive, got {config['timeout']!r}")
    try:
        Hasher(str(config["hash_algorithm"]))
    except ValueError as exc:
        raise ConfigError(f"hash_algorithm: {exc}") from exc
    if config["bucket"] is not None:
        config["bucket"] = str(config["bucket"])
    return SiteConfig(**config)
