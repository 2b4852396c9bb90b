"""Configuration for copying GitHub release assets to Google Cloud Storage."""

from __future__ import annotations

import posixpath
from collections.abc import Collection
from dataclasses import dataclass, field
from typing import Any

import yaml

ORG_FLAG = "org"
REPO_FLAG = "repo"
TAGS_FLAG = "tags"
CONFIG_FLAG = "config"
INCLUDE_PRERELEASES_FLAG = "include-prereleases"
BUCKET_FLAG = "bucket"
RELEASE_DIR_FLAG = "release-dir"
OUTPUT_DIR_FLAG = "output-dir"
DOWNLOAD_ONLY_FLAG = "download-only"

REQUIRED_FLAGS = (ORG_FLAG, REPO_FLAG, BUCKET_FLAG, RELEASE_DIR_FLAG)
"""Flags that must be given unless a config file is."""

_TRUE = frozenset({"y", "yes", "on", "true"})
_FALSE = frozenset({"n", "no", "off", "false"})

_FIELDS = {
    "org": "org",
    "repo": "repo",
    "tags": "tags",
    "includePrereleases": "include_prereleases",
    "gcsBucket": "gcs_bucket",
    "releaseDir": "release_dir",
}


class Gh2GcsError(ValueError):
    """A release configuration or the given flags are not valid."""


@dataclass
class ReleaseConfig:
    """Where to read releases on GitHub and where to put them in GCS."""

    org: str = ""
    repo: str = ""
    tags: list[str] = field(default_factory=list)
    include_prereleases: bool = False
    gcs_bucket: str = ""
    release_dir: str = ""


@dataclass
class Config:
    """Release configurations of several repositories."""

    release_configs: list[ReleaseConfig] = field(default_factory=list)


def parse_config(data: str | bytes) -> Config:
    """Parse a YAML config file strictly: unknown keys are errors."""
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    try:
        document = yaml.load(data, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise Gh2GcsError(f"failed to decode the file: {exc}") from exc
    if document in (None, ""):
        return Config()
    if not isinstance(document, dict):
        raise Gh2GcsError("failed to decode the file: expected a mapping")
    unknown = set(document) - {"releaseConfigs"}
    if unknown:
        raise Gh2GcsError(f"failed to decode the file: unknown field {sorted(unknown)[0]!r}")
    items = document.get("releaseConfigs") or []
    if not isinstance(items, list):
        raise Gh2GcsError("failed to decode the file: releaseConfigs must be a list")
    return Config(release_configs=[_release_config(item) for item in items])


def check_required_flags(provided_flags: Collection[str]) -> None:
    """Raise Gh2GcsError naming the required flags that were not given.

    Nothing is required when the config flag is given.
    """
    if CONFIG_FLAG in provided_flags:
        return
    missing = sorted(flag for flag in REQUIRED_FLAGS if flag not in provided_flags)
    if missing:
        raise Gh2GcsError("Required flag(s) `" + ", ".join(missing) + "` not set")


def upload_targets(config: ReleaseConfig, output_dir: str) -> list[tuple[str, str]]:
    """Pair the local directory of each release tag with its GCS destination."""
    upload_base = _join(output_dir, config.org, config.repo)
    return [
        (_join(upload_base, tag), _join(config.gcs_bucket, config.release_dir, tag))
        for tag in config.tags
    ]


def _join(*parts: str) -> str:
    kept = [part for part in parts if part]
    if not kept:
        return ""
    return posixpath.normpath(posixpath.join(*kept))


def _release_config(item: Any) -> ReleaseConfig:
    if not isinstance(item, dict):
        raise Gh2GcsError("failed to decode the file: release config must be a mapping")
    unknown = set(item) - set(_FIELDS)
    if unknown:
        raise Gh2GcsError(f"failed to decode the file: unknown field {sorted(unknown)[0]!r}")
    values: dict[str, Any] = {}
    for key, attr in _FIELDS.items():
        if key not in item:
            continue
        value = item[key]
        if attr == "tags":
            if value == "":
                value = []
            if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
                raise Gh2GcsError("failed to decode the file: tags must be a list of strings")
            values[attr] = list(value)
        elif attr == "include_prereleases":
            values[attr] = _as_bool(key, value)
        else:
            if not isinstance(value, str):
                raise Gh2GcsError(f"failed to decode the file: {key} must be a string")
            values[attr] = value
    return ReleaseConfig(**values)


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise Gh2GcsError(f"failed to decode the file: {key} must be a boolean")