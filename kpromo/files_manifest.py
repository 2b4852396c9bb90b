"""File promotion manifests: filestores and the files copied between them."""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from typing import Any

import yaml

GCS_PREFIX = "gs://"
"""Scheme prefix of Google Cloud Storage bases, the only supported backend."""

_HEX_DIGITS = frozenset(string.hexdigits)


class ManifestError(ValueError):
    """A file promotion manifest could not be parsed or is not valid."""


@dataclass
class Filestore:
    """A filestore (such as a GCS bucket) named in a manifest.

    ``base`` is everything of an artifact path that is not the file name,
    scheme included, e.g. ``gs://prod-artifacts/myproject``.
    """

    base: str = ""
    service_account: str = ""
    src: bool = False


@dataclass
class File:
    """A file artifact: its path relative to a filestore base and its SHA256."""

    name: str = ""
    sha256: str = ""


@dataclass
class Manifest:
    """The source and destination filestores and the files to promote."""

    filestores: list[Filestore] = field(default_factory=list)
    files: list[File] = field(default_factory=list)

    def validate(self) -> None:
        """Check the manifest for semantic errors, raising ManifestError."""
        validate_filestores(self.filestores)
        validate_files(self.files)


def parse_manifest(data: str | bytes) -> Manifest:
    """Parse a manifest from YAML; unknown keys are ignored."""
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ManifestError(f"error parsing manifest: {exc}") from exc
    if document is None:
        return Manifest()
    if not isinstance(document, dict):
        raise ManifestError("error parsing manifest: expected a mapping")
    filestores = [
        Filestore(
            base=_field(item, "base", str, ""),
            service_account=_field(item, "service-account", str, ""),
            src=_field(item, "src", bool, False),
        )
        for item in _mappings(document, "filestores")
    ]
    files = [
        File(
            name=_field(item, "name", str, ""),
            sha256=_field(item, "sha256", str, ""),
        )
        for item in _mappings(document, "files")
    ]
    return Manifest(filestores=filestores, files=files)


def validate_filestores(filestores: list[Filestore] | None) -> Filestore:
    """Check the filestores of a manifest and return the source filestore."""
    if not filestores:
        raise ManifestError("at least one filestore must be specified")

    source: Filestore | None = None
    destination_count = 0
    for filestore in filestores:
        if filestore.base == "":
            raise ManifestError("filestore did not have base set")
        if not filestore.base.startswith(GCS_PREFIX):
            raise ManifestError(
                f"filestore has unsupported scheme in base {filestore.base!r}"
            )
        if filestore.src:
            if source is not None:
                raise ManifestError("found multiple source filestores")
            source = filestore
        else:
            destination_count += 1

    if source is None:
        raise ManifestError("source filestore not found")
    if destination_count == 0:
        raise ManifestError("no destination filestores found")
    return source


def validate_files(files: list[File] | None) -> dict[str, bytes]:
    """Check the files of a manifest and return their decoded digests by name."""
    if not files:
        raise ManifestError("at least one file must be specified")

    digests: dict[str, bytes] = {}
    for f in files:
        if f.name == "":
            raise ManifestError("name is required for file")
        if f.sha256 == "":
            raise ManifestError("sha256 is required for file")
        if len(f.sha256) % 2 or not _HEX_DIGITS.issuperset(f.sha256):
            raise ManifestError(f"sha256 was not valid (not hex): {f.sha256!r}")
        digest = bytes.fromhex(f.sha256)
        if len(digest) != 32:
            raise ManifestError(f"sha256 was not valid (bad length): {f.sha256!r}")
        digests[f.name] = digest
    return digests


def _mappings(document: dict, key: str) -> list[dict]:
    items = document.get(key)
    if items is None:
        return []
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise ManifestError(f"error parsing manifest: {key!r} must be a list of mappings")
    return items


def _field(mapping: dict, key: str, kind: type, default: Any) -> Any:
    value = mapping.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise ManifestError(
            f"error parsing manifest: {key!r} must be of type {kind.__name__}"
        )
    return value