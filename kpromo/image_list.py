"""Image promoter image lists: the ``images.yaml`` files of a promoter manifest."""

from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

import yaml

PROD_REGISTRY = "k8s.gcr.io"
"""Production registry root."""

STAGING_REPO_PREFIX = "gcr.io/k8s-staging-"
"""Prefix of staging repositories."""

STAGING_REPO_SUFFIX = "kubernetes"
"""Suffix of the default staging repository to promote images from."""


@dataclass
class ImageEntry:
    """One image of a promoter image list: its name and digest-to-tags map."""

    name: str
    dmap: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class ManifestList:
    """The list of images held in a promoter ``images.yaml`` file."""

    images: list[ImageEntry] = field(default_factory=list)

    def __iter__(self) -> Iterator[ImageEntry]:
        return iter(self.images)

    def __len__(self) -> int:
        return len(self.images)

    def __getitem__(self, index: int) -> ImageEntry:
        return self.images[index]

    @classmethod
    def from_file(cls, manifest_path: str | Path) -> "ManifestList":
        """Read and parse an image list from a file."""
        path = Path(manifest_path)
        if not path.exists():
            raise FileNotFoundError("could not find image promoter manifest")
        manifest_list = cls()
        manifest_list.parse(path.read_bytes())
        return manifest_list

    def parse(self, yaml_code: str | bytes) -> None:
        """Replace the images of this list with those read from YAML."""
        if isinstance(yaml_code, bytes):
            yaml_code = yaml_code.decode("utf-8")
        try:
            document = yaml.load(yaml_code, Loader=yaml.BaseLoader)
        except yaml.YAMLError as exc:
            raise ValueError(f"parsing manifest yaml: {exc}") from exc
        if document in (None, ""):
            self.images = []
            return
        if not isinstance(document, list):
            raise ValueError("parsing manifest yaml: expected a list of images")
        self.images = [_entry_from_yaml(item) for item in document]

    def to_yaml(self) -> str:
        """Serialise the list the way the image promoter lays it out.

        Images are sorted by name, digests by their smallest tag and tags
        lexicographically.
        """
        parts: list[str] = []
        for entry in sorted(self.images, key=lambda e: e.name):
            parts.append(f"- name: {entry.name}\n")
            parts.append("  dmap:\n")
            for digest in sort_image_digest_map_by_tag(entry.dmap):
                tags = ",".join(_quote(tag) for tag in sorted(entry.dmap[digest]))
                parts.append(f"    {_quote(digest)}: [{tags}]\n")
        return "".join(parts)

    def write(self, file_path: str | Path) -> None:
        """Write the list as YAML into ``file_path``."""
        Path(file_path).write_text(self.to_yaml(), encoding="utf-8")


def sort_image_digest_map_by_tag(dmap: dict[str, list[str]]) -> list[str]:
    """Return the digests of ``dmap`` ordered by their smallest tag.

    Digests sharing the same smallest tag are ordered among themselves.
    """
    by_first_tag: dict[str, list[str]] = defaultdict(list)
    for digest, tags in dmap.items():
        if not tags:
            raise ValueError(f"digest {digest!r} has no tags")
        by_first_tag[min(tags)].append(digest)
    return [
        digest
        for tag in sorted(by_first_tag)
        for digest in sorted(by_first_tag[tag])
    ]


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _entry_from_yaml(item: object) -> ImageEntry:
    if not isinstance(item, dict):
        raise ValueError("parsing manifest yaml: image entry must be a mapping")
    name = item.get("name", "")
    if not isinstance(name, str):
        raise ValueError("parsing manifest yaml: image name must be a string")
    raw_dmap = item.get("dmap") or {}
    if not isinstance(raw_dmap, dict):
        raise ValueError(f"parsing manifest yaml: dmap of {name!r} must be a mapping")
    dmap: dict[str, list[str]] = {}
    for digest, tags in raw_dmap.items():
        if tags == "":
            tags = []
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise ValueError(
                f"parsing manifest yaml: tags of {digest!r} must be a list of strings"
            )
        dmap[digest] = list(tags)
    return ImageEntry(name=name, dmap=dmap)