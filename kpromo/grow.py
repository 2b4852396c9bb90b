"""Growing promoter manifests: filtering and merging image inventories.

An inventory maps image names to digests, and digests to their tags:
``{"image": {"sha256:...": ["1.0", ...]}}``.
"""

from __future__ import annotations

import os
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field

LATEST_TAG = "latest"
"""A banned tag: it is never manipulated by this tool."""

RegInvImage = dict[str, dict[str, list[str]]]


class GrowError(Exception):
    """Options for growing a manifest are invalid or filtering left nothing."""


@dataclass
class GrowOptions:
    """Parameters for adding images from a staging repository to a manifest."""

    base_dir: str = ""
    staging_repo: str = ""
    filter_images: list[str] = field(default_factory=list)
    filter_digests: list[str] = field(default_factory=list)
    filter_tags: list[str] = field(default_factory=list)

    def populate(
        self,
        base_dir: str,
        staging_repo: str,
        filter_images: Iterable[str],
        filter_digests: Iterable[str],
        filter_tags: Iterable[str],
    ) -> None:
        """Set the options, resolving ``base_dir`` to an absolute path."""
        self.base_dir = os.path.abspath(base_dir)
        self.staging_repo = staging_repo
        self.filter_images = list(filter_images)
        self.filter_digests = list(filter_digests)
        self.filter_tags = list(filter_tags)

    def validate(self) -> None:
        """Raise GrowError if the options cannot be used."""
        if not self.base_dir:
            raise GrowError("must specify --base_dir")
        if not self.staging_repo:
            raise GrowError("must specify --staging_repo")
        if LATEST_TAG in self.filter_tags:
            raise GrowError(f"--filter_tag cannot be {LATEST_TAG!r} (anti-pattern)")


def apply_filters(options: GrowOptions, rii: RegInvImage) -> RegInvImage:
    """Whittle ``rii`` down with the filters of ``options``.

    The ``latest`` tag is always removed. Raises GrowError if no image is left.
    """
    if not rii:
        return rii

    if options.filter_images:
        rii = filter_by_images(rii, options.filter_images)
    if options.filter_tags:
        rii = filter_by_tags(rii, options.filter_tags)
    if options.filter_digests:
        rii = filter_by_digests(rii, options.filter_digests)

    rii = exclude_tags(rii, {LATEST_TAG})

    if not rii:
        raise GrowError(
            "no images survived filtering; double-check your --filter_* flag(s) for typos"
        )
    return rii


def filter_by_images(rii: RegInvImage, filter_images: Collection[str]) -> RegInvImage:
    """Keep only the images whose name is in ``filter_images``."""
    return {name: digest_tags for name, digest_tags in rii.items() if name in filter_images}


def filter_by_tags(rii: RegInvImage, filter_tags: Collection[str]) -> RegInvImage:
    """Keep only the tags listed in ``filter_tags`` and the digests carrying them."""
    filtered: RegInvImage = {}
    for name, digest_tags in rii.items():
        for digest, tags in digest_tags.items():
            hits = [tag for tag in tags for wanted in filter_tags if tag == wanted]
            if hits:
                filtered.setdefault(name, {}).setdefault(digest, []).extend(hits)
    return filtered


def filter_by_digests(rii: RegInvImage, filter_digests: Collection[str]) -> RegInvImage:
    """Keep only the digests listed in ``filter_digests``."""
    wanted = set(filter_digests)
    filtered: RegInvImage = {}
    for name, digest_tags in rii.items():
        for digest, tags in digest_tags.items():
            if digest in wanted:
                filtered.setdefault(name, {})[digest] = tags
    return filtered


def exclude_tags(rii: RegInvImage, excluded_tags: Collection[str]) -> RegInvImage:
    """Remove the tags in ``excluded_tags``; digests left without tags are dropped."""
    filtered: RegInvImage = {}
    for name, digest_tags in rii.items():
        for digest, tags in digest_tags.items():
            kept = [tag for tag in tags if tag not in excluded_tags]
            if kept:
                filtered.setdefault(name, {}).setdefault(digest, []).extend(kept)
    return filtered


def union(a: RegInvImage, b: RegInvImage) -> RegInvImage:
    """Inject the contents of ``b`` into ``a`` and return ``a``.

    Images and digests missing from ``a`` are copied whole; for a digest
    present in both, the tags are merged and ``latest`` is dropped.
    """
    for name, digest_tags in b.items():
        if name not in a:
            a[name] = digest_tags
            continue
        target = a[name]
        for digest, tags in digest_tags.items():
            if digest not in target:
                target[digest] = tags
                continue
            merged = dict.fromkeys([*tags, *target[digest]])
            target[digest] = [tag for tag in merged if tag != LATEST_TAG]
    return a