"""Helpers for opening an image promotion pull request against the manifest repository."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field

from kpromo.image_list import (
    PROD_REGISTRY,
    STAGING_REPO_PREFIX,
    STAGING_REPO_SUFFIX,
    ManifestList,
)

K8SIO_REPO = "k8s.io"
"""Repository holding the promoter manifests."""

K8SIO_DEFAULT_BRANCH = "main"
"""Branch pull requests are opened against."""

PROMOTION_BRANCH_SUFFIX = "-image-promotion"
"""Suffix of the branch a promotion is pushed to."""

DEFAULT_PROJECT = STAGING_REPO_SUFFIX
"""Project whose images are promoted when none is named."""

DEFAULT_REVIEWERS = "@kubernetes/release-engineering"
"""Users or teams asked to review when none are named."""

_MOCK_MARKER = "mock/"


@dataclass
class PromoteOptions:
    """Command line options of an image promotion pull request."""

    project: str = DEFAULT_PROJECT
    user_fork: str = ""
    tags: list[str] = field(default_factory=list)
    reviewers: str = DEFAULT_REVIEWERS
    interactive_mode: bool = False
    images: list[str] = field(default_factory=list)
    digests: list[str] = field(default_factory=list)

    def branch_name(self) -> str:
        """Name of the branch the promotion is pushed to.

        Raises ValueError if no tag was given.
        """
        if not self.tags:
            raise ValueError("cannot start promotion --tag is required")
        return f"{self.project}-{self.tags[0]}{PROMOTION_BRANCH_SUFFIX}"

    def commit_message(self) -> str:
        """Message of the commit that grows the image list."""
        message = f"Image promotion for {self.project} " + " / ".join(self.tags)
        if self.project == STAGING_REPO_SUFFIX:
            message = "releng: " + message
        return message


def generate_pr_body(options: PromoteOptions) -> str:
    """Build the body of the promotion pull request."""
    args = [f"--fork {options.user_fork}"]
    if options.interactive_mode:
        args.append("--interactive")
    if options.project != DEFAULT_PROJECT:
        args.append(f"--project {options.project}")
    if options.reviewers != DEFAULT_REVIEWERS:
        args.append(f'--reviewers "{options.reviewers}"')
    args.extend(f"--tag {tag}" for tag in options.tags)
    args.extend(f"--image {image}" for image in options.images if image)

    return (
        f"Image promotion for {options.project} {' / '.join(options.tags)}\n"
        "This is an automated PR generated from `kpromo`\n"
        f"```\nkpromo pr {' '.join(args)}\n```\n\n"
        f"/hold\ncc: {options.reviewers}\n"
    )


def images_list_path(project: str) -> str:
    """Path of a project's image list, relative to the manifest repository root."""
    staging_dir = posixpath.basename(STAGING_REPO_PREFIX) + project
    return posixpath.join(PROD_REGISTRY, "images", staging_dir, "images.yaml")


def drop_mock_images(manifest_list: ManifestList) -> ManifestList:
    """Return a new list without the mock images of ``manifest_list``."""
    return ManifestList(
        images=[entry for entry in manifest_list if _MOCK_MARKER not in entry.name]
    )