"""Count the registry requests the auditor needs to validate a sub-project."""

from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import urllib.error
import urllib.request
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_REGISTRY = "gcr.io"
"""Registry queried for every sub-project."""

K8S_IO_REPO_URL = "https://github.com/kubernetes/k8s.io.git"
"""Repository holding the promoter manifests of all sub-projects."""

MAX_ATTEMPTS = 5
"""How many times a query is tried before giving up."""

Fetcher = Callable[[str], dict[str, Any]]

_USAGE = """
Usage: {prog} [sub-project]

About: This program finds the total number of HTTP requests to validate a given sub-project.
If no [sub-project] is given, it aggrigates all sub-projects found in kubernetes/k8s.io and
finds the sub-project that requires the most requests to validate."""


@dataclass(frozen=True)
class Request:
    """A repository of a registry whose tags are listed."""

    registry: str
    repo: str

    def query_url(self) -> str:
        """The HTTPS query listing the tags of this repository."""
        return f"https://{self.registry}/v2/{self.repo}/tags/list"

    def count_queries(self, fetch: Fetcher | None = None) -> int:
        """Count the requests needed to validate this repository.

        That is one for this repository, those of every child repository and
        one for every manifest list found.
        """
        fetch = fetch or _fetch_json
        payload = fetch(self.query_url())
        queries = 1
        for child in payload.get("child") or []:
            queries += Request(self.registry, f"{self.repo}/{child}").count_queries(fetch)
        manifests = payload.get("manifest") or {}
        queries += sum(
            1
            for manifest in manifests.values()
            if "manifest.list" in (manifest.get("mediaType") or "")
        )
        return queries


def parse_sub_projects(listing: str) -> list[str]:
    """Return the sub-project names of a directory listing, one per line."""
    return [line for line in listing.splitlines() if line != "README.md"]


def get_sub_projects() -> list[str]:
    """Clone the manifest repository and list the sub-projects it holds.

    Raises subprocess.CalledProcessError if the clone fails.
    """
    print("Retrieving all kubernetes/k8s.io sub-projects...")
    with tempfile.TemporaryDirectory() as tmp_dir:
        subprocess.run(
            ["git", "clone", K8S_IO_REPO_URL, tmp_dir],
            check=True,
            capture_output=True,
        )
        manifests_dir = Path(tmp_dir) / "k8s.gcr.io" / "manifests"
        listing = "\n".join(sorted(os.listdir(manifests_dir)))
    return parse_sub_projects(listing)


def main(argv: Sequence[str] | None = None) -> int:
    """Print the number of queries for one sub-project, or find the largest."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) > 1:
        print("Invalid number of arguments!")
        print(_USAGE.format(prog="count-requests"))
        return 1

    if args:
        request = Request(DEFAULT_REGISTRY, args[0])
        print(f"The Auditor would make {request.count_queries()} queries to GCR.")
        return 0

    try:
        sub_projects = get_sub_projects()
    except subprocess.CalledProcessError as exc:
        command = exc.cmd if isinstance(exc.cmd, str) else " ".join(exc.cmd)
        print("Failed to execute: ", command)
        return 1

    max_queries = 0
    busiest = ""
    for sub_project in sub_projects:
        num_queries = Request(DEFAULT_REGISTRY, sub_project).count_queries()
        print(f"Sub-project {json.dumps(sub_project)} requires {num_queries} queries.")
        if num_queries > max_queries:
            max_queries = num_queries
            busiest = sub_project
    print(f"[MAX] {json.dumps(busiest)} takes {max_queries} queries to verify.")
    return 0


def _fetch_json(url: str) -> dict[str, Any]:
    last_error: Exception | None = None
    for _ in range(MAX_ATTEMPTS):
        try:
            with urllib.request.urlopen(url) as response:
                return json.loads(response.read())
        except (urllib.error.URLError, OSError) as exc:
            last_error = exc
    raise RuntimeError(f"{url} could not be reached.") from last_error


if __name__ == "__main__":
    sys.exit(main())