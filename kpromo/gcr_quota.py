"""Send registry requests concurrently until the registry throttles them."""

from __future__ import annotations

import argparse
import os
import random
import sys
import time
import urllib.error
import urllib.request
from collections.abc import Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass

TARGET_STATUS_CODE = 429
"""Status code the registry answers with when its quota is exceeded."""

QUERIES = (
    "https://us.gcr.io/v2/k8s-artifacts-prod/addon-builder/tags/list",
    "https://gcr.io/v2/k8s-staging-autoscaling/addon-resizer-amd64/tags/list",
    "https://gcr.io/v2/k8s-staging-cloud-provider-gcp/gcp-filestore-csi-driver/tags/list",
)
"""Endpoints the requests are spread over."""


@dataclass(frozen=True)
class Message:
    """What came back from one request."""

    body: str
    status_code: int


def random_query(rng: random.Random | None = None) -> str:
    """Pick one of the queries at random."""
    return (rng or random).choice(QUERIES)


def fetch(query: str) -> Message:
    """Send one GET request and return its body and status code."""
    try:
        with urllib.request.urlopen(query) as response:
            return Message(response.read().decode("utf-8", "replace"), response.status)
    except urllib.error.HTTPError as exc:
        return Message(exc.read().decode("utf-8", "replace"), exc.code)
    except (urllib.error.URLError, OSError) as exc:
        print("Encountered an error during HTTP GET request: ", exc)
        return Message("", 0)


def main(argv: Sequence[str] | None = None) -> int:
    """Keep the registry busy until it throttles, then report how long it took."""
    parser = argparse.ArgumentParser(
        prog="verify-gcr-quota",
        description="Send requests to GCR until the quota is exceeded.",
    )
    parser.parse_args(sys.argv[1:] if argv is None else argv)

    num_workers = (os.cpu_count() or 1) * 2
    start = time.monotonic()
    executor = ThreadPoolExecutor(max_workers=num_workers)
    try:
        pending: set[Future[Message]] = {
            executor.submit(_work) for _ in range(num_workers)
        }
        requests = num_workers
        while True:
            print("Requests: ", requests)
            done, pending = wait(pending, return_when=FIRST_COMPLETED)
            throttled = next(
                (f.result() for f in done if f.result().status_code == TARGET_STATUS_CODE),
                None,
            )
            if throttled is not None:
                elapsed = time.monotonic() - start
                print("We were throttled by GCR!")
                print("Unique Endpoints: ", len(QUERIES))
                print("Took: ", elapsed / 60, "minutes")
                print("Status Code: ", TARGET_STATUS_CODE)
                print("Body: ", throttled.body)
                return 0
            for _ in done:
                pending.add(executor.submit(_work))
                requests += 1
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def _work() -> Message:
    return fetch(random_query())


if __name__ == "__main__":
    sys.exit(main())