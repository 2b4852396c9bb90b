import io
import json
from unittest import mock

import pytest

from kpromo.count_requests import Request, main, parse_sub_projects

LIST_TYPE = "application/vnd.docker.distribution.manifest.list.v2+json"
IMAGE_TYPE = "application/vnd.docker.distribution.manifest.v2+json"


def _fake_fetch(payloads, seen):
    def fetch(url):
        seen.append(url)
        return payloads[url]

    return fetch


def test_query_url():
    assert Request("gcr.io", "foo/bar").query_url() == "https://gcr.io/v2/foo/bar/tags/list"


def test_leaf_without_manifests_counts_one():
    seen = []
    request = Request("gcr.io", "leaf")
    fetch = _fake_fetch({request.query_url(): {"child": [], "manifest": {}}}, seen)
    assert request.count_queries(fetch) == 1
    assert seen == [request.query_url()]


def test_manifest_lists_are_counted():
    request = Request("gcr.io", "proj")
    payload = {
        "child": [],
        "manifest": {
            "sha256:a": {"mediaType": LIST_TYPE},
            "sha256:b": {"mediaType": IMAGE_TYPE},
        },
    }
    fetch = _fake_fetch({request.query_url(): payload}, [])
    assert request.count_queries(fetch) == 2


def test_children_are_visited_recursively():
    root = Request("gcr.io", "proj")
    child = Request("gcr.io", "proj/img")
    grandchild = Request("gcr.io", "proj/img/sub")
    payloads = {
        root.query_url(): {"child": ["img"], "manifest": {}},
        child.query_url(): {"child": ["sub"], "manifest": {}},
        grandchild.query_url(): {"child": [], "manifest": {}},
    }
    seen = []
    assert root.count_queries(_fake_fetch(payloads, seen)) == len(payloads)
    assert seen == [root.query_url(), child.query_url(), grandchild.query_url()]


def test_missing_keys_are_tolerated():
    request = Request("gcr.io", "empty")
    fetch = _fake_fetch({request.query_url(): {}}, [])
    assert request.count_queries(fetch) == 1


def test_parse_sub_projects_drops_readme():
    assert parse_sub_projects("alpha\nREADME.md\nbeta\n") == ["alpha", "beta"]


def test_parse_sub_projects_empty():
    assert parse_sub_projects("") == []


def test_main_rejects_too_many_arguments(capsys):
    assert main(["a", "b"]) == 1
    out = capsys.readouterr().out
    assert "Invalid number of arguments!" in out
    assert "Usage:" in out


def test_main_single_sub_project(capsys):
    body = json.dumps({"child": [], "manifest": {"sha256:a": {"mediaType": LIST_TYPE}}})

    def fake_urlopen(url):
        response = mock.MagicMock()
        response.__enter__.return_value = io.BytesIO(body.encode())
        return response

    with mock.patch("urllib.request.urlopen", side_effect=fake_urlopen) as urlopen:
        assert main(["proj"]) == 0
    urlopen.assert_called_once_with("https://gcr.io/v2/proj/tags/list")
    assert "The Auditor would make 2 queries to GCR." in capsys.readouterr().out


def test_unreachable_registry_raises():
    import urllib.error

    with mock.patch(
        "urllib.request.urlopen", side_effect=urllib.error.URLError("down")
    ) as urlopen:
        with pytest.raises(RuntimeError, match="could not be reached"):
            Request("gcr.io", "proj").count_queries()
    assert urlopen.call_count == 5