import pytest

from kpromo.image_list import ImageEntry, ManifestList, PROD_REGISTRY
from kpromo.promotion_pr import (
    DEFAULT_PROJECT,
    DEFAULT_REVIEWERS,
    PROMOTION_BRANCH_SUFFIX,
    PromoteOptions,
    drop_mock_images,
    generate_pr_body,
    images_list_path,
)


def test_branch_name_uses_first_tag():
    options = PromoteOptions(project="foo", tags=["v1.0", "v2.0"])
    assert options.branch_name() == "foo-v1.0" + PROMOTION_BRANCH_SUFFIX


def test_branch_name_requires_tag():
    with pytest.raises(ValueError, match="--tag is required"):
        PromoteOptions(project="foo").branch_name()


def test_commit_message_default_project_has_releng_prefix():
    options = PromoteOptions(tags=["v1.0", "v2.0"])
    message = options.commit_message()
    assert message.startswith("releng: Image promotion for " + DEFAULT_PROJECT)
    assert message.endswith("v1.0 / v2.0")


def test_commit_message_other_project():
    options = PromoteOptions(project="foo", tags=["v1.0"])
    assert options.commit_message() == "Image promotion for foo v1.0"


def test_generate_pr_body_defaults():
    options = PromoteOptions(user_fork="someone/k8s.io", tags=["v1.0"])
    expected = (
        "Image promotion for kubernetes v1.0\n"
        "This is an automated PR generated from `kpromo`\n"
        "```\nkpromo pr --fork someone/k8s.io --tag v1.0\n```\n\n"
        "/hold\ncc: @kubernetes/release-engineering\n"
    )
    assert generate_pr_body(options) == expected


def test_generate_pr_body_all_options():
    options = PromoteOptions(
        project="foo",
        user_fork="someone/k8s.io",
        tags=["v1.0", "v1.1"],
        reviewers="@alice @bob",
        interactive_mode=True,
        images=["bar", "", "baz"],
    )
    body = generate_pr_body(options)
    command = next(line for line in body.splitlines() if line.startswith("kpromo pr "))
    assert command == (
        "kpromo pr --fork someone/k8s.io --interactive --project foo"
        ' --reviewers "@alice @bob" --tag v1.0 --tag v1.1 --image bar --image baz'
    )
    assert body.startswith("Image promotion for foo v1.0 / v1.1\n")
    assert body.endswith("cc: @alice @bob\n")


def test_generate_pr_body_default_reviewers_not_repeated_as_flag():
    options = PromoteOptions(user_fork="someone/k8s.io", tags=["v1.0"])
    body = generate_pr_body(options)
    assert "--reviewers" not in body
    assert "--project" not in body
    assert body.endswith(f"cc: {DEFAULT_REVIEWERS}\n")


def test_images_list_path():
    assert images_list_path("foo") == "k8s.gcr.io/images/k8s-staging-foo/images.yaml"


def test_images_list_path_default_project():
    path = images_list_path(DEFAULT_PROJECT)
    assert path.startswith(PROD_REGISTRY + "/images/")
    assert path.endswith(f"-{DEFAULT_PROJECT}/images.yaml")


def test_drop_mock_images():
    original = ManifestList(
        images=[
            ImageEntry(name="pause", dmap={"sha256:aaa": ["3.2"]}),
            ImageEntry(name="mock/pause", dmap={"sha256:bbb": ["3.3"]}),
            ImageEntry(name="kube-proxy", dmap={"sha256:ccc": ["v1.0"]}),
        ]
    )
    cleaned = drop_mock_images(original)
    assert [entry.name for entry in cleaned] == ["pause", "kube-proxy"]
    assert len(original) == 3
    assert cleaned[0].dmap == {"sha256:aaa": ["3.2"]}


def test_drop_mock_images_after_parse():
    yaml_code = (
        "- name: mock/foo\n  dmap:\n    \"sha256:aaa\": [\"1.0\"]\n"
        "- name: bar\n  dmap:\n    \"sha256:bbb\": [\"2.0\"]\n"
    )
    parsed = ManifestList()
    parsed.parse(yaml_code)
    cleaned = drop_mock_images(parsed)
    assert cleaned.to_yaml() == "- name: bar\n  dmap:\n    \"sha256:bbb\": [\"2.0\"]\n"