# kpromo

Utilities for working with artifact promotion manifests: the image lists that
drive container image promotion, the file manifests that drive file
promotion, and a few helpers around registry queries, release uploads and
promotion pull requests.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Library overview

### Image lists (`kpromo.image_list`)

`ManifestList` holds the entries of a promoter `images.yaml` file, each an
`ImageEntry` with a `name` and a `dmap` (digest to list of tags). It can be
iterated, indexed and measured with `len`.

```python
from kpromo.image_list import ManifestList

images = ManifestList.from_file("images.yaml")
print(images.to_yaml())
images.write("images.yaml")
```

`ManifestList.from_file` raises `FileNotFoundError` when the file does not
exist; `ManifestList.parse` raises `ValueError` on YAML that is not a list of
image entries. `to_yaml` renders the list the way the image promoter lays it
out: images sorted by name, digests ordered by their smallest tag, tags sorted
and compared as plain strings (they need not be semantic versions).
`sort_image_digest_map_by_tag` exposes that digest ordering on its own;
digests sharing the same smallest tag are sorted among themselves.

The module also defines `PROD_REGISTRY`, `STAGING_REPO_PREFIX` and
`STAGING_REPO_SUFFIX`.

### File manifests (`kpromo.files_manifest`)

`parse_manifest` reads a YAML file manifest into a `Manifest` of `Filestore`
(`base`, `service_account`, `src`) and `File` (`name`, `sha256`) entries;
unknown keys are ignored. `Manifest.validate`, `validate_filestores` and
`validate_files` raise `ManifestError` when there are no filestores, a
filestore has no base or a base not starting with `gs://`, there is no source
filestore or more than one, there are no destinations, there are no files, or
a file lacks a name or a valid hex SHA-256 of 32 bytes.
`validate_filestores` returns the source filestore and `validate_files`
returns the decoded digests by file name.

### Growing image manifests (`kpromo.grow`)

`GrowOptions` collects the base directory, staging repository and optional
image, digest and tag filters. `GrowOptions.populate` sets them, resolving the
base directory to an absolute path; `GrowOptions.validate` raises `GrowError`
for a missing base directory or staging repository and for the banned
`latest` tag.

An inventory is a dict of image name → digest → list of tags.
`apply_filters` narrows one with `filter_by_images`, `filter_by_tags` and
`filter_by_digests`, always drops `latest` through `exclude_tags`, and raises
`GrowError` when nothing survives. `union` merges a second inventory into the
first: missing images and digests are copied whole, and for shared digests the
tags are merged with `latest` dropped.

### GitHub release uploads (`kpromo.gh2gcs`)

`parse_config` reads a YAML configuration with a `releaseConfigs` list into a
`Config` of `ReleaseConfig` entries (`org`, `repo`, `tags`,
`includePrereleases`, `gcsBucket`, `releaseDir`); unknown keys raise
`Gh2GcsError`. `check_required_flags` raises `Gh2GcsError` naming whichever of
`org`, `repo`, `bucket` and `release-dir` were not given, unless `config` was.
`upload_targets` pairs the local directory of each release tag under an
output directory with its bucket path.

### Promotion pull requests (`kpromo.promotion_pr`)

`PromoteOptions` describes an image promotion request and derives its
`branch_name` (raising `ValueError` without a tag) and `commit_message`.
`generate_pr_body` renders the pull request text, `images_list_path` gives the
location of a project's image list within the manifest repository, and
`drop_mock_images` returns a `ManifestList` without the `mock/` images.

## Commands

Count the registry queries needed to audit a sub-project, or, when none is
given, clone the manifest repository with `git` and report the sub-project
that needs the most:

```
kpromo-count-requests [sub-project]
```

Send concurrent tag-list requests to the registry until it answers with
status 429, then report how long that took:

```
kpromo-verify-gcr-quota
```

## What this package does not do

- It does not talk to GitHub or Google Cloud Storage: `kpromo.gh2gcs` only
  parses configuration and computes upload paths; downloading release assets
  and copying them to a bucket are left to the caller.
- It does not read a staging registry or write `images.yaml` back into a
  manifest directory: `kpromo.grow` works on inventories already in memory.
- It does not clone, commit, push or open pull requests: `kpromo.promotion_pr`
  only builds the branch name, commit message, body and paths.
- There is no image promotion run, no audit server and no single `kpromo`
  command; only the two commands above are installed.