"""Parse, validate, filter and render artifact promotion manifests, with registry query helpers."""

__version__ = "0.1.0"

__all__ = [
    "count_requests",
    "files_manifest",
    "gcr_quota",
    "gh2gcs",
    "grow",
    "image_list",
    "promotion_pr",
]