[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kpromo"
version = "0.1.0"
description = "Parse, validate, filter and render container image and file promotion manifests."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "promotion",
    "container-images",
    "registry",
    "manifest",
    "release-engineering",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
kpromo-count-requests = "kpromo.count_requests:main"
kpromo-verify-gcr-quota = "kpromo.gcr_quota:main"

[tool.hatch.build.targets.wheel]
packages = ["kpromo"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
