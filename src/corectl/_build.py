"""Build metadata; release tooling rewrites the BUILD_* values."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

BUILD_TAG = "?"
BUILD_COMMIT = "?"
BUILD_DATE = "?"

RELEASE_TAG_PREFIX = "chainmint-"


def client_version() -> str:
    # Official releases carry a chainmint-<version> build tag.
    if BUILD_TAG != "?":
        return BUILD_TAG.removeprefix(RELEASE_TAG_PREFIX)
    try:
        return pkg_version("corectl")
    except PackageNotFoundError:
        return "0.0.0+local"
