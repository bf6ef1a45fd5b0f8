"""Defaults for the downstream fork layout."""

from __future__ import annotations

DEFAULT_TARGET_BRANCH = "main"
DEFAULT_UPSTREAM_REMOTE = "upstream"
DEFAULT_UPSTREAM_URL = "https://github.com/operator-framework/operator-sdk.git"
DEFAULT_PRODUCT_NAME = "Operator SDK"

REBASE_BRANCH_SUFFIX = "-rebase-"
CONFIG_FILENAME = ".upstream-merge.yaml"

# Downstream-owned files that never take upstream content.
PROTECTED_PATHS = ("OWNERS_ALIASES", "README.md")

README_SOURCE = "README.md"
README_SNAPSHOT = "README-sdk.md"
VERSION_FILE = "UPSTREAM-VERSION"

PATCH_FILE = "patches/03-setversion.patch"
PATCH_VARIABLE = "SIMPLE_VERSION"
VERSION_SUFFIX = "-ocp"

VENDOR_COMMANDS = (("go", "mod", "tidy"), ("go", "mod", "vendor"))
VENDOR_PATHS = ("vendor",)
VENDOR_COMMIT_MESSAGE = "UPSTREAM: <drop>: Update vendor directory"

NO_CONFLICTS_PLACEHOLDER = "<NONE>"

BANNER = "upstream-merge"
TAGLINE = "Merge upstream release tags into a downstream fork"

__all__ = [
    "DEFAULT_TARGET_BRANCH",
    "DEFAULT_UPSTREAM_REMOTE",
    "DEFAULT_UPSTREAM_URL",
    "DEFAULT_PRODUCT_NAME",
    "REBASE_BRANCH_SUFFIX",
    "CONFIG_FILENAME",
    "PROTECTED_PATHS",
    "README_SOURCE",
    "README_SNAPSHOT",
    "VERSION_FILE",
    "PATCH_FILE",
    "PATCH_VARIABLE",
    "VERSION_SUFFIX",
    "VENDOR_COMMANDS",
    "VENDOR_PATHS",
    "VENDOR_COMMIT_MESSAGE",
    "NO_CONFLICTS_PLACEHOLDER",
    "BANNER",
    "TAGLINE",
]
