"""Per-repository merge configuration.

Defaults reproduce the operator-sdk downstream fork layout. A repository can
override them in `.upstream-merge.yaml` at its root.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from upstream_merge.core import constants
from upstream_merge.merge.errors import UpstreamMergeError

logger = logging.getLogger(__name__)

_KNOWN_KEYS = {
    "upstream_url",
    "product_name",
    "protected_paths",
    "readme",
    "version_file",
    "patch",
    "vendor",
}


class MergeConfigError(UpstreamMergeError):
    """Raised when the merge configuration file cannot be parsed or validated."""

    code = "INVALID_CONFIG"


@dataclass
class MergeConfig:
    """Constants driving the merge workflow.

    Attributes:
        upstream_url: Exact URL the upstream remote must point at.
        product_name: Name used in the second commit message paragraph.
        protected_paths: Downstream-owned files restored after every merge.
        readme_source: README path inside the upstream tag.
        readme_snapshot: Downstream file receiving the upstream README.
        version_file: File recording the merged upstream version.
        patch_file: Patch whose version assignment is rewritten.
        patch_variable: Variable assigned in ``+export <VAR> = ...``.
        version_suffix: Suffix appended to the version in the patch.
        vendor_commands: Commands run in order to refresh vendored deps.
        vendor_paths: Paths inspected and committed after vendoring.
        vendor_commit_message: Message of the optional vendor commit.
    """

    upstream_url: str = constants.DEFAULT_UPSTREAM_URL
    product_name: str = constants.DEFAULT_PRODUCT_NAME
    protected_paths: list[str] = field(default_factory=lambda: list(constants.PROTECTED_PATHS))
    readme_source: str = constants.README_SOURCE
    readme_snapshot: str = constants.README_SNAPSHOT
    version_file: str = constants.VERSION_FILE
    patch_file: str = constants.PATCH_FILE
    patch_variable: str = constants.PATCH_VARIABLE
    version_suffix: str = constants.VERSION_SUFFIX
    vendor_commands: list[list[str]] = field(
        default_factory=lambda: [list(cmd) for cmd in constants.VENDOR_COMMANDS]
    )
    vendor_paths: list[str] = field(default_factory=lambda: list(constants.VENDOR_PATHS))
    vendor_commit_message: str = constants.VENDOR_COMMIT_MESSAGE


def _require_str(value: Any, key: str, config_file: Path) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MergeConfigError(f"Invalid {key} in {config_file}: expected a non-empty string")
    return value


def _require_str_list(value: Any, key: str, config_file: Path) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise MergeConfigError(f"Invalid {key} in {config_file}: expected a list of strings")
    return [str(item) for item in value]


def _require_section(value: Any, key: str, config_file: Path) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise MergeConfigError(f"Invalid {key} in {config_file}: expected a mapping")
    return value


def load_merge_config(repo_root: Path, config_file: Path | None = None) -> MergeConfig:
    """Load merge configuration, falling back to defaults when no file exists.

    An explicitly requested ``config_file`` must exist.
    """
    explicit = config_file is not None
    path = config_file if config_file is not None else repo_root / constants.CONFIG_FILENAME

    if not path.exists():
        if explicit:
            raise MergeConfigError(f"Config file not found: {path}")
        logger.debug("No merge config at %s, using defaults", path)
        return MergeConfig()

    yaml = YAML()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.load(f) or {}
    except YAMLError as exc:
        raise MergeConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise MergeConfigError(f"Invalid config in {path}: expected a mapping at top level")

    logger.info("Loaded merge config from %s", path)
    for key in sorted(set(data) - _KNOWN_KEYS):
        logger.warning("Ignoring unknown key '%s' in %s", key, path)

    config = MergeConfig()
    if "upstream_url" in data:
        config.upstream_url = _require_str(data["upstream_url"], "upstream_url", path)
    if "product_name" in data:
        config.product_name = _require_str(data["product_name"], "product_name", path)
    if "protected_paths" in data:
        config.protected_paths = _require_str_list(data["protected_paths"], "protected_paths", path)
    if "version_file" in data:
        config.version_file = _require_str(data["version_file"], "version_file", path)

    if "readme" in data:
        readme = _require_section(data["readme"], "readme", path)
        if "source" in readme:
            config.readme_source = _require_str(readme["source"], "readme.source", path)
        if "snapshot" in readme:
            config.readme_snapshot = _require_str(readme["snapshot"], "readme.snapshot", path)

    if "patch" in data:
        patch = _require_section(data["patch"], "patch", path)
        if "path" in patch:
            config.patch_file = _require_str(patch["path"], "patch.path", path)
        if "variable" in patch:
            config.patch_variable = _require_str(patch["variable"], "patch.variable", path)
        if "suffix" in patch:
            # An empty suffix is allowed: the version is written as-is.
            if not isinstance(patch["suffix"], str):
                raise MergeConfigError(f"Invalid patch.suffix in {path}: expected a string")
            config.version_suffix = patch["suffix"]

    if "vendor" in data:
        vendor = _require_section(data["vendor"], "vendor", path)
        if "commands" in vendor:
            commands = vendor["commands"]
            if not isinstance(commands, list):
                raise MergeConfigError(f"Invalid vendor.commands in {path}: expected a list of commands")
            config.vendor_commands = [
                shlex.split(command)
                if isinstance(command, str)
                else _require_str_list(command, "vendor.commands", path)
                for command in commands
            ]
            if any(not command for command in config.vendor_commands):
                raise MergeConfigError(f"Invalid vendor.commands in {path}: empty command")
        if "paths" in vendor:
            config.vendor_paths = _require_str_list(vendor["paths"], "vendor.paths", path)
        if "commit_message" in vendor:
            config.vendor_commit_message = _require_str(
                vendor["commit_message"], "vendor.commit_message", path
            )

    return config


__all__ = [
    "MergeConfig",
    "MergeConfigError",
    "load_merge_config",
]
