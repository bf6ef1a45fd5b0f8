"""Tests for merge configuration loading."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from upstream_merge.core.config import MergeConfig, MergeConfigError, load_merge_config
from upstream_merge.cli import StepTracker
from upstream_merge.core.constants import CONFIG_FILENAME
from upstream_merge.merge.errors import UpstreamMergeError
from upstream_merge.merge.executor import execute_upstream_merge


def test_defaults_without_config_file(tmp_path: Path):
    config = load_merge_config(tmp_path)

    assert config == MergeConfig()
    assert config.upstream_url == "https://github.com/operator-framework/operator-sdk.git"
    assert config.protected_paths == ["OWNERS_ALIASES", "README.md"]
    assert config.vendor_commands == [["go", "mod", "tidy"], ["go", "mod", "vendor"]]


def test_overrides_from_repo_config(tmp_path: Path):
    (tmp_path / CONFIG_FILENAME).write_text(
        "upstream_url: https://example.com/up.git\n"
        "product_name: Example\n"
        "protected_paths: [OWNERS, Makefile]\n"
        "readme: {source: docs/README.md, snapshot: README-upstream.md}\n"
        "version_file: VERSION\n"
        "patch: {path: patches/version.patch, variable: VERSION, suffix: ''}\n"
        "vendor:\n"
        "  commands:\n"
        "    - [go, mod, vendor]\n"
        "    - make vendor-check\n"
        "  paths: [vendor, go.sum]\n"
        "  commit_message: 'Update vendor'\n",
        encoding="utf-8",
    )

    config = load_merge_config(tmp_path)

    assert config.upstream_url == "https://example.com/up.git"
    assert config.product_name == "Example"
    assert config.protected_paths == ["OWNERS", "Makefile"]
    assert config.readme_source == "docs/README.md"
    assert config.readme_snapshot == "README-upstream.md"
    assert config.version_file == "VERSION"
    assert config.patch_file == "patches/version.patch"
    assert config.patch_variable == "VERSION"
    assert config.version_suffix == ""
    assert config.vendor_commands == [["go", "mod", "vendor"], ["make", "vendor-check"]]
    assert config.vendor_paths == ["vendor", "go.sum"]
    assert config.vendor_commit_message == "Update vendor"


def test_partial_config_keeps_other_defaults(tmp_path: Path):
    (tmp_path / CONFIG_FILENAME).write_text("product_name: Example\n", encoding="utf-8")

    config = load_merge_config(tmp_path)

    assert config.product_name == "Example"
    assert config.patch_file == "patches/03-setversion.patch"


def test_explicit_config_file_must_exist(tmp_path: Path):
    with pytest.raises(MergeConfigError, match="not found"):
        load_merge_config(tmp_path, tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path: Path):
    (tmp_path / CONFIG_FILENAME).write_text("upstream_url: [unclosed\n", encoding="utf-8")

    with pytest.raises(MergeConfigError, match="Invalid YAML"):
        load_merge_config(tmp_path)


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "upstream_url: 42\n",
        "protected_paths: {a: b}\n",
        "patch: not-a-mapping\n",
        "vendor: {commands: go mod vendor}\n",
        "vendor: {commands: ['']}\n",
    ],
)
def test_invalid_values(tmp_path: Path, content: str):
    (tmp_path / CONFIG_FILENAME).write_text(content, encoding="utf-8")

    with pytest.raises(MergeConfigError):
        load_merge_config(tmp_path)


def test_unknown_keys_are_ignored_with_warning(tmp_path: Path, caplog):
    (tmp_path / CONFIG_FILENAME).write_text("surprise: true\n", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        config = load_merge_config(tmp_path)

    assert config == MergeConfig()
    assert "surprise" in caplog.text


def test_config_error_is_a_workflow_failure(tmp_path: Path):
    (tmp_path / CONFIG_FILENAME).write_text("upstream_url: 42\n", encoding="utf-8")

    with pytest.raises(UpstreamMergeError) as excinfo:
        load_merge_config(tmp_path)
    assert excinfo.value.code == "INVALID_CONFIG"

    result = execute_upstream_merge(
        version="v1.2.3",
        target_branch=None,
        upstream_remote=None,
        repo_root=tmp_path,
        tracker=StepTracker("Config Failure"),
    )

    assert not result.success
    assert result.error_code == "INVALID_CONFIG"
    assert result.failed_step == "validate"
