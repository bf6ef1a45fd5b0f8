from __future__ import annotations

import os
from pathlib import Path

import pytest

from tests.utils import ForkLayout, build_fork_layout


@pytest.fixture(name="_git_identity", autouse=True)
def git_identity_fixture(monkeypatch):
    """Ensure git commands can commit even if the user has no global config."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Upstream Merge")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "merge@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Upstream Merge")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "merge@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")


@pytest.fixture()
def fork(tmp_path: Path) -> ForkLayout:
    return build_fork_layout(tmp_path)
