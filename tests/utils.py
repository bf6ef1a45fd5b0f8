"""Helpers for building throwaway upstream/fork repository layouts."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from upstream_merge.core.config import MergeConfig

UPSTREAM_README = "# Operator SDK\n\nUpstream README for v1.0.0\n"
DOWNSTREAM_README = "# OpenShift Operator SDK\n\nDownstream README\n"
UPSTREAM_OWNERS = "aliases:\n  sdk-approvers:\n  - upstream-maintainer\n"

PATCH_CONTENT = (
    "diff --git a/Makefile b/Makefile\n"
    "--- a/Makefile\n"
    "+++ b/Makefile\n"
    "@@ -1,3 +1,3 @@\n"
    " SHELL = /bin/bash\n"
    "-export SIMPLE_VERSION = $(shell git describe --tags)\n"
    "+export SIMPLE_VERSION = v1.0.0-ocp\n"
    " export GIT_VERSION = $(shell git describe --dirty --tags --always)\n"
)


def run(cmd: list[str], cwd: Path) -> str:
    completed = subprocess.run(cmd, cwd=cwd, check=True, capture_output=True, text=True)
    return completed.stdout


def git(cwd: Path, *args: str) -> str:
    return run(["git", *args], cwd=cwd).strip()


def write_files(repo: Path, files: dict[str, str]) -> None:
    for rel_path, content in files.items():
        target = repo / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


def commit_files(
    repo: Path,
    files: dict[str, str],
    message: str,
    deletions: tuple[str, ...] = (),
) -> str:
    write_files(repo, files)
    for rel_path in deletions:
        git(repo, "rm", "--quiet", "--", rel_path)
    git(repo, "add", "--all")
    git(repo, "commit", "--quiet", "-m", message)
    return git(repo, "rev-parse", "HEAD")


def release_upstream(
    upstream: Path,
    tag: str,
    files: dict[str, str],
    deletions: tuple[str, ...] = (),
) -> str:
    sha = commit_files(upstream, files, f"Release {tag}", deletions)
    git(upstream, "tag", tag)
    return sha


@dataclass
class ForkLayout:
    """An upstream project, the fork's origin, and a downstream checkout."""

    upstream: Path
    origin: Path
    downstream: Path

    def config(self, **overrides) -> MergeConfig:
        values = {"upstream_url": str(self.upstream), "vendor_commands": [["true"]]}
        values.update(overrides)
        return MergeConfig(**values)

    def commit_downstream(self, files: dict[str, str], message: str, deletions: tuple[str, ...] = ()) -> str:
        sha = commit_files(self.downstream, files, message, deletions)
        git(self.downstream, "push", "--quiet", "origin", "main")
        return sha


def build_fork_layout(root: Path) -> ForkLayout:
    upstream = root / "upstream"
    upstream.mkdir()
    git(upstream, "init", "--quiet", "-b", "main")
    commit_files(
        upstream,
        {
            "README.md": UPSTREAM_README,
            "OWNERS_ALIASES": UPSTREAM_OWNERS,
            "main.go": "package main // v1.0.0\n",
            "legacy.go": "package main // legacy\n",
        },
        "Initial upstream",
    )
    git(upstream, "tag", "v1.0.0")

    origin = root / "origin.git"
    run(["git", "clone", "--quiet", "--bare", str(upstream), str(origin)], cwd=root)

    downstream = root / "downstream"
    run(["git", "clone", "--quiet", str(origin), str(downstream)], cwd=root)
    git(downstream, "remote", "add", "upstream", str(upstream))

    layout = ForkLayout(upstream=upstream, origin=origin, downstream=downstream)
    layout.commit_downstream(
        {
            "README.md": DOWNSTREAM_README,
            "README-sdk.md": UPSTREAM_README,
            "patches/03-setversion.patch": PATCH_CONTENT,
            "UPSTREAM-VERSION": "v1.0.0\n",
        },
        "Downstream setup",
    )
    return layout
