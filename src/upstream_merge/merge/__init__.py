"""Merge subpackage for upstream release merges.

Modules:
    errors: Exception hierarchy for workflow failures
    preflight: Parameter and repository validation before any mutation
    conflicts: Tag merge, protected file restore and conflict resolution
    metadata: README snapshot, version file and patch rewriting
    vendor: Dependency vendoring refresh
    executor: Core merge execution logic
"""

from __future__ import annotations

__all__: list[str] = []
