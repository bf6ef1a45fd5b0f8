"""Core utilities and configuration exports."""

from .config import MergeConfig, MergeConfigError, load_merge_config
from .git_ops import GitCommandResult, run_command, run_git

__all__ = [
    "MergeConfig",
    "MergeConfigError",
    "load_merge_config",
    "GitCommandResult",
    "run_command",
    "run_git",
]
