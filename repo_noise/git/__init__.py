"""Local git working copy operations."""

from repo_noise.git.workspace import GitWorkspace

__all__ = ["GitWorkspace"]
