"""Domain models for repo-noise."""

from repo_noise.models.domain import (
    Branch,
    Issue,
    IssueState,
    PullRequest,
    Review,
    RunContext,
    WorkingChange,
)

__all__ = [
    "Branch",
    "Issue",
    "IssueState",
    "PullRequest",
    "Review",
    "RunContext",
    "WorkingChange",
]
