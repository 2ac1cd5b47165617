"""
Abstract base class for the hosted platform client.

The pipeline stages only talk to the platform through this interface, so they
can be exercised against an ``AsyncMock`` in tests and against GitHub (or a
GitHub Enterprise instance) in production.
"""

from abc import ABC, abstractmethod

from repo_noise.enums import MergeMethod, ReviewEvent
from repo_noise.models.domain import Issue, PullRequest, Review


class PlatformClient(ABC):
    """Contract for the platform calls a noise run makes.

    Every method raises ``PlatformError`` (or ``TransientPlatformError``)
    when the platform answers with a non-success status.
    """

    async def connect(self) -> None:
        """Open the underlying transport."""

    async def disconnect(self) -> None:
        """Release the underlying transport."""

    async def __aenter__(self) -> "PlatformClient":
        await self.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.disconnect()

    @abstractmethod
    async def get_default_branch(self) -> str:
        """Return the repository's default branch name."""

    @abstractmethod
    async def create_issue(self, title: str, body: str) -> Issue:
        """Open a new issue.

        Args:
            title: Issue title
            body: Markdown body

        Returns:
            The created Issue with its platform-assigned number.
        """

    @abstractmethod
    async def update_issue(self, issue_number: int, state: str) -> Issue:
        """Change an issue's state ("open" or "closed")."""

    @abstractmethod
    async def put_file(
        self,
        path: str,
        content: str,
        message: str,
        branch: str,
        committer: dict[str, str] | None = None,
    ) -> str:
        """Create a file on ``branch`` through the contents API.

        Args:
            path: Repository-relative file path
            content: Plain-text file content (encoded by the implementation)
            message: Commit message
            branch: Target branch
            committer: ``{"name": ..., "email": ...}`` used for both committer and author

        Returns:
            SHA of the created commit.
        """

    @abstractmethod
    async def create_pull_request(self, title: str, body: str, head: str, base: str) -> PullRequest:
        """Open a pull request from ``head`` into ``base``."""

    @abstractmethod
    async def request_reviewers(self, pr_number: int, reviewers: list[str]) -> None:
        """Ask the given logins to review a pull request."""

    @abstractmethod
    async def create_review(self, pr_number: int, event: ReviewEvent, body: str) -> Review:
        """Submit a review with the given disposition."""

    @abstractmethod
    async def merge_pull_request(
        self,
        pr_number: int,
        merge_method: MergeMethod = MergeMethod.MERGE,
        commit_title: str | None = None,
    ) -> str:
        """Merge a pull request and return the merge commit SHA."""

    @abstractmethod
    async def delete_branch(self, branch_name: str) -> None:
        """Delete ``refs/heads/<branch_name>`` on the remote."""
