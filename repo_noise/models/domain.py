"""
Domain models for repo-noise.

Nothing here is persisted. Every model is the run's view of a platform
resource (or of the local change it is about to record) and is discarded when
the process exits.

Example:
    Parsing a pull request returned by the API::

        pr = PullRequest(
            number=7,
            title="Merge noise/1700000000000",
            head="noise/1700000000000",
            base="main",
            url="https://github.com/octo/sandbox/pull/7",
        )
"""

from dataclasses import dataclass
from enum import Enum

from repo_noise.enums import ReviewEvent


class IssueState(str, Enum):
    """Issue states as reported by GitHub."""

    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class RunContext:
    """Resolved configuration for one invocation.

    Built once by the environment resolver and passed to every stage. Stages
    must not read the process environment themselves.
    """

    owner: str
    repo: str
    default_branch: str
    committer_name: str
    committer_email: str
    issue_probability: float = 100.0
    pr_probability: float = 100.0
    approve_prs: bool = False
    reviewers: tuple[str, ...] = ()

    @property
    def full_name(self) -> str:
        """Repository identifier in owner/name form."""
        return f"{self.owner}/{self.repo}"

    @property
    def identity(self) -> dict[str, str]:
        """Committer/author payload for the contents API."""
        return {"name": self.committer_name, "email": self.committer_email}


@dataclass(frozen=True)
class WorkingChange:
    """A local mutation destined for the default branch."""

    path: str
    lines: tuple[str, ...]
    message: str

    @property
    def payload(self) -> str:
        """Text appended to the target file, newline terminated."""
        return "".join(f"{line}\n" for line in self.lines)


@dataclass
class Issue:
    """A tracked issue created by the issue stage."""

    number: int
    title: str
    body: str = ""
    state: IssueState = IssueState.OPEN
    url: str = ""


@dataclass
class Branch:
    """An isolated line of development created by the change stage."""

    name: str
    base: str
    sha: str = ""


@dataclass
class PullRequest:
    """A proposed merge of a noise branch into the default branch."""

    number: int
    title: str
    head: str
    base: str
    url: str = ""
    merged: bool = False
    merge_sha: str = ""


@dataclass
class Review:
    """A review attached to a pull request."""

    pr_number: int
    event: ReviewEvent
    body: str
    id: int | None = None
