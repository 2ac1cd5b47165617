"""Pytest configuration and shared fixtures."""

import random
from datetime import UTC, datetime
from typing import Any
from unittest.mock import MagicMock

import pytest
import structlog

from repo_noise.enums import ReviewEvent
from repo_noise.exceptions import GitOperationError
from repo_noise.git.workspace import GitWorkspace
from repo_noise.models.domain import Issue, IssueState, PullRequest, Review, RunContext
from repo_noise.providers.base import PlatformClient

FIXED_NOW = datetime(2024, 6, 15, 10, 30, 0, 123000, tzinfo=UTC)

NOISE_ENV_VARS = (
    "GITHUB_TOKEN",
    "GITHUB_REPOSITORY",
    "DEFAULT_BRANCH",
    "GIT_USER_NAME",
    "GIT_USER_EMAIL",
    "ISSUE_PROBABILITY",
    "PR_PROBABILITY",
    "APPROVE_PRS",
    "REVIEWERS",
    "GITHUB_API_URL",
    "NOISE_WORKDIR",
    "NOISE_LOG_LEVEL",
)

GIT_METHODS = (
    "configure_identity",
    "checkout",
    "create_branch",
    "delete_local_branch",
    "add",
    "commit",
    "push",
)

PLATFORM_METHODS = (
    "get_default_branch",
    "create_issue",
    "update_issue",
    "put_file",
    "create_pull_request",
    "request_reviewers",
    "create_review",
    "merge_pull_request",
    "delete_branch",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's or CI's real credentials out of the tests."""
    for name in NOISE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop any logging configuration a CLI invocation installed."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def fixed_clock():
    """Clock returning a constant instant."""
    return lambda: FIXED_NOW


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def run_context() -> RunContext:
    """RunContext with both gates open and approvals disabled."""
    return RunContext(
        owner="octo",
        repo="sandbox",
        default_branch="main",
        committer_name="noise-bot",
        committer_email="noise-bot@example.com",
        issue_probability=100.0,
        pr_probability=100.0,
        approve_prs=False,
        reviewers=(),
    )


@pytest.fixture
def call_log() -> list[tuple[str, tuple[Any, ...], dict[str, Any]]]:
    """Ordered record of every git and platform call made through the mocks."""
    return []


def _recorder(call_log: list, name: str, result: Any = None):
    async def _call(*args: Any, **kwargs: Any) -> Any:
        call_log.append((name, args, kwargs))
        return result

    return _call


@pytest.fixture
def mock_git(call_log: list) -> MagicMock:
    """GitWorkspace double whose calls land in ``call_log``.

    ``origin/HEAD`` is unavailable by default so default-branch resolution
    falls through to the platform.
    """
    git = MagicMock(spec=GitWorkspace)
    for name in GIT_METHODS:
        getattr(git, name).side_effect = _recorder(call_log, f"git.{name}")
    git.remote_default_branch.side_effect = GitOperationError("no origin/HEAD", returncode=128)
    git.append.side_effect = lambda path, text: call_log.append(("git.append", (path, text), {}))
    return git


@pytest.fixture
def mock_platform(call_log: list) -> MagicMock:
    """PlatformClient double returning realistic models and recording calls."""
    platform = MagicMock(spec=PlatformClient)

    results = {
        "get_default_branch": "main",
        "create_issue": Issue(number=42, title="Noisy issue", state=IssueState.OPEN),
        "update_issue": Issue(number=42, title="Noisy issue", state=IssueState.CLOSED),
        "put_file": "seed-sha-123",
        "create_pull_request": PullRequest(number=7, title="Merge", head="noise/1", base="main"),
        "request_reviewers": None,
        "merge_pull_request": "merge-sha-456",
        "delete_branch": None,
    }
    for name in PLATFORM_METHODS:
        if name == "create_review":
            continue
        getattr(platform, name).side_effect = _recorder(call_log, f"platform.{name}", results[name])

    async def _create_review(pr_number: int, event: ReviewEvent, body: str) -> Review:
        call_log.append(("platform.create_review", (pr_number, event, body), {}))
        return Review(pr_number=pr_number, event=event, body=body, id=99)

    platform.create_review.side_effect = _create_review
    return platform


@pytest.fixture
def call_names(call_log: list):
    """Names of the recorded calls, in order."""
    return lambda: [name for name, _, _ in call_log]
