"""GitHub platform client using direct REST API calls over httpx."""

import base64
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from repo_noise.enums import MergeMethod, ReviewEvent
from repo_noise.exceptions import PlatformError, TransientPlatformError
from repo_noise.models.domain import Issue, IssueState, PullRequest, Review
from repo_noise.providers.base import PlatformClient
from repo_noise.utils.retry import async_retry

log = structlog.get_logger(__name__)

API_VERSION = "2022-11-28"
USER_AGENT = "repo-noise"

_TRANSIENT_STATUSES = {429, 500, 502, 503, 504}


class GitHubRestClient(PlatformClient):
    """GitHub implementation of PlatformClient.

    Every request carries a bearer token and the GitHub JSON accept header.
    Non-2xx responses raise PlatformError carrying method, path, status, and
    body; 204 responses decode to an empty dict.
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
    ):
        """Initialize GitHub client.

        Args:
            token: GitHub token (GITHUB_TOKEN in Actions, or a PAT)
            owner: Repository owner (user or organization)
            repo: Repository name
            base_url: API base URL (for GitHub Enterprise)
            timeout: Per-request timeout in seconds
        """
        self.token = token.strip() if token else token
        self.owner = owner
        self.repo = repo
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": USER_AGENT,
        }

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
            )
            log.info("github_connected", base_url=self.base_url, owner=self.owner, repo=self.repo)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        """Issue one API call and decode the JSON response.

        Raises:
            TransientPlatformError: On transport failures and 429/5xx responses
            PlatformError: On any other non-2xx response, or a 2xx body that is not JSON
        """
        if self._client is None:
            await self.connect()

        assert self._client is not None
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TransportError as e:
            log.warning("github_transport_error", method=method, path=path, error=str(e))
            raise TransientPlatformError(method, path, None, str(e)) from e

        if not 200 <= response.status_code < 300:
            error_cls = TransientPlatformError if response.status_code in _TRANSIENT_STATUSES else PlatformError
            raise error_cls(method, path, response.status_code, response.text)

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            log.warning("github_invalid_json", method=method, path=path, status=response.status_code)
            raise PlatformError(method, path, response.status_code, response.text) from e

    @async_retry(max_attempts=3, backoff_factor=2.0, exceptions=(TransientPlatformError,))
    async def get_default_branch(self) -> str:
        """Look up the repository's default branch."""
        log.debug("get_default_branch", repo=f"{self.owner}/{self.repo}")

        data = await self._request("GET", self.repo_path)
        return data["default_branch"]

    async def create_issue(self, title: str, body: str) -> Issue:
        """Create issue via REST API."""
        log.info("create_issue", title=title)

        data = await self._request("POST", f"{self.repo_path}/issues", json={"title": title, "body": body})
        return self._parse_issue(data)

    async def update_issue(self, issue_number: int, state: str) -> Issue:
        """Update issue state via REST API."""
        log.info("update_issue", number=issue_number, state=state)

        data = await self._request("PATCH", f"{self.repo_path}/issues/{issue_number}", json={"state": state})
        return self._parse_issue(data)

    async def put_file(
        self,
        path: str,
        content: str,
        message: str,
        branch: str,
        committer: dict[str, str] | None = None,
    ) -> str:
        """Create a file on a branch via the contents API."""
        log.info("put_file", path=path, branch=branch)

        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if committer:
            payload["committer"] = dict(committer)
            payload["author"] = dict(committer)

        data = await self._request("PUT", f"{self.repo_path}/contents/{quote(path, safe='/')}", json=payload)
        return data.get("commit", {}).get("sha", "")

    async def create_pull_request(self, title: str, body: str, head: str, base: str) -> PullRequest:
        """Create a pull request."""
        log.info("create_pull_request", title=title, head=head, base=base)

        data = await self._request(
            "POST",
            f"{self.repo_path}/pulls",
            json={"title": title, "head": head, "base": base, "body": body},
        )
        return self._parse_pull_request(data)

    async def request_reviewers(self, pr_number: int, reviewers: list[str]) -> None:
        """Request reviews from the given logins."""
        log.info("request_reviewers", pr=pr_number, reviewers=reviewers)

        await self._request(
            "POST",
            f"{self.repo_path}/pulls/{pr_number}/requested_reviewers",
            json={"reviewers": list(reviewers)},
        )

    async def create_review(self, pr_number: int, event: ReviewEvent, body: str) -> Review:
        """Submit a pull request review."""
        log.info("create_review", pr=pr_number, review_event=event.value)

        data = await self._request(
            "POST",
            f"{self.repo_path}/pulls/{pr_number}/reviews",
            json={"event": event.value, "body": body},
        )
        return Review(pr_number=pr_number, event=event, body=body, id=data.get("id"))

    async def merge_pull_request(
        self,
        pr_number: int,
        merge_method: MergeMethod = MergeMethod.MERGE,
        commit_title: str | None = None,
    ) -> str:
        """Merge a pull request."""
        log.info("merge_pull_request", pr=pr_number, merge_method=merge_method.value)

        payload: dict[str, Any] = {"merge_method": merge_method.value}
        if commit_title:
            payload["commit_title"] = commit_title

        data = await self._request("PUT", f"{self.repo_path}/pulls/{pr_number}/merge", json=payload)
        return data.get("sha", "")

    async def delete_branch(self, branch_name: str) -> None:
        """Delete a branch ref."""
        log.info("delete_branch", branch=branch_name)

        await self._request("DELETE", f"{self.repo_path}/git/refs/heads/{quote(branch_name, safe='/')}")

    def _parse_issue(self, data: dict[str, Any]) -> Issue:
        """Convert GitHub issue JSON to our Issue model."""
        state = IssueState.CLOSED if data.get("state") == "closed" else IssueState.OPEN
        return Issue(
            number=data["number"],
            title=data.get("title", ""),
            body=data.get("body") or "",
            state=state,
            url=data.get("html_url", ""),
        )

    def _parse_pull_request(self, data: dict[str, Any]) -> PullRequest:
        """Convert GitHub pull request JSON to our PullRequest model."""
        return PullRequest(
            number=data["number"],
            title=data.get("title", ""),
            head=data.get("head", {}).get("ref", ""),
            base=data.get("base", {}).get("ref", ""),
            url=data.get("html_url", ""),
            merged=bool(data.get("merged", False)),
        )
