"""
Environment resolver: turns validated settings into a RunContext.

Default branch resolution order:
    1. DEFAULT_BRANCH override
    2. ``origin/HEAD`` in the working copy
    3. The repository's default branch as reported by the platform
    4. The literal ``"main"``

A failed lookup is logged and falls through to the next option; it never
aborts the run.
"""

import structlog

from repo_noise.config.settings import NoiseSettings
from repo_noise.exceptions import GitOperationError, PlatformError
from repo_noise.git.workspace import GitWorkspace
from repo_noise.models.domain import RunContext
from repo_noise.providers.base import PlatformClient

log = structlog.get_logger(__name__)

FALLBACK_BRANCH = "main"


class EnvironmentResolver:
    """Build the immutable RunContext for one invocation."""

    def __init__(self, settings: NoiseSettings, git: GitWorkspace, platform: PlatformClient) -> None:
        self.settings = settings
        self.git = git
        self.platform = platform

    async def resolve(self) -> RunContext:
        default_branch = await self.resolve_default_branch()
        context = RunContext(
            owner=self.settings.owner,
            repo=self.settings.repo_name,
            default_branch=default_branch,
            committer_name=self.settings.git_user_name,
            committer_email=self.settings.git_user_email,
            issue_probability=self.settings.issue_probability,
            pr_probability=self.settings.pr_probability,
            approve_prs=self.settings.approve_prs,
            reviewers=self.settings.reviewer_list,
        )
        log.info(
            "run_context_resolved",
            repository=context.full_name,
            default_branch=context.default_branch,
            issue_probability=context.issue_probability,
            pr_probability=context.pr_probability,
            approve_prs=context.approve_prs,
        )
        return context

    async def resolve_default_branch(self) -> str:
        if self.settings.default_branch:
            log.debug("default_branch_from_override", branch=self.settings.default_branch)
            return self.settings.default_branch

        try:
            branch = await self.git.remote_default_branch()
            if branch:
                log.debug("default_branch_from_origin_head", branch=branch)
                return branch
        except GitOperationError as e:
            log.debug("origin_head_unavailable", error=str(e))

        try:
            branch = await self.platform.get_default_branch()
            if branch:
                log.debug("default_branch_from_platform", branch=branch)
                return branch
        except (PlatformError, KeyError) as e:
            log.debug("platform_default_branch_unavailable", error=str(e))

        log.info("default_branch_fallback", branch=FALLBACK_BRANCH)
        return FALLBACK_BRANCH
