"""
Change stage - branch, seed commit, pull request, review, merge, cleanup.

Execution Flow:
    1. Create ``noise/<epoch ms>`` from the default-branch tip and push it
    2. Write ``branches/<branch>.txt`` on the new branch through the contents
       API, so the pull request diff never depends on the local tree
    3. Open the pull request (and request reviewers, if configured)
    4. Review: APPROVE when approvals are enabled, falling back to a single
       COMMENT review if the platform rejects self-approval; COMMENT otherwise
    5. Merge with a merge commit
    6. Delete the remote branch

Failure Policy:
    Steps 1-3 and 5 are fatal. If step 2 or 3 fails for any reason after the
    branch was published, the branch is deleted before the error propagates.
    If the merge fails, the branch and pull request are left open for
    inspection and logged as abandoned. Reviewer requests, reviews, and branch
    deletion are best-effort. The local checkout is always returned to the
    default branch.
"""

import structlog

from repo_noise.engine.classifier import classify_platform_error
from repo_noise.engine.content import (
    branch_name,
    next_run_id,
    pull_request_text,
    review_body,
    seed_file_content,
    seed_file_path,
)
from repo_noise.engine.report import StageOutcome
from repo_noise.engine.stages.base import NoiseStage
from repo_noise.enums import MergeMethod, PlatformErrorKind, ReviewEvent, StageStatus
from repo_noise.exceptions import GitOperationError, PlatformError
from repo_noise.models.domain import Branch, PullRequest, Review

log = structlog.get_logger(__name__)


class ChangeStage(NoiseStage):
    """Drive one pull request through its full lifecycle."""

    name = "change"
    fatal = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.last_run_id = 0

    def gate_threshold(self) -> float | None:
        return self.context.pr_probability

    async def execute(self) -> StageOutcome:
        now = self.clock()
        self.last_run_id = next_run_id(now, self.last_run_id)
        branch = Branch(name=branch_name(self.last_run_id), base=self.context.default_branch)
        log.info("change_stage_started", branch=branch.name, base=branch.base)

        created_locally = False
        try:
            await self.git.create_branch(branch.name)
            created_locally = True
            await self.git.push(branch.name, set_upstream=True)

            try:
                pr = await self._seed_and_open(branch)
            except Exception as e:
                log.warning("change_aborted_before_merge", branch=branch.name, error=str(e))
                await self._delete_remote_branch(branch)
                raise

            reviewers_requested = await self._request_reviewers(pr)
            review = await self._review(pr)

            try:
                pr.merge_sha = await self.platform.merge_pull_request(pr.number, MergeMethod.MERGE)
            except Exception as e:
                log.warning(
                    "branch_abandoned",
                    branch=branch.name,
                    pr=pr.number,
                    reason="merge_failed",
                    error=str(e),
                )
                raise
            pr.merged = True
            log.info("pull_request_merged", pr=pr.number, sha=pr.merge_sha)

            deleted = await self._delete_remote_branch(branch)
        finally:
            await self._restore_checkout(branch, created_locally)

        details = {
            "branch": branch.name,
            "pr": pr.number,
            "review": review.event.value if review else None,
            "merged": pr.merged,
            "branch_deleted": deleted,
        }
        degraded = review is None or not deleted or not reviewers_requested
        return StageOutcome(self.name, StageStatus.DEGRADED if degraded else StageStatus.COMPLETED, details)

    async def _seed_and_open(self, branch: Branch) -> PullRequest:
        path = seed_file_path(branch.name)
        branch.sha = await self.platform.put_file(
            path=path,
            content=seed_file_content(self.clock()),
            message=f"feat: add {path}",
            branch=branch.name,
            committer=self.context.identity,
        )
        log.info("seed_file_written", branch=branch.name, path=path, sha=branch.sha)

        title, body = pull_request_text(self.rng, branch.name)
        pr = await self.platform.create_pull_request(title=title, body=body, head=branch.name, base=branch.base)
        log.info("pull_request_opened", pr=pr.number, head=branch.name, base=branch.base)
        return pr

    async def _request_reviewers(self, pr: PullRequest) -> bool:
        if not self.context.reviewers:
            return True
        try:
            await self.platform.request_reviewers(pr.number, list(self.context.reviewers))
        except PlatformError as e:
            log.warning("reviewer_request_failed", pr=pr.number, reviewers=list(self.context.reviewers), error=str(e))
            return False
        return True

    async def _review(self, pr: PullRequest) -> Review | None:
        """Attach exactly one review; a missing review never blocks the merge."""
        event = ReviewEvent.APPROVE if self.context.approve_prs else ReviewEvent.COMMENT
        try:
            return await self.platform.create_review(pr.number, event, review_body(event))
        except Exception as e:
            kind = classify_platform_error(e) if isinstance(e, PlatformError) else PlatformErrorKind.OTHER
            if event is ReviewEvent.APPROVE and kind is PlatformErrorKind.SELF_APPROVAL_REJECTED:
                log.info("self_approval_rejected", pr=pr.number)
                return await self._comment_review(pr)
            log.warning("review_failed", pr=pr.number, review_event=event.value, kind=kind.value, error=str(e))
            return None

    async def _comment_review(self, pr: PullRequest) -> Review | None:
        try:
            return await self.platform.create_review(pr.number, ReviewEvent.COMMENT, review_body(ReviewEvent.COMMENT))
        except Exception as e:
            log.warning("review_failed", pr=pr.number, review_event=ReviewEvent.COMMENT.value, fallback=True, error=str(e))
            return None

    async def _delete_remote_branch(self, branch: Branch) -> bool:
        try:
            await self.platform.delete_branch(branch.name)
        except Exception as e:
            log.warning("branch_delete_failed", branch=branch.name, error=str(e))
            return False
        log.info("branch_deleted", branch=branch.name)
        return True

    async def _restore_checkout(self, branch: Branch, created_locally: bool) -> None:
        try:
            await self.git.checkout(branch.base)
            if created_locally:
                await self.git.delete_local_branch(branch.name)
        except GitOperationError as e:
            log.warning("local_cleanup_failed", branch=branch.name, error=str(e))
