"""Tests for the commit, issue and change stages."""

from dataclasses import replace

import pytest

from repo_noise.engine.stages.change import ChangeStage
from repo_noise.engine.stages.commit import CommitStage
from repo_noise.engine.stages.issue import IssueStage
from repo_noise.enums import MergeMethod, ReviewEvent, StageStatus
from repo_noise.exceptions import GitOperationError, PlatformError
from repo_noise.models.domain import Review

SELF_APPROVAL_BODY = '{"message":"Unprocessable Entity","errors":["Review Can not approve your own pull request"]}'


def platform_error(status: int = 422, text: str = "Validation Failed") -> PlatformError:
    return PlatformError("POST", "/repos/octo/sandbox/x", status, text)


# =============================================================================
# Commit stage
# =============================================================================


class TestCommitStage:
    @pytest.mark.asyncio
    async def test_appends_commits_and_pushes(self, run_context, mock_git, mock_platform, rng, fixed_clock, call_log):
        stage = CommitStage(run_context, mock_git, mock_platform, rng=rng, clock=fixed_clock)

        outcome = await stage.execute()

        assert outcome.status is StageStatus.COMPLETED
        names = [name for name, _, _ in call_log]
        assert names == ["git.append", "git.add", "git.commit", "git.push"]

        path, text = call_log[0][1]
        assert call_log[1][1] == (path,)
        assert call_log[2][1] == (outcome.details["message"],)
        assert call_log[3][1] == ("main",)
        assert text.count("\n") == outcome.details["lines"]
        assert "2024-06-15T10:30:00.123Z" in text

    @pytest.mark.asyncio
    async def test_push_failure_is_degraded(self, run_context, mock_git, mock_platform, rng, fixed_clock):
        mock_git.push.side_effect = GitOperationError("git push origin main failed", returncode=1)
        stage = CommitStage(run_context, mock_git, mock_platform, rng=rng, clock=fixed_clock)

        outcome = await stage.execute()

        assert outcome.status is StageStatus.DEGRADED
        assert "push" in outcome.details["error"]

    @pytest.mark.asyncio
    async def test_write_failure_is_degraded(self, run_context, mock_git, mock_platform, rng, fixed_clock):
        mock_git.append.side_effect = PermissionError("read-only file system")
        stage = CommitStage(run_context, mock_git, mock_platform, rng=rng, clock=fixed_clock)

        outcome = await stage.execute()

        assert outcome.status is StageStatus.DEGRADED
        mock_git.commit.assert_not_called()

    def test_always_runs(self, run_context, mock_git, mock_platform):
        assert CommitStage(run_context, mock_git, mock_platform).gate_threshold() is None


# =============================================================================
# Issue stage
# =============================================================================


class TestIssueStage:
    @pytest.mark.asyncio
    async def test_creates_then_closes(self, run_context, mock_git, mock_platform, rng, fixed_clock, call_log):
        stage = IssueStage(run_context, mock_git, mock_platform, rng=rng, clock=fixed_clock)

        outcome = await stage.execute()

        assert outcome.status is StageStatus.COMPLETED
        assert outcome.details == {"issue": 42, "state": "closed"}
        assert [name for name, _, _ in call_log] == ["platform.create_issue", "platform.update_issue"]
        assert call_log[1][1] == (42,)
        assert call_log[1][2] == {"state": "closed"}

    @pytest.mark.asyncio
    async def test_create_failure_skips_close(self, run_context, mock_git, mock_platform, rng, fixed_clock):
        mock_platform.create_issue.side_effect = platform_error(410, "Issues are disabled for this repo")
        stage = IssueStage(run_context, mock_git, mock_platform, rng=rng, clock=fixed_clock)

        outcome = await stage.execute()

        assert outcome.status is StageStatus.DEGRADED
        mock_platform.update_issue.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_failure_leaves_issue_open(self, run_context, mock_git, mock_platform, rng, fixed_clock):
        mock_platform.update_issue.side_effect = platform_error(403, "Forbidden")
        stage = IssueStage(run_context, mock_git, mock_platform, rng=rng, clock=fixed_clock)

        outcome = await stage.execute()

        assert outcome.status is StageStatus.DEGRADED
        assert outcome.details["issue"] == 42
        assert outcome.details["state"] == "open"

    def test_gate_threshold(self, run_context, mock_git, mock_platform):
        context = replace(run_context, issue_probability=35.0)

        assert IssueStage(context, mock_git, mock_platform).gate_threshold() == 35.0


# =============================================================================
# Change stage
# =============================================================================


@pytest.fixture
def change_stage(run_context, mock_git, mock_platform, rng, fixed_clock):
    def _build(**overrides) -> ChangeStage:
        context = replace(run_context, **overrides)
        return ChangeStage(context, mock_git, mock_platform, rng=rng, clock=fixed_clock)

    return _build


class TestChangeStageHappyPath:
    @pytest.mark.asyncio
    async def test_full_lifecycle(self, change_stage, call_log, call_names):
        outcome = await change_stage().execute()

        assert outcome.status is StageStatus.COMPLETED
        assert call_names() == [
            "git.create_branch",
            "git.push",
            "platform.put_file",
            "platform.create_pull_request",
            "platform.create_review",
            "platform.merge_pull_request",
            "platform.delete_branch",
            "git.checkout",
            "git.delete_local_branch",
        ]
        branch = call_log[0][1][0]
        assert branch.startswith("noise/")
        assert call_log[1][1] == (branch,)
        assert call_log[1][2] == {"set_upstream": True}
        assert outcome.details["branch"] == branch
        assert outcome.details["pr"] == 7
        assert outcome.details["merged"] is True
        assert outcome.details["branch_deleted"] is True

    @pytest.mark.asyncio
    async def test_seed_file_on_branch(self, change_stage, call_log):
        await change_stage().execute()

        branch = call_log[0][1][0]
        put_kwargs = call_log[2][2]
        assert put_kwargs["path"] == f"branches/{branch}.txt"
        assert put_kwargs["content"] == "hello 2024-06-15T10:30:00.123Z\n"
        assert put_kwargs["message"] == f"feat: add branches/{branch}.txt"
        assert put_kwargs["branch"] == branch
        assert put_kwargs["committer"] == {"name": "noise-bot", "email": "noise-bot@example.com"}

        pr_kwargs = call_log[3][2]
        assert pr_kwargs["head"] == branch
        assert pr_kwargs["base"] == "main"
        assert branch in pr_kwargs["title"]

    @pytest.mark.asyncio
    async def test_merge_commit_and_cleanup(self, change_stage, call_log):
        await change_stage().execute()

        merge = next(c for c in call_log if c[0] == "platform.merge_pull_request")
        assert merge[1] == (7, MergeMethod.MERGE)
        delete = next(c for c in call_log if c[0] == "platform.delete_branch")
        assert delete[1] == (call_log[0][1][0],)
        checkout = next(c for c in call_log if c[0] == "git.checkout")
        assert checkout[1] == ("main",)

    @pytest.mark.asyncio
    async def test_branch_names_unique_across_runs(self, change_stage, call_log):
        stage = change_stage()
        await stage.execute()
        await stage.execute()

        branches = [c[1][0] for c in call_log if c[0] == "git.create_branch"]
        assert len(set(branches)) == 2

    def test_gate_threshold(self, change_stage):
        assert change_stage(pr_probability=12.5).gate_threshold() == 12.5


class TestChangeStageReview:
    @pytest.mark.asyncio
    async def test_comment_review_by_default(self, change_stage, call_log):
        outcome = await change_stage().execute()

        reviews = [c for c in call_log if c[0] == "platform.create_review"]
        assert len(reviews) == 1
        assert reviews[0][1][1] is ReviewEvent.COMMENT
        assert outcome.details["review"] == "COMMENT"

    @pytest.mark.asyncio
    async def test_approve_when_enabled(self, change_stage, call_log):
        outcome = await change_stage(approve_prs=True).execute()

        reviews = [c for c in call_log if c[0] == "platform.create_review"]
        assert [r[1][1] for r in reviews] == [ReviewEvent.APPROVE]
        assert outcome.details["review"] == "APPROVE"

    @pytest.mark.asyncio
    async def test_self_approval_falls_back_to_comment(self, change_stage, mock_platform, call_log, call_names):
        attempts = []

        async def review(pr_number, event, body):
            attempts.append(event)
            call_log.append(("platform.create_review", (pr_number, event, body), {}))
            if event is ReviewEvent.APPROVE:
                raise PlatformError("POST", "/repos/octo/sandbox/pulls/7/reviews", 422, SELF_APPROVAL_BODY)

            return Review(pr_number=pr_number, event=event, body=body, id=100)

        mock_platform.create_review.side_effect = review

        outcome = await change_stage(approve_prs=True).execute()

        assert attempts == [ReviewEvent.APPROVE, ReviewEvent.COMMENT]
        assert outcome.status is StageStatus.COMPLETED
        assert outcome.details["review"] == "COMMENT"
        assert "platform.merge_pull_request" in call_names()

    @pytest.mark.asyncio
    async def test_fallback_comment_failure_still_merges(self, change_stage, mock_platform, call_names):
        mock_platform.create_review.side_effect = [
            PlatformError("POST", "/r", 422, SELF_APPROVAL_BODY),
            PlatformError("POST", "/r", 403, "Forbidden"),
        ]

        outcome = await change_stage(approve_prs=True).execute()

        assert mock_platform.create_review.await_count == 2
        assert outcome.status is StageStatus.DEGRADED
        assert outcome.details["review"] is None
        assert outcome.details["merged"] is True

    @pytest.mark.asyncio
    async def test_other_review_failure_is_not_retried(self, change_stage, mock_platform, call_names):
        mock_platform.create_review.side_effect = PlatformError("POST", "/r", 403, "Resource not accessible")

        outcome = await change_stage(approve_prs=True).execute()

        mock_platform.create_review.assert_awaited_once()
        assert outcome.status is StageStatus.DEGRADED
        assert "platform.merge_pull_request" in call_names()
        assert "platform.delete_branch" in call_names()

    @pytest.mark.asyncio
    async def test_unexpected_review_error_still_merges(self, change_stage, mock_platform, call_names):
        mock_platform.create_review.side_effect = ValueError("unexpected review payload")

        outcome = await change_stage().execute()

        assert outcome.status is StageStatus.DEGRADED
        assert outcome.details["review"] is None
        assert outcome.details["merged"] is True
        assert "platform.delete_branch" in call_names()

    @pytest.mark.asyncio
    async def test_unexpected_fallback_comment_error_still_merges(self, change_stage, mock_platform):
        mock_platform.create_review.side_effect = [
            PlatformError("POST", "/r", 422, SELF_APPROVAL_BODY),
            KeyError("id"),
        ]

        outcome = await change_stage(approve_prs=True).execute()

        assert mock_platform.create_review.await_count == 2
        assert outcome.status is StageStatus.DEGRADED
        assert outcome.details["merged"] is True

    @pytest.mark.asyncio
    async def test_requests_reviewers(self, change_stage, call_log, call_names):
        await change_stage(reviewers=("alice", "bob")).execute()

        names = call_names()
        assert names.index("platform.request_reviewers") < names.index("platform.create_review")
        request = next(c for c in call_log if c[0] == "platform.request_reviewers")
        assert request[1] == (7, ["alice", "bob"])

    @pytest.mark.asyncio
    async def test_reviewer_request_failure_is_degraded(self, change_stage, mock_platform, call_names):
        mock_platform.request_reviewers.side_effect = platform_error(422, "not a collaborator")

        outcome = await change_stage(reviewers=("stranger",)).execute()

        assert outcome.status is StageStatus.DEGRADED
        assert "platform.merge_pull_request" in call_names()


class TestChangeStageFailures:
    @pytest.mark.asyncio
    async def test_merge_failure_abandons_branch(self, change_stage, mock_platform, call_names):
        mock_platform.merge_pull_request.side_effect = PlatformError(
            "PUT", "/repos/octo/sandbox/pulls/7/merge", 405, "Pull Request is not mergeable"
        )

        with pytest.raises(PlatformError):
            await change_stage().execute()

        assert "platform.delete_branch" not in call_names()
        assert call_names()[-2:] == ["git.checkout", "git.delete_local_branch"]

    @pytest.mark.asyncio
    async def test_seed_failure_deletes_remote_branch(self, change_stage, mock_platform, call_names):
        mock_platform.put_file.side_effect = platform_error(409, "conflict")

        with pytest.raises(PlatformError):
            await change_stage().execute()

        names = call_names()
        assert "platform.create_pull_request" not in names
        assert "platform.delete_branch" in names
        assert names[-2:] == ["git.checkout", "git.delete_local_branch"]

    @pytest.mark.asyncio
    async def test_pr_failure_deletes_remote_branch(self, change_stage, mock_platform, call_names):
        mock_platform.create_pull_request.side_effect = platform_error(422, "No commits between main and noise/1")

        with pytest.raises(PlatformError):
            await change_stage().execute()

        names = call_names()
        assert "platform.delete_branch" in names
        assert "platform.create_review" not in names
        assert "platform.merge_pull_request" not in names

    @pytest.mark.asyncio
    async def test_push_failure_skips_platform(self, change_stage, mock_git, mock_platform, call_names):
        mock_git.push.side_effect = GitOperationError("git push -u origin noise/1 failed", returncode=1)

        with pytest.raises(GitOperationError):
            await change_stage().execute()

        mock_platform.put_file.assert_not_called()
        mock_platform.delete_branch.assert_not_called()
        assert call_names()[-1] == "git.delete_local_branch"

    @pytest.mark.asyncio
    async def test_branch_creation_failure_restores_checkout_only(self, change_stage, mock_git, call_names):
        mock_git.create_branch.side_effect = GitOperationError("git checkout -b failed", returncode=128)

        with pytest.raises(GitOperationError):
            await change_stage().execute()

        mock_git.delete_local_branch.assert_not_called()
        mock_git.checkout.assert_awaited_once_with("main")

    @pytest.mark.asyncio
    async def test_branch_delete_failure_is_degraded(self, change_stage, mock_platform):
        mock_platform.delete_branch.side_effect = platform_error(422, "Reference does not exist")

        outcome = await change_stage().execute()

        assert outcome.status is StageStatus.DEGRADED
        assert outcome.details["merged"] is True
        assert outcome.details["branch_deleted"] is False

    @pytest.mark.asyncio
    async def test_local_cleanup_failure_is_swallowed(self, change_stage, mock_git):
        mock_git.delete_local_branch.side_effect = GitOperationError("branch -D failed", returncode=1)

        outcome = await change_stage().execute()

        assert outcome.status is StageStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_unexpected_seed_error_deletes_remote_branch(self, change_stage, mock_platform, call_names):
        mock_platform.put_file.side_effect = ValueError("bad body")

        with pytest.raises(ValueError):
            await change_stage().execute()

        names = call_names()
        assert "platform.create_pull_request" not in names
        assert "platform.delete_branch" in names
        assert names[-2:] == ["git.checkout", "git.delete_local_branch"]

    @pytest.mark.asyncio
    async def test_unexpected_pr_error_deletes_remote_branch(self, change_stage, mock_platform, call_names):
        mock_platform.create_pull_request.side_effect = KeyError("number")

        with pytest.raises(KeyError):
            await change_stage().execute()

        assert "platform.delete_branch" in call_names()
        mock_platform.merge_pull_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_merge_error_abandons_branch(self, change_stage, mock_platform, call_names):
        mock_platform.merge_pull_request.side_effect = ValueError("bad merge response")

        with pytest.raises(ValueError):
            await change_stage().execute()

        assert "platform.delete_branch" not in call_names()
        assert call_names()[-2:] == ["git.checkout", "git.delete_local_branch"]

    @pytest.mark.asyncio
    async def test_cleanup_delete_error_does_not_mask_original(self, change_stage, mock_platform):
        mock_platform.create_pull_request.side_effect = platform_error(422, "No commits between main and noise/1")
        mock_platform.delete_branch.side_effect = RuntimeError("client closed")

        with pytest.raises(PlatformError):
            await change_stage().execute()

        mock_platform.delete_branch.assert_awaited_once()
