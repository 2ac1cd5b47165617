"""
Commit stage - append activity to a tracked file and push it to the default branch.

The payload always carries a fresh timestamp and random token, so the working
tree changes on every run. Any failure while writing, committing, or pushing
is logged and the run continues.
"""

import structlog

from repo_noise.engine.content import build_working_change
from repo_noise.engine.report import StageOutcome
from repo_noise.engine.stages.base import NoiseStage
from repo_noise.enums import StageStatus
from repo_noise.exceptions import GitOperationError

log = structlog.get_logger(__name__)


class CommitStage(NoiseStage):
    """Best-effort single commit and push on the default branch."""

    name = "commit"
    fatal = False

    async def execute(self) -> StageOutcome:
        change = build_working_change(self.rng, self.clock())
        branch = self.context.default_branch
        details = {"path": change.path, "message": change.message, "lines": len(change.lines)}

        try:
            self.git.append(change.path, change.payload)
            await self.git.add(change.path)
            await self.git.commit(change.message)
            await self.git.push(branch)
        except (GitOperationError, OSError) as e:
            log.warning("default_branch_commit_skipped", branch=branch, path=change.path, error=str(e))
            return StageOutcome(self.name, StageStatus.DEGRADED, {**details, "error": str(e)})

        log.info("default_branch_commit_pushed", branch=branch, path=change.path, lines=len(change.lines))
        return StageOutcome(self.name, StageStatus.COMPLETED, details)
