"""
Noise orchestrator: runs the pipeline once, front to back.

Pipeline:
    prepare workspace -> commit -> [gate] issue -> [gate] change

Data flows strictly forward and every external call is awaited before the
next one is issued. The orchestrator owns the per-stage failure policy:
errors from a fatal stage abort the run as StageError; errors escaping a
non-fatal stage are recorded as a degraded outcome.

Example:
    >>> orchestrator = NoiseOrchestrator(context, git, platform)
    >>> report = await orchestrator.run()
    >>> report.summary
    'commit=completed issue=skipped change=completed'
"""

import random
from collections.abc import Callable
from datetime import datetime

import structlog

from repo_noise.engine.content import utc_now
from repo_noise.engine.gates import evaluate_gate
from repo_noise.engine.report import RunReport, StageOutcome
from repo_noise.engine.stages.base import NoiseStage
from repo_noise.engine.stages.change import ChangeStage
from repo_noise.engine.stages.commit import CommitStage
from repo_noise.engine.stages.issue import IssueStage
from repo_noise.enums import StageStatus
from repo_noise.exceptions import GitOperationError, RepoNoiseError, StageError
from repo_noise.git.workspace import GitWorkspace
from repo_noise.models.domain import RunContext
from repo_noise.providers.base import PlatformClient

log = structlog.get_logger(__name__)

STAGE_ORDER: tuple[type[NoiseStage], ...] = (CommitStage, IssueStage, ChangeStage)


class NoiseOrchestrator:
    """Sequence the stages of one noise run.

    Attributes:
        context: Resolved configuration for this run
        git: Working copy operations
        platform: Hosted platform client
        rng: Random source shared by gates and content selection
        stages: Stage instances in execution order
    """

    def __init__(
        self,
        context: RunContext,
        git: GitWorkspace,
        platform: PlatformClient,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
        stage_classes: tuple[type[NoiseStage], ...] = STAGE_ORDER,
    ) -> None:
        self.context = context
        self.git = git
        self.platform = platform
        self.rng = rng or random.Random()
        self.stages = [cls(context, git, platform, rng=self.rng, clock=clock) for cls in stage_classes]

    async def prepare_workspace(self) -> None:
        """Configure the committer identity and check out the default branch.

        Raises:
            StageError: If the working copy cannot be prepared
        """
        try:
            await self.git.configure_identity(self.context.committer_name, self.context.committer_email)
            await self.git.checkout(self.context.default_branch)
        except GitOperationError as e:
            log.error("workspace_preparation_failed", error=str(e))
            raise StageError(str(e), stage="prepare") from e

    async def run(self) -> RunReport:
        report = RunReport(repository=self.context.full_name, default_branch=self.context.default_branch)

        await self.prepare_workspace()

        for stage in self.stages:
            threshold = stage.gate_threshold()
            if threshold is not None:
                decision = evaluate_gate(stage.name, threshold, self.rng)
                if not decision.passed:
                    report.add(
                        StageOutcome(
                            stage.name,
                            StageStatus.SKIPPED,
                            {"threshold": threshold, "roll": round(decision.roll, 2)},
                        )
                    )
                    continue

            report.add(await self._run_stage(stage))

        return report

    async def _run_stage(self, stage: NoiseStage) -> StageOutcome:
        log.info("stage_started", stage=stage.name)
        try:
            outcome = await stage.execute()
        except RepoNoiseError as e:
            if stage.fatal:
                log.error("stage_failed", stage=stage.name, error=str(e))
                raise StageError(str(e), stage=stage.name) from e
            log.warning("stage_failed_recovered", stage=stage.name, error=str(e))
            return StageOutcome(stage.name, StageStatus.DEGRADED, {"error": str(e)})

        log.info("stage_finished", stage=stage.name, status=outcome.status.value)
        return outcome
