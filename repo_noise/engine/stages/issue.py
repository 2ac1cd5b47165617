"""Issue stage - open a tracked issue and close it straight away."""

import structlog

from repo_noise.engine.content import ISSUE_BODY, issue_title
from repo_noise.engine.report import StageOutcome
from repo_noise.engine.stages.base import NoiseStage
from repo_noise.enums import StageStatus
from repo_noise.exceptions import PlatformError
from repo_noise.models.domain import IssueState

log = structlog.get_logger(__name__)


class IssueStage(NoiseStage):
    """Create then close one issue.

    Best-effort: a failed create leaves nothing behind, and a failed close is
    logged as ``issue_left_open`` with the number so it can be closed by hand.
    """

    name = "issue"
    fatal = False

    def gate_threshold(self) -> float | None:
        return self.context.issue_probability

    async def execute(self) -> StageOutcome:
        title = issue_title(self.rng, self.clock())

        try:
            issue = await self.platform.create_issue(title, ISSUE_BODY)
        except PlatformError as e:
            log.warning("issue_create_failed", title=title, error=str(e))
            return StageOutcome(self.name, StageStatus.DEGRADED, {"title": title, "error": str(e)})

        try:
            closed = await self.platform.update_issue(issue.number, state=IssueState.CLOSED.value)
        except PlatformError as e:
            log.warning("issue_left_open", number=issue.number, error=str(e))
            return StageOutcome(
                self.name,
                StageStatus.DEGRADED,
                {"issue": issue.number, "state": IssueState.OPEN.value, "error": str(e)},
            )

        log.info("issue_cycled", number=issue.number)
        return StageOutcome(
            self.name,
            StageStatus.COMPLETED,
            {"issue": issue.number, "state": closed.state.value},
        )
