"""Outcome reporting for a finished run.

The reporter makes no decisions: it records how each stage ended and emits
the terminal success line once the pipeline returns.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import click
import structlog

from repo_noise.enums import StageStatus

log = structlog.get_logger(__name__)


@dataclass
class StageOutcome:
    """How one stage ended and what it produced (issue number, PR number, ...)."""

    stage: str
    status: StageStatus
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class RunReport:
    """Per-stage outcomes for one run, in execution order."""

    repository: str
    default_branch: str
    outcomes: list[StageOutcome] = field(default_factory=list)

    def add(self, outcome: StageOutcome) -> None:
        self.outcomes.append(outcome)

    def status_of(self, stage: str) -> StageStatus | None:
        for outcome in self.outcomes:
            if outcome.stage == stage:
                return outcome.status
        return None

    def outcome_of(self, stage: str) -> StageOutcome | None:
        return next((o for o in self.outcomes if o.stage == stage), None)

    @property
    def summary(self) -> str:
        return " ".join(f"{o.stage}={o.status}" for o in self.outcomes)


def report_outcome(report: RunReport, echo: Callable[[str], Any] = click.echo) -> str:
    """Log the run summary and print the terminal success line.

    Args:
        report: The finished run's report
        echo: Output function for the success line (stdout by default)

    Returns:
        The line that was printed.
    """
    log.info(
        "run_completed",
        repository=report.repository,
        default_branch=report.default_branch,
        stages={o.stage: o.status.value for o in report.outcomes},
    )
    line = f"Noise generated successfully for {report.repository} ({report.summary})"
    echo(line)
    return line
