"""
Base class for pipeline stages.

Stage Lifecycle:
    1. Instantiation: the orchestrator builds every stage once per run with
       the RunContext, git workspace, platform client, random source and clock
    2. Gate: ``gate_threshold()`` returns the probability the stage runs with,
       or None when the stage always runs
    3. Execution: ``execute()`` returns a StageOutcome or raises

Failure Policy:
    Each stage declares ``fatal``. The orchestrator re-raises errors from a
    fatal stage (aborting the run) and records errors from a non-fatal stage
    as a degraded outcome. Stages may also recover internally from failures
    of individual best-effort steps.
"""

import random
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import ClassVar

from repo_noise.engine.content import utc_now
from repo_noise.engine.report import StageOutcome
from repo_noise.git.workspace import GitWorkspace
from repo_noise.models.domain import RunContext
from repo_noise.providers.base import PlatformClient


class NoiseStage(ABC):
    """Abstract base class for all pipeline stages.

    Attributes:
        context: Immutable configuration for this run
        git: Working copy operations
        platform: Hosted platform client
        rng: Random source for content selection
        clock: Returns the current time (UTC)
    """

    name: ClassVar[str]
    fatal: ClassVar[bool] = False

    def __init__(
        self,
        context: RunContext,
        git: GitWorkspace,
        platform: PlatformClient,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.context = context
        self.git = git
        self.platform = platform
        self.rng = rng or random.Random()
        self.clock = clock

    def gate_threshold(self) -> float | None:
        """Probability (0-100) that this stage runs; None means always."""
        return None

    @abstractmethod
    async def execute(self) -> StageOutcome:
        """Run the stage and describe how it ended."""
