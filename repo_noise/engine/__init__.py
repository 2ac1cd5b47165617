"""Pipeline engine for noise runs.

Key Components:
    - EnvironmentResolver: Builds the RunContext from settings
    - NoiseOrchestrator: Runs workspace preparation and the stages in order
    - NoiseStage: Base class for the commit, issue, and change stages
    - RunReport: Per-stage outcomes consumed by the outcome reporter
"""

from repo_noise.engine.orchestrator import NoiseOrchestrator
from repo_noise.engine.report import RunReport, StageOutcome, report_outcome
from repo_noise.engine.resolver import EnvironmentResolver

__all__ = [
    "EnvironmentResolver",
    "NoiseOrchestrator",
    "RunReport",
    "StageOutcome",
    "report_outcome",
]
