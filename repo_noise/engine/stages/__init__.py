"""Pipeline stages: commit, issue, and change."""

from repo_noise.engine.stages.base import NoiseStage
from repo_noise.engine.stages.change import ChangeStage
from repo_noise.engine.stages.commit import CommitStage
from repo_noise.engine.stages.issue import IssueStage

__all__ = ["ChangeStage", "CommitStage", "IssueStage", "NoiseStage"]
