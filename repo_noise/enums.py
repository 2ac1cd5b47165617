"""Enumerations shared across repo-noise."""

from enum import Enum


class ReviewEvent(str, Enum):
    """Pull request review dispositions submitted to GitHub."""

    APPROVE = "APPROVE"
    COMMENT = "COMMENT"

    def __str__(self) -> str:
        return self.value


class MergeMethod(str, Enum):
    """Merge strategies accepted by the pull request merge endpoint."""

    MERGE = "merge"
    SQUASH = "squash"
    REBASE = "rebase"

    def __str__(self) -> str:
        return self.value


class PlatformErrorKind(str, Enum):
    """Classification of a failed platform call, used to pick a recovery action."""

    TRANSIENT = "transient"
    SELF_APPROVAL_REJECTED = "self_approval_rejected"
    OTHER = "other"


class StageStatus(str, Enum):
    """How a stage ended, as seen by the outcome reporter."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    DEGRADED = "degraded"

    def __str__(self) -> str:
        return self.value
