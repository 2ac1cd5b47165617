"""Probability gates for the optional stages."""

import random
from dataclasses import dataclass

import structlog

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GateDecision:
    """One gate evaluation: a uniform roll in [0, 100) compared to the threshold."""

    stage: str
    threshold: float
    roll: float

    @property
    def passed(self) -> bool:
        return self.roll < self.threshold


def evaluate_gate(stage: str, threshold: float, rng: random.Random) -> GateDecision:
    """Draw once for ``stage``.

    A threshold of 0 never passes and a threshold of 100 always does.
    """
    decision = GateDecision(stage=stage, threshold=threshold, roll=rng.random() * 100)
    log.info(
        "gate_evaluated",
        stage=stage,
        threshold=threshold,
        roll=round(decision.roll, 2),
        passed=decision.passed,
    )
    return decision
