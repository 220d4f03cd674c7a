"""
Accepted equilibrium candidates.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from efgliap.engine.profile import BehaviorProfile


class SolverAlgorithm(Enum):
    LIAP = "liap"
    LIAP_SUBGAME = "liap-subgame"


@dataclass(frozen=True)
class BehaviorSolution:
    """A converged profile and how it was found.

    Attributes:
        profile:    The profile (never mutated after acceptance).
        algorithm:  Solver that produced it.
        epsilon:    Accuracy annotation; also the tolerance used to decide
                    whether another profile is the same solution.
        liap_value: Liapunov value of ``profile`` at acceptance.
    """

    profile: BehaviorProfile
    algorithm: SolverAlgorithm
    epsilon: float
    liap_value: float

    def equals(self, profile: BehaviorProfile) -> bool:
        return self.profile.equals(profile, self.epsilon)
