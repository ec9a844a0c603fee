# aad/core/config.py
from dataclasses import dataclass
from enum import Enum


class DiracDeltaApproximation(Enum):
    """
    Convention for the derivative of choose(trigger, A, B) w.r.t. the trigger.

    The exact derivative is (A - B)·δ(trigger), a point mass at trigger = 0.

    ZERO           : 0 (almost-everywhere derivative; default)
    ONE            : A - B (the jump size, without the density factor)
    DISCRETE_DELTA : (A - B)·1{-ε/2 <= trigger < ε/2}/ε with ε = width·stdev(trigger)
    """
    ZERO = "zero"
    ONE = "one"
    DISCRETE_DELTA = "discrete_delta"


@dataclass(frozen=True)
class TapeConfig:
    """Configuration shared by all nodes recorded through one Tape."""
    dirac_delta_approximation: DiracDeltaApproximation = DiracDeltaApproximation.ZERO
    dirac_delta_width_per_std_dev: float = 0.05

    # If False, get_gradient also returns adjoints of interior nodes
    gradient_retains_leaf_nodes_only: bool = True

    def __post_init__(self):
        if not isinstance(self.dirac_delta_approximation, DiracDeltaApproximation):
            raise ValueError(
                f"dirac_delta_approximation must be a DiracDeltaApproximation, "
                f"got {self.dirac_delta_approximation!r}"
            )
        if not self.dirac_delta_width_per_std_dev >= 0.0:
            raise ValueError(
                f"dirac_delta_width_per_std_dev must be non-negative, "
                f"got {self.dirac_delta_width_per_std_dev}"
            )
