"""
Particle container and filter exceptions.
"""

from dataclasses import dataclass
from typing import Any


class ParticleFilterError(Exception):
    """Base class for particle filter errors."""


class FilterDegeneracyError(ParticleFilterError, ArithmeticError):
    """
    The weight distribution has collapsed.

    Raised when the weights sum to zero or to a non-finite value, e.g. when
    every particle receives zero likelihood in a measurement update. The
    population is left as it was before the failing call.
    """


class FilterNotInitializedError(ParticleFilterError, RuntimeError):
    """An operation was called before init()."""


@dataclass
class Particle:
    """
    One state hypothesis.

    Attributes:
        state: [D] State vector (StateVector)
        probability: Normalized weight
    """
    state: Any = None
    probability: float = 0.0
