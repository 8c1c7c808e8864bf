"""
Filtering algorithms.
"""

from .base import (
    Particle,
    ParticleFilterError,
    FilterDegeneracyError,
    FilterNotInitializedError,
)
from .particle import ParticleFilter

__all__ = [
    "Particle",
    "ParticleFilterError",
    "FilterDegeneracyError",
    "FilterNotInitializedError",
    "ParticleFilter",
]
