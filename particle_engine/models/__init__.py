"""
State vector contract and model factories.
"""

from .base import StateVector, MotionModel, Likelihood, state_size, zeros_like, float_copy
from .gaussian import make_identity_model, make_random_walk, make_gaussian_likelihood

__all__ = [
    "StateVector",
    "MotionModel",
    "Likelihood",
    "state_size",
    "zeros_like",
    "float_copy",
    "make_identity_model",
    "make_random_walk",
    "make_gaussian_likelihood",
]
