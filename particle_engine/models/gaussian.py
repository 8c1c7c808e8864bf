"""
Gaussian motion and observation model factories.

x_t = x_{t-1} + v_t,        v_t ~ N(0, diag(sigma^2))
p(y | x) = prod_j N(y_j; h(x)_j, sigma_j^2)

The factories return plain callables that can be passed directly to
ParticleFilter.predict / ParticleFilter.measure.
"""

import numpy as np
from typing import Callable, Optional
from numpy.random import Generator, default_rng
from scipy.stats import norm

from .base import MotionModel, Likelihood, float_copy


def make_identity_model() -> MotionModel:
    """
    Create a motion model that leaves the state unchanged.

    Returns:
        model: x -> x
    """
    def model(x):
        return x

    return model


def make_random_walk(
    sigma,
    rng: Optional[Generator] = None,
    seed: Optional[int] = None,
) -> MotionModel:
    """
    Create a Gaussian random-walk motion model.

    Args:
        sigma: [D] Per-dimension process noise standard deviation
        rng: NumPy random generator (optional)
        seed: Random seed (ignored if rng is provided)

    Returns:
        model: x -> x + v, v ~ N(0, diag(sigma^2))
    """
    sigma = np.asarray(sigma, dtype=np.float64)
    if np.any(sigma < 0) or not np.all(np.isfinite(sigma)):
        raise ValueError(f"sigma must be finite and non-negative, got {sigma}")

    if rng is None:
        rng = default_rng(seed)

    def model(x):
        if len(x) != sigma.shape[0]:
            raise ValueError(
                f"State dimension {len(x)} does not match sigma dimension {sigma.shape[0]}"
            )
        x_next = float_copy(x)
        for i in range(sigma.shape[0]):
            if sigma[i] > 0:
                x_next[i] = x[i] + rng.normal(0.0, sigma[i])
        return x_next

    return model


def make_gaussian_likelihood(
    observation,
    sigma,
    observe: Optional[Callable] = None,
) -> Likelihood:
    """
    Create an independent per-dimension Gaussian likelihood.

    Args:
        observation: [ny] Observed measurement y
        sigma: [ny] Observation noise standard deviation (all > 0)
        observe: Observation function h(x) -> [ny]. Default: identity.

    Returns:
        likelihood: x -> p(y | x)
    """
    y = np.atleast_1d(np.asarray(observation, dtype=np.float64))
    sigma = np.atleast_1d(np.asarray(sigma, dtype=np.float64))

    if np.any(sigma <= 0):
        raise ValueError(f"Observation sigma must be positive, got {sigma}")
    if sigma.shape != y.shape:
        raise ValueError(
            f"sigma shape {sigma.shape} does not match observation shape {y.shape}"
        )

    def likelihood(x) -> float:
        y_pred = x if observe is None else observe(x)
        y_pred = np.atleast_1d(np.asarray(y_pred, dtype=np.float64))
        return float(np.prod(norm.pdf(y, loc=y_pred, scale=sigma)))

    return likelihood
