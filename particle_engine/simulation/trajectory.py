"""
Trajectory simulation and storage.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Dict, Any, Callable
from numpy.random import Generator, default_rng


@dataclass
class Trajectory:
    """
    Container for simulated ground truth.

    Attributes:
        states: [T+1, nx] State trajectory (x_0, x_1, ..., x_T)
        observations: [T, ny] Observations (y_1, y_2, ..., y_T)
        metadata: Optional dictionary for additional info
    """
    states: np.ndarray
    observations: np.ndarray
    metadata: Optional[Dict[str, Any]] = None

    @property
    def T(self) -> int:
        """Number of time steps."""
        return self.observations.shape[0]

    @property
    def state_dim(self) -> int:
        """State dimension."""
        return self.states.shape[1]

    @property
    def obs_dim(self) -> int:
        """Observation dimension."""
        return self.observations.shape[1]

    def subset(self, start: int, end: int) -> "Trajectory":
        """
        Extract a subset of the trajectory.

        Args:
            start: Start time index (inclusive)
            end: End time index (exclusive)

        Returns:
            New Trajectory with subset of data
        """
        return Trajectory(
            states=self.states[start:end+1].copy(),
            observations=self.observations[start:end].copy(),
            metadata=self.metadata,
        )


def simulate(
    x0,
    motion: Callable,
    observe: Callable,
    T: int,
    obs_sigma,
    seed: Optional[int] = None,
    rng: Optional[Generator] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Trajectory:
    """
    Simulate a trajectory and noisy observations.

    x_t = motion(x_{t-1})
    y_t = observe(x_t) + w_t,  w_t ~ N(0, diag(obs_sigma^2))

    Args:
        x0: [nx] Initial state
        motion: State transition x -> x (may be stochastic)
        observe: Observation function x -> [ny]
        T: Number of time steps
        obs_sigma: [ny] Observation noise standard deviation
        seed: Random seed (ignored if rng is provided)
        rng: NumPy random generator (optional)
        metadata: Optional metadata to attach

    Returns:
        Trajectory object
    """
    if rng is None:
        rng = default_rng(seed)

    obs_sigma = np.atleast_1d(np.asarray(obs_sigma, dtype=np.float64))
    x = np.asarray(x0, dtype=np.float64)

    states = np.zeros((T + 1, x.shape[0]))
    observations = np.zeros((T, obs_sigma.shape[0]))
    states[0] = x

    for t in range(T):
        x = np.asarray(motion(x.copy()), dtype=np.float64)
        states[t + 1] = x
        y_mean = np.atleast_1d(np.asarray(observe(x), dtype=np.float64))
        observations[t] = y_mean + obs_sigma * rng.standard_normal(obs_sigma.shape[0])

    return Trajectory(
        states=states,
        observations=observations,
        metadata=metadata,
    )
