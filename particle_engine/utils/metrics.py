"""
Evaluation metrics for filtering and tracking.
"""

import numpy as np
from typing import Tuple


def compute_rmse(
    xs_true: np.ndarray,
    xs_est: np.ndarray,
) -> Tuple[np.ndarray, float]:
    """
    Compute Root Mean Square Error per time step.

    Args:
        xs_true: [T+1, nx] True states
        xs_est: [T+1, nx] or [T, nx] Estimated states

    Returns:
        rmse_per_step: [T] RMSE at each time step
        rmse_mean: Mean RMSE over all time steps
    """
    xs_true = np.asarray(xs_true, dtype=np.float64)
    xs_est = np.asarray(xs_est, dtype=np.float64)

    # Handle alignment
    if xs_est.shape[0] == xs_true.shape[0] - 1:
        xs_true_aligned = xs_true[1:]
    else:
        xs_true_aligned = xs_true

    T = min(xs_true_aligned.shape[0], xs_est.shape[0])

    rmse_per_step = np.sqrt(np.mean((xs_true_aligned[:T] - xs_est[:T])**2, axis=1))

    return rmse_per_step, np.mean(rmse_per_step)
