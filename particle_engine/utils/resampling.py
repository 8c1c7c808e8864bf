"""
Resampling algorithms for particle filters.

CDF inversion over evenly spaced strata. Stratum k (k = 0..N-1) targets
the point (k+1) * total / N on the cumulative weight distribution.
"""

import numpy as np

from ..filters.base import FilterDegeneracyError


def cumulative_weights(weights: np.ndarray) -> tuple:
    """
    Running sum of the weights.

    The result is non-decreasing because weights are non-negative, so it
    can be searched without sorting.

    Args:
        weights: [N] Non-negative weights (not necessarily normalized)

    Returns:
        cdf: [N] cdf[i] = sum_{j <= i} w_j
        total: Final accumulated value cdf[-1]
    """
    cdf = np.cumsum(np.asarray(weights, dtype=np.float64))
    total = float(cdf[-1]) if cdf.size else 0.0
    return cdf, total


def systematic_select(cdf: np.ndarray, total: float, n: int) -> np.ndarray:
    """
    Select source indices for n evenly spaced strata of [0, total].

    The scan pointer advances by total / n per stratum and the search
    never moves backwards.

    Args:
        cdf: [N] Non-decreasing cumulative weights
        total: Upper end of the partitioned interval
        n: Number of strata (output particles)

    Returns:
        indices: [n] Smallest j with cdf[j] >= pointer. A value of len(cdf)
                 marks a floating-point overrun past the end of the CDF.
    """
    if not np.isfinite(total) or total <= 0:
        raise FilterDegeneracyError(f"Cannot resample: weight total is {total}")

    pstep = total / n
    pscan = 0.0
    j = 0
    indices = np.empty(n, dtype=np.intp)

    for k in range(n):
        # running sum; may exceed total by rounding on the last stratum
        pscan += pstep
        j = max(j, int(np.searchsorted(cdf, pscan, side="left")))
        indices[k] = j

    return indices


def effective_sample_size(weights: np.ndarray) -> float:
    """
    Compute effective sample size (ESS).

    ESS = 1 / sum(w_i^2), where weights are normalized.

    Args:
        weights: [N] Normalized weights (must sum to 1)

    Returns:
        ESS value in [1, N]
    """
    return 1.0 / np.sum(np.asarray(weights, dtype=np.float64) ** 2)


def normalize_weights(weights: np.ndarray) -> tuple:
    """
    Normalize non-negative weights to sum to one.

    Args:
        weights: [N] Unnormalized weights

    Returns:
        weights: [N] Normalized weights (sum to 1)
        total: Normalizing constant

    Raises:
        FilterDegeneracyError: If the sum is zero or not finite
    """
    weights = np.asarray(weights, dtype=np.float64)
    total = float(np.sum(weights))

    if not np.isfinite(total) or total <= 0:
        raise FilterDegeneracyError(
            f"Weight sum is {total}; every particle has zero or invalid likelihood"
        )

    return weights / total, total
