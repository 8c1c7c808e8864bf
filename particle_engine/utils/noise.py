"""
Per-dimension Gaussian noise generation for particle states.
"""

import math
from numpy.random import Generator

from ..models.base import T, float_copy


class NoiseGenerator:
    """
    Draws state-shaped vectors of independent Gaussian samples.

    Component i is drawn from N(mean[i], sigma[i]^2). A zero sigma is a
    point mass and returns mean[i] without consuming a random draw.
    """

    def __init__(self, rng: Generator):
        """
        Args:
            rng: NumPy random generator shared with the owning filter
        """
        self.rng = rng

    def generate(self, mean: T, sigma: T) -> T:
        """
        Draw one noise vector.

        Args:
            mean: [D] Per-dimension mean
            sigma: [D] Per-dimension standard deviation (>= 0)

        Returns:
            sample: [D] State of the same type as mean (float64 for
                    integer arrays)
        """
        D = len(mean)
        if len(sigma) != D:
            raise ValueError(
                f"sigma dimension {len(sigma)} does not match mean dimension {D}"
            )

        sample = float_copy(mean)
        for i in range(D):
            s = float(sigma[i])
            if not math.isfinite(s) or s < 0:
                raise ValueError(f"sigma[{i}] must be finite and non-negative, got {s}")
            if s > 0:
                sample[i] = self.rng.normal(mean[i], s)
            else:
                sample[i] = mean[i]
        return sample
