"""
Particle Filter engine.

Sequential importance resampling over a fixed population of N weighted
state hypotheses. The caller drives the cycle:

    pf.init(mean, sigma)
    loop:
        pf.predict(model)
        pf.measure(likelihood)
        pf.resample(sigma)      # optional
        pf.noise(sigma)         # optional
    pf.expectation() / pf.max()

Resampling uses CDF inversion over N evenly spaced strata. Consecutive
strata landing in the same source particle receive jitter noise so the
new population does not contain identical copies of a dominant particle.
"""

import copy
import logging
import warnings
import numpy as np
from typing import Optional, List
from numpy.random import Generator, default_rng

from .base import (
    Particle,
    FilterDegeneracyError,
    FilterNotInitializedError,
)
from ..models.base import T, MotionModel, Likelihood, zeros_like, float_copy
from ..utils.noise import NoiseGenerator
from ..utils.resampling import (
    cumulative_weights,
    systematic_select,
    effective_sample_size,
    normalize_weights,
)

logger = logging.getLogger(__name__)

# ESS below this always counts as collapsed, whatever the ratio
MIN_ESS = 1.5


class ParticleFilter:
    """
    Generic particle filter over caller-supplied state vectors.

    States may be any StateVector (len, indexing, element-wise +). Weights
    are held as a float64 array aligned with the state list.
    """

    def __init__(
        self,
        n_particles: int,
        seed: Optional[int] = None,
        rng: Optional[Generator] = None,
        ess_warning_ratio: float = 0.01,
    ):
        """
        Args:
            n_particles: Number of particles N (> 0)
            seed: Random seed (ignored if rng is provided)
            rng: NumPy random generator owned by this filter
            ess_warning_ratio: Warn when ESS after measure() drops below
                               this fraction of N, or below MIN_ESS
        """
        if isinstance(n_particles, bool) or not isinstance(n_particles, (int, np.integer)):
            raise ValueError(f"n_particles must be an integer, got {n_particles!r}")
        if n_particles <= 0:
            raise ValueError(f"n_particles must be positive, got {n_particles}")

        if rng is None:
            rng = default_rng(seed)

        self.n_particles = int(n_particles)
        self.ess_warning_ratio = ess_warning_ratio
        self.rng = rng
        self.noise_generator = NoiseGenerator(rng)

        self._states: List = [None] * self.n_particles
        self._weights = np.zeros(self.n_particles)
        self._initialized = False

    # -------------------------------------------------------------------------
    # Filtering steps
    # -------------------------------------------------------------------------

    def init(self, mean: T, sigma: T) -> None:
        """
        Draw the initial population from N(mean, diag(sigma^2)).

        Args:
            mean: [D] Initial state mean
            sigma: [D] Initial per-dimension standard deviation
        """
        N = self.n_particles
        states = [self.noise_generator.generate(mean, sigma) for _ in range(N)]

        self._states = states
        self._weights = np.full(N, 1.0 / N)
        self._initialized = True

        logger.debug("Initialized %d particles (D=%d)", N, len(mean))

    def predict(self, model: MotionModel) -> None:
        """
        Propagate every particle through the motion model.

        Weights are not changed.

        Args:
            model: x_{t-1} -> x_t

        Raises:
            TypeError: If the model returns None for any particle
        """
        self._check_initialized()
        states = [model(x) for x in self._states]

        if any(x is None for x in states):
            raise TypeError(
                "Motion model returned None; it must return the propagated state"
            )

        self._states = states

    def measure(self, likelihood: Likelihood) -> None:
        """
        Multiply weights by p(y | x_i) and renormalize.

        Args:
            likelihood: x -> p(y | x), non-negative scalar

        Raises:
            FilterDegeneracyError: If all updated weights are zero, or the
                                   sum is not finite. The population is
                                   left unchanged.
        """
        self._check_initialized()

        lik = np.empty(self.n_particles)
        for i, x in enumerate(self._states):
            value = likelihood(x)
            if np.ndim(value) != 0:
                raise TypeError(
                    f"likelihood must return a scalar, got shape {np.shape(value)}"
                )
            lik[i] = value

        if np.any(lik < 0):
            raise ValueError("likelihood returned a negative value")

        weights, total = normalize_weights(self._weights * lik)
        self._weights = weights

        ess = effective_sample_size(weights)
        logger.debug("Measurement update: weight sum %.6g, ESS %.1f", total, ess)

        threshold = max(self.ess_warning_ratio * self.n_particles, MIN_ESS)
        if self.n_particles > 1 and ess < threshold:
            warnings.warn(
                f"Effective sample size collapsed to {ess:.2f} "
                f"of {self.n_particles} particles.",
                RuntimeWarning,
            )

    def resample(self, sigma: T) -> None:
        """
        Systematic resampling with jitter on repeated selections.

        After resampling every weight is exactly 1/N.

        Args:
            sigma: [D] Standard deviation of the jitter added to repeated
                   copies of the same source particle

        Raises:
            ValueError: If len(sigma) differs from the state dimension
        """
        self._check_initialized()
        self._check_sigma(sigma)
        N = self.n_particles

        cdf, total = cumulative_weights(self._weights)
        indices = systematic_select(cdf, total, N)

        if indices[0] >= N:
            raise FilterDegeneracyError(
                f"Cannot resample: scan overran the weight total {total}"
            )

        source = [float_copy(x) for x in self._states]
        zero = zeros_like(sigma)

        states = []
        prev = None
        n_jittered = 0
        n_overrun = 0

        for j in indices:
            if j >= N:
                # Past the end of the CDF: reuse the last located particle
                states.append(copy.deepcopy(source[prev]))
                n_overrun += 1
                continue
            if j == prev:
                states.append(source[j] + self.noise_generator.generate(zero, sigma))
                n_jittered += 1
            else:
                states.append(copy.deepcopy(source[j]))
            prev = j

        self._states = states
        self._weights = np.full(N, 1.0 / N)

        logger.debug(
            "Resampled %d particles from %d sources (%d jittered, %d overrun)",
            N, len(np.unique(indices[indices < N])), n_jittered, n_overrun,
        )
        if n_overrun > 1:
            logger.warning(
                "Resampling scan overran the weight total %.17g on %d strata",
                total, n_overrun,
            )

    def noise(self, sigma: T) -> None:
        """
        Add independent N(0, diag(sigma^2)) noise to every particle.

        Args:
            sigma: [D] Per-dimension standard deviation
        """
        self._check_initialized()
        self._check_sigma(sigma)
        zero = zeros_like(sigma)
        self._states = [
            x + self.noise_generator.generate(zero, sigma) for x in self._states
        ]

    # -------------------------------------------------------------------------
    # Posterior summaries
    # -------------------------------------------------------------------------

    def expectation(self, pass_ratio: float = 1.0) -> T:
        """
        Weighted mean of the particle states.

        With pass_ratio < 1 the population is first reordered by descending
        weight, and only the heaviest particles are accumulated until their
        weight sum exceeds pass_ratio. At least one particle is always used.

        Args:
            pass_ratio: Fraction of probability mass to include

        Returns:
            mean: [D] State of the same type as the particles
        """
        self._check_initialized()

        if pass_ratio < 1.0:
            order = np.argsort(-self._weights, kind="stable")
            self._states = [self._states[i] for i in order]
            self._weights = self._weights[order]

        D = len(self._states[0])
        acc = np.zeros(D)
        p_sum = 0.0

        for x, w in zip(self._states, self._weights):
            for i in range(D):
                acc[i] += w * x[i]
            p_sum += w
            if p_sum > pass_ratio:
                break

        if not np.isfinite(p_sum) or p_sum <= 0:
            raise FilterDegeneracyError(f"Cannot average: accumulated weight is {p_sum}")

        mean = zeros_like(self._states[0])
        for i in range(D):
            mean[i] = acc[i] / p_sum
        return mean

    def max(self) -> T:
        """
        Maximum a posteriori particle.

        Ties resolve to the first particle in population order.

        Returns:
            state: [D] Copy of the highest-weight state
        """
        self._check_initialized()
        return copy.deepcopy(self._states[int(np.argmax(self._weights))])

    def covariance(self) -> np.ndarray:
        """
        Weighted covariance of the particle states.

        Returns:
            cov: [D, D] Covariance around the weighted mean
        """
        self._check_initialized()

        X = np.array([[x[i] for i in range(len(x))] for x in self._states], dtype=np.float64)
        w = self._weights
        p_sum = float(np.sum(w))
        if not np.isfinite(p_sum) or p_sum <= 0:
            raise FilterDegeneracyError(f"Cannot compute covariance: weight sum is {p_sum}")

        mean = w @ X / p_sum
        diff = X - mean
        cov = np.einsum('n,ni,nj->ij', w, diff, diff) / p_sum
        return 0.5 * (cov + cov.T)

    def effective_sample_size(self) -> float:
        """Effective sample size 1 / sum(w_i^2)."""
        self._check_initialized()
        return float(effective_sample_size(self._weights))

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def get_particle(self, i: int) -> T:
        """Copy of the i-th particle state, 0 <= i < N."""
        self._check_initialized()
        self._check_index(i)
        return copy.deepcopy(self._states[i])

    def get_probability(self, i: int) -> float:
        """Weight of the i-th particle, 0 <= i < N."""
        self._check_initialized()
        self._check_index(i)
        return float(self._weights[i])

    def get_particle_size(self) -> int:
        """Number of particles N."""
        return self.n_particles

    @property
    def weights(self) -> np.ndarray:
        """Copy of the weight vector [N]."""
        self._check_initialized()
        return self._weights.copy()

    @property
    def particles(self) -> List[Particle]:
        """Snapshot of the population as Particle records."""
        self._check_initialized()
        return [
            Particle(state=copy.deepcopy(x), probability=float(w))
            for x, w in zip(self._states, self._weights)
        ]

    def __len__(self) -> int:
        return self.n_particles

    def __repr__(self) -> str:
        return f"ParticleFilter(n_particles={self.n_particles})"

    def _check_initialized(self):
        if not self._initialized:
            raise FilterNotInitializedError("ParticleFilter.init() has not been called")

    def _check_index(self, i):
        if isinstance(i, bool) or not isinstance(i, (int, np.integer)):
            raise IndexError(f"Particle index must be an integer, got {i!r}")
        if not 0 <= i < self.n_particles:
            raise IndexError(f"Particle index {i} out of range [0, {self.n_particles})")

    def _check_sigma(self, sigma):
        D = len(self._states[0])
        if len(sigma) != D:
            raise ValueError(
                f"sigma dimension {len(sigma)} does not match state dimension {D}"
            )
