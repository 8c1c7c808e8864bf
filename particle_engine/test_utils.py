"""
Tests for noise generation, resampling helpers, model factories,
simulation and metrics.

Run: pytest test_utils.py -v
"""

import logging
import math
import pytest
import numpy as np
from numpy.random import default_rng

from particle_engine.filters.base import FilterDegeneracyError
from particle_engine.models import (
    zeros_like,
    float_copy,
    state_size,
    make_identity_model,
    make_random_walk,
    make_gaussian_likelihood,
)
from particle_engine.simulation import Trajectory, simulate
from particle_engine.utils import logging_config
from particle_engine.utils import (
    NoiseGenerator,
    cumulative_weights,
    systematic_select,
    effective_sample_size,
    normalize_weights,
    compute_rmse,
    get_logger,
    setup_logging,
    set_level,
)


# ============================================================================
# Noise generator
# ============================================================================

class TestNoiseGenerator:

    def test_shape_and_type(self):
        gen = NoiseGenerator(default_rng(0))
        sample = gen.generate(np.zeros(3), np.ones(3))
        assert isinstance(sample, np.ndarray)
        assert sample.shape == (3,)

    def test_does_not_modify_inputs(self):
        gen = NoiseGenerator(default_rng(0))
        mean = np.array([1.0, 2.0])
        sigma = np.array([0.5, 0.5])
        gen.generate(mean, sigma)
        np.testing.assert_array_equal(mean, [1.0, 2.0])
        np.testing.assert_array_equal(sigma, [0.5, 0.5])

    def test_per_dimension_statistics(self):
        gen = NoiseGenerator(default_rng(1))
        mean = np.array([3.0, -1.0])
        sigma = np.array([0.2, 1.5])
        samples = np.array([gen.generate(mean, sigma) for _ in range(5000)])

        np.testing.assert_allclose(samples.mean(axis=0), mean, atol=0.08)
        np.testing.assert_allclose(samples.std(axis=0), sigma, atol=0.08)

    def test_zero_sigma_consumes_no_draws(self):
        """A point mass returns the mean and leaves the stream untouched."""
        rng_a = default_rng(5)
        rng_b = default_rng(5)
        gen = NoiseGenerator(rng_a)

        sample = gen.generate(np.array([4.0, -4.0]), np.zeros(2))

        np.testing.assert_array_equal(sample, [4.0, -4.0])
        assert rng_a.normal() == rng_b.normal()

    def test_mixed_zero_sigma(self):
        gen = NoiseGenerator(default_rng(2))
        sample = gen.generate(np.array([1.0, 2.0, 3.0]), np.array([0.0, 1.0, 0.0]))
        assert sample[0] == 1.0
        assert sample[2] == 3.0
        assert sample[1] != 2.0

    @pytest.mark.parametrize("bad", [-0.1, float("nan"), float("inf")])
    def test_invalid_sigma(self, bad):
        gen = NoiseGenerator(default_rng(0))
        with pytest.raises(ValueError):
            gen.generate(np.zeros(2), np.array([1.0, bad]))

    def test_dimension_mismatch(self):
        gen = NoiseGenerator(default_rng(0))
        with pytest.raises(ValueError):
            gen.generate(np.zeros(2), np.ones(3))

    def test_integer_inputs_promoted(self):
        gen = NoiseGenerator(default_rng(3))
        samples = np.array([gen.generate(np.array([1, -1]), np.array([1, 0])) for _ in range(200)])

        assert samples.dtype == np.float64
        assert not np.all(samples[:, 0] == np.round(samples[:, 0]))
        np.testing.assert_array_equal(samples[:, 1], -1.0)


# ============================================================================
# Resampling helpers
# ============================================================================

class TestResampling:

    def test_cumulative_weights(self):
        cdf, total = cumulative_weights(np.array([0.125, 0.5, 0.25, 0.125]))
        np.testing.assert_array_equal(cdf, [0.125, 0.625, 0.875, 1.0])
        assert total == 1.0

    def test_cumulative_weights_unnormalized(self):
        cdf, total = cumulative_weights(np.array([1.0, 0.0, 3.0]))
        np.testing.assert_array_equal(cdf, [1.0, 1.0, 4.0])
        assert total == 4.0
        assert np.all(np.diff(cdf) >= 0)

    def test_select_dyadic(self):
        cdf = np.array([0.125, 0.625, 0.875, 1.0])
        np.testing.assert_array_equal(systematic_select(cdf, 1.0, 4), [1, 1, 2, 3])

    def test_select_uniform_is_identity(self):
        cdf, total = cumulative_weights(np.full(8, 0.125))
        np.testing.assert_array_equal(systematic_select(cdf, total, 8), np.arange(8))

    def test_select_unnormalized_total(self):
        """Strata span [0, total], not [0, 1]."""
        cdf, total = cumulative_weights(np.array([2.0, 2.0]))
        np.testing.assert_array_equal(systematic_select(cdf, total, 2), [0, 1])

    def test_select_overrun_marker(self):
        """A pointer beyond the last cdf entry yields len(cdf)."""
        cdf = np.array([0.5, 0.9999999])
        np.testing.assert_array_equal(systematic_select(cdf, 1.0, 2), [0, 2])

    def test_select_is_non_decreasing(self):
        rng = default_rng(3)
        w = rng.uniform(size=50)
        cdf, total = cumulative_weights(w / w.sum())
        indices = systematic_select(cdf, total, 50)
        assert np.all(np.diff(indices) >= 0)
        assert indices.shape == (50,)

    def test_select_counts_proportional(self):
        w = np.array([0.1, 0.2, 0.3, 0.4])
        cdf, total = cumulative_weights(w)
        indices = systematic_select(cdf, total, 1000)
        counts = np.bincount(np.minimum(indices, 3), minlength=4)
        np.testing.assert_allclose(counts / 1000, w, atol=0.002)

    @pytest.mark.parametrize("total", [0.0, float("nan"), float("inf")])
    def test_select_degenerate_total(self, total):
        with pytest.raises(FilterDegeneracyError):
            systematic_select(np.zeros(3), total, 3)

    def test_effective_sample_size(self):
        assert effective_sample_size(np.full(10, 0.1)) == pytest.approx(10.0)
        assert effective_sample_size(np.array([1.0, 0.0, 0.0])) == pytest.approx(1.0)

    def test_normalize_weights(self):
        w, total = normalize_weights(np.array([1.0, 3.0]))
        np.testing.assert_allclose(w, [0.25, 0.75])
        assert total == 4.0

    @pytest.mark.parametrize("weights", [[0.0, 0.0], [1.0, float("nan")], [float("inf"), 1.0]])
    def test_normalize_degenerate(self, weights):
        with pytest.raises(FilterDegeneracyError):
            normalize_weights(np.array(weights))


# ============================================================================
# State helpers and model factories
# ============================================================================

class TestModels:

    def test_zeros_like_copies(self):
        x = np.array([1.0, 2.0, 3.0])
        z = zeros_like(x)
        np.testing.assert_array_equal(z, [0.0, 0.0, 0.0])
        np.testing.assert_array_equal(x, [1.0, 2.0, 3.0])
        assert state_size(z) == 3

    def test_zeros_like_promotes_integer_arrays(self):
        z = zeros_like(np.array([1, 2, 3]))
        assert z.dtype == np.float64
        z[0] = 0.5
        assert z[0] == 0.5

    def test_float_copy(self):
        x = np.array([True, False])
        y = float_copy(x)
        assert y.dtype == np.float64
        np.testing.assert_array_equal(y, [1.0, 0.0])

        f = np.array([1.5, 2.5], dtype=np.float32)
        g = float_copy(f)
        assert g.dtype == np.float32
        assert g is not f

    def test_identity_model(self):
        model = make_identity_model()
        x = np.array([1.0, -1.0])
        assert model(x) is x

    def test_random_walk_zero_sigma(self):
        model = make_random_walk([0.0, 0.0], seed=0)
        x = np.array([1.0, 2.0])
        np.testing.assert_array_equal(model(x), x)

    def test_random_walk_reproducible(self):
        x = np.array([0.0, 0.0])
        a = make_random_walk([1.0, 1.0], seed=4)(x)
        b = make_random_walk([1.0, 1.0], seed=4)(x)
        np.testing.assert_array_equal(a, b)
        np.testing.assert_array_equal(x, [0.0, 0.0])

    def test_random_walk_spread(self):
        model = make_random_walk([0.5], rng=default_rng(9))
        steps = np.array([model(np.zeros(1))[0] for _ in range(4000)])
        assert abs(steps.std() - 0.5) < 0.03

    def test_random_walk_integer_state(self):
        model = make_random_walk([0.5, 0.0], seed=2)
        x_next = model(np.array([3, 4]))
        assert x_next.dtype == np.float64
        assert x_next[0] != 3.0
        assert x_next[1] == 4.0

    def test_random_walk_invalid(self):
        with pytest.raises(ValueError):
            make_random_walk([-1.0])
        model = make_random_walk([1.0, 1.0], seed=0)
        with pytest.raises(ValueError):
            model(np.zeros(3))

    def test_gaussian_likelihood_value(self):
        lik = make_gaussian_likelihood([1.0, 2.0], [0.5, 2.0])
        x = np.array([1.5, 0.0])

        expected = 1.0
        for y, m, s in ((1.0, 1.5, 0.5), (2.0, 0.0, 2.0)):
            expected *= math.exp(-0.5 * ((y - m) / s) ** 2) / (s * math.sqrt(2 * math.pi))

        assert lik(x) == pytest.approx(expected)

    def test_gaussian_likelihood_with_observation_function(self):
        # observe range only
        lik = make_gaussian_likelihood(5.0, 1.0, observe=lambda x: np.hypot(x[0], x[1]))
        assert lik(np.array([3.0, 4.0])) > lik(np.array([1.0, 1.0]))
        assert lik(np.array([3.0, 4.0])) == pytest.approx(1.0 / math.sqrt(2 * math.pi))

    def test_gaussian_likelihood_invalid(self):
        with pytest.raises(ValueError):
            make_gaussian_likelihood([0.0], [0.0])
        with pytest.raises(ValueError):
            make_gaussian_likelihood([0.0, 1.0], [1.0])


# ============================================================================
# Simulation and metrics
# ============================================================================

class TestSimulation:

    def test_shapes(self):
        traj = simulate(
            np.zeros(2), make_random_walk([0.1, 0.1], seed=0), lambda x: x,
            T=10, obs_sigma=[0.5, 0.5], seed=1,
        )
        assert isinstance(traj, Trajectory)
        assert traj.states.shape == (11, 2)
        assert traj.observations.shape == (10, 2)
        assert traj.T == 10
        assert traj.state_dim == 2
        assert traj.obs_dim == 2

    def test_noise_free_observations(self):
        traj = simulate(
            np.array([1.0, 2.0]), lambda x: x + 1.0, lambda x: x,
            T=5, obs_sigma=[0.0, 0.0], seed=0,
        )
        np.testing.assert_array_equal(traj.observations, traj.states[1:])
        np.testing.assert_array_equal(traj.states[-1], [6.0, 7.0])

    def test_subset(self):
        traj = simulate(np.zeros(1), lambda x: x + 1.0, lambda x: x, T=10, obs_sigma=[0.0])
        sub = traj.subset(2, 5)
        assert sub.T == 3
        np.testing.assert_array_equal(sub.states[:, 0], [2.0, 3.0, 4.0, 5.0])

    def test_compute_rmse(self):
        xs_true = np.zeros((4, 2))
        xs_est = np.array([[3.0, 4.0], [0.0, 0.0], [1.0, 1.0]])
        per_step, mean = compute_rmse(xs_true, xs_est)

        # estimates aligned with x_1..x_3
        np.testing.assert_allclose(per_step, [np.sqrt(12.5), 0.0, 1.0])
        assert mean == pytest.approx(np.mean(per_step))


class TestLogging:

    def test_get_logger_and_set_level(self):
        logger = get_logger("particle_engine.test")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "particle_engine.test"

        previous = logging.getLogger().level
        try:
            set_level("WARNING")
            assert logging.getLogger().level == logging.WARNING
        finally:
            logging.getLogger().setLevel(previous)

    def test_setup_logging_replaces_root_handlers(self, monkeypatch):
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        saved_level = root.level
        monkeypatch.setattr(logging_config, "_logging_configured", False)

        stale = logging.NullHandler()
        root.addHandler(stale)
        try:
            setup_logging(level="INFO", log_file="")
            assert stale not in root.handlers
            assert len(root.handlers) == 1
            assert root.level == logging.INFO
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
