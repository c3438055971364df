"""
Unit tests for the exact data augmentation samplers.
"""

import logging
from unittest.mock import MagicMock

import numpy as np
import pytest

from gaussian_samplers.core import AugmentationScheme, CholeskyDrawer, GaussianSource, UnknownSchemeError
from gaussian_samplers.models import LinearGaussianModel
from gaussian_samplers.samplers import DataAugmentationSampler


@pytest.fixture
def inverse_problem():
    """Small linear inverse problem with a well-conditioned prior."""
    rng = np.random.default_rng(0)
    forward = 0.3 * rng.standard_normal((6, 4))
    noise_precision = np.array([1.0, 2.0, 1.0, 0.5, 1.5, 1.0])
    observation = rng.standard_normal(6)
    return LinearGaussianModel(forward, noise_precision, 2.0 * np.eye(4), observation,
                               prior_mean=np.array([0.5, -0.5, 1.0, 0.0]))


def build_sampler(model, scheme, omega_fraction=0.9, **kwargs):
    q1, g1, lambda1 = model.augmentation_blocks()
    omega = omega_fraction * model.max_omega()
    if AugmentationScheme.from_name(scheme) is AugmentationScheme.GEDA:
        return DataAugmentationSampler(model, omega, scheme=scheme, g1=g1, lambda1=lambda1, **kwargs)
    return DataAugmentationSampler(model, omega, q1=q1, scheme=scheme, **kwargs)


class TestDataAugmentationSampler:
    """Test the EDA/GEDA Gibbs samplers."""

    @pytest.mark.statistical
    @pytest.mark.parametrize("scheme", ["EDA", "GEDA"])
    def test_moments(self, inverse_problem, source, stat_utils, statistical_config, scheme):
        sampler = build_sampler(inverse_problem, scheme, source=source)
        samples = sampler.draw_many(statistical_config["n_samples"], 50)

        stat_utils.assert_gaussian_moments(
            samples, inverse_problem.mean_vector, inverse_problem.covariance(),
            n_sigma=statistical_config['n_sigma'], err_msg=scheme
        )

    @pytest.mark.statistical
    def test_eda_and_geda_agree(self, inverse_problem):
        eda = build_sampler(inverse_problem, "EDA", omega_fraction=0.5, source=GaussianSource(1))
        geda = build_sampler(inverse_problem, "GEDA", omega_fraction=0.5, source=GaussianSource(2))

        eda_samples = eda.draw_many(2000, 50)
        geda_samples = geda.draw_many(2000, 50)

        sd = np.sqrt(np.diag(inverse_problem.covariance()))
        # Difference of two independent means has standard error sd * sqrt(2 / n)
        np.testing.assert_array_less(
            np.abs(eda_samples.mean(axis=0) - geda_samples.mean(axis=0)),
            5.0 * sd * np.sqrt(2.0 / 2000)
        )

    def test_geda_accepts_diagonal_vector(self, inverse_problem, source):
        q1, g1, lambda1 = inverse_problem.augmentation_blocks()
        sampler = DataAugmentationSampler(inverse_problem, 0.5 * inverse_problem.max_omega(),
                                          scheme="geda", g1=g1, lambda1=np.diag(lambda1), source=source)

        np.testing.assert_allclose(sampler.q1, q1)
        np.testing.assert_allclose(sampler.q1 + sampler.q2, inverse_problem.precision_matrix)
        assert sampler.scheme is AugmentationScheme.GEDA

    def test_geda_tracks_auxiliaries(self, inverse_problem, source):
        sampler = build_sampler(inverse_problem, "GEDA", source=source)
        state = sampler._initial_state(np.ones(4))

        np.testing.assert_array_equal(state.u1, np.ones(4))
        assert state.u2 is None

        state = sampler._step(state)
        assert state.u2.shape == (6,)
        assert state.u1.shape == (4,)

    def test_conditionals_drawn_through_drawer(self, inverse_problem, source):
        drawer = MagicMock(wraps=CholeskyDrawer())
        sampler = build_sampler(inverse_problem, "EDA", source=source, drawer=drawer)

        assert drawer.factorize.call_count == 2
        identity = np.eye(4)
        np.testing.assert_allclose(
            drawer.factorize.call_args_list[0][0][0], identity / sampler.omega + sampler.q2
        )
        np.testing.assert_allclose(drawer.factorize.call_args_list[1][0][0], sampler.R)

        sampler.sample(5)
        # Factors are computed once, not per iteration
        assert drawer.factorize.call_count == 2

    def test_geda_factorizations(self, inverse_problem, source):
        drawer = MagicMock(wraps=CholeskyDrawer())
        sampler = build_sampler(inverse_problem, "GEDA", source=source, drawer=drawer)

        assert drawer.factorize.call_count == 3
        np.testing.assert_allclose(drawer.factorize.call_args_list[1][0][0], np.eye(4) / sampler.omega)
        np.testing.assert_allclose(drawer.factorize.call_args_list[2][0][0], sampler.lambda1)

    def test_zero_iterations_returns_initial_state(self, inverse_problem, source):
        sampler = build_sampler(inverse_problem, "EDA", source=source)
        theta0 = np.array([1.0, 2.0, 3.0, 4.0])
        np.testing.assert_array_equal(sampler.sample(0, theta0), theta0)

    @pytest.mark.reproducibility
    def test_same_seed_same_sample(self, inverse_problem):
        a = build_sampler(inverse_problem, "GEDA", source=GaussianSource(8)).sample(10)
        b = build_sampler(inverse_problem, "GEDA", source=GaussianSource(8)).sample(10)
        np.testing.assert_array_equal(a, b)

    @pytest.mark.edge_case
    def test_omega_too_large(self, inverse_problem, source, caplog):
        q1, _, _ = inverse_problem.augmentation_blocks()
        with caplog.at_level(logging.WARNING):
            with pytest.raises(np.linalg.LinAlgError):
                DataAugmentationSampler(inverse_problem, 2.0 * inverse_problem.max_omega(),
                                        q1=q1, source=source)
        assert "not positive definite" in caplog.text

    @pytest.mark.edge_case
    def test_invalid_arguments(self, inverse_problem, source):
        q1, g1, lambda1 = inverse_problem.augmentation_blocks()
        omega = 0.5 * inverse_problem.max_omega()

        with pytest.raises(ValueError, match="positive"):
            DataAugmentationSampler(inverse_problem, 0.0, q1=q1, source=source)
        with pytest.raises(ValueError, match="lambda1"):
            DataAugmentationSampler(inverse_problem, omega, g1=g1, source=source)
        with pytest.raises(ValueError, match="GEDA requires"):
            DataAugmentationSampler(inverse_problem, omega, q1=q1, scheme="GEDA", source=source)
        with pytest.raises(ValueError, match="q1 is required"):
            DataAugmentationSampler(inverse_problem, omega, source=source)
        with pytest.raises(ValueError, match="does not match"):
            DataAugmentationSampler(inverse_problem, omega, q1=2.0 * q1, g1=g1, lambda1=lambda1,
                                    source=source)
        with pytest.raises(ValueError, match="shape"):
            DataAugmentationSampler(inverse_problem, omega, q1=np.eye(3), source=source)
        with pytest.raises(UnknownSchemeError):
            DataAugmentationSampler(inverse_problem, omega, q1=q1, scheme="Gibbs", source=source)
