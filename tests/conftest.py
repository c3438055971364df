"""
Test configuration and fixtures for the iterative Gaussian samplers.

This module provides pytest fixtures and configuration for testing the
splitting, data augmentation and Krylov samplers.
"""

import numpy as np
import pytest
from typing import Optional

from gaussian_samplers.core import GaussianDistribution, GaussianSource, set_default_seed


@pytest.fixture(scope="session")
def test_seed():
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def source(test_seed):
    """Seeded Gaussian source."""
    return GaussianSource(test_seed)


@pytest.fixture
def coupled_precision():
    """Small strictly diagonally dominant SPD precision with couplings."""
    return np.array([
        [4.0, 1.0, 0.0, 0.5],
        [1.0, 3.0, 0.5, 0.0],
        [0.0, 0.5, 2.0, 0.3],
        [0.5, 0.0, 0.3, 2.5],
    ])


@pytest.fixture
def dense_precision():
    """SPD precision that is not diagonally dominant."""
    return np.array([
        [1.0, 0.9, 0.9],
        [0.9, 1.0, 0.9],
        [0.9, 0.9, 1.0],
    ])


@pytest.fixture
def diagonal_target():
    """Target with diagonal precision and non-zero mean."""
    return GaussianDistribution(np.diag([1.0, 2.0, 3.0, 4.0]), np.array([1.0, -1.0, 0.5, 2.0]))


@pytest.fixture
def coupled_target(coupled_precision):
    """Target with a coupled precision and non-zero mean."""
    return GaussianDistribution(coupled_precision, np.array([0.5, -1.0, 2.0, 0.0]))


@pytest.fixture
def statistical_config():
    """Sizes for Monte-Carlo tests."""
    return {
        'n_samples': 2000,
        'n_sigma': 5.0,
    }


class TestStatUtils:
    """Utility functions for statistical testing."""

    @staticmethod
    def assert_gaussian_moments(samples: np.ndarray, mean: np.ndarray, covariance: np.ndarray,
                                n_sigma: float = 5.0, err_msg: Optional[str] = ""):
        """
        Check empirical moments against expected ones within n_sigma standard errors.

        The standard error of a covariance entry is sqrt((S_ii S_jj + S_ij^2) / n).
        """
        n = samples.shape[0]
        emp_mean = np.mean(samples, axis=0)
        emp_cov = np.cov(samples.T)

        mean_se = np.sqrt(np.diag(covariance) / n)
        np.testing.assert_array_less(
            np.abs(emp_mean - mean), n_sigma * mean_se,
            err_msg=f"Mean deviates from expected value {err_msg}"
        )

        var = np.diag(covariance)
        cov_se = np.sqrt((np.outer(var, var) + covariance**2) / n)
        np.testing.assert_array_less(
            np.abs(emp_cov - covariance), n_sigma * cov_se,
            err_msg=f"Covariance deviates from expected value {err_msg}"
        )


@pytest.fixture
def stat_utils():
    """Statistical utility functions for testing."""
    return TestStatUtils()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual functions/methods"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for module interactions"
    )
    config.addinivalue_line(
        "markers", "end_to_end: Tests running a model through samplers and diagnostics"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds"
    )
    config.addinivalue_line(
        "markers", "statistical: Tests that verify statistical properties"
    )
    config.addinivalue_line(
        "markers", "numerical: Tests that verify numerical accuracy"
    )
    config.addinivalue_line(
        "markers", "edge_case: Tests for edge cases and error conditions"
    )
    config.addinivalue_line(
        "markers", "reproducibility: Tests for deterministic behavior"
    )


def pytest_runtest_setup(item):
    """Setup for each test item - ensure a reproducible default source."""
    set_default_seed(42)


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test names and paths."""
    for item in items:
        # Add unit marker to unit test files
        if "unit" in item.path.parts:
            item.add_marker(pytest.mark.unit)

        # Add integration marker to integration test files
        if "integration" in item.path.parts:
            item.add_marker(pytest.mark.integration)

        # Add statistical marker to statistical tests
        if any(keyword in item.name.lower() for keyword in ['statistical', 'moments', 'covariance']):
            item.add_marker(pytest.mark.statistical)
