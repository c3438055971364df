"""
Unit tests for the splitting selector.
"""

import logging

import numpy as np
import pytest

from gaussian_samplers.core import SingularSplittingError, SplittingScheme, UnknownSchemeError
from gaussian_samplers.samplers.splitting import (
    DEFAULT_SOR_OMEGA,
    select_splitting,
    sor_relaxation,
)


ALL_SCHEMES = ["Gauss-Seidel", "Richardson", "Jacobi", "SOR"]


class TestSelectSplitting:
    """Test the additive splitting Q = M - N."""

    @pytest.mark.parametrize("scheme", ALL_SCHEMES)
    def test_splitting_is_additive(self, coupled_precision, scheme):
        splitting = select_splitting(coupled_precision, scheme)
        np.testing.assert_allclose(splitting.M - splitting.N, coupled_precision, atol=1e-12)
        assert splitting.scheme is SplittingScheme.from_name(scheme)

    @pytest.mark.parametrize("scheme", ALL_SCHEMES)
    def test_chain_converges(self, coupled_precision, scheme):
        assert select_splitting(coupled_precision, scheme).spectral_radius() < 1.0

    @pytest.mark.numerical
    @pytest.mark.parametrize("scheme", ALL_SCHEMES)
    def test_stationary_covariance_is_target(self, coupled_precision, scheme):
        splitting = select_splitting(coupled_precision, scheme)
        np.testing.assert_allclose(
            splitting.stationary_covariance(), np.linalg.inv(coupled_precision), atol=1e-8
        )

    def test_gauss_seidel_parts(self, coupled_precision):
        splitting = select_splitting(coupled_precision, "Gauss-Seidel")
        np.testing.assert_array_equal(splitting.M, np.tril(coupled_precision))
        np.testing.assert_array_equal(splitting.noise_covariance, np.diag(np.diag(coupled_precision)))
        assert splitting.omega is None

    def test_richardson_omega(self, coupled_precision):
        eigs = np.linalg.eigvalsh(coupled_precision)
        splitting = select_splitting(coupled_precision, "Richardson")

        assert splitting.omega == pytest.approx(2.0 / (eigs.max() + eigs.min()))
        np.testing.assert_allclose(splitting.M, np.eye(4) / splitting.omega)
        np.testing.assert_allclose(
            splitting.noise_covariance, 2.0 * np.eye(4) / splitting.omega - coupled_precision
        )

    def test_jacobi_noise(self, coupled_precision):
        splitting = select_splitting(coupled_precision, "Jacobi")
        D = np.diag(np.diag(coupled_precision))
        np.testing.assert_allclose(splitting.noise_covariance, 2.0 * D - coupled_precision)

    def test_sor_optimal_omega(self, coupled_precision):
        D = np.diag(coupled_precision)
        J = np.eye(4) - coupled_precision / D[:, None]
        rho = np.max(np.abs(np.linalg.eigvals(J)))
        expected = 2.0 / (1.0 + np.sqrt(1.0 - rho**2))

        splitting = select_splitting(coupled_precision, "SOR")
        assert splitting.omega == pytest.approx(expected)
        assert 1.0 <= splitting.omega < 2.0
        np.testing.assert_allclose(
            np.diag(splitting.noise_covariance), D * (2.0 - expected) / expected
        )

    def test_diagonal_precision_gives_unit_omega(self):
        splitting = select_splitting(np.diag([1.0, 2.0, 3.0]), "SOR")
        assert splitting.omega == pytest.approx(1.0)

    def test_sor_fallback_warns(self, dense_precision, caplog):
        with caplog.at_level(logging.WARNING):
            splitting = select_splitting(dense_precision, "SOR")
        assert splitting.omega == DEFAULT_SOR_OMEGA
        assert "not strictly diagonally dominant" in caplog.text

    def test_sor_custom_fallback(self, dense_precision):
        omega, derived = sor_relaxation(dense_precision, fallback_omega=1.2)
        assert omega == 1.2
        assert not derived

        splitting = select_splitting(dense_precision, "SOR", fallback_omega=1.2)
        assert splitting.omega == 1.2
        # The fallback still gives a convergent chain for an SPD precision
        assert splitting.spectral_radius() < 1.0

    def test_jacobi_warns_without_dominance(self, dense_precision, caplog):
        with caplog.at_level(logging.WARNING):
            splitting = select_splitting(dense_precision, "Jacobi")
        assert "Jacobi" in caplog.text
        assert splitting.spectral_radius() >= 1.0

    def test_no_warning_when_dominant(self, coupled_precision, caplog):
        with caplog.at_level(logging.WARNING):
            select_splitting(coupled_precision, "SOR")
            select_splitting(coupled_precision, "Jacobi")
        assert caplog.text == ""

    def test_solves(self, coupled_precision):
        splitting = select_splitting(coupled_precision, "Gauss-Seidel")
        rhs = np.array([1.0, -2.0, 0.5, 3.0])
        np.testing.assert_allclose(splitting.M @ splitting.solve(rhs), rhs, atol=1e-12)
        np.testing.assert_allclose(splitting.M.T @ splitting.solve_transpose(rhs), rhs, atol=1e-12)

    @pytest.mark.edge_case
    def test_singular_m(self):
        Q = np.array([[0.0, 1.0], [1.0, 2.0]])
        with pytest.raises(SingularSplittingError):
            select_splitting(Q, "Gauss-Seidel")
        with pytest.raises(np.linalg.LinAlgError):
            select_splitting(Q, "Jacobi")

    @pytest.mark.edge_case
    def test_unknown_scheme(self, coupled_precision):
        with pytest.raises(UnknownSchemeError, match="expected one of"):
            select_splitting(coupled_precision, "Gauss")
