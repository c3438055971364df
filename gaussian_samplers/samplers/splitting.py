"""
Matrix splittings Q = M - N for stochastic fixed-point samplers.

A splitting turns the linear fixed point M theta = N theta + b into the
stochastic recursion

    M theta_{t+1} = N theta_t + b + z_t,   z_t ~ N(0, M^T + N),

whose stationary law is N(Q^{-1} b, Q^{-1}) whenever the iteration matrix
M^{-1} N has spectral radius below one.

The selector below covers the exact schemes (Gauss-Seidel, Richardson,
Jacobi, SOR). The same :class:`Splitting` container is reused by the
Clone/Hogwild and SSOR drivers.
"""

from dataclasses import dataclass
import logging
from typing import Optional, Tuple, Union

import numpy as np
from scipy import linalg

from ..core.exceptions import SingularSplittingError
from ..core.schemes import SplittingScheme, ApproximateScheme
from ..diagnostics.spectral import (
    extreme_eigenvalues,
    is_strictly_diagonally_dominant,
    jacobi_spectral_radius,
    spectral_radius,
)

logger = logging.getLogger(__name__)

# Used when Q is not strictly diagonally dominant and the SOR rule does not apply
DEFAULT_SOR_OMEGA = 1.7

LOWER = "lower"
DIAGONAL = "diagonal"


@dataclass
class Splitting:
    """
    Additive splitting Q = M - N together with its noise covariance.

    Attributes:
        scheme: Scheme tag the splitting was built for
        M: Invertible part (lower triangular or diagonal)
        N: Remainder M - Q
        noise_covariance: Covariance of the per-step noise, M^T + N for the
            exact schemes
        structure: "lower" or "diagonal", selects how M is inverted
        omega: Relaxation parameter, None when the scheme has none
    """
    scheme: Union[SplittingScheme, ApproximateScheme]
    M: np.ndarray
    N: np.ndarray
    noise_covariance: np.ndarray
    structure: str
    omega: Optional[float] = None

    def __post_init__(self):
        m_diag = np.diag(self.M)
        if np.any(m_diag == 0) or not np.all(np.isfinite(m_diag)):
            raise SingularSplittingError(
                f"{self.scheme.value} splitting has a singular M (zero on its diagonal)"
            )
        self.M_diagonal = m_diag.copy()

    @property
    def dimension(self) -> int:
        return self.M.shape[0]

    def solve(self, rhs: np.ndarray) -> np.ndarray:
        """Solve M x = rhs."""
        if self.structure == DIAGONAL:
            return rhs / self.M_diagonal
        return linalg.solve_triangular(self.M, rhs, lower=True, check_finite=False)

    def solve_transpose(self, rhs: np.ndarray) -> np.ndarray:
        """Solve M^T x = rhs."""
        if self.structure == DIAGONAL:
            return rhs / self.M_diagonal
        return linalg.solve_triangular(self.M, rhs, lower=True, trans="T", check_finite=False)

    def iteration_matrix(self) -> np.ndarray:
        """Dense iteration matrix M^{-1} N."""
        return self.solve(self.N)

    def spectral_radius(self) -> float:
        """Spectral radius of M^{-1} N; below one means the chain converges."""
        return spectral_radius(self.iteration_matrix())

    def stationary_covariance(self) -> np.ndarray:
        """
        Exact covariance of the stationary law of the splitting chain.

        Solves the discrete Lyapunov equation S = A S A^T + M^{-1} C M^{-T}
        with A = M^{-1} N and C the noise covariance. For the exact schemes
        this equals Q^{-1}; for Clone/Hogwild it exposes the bias.
        """
        A = self.iteration_matrix()
        B = self.solve(self.solve(self.noise_covariance).T).T
        return linalg.solve_discrete_lyapunov(A, (B + B.T) / 2)


def sor_relaxation(precision: np.ndarray,
                   fallback_omega: float = DEFAULT_SOR_OMEGA) -> Tuple[float, bool]:
    """
    Relaxation parameter of the SOR splitting.

    When Q is strictly diagonally dominant the optimal value
    2 / (1 + sqrt(1 - rho(J)^2)) is used, J = I - D^{-1} Q being the Jacobi
    iteration matrix. Otherwise the fallback constant is returned.

    Args:
        precision: Precision matrix Q
        fallback_omega: Value used when the rule does not apply

    Returns:
        Tuple of (omega, derived) where derived tells whether the rule applied
    """
    if is_strictly_diagonally_dominant(precision):
        rho = jacobi_spectral_radius(precision)
        if rho < 1.0:
            return 2.0 / (1.0 + np.sqrt(1.0 - rho**2)), True
    logger.warning(
        f"Precision matrix is not strictly diagonally dominant; "
        f"using fallback omega={fallback_omega}. Convergence to the target is not guaranteed."
    )
    return float(fallback_omega), False


def sor_parts(precision: np.ndarray, omega: float) -> Tuple[np.ndarray, np.ndarray]:
    """SOR parts M = D/omega + L and N = D (1 - omega)/omega - L^T."""
    D = np.diag(np.diag(precision))
    L = np.tril(precision, k=-1)
    M = D / omega + L
    N = D * (1.0 - omega) / omega - L.T
    return M, N


def select_splitting(precision: np.ndarray, scheme: Union[str, SplittingScheme],
                     fallback_omega: float = DEFAULT_SOR_OMEGA) -> Splitting:
    """
    Build the splitting Q = M - N for an exact scheme.

    Args:
        precision: Symmetric positive definite precision matrix Q
        scheme: "Gauss-Seidel", "Richardson", "Jacobi" or "SOR"
        fallback_omega: SOR relaxation used when Q is not strictly
            diagonally dominant

    Returns:
        Splitting with its noise covariance M^T + N

    Raises:
        UnknownSchemeError: If the scheme tag is not recognized
        SingularSplittingError: If M is not invertible
    """
    scheme = SplittingScheme.from_name(scheme)
    Q = np.asarray(precision, dtype=np.float64)
    d = Q.shape[0]
    diag = np.diag(Q)

    if scheme is SplittingScheme.GAUSS_SEIDEL:
        M = np.tril(Q)
        N = -np.tril(Q, k=-1).T
        return Splitting(scheme, M, N, np.diag(diag), LOWER)

    if scheme is SplittingScheme.RICHARDSON:
        lam_min, lam_max = extreme_eigenvalues(Q)
        omega = 2.0 / (abs(lam_max) + abs(lam_min))
        M = np.eye(d) / omega
        N = M - Q
        return Splitting(scheme, M, N, 2.0 * M - Q, DIAGONAL, omega)

    if scheme is SplittingScheme.JACOBI:
        if not is_strictly_diagonally_dominant(Q):
            logger.warning(
                "Precision matrix is not strictly diagonally dominant; "
                "the Jacobi sampler may not converge to the target."
            )
        M = np.diag(diag)
        N = M - Q
        return Splitting(scheme, M, N, 2.0 * M - Q, DIAGONAL)

    if scheme is SplittingScheme.SOR:
        omega, _ = sor_relaxation(Q, fallback_omega)
        M, N = sor_parts(Q, omega)
        noise = np.diag(diag * (2.0 - omega) / omega)
        return Splitting(scheme, M, N, noise, LOWER, omega)

    raise AssertionError(f"Unhandled splitting scheme {scheme}")
