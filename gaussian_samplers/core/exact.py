"""
Exact Gaussian drawing by triangular factorization.

This is the exact drawer used as a building block by the noise generation
of the Richardson/Jacobi splittings and by every sub-step of the data
augmentation samplers. A factor is computed once per matrix and reused
across iterations.
"""

import logging
from typing import Union

import numpy as np
from scipy import linalg, sparse

from .random_source import GaussianSource

logger = logging.getLogger(__name__)


def _as_dense(matrix) -> np.ndarray:
    if sparse.issparse(matrix):
        return matrix.toarray()
    return np.asarray(matrix, dtype=np.float64)


class CholeskyFactor:
    """
    Cholesky factor A = L L^T of a symmetric positive definite matrix.

    The same factor serves both parameterizations: drawing with A as a
    precision matrix (x = mean + L^{-T} z) or as a covariance matrix
    (x = mean + L z).
    """

    def __init__(self, matrix: np.ndarray):
        self.dimension = matrix.shape[0]
        # Raises LinAlgError when the matrix is not positive definite
        self.lower = linalg.cholesky(matrix, lower=True)

    def solve(self, rhs: np.ndarray) -> np.ndarray:
        """Solve A x = rhs."""
        return linalg.cho_solve((self.lower, True), rhs)

    def draw_precision(self, mean: np.ndarray, source: GaussianSource) -> np.ndarray:
        """Draw from N(mean, A^{-1})."""
        z = source.standard_normal(self.dimension)
        return mean + linalg.solve_triangular(self.lower.T, z, lower=False)

    def draw_covariance(self, mean: np.ndarray, source: GaussianSource) -> np.ndarray:
        """Draw from N(mean, A)."""
        z = source.standard_normal(self.dimension)
        return mean + self.lower @ z


class DiagonalFactor:
    """Factor of a diagonal matrix, stored as its diagonal."""

    def __init__(self, diagonal: np.ndarray):
        if np.any(diagonal <= 0):
            raise np.linalg.LinAlgError("Diagonal matrix is not positive definite")
        self.dimension = diagonal.shape[0]
        self.diagonal = diagonal
        self._sqrt = np.sqrt(diagonal)

    def solve(self, rhs: np.ndarray) -> np.ndarray:
        return rhs / self.diagonal

    def draw_precision(self, mean: np.ndarray, source: GaussianSource) -> np.ndarray:
        return mean + source.standard_normal(self.dimension) / self._sqrt

    def draw_covariance(self, mean: np.ndarray, source: GaussianSource) -> np.ndarray:
        return mean + source.standard_normal(self.dimension) * self._sqrt


class CholeskyDrawer:
    """
    Exact drawer for Gaussians given by a dense precision or covariance.

    Samplers only rely on :meth:`factorize`, so any object providing it
    (for example a mock in tests) can be injected instead.
    """

    def factorize(self, matrix) -> Union[CholeskyFactor, DiagonalFactor]:
        """
        Factorize a symmetric positive definite matrix.

        Args:
            matrix: Dense or sparse (d, d) matrix

        Returns:
            Factor object with solve/draw_precision/draw_covariance

        Raises:
            numpy.linalg.LinAlgError: If the matrix is not positive definite
        """
        dense = _as_dense(matrix)
        if dense.ndim != 2 or dense.shape[0] != dense.shape[1]:
            raise ValueError(f"Expected a square matrix, got shape {dense.shape}")

        diagonal = np.diag(dense)
        if np.count_nonzero(dense - np.diag(diagonal)) == 0:
            return DiagonalFactor(diagonal.copy())

        try:
            return CholeskyFactor(dense)
        except np.linalg.LinAlgError:
            logger.error(f"Cholesky factorization failed for a {dense.shape[0]}x{dense.shape[0]} matrix")
            raise

    def draw(self, mean: np.ndarray, precision, source: GaussianSource) -> np.ndarray:
        """Draw one sample from N(mean, precision^{-1})."""
        return self.factorize(precision).draw_precision(np.asarray(mean, dtype=np.float64), source)

    def draw_with_covariance(self, mean: np.ndarray, covariance,
                             source: GaussianSource) -> np.ndarray:
        """Draw one sample from N(mean, covariance)."""
        return self.factorize(covariance).draw_covariance(np.asarray(mean, dtype=np.float64), source)
