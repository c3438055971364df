"""
Spectral quantities used to pick relaxation parameters and judge convergence.

All routines work on dense matrices and rely on full eigendecompositions,
which is what the relaxation rules of the splitting samplers assume.
"""

import numpy as np
from scipy import linalg
from typing import Tuple


def is_strictly_diagonally_dominant(matrix: np.ndarray) -> bool:
    """
    Check strict row diagonal dominance |a_ii| > sum_{j != i} |a_ij|.

    Args:
        matrix: Square matrix

    Returns:
        True if every row is strictly dominated by its diagonal entry
    """
    abs_matrix = np.abs(np.asarray(matrix))
    diag = np.diag(abs_matrix)
    off_diag = abs_matrix.sum(axis=1) - diag
    return bool(np.all(diag > off_diag))


def extreme_eigenvalues(symmetric: np.ndarray) -> Tuple[float, float]:
    """
    Smallest and largest eigenvalue of a symmetric matrix.

    Returns:
        Tuple of (lambda_min, lambda_max)
    """
    eigenvalues = linalg.eigvalsh(symmetric)
    return float(eigenvalues[0]), float(eigenvalues[-1])


def extreme_generalized_eigenvalues(a: np.ndarray, b: np.ndarray) -> Tuple[float, float]:
    """
    Extreme eigenvalues of b^{-1} a for symmetric a and SPD b.

    Returns:
        Tuple of (lambda_min, lambda_max)
    """
    eigenvalues = linalg.eigh(a, b, eigvals_only=True)
    return float(eigenvalues[0]), float(eigenvalues[-1])


def spectral_radius(matrix: np.ndarray) -> float:
    """Largest eigenvalue modulus of a (not necessarily symmetric) matrix."""
    if matrix.size == 0:
        return 0.0
    return float(np.max(np.abs(linalg.eigvals(matrix))))


def jacobi_spectral_radius(precision: np.ndarray) -> float:
    """Spectral radius of the Jacobi iteration matrix I - D^{-1} Q."""
    diag = np.diag(precision)
    jacobi = np.eye(precision.shape[0]) - precision / diag[:, None]
    return spectral_radius(jacobi)
