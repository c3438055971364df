"""Convergence and spectral diagnostics for the iterative samplers."""

from .spectral import (
    is_strictly_diagonally_dominant,
    extreme_eigenvalues,
    extreme_generalized_eigenvalues,
    spectral_radius,
    jacobi_spectral_radius,
)
from .convergence import (
    MomentSummary,
    empirical_moments,
    relative_covariance_error,
    summarize,
    moment_report,
    compare_samplers,
)

__all__ = [
    "is_strictly_diagonally_dominant",
    "extreme_eigenvalues",
    "extreme_generalized_eigenvalues",
    "spectral_radius",
    "jacobi_spectral_radius",
    "MomentSummary",
    "empirical_moments",
    "relative_covariance_error",
    "summarize",
    "moment_report",
    "compare_samplers",
]
