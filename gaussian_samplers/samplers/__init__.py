"""Iterative samplers for high-dimensional Gaussian distributions."""

from .splitting import Splitting, select_splitting, sor_relaxation, DEFAULT_SOR_OMEGA
from .stationary import MatrixSplittingSampler, sample_splitting
from .ssor import ChebyshevSSORSampler, ChebyshevState, DEFAULT_SSOR_OMEGA
from .approximate import ApproximateSplittingSampler, approximate_splitting
from .augmentation import DataAugmentationSampler
from .krylov import (
    ConjugateGradientSampler,
    LanczosSampler,
    lanczos_inverse_sqrt_action,
    CONJUGACY_THRESHOLD,
    DEFAULT_CG_TOLERANCE,
)

__all__ = [
    "Splitting",
    "select_splitting",
    "sor_relaxation",
    "DEFAULT_SOR_OMEGA",
    "MatrixSplittingSampler",
    "sample_splitting",
    "ChebyshevSSORSampler",
    "ChebyshevState",
    "DEFAULT_SSOR_OMEGA",
    "ApproximateSplittingSampler",
    "approximate_splitting",
    "DataAugmentationSampler",
    "ConjugateGradientSampler",
    "LanczosSampler",
    "lanczos_inverse_sqrt_action",
    "CONJUGACY_THRESHOLD",
    "DEFAULT_CG_TOLERANCE",
]
