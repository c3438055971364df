"""Core building blocks for iterative Gaussian sampling."""

from .gaussian import GaussianDistribution
from .base_sampler import IterativeSampler, SamplingStats
from .random_source import GaussianSource, get_default_source, set_default_seed
from .exact import CholeskyDrawer
from .grid import RegularGrid
from .schemes import SplittingScheme, ApproximateScheme, AugmentationScheme
from .exceptions import (
    SamplerError,
    UnknownSchemeError,
    SingularSplittingError,
    NumericalInstabilityError,
)

__all__ = [
    "GaussianDistribution",
    "IterativeSampler",
    "SamplingStats",
    "GaussianSource",
    "get_default_source",
    "set_default_seed",
    "CholeskyDrawer",
    "RegularGrid",
    "SplittingScheme",
    "ApproximateScheme",
    "AugmentationScheme",
    "SamplerError",
    "UnknownSchemeError",
    "SingularSplittingError",
    "NumericalInstabilityError",
]
