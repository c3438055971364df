"""Statistical models providing precision matrices for the samplers."""

from .gmrf import GaussianMarkovRandomField
from .inverse_problem import LinearGaussianModel

__all__ = ["GaussianMarkovRandomField", "LinearGaussianModel"]
