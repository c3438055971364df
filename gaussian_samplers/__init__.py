"""
Iterative Gaussian Samplers Package

A Python package for drawing samples from high-dimensional Gaussian
distributions given by their precision matrix, using matrix splittings,
exact data augmentation and Krylov subspace recursions.
"""

__version__ = "0.1.0"

from . import core
from . import models
from . import samplers
from . import diagnostics

__all__ = ["core", "models", "samplers", "diagnostics"]
