"""Exceptions raised by the iterative Gaussian samplers."""

import numpy as np


class SamplerError(Exception):
    """Base class for sampler failures."""


class UnknownSchemeError(SamplerError, ValueError):
    """Raised when a scheme tag does not name a supported sampler variant."""

    def __init__(self, name, recognized):
        self.name = name
        self.recognized = tuple(recognized)
        super().__init__(
            f"Unknown scheme {name!r}; expected one of: {', '.join(self.recognized)}"
        )


class SingularSplittingError(SamplerError, np.linalg.LinAlgError):
    """Raised when the splitting matrix M is not invertible."""


class NumericalInstabilityError(SamplerError, ArithmeticError):
    """Raised when a recursion produces parameters outside their valid range."""
