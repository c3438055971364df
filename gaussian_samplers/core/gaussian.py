"""Gaussian target distribution parameterized by its precision matrix."""

import numpy as np
from scipy import linalg, sparse
from typing import Optional, Union


class GaussianDistribution:
    """
    Multivariate Gaussian N(mu, Q^{-1}) given by mean and precision.

    The density has the form:
    p(x) ∝ exp(-0.5 * x^T * Q * x + b^T * x)

    where Q is the precision matrix (inverse covariance) and b = Q * mu.
    Q is read-only for the samplers and assumed symmetric positive definite;
    this is not checked.
    """

    def __init__(self, precision_matrix: Union[np.ndarray, sparse.spmatrix],
                 mean_vector: Optional[np.ndarray] = None):
        """
        Initialize a Gaussian distribution.

        Args:
            precision_matrix: Precision matrix Q (dense or sparse)
            mean_vector: Mean vector (if None, assumes zero mean)
        """
        if sparse.issparse(precision_matrix):
            precision_matrix = precision_matrix.toarray()
        self.precision_matrix = np.array(precision_matrix, dtype=np.float64)

        if self.precision_matrix.ndim != 2 or \
                self.precision_matrix.shape[0] != self.precision_matrix.shape[1]:
            raise ValueError(f"Precision matrix must be square, got shape {self.precision_matrix.shape}")
        self.dimension = self.precision_matrix.shape[0]

        if mean_vector is None:
            self.mean_vector = np.zeros(self.dimension)
        else:
            self.mean_vector = np.array(mean_vector, dtype=np.float64).reshape(-1)

        if len(self.mean_vector) != self.dimension:
            raise ValueError(f"Mean dimension {len(self.mean_vector)} != precision dimension {self.dimension}")

        self.precision_matrix.setflags(write=False)
        self.mean_vector.setflags(write=False)

        # Linear term: b = Q * mu
        self.linear_term = self.precision_matrix @ self.mean_vector
        self.linear_term.setflags(write=False)

    def covariance(self) -> np.ndarray:
        """Dense covariance Q^{-1}; intended for diagnostics on small problems."""
        return linalg.inv(self.precision_matrix)

    def __repr__(self) -> str:
        return f"GaussianDistribution(dimension={self.dimension})"
