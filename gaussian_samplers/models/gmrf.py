"""Gaussian Markov Random Field models."""

import numpy as np
from typing import Optional
from ..core.grid import RegularGrid
from ..core.gaussian import GaussianDistribution


class GaussianMarkovRandomField(GaussianDistribution):
    """
    First-order Gaussian Markov Random Field on a regular grid.

    Q_ii = precision_param + n_i * interaction_param and
    Q_ij = -interaction_param for neighbouring sites, n_i being the number
    of neighbours of site i. Q is strictly diagonally dominant as long as
    precision_param > 0, so every splitting sampler converges on it.
    """

    def __init__(self, grid: RegularGrid,
                 precision_param: float = 1.0,
                 interaction_param: float = 0.1,
                 mean_vector: Optional[np.ndarray] = None):
        """
        Initialize a GMRF on a grid.

        Args:
            grid: Grid structure
            precision_param: Diagonal precision parameter
            interaction_param: Off-diagonal interaction parameter
            mean_vector: Mean vector (if None, zero mean)
        """
        if precision_param <= 0:
            raise ValueError(f"precision_param must be positive, got {precision_param}")
        self.grid = grid
        self.precision_param = precision_param
        self.interaction_param = interaction_param

        Q = self._build_precision_matrix()
        super().__init__(precision_matrix=Q, mean_vector=mean_vector)

    def _build_precision_matrix(self) -> np.ndarray:
        """Build the precision matrix for the GMRF."""
        n = self.grid.size
        Q = np.zeros((n, n))

        for i in range(n):
            neighbors = self.grid.get_neighbors(i)
            Q[i, i] = self.precision_param + len(neighbors) * self.interaction_param
            for j in neighbors:
                Q[i, j] = -self.interaction_param

        return Q
