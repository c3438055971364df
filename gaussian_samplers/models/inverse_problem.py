"""Linear Gaussian inverse problems."""

import numpy as np
from scipy import linalg
from typing import Optional, Tuple

from ..core.gaussian import GaussianDistribution


class LinearGaussianModel(GaussianDistribution):
    """
    Posterior of a linear model y = G x + noise with a Gaussian prior.

    With noise precision Lambda and prior N(m, P^{-1}) the posterior is
    Gaussian with precision Q = P + G^T Lambda G and mean
    Q^{-1} (G^T Lambda y + P m). The likelihood block G^T Lambda G is the
    natural Q1 for the data augmentation samplers.
    """

    def __init__(self, forward: np.ndarray,
                 noise_precision: np.ndarray,
                 prior_precision: np.ndarray,
                 observation: np.ndarray,
                 prior_mean: Optional[np.ndarray] = None):
        """
        Initialize the model.

        Args:
            forward: Forward operator G of shape (m, d)
            noise_precision: Noise precision Lambda, (m, m) matrix or
                length-m diagonal
            prior_precision: Prior precision P of shape (d, d)
            observation: Observed vector y of length m
            prior_mean: Prior mean m (if None, zero)
        """
        self.forward = np.asarray(forward, dtype=np.float64)
        noise_precision = np.asarray(noise_precision, dtype=np.float64)
        if noise_precision.ndim == 1:
            noise_precision = np.diag(noise_precision)
        self.noise_precision = noise_precision
        self.prior_precision = np.asarray(prior_precision, dtype=np.float64)
        self.observation = np.asarray(observation, dtype=np.float64)

        m, d = self.forward.shape
        if self.noise_precision.shape != (m, m):
            raise ValueError(f"Noise precision shape {self.noise_precision.shape} != ({m}, {m})")
        if self.prior_precision.shape != (d, d):
            raise ValueError(f"Prior precision shape {self.prior_precision.shape} != ({d}, {d})")
        if self.observation.shape != (m,):
            raise ValueError(f"Observation length {self.observation.shape} != ({m},)")

        self.prior_mean = np.zeros(d) if prior_mean is None else np.asarray(prior_mean, dtype=np.float64)

        self.likelihood_precision = self.forward.T @ self.noise_precision @ self.forward
        Q = self.prior_precision + self.likelihood_precision
        rhs = self.forward.T @ self.noise_precision @ self.observation + self.prior_precision @ self.prior_mean
        mean = linalg.solve(Q, rhs, assume_a="pos")

        super().__init__(precision_matrix=Q, mean_vector=mean)

    def augmentation_blocks(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Blocks for the data augmentation samplers.

        Returns:
            Tuple (Q1, G1, Lambda1) with Q1 = G1^T Lambda1 G1 the likelihood
            precision
        """
        return self.likelihood_precision.copy(), self.forward.copy(), self.noise_precision.copy()

    def max_omega(self) -> float:
        """Upper bound 1/||Q1||_2 on the augmentation parameter."""
        return 1.0 / linalg.norm(self.likelihood_precision, 2)
