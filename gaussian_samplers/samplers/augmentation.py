"""
Exact data augmentation samplers (EDA and GEDA).

The precision is split as Q = Q1 + Q2 and an auxiliary variable u1 with
precision R = I/omega - Q1 is coupled to theta. Given u1, theta has
precision I/omega + Q2, which removes Q1 from the expensive step. The
augmented chain is a Gibbs sampler whose theta-marginal is exactly
N(mu, Q^{-1}) as long as R is positive definite, i.e.
omega < 1 / ||Q1||_2.

GEDA further factors Q1 = G1^T Lambda1 G1 and introduces a second
auxiliary u2 so that u1 is drawn with the isotropic precision I/omega:

    u2 | u1        ~ N(G1 u1, Lambda1^{-1})
    u1 | u2, theta ~ N(theta - omega (Q1 theta - G1^T Lambda1 u2), omega I)

Every conditional draw goes through the injected exact drawer.

References:
    M. Vono, N. Dobigeon and P. Chainais, "High-dimensional Gaussian
    sampling: a review and a unifying approach based on a stochastic
    proximal point algorithm," SIAM Review, 2022.
"""

from dataclasses import dataclass
import logging
from typing import Optional, Union

import numpy as np
from scipy import linalg

from ..core.base_sampler import IterativeSampler
from ..core.exact import CholeskyDrawer
from ..core.gaussian import GaussianDistribution
from ..core.random_source import GaussianSource
from ..core.schemes import AugmentationScheme

logger = logging.getLogger(__name__)


@dataclass
class AugmentedState:
    """Variable of interest and the latent auxiliaries."""
    theta: np.ndarray
    u1: np.ndarray
    u2: Optional[np.ndarray] = None


def _as_precision_matrix(lambda1) -> np.ndarray:
    lambda1 = np.asarray(lambda1, dtype=np.float64)
    if lambda1.ndim == 1:
        return np.diag(lambda1)
    return lambda1


class DataAugmentationSampler(IterativeSampler):
    """
    EDA / GEDA Gibbs sampler over (theta, u1[, u2]).
    """

    def __init__(self, target: GaussianDistribution,
                 omega: float,
                 q1: Optional[np.ndarray] = None,
                 scheme: Union[str, AugmentationScheme] = AugmentationScheme.EDA,
                 g1: Optional[np.ndarray] = None,
                 lambda1: Optional[np.ndarray] = None,
                 source: Optional[Union[GaussianSource, int]] = None,
                 drawer=None):
        """
        Initialize the sampler.

        Args:
            target: Target Gaussian N(mu, Q^{-1})
            omega: Augmentation parameter, should satisfy omega < 1/||Q1||_2
            q1: Block Q1 of Q = Q1 + Q2 (computed as G1^T Lambda1 G1 when
                omitted and g1 is given)
            scheme: "EDA" or "GEDA"
            g1: Operator G1 of the factorization Q1 = G1^T Lambda1 G1
                (required by GEDA)
            lambda1: Precision Lambda1 of that factorization, matrix or
                diagonal vector (required by GEDA)
            source: Gaussian random source or seed
            drawer: Exact drawer providing ``factorize`` (default: CholeskyDrawer)
        """
        super().__init__(target, source)
        self.scheme = AugmentationScheme.from_name(scheme)
        self.drawer = drawer if drawer is not None else CholeskyDrawer()

        if omega <= 0:
            raise ValueError(f"omega must be positive, got {omega}")
        self.omega = float(omega)

        if g1 is not None:
            if lambda1 is None:
                raise ValueError("lambda1 is required together with g1")
            self.g1 = np.asarray(g1, dtype=np.float64)
            self.lambda1 = _as_precision_matrix(lambda1)
            factored = self.g1.T @ self.lambda1 @ self.g1
            if q1 is None:
                q1 = factored
            elif not np.allclose(q1, factored):
                raise ValueError("q1 does not match g1^T lambda1 g1")
        else:
            if self.scheme is AugmentationScheme.GEDA:
                raise ValueError("GEDA requires the factorization q1 = g1^T lambda1 g1")
            if q1 is None:
                raise ValueError("q1 is required when g1 is not given")
            self.g1 = None
            self.lambda1 = None

        Q = target.precision_matrix
        self.q1 = np.asarray(q1, dtype=np.float64)
        if self.q1.shape != Q.shape:
            raise ValueError(f"q1 shape {self.q1.shape} != precision shape {Q.shape}")
        self.q2 = Q - self.q1

        q1_norm = linalg.norm(self.q1, 2)
        if q1_norm > 0 and self.omega >= 1.0 / q1_norm:
            logger.warning(
                f"omega={self.omega:.4g} >= 1/||Q1|| = {1.0 / q1_norm:.4g}; "
                f"the auxiliary precision is not positive definite."
            )

        identity = np.eye(self.dimension)
        self.R = identity / self.omega - self.q1
        self._theta_factor = self.drawer.factorize(identity / self.omega + self.q2)

        if self.scheme is AugmentationScheme.EDA:
            self._u1_factor = self.drawer.factorize(self.R)
        else:
            self._u1_factor = self.drawer.factorize(identity / self.omega)
            self._u2_factor = self.drawer.factorize(self.lambda1)

        self.stats.extra_stats["omega"] = self.omega
        logger.info(f"Initialized DataAugmentationSampler with scheme={self.scheme.value}, ω={self.omega:.4g}")

    def _initial_state(self, theta0: np.ndarray) -> AugmentedState:
        return AugmentedState(theta=theta0.copy(), u1=theta0.copy())

    def _draw_theta(self, u1: np.ndarray) -> np.ndarray:
        z = self._theta_factor.draw_precision(np.zeros(self.dimension), self.source)
        return z + self._theta_factor.solve(self.R @ u1 + self.target.linear_term)

    def _step(self, state: AugmentedState) -> AugmentedState:
        theta = state.theta

        if self.scheme is AugmentationScheme.EDA:
            u1 = self._u1_factor.draw_precision(theta, self.source)
            return AugmentedState(theta=self._draw_theta(u1), u1=u1)

        u2 = self._u2_factor.draw_precision(self.g1 @ state.u1, self.source)
        shift = self.q1 @ theta - self.g1.T @ (self.lambda1 @ u2)
        u1 = self._u1_factor.draw_precision(theta - self.omega * shift, self.source)
        return AugmentedState(theta=self._draw_theta(u1), u1=u1, u2=u2)

    def _finalize(self, state: AugmentedState) -> np.ndarray:
        return state.theta

    def __repr__(self) -> str:
        return f"DataAugmentationSampler(scheme={self.scheme.value}, ω={self.omega:.4g}, dimension={self.dimension})"
