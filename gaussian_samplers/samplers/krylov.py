"""
Krylov-subspace samplers: conjugate-gradient sampler and Lanczos sampler.

The CG sampler runs the conjugate-gradient recursion on Q x = b and
accumulates y += z_k / sqrt(h_k^T Q h_k) h_k with scalar z_k ~ N(0, 1).
Since the search directions are Q-conjugate, Cov(y) is the projection of
Q^{-1} on the explored Krylov subspace; it equals Q^{-1} once the subspace
is the whole space.

The Lanczos sampler builds an orthonormal Krylov basis H and the
tridiagonal T = H^T Q H from a random start b ~ N(0, I), then returns
mu + ||b|| H T^{-1/2} e1, an approximation of mu + Q^{-1/2} b.

References:
    A. Parker and C. Fox, "Sampling Gaussian distributions in Krylov
    spaces with conjugate gradients," SIAM J. Sci. Comput., 2012.
    E. Chow and Y. Saad, "Preconditioned Krylov subspace methods for
    sampling multivariate Gaussian distributions," SIAM J. Sci. Comput., 2014.
"""

from dataclasses import dataclass, field
import logging
from typing import List, Optional, Union

import numpy as np
from scipy import linalg

from ..core.base_sampler import IterativeSampler
from ..core.gaussian import GaussianDistribution
from ..core.random_source import GaussianSource

logger = logging.getLogger(__name__)

DEFAULT_CG_TOLERANCE = 1e-8
CONJUGACY_THRESHOLD = 1e-4
LANCZOS_BREAKDOWN_TOL = 1e-10


@dataclass
class CGState:
    """State of the conjugate-gradient sampler."""
    y: np.ndarray
    residual: np.ndarray
    direction: np.ndarray
    residual_energy: float
    iteration: int = 0
    conjugacy_losses: int = 0


class ConjugateGradientSampler(IterativeSampler):
    """
    Conjugate-gradient sampler.

    Stops when the residual norm drops below ``tolerance`` or after at most
    d iterations. Loss of conjugacy between consecutive search directions
    is reported as a warning and counted, never fatal.

    The extra statistics ``cg_iterations`` and ``conjugacy_losses`` are
    totals over all calls.
    """

    cumulative_stats = ("cg_iterations", "conjugacy_losses")

    def __init__(self, target: GaussianDistribution,
                 tolerance: float = DEFAULT_CG_TOLERANCE,
                 source: Optional[Union[GaussianSource, int]] = None,
                 krylov_seed: Optional[np.ndarray] = None,
                 conjugacy_threshold: float = CONJUGACY_THRESHOLD):
        """
        Initialize the sampler.

        Args:
            target: Target Gaussian N(mu, Q^{-1})
            tolerance: Residual norm below which the recursion stops
            source: Gaussian random source or seed
            krylov_seed: Right-hand side b spanning the Krylov subspace
                (default: a fresh standard-normal vector per call)
            conjugacy_threshold: Level of |h_old^T Q h_new| reported as
                loss of conjugacy
        """
        super().__init__(target, source)
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        self.tolerance = tolerance
        self.conjugacy_threshold = conjugacy_threshold
        if krylov_seed is not None:
            krylov_seed = np.asarray(krylov_seed, dtype=np.float64).reshape(-1)
            if len(krylov_seed) != self.dimension:
                raise ValueError(f"Krylov seed dimension {len(krylov_seed)} != target dimension {self.dimension}")
        self.krylov_seed = krylov_seed
        self.stats.extra_stats.update({"cg_iterations": 0, "conjugacy_losses": 0})
        logger.info(f"Initialized ConjugateGradientSampler with tolerance={tolerance:.1e}")

    def sample(self, total_itr: Optional[int] = None, initial_state: Optional[np.ndarray] = None,
               progress: bool = False) -> np.ndarray:
        """
        Draw one sample.

        Args:
            total_itr: Maximum number of iterations, capped at d (default: d)
            initial_state: Starting value of the accumulated sample y
                (default: zeros)
            progress: Show a progress bar

        Returns:
            mu + y
        """
        if total_itr is None:
            total_itr = self.dimension
        if total_itr < 0:
            raise ValueError(f"total_itr must be a non-negative integer, got {total_itr}")
        return super().sample(min(int(total_itr), self.dimension), initial_state, progress)

    def _initial_state(self, theta0: np.ndarray) -> CGState:
        if self.krylov_seed is None:
            b = self.source.standard_normal(self.dimension)
        else:
            b = self.krylov_seed
        residual = b - self.target.precision_matrix @ theta0
        return CGState(
            y=theta0.copy(),
            residual=residual,
            direction=residual.copy(),
            residual_energy=float(residual @ residual),
        )

    def _converged(self, state: CGState) -> bool:
        return np.sqrt(state.residual_energy) < self.tolerance

    def _step(self, state: CGState) -> CGState:
        h = state.direction
        Qh = self.target.precision_matrix @ h
        curvature = float(h @ Qh)
        gamma = state.residual_energy / curvature

        z = self.source.standard_normal()
        y = state.y + (z / np.sqrt(curvature)) * h

        residual = state.residual - gamma * Qh
        residual_energy = float(residual @ residual)
        eta = -residual_energy / state.residual_energy
        direction = residual - eta * h

        losses = state.conjugacy_losses
        conjugacy = abs(float(Qh @ direction))
        if conjugacy > self.conjugacy_threshold:
            losses += 1
            logger.warning(
                f"Loss of conjugacy at iteration {state.iteration + 1}: "
                f"|h_old^T Q h_new| = {conjugacy:.3e}"
            )

        return CGState(
            y=y,
            residual=residual,
            direction=direction,
            residual_energy=residual_energy,
            iteration=state.iteration + 1,
            conjugacy_losses=losses,
        )

    def _finalize(self, state: CGState) -> np.ndarray:
        extra = self.stats.extra_stats
        extra["cg_iterations"] = extra.get("cg_iterations", 0) + state.iteration
        extra["conjugacy_losses"] = extra.get("conjugacy_losses", 0) + state.conjugacy_losses
        return self.target.mean_vector + state.y


@dataclass
class LanczosState:
    """Partial Lanczos decomposition."""
    beta0: float
    next_vector: np.ndarray
    basis: List[np.ndarray] = field(default_factory=list)
    alphas: List[float] = field(default_factory=list)
    betas: List[float] = field(default_factory=list)
    broken_down: bool = False


def _lanczos_start(b: np.ndarray) -> LanczosState:
    beta0 = float(np.linalg.norm(b))
    if beta0 == 0:
        raise ValueError("Lanczos starting vector must be nonzero")
    return LanczosState(beta0=beta0, next_vector=b / beta0)


def _lanczos_step(precision: np.ndarray, state: LanczosState,
                  reorthogonalize: bool = True) -> LanczosState:
    v = state.next_vector
    w = precision @ v
    if state.basis:
        w = w - state.betas[-1] * state.basis[-1]
    state.basis.append(v)

    alpha = float(w @ v)
    w = w - alpha * v
    if reorthogonalize:
        basis = np.column_stack(state.basis)
        w = w - basis @ (basis.T @ w)
    state.alphas.append(alpha)

    beta = float(np.linalg.norm(w))
    scale = abs(alpha) + (state.betas[-1] if state.betas else 0.0)
    if beta <= LANCZOS_BREAKDOWN_TOL * max(scale, 1.0) or len(state.basis) == len(v):
        state.broken_down = True
    else:
        state.betas.append(beta)
        state.next_vector = w / beta
    return state


def _lanczos_inverse_sqrt(state: LanczosState) -> np.ndarray:
    k = len(state.alphas)
    off_diag = np.asarray(state.betas[:k - 1])
    T = np.diag(state.alphas) + np.diag(off_diag, 1) + np.diag(off_diag, -1)
    inv_sqrt = linalg.sqrtm(np.linalg.pinv(T))
    H = np.column_stack(state.basis)
    return state.beta0 * (H @ np.real(inv_sqrt[:, 0]))


def lanczos_inverse_sqrt_action(precision: np.ndarray, b: np.ndarray, krylov_dim: int,
                                reorthogonalize: bool = True) -> np.ndarray:
    """
    Lanczos approximation of Q^{-1/2} b.

    Args:
        precision: Symmetric positive definite matrix Q
        b: Nonzero starting vector
        krylov_dim: Krylov dimension K, 1 <= K <= d
        reorthogonalize: Reorthogonalize each new basis vector against the
            whole basis

    Returns:
        ||b|| H T^{-1/2} e1
    """
    precision = np.asarray(precision, dtype=np.float64)
    if not 1 <= krylov_dim <= precision.shape[0]:
        raise ValueError(f"Krylov dimension must lie in [1, {precision.shape[0]}], got {krylov_dim}")
    state = _lanczos_start(np.asarray(b, dtype=np.float64))
    for _ in range(krylov_dim):
        if state.broken_down:
            break
        state = _lanczos_step(precision, state, reorthogonalize)
    return _lanczos_inverse_sqrt(state)


class LanczosSampler(IterativeSampler):
    """
    Lanczos sampler.

    The iteration budget is the Krylov dimension K; K = d gives an exact
    sample in exact arithmetic. The recursion stops early when it finds an
    invariant subspace.
    """

    def __init__(self, target: GaussianDistribution,
                 source: Optional[Union[GaussianSource, int]] = None,
                 reorthogonalize: bool = True):
        """
        Initialize the sampler.

        Args:
            target: Target Gaussian N(mu, Q^{-1})
            source: Gaussian random source or seed
            reorthogonalize: Keep the Krylov basis orthonormal by full
                reorthogonalization
        """
        super().__init__(target, source)
        self.reorthogonalize = reorthogonalize
        self.stats.extra_stats["krylov_dim"] = 0
        logger.info(f"Initialized LanczosSampler (reorthogonalize={reorthogonalize})")

    def sample(self, krylov_dim: Optional[int] = None, initial_state: Optional[np.ndarray] = None,
               progress: bool = False) -> np.ndarray:
        """
        Draw one sample.

        Args:
            krylov_dim: Krylov dimension K, 1 <= K <= d (default: d)
            initial_state: Starting vector b of the recursion (default: a
                fresh standard-normal vector)
            progress: Show a progress bar

        Returns:
            mu + ||b|| H T^{-1/2} e1
        """
        if krylov_dim is None:
            krylov_dim = self.dimension
        if not 1 <= krylov_dim <= self.dimension:
            raise ValueError(f"Krylov dimension must lie in [1, {self.dimension}], got {krylov_dim}")
        if initial_state is None:
            initial_state = self.source.standard_normal(self.dimension)
        return super().sample(krylov_dim, initial_state, progress)

    def _initial_state(self, theta0: np.ndarray) -> LanczosState:
        return _lanczos_start(theta0)

    def _converged(self, state: LanczosState) -> bool:
        return state.broken_down

    def _step(self, state: LanczosState) -> LanczosState:
        return _lanczos_step(self.target.precision_matrix, state, self.reorthogonalize)

    def _finalize(self, state: LanczosState) -> np.ndarray:
        self.stats.extra_stats["krylov_dim"] = len(state.alphas)
        return self.target.mean_vector + _lanczos_inverse_sqrt(state)
