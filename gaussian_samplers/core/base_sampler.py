"""Base class for iterative Gaussian samplers."""

from abc import ABC, abstractmethod
import copy
from dataclasses import dataclass, field
import logging
import time
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
from joblib import Parallel, delayed
from tqdm import tqdm

from .gaussian import GaussianDistribution
from .random_source import GaussianSource, resolve_source

logger = logging.getLogger(__name__)


@dataclass
class SamplingStats:
    """Statistics collected over calls to a sampler."""
    calls: int = 0
    iterations: int = 0
    time_elapsed: float = 0.0
    extra_stats: Dict[str, Any] = field(default_factory=dict)


def _run_single(sampler: "IterativeSampler", source: GaussianSource, total_itr: int,
                initial_state: Optional[np.ndarray]) -> Tuple[np.ndarray, SamplingStats]:
    worker = copy.copy(sampler)
    worker.source = source
    worker.stats = SamplingStats()
    return worker.sample(total_itr, initial_state), worker.stats


class IterativeSampler(ABC):
    """
    Abstract base class for iterative samplers of N(mu, Q^{-1}).

    A call to :meth:`sample` creates a fresh state from the initial vector,
    runs the recursion for the iteration budget and returns the final
    iterate. No state survives between calls apart from ``stats``.

    Subclasses implement :meth:`_initial_state`, :meth:`_step` and
    :meth:`_finalize`, and may override :meth:`_converged` to stop early.
    """

    # extra_stats keys holding totals over calls
    cumulative_stats: Tuple[str, ...] = ()

    def __init__(self, target: GaussianDistribution,
                 source: Optional[Union[GaussianSource, int]] = None):
        """
        Initialize the sampler.

        Args:
            target: Target Gaussian distribution
            source: Gaussian random source or integer seed (default: the
                process-wide default source)
        """
        self.target = target
        self.dimension = target.dimension
        self.source = resolve_source(source)
        self.stats = SamplingStats()

    @abstractmethod
    def _initial_state(self, theta0: np.ndarray) -> Any:
        """Build the recursion state from the initial vector."""

    @abstractmethod
    def _step(self, state: Any) -> Any:
        """Advance the recursion by one iteration."""

    @abstractmethod
    def _finalize(self, state: Any) -> np.ndarray:
        """Extract the returned sample from the final state."""

    def _converged(self, state: Any) -> bool:
        return False

    def _check_initial_state(self, initial_state: Optional[np.ndarray]) -> np.ndarray:
        if initial_state is None:
            return np.zeros(self.dimension)
        theta0 = np.array(initial_state, dtype=np.float64).reshape(-1)
        if len(theta0) != self.dimension:
            raise ValueError(f"Initial state dimension {len(theta0)} != target dimension {self.dimension}")
        return theta0

    def sample(self, total_itr: int, initial_state: Optional[np.ndarray] = None,
               progress: bool = False) -> np.ndarray:
        """
        Run the recursion and return its final iterate.

        Args:
            total_itr: Iteration budget (non-negative)
            initial_state: Initial vector theta_0 (default: zeros)
            progress: Show a progress bar

        Returns:
            Sample vector of length d
        """
        if int(total_itr) != total_itr or total_itr < 0:
            raise ValueError(f"total_itr must be a non-negative integer, got {total_itr}")

        start_time = time.time()
        state = self._initial_state(self._check_initial_state(initial_state))

        n_done = 0
        for _ in tqdm(range(int(total_itr)), desc=self.__class__.__name__, disable=not progress):
            if self._converged(state):
                break
            state = self._step(state)
            n_done += 1

        result = self._finalize(state)

        elapsed = time.time() - start_time
        self.stats.calls += 1
        self.stats.iterations += n_done
        self.stats.time_elapsed += elapsed
        logger.debug(f"{self.__class__.__name__} ran {n_done} iterations in {elapsed:.4f}s")
        return result

    def draw_many(self, n_samples: int, total_itr: int,
                  initial_state: Optional[np.ndarray] = None,
                  n_jobs: int = 1) -> np.ndarray:
        """
        Generate independent samples, one full run per sample.

        Args:
            n_samples: Number of independent runs
            total_itr: Iteration budget of each run
            initial_state: Initial vector shared by all runs
            n_jobs: Number of joblib workers; runs use child sources spawned
                from this sampler's source when n_jobs != 1

        Returns:
            Array of shape (n_samples, dimension)
        """
        if n_jobs == 1:
            samples = np.zeros((n_samples, self.dimension))
            for i in range(n_samples):
                samples[i] = self.sample(total_itr, initial_state)
            return samples

        if n_samples == 0:
            return np.zeros((0, self.dimension))

        children = self.source.spawn(n_samples)
        results = Parallel(n_jobs=n_jobs)(
            delayed(_run_single)(self, child, total_itr, initial_state)
            for child in children
        )
        for _, worker_stats in results:
            self._merge_stats(worker_stats)
        return np.vstack([sample for sample, _ in results])

    def _merge_stats(self, worker_stats: SamplingStats):
        """Fold the statistics of one worker run into ``self.stats``.

        Keys listed in ``cumulative_stats`` are summed; any other extra
        statistic takes the worker's value.
        """
        self.stats.calls += worker_stats.calls
        self.stats.iterations += worker_stats.iterations
        self.stats.time_elapsed += worker_stats.time_elapsed
        for key, value in worker_stats.extra_stats.items():
            if key in self.cumulative_stats:
                self.stats.extra_stats[key] = self.stats.extra_stats.get(key, 0) + value
            else:
                self.stats.extra_stats[key] = value

    def reset_stats(self):
        """Reset sampling statistics."""
        self.stats = SamplingStats()

    def get_stats(self) -> SamplingStats:
        """Get current sampling statistics."""
        return self.stats

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(dimension={self.dimension})"
