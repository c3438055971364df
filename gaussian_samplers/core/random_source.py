"""
Gaussian random source shared by the samplers.

Samplers never touch numpy's global random state. They draw from a
:class:`GaussianSource` that is passed in explicitly, or from the
process-wide default source when none is given.
"""

import logging
from typing import List, Optional, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

SeedLike = Union[None, int, np.random.SeedSequence, np.random.Generator]


class GaussianSource:
    """
    Source of independent standard-normal draws.

    Concurrent use of one source from several threads needs external
    synchronization; use :meth:`spawn` to hand independent children to
    parallel workers instead.
    """

    def __init__(self, seed: SeedLike = None):
        """
        Initialize the source.

        Args:
            seed: Integer seed, SeedSequence, existing Generator, or None for
                fresh OS entropy
        """
        if isinstance(seed, np.random.Generator):
            self._generator = seed
        else:
            self._generator = np.random.default_rng(seed)

    @property
    def generator(self) -> np.random.Generator:
        """Underlying numpy generator."""
        return self._generator

    def standard_normal(self, size: Union[int, Tuple[int, ...], None] = None) -> np.ndarray:
        """Draw independent N(0, 1) values."""
        return self._generator.standard_normal(size)

    def spawn(self, n: int) -> List["GaussianSource"]:
        """
        Create independent child sources.

        Args:
            n: Number of children

        Returns:
            List of sources whose streams do not overlap with each other
        """
        seeds = self._generator.integers(0, 2**63 - 1, size=n)
        return [GaussianSource(np.random.SeedSequence(int(s))) for s in seeds]

    def __repr__(self) -> str:
        return f"GaussianSource({self._generator.bit_generator.__class__.__name__})"


_default_source: Optional[GaussianSource] = None


def get_default_source() -> GaussianSource:
    """Return the process-wide default source, creating it on first use."""
    global _default_source
    if _default_source is None:
        _default_source = GaussianSource()
    return _default_source


def set_default_seed(seed: SeedLike) -> GaussianSource:
    """Replace the process-wide default source with a seeded one."""
    global _default_source
    _default_source = GaussianSource(seed)
    logger.debug(f"Default Gaussian source reseeded with {seed!r}")
    return _default_source


def resolve_source(source: Optional[Union[GaussianSource, int]]) -> GaussianSource:
    """Turn an optional source or integer seed into a GaussianSource."""
    if source is None:
        return get_default_source()
    if isinstance(source, GaussianSource):
        return source
    return GaussianSource(source)
