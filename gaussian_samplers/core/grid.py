"""Regular grid structure used to build Markov random field precisions."""

import numpy as np
from typing import List, Tuple


class RegularGrid:
    """
    Regular rectangular grid with first-order (nearest-neighbour) connectivity.

    Attributes:
        dimensions: Tuple of grid sizes along each axis
        size: Total number of grid sites
    """

    def __init__(self, dimensions: Tuple[int, ...], periodic: bool = False):
        """
        Initialize a grid with given dimensions.

        Args:
            dimensions: Tuple specifying the size in each axis
            periodic: Wrap neighbours around the boundaries
        """
        if isinstance(dimensions, int):
            dimensions = (dimensions,)
        if any(n < 1 for n in dimensions):
            raise ValueError(f"Grid dimensions must be positive, got {dimensions}")
        self.dimensions = tuple(int(n) for n in dimensions)
        self.periodic = periodic
        self.size = int(np.prod(self.dimensions))

    def get_neighbors(self, site: int) -> List[int]:
        """
        Get neighbouring sites for a given grid site.

        Args:
            site: Index of the grid site

        Returns:
            Sorted list of neighbouring site indices
        """
        coords = self.site_to_coords(site)
        neighbors = set()
        for axis, n in enumerate(self.dimensions):
            for offset in (-1, 1):
                c = coords[axis] + offset
                if self.periodic:
                    c %= n
                elif c < 0 or c >= n:
                    continue
                moved = list(coords)
                moved[axis] = c
                neighbor = self.coords_to_site(tuple(moved))
                if neighbor != site:
                    neighbors.add(neighbor)
        return sorted(neighbors)

    def site_to_coords(self, site: int) -> Tuple[int, ...]:
        """Convert site index to grid coordinates."""
        coords = []
        for dim in reversed(self.dimensions):
            coords.append(site % dim)
            site //= dim
        return tuple(reversed(coords))

    def coords_to_site(self, coords: Tuple[int, ...]) -> int:
        """Convert grid coordinates to site index."""
        site = 0
        for i, coord in enumerate(coords):
            site += coord * int(np.prod(self.dimensions[i+1:], dtype=int))
        return site

    def __repr__(self) -> str:
        return f"RegularGrid(dimensions={self.dimensions}, periodic={self.periodic})"
