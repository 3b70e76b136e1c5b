"""
Base interface for spatial indices over 3D point sets.

The visibility resolver only talks to this contract, so any k-nearest /
radius search backend can be injected.
"""

from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np


class ISpatialIndex(ABC):
    """
    Abstract nearest-neighbour index over a fixed 3D point set.

    Implementations must be read-only after `build` and safe for
    concurrent queries from several threads.
    """

    @abstractmethod
    def build(self, points: np.ndarray) -> 'ISpatialIndex':
        """
        Index a point set.

        Args:
            points: (N, 3) array of positions

        Returns:
            self, to allow chaining
        """
        pass

    @abstractmethod
    def k_nearest(self, query: np.ndarray, k: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Find the k nearest indexed points.

        Args:
            query: (3,) query position
            k: Number of neighbours

        Returns:
            indices: (M,) int array, nearest first, M <= k
            squared_distances: (M,) float array
        """
        pass

    @abstractmethod
    def radius_search(self, query: np.ndarray, radius: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Find all indexed points within a radius.

        Args:
            query: (3,) query position
            radius: Search radius

        Returns:
            indices: (M,) int array, nearest first
            squared_distances: (M,) float array
        """
        pass

    @abstractmethod
    def __len__(self) -> int:
        """Number of indexed points"""
        pass
