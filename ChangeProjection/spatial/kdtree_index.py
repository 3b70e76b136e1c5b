"""
KD-tree backed spatial index.
"""

from typing import Optional, Tuple

import numpy as np
from scipy.spatial import KDTree

from ..core.interfaces import ISpatialIndex


_EMPTY_INDICES = np.zeros(0, dtype=np.int64)
_EMPTY_DISTANCES = np.zeros(0, dtype=np.float64)


class KDTreeIndex(ISpatialIndex):
    """
    Nearest-neighbour index over a 3D point set using scipy's KDTree.

    Queries never modify the tree, so one instance can serve many
    worker threads.
    """

    def __init__(self, points: Optional[np.ndarray] = None, leafsize: int = 16):
        self.leafsize = leafsize
        self.points = np.zeros((0, 3), dtype=np.float64)
        self._tree = None
        if points is not None:
            self.build(points)

    def build(self, points: np.ndarray) -> 'KDTreeIndex':
        self.points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        self._tree = KDTree(self.points, leafsize=self.leafsize) if len(self.points) else None
        return self

    def k_nearest(self, query: np.ndarray, k: int) -> Tuple[np.ndarray, np.ndarray]:
        if self._tree is None or k <= 0:
            return _EMPTY_INDICES, _EMPTY_DISTANCES

        k = min(int(k), len(self.points))
        distances, indices = self._tree.query(np.asarray(query, dtype=np.float64).reshape(3), k=k)

        indices = np.atleast_1d(indices).astype(np.int64)
        distances = np.atleast_1d(distances).astype(np.float64)
        return indices, distances ** 2

    def radius_search(self, query: np.ndarray, radius: float) -> Tuple[np.ndarray, np.ndarray]:
        if self._tree is None or radius < 0:
            return _EMPTY_INDICES, _EMPTY_DISTANCES

        query = np.asarray(query, dtype=np.float64).reshape(3)
        indices = np.sort(np.asarray(self._tree.query_ball_point(query, r=radius), dtype=np.int64))
        if len(indices) == 0:
            return _EMPTY_INDICES, _EMPTY_DISTANCES

        squared = np.sum((self.points[indices] - query) ** 2, axis=1)
        order = np.argsort(squared, kind='stable')
        return indices[order], squared[order]

    def __len__(self) -> int:
        return len(self.points)
