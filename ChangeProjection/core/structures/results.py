"""
Result types produced by the visibility resolver and the neighbor matcher.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Tuple

import numpy as np


@dataclass
class VisibilityResult:
    """
    Visibility of a single mesh vertex.

    Attributes:
        vertex_index: Index of the vertex in the mesh
        candidate_images: Up to N image ids, most observations first
        neighborhood: Indices of mesh vertices within the search radius
        vote_counts: Observation count for each candidate image
    """
    vertex_index: int
    candidate_images: List[int] = field(default_factory=list)
    neighborhood: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    vote_counts: List[int] = field(default_factory=list)

    @property
    def is_visible(self) -> bool:
        """False when no reference point voted, the vertex is skipped downstream"""
        return len(self.candidate_images) > 0

    def __repr__(self) -> str:
        return (f"VisibilityResult(vertex={self.vertex_index}, "
                f"images={self.candidate_images}, neighbors={len(self.neighborhood)})")


@dataclass
class MatchRecord:
    """One record of a pairwise match report"""
    first: str
    second: str
    count: int
    line_number: int


@dataclass
class NeighborRanking:
    """
    Registered neighbours of one new image, strongest match first.

    Each accepted record is at least as strong as every earlier accepted
    one, so pushing it to the front keeps the sequence ordered by
    descending match count with the latest record first among equals.
    """
    image_name: str
    neighbors: Deque[str] = field(default_factory=deque)
    feature_pairs: Deque[np.ndarray] = field(default_factory=deque)
    best_count: int = 0

    def push(self, neighbor: str, count: int, pairs: np.ndarray):
        """Record an accepted match as the new best"""
        self.best_count = count
        self.neighbors.appendleft(neighbor)
        self.feature_pairs.appendleft(pairs)

    def top(self, k: int) -> Tuple[List[str], List[np.ndarray]]:
        """First k neighbours and their (count, 2) feature index pairs"""
        neighbors = list(self.neighbors)[:k]
        pairs = list(self.feature_pairs)[:k]
        return neighbors, pairs

    def __len__(self):
        return len(self.neighbors)
