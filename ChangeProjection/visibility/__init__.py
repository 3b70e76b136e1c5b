"""
Visibility Estimation
=====================

Vertex-to-camera visibility by nearest-neighbour correspondence voting.
"""

from .resolver import (
    VisibilityResolver,
    face_edge_average,
    mean_edge_length,
    tally_votes,
    select_top_images,
)

__all__ = [
    'VisibilityResolver',
    'face_edge_average',
    'mean_edge_length',
    'tally_votes',
    'select_top_images',
]
