"""
Camera Neighbor Matching
========================

Ranks registered images for new images from a pairwise match report.
"""

from .match_stream import MatchStreamReader, parse_match_stream
from .neighbor_matcher import CameraNeighborMatcher, match_new_images

__all__ = [
    'MatchStreamReader',
    'parse_match_stream',
    'CameraNeighborMatcher',
    'match_new_images',
]
