"""
Spatial Queries
===============

Nearest-neighbour index and occupancy voxel grid over 3D point sets.
"""

from .kdtree_index import KDTreeIndex
from .voxel_grid import OcclusionVoxelGrid

__all__ = ['KDTreeIndex', 'OcclusionVoxelGrid']
