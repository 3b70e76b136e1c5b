"""
I/O
===

Loaders for meshes, clouds, masks, cameras and image lists, and PLY export
of projected change points.
"""

from .file_io import read_image_list, load_mask, read_observations, load_shots
from .point_io import (
    load_point_cloud,
    load_mesh,
    load_reference_cloud,
    save_change_points,
    save_correspondences,
)

__all__ = [
    'read_image_list',
    'load_mask',
    'read_observations',
    'load_shots',
    'load_point_cloud',
    'load_mesh',
    'load_reference_cloud',
    'save_change_points',
    'save_correspondences',
]
