"""
Change Mask Projection
======================

Paths from a 2D change mask to 3D points:

    ray_projector              - Ray shooting through an occlusion voxel grid
    correspondence_projector   - Stored 2D-3D feature correspondences
    triangulation              - Two-view triangulation through a homography
"""

from .mask_utils import normalize_mask, extract_mask_points
from .ray_projector import RayVoxelProjector, RayProjection
from .correspondence_projector import CorrespondenceProjector
from .triangulation import triangulate_mask

__all__ = [
    'normalize_mask',
    'extract_mask_points',
    'RayVoxelProjector',
    'RayProjection',
    'CorrespondenceProjector',
    'triangulate_mask',
]
