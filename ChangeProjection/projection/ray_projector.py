"""
Ray-Voxel Occlusion Projector
=============================

Projects a 2D change mask into 3D by shooting one ray per changed pixel
from the camera centre into a voxelized cloud and keeping the first
occupied voxel along each ray, i.e. the visible surface.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from ..camera import Shot
from ..config import OcclusionConfig
from ..logger import ProgressLogger, get_logger
from ..spatial import OcclusionVoxelGrid
from .mask_utils import extract_mask_points

logger = get_logger("projection.ray")


@dataclass
class RayProjection:
    """
    Outcome of projecting one mask.

    Attributes:
        points: (M, 3) first-hit cloud points, mask scan order
        pixels: (M, 2) mask pixel (x, y) that produced each point
        point_indices: (M,) cloud index of each point
        num_rays: Changed pixels in the mask
        num_missed: Rays that missed the grid bounding box
        num_unoccluded: Rays that crossed the grid without a hit
    """
    points: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    pixels: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=np.int64))
    point_indices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    num_rays: int = 0
    num_missed: int = 0
    num_unoccluded: int = 0

    def __len__(self):
        return len(self.points)


class RayVoxelProjector:
    """
    Casts mask rays through an OcclusionVoxelGrid.

    The grid is only queried, so one projector can serve several masks
    and threads.
    """

    def __init__(self, grid: OcclusionVoxelGrid, config: Optional[OcclusionConfig] = None):
        self.grid = grid
        self.config = config or OcclusionConfig()
        self.config.validate()

    @classmethod
    def from_cloud(cls, cloud: np.ndarray,
                   config: Optional[OcclusionConfig] = None) -> 'RayVoxelProjector':
        """Voxelize a cloud with config.leaf_size and wrap it in a projector"""
        config = config or OcclusionConfig()
        return cls(OcclusionVoxelGrid.from_cloud(cloud, config.leaf_size), config)

    def project(self, mask: np.ndarray, shot: Shot,
                unproject_depth: Optional[float] = None) -> np.ndarray:
        """
        Project a change mask seen by `shot`.

        Args:
            mask: Change mask of the shot's image
            shot: Camera that captured the image
            unproject_depth: Nominal depth used to build ray directions
                            (default: config.unproject_depth)

        Returns:
            (M, 3) occluding cloud points in mask scan order, M <= changed pixels
        """
        return self.project_detailed(mask, shot, unproject_depth).points

    def project_detailed(self, mask: np.ndarray, shot: Shot,
                         unproject_depth: Optional[float] = None) -> RayProjection:
        """Same as `project`, also reporting pixels, cloud indices and misses"""
        depth = self.config.unproject_depth if unproject_depth is None else unproject_depth
        pixels = extract_mask_points(mask)
        total = len(pixels)

        logger.info(f"Projecting 2D change mask into 3D space using ray shooting ({total:,} pixels)...")
        if total == 0:
            return RayProjection()

        start_time = time.time()
        origin = shot.center
        directions = shot.ray_directions(pixels, depth)
        grid = self.grid
        progress = ProgressLogger(logger, total, self.config.progress_interval, unit="rays",
                                  level=logging.DEBUG)

        kept = []
        hits = []
        missed = 0
        unoccluded = 0

        for i in range(total):
            progress.update(i)

            direction = directions[i]
            t_entry = grid.intersect_bounding_box(origin, direction)
            if t_entry is None:
                missed += 1
                continue

            hit = grid.first_hit(origin, direction, t_entry)
            if hit is None:
                unoccluded += 1
                continue

            kept.append(i)
            hits.append(hit)

        point_indices = np.asarray(hits, dtype=np.int64)
        result = RayProjection(
            points=grid.points[point_indices].copy(),
            pixels=pixels[np.asarray(kept, dtype=np.int64)],
            point_indices=point_indices,
            num_rays=total,
            num_missed=missed,
            num_unoccluded=unoccluded,
        )

        logger.info(
            f"✓ {len(result):,}/{total:,} pixels projected in {time.time() - start_time:.2f}s "
            f"({missed:,} outside grid, {unoccluded:,} without occlusion)"
        )
        return result
