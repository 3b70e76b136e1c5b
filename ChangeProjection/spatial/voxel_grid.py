"""
Occlusion Voxel Grid
====================

Uniform voxelization of a point cloud used to find the first occupied
cell along a camera ray.

The grid is aligned to multiples of the leaf size: a point p lives in cell
floor(p / leaf_size), and the grid spans the cells between the minimum and
maximum occupied cell. Traversal follows Amanatides & Woo, "A Fast Voxel
Traversal Algorithm for Ray Tracing", Eurographics 1987.
"""

import math
from typing import Dict, Optional, Tuple

import numpy as np

from ..logger import get_logger

logger = get_logger("spatial.voxel_grid")


class OcclusionVoxelGrid:
    """
    Read-only occupancy grid over one cloud snapshot.

    Call `initialize` once; afterwards every query is side-effect free and
    may run concurrently from several threads.
    """

    def __init__(self, leaf_size: float):
        if leaf_size <= 0:
            raise ValueError(f"leaf_size must be positive, got {leaf_size}")

        self.leaf_size = float(leaf_size)
        self.points: Optional[np.ndarray] = None
        self.min_cell = np.zeros(3, dtype=np.int64)
        self.dims = np.zeros(3, dtype=np.int64)
        self.box_min = np.zeros(3, dtype=np.float64)
        self.box_max = np.zeros(3, dtype=np.float64)
        self._occupied: Dict[int, int] = {}
        self._dims: Tuple[int, int, int] = (0, 0, 0)
        self._box_min: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    @classmethod
    def from_cloud(cls, cloud: np.ndarray, leaf_size: float) -> 'OcclusionVoxelGrid':
        """Create and initialize a grid in one step"""
        return cls(leaf_size).initialize(cloud)

    @property
    def is_initialized(self) -> bool:
        return self.points is not None

    @property
    def num_occupied(self) -> int:
        return len(self._occupied)

    def initialize(self, cloud: np.ndarray) -> 'OcclusionVoxelGrid':
        """
        Voxelize a cloud.

        Args:
            cloud: (N, 3) point positions, N >= 1

        Returns:
            self

        Raises:
            ValueError: If the cloud is empty or not finite
            RuntimeError: If the grid was already initialized
        """
        if self.is_initialized:
            raise RuntimeError("OcclusionVoxelGrid is immutable once initialized")

        points = np.array(cloud, dtype=np.float64).reshape(-1, 3)
        if len(points) == 0:
            raise ValueError("Cannot build a voxel grid from an empty cloud")
        if not np.all(np.isfinite(points)):
            raise ValueError("Cloud contains non-finite coordinates")

        cells = np.floor(points / self.leaf_size).astype(np.int64)
        self.min_cell = cells.min(axis=0)
        self.dims = cells.max(axis=0) - self.min_cell + 1
        self.box_min = self.min_cell * self.leaf_size
        self.box_max = (self.min_cell + self.dims) * self.leaf_size

        # np.unique reports the first occurrence, so every cell keeps its
        # lowest point index
        keys = self._linear_keys(cells - self.min_cell)
        unique_keys, first_index = np.unique(keys, return_index=True)
        self._occupied = dict(zip(unique_keys.tolist(), first_index.tolist()))

        # Plain Python copies for the per-ray walk
        self._dims = tuple(int(n) for n in self.dims)
        self._box_min = tuple(float(b) for b in self.box_min)

        points.setflags(write=False)
        self.points = points

        logger.info(
            f"Voxel grid: {len(points):,} points, leaf={self.leaf_size}, "
            f"dims={self.dims.tolist()}, occupied={len(self._occupied):,}"
        )
        return self

    def _linear_keys(self, local_cells: np.ndarray) -> np.ndarray:
        dx, dy = int(self.dims[0]), int(self.dims[1])
        return local_cells[:, 0] + local_cells[:, 1] * dx + local_cells[:, 2] * dx * dy

    def cell_of(self, point: np.ndarray) -> Optional[Tuple[int, int, int]]:
        """Local (i, j, k) cell of a position, None outside the grid"""
        self._check_initialized()
        cell = np.floor(np.asarray(point, dtype=np.float64) / self.leaf_size).astype(np.int64) - self.min_cell
        if np.any(cell < 0) or np.any(cell >= self.dims):
            return None
        return int(cell[0]), int(cell[1]), int(cell[2])

    def is_occupied(self, cell: Tuple[int, int, int]) -> bool:
        """Whether a local cell holds at least one point"""
        self._check_initialized()
        i, j, k = cell
        return self._key(i, j, k) in self._occupied

    def _key(self, i: int, j: int, k: int) -> int:
        dx, dy = int(self.dims[0]), int(self.dims[1])
        return i + j * dx + k * dx * dy

    def intersect_bounding_box(self, origin: np.ndarray, direction: np.ndarray) -> Optional[float]:
        """
        Slab test against the grid's bounding box.

        Args:
            origin: (3,) ray origin
            direction: (3,) ray direction (need not be unit length)

        Returns:
            Ray parameter where the ray enters the box, clamped to 0 when the
            origin is already inside; None when the ray misses the box.
        """
        self._check_initialized()

        t_near = -math.inf
        t_far = math.inf
        for axis in range(3):
            o = float(origin[axis])
            d = float(direction[axis])
            lo = float(self.box_min[axis])
            hi = float(self.box_max[axis])

            if d == 0.0:
                if o < lo or o > hi:
                    return None
                continue

            t1 = (lo - o) / d
            t2 = (hi - o) / d
            if t1 > t2:
                t1, t2 = t2, t1
            t_near = max(t_near, t1)
            t_far = min(t_far, t2)

        t_entry = max(t_near, 0.0)
        if t_far < t_entry:
            return None
        return t_entry

    def first_hit(self, origin: np.ndarray, direction: np.ndarray, t_entry: float) -> Optional[int]:
        """
        Walk the ray cell by cell from `t_entry`.

        Args:
            origin: (3,) ray origin
            direction: (3,) ray direction
            t_entry: Parameter returned by `intersect_bounding_box`

        Returns:
            Index of the first point in the first occupied cell crossed,
            or None when the ray leaves the grid without hitting one.
        """
        self._check_initialized()

        leaf = self.leaf_size
        nx, ny, nz = self._dims
        x0, y0, z0 = self._box_min
        ox, oy, oz = float(origin[0]), float(origin[1]), float(origin[2])
        dx, dy, dz = float(direction[0]), float(direction[1]), float(direction[2])

        # Entry points on the far face round outside the grid
        i = min(max(int(math.floor((ox + t_entry * dx - x0) / leaf)), 0), nx - 1)
        j = min(max(int(math.floor((oy + t_entry * dy - y0) / leaf)), 0), ny - 1)
        k = min(max(int(math.floor((oz + t_entry * dz - z0) / leaf)), 0), nz - 1)

        step_x, t_max_x, t_delta_x = _axis_walk(ox, dx, x0, leaf, i)
        step_y, t_max_y, t_delta_y = _axis_walk(oy, dy, y0, leaf, j)
        step_z, t_max_z, t_delta_z = _axis_walk(oz, dz, z0, leaf, k)

        stride_y = nx
        stride_z = nx * ny
        occupied = self._occupied

        while True:
            hit = occupied.get(i + j * stride_y + k * stride_z)
            if hit is not None:
                return hit

            if t_max_x <= t_max_y and t_max_x <= t_max_z:
                if t_max_x == math.inf:
                    return None
                i += step_x
                if i < 0 or i >= nx:
                    return None
                t_max_x += t_delta_x
            elif t_max_y <= t_max_z:
                if t_max_y == math.inf:
                    return None
                j += step_y
                if j < 0 or j >= ny:
                    return None
                t_max_y += t_delta_y
            else:
                if t_max_z == math.inf:
                    return None
                k += step_z
                if k < 0 or k >= nz:
                    return None
                t_max_z += t_delta_z

    def first_occlusion(self, origin: np.ndarray, direction: np.ndarray) -> Optional[int]:
        """Bounding box test followed by traversal"""
        t_entry = self.intersect_bounding_box(origin, direction)
        if t_entry is None:
            return None
        return self.first_hit(origin, direction, t_entry)

    def _check_initialized(self):
        if not self.is_initialized:
            raise RuntimeError("OcclusionVoxelGrid.initialize() must be called before querying")

    def __repr__(self) -> str:
        if not self.is_initialized:
            return f"OcclusionVoxelGrid(leaf_size={self.leaf_size}, uninitialized)"
        return (f"OcclusionVoxelGrid(leaf_size={self.leaf_size}, dims={self.dims.tolist()}, "
                f"occupied={self.num_occupied})")


def _axis_walk(o: float, d: float, lo: float, leaf: float, cell: int) -> Tuple[int, float, float]:
    """Step direction, parameter of the next cell boundary and boundary spacing on one axis"""
    if d > 0.0:
        return 1, (lo + (cell + 1) * leaf - o) / d, leaf / d
    if d < 0.0:
        return -1, (lo + cell * leaf - o) / d, -leaf / d
    return 0, math.inf, math.inf
