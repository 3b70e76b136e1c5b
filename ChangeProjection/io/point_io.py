"""
Point Cloud and Mesh I/O
========================

PLY loading and export of projected change points using Open3D.
"""

from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import open3d as o3d

from ..core.structures import Mesh, PointCorrespondence, ReferenceCloud
from ..logger import get_logger
from .file_io import read_observations

logger = get_logger("io.points")

CHANGE_COLOR = (255, 0, 0)


def load_point_cloud(path: Union[str, Path]) -> np.ndarray:
    """
    Load point positions from a PLY (or any Open3D readable) file.

    Returns:
        (N, 3) float array

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file holds no points
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Point cloud not found: {path}")

    pcd = o3d.io.read_point_cloud(str(path))
    points = np.asarray(pcd.points, dtype=np.float64)
    if len(points) == 0:
        raise ValueError(f"No points read from {path}")

    logger.info(f"Point cloud loaded: {len(points):,} points from {path.name}")
    return points


def load_mesh(path: Union[str, Path]) -> Mesh:
    """
    Load a triangle mesh.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the mesh has no vertices
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Mesh not found: {path}")

    o3d_mesh = o3d.io.read_triangle_mesh(str(path))
    vertices = np.asarray(o3d_mesh.vertices, dtype=np.float64)
    if len(vertices) == 0:
        raise ValueError(f"No vertices read from {path}")

    mesh = Mesh(vertices=vertices, faces=np.asarray(o3d_mesh.triangles, dtype=np.int64))
    logger.info(f"Mesh loaded correctly. No. of faces: {mesh.num_faces:,} no. of vertices: {mesh.num_vertices:,}")
    return mesh


def load_reference_cloud(cloud_path: Union[str, Path],
                         observations_path: Union[str, Path]) -> ReferenceCloud:
    """
    Load a dense cloud together with its per-point observation table.

    Raises:
        ValueError: If the table and the cloud disagree in length
    """
    points = load_point_cloud(cloud_path)
    return ReferenceCloud.from_observations(points, read_observations(observations_path))


def save_change_points(point_sets: Union[np.ndarray, Sequence[np.ndarray]],
                       path: Union[str, Path],
                       colors: Optional[np.ndarray] = None,
                       default_color: Tuple[int, int, int] = CHANGE_COLOR) -> int:
    """
    Save 3D change mask points as a coloured PLY point cloud.

    Args:
        point_sets: One (M, 3) array or a sequence of them (e.g. one per mask)
        path: Output PLY path
        colors: Optional (M_total, 3) uint8 colours for the concatenated points
        default_color: RGB used when no colours are given

    Returns:
        Number of points written; nothing is written for zero points
    """
    if isinstance(point_sets, np.ndarray):
        point_sets = [point_sets]
    chunks = [np.asarray(p, dtype=np.float64).reshape(-1, 3) for p in point_sets]
    points = np.vstack(chunks) if chunks else np.zeros((0, 3))

    logger.info("Saving change 3D mask...")
    if len(points) == 0:
        logger.warning("No change points to save")
        return 0

    if colors is None:
        colors = np.tile(np.asarray(default_color, dtype=np.float64), (len(points), 1))
    else:
        colors = np.asarray(colors, dtype=np.float64).reshape(-1, 3)
        if len(colors) != len(points):
            raise ValueError(f"Got {len(colors)} colours for {len(points)} points")

    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(points)
    pcd.colors = o3d.utility.Vector3dVector(colors / 255.0)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not o3d.io.write_point_cloud(str(path), pcd):
        raise RuntimeError(f"Failed to write point cloud to {path}")

    logger.info(f"✓ Vertices: {len(points):,} saved to {path}")
    return len(points)


def save_correspondences(correspondences: Sequence[PointCorrespondence],
                         path: Union[str, Path]) -> int:
    """Save stored correspondences with their recorded colours"""
    if not correspondences:
        return save_change_points(np.zeros((0, 3)), path)

    points = np.vstack([c.xyz for c in correspondences])
    colors = np.vstack([
        c.color if c.color is not None else np.asarray(CHANGE_COLOR, dtype=np.uint8)
        for c in correspondences
    ])
    return save_change_points(points, path, colors=colors)
