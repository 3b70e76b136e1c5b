"""
Two-view mask triangulation.

Changed pixels of the first view are mapped into the second view with a
homography and triangulated from both projection matrices.
"""

import cv2
import numpy as np

from ..camera import Shot
from ..logger import get_logger
from .mask_utils import extract_mask_points

logger = get_logger("projection.triangulation")


def triangulate_mask(mask: np.ndarray, shot1: Shot, shot2: Shot,
                     homography: np.ndarray) -> np.ndarray:
    """
    Triangulate the changed pixels of view 1.

    Args:
        mask: Change mask of view 1
        shot1: Camera of view 1
        shot2: Camera of view 2
        homography: (3, 3) mapping view 1 pixels to view 2 pixels

    Returns:
        (M, 3) world points, one per changed pixel in mask scan order
    """
    homography = np.asarray(homography, dtype=np.float64).reshape(3, 3)
    pts1 = extract_mask_points(mask).astype(np.float64)
    if len(pts1) == 0:
        return np.zeros((0, 3), dtype=np.float64)

    pts2 = cv2.perspectiveTransform(pts1.reshape(-1, 1, 2), homography).reshape(-1, 2)

    P1 = shot1.get_projection_matrix()
    P2 = shot2.get_projection_matrix()
    homogeneous = cv2.triangulatePoints(P1, P2, pts1.T.copy(), pts2.T.copy())

    points = (homogeneous[:3] / homogeneous[3]).T
    logger.info(f"✓ Triangulated {len(points):,} change mask pixels")
    return points
