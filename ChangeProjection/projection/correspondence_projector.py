"""
Correspondence-Based Mask Projector
===================================

Projects a change mask into 3D through the 2D-3D feature correspondences
recorded during reconstruction. No ray casting and no occlusion reasoning:
a stored correspondence is trusted to be the visible point.
"""

import math
from typing import List, Sequence, Set, Tuple, Union

import numpy as np

from ..core.structures import ImageFeature, PointCorrespondence
from ..logger import get_logger
from .mask_utils import normalize_mask

logger = get_logger("projection.correspondence")


class CorrespondenceProjector:
    """
    Maps changed features of one image to their stored 3D points.

    Feature coordinates are centred on the image, so a feature at (x, y)
    is tested against mask[y + rows // 2, x + cols // 2].
    """

    def project(self,
                mask: np.ndarray,
                image_features: Sequence[ImageFeature],
                stored_correspondences: Union[Sequence[PointCorrespondence], np.ndarray]
                ) -> Tuple[np.ndarray, Set[int]]:
        """
        Project a change mask using feature correspondences.

        Args:
            mask: Change mask, may be smaller than the source image
            image_features: Features of the source image
            stored_correspondences: 3D points indexed by feature.idx, either
                                    PointCorrespondence objects or an (P, 3) array

        Returns:
            points: (M, 3) points of the changed features, first use order
            used_indices: Correspondence indices that contributed
        """
        mask = normalize_mask(mask)
        rows, cols = mask.shape
        half_rows, half_cols = rows // 2, cols // 2
        num_stored = len(stored_correspondences)

        points: List[np.ndarray] = []
        used_indices: Set[int] = set()
        outside = 0
        stale = 0

        for feature in image_features:
            r = math.floor(feature.y + half_rows)
            c = math.floor(feature.x + half_cols)
            if r < 0 or r >= rows or c < 0 or c >= cols:
                outside += 1
                continue

            if mask[r, c] <= 0:
                continue

            idx = int(feature.idx)
            if idx < 0 or idx >= num_stored:
                stale += 1
                logger.debug(f"Feature at ({feature.x}, {feature.y}) references missing correspondence {idx}")
                continue

            if idx in used_indices:
                continue

            used_indices.add(idx)
            points.append(_correspondence_xyz(stored_correspondences[idx]))

        if stale:
            logger.warning(f"Skipped {stale} feature(s) with out-of-range correspondence index "
                           f"(stored correspondences: {num_stored})")
        if outside:
            logger.debug(f"{outside} feature(s) fall outside the {cols}x{rows} mask")

        logger.info(f"✓ {len(points):,} correspondences under the change mask")

        if not points:
            return np.zeros((0, 3), dtype=np.float64), used_indices
        return np.vstack(points), used_indices


def _correspondence_xyz(correspondence) -> np.ndarray:
    if isinstance(correspondence, PointCorrespondence):
        return correspondence.xyz
    return np.asarray(correspondence, dtype=np.float64).reshape(3)
