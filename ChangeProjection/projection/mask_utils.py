"""
Change mask helpers shared by the projectors.
"""

import cv2
import numpy as np


def normalize_mask(mask: np.ndarray) -> np.ndarray:
    """
    Convert a change mask to a single-channel 2D array.

    Colour masks (BGR / BGRA, as read by OpenCV) are converted to grey;
    boolean masks become uint8 so that any non-zero value marks a change.
    """
    mask = np.asarray(mask)
    if mask.dtype == np.bool_:
        mask = mask.astype(np.uint8)

    if mask.ndim == 3:
        channels = mask.shape[2]
        if channels == 1:
            mask = mask[:, :, 0]
        else:
            if mask.dtype not in (np.uint8, np.uint16, np.float32):
                mask = mask.astype(np.float32)
            code = cv2.COLOR_BGR2GRAY if channels == 3 else cv2.COLOR_BGRA2GRAY
            mask = cv2.cvtColor(mask, code)

    if mask.ndim != 2:
        raise ValueError(f"Change mask must be 2D or a colour image, got shape {mask.shape}")
    return mask


def extract_mask_points(mask: np.ndarray) -> np.ndarray:
    """
    Collect the changed pixels of a mask.

    Args:
        mask: Change mask, non-zero marks a changed pixel

    Returns:
        (M, 2) int array of (x, y) = (column, row), in row-major scan order
    """
    rows, cols = np.nonzero(normalize_mask(mask) > 0)
    return np.stack([cols, rows], axis=1).astype(np.int64)
