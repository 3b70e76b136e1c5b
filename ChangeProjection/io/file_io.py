"""
Readers for image lists, change masks, observation tables and cameras.
"""

import json
from pathlib import Path
from typing import List, Union

import cv2
import numpy as np

from ..camera import Shot
from ..logger import get_logger

logger = get_logger("io.files")


def read_image_list(path: Union[str, Path]) -> List[str]:
    """
    Read image names, one per line. Blank lines are ignored.

    Raises:
        FileNotFoundError: If the list does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image list not found: {path}")

    with open(path, 'r') as f:
        names = [line.strip() for line in f if line.strip()]

    logger.debug(f"Read {len(names)} image names from {path}")
    return names


def load_mask(path: Union[str, Path]) -> np.ndarray:
    """
    Load a change mask as a single-channel uint8 image.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If OpenCV cannot decode it
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Change mask not found: {path}")

    mask = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
    if mask is None:
        raise ValueError(f"Could not decode change mask: {path}")
    return mask


def read_observations(path: Union[str, Path]) -> List[List[int]]:
    """
    Read per-point image observations, one line per reference point.

    Each line lists the ids of the images observing that point, separated
    by whitespace; an image listed twice votes twice. Empty lines stand for
    points without observations.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: On a non-integer image id
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Observation table not found: {path}")

    observations = []
    with open(path, 'r') as f:
        for line_number, line in enumerate(f, start=1):
            try:
                observations.append([int(token) for token in line.split()])
            except ValueError:
                raise ValueError(f"{path}:{line_number}: invalid image id in '{line.strip()}'") from None

    logger.debug(f"Read observations for {len(observations)} points from {path}")
    return observations


def load_shots(path: Union[str, Path]) -> List[Shot]:
    """
    Load cameras from a JSON list of {'R', 't', 'K', 'width', 'height'}.

    The list position is the image id.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If an entry lacks a key
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Camera file not found: {path}")

    with open(path, 'r') as f:
        cameras = json.load(f)

    shots = []
    for image_id, camera in enumerate(cameras):
        try:
            shots.append(Shot.from_dict(camera))
        except KeyError as e:
            raise ValueError(f"Camera {image_id} in {path} is missing {e}") from None

    logger.info(f"✓ Loaded {len(shots)} cameras from {path.name}")
    return shots
