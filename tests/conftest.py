import sys
from pathlib import Path

import numpy as np
import pytest

project_root = Path(__file__).parent.parent  # Go up from tests/ to project root
sys.path.insert(0, str(project_root))

from ChangeProjection.camera import Shot


@pytest.fixture
def forward_shot():
    """Camera at the origin looking down +z, 5x5 image, principal point (2, 2)"""
    return Shot(rotation=np.eye(3), center=np.zeros(3), focal_mm=10.0,
                center_px=(2.0, 2.0), viewport_px=(5, 5))


@pytest.fixture
def cube_cloud():
    """Ten points filling a 2x2x2 block of unit cells"""
    return np.array([
        [0.1, 0.1, 0.1],
        [1.9, 1.9, 1.9],
        [1.5, 1.5, 1.5],
        [0.5, 1.5, 1.5],
        [0.6, 1.4, 1.6],
        [1.5, 0.5, 0.5],
        [0.5, 0.5, 1.5],
        [1.5, 1.5, 0.5],
        [0.5, 1.5, 0.5],
        [1.2, 0.3, 1.7],
    ])
