"""
Geometry containers shared by the visibility and projection stages.

Plain containers: loaders fill them, the engine only reads them.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np


@dataclass
class Mesh:
    """
    Triangle mesh whose vertices are resolved against the camera set.

    Attributes:
        vertices: (V, 3) float array of vertex positions
        faces: (F, 3) int array of vertex indices, may be empty
    """
    vertices: np.ndarray
    faces: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=np.int64))

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        self.faces = np.asarray(self.faces, dtype=np.int64).reshape(-1, 3)

        if len(self.faces) and (self.faces.min() < 0 or self.faces.max() >= len(self.vertices)):
            raise ValueError(
                f"Face indices out of range for mesh with {len(self.vertices)} vertices"
            )

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def num_faces(self) -> int:
        return len(self.faces)


@dataclass
class ReferenceCloud:
    """
    Dense reconstruction cloud whose points carry recorded image observations.

    `correspondences[i]` lists the image ids observing `points[i]`, one
    entry per observing feature. An image may appear several times and
    every occurrence counts as a vote.
    """
    points: np.ndarray
    correspondences: List[List[int]]

    def __post_init__(self):
        self.points = np.asarray(self.points, dtype=np.float64).reshape(-1, 3)
        if len(self.correspondences) != len(self.points):
            raise ValueError(
                f"Correspondence table has {len(self.correspondences)} entries "
                f"for {len(self.points)} points"
            )

    def __len__(self):
        return len(self.points)

    @classmethod
    def from_observations(cls, points: np.ndarray,
                          observations: Sequence[Sequence[int]]) -> 'ReferenceCloud':
        """Build a cloud from any per-point sequence of image ids"""
        return cls(points=points,
                   correspondences=[[int(image_id) for image_id in obs] for obs in observations])


@dataclass
class ImageFeature:
    """
    A 2D feature of a source image linked to a stored 3D correspondence.

    Coordinates are relative to the image centre, as stored by the
    reconstruction tool; `idx` indexes the stored correspondence list.
    """
    x: float
    y: float
    idx: int


@dataclass
class PointCorrespondence:
    """A reconstructed 3D point with the colour recorded for it"""
    xyz: np.ndarray
    color: Optional[np.ndarray] = None

    def __post_init__(self):
        self.xyz = np.asarray(self.xyz, dtype=np.float64).reshape(3)
        if self.color is not None:
            self.color = np.asarray(self.color, dtype=np.uint8).reshape(3)
