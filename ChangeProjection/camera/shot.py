"""
Pinhole Camera Shot
===================

Calibrated camera (extrinsic pose + intrinsics + image size) used to map
between 3D world points and 2D pixels.

Conventions:
    - `rotation` maps world axes to camera axes (x_cam = R (X - C))
    - the camera looks along +z, pixel x grows right and pixel y grows down
    - focal length and pixel size share a unit (mm), so fx = focal / pixel_size_x
"""

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np


@dataclass(frozen=True, eq=False)
class Shot:
    """
    Immutable calibrated camera.

    Attributes:
        rotation: (3, 3) world-to-camera rotation
        center: (3,) optical centre in world coordinates
        focal_mm: Focal length
        pixel_size_mm: (2,) pixel width and height in the focal length unit
        center_px: (2,) principal point in pixels
        viewport_px: (width, height) of the source image
    """
    rotation: np.ndarray
    center: np.ndarray
    focal_mm: float
    pixel_size_mm: Tuple[float, float] = (1.0, 1.0)
    center_px: Tuple[float, float] = (0.0, 0.0)
    viewport_px: Tuple[int, int] = (0, 0)

    def __post_init__(self):
        rotation = np.asarray(self.rotation, dtype=np.float64).reshape(3, 3)
        center = np.asarray(self.center, dtype=np.float64).reshape(3)
        rotation.setflags(write=False)
        center.setflags(write=False)
        object.__setattr__(self, 'rotation', rotation)
        object.__setattr__(self, 'center', center)

        if self.focal_mm <= 0:
            raise ValueError(f"Focal length must be positive, got {self.focal_mm}")
        if min(self.pixel_size_mm) <= 0:
            raise ValueError(f"Pixel size must be positive, got {self.pixel_size_mm}")

    # ------------------------------------------------------------------
    # Construction from reconstruction outputs
    # ------------------------------------------------------------------

    @classmethod
    def from_nvm(cls, rotation: np.ndarray, translation: np.ndarray,
                 focal: float, image_size: Tuple[int, int]) -> 'Shot':
        """
        Convert an NVM / bundler camera.

        Those formats store x_cam = R X + t, so the optical centre is
        -R^T t. Pixels are square with unit size and the principal point
        sits at the integer half of the image size.

        Args:
            rotation: (3, 3) rotation matrix
            translation: (3,) translation vector
            focal: Focal length in pixels
            image_size: (width, height) of the source image
        """
        R = np.asarray(rotation, dtype=np.float64).reshape(3, 3)
        t = np.asarray(translation, dtype=np.float64).reshape(3)
        width, height = int(image_size[0]), int(image_size[1])

        return cls(
            rotation=R,
            center=-(R.T @ t),
            focal_mm=float(focal),
            pixel_size_mm=(1.0, 1.0),
            center_px=(float(int(width / 2.0)), float(int(height / 2.0))),
            viewport_px=(width, height),
        )

    @classmethod
    def from_dict(cls, camera: Dict) -> 'Shot':
        """
        Convert a camera dictionary with keys 'R', 't', 'K' and optionally
        'width' / 'height', where x_cam = R X + t.
        """
        R = np.asarray(camera['R'], dtype=np.float64).reshape(3, 3)
        t = np.asarray(camera['t'], dtype=np.float64).reshape(3)
        K = np.asarray(camera['K'], dtype=np.float64).reshape(3, 3)
        fx, fy = K[0, 0], K[1, 1]

        return cls(
            rotation=R,
            center=-(R.T @ t),
            focal_mm=float(fx),
            pixel_size_mm=(1.0, float(fx / fy)),
            center_px=(float(K[0, 2]), float(K[1, 2])),
            viewport_px=(int(camera.get('width', 0)), int(camera.get('height', 0))),
        )

    # ------------------------------------------------------------------
    # Matrices
    # ------------------------------------------------------------------

    @property
    def translation(self) -> np.ndarray:
        """Translation t of x_cam = R X + t"""
        return -(self.rotation @ self.center)

    def get_rt_matrix(self) -> np.ndarray:
        """(3, 4) world-to-camera matrix [R | t]"""
        return np.hstack([self.rotation, self.translation.reshape(3, 1)])

    def get_intrinsic_matrix(self) -> np.ndarray:
        """(3, 3) intrinsic matrix K"""
        K = np.zeros((3, 3), dtype=np.float64)
        K[0, 0] = self.focal_mm / self.pixel_size_mm[0]
        K[1, 1] = self.focal_mm / self.pixel_size_mm[1]
        K[0, 2] = self.center_px[0]
        K[1, 2] = self.center_px[1]
        K[2, 2] = 1.0
        return K

    def get_projection_matrix(self) -> np.ndarray:
        """(3, 4) projection matrix K [R | t]"""
        return self.get_intrinsic_matrix() @ self.get_rt_matrix()

    # ------------------------------------------------------------------
    # Project / unproject
    # ------------------------------------------------------------------

    def to_camera(self, points: np.ndarray) -> np.ndarray:
        """World points (N, 3) to camera coordinates (N, 3)"""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        return (points - self.center) @ self.rotation.T

    def project_many(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Project world points to pixels.

        Args:
            points: (N, 3) world positions

        Returns:
            pixels: (N, 2) pixel coordinates (x, y)
            in_front: (N,) bool, False for points at or behind the camera plane
        """
        cam = self.to_camera(points)
        z = cam[:, 2]
        in_front = z > 0
        safe_z = np.where(in_front, z, 1.0)

        K = self.get_intrinsic_matrix()
        pixels = np.empty((len(cam), 2), dtype=np.float64)
        pixels[:, 0] = K[0, 0] * cam[:, 0] / safe_z + K[0, 2]
        pixels[:, 1] = K[1, 1] * cam[:, 1] / safe_z + K[1, 2]
        return pixels, in_front

    def project(self, point: np.ndarray) -> np.ndarray:
        """Project one world point to a (2,) pixel (x, y)"""
        pixels, _ = self.project_many(point)
        return pixels[0]

    def unproject_many(self, pixels: np.ndarray, depth: float) -> np.ndarray:
        """
        Lift pixels to world points at a given camera-frame depth.

        Args:
            pixels: (N, 2) pixel coordinates (x, y)
            depth: Depth along the optical axis

        Returns:
            (N, 3) world positions
        """
        pixels = np.asarray(pixels, dtype=np.float64).reshape(-1, 2)
        K = self.get_intrinsic_matrix()

        cam = np.empty((len(pixels), 3), dtype=np.float64)
        cam[:, 0] = (pixels[:, 0] - K[0, 2]) / K[0, 0] * depth
        cam[:, 1] = (pixels[:, 1] - K[1, 2]) / K[1, 1] * depth
        cam[:, 2] = depth

        return cam @ self.rotation + self.center

    def unproject(self, pixel: np.ndarray, depth: float) -> np.ndarray:
        """Lift one pixel (x, y) to a (3,) world point at the given depth"""
        return self.unproject_many(pixel, depth)[0]

    def ray_directions(self, pixels: np.ndarray, depth: float) -> np.ndarray:
        """Unit directions (N, 3) from the optical centre through each pixel"""
        directions = self.unproject_many(pixels, depth) - self.center
        norms = np.linalg.norm(directions, axis=1, keepdims=True)
        return directions / norms

    def in_viewport(self, pixels: np.ndarray) -> np.ndarray:
        """(N,) bool, True for pixels inside the source image"""
        pixels = np.asarray(pixels, dtype=np.float64).reshape(-1, 2)
        width, height = self.viewport_px
        return ((pixels[:, 0] >= 0) & (pixels[:, 0] < width) &
                (pixels[:, 1] >= 0) & (pixels[:, 1] < height))

    def __repr__(self) -> str:
        return (f"Shot(center={np.round(self.center, 3).tolist()}, "
                f"focal={self.focal_mm:.1f}, viewport={self.viewport_px})")
