"""
Tests for the Shot camera model
"""

import cv2
import numpy as np
import pytest

from ChangeProjection.camera import Shot


@pytest.fixture
def rotated_shot():
    rotation, _ = cv2.Rodrigues(np.array([0.1, -0.2, 0.3]))
    return Shot.from_nvm(rotation, [0.2, -0.1, 4.0], focal=800.0, image_size=(640, 480))


def test_from_nvm_centre_and_principal_point():
    shot = Shot.from_nvm(np.eye(3), [0.0, 0.0, 5.0], focal=500.0, image_size=(641, 481))

    np.testing.assert_allclose(shot.center, [0, 0, -5])
    assert shot.center_px == (320.0, 240.0)
    assert shot.viewport_px == (641, 481)
    np.testing.assert_allclose(shot.project(np.zeros(3)), [320, 240])


def test_project_unproject_round_trip(rotated_shot):
    points = np.array([[0.3, -0.2, 1.0], [-0.5, 0.4, 2.0], [0.0, 0.0, 0.0]])

    pixels, in_front = rotated_shot.project_many(points)
    depths = rotated_shot.to_camera(points)[:, 2]

    assert in_front.all()
    for pixel, depth, point in zip(pixels, depths, points):
        np.testing.assert_allclose(rotated_shot.unproject(pixel, depth), point, atol=1e-9)


def test_projection_matrix_matches_project(rotated_shot):
    point = np.array([0.3, -0.2, 1.0])

    homogeneous = rotated_shot.get_projection_matrix() @ np.append(point, 1.0)

    np.testing.assert_allclose(homogeneous[:2] / homogeneous[2], rotated_shot.project(point))


def test_rt_matrix_uses_translation(rotated_shot):
    rt = rotated_shot.get_rt_matrix()

    np.testing.assert_allclose(rt[:, :3], rotated_shot.rotation)
    np.testing.assert_allclose(rt[:, 3], [0.2, -0.1, 4.0], atol=1e-12)


def test_points_behind_camera_flagged(forward_shot):
    _, in_front = forward_shot.project_many(np.array([[0, 0, 1.0], [0, 0, -1.0], [1, 1, 0.0]]))

    assert in_front.tolist() == [True, False, False]


def test_ray_directions_are_unit_and_point_through_pixels(rotated_shot):
    pixels = np.array([[0, 0], [320, 240], [639, 479]])

    directions = rotated_shot.ray_directions(pixels, depth=100.0)

    np.testing.assert_allclose(np.linalg.norm(directions, axis=1), 1.0)
    reprojected, _ = rotated_shot.project_many(rotated_shot.center + 3.0 * directions)
    np.testing.assert_allclose(reprojected, pixels, atol=1e-6)


def test_in_viewport(forward_shot):
    inside = forward_shot.in_viewport(np.array([[0, 0], [4.9, 4.9], [5, 0], [-0.1, 2]]))

    assert inside.tolist() == [True, True, False, False]


def test_from_dict_intrinsics():
    K = np.array([[800.0, 0, 320], [0, 400.0, 240], [0, 0, 1]])
    shot = Shot.from_dict({'R': np.eye(3), 't': [0, 0, 0], 'K': K, 'width': 640, 'height': 480})

    np.testing.assert_allclose(shot.get_intrinsic_matrix(), K)
    assert shot.viewport_px == (640, 480)


def test_shot_is_immutable(forward_shot):
    with pytest.raises(AttributeError):
        forward_shot.focal_mm = 5.0
    with pytest.raises(ValueError):
        forward_shot.center[0] = 1.0


def test_invalid_intrinsics_rejected():
    with pytest.raises(ValueError):
        Shot(rotation=np.eye(3), center=np.zeros(3), focal_mm=0.0)
    with pytest.raises(ValueError):
        Shot(rotation=np.eye(3), center=np.zeros(3), focal_mm=1.0, pixel_size_mm=(1.0, 0.0))
