"""
Tests for the visibility resolver
"""

import numpy as np
import pytest

from ChangeProjection.config import VisibilityConfig
from ChangeProjection.core.structures import Mesh, ReferenceCloud
from ChangeProjection.visibility import (
    VisibilityResolver,
    face_edge_average,
    mean_edge_length,
    select_top_images,
    tally_votes,
)


@pytest.fixture
def triangle_mesh():
    return Mesh(vertices=[[0, 0, 0], [1, 0, 0], [0, 1, 0]], faces=[[0, 1, 2]])


def test_feature_weighted_tie_keeps_first_seen_image(triangle_mesh):
    # Image 0 observes the nearest point twice, image 1 observes both points
    cloud = ReferenceCloud(points=[[0, 0, 0.01], [0, 0, 0.02]], correspondences=[[0, 0, 1], [1]])
    resolver = VisibilityResolver(triangle_mesh, cloud, VisibilityConfig(k_nearest=2, num_candidates=1))

    result = resolver.resolve(triangle_mesh.vertices[0], vertex_index=0)

    assert result.candidate_images == [0]
    assert result.vote_counts == [2]


def test_feature_count_outweighs_point_count(triangle_mesh):
    cloud = ReferenceCloud(points=[[0, 0, 0.01], [0, 0, 0.02], [0, 0, 0.03]],
                           correspondences=[[1], [2, 2, 2], [1]])
    resolver = VisibilityResolver(triangle_mesh, cloud, VisibilityConfig(k_nearest=3, num_candidates=2))

    result = resolver.resolve(triangle_mesh.vertices[0])

    assert result.candidate_images == [2, 1]
    assert result.vote_counts == [3, 2]


def test_candidate_list_never_exceeds_n(triangle_mesh):
    cloud = ReferenceCloud(points=[[0, 0, 0.1 * i] for i in range(1, 6)],
                           correspondences=[[i, i + 10] for i in range(5)])
    resolver = VisibilityResolver(triangle_mesh, cloud, VisibilityConfig(k_nearest=5, num_candidates=3))

    result = resolver.resolve(triangle_mesh.vertices[1])

    assert len(result.candidate_images) == 3
    assert len(set(result.candidate_images)) == 3


def test_empty_reference_cloud_still_computes_neighborhood(triangle_mesh):
    cloud = ReferenceCloud(points=np.zeros((0, 3)), correspondences=[])
    resolver = VisibilityResolver(triangle_mesh, cloud)

    result = resolver.resolve(triangle_mesh.vertices[0], vertex_index=0)

    assert result.candidate_images == []
    assert not result.is_visible
    assert result.neighborhood.tolist() == [0, 1, 2]


def test_neighborhood_radius_scales_with_mean_edge(triangle_mesh):
    far_mesh = Mesh(vertices=np.vstack([triangle_mesh.vertices, [[10, 0, 0]]]),
                    faces=triangle_mesh.faces)
    cloud = ReferenceCloud(points=[[0, 0, 0]], correspondences=[[0]])
    resolver = VisibilityResolver(far_mesh, cloud, VisibilityConfig(radius_multiplier=1.0))

    result = resolver.resolve(far_mesh.vertices[0])

    assert resolver.search_radius() == pytest.approx((2 + np.sqrt(2)) / 3)
    assert result.neighborhood.tolist() == [0, 1, 2]


def test_mean_edge_length(triangle_mesh):
    assert mean_edge_length(triangle_mesh) == pytest.approx((2 + np.sqrt(2)) / 3)
    assert mean_edge_length(Mesh(vertices=[[0, 0, 0]])) == 0.0


def test_face_edge_average():
    triangle = np.array([[0, 0, 0], [3, 0, 0], [0, 4, 0]])
    assert face_edge_average(triangle) == pytest.approx(4.0)


def test_tally_and_selection_order():
    cloud = ReferenceCloud(points=np.zeros((3, 3)), correspondences=[[5, 7], [7, 3], [3]])

    tally = tally_votes(cloud, [0, 1, 2])
    assert list(tally.items()) == [(5, 1), (7, 2), (3, 2)]

    images, counts = select_top_images(tally, 2)
    assert images == [7, 3]
    assert counts == [2, 2]
    assert select_top_images(tally, 0) == ([], [])


def test_threaded_sweep_matches_sequential():
    rng = np.random.default_rng(7)
    vertices = rng.uniform(0, 10, size=(60, 3))
    faces = np.array([[i, i + 1, i + 2] for i in range(0, 57, 3)])
    mesh = Mesh(vertices=vertices, faces=faces)

    points = rng.uniform(0, 10, size=(200, 3))
    correspondences = [rng.integers(0, 12, size=rng.integers(1, 5)).tolist() for _ in range(200)]
    cloud = ReferenceCloud(points=points, correspondences=correspondences)

    config = VisibilityConfig(k_nearest=8, num_candidates=4, chunk_size=7, radius_multiplier=1.5)
    resolver = VisibilityResolver(mesh, cloud, config)

    sequential = resolver.resolve_all(num_workers=1)
    threaded = resolver.resolve_all(num_workers=4)

    assert [r.vertex_index for r in threaded] == list(range(60))
    for a, b in zip(sequential, threaded):
        assert a.candidate_images == b.candidate_images
        assert a.vote_counts == b.vote_counts
        assert a.neighborhood.tolist() == b.neighborhood.tolist()


def test_resolve_all_subset_keeps_order(triangle_mesh):
    cloud = ReferenceCloud(points=[[0, 0, 0]], correspondences=[[4]])
    resolver = VisibilityResolver(triangle_mesh, cloud)

    results = resolver.resolve_all(vertex_indices=[2, 0])

    assert [r.vertex_index for r in results] == [2, 0]
    assert all(r.candidate_images == [4] for r in results)


def test_project_neighborhood_keeps_visible_pixels(forward_shot):
    mesh = Mesh(vertices=[[0, 0, 10], [0.5, 0, 10], [0, 0, -10]], faces=[[0, 1, 2]])
    cloud = ReferenceCloud(points=[[0, 0, 10]], correspondences=[[0]])
    resolver = VisibilityResolver(mesh, cloud, VisibilityConfig(radius_multiplier=100.0))

    result = resolver.resolve(mesh.vertices[0], vertex_index=0)
    projections = resolver.project_neighborhood(result, [forward_shot])

    # Vertex 2 sits behind the camera
    assert list(projections.keys()) == [0]
    np.testing.assert_allclose(projections[0], [[2.0, 2.0], [2.5, 2.0]])


def test_invalid_config_rejected(triangle_mesh):
    cloud = ReferenceCloud(points=[[0, 0, 0]], correspondences=[[0]])
    with pytest.raises(ValueError):
        VisibilityResolver(triangle_mesh, cloud, VisibilityConfig(k_nearest=0))
