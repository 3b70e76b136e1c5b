"""
Visibility Resolver
===================

Finds, for each mesh vertex, the camera images that most likely observe it.

Every vertex asks the reference cloud for its K nearest points and lets
each recorded observation of those points vote for its image. Votes are
weighted by feature count: an image observing a point through two features
votes twice. The N most voted images form the candidate shortlist, and a
radius query over the mesh itself gives the vertex neighbourhood that is
later projected into those images.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import VisibilityConfig
from ..core.interfaces import ISpatialIndex
from ..core.structures import Mesh, ReferenceCloud, VisibilityResult
from ..logger import ProgressLogger, get_logger
from ..spatial import KDTreeIndex

logger = get_logger("visibility")


def face_edge_average(triangle: np.ndarray) -> float:
    """Mean edge length of one (3, 3) triangle"""
    triangle = np.asarray(triangle, dtype=np.float64).reshape(3, 3)
    edges = triangle[[1, 2, 0]] - triangle
    return float(np.linalg.norm(edges, axis=1).mean())


def mean_edge_length(mesh: Mesh) -> float:
    """
    Mean length over all half-edges of all faces.

    Edges shared by two faces are counted once per face.
    Returns 0.0 for a mesh without faces.
    """
    if mesh.num_faces == 0:
        return 0.0

    triangles = mesh.vertices[mesh.faces]
    edges = triangles[:, [1, 2, 0], :] - triangles
    return float(np.linalg.norm(edges, axis=2).mean())


def tally_votes(reference_cloud: ReferenceCloud, point_indices: Sequence[int]) -> Dict[int, int]:
    """
    Count image observations over a set of reference points.

    The returned dict is insertion ordered: images appear in the order they
    were first seen, walking points in the given order and each point's
    correspondences in stored order.
    """
    tally: Dict[int, int] = {}
    for point_index in point_indices:
        for image_id in reference_cloud.correspondences[int(point_index)]:
            tally[image_id] = tally.get(image_id, 0) + 1
    return tally


def select_top_images(tally: Dict[int, int], n: int) -> Tuple[List[int], List[int]]:
    """
    Pick the n most voted images.

    Sorting is stable on descending count, so equal counts keep the tally's
    first-seen order.

    Returns:
        image_ids: Up to n image ids, most votes first
        counts: Matching vote counts
    """
    ranked = sorted(tally.items(), key=lambda item: -item[1])[:max(n, 0)]
    return [image_id for image_id, _ in ranked], [count for _, count in ranked]


class VisibilityResolver:
    """
    Resolves candidate observing images for mesh vertices.

    Holds only read-only state (indices, mean edge length); every `resolve`
    call owns its own vote tally, so vertices can be processed from any
    number of threads.
    """

    def __init__(self,
                 mesh: Mesh,
                 reference_cloud: ReferenceCloud,
                 config: Optional[VisibilityConfig] = None,
                 reference_index: Optional[ISpatialIndex] = None,
                 mesh_index: Optional[ISpatialIndex] = None):
        """
        Initialize resolver.

        Args:
            mesh: Mesh whose vertices are resolved
            reference_cloud: Cloud with per-point image observations
            config: Sweep configuration. If None, uses defaults.
            reference_index: Index over the reference points (built if None)
            mesh_index: Index over the mesh vertices (built if None)
        """
        self.config = config or VisibilityConfig()
        self.config.validate()

        self.mesh = mesh
        self.reference_cloud = reference_cloud
        self.reference_index = reference_index or KDTreeIndex(reference_cloud.points)
        self.mesh_index = mesh_index or KDTreeIndex(mesh.vertices)

        self.mean_edge_length = mean_edge_length(mesh)
        if self.mean_edge_length == 0.0:
            logger.warning("Mesh has no faces, neighbourhood radius is 0")

        logger.debug(
            f"Resolver ready: {mesh.num_vertices} vertices, {len(reference_cloud)} reference points, "
            f"mean edge {self.mean_edge_length:.5f}"
        )

    def search_radius(self, radius_multiplier: Optional[float] = None) -> float:
        if radius_multiplier is None:
            radius_multiplier = self.config.radius_multiplier
        return radius_multiplier * self.mean_edge_length

    def resolve(self,
                vertex: np.ndarray,
                k: Optional[int] = None,
                radius_multiplier: Optional[float] = None,
                n: Optional[int] = None,
                vertex_index: int = -1) -> VisibilityResult:
        """
        Resolve one vertex position.

        Args:
            vertex: (3,) vertex position
            k: Reference points to examine (default: config.k_nearest)
            radius_multiplier: Neighbourhood radius in mean edge lengths
            n: Candidate shortlist size (default: config.num_candidates)
            vertex_index: Index stored on the result

        Returns:
            VisibilityResult; candidate_images is empty when no reference
            point was found, the neighbourhood is queried regardless.
        """
        k = self.config.k_nearest if k is None else k
        n = self.config.num_candidates if n is None else n
        vertex = np.asarray(vertex, dtype=np.float64).reshape(3)

        neighbor_points, _ = self.reference_index.k_nearest(vertex, k)
        tally = tally_votes(self.reference_cloud, neighbor_points)
        candidate_images, counts = select_top_images(tally, n)

        neighborhood, _ = self.mesh_index.radius_search(vertex, self.search_radius(radius_multiplier))

        return VisibilityResult(
            vertex_index=vertex_index,
            candidate_images=candidate_images,
            neighborhood=neighborhood,
            vote_counts=counts,
        )

    def _resolve_chunk(self, indices: np.ndarray) -> List[VisibilityResult]:
        vertices = self.mesh.vertices
        return [self.resolve(vertices[i], vertex_index=int(i)) for i in indices]

    def resolve_all(self,
                    vertex_indices: Optional[Sequence[int]] = None,
                    num_workers: Optional[int] = None) -> List[VisibilityResult]:
        """
        Resolve a set of mesh vertices.

        Args:
            vertex_indices: Vertices to resolve (default: all)
            num_workers: Worker threads (default: config.num_workers)

        Returns:
            Results in the order of `vertex_indices`
        """
        if vertex_indices is None:
            indices = np.arange(self.mesh.num_vertices)
        else:
            indices = np.asarray(vertex_indices, dtype=np.int64)

        num_workers = num_workers or self.config.num_workers
        chunk_size = self.config.chunk_size
        chunks = [indices[i:i + chunk_size] for i in range(0, len(indices), chunk_size)]
        total = len(indices)

        logger.info(f"Start visibility estimation: {total:,} vertices, {num_workers} worker(s)")
        start_time = time.time()

        results: List[VisibilityResult] = []
        progress = ProgressLogger(logger, total, self.config.progress_interval, unit="vertices")

        if num_workers > 1:
            with ThreadPoolExecutor(max_workers=num_workers) as executor:
                for chunk_results in executor.map(self._resolve_chunk, chunks):
                    results.extend(chunk_results)
                    progress.update(len(results))
        else:
            for chunk in chunks:
                results.extend(self._resolve_chunk(chunk))
                progress.update(len(results))

        visible = sum(1 for r in results if r.is_visible)
        logger.info(
            f"✓ Visibility estimated for {total:,} vertices in {time.time() - start_time:.2f}s "
            f"({visible:,} with candidate images)"
        )
        return results

    def project_neighborhood(self,
                             result: VisibilityResult,
                             shots: Union[Sequence, Mapping]) -> Dict[int, np.ndarray]:
        """
        Project a vertex neighbourhood into each of its candidate images.

        Args:
            result: Resolved vertex
            shots: Shots indexed by image id

        Returns:
            Per candidate image id, an (M, 2) array of pixels for the
            neighbourhood vertices in front of the camera and inside the
            image, in neighbourhood order.
        """
        points = self.mesh.vertices[result.neighborhood]
        projections = {}
        for image_id in result.candidate_images:
            shot = shots[image_id]
            pixels, in_front = shot.project_many(points)
            keep = in_front & shot.in_viewport(pixels)
            projections[image_id] = pixels[keep]
        return projections
