"""
Change Projection Pipeline
==========================

Main orchestrator: visibility sweep over the mesh, ray-voxel projection of
each change mask, and export of the resulting 3D change points.
"""

import time
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np

from .camera import Shot
from .config import ChangeProjectionConfig
from .core.interfaces import IRegistrationService
from .core.structures import Mesh, ReferenceCloud, VisibilityResult
from .logger import setup_logger, log_banner, log_stage, ROOT_LOGGER_NAME
from .matching import CameraNeighborMatcher
from .projection import RayVoxelProjector
from .spatial import OcclusionVoxelGrid
from .visibility import VisibilityResolver


class ChangeProjectionPipeline:
    """
    Complete change projection workflow.

    Stages:
    1. Visibility estimation: candidate images for every mesh vertex
    2. Occlusion projection: each change mask is shot into a voxel grid
    3. Export: projected points written as a PLY point cloud
    """

    def __init__(self, config: Optional[ChangeProjectionConfig] = None):
        """
        Initialize pipeline.

        Args:
            config: Configuration object. If None, uses defaults.
        """
        self.config = config or ChangeProjectionConfig()
        self.config.validate()
        self.logger = setup_logger(
            name=ROOT_LOGGER_NAME,
            level='DEBUG' if self.config.verbose else 'INFO',
            log_file=self.config.log_file,
        )

        self._reset_stats()

    def _reset_stats(self):
        self.stats = {
            'num_vertices': 0,
            'visible_vertices': 0,
            'num_masks': 0,
            'skipped_masks': 0,
            'num_mask_pixels': 0,
            'num_projected_points': 0,
            'processing_time': {}
        }

    def run(self,
            mesh: Mesh,
            reference_cloud: ReferenceCloud,
            shots: Union[Sequence[Shot], Mapping[int, Shot]],
            masks: Mapping[int, np.ndarray],
            output_dir: Optional[Union[str, Path]] = None,
            occlusion_cloud: Optional[np.ndarray] = None) -> Dict:
        """
        Run the complete pipeline.

        Args:
            mesh: Reconstructed mesh
            reference_cloud: Dense cloud with per-point image observations
            shots: Cameras indexed by image id
            masks: Change mask per image id; masks of images that are no
                   candidate of a visible vertex are skipped
            output_dir: Where to export results (no export if None)
            occlusion_cloud: Cloud voxelized for occlusion (default: mesh vertices)

        Returns:
            Dictionary with results:
                - 'success': bool
                - 'visibility': List[VisibilityResult]
                - 'projected_points': Dict[image_id, (M, 3) array]
                - 'points_path': PLY path or None
                - 'statistics': Dict with run statistics
        """
        log_banner(self.logger, "CHANGE PROJECTION PIPELINE")
        self._reset_stats()

        start_time = time.time()

        # Stage 1: Visibility estimation
        log_stage(self.logger, "Stage 1: Visibility Estimation")
        stage_start = time.time()

        try:
            visibility = self._estimate_visibility(mesh, reference_cloud)
            self.stats['processing_time']['visibility'] = time.time() - stage_start
        except Exception as e:
            self.logger.error(f"✗ Visibility estimation failed: {e}")
            return {'success': False, 'error': str(e)}

        # Stage 2: Occlusion-aware projection
        log_stage(self.logger, "Stage 2: Change Mask Projection")
        stage_start = time.time()

        try:
            cloud = mesh.vertices if occlusion_cloud is None else occlusion_cloud
            projected = self._project_masks(cloud, shots, masks, visibility)
            self.stats['processing_time']['projection'] = time.time() - stage_start
        except Exception as e:
            self.logger.error(f"✗ Change mask projection failed: {e}")
            return {'success': False, 'error': str(e)}

        # Stage 3: Export
        points_path = None
        if self.config.export_points and output_dir is not None:
            log_stage(self.logger, "Stage 3: Export")
            try:
                from .io import save_change_points

                output_dir = Path(output_dir)
                output_dir.mkdir(parents=True, exist_ok=True)
                points_path = output_dir / "change_mask_3d.ply"
                written = save_change_points(list(projected.values()), points_path,
                                             default_color=self.config.point_color)
                if written == 0:
                    points_path = None
            except Exception as e:
                self.logger.error(f"✗ Export failed: {e}")
                return {'success': False, 'error': str(e)}

        total_time = time.time() - start_time
        self.stats['total_time'] = total_time

        log_banner(self.logger, "CHANGE PROJECTION COMPLETE")
        self.logger.info(f"Vertices: {self.stats['num_vertices']:,} "
                         f"({self.stats['visible_vertices']:,} with candidate images)")
        self.logger.info(f"Masks: {self.stats['num_masks']} projected, "
                         f"{self.stats['skipped_masks']} without candidate vertices")
        self.logger.info(f"Projected points: {self.stats['num_projected_points']:,}")
        self.logger.info(f"Total time: {total_time:.2f}s")

        return {
            'success': True,
            'visibility': visibility,
            'projected_points': projected,
            'points_path': str(points_path) if points_path else None,
            'statistics': self.stats
        }

    def _estimate_visibility(self, mesh: Mesh, reference_cloud: ReferenceCloud) -> List[VisibilityResult]:
        resolver = VisibilityResolver(mesh, reference_cloud, self.config.visibility)
        visibility = resolver.resolve_all()

        image_votes = Counter()
        for result in visibility:
            image_votes.update(result.candidate_images)

        self.stats['num_vertices'] = len(visibility)
        self.stats['visible_vertices'] = sum(1 for r in visibility if r.is_visible)
        self.stats['candidate_images'] = dict(image_votes.most_common())
        self.stats['mean_edge_length'] = resolver.mean_edge_length
        return visibility

    def _project_masks(self, cloud: np.ndarray,
                       shots: Union[Sequence[Shot], Mapping[int, Shot]],
                       masks: Mapping[int, np.ndarray],
                       visibility: Sequence[VisibilityResult]) -> Dict[int, np.ndarray]:
        if not masks:
            self.logger.warning("No change masks given, skipping projection")
            return {}

        # Missing cameras are fatal even for masks skipped below
        mask_shots = {image_id: _shot_for(shots, image_id) for image_id in masks}

        candidates = {image_id
                      for result in visibility if result.is_visible
                      for image_id in result.candidate_images}
        selected = []
        for image_id in masks:
            if image_id in candidates:
                selected.append(image_id)
            else:
                self.logger.warning(f"Image {image_id} is no candidate of any vertex, "
                                    f"skipping its change mask")
                self.stats['skipped_masks'] += 1

        if not selected:
            self.logger.warning("No change mask belongs to a candidate image")
            return {}

        grid = OcclusionVoxelGrid.from_cloud(cloud, self.config.occlusion.leaf_size)
        projector = RayVoxelProjector(grid, self.config.occlusion)

        projected = {}
        for image_id in selected:
            result = projector.project_detailed(masks[image_id], mask_shots[image_id])
            projected[image_id] = result.points
            self.stats['num_mask_pixels'] += result.num_rays
            self.stats['num_projected_points'] += len(result)

        self.stats['num_masks'] = len(projected)
        return projected

    def rank_new_images(self,
                        new_image_names: Sequence[str],
                        matches: Union[str, Path, Iterable[str]],
                        registration: Optional[IRegistrationService] = None) -> Dict:
        """
        Rank registered neighbours of new images and optionally register them.

        Args:
            new_image_names: Images to add to the model
            matches: Match report path, or its lines
            registration: Service receiving the rankings

        Returns:
            Dictionary with 'rankings', 'neighbors', 'feature_pairs' and,
            when a service is given, 'registration' (its return value)
        """
        log_stage(self.logger, "Neighbour Ranking")
        matcher = CameraNeighborMatcher(new_image_names, self.config.neighbor_match)

        if isinstance(matches, (str, Path)):
            rankings = matcher.match_file(matches)
        else:
            rankings = matcher.match(matches)

        neighbors, feature_pairs = matcher.top_neighbors(rankings)
        result = {
            'rankings': rankings,
            'neighbors': neighbors,
            'feature_pairs': feature_pairs,
        }

        if registration is not None:
            self.logger.info(f"Registering {len(rankings)} new images...")
            result['registration'] = registration.register_images(rankings)

        return result


def _shot_for(shots: Union[Sequence[Shot], Mapping[int, Shot]], image_id: int) -> Shot:
    """Camera of one image id; sequences accept only ids in range(len(shots))"""
    if isinstance(shots, Mapping):
        shot = shots.get(image_id)
    elif isinstance(image_id, (int, np.integer)) and 0 <= image_id < len(shots):
        shot = shots[image_id]
    else:
        shot = None

    if shot is None:
        raise ValueError(f"No camera for change mask of image {image_id}")
    return shot
