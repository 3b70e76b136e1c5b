"""
Change Projection Module
========================

Locates 2D image changes on a reconstructed 3D scene:
- Vertex-to-camera visibility by nearest-neighbour correspondence voting
- Ray-voxel occlusion projection of change masks
- Correspondence and two-view triangulation projection paths
- Ranking of registered neighbours for newly added images

Architecture:
    core/        - Data structures and abstract collaborators
    camera/      - Calibrated pinhole shots
    spatial/     - KD-tree index and occlusion voxel grid
    visibility/  - Vertex visibility resolver
    projection/  - Change mask projectors
    matching/    - Match report reader and neighbour matcher
    io/          - PLY, mask, camera and list I/O (Open3D / OpenCV)

Example:
    >>> from ChangeProjection import ChangeProjectionPipeline
    >>> from ChangeProjection.io import load_mesh, load_reference_cloud, load_shots, load_mask
    >>>
    >>> pipeline = ChangeProjectionPipeline()
    >>> result = pipeline.run(
    >>>     mesh=load_mesh('./mesh.ply'),
    >>>     reference_cloud=load_reference_cloud('./dense.ply', './observations.txt'),
    >>>     shots=load_shots('./cameras.json'),
    >>>     masks={3: load_mask('./change_3.png')},
    >>>     output_dir='./change_output'
    >>> )
"""

from .camera import Shot
from .config import (
    ChangeProjectionConfig,
    VisibilityConfig,
    OcclusionConfig,
    NeighborMatchConfig,
    get_preset_config,
)
from .core import (
    Mesh,
    ReferenceCloud,
    ImageFeature,
    PointCorrespondence,
    VisibilityResult,
    MatchRecord,
    NeighborRanking,
    ISpatialIndex,
    IRegistrationService,
)
from .matching import CameraNeighborMatcher, parse_match_stream
from .pipeline import ChangeProjectionPipeline
from .projection import CorrespondenceProjector, RayVoxelProjector, triangulate_mask
from .spatial import KDTreeIndex, OcclusionVoxelGrid
from .visibility import VisibilityResolver

__version__ = "1.0.0"
__all__ = [
    'ChangeProjectionPipeline',
    'ChangeProjectionConfig',
    'VisibilityConfig',
    'OcclusionConfig',
    'NeighborMatchConfig',
    'get_preset_config',
    'Shot',
    'Mesh',
    'ReferenceCloud',
    'ImageFeature',
    'PointCorrespondence',
    'VisibilityResult',
    'MatchRecord',
    'NeighborRanking',
    'ISpatialIndex',
    'IRegistrationService',
    'KDTreeIndex',
    'OcclusionVoxelGrid',
    'VisibilityResolver',
    'RayVoxelProjector',
    'CorrespondenceProjector',
    'triangulate_mask',
    'CameraNeighborMatcher',
    'parse_match_stream',
]
