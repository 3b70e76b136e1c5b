from .geometry import (
    Mesh,
    ReferenceCloud,
    ImageFeature,
    PointCorrespondence,
)
from .results import (
    VisibilityResult,
    MatchRecord,
    NeighborRanking,
)

__all__ = [
    # Geometry
    'Mesh',
    'ReferenceCloud',
    'ImageFeature',
    'PointCorrespondence',

    # Results
    'VisibilityResult',
    'MatchRecord',
    'NeighborRanking',
]
