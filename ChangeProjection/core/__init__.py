"""
Core contracts and data structures.

    interfaces/  - Abstract collaborators (spatial index, registration service)
    structures/  - Mesh, reference cloud, features and result containers
"""

from .interfaces import ISpatialIndex, IRegistrationService
from .structures import (
    Mesh,
    ReferenceCloud,
    ImageFeature,
    PointCorrespondence,
    VisibilityResult,
    MatchRecord,
    NeighborRanking,
)

__all__ = [
    'ISpatialIndex',
    'IRegistrationService',
    'Mesh',
    'ReferenceCloud',
    'ImageFeature',
    'PointCorrespondence',
    'VisibilityResult',
    'MatchRecord',
    'NeighborRanking',
]
