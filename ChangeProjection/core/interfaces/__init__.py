from .base_index import ISpatialIndex
from .base_registration import IRegistrationService

__all__ = [
    'ISpatialIndex',
    'IRegistrationService',
]
