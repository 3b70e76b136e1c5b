"""
Base interface for the external incremental registration tool.

Ranked neighbour lists are handed to an implementation of this contract
instead of launching a reconstruction binary from inside the engine.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from ..structures import NeighborRanking


class IRegistrationService(ABC):
    """Registers new images into an existing model using ranked neighbours"""

    @abstractmethod
    def register_images(self, rankings: Dict[str, NeighborRanking]) -> Any:
        """
        Register new images.

        Args:
            rankings: Ranked registered neighbours per new image name

        Returns:
            Updated model, in whatever form the implementation produces
        """
        pass
