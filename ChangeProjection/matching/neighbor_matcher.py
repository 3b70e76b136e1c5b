"""
Camera Neighbor Matcher
=======================

Ranks already-registered images as neighbours of newly added images,
using a pairwise feature match report.

A record (first, second, count) is accepted for new image `second` when
`first` is already registered and `count` is at least the best count seen
so far for `second`. Ties favour the later record. Every accepted record
becomes the new head of the ranking, so rankings read strongest match first.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import NeighborMatchConfig
from ..core.structures import NeighborRanking
from ..logger import get_logger
from .match_stream import MatchStreamReader

logger = get_logger("matching")


class CameraNeighborMatcher:
    """
    Builds NeighborRanking objects for a batch of new images.

    The stream is consumed sequentially: acceptance depends on the running
    best count of each new image.
    """

    def __init__(self, new_image_names: Sequence[str],
                 config: Optional[NeighborMatchConfig] = None):
        self.config = config or NeighborMatchConfig()
        self.config.validate()

        self.new_image_names = list(new_image_names)
        self._new_images = set(self.new_image_names)
        self.stats = {}

    def match(self, lines: Iterable[str]) -> Dict[str, NeighborRanking]:
        """
        Scan a match report.

        Args:
            lines: Report lines

        Returns:
            Ranking per new image, in `new_image_names` order

        Raises:
            ValueError: On a missing or invalid match count, or a truncated
                        index block of an accepted record
        """
        self.stats = {'records': 0, 'accepted': 0, 'rejected_new_first': 0}
        rankings = {name: NeighborRanking(image_name=name) for name in self.new_image_names}
        reader = MatchStreamReader(lines)

        for record in reader.records():
            self.stats['records'] += 1

            ranking = rankings.get(record.second)
            if ranking is None:
                continue

            if record.first in self._new_images:
                self.stats['rejected_new_first'] += 1
                continue

            if record.count < ranking.best_count:
                continue

            pairs = reader.read_pairs(record.count)
            ranking.push(record.first, record.count, pairs)
            self.stats['accepted'] += 1
            logger.debug(f"{record.second}: {record.first} accepted with {record.count} matches")

        unmatched = [name for name, ranking in rankings.items() if len(ranking) == 0]
        logger.info(
            f"✓ Neighbours ranked for {len(rankings) - len(unmatched)}/{len(rankings)} new images "
            f"({self.stats['accepted']} of {self.stats['records']} records accepted)"
        )
        if unmatched:
            logger.warning(f"No registered neighbour found for: {', '.join(unmatched)}")

        return rankings

    def match_file(self, matches_path: Union[str, Path]) -> Dict[str, NeighborRanking]:
        """Scan a match report file"""
        matches_path = Path(matches_path)
        if not matches_path.exists():
            raise FileNotFoundError(f"Match report not found: {matches_path}")

        logger.info(f"Finding nearest neighbors for new cameras from {matches_path}...")
        with open(matches_path, 'r') as f:
            return self.match(f)

    def top_neighbors(self, rankings: Dict[str, NeighborRanking]
                      ) -> Tuple[List[List[str]], List[List[np.ndarray]]]:
        """First config.k_neighbors entries of each ranking, in new image order"""
        k = self.config.k_neighbors
        neighbor_lists = []
        feature_pair_lists = []
        for name in self.new_image_names:
            neighbors, pairs = rankings[name].top(k)
            neighbor_lists.append(neighbors)
            feature_pair_lists.append(pairs)
        return neighbor_lists, feature_pair_lists


def match_new_images(new_image_names: Sequence[str],
                     lines: Iterable[str],
                     k: int) -> Tuple[List[List[str]], List[List[np.ndarray]]]:
    """
    Rank registered neighbours for each new image.

    Args:
        new_image_names: Images being registered
        lines: Match report lines
        k: Neighbours kept per image

    Returns:
        neighbor_lists: Per new image, up to k neighbour names, strongest first
        feature_pair_lists: Matching (count, 2) feature index arrays
    """
    matcher = CameraNeighborMatcher(new_image_names, NeighborMatchConfig(k_neighbors=k))
    return matcher.top_neighbors(matcher.match(lines))
