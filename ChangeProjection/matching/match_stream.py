"""
Pairwise match report reader.

Report layout, one field per line:

    /path/to/first.jpg
    /path/to/second.jpg
    <match count>
    <count feature indices in the first image>
    <count feature indices in the second image>

Only lines starting with '/' open a record; anything else
between records (blank lines, skipped index blocks) is ignored. Feature
indices are read as whitespace separated tokens and may wrap lines.
"""

from typing import Iterable, Iterator, List, Optional

import numpy as np

from ..core.structures import MatchRecord

RECORD_PREFIX = '/'


class MatchStreamReader:
    """
    Sequential reader over a match report.

    `records()` yields record headers; right after receiving one, the
    caller may call `read_pairs(record.count)` to consume its index block.
    Blocks that are not read are skipped when scanning for the next record.
    """

    def __init__(self, lines: Iterable[str]):
        self._lines = iter(lines)
        self._line_number = 0
        self._pending: List[str] = []

    def _next_line(self) -> Optional[str]:
        line = next(self._lines, None)
        if line is None:
            return None
        self._line_number += 1
        return line.rstrip('\r\n')

    def records(self) -> Iterator[MatchRecord]:
        """Yield the header of every record in the stream"""
        while True:
            line = self._next_line()
            if line is None:
                return
            if not line.startswith(RECORD_PREFIX):
                continue

            first = line.strip()
            header_line = self._line_number

            second = self._next_line()
            if second is None:
                raise ValueError(f"Line {header_line}: record '{first}' has no second image")

            count = self._read_count(first)
            yield MatchRecord(first=first, second=second.strip(), count=count, line_number=header_line)
            self._pending = []

    def _read_count(self, first: str) -> int:
        while True:
            line = self._next_line()
            if line is None:
                raise ValueError(f"Unexpected end of stream: record '{first}' has no match count")
            tokens = line.split()
            if tokens:
                break

        try:
            count = int(tokens[0])
        except ValueError:
            raise ValueError(
                f"Line {self._line_number}: invalid match count '{tokens[0]}' for record '{first}'"
            ) from None
        if count < 0:
            raise ValueError(f"Line {self._line_number}: negative match count {count} for record '{first}'")

        self._pending = tokens[1:]
        return count

    def read_pairs(self, count: int) -> np.ndarray:
        """
        Read the index block of the current record.

        Returns:
            (count, 2) int array of (first image feature, second image feature)

        Raises:
            ValueError: If the block is truncated or holds non-integer tokens
        """
        needed = 2 * count
        tokens = self._pending
        self._pending = []

        while len(tokens) < needed:
            line = self._next_line()
            if line is None or line.startswith(RECORD_PREFIX):
                raise ValueError(
                    f"Line {self._line_number}: expected {needed} feature indices, found {len(tokens)}"
                )
            tokens.extend(line.split())

        try:
            values = np.array([int(token) for token in tokens[:needed]], dtype=np.int64)
        except ValueError as e:
            raise ValueError(f"Line {self._line_number}: invalid feature index ({e})") from None

        return np.stack([values[:count], values[count:]], axis=1)


def parse_match_stream(lines: Iterable[str], with_pairs: bool = False) -> Iterator[MatchRecord]:
    """
    Iterate over the records of a match report.

    Args:
        lines: Report lines (an open text file works)
        with_pairs: Also read and validate each record's index block;
                    the pairs are returned as `(record, pairs)` tuples

    Yields:
        MatchRecord, or (MatchRecord, pairs) when with_pairs is True
    """
    reader = MatchStreamReader(lines)
    for record in reader.records():
        if with_pairs:
            yield record, reader.read_pairs(record.count)
        else:
            yield record
