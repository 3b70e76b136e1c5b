"""
Tests for the match report reader and the camera neighbour matcher
"""

import numpy as np
import pytest

from ChangeProjection.config import NeighborMatchConfig
from ChangeProjection.matching import (
    CameraNeighborMatcher,
    MatchStreamReader,
    match_new_images,
    parse_match_stream,
)


def report(*records):
    """Build report lines from (first, second, count) tuples with sequential indices"""
    lines = []
    for first, second, count in records:
        lines.append(f"/imgs/{first}.jpg\n")
        lines.append(f"/imgs/{second}.jpg\n")
        lines.append(f"{count}\n")
        lines.append(" ".join(str(i) for i in range(count)) + "\n")
        lines.append(" ".join(str(100 + i) for i in range(count)) + "\n")
        lines.append("\n")
    return lines


def test_parse_records_without_new_images():
    records = list(parse_match_stream(report(("A", "B", 3), ("B", "C", 2))))

    assert [(r.first, r.second, r.count) for r in records] == [
        ("/imgs/A.jpg", "/imgs/B.jpg", 3),
        ("/imgs/B.jpg", "/imgs/C.jpg", 2),
    ]
    assert records[1].line_number == 7


def test_parse_with_pairs():
    (record, pairs), = list(parse_match_stream(report(("A", "B", 3)), with_pairs=True))

    assert record.count == 3
    assert pairs.tolist() == [[0, 100], [1, 101], [2, 102]]


def test_pairs_may_wrap_lines():
    lines = ["/a.jpg", "/b.jpg", "2 7", "8", "9 10"]
    reader = MatchStreamReader(lines)

    record = next(reader.records())

    assert record.count == 2
    assert reader.read_pairs(record.count).tolist() == [[7, 9], [8, 10]]


def test_only_slash_lines_open_records():
    lines = ["\\imgs\\A.jpg", "\\imgs\\B.jpg", "3", "0 1 2", "3 4 5",
             "/imgs/C.jpg", "/imgs/D.jpg", "1", "7", "8"]

    records = list(parse_match_stream(lines))

    assert [(r.first, r.second, r.count, r.line_number) for r in records] == [
        ("/imgs/C.jpg", "/imgs/D.jpg", 1, 6),
    ]


def test_equal_counts_favour_later_record():
    matcher = CameraNeighborMatcher(["/imgs/B.jpg"])

    rankings = matcher.match(report(("A", "B", 5), ("C", "B", 5)))

    ranking = rankings["/imgs/B.jpg"]
    assert list(ranking.neighbors) == ["/imgs/C.jpg", "/imgs/A.jpg"]
    assert ranking.best_count == 5


def test_weaker_record_after_stronger_is_ignored():
    matcher = CameraNeighborMatcher(["/imgs/B.jpg"])

    rankings = matcher.match(report(("A", "B", 3), ("C", "B", 7), ("D", "B", 4)))

    assert list(rankings["/imgs/B.jpg"].neighbors) == ["/imgs/C.jpg", "/imgs/A.jpg"]
    assert matcher.stats == {'records': 3, 'accepted': 2, 'rejected_new_first': 0}


def test_new_image_never_neighbours_another_new_image():
    new_images = ["/imgs/B.jpg", "/imgs/N.jpg"]
    matcher = CameraNeighborMatcher(new_images)

    rankings = matcher.match(report(("N", "B", 50), ("A", "B", 2)))

    assert list(rankings["/imgs/B.jpg"].neighbors) == ["/imgs/A.jpg"]
    assert len(rankings["/imgs/N.jpg"]) == 0
    assert matcher.stats['rejected_new_first'] == 1


def test_feature_pairs_follow_neighbours():
    matcher = CameraNeighborMatcher(["/imgs/B.jpg"])

    rankings = matcher.match(report(("A", "B", 1), ("C", "B", 2)))

    pairs = list(rankings["/imgs/B.jpg"].feature_pairs)
    assert pairs[0].tolist() == [[0, 100], [1, 101]]
    assert pairs[1].tolist() == [[0, 100]]


def test_top_neighbors_truncated_to_k():
    lines = report(("A", "B", 1), ("C", "B", 2), ("D", "B", 3), ("E", "X", 1))

    neighbors, pairs = match_new_images(["/imgs/B.jpg", "/imgs/X.jpg"], lines, k=2)

    assert neighbors == [["/imgs/D.jpg", "/imgs/C.jpg"], ["/imgs/E.jpg"]]
    assert [len(p) for p in pairs] == [2, 1]


def test_zero_count_record_accepted_while_best_is_zero():
    lines = ["/imgs/A.jpg", "/imgs/B.jpg", "0", "", ""]

    rankings = CameraNeighborMatcher(["/imgs/B.jpg"]).match(lines)

    ranking = rankings["/imgs/B.jpg"]
    assert list(ranking.neighbors) == ["/imgs/A.jpg"]
    assert ranking.feature_pairs[0].shape == (0, 2)


def test_missing_count_is_fatal():
    with pytest.raises(ValueError):
        CameraNeighborMatcher(["/imgs/B.jpg"]).match(["/imgs/A.jpg", "/imgs/B.jpg", "/imgs/C.jpg"])

    with pytest.raises(ValueError):
        CameraNeighborMatcher(["/imgs/B.jpg"]).match(["/imgs/A.jpg", "/imgs/B.jpg"])


def test_non_numeric_count_is_fatal():
    with pytest.raises(ValueError):
        list(parse_match_stream(["/a.jpg", "/b.jpg", "many"]))


def test_truncated_pairs_of_accepted_record_are_fatal():
    lines = ["/imgs/A.jpg", "/imgs/B.jpg", "3", "1 2 3", "4"]

    with pytest.raises(ValueError):
        CameraNeighborMatcher(["/imgs/B.jpg"]).match(lines)


def test_match_file(tmp_path):
    path = tmp_path / "matches.txt"
    path.write_text("".join(report(("A", "B", 2))))
    matcher = CameraNeighborMatcher(["/imgs/B.jpg"], NeighborMatchConfig(k_neighbors=1))

    neighbors, _ = matcher.top_neighbors(matcher.match_file(path))

    assert neighbors == [["/imgs/A.jpg"]]

    with pytest.raises(FileNotFoundError):
        matcher.match_file(tmp_path / "missing.txt")


def test_ranking_pairs_are_arrays():
    rankings = CameraNeighborMatcher(["/imgs/B.jpg"]).match(report(("A", "B", 2)))

    assert isinstance(rankings["/imgs/B.jpg"].feature_pairs[0], np.ndarray)
