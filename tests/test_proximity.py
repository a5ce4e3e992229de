"""Tests for the brute-force neighbor search"""

import numpy as np
import pytest

from proximity import Metric, ProximityIndex
from utils import InvalidConfiguration


SQUARE = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [10.0, 10.0]])


def squared_distances(positions, i):
    d = ((positions - positions[i]) ** 2).sum(axis=1)
    d[i] = np.inf
    return d


class TestConfiguration:

    @pytest.mark.parametrize("count, k", [(0, 0), (-1, 0), (5, -1), (5, 5), (5, 9), (1, 1)])
    def test_rejects_invalid_sizes(self, count, k):
        with pytest.raises(InvalidConfiguration):
            ProximityIndex(count, k)

    def test_starts_zero_filled(self):
        index = ProximityIndex(6, 2)
        assert index.table.shape == (6, 2)
        assert np.all(index.table == 0)

    def test_metric_from_name(self):
        assert Metric.from_name("squared_euclidean") is Metric.SQUARED_EUCLIDEAN
        assert Metric.from_name("DIRECTIONAL_SUM") is Metric.DIRECTIONAL_SUM
        with pytest.raises(InvalidConfiguration):
            Metric.from_name("chebyshev")


class TestRebuild:

    def test_square_scenario(self):
        index = ProximityIndex(4, 1)
        table = index.rebuild(SQUARE)
        # 0 and 3 are equidistant from 1 and 2; the lower index wins
        assert table.tolist() == [[1], [0], [0], [1]]

    def test_two_particles(self):
        index = ProximityIndex(2, 1)
        table = index.rebuild(np.array([[3.0, 4.0], [-1.0, 2.0]]))
        assert table.tolist() == [[1], [0]]

    def test_single_particle_without_neighbors(self):
        index = ProximityIndex(1, 0)
        table = index.rebuild(np.array([[5.0, 5.0]]))
        assert table.shape == (1, 0)

    def test_zero_neighbors(self):
        index = ProximityIndex(4, 0)
        assert index.rebuild(SQUARE).shape == (4, 0)

    @pytest.mark.parametrize("k", [1, 3, 8])
    def test_matches_brute_force_reference(self, k):
        rng = np.random.default_rng(42)
        positions = rng.uniform(-500, 500, size=(120, 2)).astype(np.float32)
        table = ProximityIndex(120, k).rebuild(positions)
        reference = positions.astype(np.float64)

        for i, row in enumerate(table):
            d = squared_distances(reference, i)
            assert i not in row
            assert len(set(row.tolist())) == k
            found = d[row]
            assert np.all(np.diff(found) >= 0)
            np.testing.assert_allclose(found, np.sort(d)[:k])

    def test_ties_prefer_lower_index(self):
        # Every other particle is at distance 1 from the center one
        ring = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [-1.0, 0.0], [0.0, -1.0]])
        table = ProximityIndex(5, 3).rebuild(ring)
        assert table[0].tolist() == [1, 2, 3]

    def test_coincident_particles(self):
        positions = np.zeros((4, 2))
        table = ProximityIndex(4, 3).rebuild(positions)
        for i, row in enumerate(table.tolist()):
            assert row == [j for j in range(4) if j != i]

    def test_idempotent(self):
        rng = np.random.default_rng(5)
        positions = rng.normal(size=(60, 2))
        index = ProximityIndex(60, 2)
        first = index.rebuild(positions).copy()
        second = index.rebuild(positions)
        np.testing.assert_array_equal(first, second)

    def test_nan_positions_do_not_abort(self):
        positions = np.array([[0.0, 0.0], [1.0, 0.0], [np.nan, 0.0], [0.0, 2.0]])
        table = ProximityIndex(4, 2).rebuild(positions)

        # The malformed particle ranks last for everyone else
        for i in (0, 1, 3):
            assert 2 not in table[i].tolist()
        # and its own row still holds distinct, valid neighbors
        assert table[2].tolist() == [0, 1]

    def test_positions_left_untouched(self):
        positions = SQUARE.copy()
        positions.flags.writeable = False
        ProximityIndex(4, 2).rebuild(positions)
        np.testing.assert_array_equal(positions, SQUARE)

    def test_rejects_wrong_shape(self):
        index = ProximityIndex(4, 1)
        with pytest.raises(ValueError):
            index.rebuild(np.zeros((3, 2)))
        with pytest.raises(ValueError):
            index.rebuild(np.zeros((4, 3)))

    def test_directional_sum_is_not_a_distance(self):
        table = ProximityIndex(4, 1).rebuild(SQUARE, Metric.DIRECTIONAL_SUM)
        # Signed dx + dy favours the far corner for particle 0
        assert table[0].tolist() == [3]
        assert table[3].tolist() == [1]


class TestPublishing:
    """A published table is complete and never written again."""

    def test_published_table_is_read_only(self):
        index = ProximityIndex(4, 1)
        table = index.rebuild(SQUARE)
        with pytest.raises(ValueError):
            table[0, 0] = 2

    def test_old_table_survives_rebuild(self):
        index = ProximityIndex(4, 1)
        old = index.rebuild(SQUARE)
        snapshot = old.copy()

        moved = SQUARE.copy()
        moved[3] = [0.1, 0.1]
        new = index.rebuild(moved)

        np.testing.assert_array_equal(old, snapshot)
        assert new is not old
        assert index.table is new
        assert index.neighbors_of(1).tolist() == [3]

    def test_rebuild_count(self):
        index = ProximityIndex(4, 1)
        for _ in range(3):
            index.rebuild(SQUARE)
        assert index.rebuild_count == 3
