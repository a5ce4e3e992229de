# proximity.py
"""
Computes the K nearest neighbors of every firefly.

This module defines the ProximityIndex class, which owns the neighbor
table used to draw edges between fireflies. The search is a brute-force
O(N^2) scan compiled with Numba; each row keeps only its K best candidates
in a small insertion buffer instead of sorting all N distances.
"""
import logging
import threading
from enum import Enum

import numpy as np
from numba import jit

from utils import fail_configuration

# --- Data Contracts ---
#
# class ProximityIndex:
#   - __init__(self, particle_count: int, neighbor_count: int):
#     - Raises: InvalidConfiguration if particle_count < 1,
#       neighbor_count < 0 or neighbor_count >= particle_count.
#     - Side Effects: Allocates a zero-filled (N, K) int64 table.
#
#   - rebuild(self, positions: np.ndarray, metric: Metric) -> np.ndarray:
#     - Inputs:
#       - positions: (N, 2) array. Never modified.
#       - metric: distance used to rank candidates.
#     - Outputs: The newly published (N, K) table.
#     - Invariants:
#       - Row i holds the K other particles closest to i, closest first.
#       - i never appears in row i.
#       - Ties keep the lower index first. NaN ranks after every number.
#       - A published table is complete and read-only; rebuilds always
#         write to a fresh buffer and swap it in afterwards.


class Metric(Enum):
    """How the distance between two fireflies is measured."""
    SQUARED_EUCLIDEAN = 0
    # Signed dx + dy. Not a true distance, only used for the very first
    # table when configured to do so.
    DIRECTIONAL_SUM = 1

    @classmethod
    def from_name(cls, name: str) -> "Metric":
        try:
            return cls[name.upper()]
        except KeyError:
            fail_configuration(
                f"Configuration error: unknown metric '{name}'. Expected one of: "
                f"{', '.join(m.name.lower() for m in cls)}."
            )


_DIRECTIONAL_SUM = Metric.DIRECTIONAL_SUM.value


@jit(nopython=True, nogil=True)
def _nearest_neighbors_numba(positions, table, metric):
    """
    Numba-jitted brute-force K-nearest-neighbor search.

    Candidates are visited in index order and an entry only displaces
    strictly larger ones, which gives the (distance, index) ordering.
    """
    particle_count = positions.shape[0]
    k = table.shape[1]
    if k == 0:
        return

    best_dist = np.empty(k, dtype=np.float64)
    best_idx = np.empty(k, dtype=np.int64)

    for i in range(particle_count):
        xi = positions[i, 0]
        yi = positions[i, 1]
        filled = 0

        for j in range(particle_count):
            if i == j:
                continue

            dx = xi - positions[j, 0]
            dy = yi - positions[j, 1]
            if metric == _DIRECTIONAL_SUM:
                dist = dx + dy
            else:
                dist = dx * dx + dy * dy

            # NaN compares false against everything; rank it last instead.
            if dist != dist:
                dist = np.inf

            if filled < k:
                slot = filled
                filled += 1
            elif dist < best_dist[k - 1]:
                slot = k - 1
            else:
                continue

            while slot > 0 and best_dist[slot - 1] > dist:
                best_dist[slot] = best_dist[slot - 1]
                best_idx[slot] = best_idx[slot - 1]
                slot -= 1
            best_dist[slot] = dist
            best_idx[slot] = j

        for e in range(k):
            table[i, e] = best_idx[e]


class ProximityIndex:
    """
    Owns the neighbor table and rebuilds it from particle positions.
    """
    def __init__(self, particle_count: int, neighbor_count: int):
        """
        Initializes an empty neighbor table.

        Args:
            particle_count (int): Number of particles, N.
            neighbor_count (int): Neighbors kept per particle, K.
        """
        if particle_count < 1:
            fail_configuration(
                f"Configuration error: particle_count must be at least 1, "
                f"got {particle_count}."
            )
        if neighbor_count < 0:
            fail_configuration(
                f"Configuration error: neighbor_count must be non-negative, "
                f"got {neighbor_count}."
            )
        if neighbor_count >= particle_count:
            fail_configuration(
                f"Configuration error: neighbor_count ({neighbor_count}) must be "
                f"smaller than particle_count ({particle_count}); a particle cannot "
                f"have that many distinct neighbors."
            )

        self.particle_count = particle_count
        self.neighbor_count = neighbor_count
        self.rebuild_count = 0

        self._lock = threading.Lock()
        self._table = np.zeros((particle_count, neighbor_count), dtype=np.int64)
        self._table.flags.writeable = False

        logging.info(
            f"ProximityIndex initialized for {particle_count} particles, "
            f"{neighbor_count} neighbors each."
        )

    @property
    def table(self) -> np.ndarray:
        """The most recently published (N, K) neighbor table."""
        with self._lock:
            return self._table

    def neighbors_of(self, i: int) -> np.ndarray:
        return self.table[i]

    def rebuild(self, positions: np.ndarray, metric: Metric = Metric.SQUARED_EUCLIDEAN) -> np.ndarray:
        """
        Recomputes the whole neighbor table from `positions`.

        The search runs on a private float64 copy of the positions and writes
        into a fresh buffer, which is published only once every row is done.
        """
        positions = np.asarray(positions)
        if positions.shape != (self.particle_count, 2):
            raise ValueError(
                f"Expected positions of shape ({self.particle_count}, 2), "
                f"got {positions.shape}."
            )

        coords = np.ascontiguousarray(positions, dtype=np.float64)
        staging = np.empty((self.particle_count, self.neighbor_count), dtype=np.int64)
        _nearest_neighbors_numba(coords, staging, metric.value)
        staging.flags.writeable = False

        with self._lock:
            self._table = staging
            self.rebuild_count += 1

        logging.debug(f"Neighbor table rebuilt ({metric.name.lower()}), rebuild #{self.rebuild_count}.")
        return staging
