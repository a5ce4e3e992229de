# simulation.py
"""
Handles the per-frame simulation logic.

This module defines the Simulation class, which advances the fireflies by
one frame and keeps their neighbor table current. Neighbor rebuilds can run
inline or on a background NeighborWorker thread.
"""
import logging
import queue
import threading
from typing import Dict, Any, Optional

import numpy as np

from constants import DEFAULT_NEIGHBOR_COUNT, DEFAULT_INITIAL_METRIC
from particle import ParticleStore
from proximity import Metric, ProximityIndex

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, particles: ParticleStore, params: Dict[str, Any],
#              async_rebuild: bool = False):
#     - Inputs:
#       - particles: An initialized ParticleStore object.
#       - params: Dictionary of simulation parameters from config.json.
#         - "neighbor_count": int
#         - "rebuild_neighbors": bool
#         - "initial_metric": "squared_euclidean" | "directional_sum"
#       - async_rebuild: run rebuilds on a NeighborWorker thread.
#     - Raises: InvalidConfiguration (from ProximityIndex / Metric).
#     - Side Effects: Builds the first neighbor table when rebuilds are on.
#
#   - step(self, dt: float) -> None:
#     - Side Effects: Integrates positions, then rebuilds or schedules a
#       rebuild of the neighbor table.
#     - Invariants: Particle count remains constant. The published table is
#       always complete.
#
# class NeighborWorker(threading.Thread):
#   - submit(positions): queue a copy of positions, replacing any pending one.
#   - wait(): block until every submitted snapshot has been processed.
#   - stop(): finish the current rebuild and exit.
#   - A rebuild that raises is logged and counted in failed_rebuilds; the
#     worker keeps running and the last good table stays published.

class NeighborWorker(threading.Thread):
    """
    Rebuilds the neighbor table in the background from position snapshots.

    Only the newest snapshot is kept; older pending ones are dropped.
    """
    def __init__(self, index: ProximityIndex, metric: Metric = Metric.SQUARED_EUCLIDEAN):
        super().__init__(daemon=True, name="neighbor-worker")
        self.index = index
        self.metric = metric
        self.snapshots: "queue.Queue[Optional[np.ndarray]]" = queue.Queue(maxsize=1)
        self.running = True
        self.failed_rebuilds = 0

    def submit(self, positions: np.ndarray) -> None:
        snapshot = np.array(positions, copy=True)
        self._discard_pending()
        self.snapshots.put_nowait(snapshot)

    def _discard_pending(self) -> None:
        try:
            self.snapshots.get_nowait()
        except queue.Empty:
            return
        self.snapshots.task_done()

    def run(self):
        while self.running:
            snapshot = self.snapshots.get()
            try:
                if snapshot is None:
                    break
                self.index.rebuild(snapshot, self.metric)
            except Exception:
                # The previous table stays published; keep serving later snapshots.
                self.failed_rebuilds += 1
                logging.exception("Background neighbor rebuild failed.")
            finally:
                self.snapshots.task_done()
        logging.debug("Neighbor worker stopped.")

    def wait(self) -> None:
        self.snapshots.join()

    def stop(self) -> None:
        self.running = False
        self._discard_pending()
        self.snapshots.put_nowait(None)
        self.join()


class Simulation:
    """
    Advances the fireflies and maintains their neighbor table.
    """
    def __init__(self, particles: ParticleStore, params: Dict[str, Any], async_rebuild: bool = False):
        """
        Initializes the simulation environment.

        Args:
            particles (ParticleStore): The fireflies to simulate.
            params (Dict[str, Any]): Simulation parameters from config.
            async_rebuild (bool): Rebuild neighbors on a background thread.
        """
        self.particles = particles
        self.neighbor_count = int(params.get('neighbor_count', DEFAULT_NEIGHBOR_COUNT))
        self.rebuild_neighbors = bool(params.get('rebuild_neighbors', True))
        self.initial_metric = Metric.from_name(params.get('initial_metric', DEFAULT_INITIAL_METRIC))

        self.index = ProximityIndex(particles.particle_count, self.neighbor_count)
        self.worker: Optional[NeighborWorker] = None
        self.elapsed = 0.0
        self.step_count = 0

        if self.rebuild_neighbors:
            self.index.rebuild(particles.positions, self.initial_metric)
            if async_rebuild:
                self.worker = NeighborWorker(self.index)
                self.worker.start()

        mode = "disabled"
        if self.rebuild_neighbors:
            mode = "background thread" if self.worker else "inline"
        logging.info("Simulation logic initialized and configuration validated.")
        logging.info(
            f"Neighbor rebuild: {mode}, K={self.neighbor_count}, "
            f"initial metric {self.initial_metric.name.lower()}."
        )

    @property
    def neighbor_table(self) -> np.ndarray:
        return self.index.table

    def step(self, dt: float):
        """
        Executes one frame of the simulation.

        Args:
            dt (float): Seconds elapsed since the previous frame.
        """
        # 1. Move every firefly
        self.particles.integrate(dt)
        self.elapsed += dt
        self.step_count += 1

        # 2. Refresh the neighbor table, if anyone needs it
        if not self.rebuild_neighbors:
            return
        if self.worker is not None:
            self.worker.submit(self.particles.positions)
        else:
            self.index.rebuild(self.particles.positions)

    def close(self):
        """Stops the background worker, if one is running."""
        if self.worker is not None:
            self.worker.stop()
            self.worker = None
            logging.info("Neighbor worker shut down.")
