# particle.py
"""
Manages the state of all fireflies in the simulation.

This module defines the ParticleStore class, which is responsible for
initializing and storing particle data (position, motion parameters and
visual attributes) in NumPy arrays, and for integrating positions forward
in time under one of the kinematic policies.
"""
import logging
import numpy as np
from typing import Dict, Any, Optional, Tuple

from constants import (
    SPEED_RANGE, HEADING_RANGE, VISUAL_ATTRIBUTE_RANGES, DEFAULT_KINEMATIC_POLICY
)
from utils import fail_configuration, require_keys

# --- Data Contracts ---
#
# sample_fields(rng, count, ranges) -> Dict[str, np.ndarray]:
#   - Inputs:
#     - rng: numpy Generator used for every draw.
#     - count: number of records to generate.
#     - ranges: mapping of field name -> (low, high) uniform range.
#   - Outputs: mapping of field name -> float32 array of shape (count,).
#
# class ParticleStore:
#   - __init__(self, params: Dict[str, Any], width: float, height: float):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "particle_count": int (required, >= 1)
#         - "kinematic_policy": "linear" | "heading" (optional)
#         - "seed": int | None (optional)
#       - width, height: size of the spawn region, centered on the origin.
#     - Raises: InvalidConfiguration on a bad count or policy name.
#     - Invariants:
#       - positions is a float32 array of shape (N, 2).
#       - the five visual attribute arrays are float32, shape (N,), and
#         read-only.
#       - N never changes.
#
#   - integrate(self, dt: float) -> None:
#     - Side Effects: positions += velocity * dt for every particle.
#     - Raises: ValueError if dt is negative or NaN.

def sample_fields(
    rng: np.random.Generator, count: int, ranges: Dict[str, Tuple[float, float]]
) -> Dict[str, np.ndarray]:
    """
    Draws `count` independent values for every field from its uniform range.

    Each field gets its own draw, so no two fields share random numbers.
    """
    fields = {}
    for name, (low, high) in ranges.items():
        values = rng.uniform(low, high, size=count).astype(np.float32)
        values.flags.writeable = False
        fields[name] = values
    return fields


class LinearDrift:
    """
    Constant velocity components (ax, ay) per particle.
    """
    name = "linear"

    def __init__(self, components: np.ndarray):
        self.components = np.asarray(components, dtype=np.float32)
        self.components.flags.writeable = False

    @classmethod
    def sample(cls, rng: np.random.Generator, count: int) -> "LinearDrift":
        low, high = SPEED_RANGE
        components = rng.uniform(low, high, size=(count, 2))
        return cls(components)

    def velocities(self) -> np.ndarray:
        return self.components

    def advance(self, positions: np.ndarray, dt: np.float32) -> None:
        positions += self.components * dt


class HeadingDrift:
    """
    Scalar speed and heading (radians) per particle.

    The velocity is derived from speed and heading on every call, so the
    motion parameters stay the single source of truth.
    """
    name = "heading"

    def __init__(self, speed: np.ndarray, heading: np.ndarray):
        self.speed = np.asarray(speed, dtype=np.float32)
        self.heading = np.asarray(heading, dtype=np.float32)
        self.speed.flags.writeable = False
        self.heading.flags.writeable = False

    @classmethod
    def sample(cls, rng: np.random.Generator, count: int) -> "HeadingDrift":
        fields = sample_fields(rng, count, {"speed": SPEED_RANGE, "heading": HEADING_RANGE})
        # float32(2*pi) lies above 2*pi; keep the range half-open.
        top = np.nextafter(np.float32(HEADING_RANGE[1]), np.float32(0))
        return cls(fields["speed"], np.minimum(fields["heading"], top))

    def velocities(self) -> np.ndarray:
        return np.column_stack((
            self.speed * np.cos(self.heading),
            self.speed * np.sin(self.heading),
        )).astype(np.float32)

    def advance(self, positions: np.ndarray, dt: np.float32) -> None:
        positions += self.velocities() * dt


KINEMATIC_POLICIES = {
    LinearDrift.name: LinearDrift,
    HeadingDrift.name: HeadingDrift,
}


class ParticleStore:
    """
    A container for all fireflies, managing their state via NumPy arrays.
    """
    def __init__(self, params: Dict[str, Any], width: float, height: float):
        """
        Initializes the particle store.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
            width (float): The width of the spawn region.
            height (float): The height of the spawn region.
        """
        require_keys(params, ['particle_count'], 'simulation_parameters')
        self.particle_count = int(params['particle_count'])
        self.policy_name = params.get('kinematic_policy', DEFAULT_KINEMATIC_POLICY)
        self.seed: Optional[int] = params.get('seed')

        if self.particle_count < 1:
            fail_configuration(
                f"Configuration error: particle_count must be at least 1, "
                f"got {self.particle_count}."
            )
        if self.policy_name not in KINEMATIC_POLICIES:
            fail_configuration(
                f"Configuration error: unknown kinematic_policy '{self.policy_name}'. "
                f"Expected one of: {', '.join(sorted(KINEMATIC_POLICIES))}."
            )
        if width < 0 or height < 0:
            fail_configuration(
                f"Configuration error: spawn region must be non-negative, "
                f"got {width}x{height}."
            )

        self.width = float(width)
        self.height = float(height)

        # All randomness in this store comes from one generator. With no
        # seed it draws fresh OS entropy.
        self.rng = np.random.default_rng(self.seed)

        half_w, half_h = self.width / 2, self.height / 2
        self._positions = self.rng.uniform(
            low=[-half_w, -half_h],
            high=[half_w, half_h],
            size=(self.particle_count, 2)
        ).astype(np.float32)
        self.policy = KINEMATIC_POLICIES[self.policy_name].sample(self.rng, self.particle_count)

        attributes = sample_fields(self.rng, self.particle_count, VISUAL_ATTRIBUTE_RANGES)
        self.hue = attributes['hue']
        self.saturation = attributes['saturation']
        self.lightness = attributes['lightness']
        self.alpha = attributes['alpha']
        self.radius = attributes['radius']

        logging.info(
            f"ParticleStore initialized with {self.particle_count} "
            f"particles using the '{self.policy_name}' kinematic policy."
        )
        logging.debug(
            f"Particle data arrays created. "
            f"Positions shape: {self._positions.shape}, "
            f"spawn region: {self.width:.0f}x{self.height:.0f}"
        )

    @property
    def positions(self) -> np.ndarray:
        """A read-only view of the (N, 2) position array."""
        view = self._positions.view()
        view.flags.writeable = False
        return view

    def velocities(self) -> np.ndarray:
        """The (N, 2) velocity of every particle under the active policy."""
        return self.policy.velocities()

    def visual_attributes(self) -> Dict[str, np.ndarray]:
        return {
            'hue': self.hue,
            'saturation': self.saturation,
            'lightness': self.lightness,
            'alpha': self.alpha,
            'radius': self.radius,
        }

    def integrate(self, dt: float) -> None:
        """
        Advances every particle by its velocity times `dt` seconds.

        There is no wraparound or bounds check; fireflies may drift off
        screen indefinitely.
        """
        if not dt >= 0:
            raise ValueError(f"Elapsed time must be a non-negative number, got {dt}.")
        self.policy.advance(self._positions, np.float32(dt))
