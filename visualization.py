# visualization.py
"""
Handles the visualization of the fireflies using Pygame.
"""
import logging
import math
from typing import List, Optional, Tuple

import numpy as np
import pygame

from constants import (
    BACKGROUND_COLOR, DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT, EDGE_COLOR,
    EDGE_WIDTH, FPS, FULLSCREEN, HALO_DIMMING, HALO_SIZE_RATIO
)
from particle import ParticleStore

# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, fullscreen, width, height, fps, draw_edges):
#     - Side Effects: Initializes Pygame and creates a display surface.
#       sim_width / sim_height hold the resulting viewport size.
#
#   - tick(self) -> float:
#     - Outputs: seconds elapsed since the previous tick (>= 0).
#
#   - draw(self, particles: ParticleStore, neighbor_table: Optional[np.ndarray]) -> bool:
#     - Inputs:
#       - particles: read for positions and visual attributes only.
#       - neighbor_table: (N, K) table, or None to skip edges.
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: Renders one frame.

def hsla_color(hue: float, saturation: float, lightness: float, alpha: float) -> pygame.Color:
    """Builds a pygame Color from normalized (0..1) HSLA components."""
    color = pygame.Color(0, 0, 0, 0)
    color.hsla = (
        (hue * 360.0) % 360.0,
        min(max(saturation, 0.0), 1.0) * 100.0,
        min(max(lightness, 0.0), 1.0) * 100.0,
        min(max(alpha, 0.0), 1.0) * 100.0,
    )
    return color


class Visualizer:
    """
    Renders the fireflies and, optionally, the edges to their neighbors.

    World coordinates have their origin at the window center with +y up.
    """
    def __init__(
        self,
        fullscreen: bool = FULLSCREEN,
        width: int = DEFAULT_WINDOW_WIDTH,
        height: int = DEFAULT_WINDOW_HEIGHT,
        fps: int = FPS,
        draw_edges: bool = False,
    ):
        """
        Initializes Pygame and the display window.
        """
        pygame.init()

        if fullscreen:
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            self.screen = pygame.display.set_mode((width, height))

        self.sim_width = width
        self.sim_height = height
        self.fps = fps
        self.draw_edges = draw_edges

        pygame.display.set_caption("Fireflies")
        self.clock = pygame.time.Clock()

        # Built lazily on the first draw, once the particles are known.
        self.sprites: Optional[List[Tuple[pygame.Surface, float]]] = None

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    def tick(self) -> float:
        """Waits for the next frame and returns the elapsed seconds."""
        return self.clock.tick(self.fps) / 1000.0

    def _pre_render_sprites(self, particles: ParticleStore) -> List[Tuple[pygame.Surface, float]]:
        """
        Pre-renders one glow sprite per firefly. Visual attributes never
        change, so each sprite is drawn exactly once.

        Returns a list of (surface, half_size) pairs, indexed like particles.
        """
        logging.debug("Pre-rendering firefly sprites...")
        sprites = []
        for h, s, l, a, r in zip(
            particles.hue.tolist(), particles.saturation.tolist(),
            particles.lightness.tolist(), particles.alpha.tolist(),
            particles.radius.tolist()
        ):
            halo_radius = r * HALO_SIZE_RATIO / 2
            core_radius = r / 2
            size = int(math.ceil(halo_radius * 2)) + 2
            center = (size / 2, size / 2)

            surface = pygame.Surface((size, size), pygame.SRCALPHA)
            halo_color = hsla_color(h, s, l / HALO_DIMMING, a / HALO_DIMMING)
            pygame.draw.circle(surface, halo_color, center, halo_radius)
            pygame.draw.circle(surface, hsla_color(h, s, l, a), center, core_radius)
            sprites.append((surface, size / 2))
        logging.debug(f"Finished pre-rendering {len(sprites)} sprites.")
        return sprites

    def to_screen(self, positions: np.ndarray) -> np.ndarray:
        """Maps world coordinates (origin centered, +y up) to pixels."""
        screen = np.empty(positions.shape, dtype=np.float64)
        screen[:, 0] = positions[:, 0] + self.sim_width / 2
        screen[:, 1] = self.sim_height / 2 - positions[:, 1]
        return screen

    def _draw_edges(self, points: list, neighbor_table: np.ndarray):
        for i, row in enumerate(neighbor_table.tolist()):
            start = points[i]
            for j in row:
                pygame.draw.line(self.screen, EDGE_COLOR, start, points[j], EDGE_WIDTH)

    def draw(self, particles: ParticleStore, neighbor_table: Optional[np.ndarray] = None) -> bool:
        """
        Draws all fireflies and handles events.

        Returns:
            bool: False if the simulation should exit, True otherwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down visualizer.")
                return False

        if self.sprites is None:
            self.sprites = self._pre_render_sprites(particles)

        self.screen.fill(BACKGROUND_COLOR)
        points = self.to_screen(particles.positions).tolist()

        if self.draw_edges and neighbor_table is not None:
            self._draw_edges(points, neighbor_table)

        self.screen.blits(
            [(surface, (x - half, y - half)) for (surface, half), (x, y) in zip(self.sprites, points)],
            doreturn=False
        )

        pygame.display.flip()
        return True

    def close(self):
        """Shuts down Pygame."""
        pygame.quit()
