# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They cover rendering properties, default window sizes and the sampling
ranges used to generate fireflies. Experiment parameters such as particle
count or neighbor count belong in config.json instead.
"""
import math

# Visualization settings
# Set to True to run in borderless fullscreen mode.
FULLSCREEN = False
DEFAULT_WINDOW_WIDTH = 1024
DEFAULT_WINDOW_HEIGHT = 768
FPS = 60
BACKGROUND_COLOR = (0, 0, 0) # Black

# --- Firefly Glow ---
# The halo is drawn this many times wider than the core.
HALO_SIZE_RATIO = 1.5
# Lightness and alpha of the halo are divided by this factor.
HALO_DIMMING = 3.0

# --- Edges ---
EDGE_COLOR = (51, 51, 51) # 0.2 gray
EDGE_WIDTH = 1

# --- Sampling Ranges ---
# Each entry is (low, high) for a uniform draw. low == high means a constant.
SPEED_RANGE = (-5.0, 5.0)
HEADING_RANGE = (0.0, 2.0 * math.pi)

VISUAL_ATTRIBUTE_RANGES = {
    "hue": (10.0 / 360.0, 40.0 / 360.0), # Warm amber
    "saturation": (1.0, 1.0),
    "lightness": (0.1, 0.5),
    "alpha": (0.1, 0.9),
    "radius": (4.0, 7.0),
}

# Defaults for simulation_parameters keys that are optional in config.json.
DEFAULT_NEIGHBOR_COUNT = 2
DEFAULT_KINEMATIC_POLICY = "linear"
DEFAULT_INITIAL_METRIC = "squared_euclidean"

# --- Logging ---
DEFAULT_LOG_FILE = "logs/fireflies.log"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_MAX_BYTES = 1024 * 1024
LOG_BACKUP_COUNT = 5
