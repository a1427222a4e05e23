# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the application's framework, such as rendering
properties, default window sizes, or the physics settings that
`config.json` may override.
"""

# Visualization settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a fixed-size window (WINDOW_WIDTH x WINDOW_HEIGHT).
FULLSCREEN = False
WINDOW_WIDTH = 800
WINDOW_HEIGHT = 600
WINDOW_TITLE = "Perfect Spherical Water Balloon"
FPS = 60
BACKGROUND_COLOR = (0, 0, 0) # Black

# Draw colors (RGBA, 0-255)
PARTICLE_COLOR = (102, 178, 255, 230) # Light water blue
PROJECTILE_COLOR = (230, 41, 55, 255) # Red

# --- Water Balloon Layout ---
PARTICLE_RADIUS = 3.0
PARTICLE_COUNT = 1000
BALLOON_RADIUS = 60.0
# Rings are spaced by the particle diameter; points along a ring by 2.5 radii.
RING_PITCH_FACTOR = 2.0
ARC_SPACING_FACTOR = 2.5
MIN_POINTS_PER_RING = 6
# The balloon is centered at (width / 2, height / BALLOON_HEIGHT_DIVISOR).
BALLOON_HEIGHT_DIVISOR = 2.5

# --- Physics (active after rupture) ---
REST_LENGTH = 6.0
STIFFNESS = 300.0
DAMPING = 2.0
GRAVITY = (0.0, 500.0) # Screen coordinates, +y is down
REBOUND = -0.3
# Pairs closer than this are skipped to avoid normalizing a near-zero vector.
MIN_SPRING_DISTANCE = 0.01
BROAD_PHASES = ("all_pairs", "grid")

# --- Projectiles ---
PROJECTILE_SPEED = 800.0
PROJECTILE_RADIUS = 5.0

# --- Time Step Policy ---
# Stalled frames are clamped, then split into sub-steps no longer than this.
MAX_FRAME_TIME = 0.1
MAX_SUBSTEP = 1.0 / 480.0


# Defaults used when config.json omits a section or key.
DEFAULT_CONFIG = {
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(levelname)s - %(message)s",
        "log_file": "logs/simulation.log",
        "max_bytes": 1024 * 1024,
        "backup_count": 5
    },
    "simulation_parameters": {
        "particle_count": PARTICLE_COUNT,
        "balloon_radius": BALLOON_RADIUS,
        "balloon_height_divisor": BALLOON_HEIGHT_DIVISOR,
        "particle_radius": PARTICLE_RADIUS,
        "rest_length": REST_LENGTH,
        "stiffness": STIFFNESS,
        "damping": DAMPING,
        "gravity": list(GRAVITY),
        "rebound": REBOUND,
        "projectile_speed": PROJECTILE_SPEED,
        "projectile_radius": PROJECTILE_RADIUS,
        "max_frame_time": MAX_FRAME_TIME,
        "max_substep": MAX_SUBSTEP,
        "broad_phase": "all_pairs"
    },
    "run_control": {
        "log_throttle_steps": 120,
        "max_steps": None
    },
    "visualization": {
        "fullscreen": FULLSCREEN,
        "window_width": WINDOW_WIDTH,
        "window_height": WINDOW_HEIGHT,
        "fps": FPS
    }
}
