# simulation.py
"""
Handles the core simulation logic and physics calculations.

This module defines the SpringForceSolver, which accumulates the
short-range spring and damping forces between water particles, and the
SimulationController, which advances the whole balloon scene by one
frame: lazy setup, firing, impact detection, rupture and integration.
"""
import logging
import math
from enum import Enum
from typing import Dict, Any, List, NamedTuple, Optional, Tuple

import numpy as np
from numba import jit

from constants import (
    PARTICLE_COUNT, BALLOON_RADIUS, BALLOON_HEIGHT_DIVISOR, PARTICLE_RADIUS,
    REST_LENGTH, STIFFNESS, DAMPING, REBOUND, MIN_SPRING_DISTANCE, BROAD_PHASES,
    PROJECTILE_SPEED, PROJECTILE_RADIUS, MAX_FRAME_TIME, MAX_SUBSTEP
)
from particle import ParticleField, DrawRecord
from projectile import Projectile, detect_impact

# --- Data Contracts ---
#
# class SpringForceSolver:
#   - __init__(self, params: Optional[Dict[str, Any]] = None):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "rest_length": float
#         - "stiffness": float
#         - "damping": float
#         - "broad_phase": "all_pairs" | "grid"
#
#   - apply(self, field: ParticleField) -> None:
#     - Side Effects: Adds spring + damping forces to field.forces.
#     - Invariants: For every interacting pair the force added to one
#       particle is the exact negation of the force added to the other.
#
# class SimulationController:
#   - __init__(self, params: Optional[Dict[str, Any]] = None):
#     - Inputs: Dictionary of simulation parameters from config.json.
#     - Raises: ValueError if a parameter is out of range.
#
#   - tick(self, elapsed_seconds: float, frame_input: FrameInput) -> List[DrawRecord]:
#     - Inputs:
#       - elapsed_seconds: frame delta time. Non-finite or negative values
#         count as zero, large values are clamped to max_frame_time.
#       - frame_input: viewport size and an optional click position.
#     - Outputs: Draw records for every particle, then every live projectile.
#     - Side Effects: Advances the scene. The state moves
#       UNINITIALIZED -> IDLE -> ACTIVE and never back.


@jit(nopython=True)
def _apply_pair(i, j, positions, velocities, forces, rest_length, stiffness, damping, cutoff, min_distance):
    """
    Accumulates the spring-damper force between particles i and j.

    Particle i is pulled toward j when the pair is stretched past the rest
    length and pushed away when compressed. Damping acts on the relative
    velocity along the same line.
    """
    dx = positions[j, 0] - positions[i, 0]
    dy = positions[j, 1] - positions[i, 1]
    distance = np.sqrt(dx * dx + dy * dy)
    if distance >= cutoff or distance <= min_distance:
        return

    nx = dx / distance
    ny = dy / distance
    dvx = velocities[j, 0] - velocities[i, 0]
    dvy = velocities[j, 1] - velocities[i, 1]

    magnitude = stiffness * (distance - rest_length) + damping * (dvx * nx + dvy * ny)
    fx = magnitude * nx
    fy = magnitude * ny

    forces[i, 0] += fx
    forces[i, 1] += fy
    forces[j, 0] -= fx
    forces[j, 1] -= fy


@jit(nopython=True)
def _spring_forces_all_pairs(positions, velocities, forces, rest_length, stiffness, damping, cutoff, min_distance):
    """Numba-jitted O(n^2) scan over every unordered pair."""
    particle_count = positions.shape[0]
    for i in range(particle_count):
        for j in range(i + 1, particle_count):
            _apply_pair(i, j, positions, velocities, forces, rest_length, stiffness, damping, cutoff, min_distance)


@jit(nopython=True)
def _spring_forces_grid(positions, velocities, forces, rest_length, stiffness, damping, cutoff, min_distance, max_cells):
    """
    Numba-jitted spring forces using a uniform grid as the broad phase.

    The grid covers the bounding box of the particles with cells the size
    of the interaction cutoff, so every interacting pair lies in the same
    or adjacent cells. Particles are bucketed with a counting sort into
    `order`, and `cell_start[c]:cell_start[c + 1]` is the slice of cell c.
    Each pair is visited once (j > i). If the scatter is so wide that the
    grid would exceed `max_cells`, the all-pairs scan is used instead.
    """
    particle_count = positions.shape[0]
    if particle_count < 2:
        return

    min_x = positions[:, 0].min()
    min_y = positions[:, 1].min()
    grid_width = int((positions[:, 0].max() - min_x) / cutoff) + 1
    grid_height = int((positions[:, 1].max() - min_y) / cutoff) + 1
    cell_count = grid_width * grid_height
    if cell_count > max_cells:
        _spring_forces_all_pairs(positions, velocities, forces, rest_length, stiffness, damping, cutoff, min_distance)
        return

    # Count particles per cell, offset by one for the prefix sum.
    cell_x = np.empty(particle_count, dtype=np.int64)
    cell_y = np.empty(particle_count, dtype=np.int64)
    cell_start = np.zeros(cell_count + 1, dtype=np.int64)
    for i in range(particle_count):
        cx = int((positions[i, 0] - min_x) / cutoff)
        cy = int((positions[i, 1] - min_y) / cutoff)
        cell_x[i] = cx
        cell_y[i] = cy
        cell_start[cx + cy * grid_width + 1] += 1

    for c in range(cell_count):
        cell_start[c + 1] += cell_start[c]

    order = np.empty(particle_count, dtype=np.int64)
    fill = cell_start[:-1].copy()
    for i in range(particle_count):
        c = cell_x[i] + cell_y[i] * grid_width
        order[fill[c]] = i
        fill[c] += 1

    for i in range(particle_count):
        for dy in range(-1, 2):
            ny = cell_y[i] + dy
            if ny < 0 or ny >= grid_height:
                continue
            for dx in range(-1, 2):
                nx = cell_x[i] + dx
                if nx < 0 or nx >= grid_width:
                    continue
                c = nx + ny * grid_width
                for k in range(cell_start[c], cell_start[c + 1]):
                    j = order[k]
                    if j <= i:
                        continue
                    _apply_pair(i, j, positions, velocities, forces, rest_length, stiffness, damping, cutoff, min_distance)


class SpringForceSolver:
    """
    Applies Hookean springs with viscous damping between nearby particles.

    Pairs interact when their distance is below twice the rest length.
    Stiffness and damping are the same for every pair.
    """
    def __init__(self, params: Optional[Dict[str, Any]] = None):
        params = params if params is not None else {}
        self.rest_length = float(params.get('rest_length', REST_LENGTH))
        self.stiffness = float(params.get('stiffness', STIFFNESS))
        self.damping = float(params.get('damping', DAMPING))
        self.broad_phase = params.get('broad_phase', 'all_pairs')
        self.cutoff = self.rest_length * 2.0
        self.min_distance = MIN_SPRING_DISTANCE

        if self.broad_phase not in BROAD_PHASES:
            msg = (
                f"Configuration error: Unknown broad_phase '{self.broad_phase}'. "
                f"Expected one of {', '.join(BROAD_PHASES)}."
            )
            logging.critical(msg)
            raise ValueError(msg)

        logging.debug(
            f"SpringForceSolver using '{self.broad_phase}' broad phase, "
            f"rest length {self.rest_length:.2f}, stiffness {self.stiffness:.1f}, "
            f"damping {self.damping:.2f}."
        )

    def apply(self, field: ParticleField) -> None:
        if len(field) < 2:
            return

        if self.broad_phase == 'grid':
            _spring_forces_grid(
                field.positions, field.velocities, field.forces,
                self.rest_length, self.stiffness, self.damping,
                self.cutoff, self.min_distance, max(16 * len(field), 4096)
            )
        else:
            _spring_forces_all_pairs(
                field.positions, field.velocities, field.forces,
                self.rest_length, self.stiffness, self.damping,
                self.cutoff, self.min_distance
            )


class SimulationState(Enum):
    UNINITIALIZED = "uninitialized"
    IDLE = "idle"
    ACTIVE = "active"


class FrameInput(NamedTuple):
    """Everything the controller reads from the outside world in one frame."""
    viewport_width: float
    viewport_height: float
    fire_event: Optional[Tuple[float, float]] = None


class SimulationController:
    """
    Owns the balloon and the projectiles and advances them frame by frame.

    The balloon stays rigid until the first projectile touches it. From
    then on it is simulated as a lattice of damped springs under gravity,
    bouncing on the bottom edge of the viewport.
    """
    def __init__(self, params: Optional[Dict[str, Any]] = None):
        """
        Initializes the controller and validates its parameters.

        Args:
            params (Optional[Dict[str, Any]]): Simulation parameters from config.
        """
        self.params = params if params is not None else {}
        self.particle_count = int(self.params.get('particle_count', PARTICLE_COUNT))
        self.balloon_radius = float(self.params.get('balloon_radius', BALLOON_RADIUS))
        self.balloon_height_divisor = float(self.params.get('balloon_height_divisor', BALLOON_HEIGHT_DIVISOR))
        self.projectile_speed = float(self.params.get('projectile_speed', PROJECTILE_SPEED))
        self.projectile_radius = float(self.params.get('projectile_radius', PROJECTILE_RADIUS))
        self.max_frame_time = float(self.params.get('max_frame_time', MAX_FRAME_TIME))
        self.max_substep = float(self.params.get('max_substep', MAX_SUBSTEP))

        self._validate()
        self.solver = SpringForceSolver(self.params)

        self.state = SimulationState.UNINITIALIZED
        self.field: Optional[ParticleField] = None
        self.projectiles: List[Projectile] = []
        self.tick_count = 0

        logging.info("SimulationController initialized and configuration validated.")

    def _validate(self) -> None:
        rebound = float(self.params.get('rebound', REBOUND))
        checks = [
            (self.particle_count >= 0, "particle_count must be non-negative"),
            (self.balloon_radius >= 0.0, "balloon_radius must be non-negative"),
            (self.balloon_height_divisor > 0.0, "balloon_height_divisor must be positive"),
            (float(self.params.get('particle_radius', PARTICLE_RADIUS)) > 0.0, "particle_radius must be positive"),
            (float(self.params.get('rest_length', REST_LENGTH)) > 0.0, "rest_length must be positive"),
            (float(self.params.get('stiffness', STIFFNESS)) >= 0.0, "stiffness must be non-negative"),
            (float(self.params.get('damping', DAMPING)) >= 0.0, "damping must be non-negative"),
            (-1.0 < rebound <= 0.0, "rebound must be in (-1, 0]"),
            (self.projectile_speed > 0.0, "projectile_speed must be positive"),
            (self.projectile_radius > 0.0, "projectile_radius must be positive"),
            (self.max_frame_time > 0.0, "max_frame_time must be positive"),
            (self.max_substep > 0.0, "max_substep must be positive"),
        ]
        for ok, requirement in checks:
            if not ok:
                msg = f"Configuration error: {requirement}."
                logging.critical(msg)
                raise ValueError(msg)

    @property
    def initialized(self) -> bool:
        return self.state is not SimulationState.UNINITIALIZED

    @property
    def ruptured(self) -> bool:
        return self.state is SimulationState.ACTIVE

    def initialize(self, width: float, height: float) -> None:
        """Generates the balloon in the upper middle of the viewport."""
        center = (width / 2.0, height / self.balloon_height_divisor)
        self.field = ParticleField.generate(center, self.particle_count, self.balloon_radius, self.params)
        self.state = SimulationState.IDLE
        logging.info(f"Scene initialized for a {width:.0f}x{height:.0f} viewport.")

    def fire(self, target: Tuple[float, float], width: float, height: float) -> Optional[Projectile]:
        """
        Launches a projectile from the bottom center of the viewport.

        A click exactly on the launch point has no direction; it is dropped
        and None is returned.
        """
        origin = (width / 2.0, height)
        try:
            projectile = Projectile.fire(origin, target, self.projectile_speed, self.projectile_radius)
        except ValueError as e:
            logging.debug(f"Fire event ignored: {e}")
            return None

        self.projectiles.append(projectile)
        logging.info(
            f"Projectile fired toward ({target[0]:.1f}, {target[1]:.1f}). "
            f"{len(self.projectiles)} in flight."
        )
        return projectile

    def _sanitize_dt(self, elapsed_seconds: float) -> float:
        if not math.isfinite(elapsed_seconds) or elapsed_seconds < 0.0:
            logging.warning(f"Invalid frame time {elapsed_seconds!r} treated as zero.")
            return 0.0
        if elapsed_seconds > self.max_frame_time:
            logging.debug(
                f"Frame time {elapsed_seconds:.3f}s clamped to {self.max_frame_time:.3f}s."
            )
            return self.max_frame_time
        return elapsed_seconds

    def _rupture(self) -> None:
        self.state = SimulationState.ACTIVE
        logging.info(f"Balloon ruptured at tick {self.tick_count}.")

    def _step_field(self, dt: float, floor_y: float) -> None:
        """Gravity, springs and integration, split into equal sub-steps."""
        substeps = max(1, math.ceil(dt / self.max_substep))
        sub_dt = dt / substeps
        for _ in range(substeps):
            self.field.apply_gravity()
            self.solver.apply(self.field)
            self.field.integrate(sub_dt, floor_y)

    def tick(self, elapsed_seconds: float, frame_input: FrameInput) -> List[DrawRecord]:
        """
        Advances the scene by one frame and returns what to draw.

        Order matters: setup, firing, projectile motion and impact, then
        the balloon physics, then the draw records, then the cleanup of
        projectiles that left the viewport.
        """
        width = float(frame_input.viewport_width)
        height = float(frame_input.viewport_height)
        if width <= 0.0 or height <= 0.0:
            logging.debug(f"Viewport size {width}x{height} not known yet. Skipping tick.")
            return []

        dt = self._sanitize_dt(elapsed_seconds)

        # 1. One-time balloon generation
        if self.state is SimulationState.UNINITIALIZED:
            self.initialize(width, height)

        # 2. Fire events
        if frame_input.fire_event is not None:
            self.fire(frame_input.fire_event, width, height)

        # 3. Projectile motion and first impact
        for projectile in self.projectiles:
            projectile.step(dt, width, height)
            if (
                self.state is SimulationState.IDLE
                and projectile.active
                and detect_impact(projectile, self.field)
            ):
                self._rupture()

        # 4. Balloon physics, only after rupture
        if self.state is SimulationState.ACTIVE:
            self._step_field(dt, height)

        # 5. Draw records
        records = list(self.field.snapshot())
        for projectile in self.projectiles:
            if projectile.active:
                records.extend(projectile.snapshot())

        # 6. Drop projectiles that left the viewport
        self.projectiles = [p for p in self.projectiles if p.active]

        self.tick_count += 1
        return records
