# particle.py
"""
Manages the state of all water particles in the balloon.

This module defines the ParticleField class, which is responsible for
laying the particles out as a filled disc and storing their state
(position, velocity, accumulated force) in NumPy arrays. It also owns
the per-particle parts of the physics: gravity, time integration and
ground contact.
"""
import logging
import math
from enum import Enum
from typing import Dict, Any, Iterator, NamedTuple, Optional, Tuple

import numpy as np

from constants import (
    PARTICLE_RADIUS, PARTICLE_COLOR, RING_PITCH_FACTOR, ARC_SPACING_FACTOR,
    MIN_POINTS_PER_RING, GRAVITY, REBOUND
)

# --- Data Contracts ---
#
# class ParticleField:
#   - generate(center, count, radius, params=None) -> ParticleField:
#     - Inputs:
#       - center: (x, y) of the balloon.
#       - count: int, maximum number of particles to place.
#       - radius: float, radius of the outermost ring allowed.
#       - params: Optional dictionary of simulation parameters.
#         - "particle_radius": float
#         - "gravity": [float, float]
#         - "rebound": float
#     - Outputs: A new ParticleField with len(field) <= count.
#     - Invariants: Deterministic for identical inputs. No two particles
#       coincide.
#
#   - apply_gravity(self) -> None:
#     - Side Effects: Adds the gravity vector to every force accumulator.
#
#   - integrate(self, dt: float, floor_y: float) -> None:
#     - Side Effects: Semi-implicit Euler on every particle, force reset,
#       then ground contact.
#     - Invariants: After the call, forces are zero and
#       positions[:, 1] + particle_radius <= floor_y for every particle.
#
#   - snapshot(self) -> Iterator[DrawRecord]:
#     - Outputs: One draw record per particle. A fresh generator per call.


class DrawKind(Enum):
    PARTICLE = "particle"
    PROJECTILE = "projectile"


class DrawRecord(NamedTuple):
    """A circle for the renderer. Color is RGBA in the 0-255 range."""
    kind: DrawKind
    x: float
    y: float
    radius: float
    rgba: Tuple[int, int, int, int]


class Particle(NamedTuple):
    """A read-only copy of one particle's state."""
    position: Tuple[float, float]
    velocity: Tuple[float, float]
    force: Tuple[float, float]


def ring_layout(
    center: Tuple[float, float], count: int, radius: float, particle_radius: float
) -> np.ndarray:
    """
    Lays out up to `count` points in concentric rings around `center`.

    The first ring has radius zero and holds a single point. Every later
    ring holds as many points as fit along its circumference at the arc
    spacing, but never fewer than MIN_POINTS_PER_RING. Layout stops once
    `count` points are placed or the next ring would lie outside `radius`,
    so small radii legitimately return fewer than `count` points.

    Returns:
        np.ndarray: Array of shape (M, 2), M <= count, dtype float64.
    """
    ring_pitch = particle_radius * RING_PITCH_FACTOR
    arc_spacing = particle_radius * ARC_SPACING_FACTOR
    cx, cy = float(center[0]), float(center[1])

    points = []
    ring_radius = 0.0
    while len(points) < count:
        if ring_radius == 0.0:
            points_in_ring = 1
        else:
            circumference = 2.0 * math.pi * ring_radius
            points_in_ring = max(int(circumference / arc_spacing), MIN_POINTS_PER_RING)

        for i in range(points_in_ring):
            if len(points) >= count:
                break
            theta = i / points_in_ring * 2.0 * math.pi
            points.append((
                cx + ring_radius * math.cos(theta),
                cy + ring_radius * math.sin(theta)
            ))

        ring_radius += ring_pitch
        if ring_radius > radius:
            break

    return np.array(points, dtype=np.float64).reshape(-1, 2)


class ParticleField:
    """
    A container for all water particles, managing their state via NumPy arrays.
    """
    def __init__(self, positions: np.ndarray, params: Optional[Dict[str, Any]] = None):
        """
        Initializes the field from an array of starting positions.

        Args:
            positions (np.ndarray): Array of shape (N, 2).
            params (Optional[Dict[str, Any]]): Simulation parameters from config.
        """
        params = params if params is not None else {}
        self.particle_radius = float(params.get('particle_radius', PARTICLE_RADIUS))
        self.gravity = np.array(params.get('gravity', GRAVITY), dtype=np.float64)
        self.rebound = float(params.get('rebound', REBOUND))

        self.positions = np.array(positions, dtype=np.float64).reshape(-1, 2)
        self.velocities = np.zeros_like(self.positions)
        self.forces = np.zeros_like(self.positions)

    @classmethod
    def generate(
        cls,
        center: Tuple[float, float],
        count: int,
        radius: float,
        params: Optional[Dict[str, Any]] = None
    ) -> "ParticleField":
        """Builds a balloon of up to `count` particles centered on `center`."""
        params = params if params is not None else {}
        particle_radius = float(params.get('particle_radius', PARTICLE_RADIUS))
        positions = ring_layout(center, count, radius, particle_radius)
        field = cls(positions, params)

        if len(field) < count:
            logging.info(
                f"ParticleField generated with {len(field)} of {count} requested "
                f"particles (balloon radius {radius:.1f} is too small to fit all)."
            )
        else:
            logging.info(f"ParticleField generated with {len(field)} particles.")
        logging.debug(
            f"Balloon center: ({center[0]:.1f}, {center[1]:.1f}), "
            f"particle radius: {particle_radius:.1f}"
        )
        return field

    def __len__(self) -> int:
        return self.positions.shape[0]

    def __getitem__(self, index: int) -> Particle:
        return Particle(
            position=(float(self.positions[index, 0]), float(self.positions[index, 1])),
            velocity=(float(self.velocities[index, 0]), float(self.velocities[index, 1])),
            force=(float(self.forces[index, 0]), float(self.forces[index, 1]))
        )

    def apply_gravity(self) -> None:
        self.forces += self.gravity

    def integrate(self, dt: float, floor_y: float) -> None:
        """
        Advances every particle by `dt` with semi-implicit Euler, then
        resolves contact with the floor line.

        Velocity is updated from the accumulated force first and the
        position from the new velocity. The clamp must come after the
        position update or it would not see this step's motion.
        """
        self.velocities += self.forces * dt
        self.positions += self.velocities * dt
        self.forces.fill(0.0)

        # Ground contact: no horizontal friction, lossy vertical bounce.
        below_floor = self.positions[:, 1] + self.particle_radius > floor_y
        if np.any(below_floor):
            self.positions[below_floor, 1] = floor_y - self.particle_radius
            self.velocities[below_floor, 1] *= self.rebound

    def average_speed(self) -> float:
        if len(self) == 0:
            return 0.0
        return float(np.mean(np.linalg.norm(self.velocities, axis=1)))

    def snapshot(self) -> Iterator[DrawRecord]:
        for x, y in self.positions:
            yield DrawRecord(DrawKind.PARTICLE, float(x), float(y), self.particle_radius, PARTICLE_COLOR)
