# projectile.py
"""
Projectiles fired at the balloon and the impact test against its particles.
"""
import logging
from typing import Iterator, Sequence

import numpy as np

from constants import PROJECTILE_SPEED, PROJECTILE_RADIUS, PROJECTILE_COLOR
from particle import ParticleField, DrawKind, DrawRecord

# --- Data Contracts ---
#
# class Projectile:
#   - fire(origin, target, speed, radius) -> Projectile:
#     - Inputs: origin and target as (x, y); target must differ from origin.
#     - Outputs: A live projectile moving from origin toward target.
#     - Raises: ValueError if origin == target.
#
#   - step(self, dt: float, width: float, height: float) -> None:
#     - Side Effects: Moves the projectile. Sets active to False once it is
#       strictly outside the [0, width] x [0, height] viewport.
#     - Invariants: Once inactive, a projectile never becomes active again.
#
#   - hit_test(self, position, particle_radius) -> bool:
#     - Outputs: True iff the center distance is strictly less than the
#       sum of the radii. No side effects.
#
# detect_impact(projectile: Projectile, field: ParticleField) -> bool:
#   - Outputs: True iff the projectile touches any particle of the field.


class Projectile:
    """A single fired object flying in a straight line."""
    def __init__(self, position: Sequence[float], velocity: Sequence[float], radius: float = PROJECTILE_RADIUS):
        self.position = np.array(position, dtype=np.float64)
        self.velocity = np.array(velocity, dtype=np.float64)
        self.radius = float(radius)
        self.active = True

    @classmethod
    def fire(
        cls,
        origin: Sequence[float],
        target: Sequence[float],
        speed: float = PROJECTILE_SPEED,
        radius: float = PROJECTILE_RADIUS
    ) -> "Projectile":
        """Launches a projectile from `origin` toward `target` at `speed`."""
        origin = np.array(origin, dtype=np.float64)
        direction = np.array(target, dtype=np.float64) - origin
        length = np.linalg.norm(direction)
        if length == 0.0:
            raise ValueError(
                f"Cannot fire a projectile at its own origin ({origin[0]:.1f}, {origin[1]:.1f})."
            )
        return cls(origin, direction / length * speed, radius)

    def step(self, dt: float, width: float, height: float) -> None:
        self.position += self.velocity * dt

        x, y = self.position
        if x < 0.0 or x > width or y < 0.0 or y > height:
            if self.active:
                logging.debug(f"Projectile left the viewport at ({x:.1f}, {y:.1f}).")
            self.active = False

    def hit_test(self, position: Sequence[float], particle_radius: float) -> bool:
        dx = position[0] - self.position[0]
        dy = position[1] - self.position[1]
        return bool(np.hypot(dx, dy) < self.radius + particle_radius)

    def snapshot(self) -> Iterator[DrawRecord]:
        yield DrawRecord(
            DrawKind.PROJECTILE,
            float(self.position[0]),
            float(self.position[1]),
            self.radius,
            PROJECTILE_COLOR
        )


def detect_impact(projectile: Projectile, field: ParticleField) -> bool:
    """
    Tests a projectile against every particle of the field at once.

    Uses the same strict inequality as Projectile.hit_test.
    """
    if len(field) == 0:
        return False
    delta = field.positions - projectile.position
    distances = np.hypot(delta[:, 0], delta[:, 1])
    return bool(np.any(distances < projectile.radius + field.particle_radius))
