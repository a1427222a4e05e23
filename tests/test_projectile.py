import numpy as np
import pytest

from constants import PROJECTILE_COLOR, PROJECTILE_SPEED
from particle import ParticleField, DrawKind
from projectile import Projectile, detect_impact


def test_fire_normalizes_direction_to_launch_speed():
    projectile = Projectile.fire((0.0, 0.0), (3.0, 4.0), speed=100.0)
    assert tuple(projectile.velocity) == pytest.approx((60.0, 80.0))
    assert projectile.active


def test_fire_at_own_origin_is_rejected():
    with pytest.raises(ValueError):
        Projectile.fire((400.0, 600.0), (400.0, 600.0))


def test_projectile_leaves_viewport_within_one_second():
    projectile = Projectile.fire((400.0, 800.0), (400.0, 0.0))
    assert np.linalg.norm(projectile.velocity) == pytest.approx(PROJECTILE_SPEED)

    dt = 1.0 / 60.0
    for _ in range(59):
        projectile.step(dt, 800.0, 800.0)
    assert projectile.active

    # Reaches the top edge at t = 1.0 and is strictly outside one step later.
    projectile.step(dt, 800.0, 800.0)
    projectile.step(dt, 800.0, 800.0)
    assert not projectile.active


def test_touching_the_boundary_keeps_projectile_alive():
    projectile = Projectile((0.0, 0.0), (0.0, 0.0))
    projectile.step(0.1, 800.0, 600.0)
    assert projectile.active

    projectile = Projectile((800.0, 600.0), (0.0, 0.0))
    projectile.step(0.1, 800.0, 600.0)
    assert projectile.active


@pytest.mark.parametrize("start, velocity", [
    ((0.5, 50.0), (-10.0, 0.0)),
    ((99.5, 50.0), (10.0, 0.0)),
    ((50.0, 0.5), (0.0, -10.0)),
    ((50.0, 99.5), (0.0, 10.0)),
])
def test_leaving_any_side_deactivates_for_good(start, velocity):
    projectile = Projectile(start, velocity)
    projectile.step(0.1, 100.0, 100.0)
    assert not projectile.active

    # Flying back inside does not revive it.
    projectile.velocity = -projectile.velocity
    projectile.step(1.0, 100.0, 100.0)
    assert not projectile.active


def test_hit_test_uses_strict_inequality():
    projectile = Projectile((0.0, 0.0), (0.0, 0.0), radius=5.0)
    assert not projectile.hit_test((8.0, 0.0), 3.0)
    assert projectile.hit_test((8.0 - 1e-9, 0.0), 3.0)


def test_hit_test_has_no_side_effects():
    projectile = Projectile((1.0, 2.0), (3.0, 4.0))
    projectile.hit_test((1.0, 2.0), 3.0)
    assert tuple(projectile.position) == (1.0, 2.0)
    assert tuple(projectile.velocity) == (3.0, 4.0)
    assert projectile.active


def test_detect_impact_matches_hit_test():
    field = ParticleField.generate((400.0, 300.0), 1000, 60.0)
    rng = np.random.default_rng(3)
    for position in rng.uniform(low=[300, 200], high=[500, 400], size=(200, 2)):
        projectile = Projectile(position, (0.0, 0.0))
        expected = any(projectile.hit_test(p, field.particle_radius) for p in field.positions)
        assert detect_impact(projectile, field) == expected


def test_detect_impact_on_empty_field():
    assert not detect_impact(Projectile((0.0, 0.0), (0.0, 0.0)), ParticleField.generate((0.0, 0.0), 0, 10.0))


def test_snapshot_is_one_red_circle():
    projectile = Projectile((12.0, 34.0), (0.0, 0.0), radius=5.0)
    (record,) = list(projectile.snapshot())
    assert record.kind is DrawKind.PROJECTILE
    assert (record.x, record.y, record.radius) == (12.0, 34.0, 5.0)
    assert record.rgba == PROJECTILE_COLOR
