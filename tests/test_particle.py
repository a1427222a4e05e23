import inspect

import numpy as np
import pytest

from constants import PARTICLE_COLOR
from particle import ParticleField, DrawKind, ring_layout


def test_generate_is_deterministic():
    a = ParticleField.generate((400.0, 300.0), 1000, 60.0)
    b = ParticleField.generate((400.0, 300.0), 1000, 60.0)
    assert np.array_equal(a.positions, b.positions)


@pytest.mark.parametrize("count, radius", [(0, 60.0), (1, 0.0), (7, 6.0), (50, 60.0), (1000, 60.0), (1000, 150.0)])
def test_generate_never_exceeds_count(count, radius):
    field = ParticleField.generate((0.0, 0.0), count, radius)
    assert len(field) <= count


def test_small_radius_under_fills_the_field():
    # Rings at 0, 6, ..., 60 hold 1 + 6 + 10 + 15 + ... + 50 particles.
    field = ParticleField.generate((400.0, 300.0), 1000, 60.0)
    assert len(field) == 277


def test_large_radius_fills_the_field():
    field = ParticleField.generate((400.0, 300.0), 1000, 150.0)
    assert len(field) == 1000


def test_rings_start_with_a_single_center_particle():
    positions = ring_layout((10.0, 20.0), 1000, 60.0, 3.0)
    assert tuple(positions[0]) == (10.0, 20.0)
    # The first non-zero ring is one particle diameter out and has the minimum of six points.
    ring = positions[1:7]
    assert np.allclose(np.hypot(ring[:, 0] - 10.0, ring[:, 1] - 20.0), 6.0)


def test_no_two_particles_coincide():
    positions = ParticleField.generate((400.0, 300.0), 1000, 60.0).positions
    delta = positions[:, np.newaxis, :] - positions[np.newaxis, :, :]
    distances = np.hypot(delta[..., 0], delta[..., 1])
    np.fill_diagonal(distances, np.inf)
    assert distances.min() > 1.0


def test_gravity_then_integrate_is_semi_implicit_euler():
    field = ParticleField(np.array([[0.0, 0.0]]))
    field.velocities[0] = (10.0, 0.0)
    field.apply_gravity()
    field.integrate(0.1, floor_y=1000.0)

    particle = field[0]
    assert particle.velocity == pytest.approx((10.0, 50.0))
    # Position uses the velocity after the force update.
    assert particle.position == pytest.approx((1.0, 5.0))
    assert particle.force == (0.0, 0.0)


def test_ground_contact_clamps_and_bounces_without_friction():
    field = ParticleField(np.array([[100.0, 596.0]]))
    field.velocities[0] = (10.0, 100.0)
    field.integrate(0.1, floor_y=600.0)

    particle = field[0]
    assert particle.position == pytest.approx((101.0, 597.0))
    assert particle.velocity == pytest.approx((10.0, -30.0))


@pytest.mark.parametrize("dt", [0.0, 1.0 / 60.0, 0.5, 5.0])
def test_no_particle_ends_below_the_floor(dt):
    rng = np.random.default_rng(7)
    field = ParticleField(rng.uniform(low=[0, 0], high=[800, 700], size=(500, 2)))
    field.velocities = rng.uniform(-2000.0, 2000.0, size=(500, 2))
    field.apply_gravity()
    field.integrate(dt, floor_y=600.0)

    assert np.all(field.positions[:, 1] + field.particle_radius <= 600.0)
    assert np.all(field.forces == 0.0)


def test_params_override_physics_constants():
    field = ParticleField(np.zeros((1, 2)), {'particle_radius': 2.0, 'gravity': [0.0, -10.0], 'rebound': -0.5})
    assert field.particle_radius == 2.0
    assert field.rebound == -0.5
    field.apply_gravity()
    assert field[0].force == (0.0, -10.0)


def test_snapshot_is_a_fresh_generator_each_call():
    field = ParticleField.generate((50.0, 50.0), 20, 60.0)
    snapshot = field.snapshot()
    assert inspect.isgenerator(snapshot)

    first = list(snapshot)
    assert list(snapshot) == []
    assert list(field.snapshot()) == first

    assert len(first) == len(field)
    for record, (x, y) in zip(first, field.positions):
        assert record.kind is DrawKind.PARTICLE
        assert (record.x, record.y) == (x, y)
        assert record.radius == field.particle_radius
        assert record.rgba == PARTICLE_COLOR


def test_empty_field():
    field = ParticleField.generate((0.0, 0.0), 0, 60.0)
    assert len(field) == 0
    assert field.average_speed() == 0.0
    field.apply_gravity()
    field.integrate(0.1, floor_y=10.0)
    assert list(field.snapshot()) == []
