"""Tests for Particle and the renderer instance mapping."""

import numpy as np
import pytest

from bodies import Instance, Particle, to_ndc
from bounding_box import BoundingBox


class TestParticle:
    """Tests for particle construction and comparisons."""

    def test_defaults(self):
        p = Particle([1.0, 2.0], mass=3.0, radius=4.0)
        assert np.array_equal(p.position, [1.0, 2.0])
        assert np.array_equal(p.velocity, [0.0, 0.0])
        assert np.array_equal(p.acceleration, [0.0, 0.0])
        assert p.mass == 3.0
        assert p.radius == 4.0

    def test_ids_are_unique(self):
        ids = {Particle([0.0, 0.0], 1.0, 1.0).id for _ in range(100)}
        assert len(ids) == 100

    def test_position_is_copied(self):
        position = np.array([5.0, 5.0])
        p = Particle(position, 1.0, 1.0)
        position[0] = 99.0
        assert p.position[0] == 5.0

    @pytest.mark.parametrize("mass, radius", [(0.0, 1.0), (-1.0, 1.0), (1.0, 0.0), (1.0, -2.0)])
    def test_rejects_non_positive(self, mass, radius):
        with pytest.raises(ValueError):
            Particle([0.0, 0.0], mass, radius)

    @pytest.mark.parametrize(
        "kwargs",
        [{"position": [1.0, 2.0, 3.0]}, {"position": [1.0]}, {"velocity": [0.0, 0.0, 1.0]}, {"acceleration": [[0.0, 0.0]]}],
    )
    def test_rejects_non_2d_vectors(self, kwargs):
        args = {"position": [0.0, 0.0], "mass": 1.0, "radius": 1.0}
        args.update(kwargs)
        with pytest.raises(ValueError):
            Particle(**args)

    def test_compare_orders_by_mass(self):
        light = Particle([0.0, 0.0], 1.0, 1.0)
        heavy = Particle([0.0, 0.0], 2.0, 1.0)
        assert light.compare(heavy) == (light, heavy)
        assert heavy.compare(light) == (light, heavy)

    def test_compare_tie_keeps_self(self):
        a = Particle([0.0, 0.0], 1.0, 1.0)
        b = Particle([0.0, 0.0], 1.0, 1.0)
        assert a.compare(b) == (b, a)

    def test_copy_is_detached(self):
        p = Particle([1.0, 1.0], 2.0, 3.0, velocity=[4.0, 5.0])
        clone = p.copy()
        clone.position[0] = 100.0
        clone.velocity[1] = -1.0
        assert clone.id == p.id
        assert p.position[0] == 1.0
        assert p.velocity[1] == 5.0


class TestCollisionCheck:
    """Tests for the narrow-phase disc overlap test."""

    def test_overlapping(self):
        a = Particle([100.0, 100.0], 1.0, 5.0)
        b = Particle([108.0, 100.0], 1.0, 4.0)
        assert a.check_collision(b)
        assert b.check_collision(a)

    def test_touching(self):
        a = Particle([100.0, 100.0], 1.0, 5.0)
        b = Particle([109.0, 100.0], 1.0, 4.0)
        assert a.check_collision(b)

    def test_apart(self):
        c = Particle([100.0, 100.0], 1.0, 5.0)
        d = Particle([120.0, 100.0], 1.0, 4.0)
        assert not c.check_collision(d)


class TestInstances:
    """Tests for the world to NDC mapping."""

    def test_to_ndc(self):
        assert to_ndc(0.0, 0.0, 1000.0) == -1.0
        assert to_ndc(1000.0, 0.0, 1000.0) == 1.0
        assert to_ndc(500.0, 0.0, 1000.0) == 0.0

    @pytest.mark.parametrize(
        "position, expected",
        [((0.0, 0.0), (-1.0, -1.0)), ((1000.0, 1000.0), (1.0, 1.0)), ((500.0, 500.0), (0.0, 0.0))],
    )
    def test_corners_and_center(self, position, expected):
        instance = Particle(list(position), 1.0, 10.0).to_instance(BoundingBox.world())
        assert instance.position == pytest.approx(expected)
        assert instance.radius == pytest.approx(0.02)

    def test_other_bounds(self):
        bounds = BoundingBox.world(-50.0, 50.0, -50.0, 50.0)
        instance = Particle([25.0, -25.0], 1.0, 5.0).to_instance(bounds)
        assert instance == Instance((0.5, -0.5), 0.1)
