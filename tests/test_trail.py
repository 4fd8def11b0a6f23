"""
Test suite for orbit trails.

Tests cover:
- Length bound and enable flag
- Shortening as the head returns to the tail
- TrailRecorder as a simulation state listener
"""

import pytest
import numpy as np
from orrery import OrbitTrail, TrailRecorder, Simulation, sun_earth_moon


def _circle(n_points, per_revolution=100, radius=10.0):
    angle = 2 * np.pi * np.arange(n_points) / per_revolution
    return np.column_stack([radius * np.cos(angle), np.zeros(n_points),
                            radius * np.sin(angle)])


class TestOrbitTrail:
    """Test a single trail."""

    def test_disabled_ignores_points(self):
        trail = OrbitTrail('Earth', enabled=False)
        trail.add_point([1.0, 2.0, 3.0])
        assert len(trail) == 0
        assert trail.points.shape == (0, 3)

    def test_max_length(self):
        trail = OrbitTrail('Earth', max_length=10)
        line = np.column_stack([np.arange(25.0), np.zeros(25), np.zeros(25)])
        for p in line:
            trail.add_point(p)
        assert len(trail) == 10
        assert np.allclose(trail.points, line[-10:])

    def test_points_oldest_first(self):
        trail = OrbitTrail('Earth')
        trail.add_point([0.0, 0.0, 0.0])
        trail.add_point([1.0, 0.0, 0.0])
        assert np.allclose(trail.points, [[0, 0, 0], [1, 0, 0]])

    def test_point_is_copied(self):
        trail = OrbitTrail('Earth')
        position = np.array([1.0, 0.0, 0.0])
        trail.add_point(position)
        position[0] = 5.0
        assert trail.points[0, 0] == 1.0

    def test_straight_line_not_shortened(self):
        trail = OrbitTrail('Comet')
        line = np.column_stack([np.arange(500.0), np.zeros(500), np.zeros(500)])
        for p in line:
            trail.add_point(p)
        assert len(trail) == 500

    def test_closed_orbit_stays_about_one_revolution(self):
        """Once the head catches the tail the trail stops growing."""
        trail = OrbitTrail('Earth')
        for p in _circle(500):
            trail.add_point(p)
        assert 90 <= len(trail) <= 110

    def test_clear(self):
        trail = OrbitTrail('Earth')
        for p in _circle(20):
            trail.add_point(p)
        trail.clear()
        assert len(trail) == 0

    @pytest.mark.parametrize("kwargs", [{'max_length': 1},
                                        {'auto_clear_distance': 0.0}])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            OrbitTrail('Earth', **kwargs)

    def test_repr(self):
        assert "disabled" in repr(OrbitTrail('Earth', enabled=False))


class TestTrailRecorder:
    """Test the state-listener adapter."""

    @pytest.fixture
    def sim(self):
        return Simulation(sun_earth_moon(), scale=1.0, lod=False)

    def test_records_every_tick(self, sim):
        recorder = TrailRecorder()
        sim.add_state_listener(recorder)
        for k in range(1, 6):
            sim.tick(k * 0.01, 0.01)
        assert len(recorder) == 3
        assert 'Moon' in recorder
        assert len(recorder['Earth']) == 5
        assert np.allclose(recorder['Earth'].points[-1], sim.hierarchy.body('Earth').position)

    def test_disable_one(self, sim):
        recorder = TrailRecorder()
        sim.add_state_listener(recorder)
        sim.tick(0.01, 0.01)
        recorder.set_enabled(False, 'Moon')
        sim.tick(0.02, 0.01)
        assert len(recorder['Moon']) == 1
        assert len(recorder['Earth']) == 2

    def test_disable_all(self, sim):
        recorder = TrailRecorder()
        sim.add_state_listener(recorder)
        recorder.set_enabled(False)
        sim.tick(0.01, 0.01)
        assert len(recorder) == 3
        assert all(len(recorder[name]) == 0 for name in ('Sun', 'Earth', 'Moon'))

    def test_clear(self, sim):
        recorder = TrailRecorder(max_length=4)
        sim.add_state_listener(recorder)
        for k in range(1, 8):
            sim.tick(k * 0.01, 0.01)
        assert len(recorder['Moon']) == 4
        recorder.clear()
        assert len(recorder['Moon']) == 0
