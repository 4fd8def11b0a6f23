"""
Test suite for the Simulation driver.

Tests cover:
- Construction and mode parsing
- Analytic and N-body ticks
- LOD updates within ticks
- Listeners, export and plotting
"""

import pytest
import numpy as np
import plotly.graph_objects as go
from orrery import (Hierarchy, PhysicsMode, Simulation, TickResult,
                    orbital_state, sun_earth_moon, config)

FAR = [0.0, 1e6, 0.0]


@pytest.fixture
def sim():
    return Simulation(sun_earth_moon(), scale=1.0)


class TestConstruction:
    """Test creating simulations."""

    def test_requires_link(self):
        h = Hierarchy()
        h.add_body('Sun', mass=1.0)
        with pytest.raises(RuntimeError):
            Simulation(h)

    def test_defaults(self):
        sim = Simulation(sun_earth_moon())
        assert sim.mode == PhysicsMode.ANALYTIC
        assert sim.scale == config.AU_SCALE
        assert len(sim.lod) == 2
        assert sim.time == 0.0

    def test_initial_state_is_analytic(self, sim):
        earth = sim.hierarchy.body('Earth')
        p, _ = orbital_state(earth.elements, 0.0)
        assert np.allclose(earth.position, p)

    @pytest.mark.parametrize("mode, expected", [
        ('analytic', PhysicsMode.ANALYTIC),
        ('kepler', PhysicsMode.ANALYTIC),
        ('nbody', PhysicsMode.NBODY),
        ('n-body', PhysicsMode.NBODY),
        (PhysicsMode.NBODY, PhysicsMode.NBODY),
    ])
    def test_mode_parsing(self, mode, expected):
        assert Simulation(sun_earth_moon(), mode=mode, lod=False).mode == expected

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="Unknown physics mode"):
            Simulation(sun_earth_moon(), mode='warp')

    def test_mode_type(self):
        with pytest.raises(TypeError):
            Simulation(sun_earth_moon(), mode=3)


class TestAnalyticTicks:
    """Test ticks in analytic mode."""

    def test_tick_matches_propagation(self, sim):
        result = sim.tick(0.3, 0.01)
        assert isinstance(result, TickResult)
        assert result.t == 0.3
        assert result.mode == PhysicsMode.ANALYTIC
        assert [sim.hierarchy.bodies[i].name for i in result.updated] == \
            ['Sun', 'Earth', 'Moon']
        earth = sim.hierarchy.body('Earth')
        p, v = orbital_state(earth.elements, 0.3)
        assert np.allclose(earth.position, p)
        assert np.allclose(earth.velocity, v)

    def test_scaled_tick(self):
        sim = Simulation(sun_earth_moon(), scale=21.55)
        sim.tick(0.3, 0.01)
        earth = sim.hierarchy.body('Earth')
        p, _ = orbital_state(earth.elements, 0.3)
        assert np.allclose(earth.position, 21.55 * p)

    def test_lod_runs_on_interval(self, sim):
        for k in range(1, 30):
            assert sim.tick(k * 0.01, 0.01, camera_position=FAR).rebuilt == []
        result = sim.tick(0.3, 0.01, camera_position=FAR)
        assert [sim.hierarchy.bodies[i].name for i in result.rebuilt] == \
            ['Earth', 'Moon']

    def test_no_camera_no_lod(self, sim):
        for k in range(1, 31):
            result = sim.tick(k * 0.01, 0.01)
        assert result.rebuilt == []
        assert sim.lod.path('Earth').current_segments == 100

    def test_lod_disabled(self):
        sim = Simulation(sun_earth_moon(), scale=1.0, lod=False)
        assert sim.lod is None
        for k in range(1, 31):
            result = sim.tick(k * 0.01, 0.01, camera_position=FAR)
        assert result.rebuilt == []
        with pytest.raises(RuntimeError):
            sim.add_path_listener(lambda body, points: None)


class TestNBodyTicks:
    """Test mode switching and N-body ticks."""

    def test_seeded_from_analytic(self, sim):
        sim.set_mode('nbody', t=0.3)
        assert sim.mode == PhysicsMode.NBODY
        assert sim.nbody is not None
        assert sim.time == 0.3
        earth = sim.hierarchy.body('Earth')
        p, _ = orbital_state(earth.elements, 0.3)
        assert np.allclose(earth.position, p)

    def test_tick_moves_bodies(self, sim):
        sim.set_mode('nbody', t=0.3)
        before = sim.hierarchy.body('Earth').position.copy()
        result = sim.tick(0.301, 1e-3)
        assert result.mode == PhysicsMode.NBODY
        assert result.updated == sim.nbody.indices
        after = sim.hierarchy.body('Earth').position
        assert not np.allclose(after, before)
        assert np.linalg.norm(after - before) == pytest.approx(
            2 * np.pi * 1e-3, rel=0.05)

    def test_switch_back_to_analytic(self, sim):
        sim.set_mode('nbody', t=0.0)
        for k in range(1, 11):
            sim.tick(k * 1e-3, 1e-3)
        sim.set_mode('analytic')
        assert sim.nbody is None
        assert sim.time == pytest.approx(0.01)
        earth = sim.hierarchy.body('Earth')
        p, _ = orbital_state(earth.elements, 0.01)
        assert np.allclose(earth.position, p)


class TestListeners:
    """Test state and path listeners."""

    def test_state_listener_per_body(self, sim):
        seen = []
        sim.add_state_listener(lambda body: seen.append(body.name))
        sim.tick(0.1, 0.01)
        assert seen == ['Sun', 'Earth', 'Moon']

    def test_state_listener_in_nbody_mode(self, sim):
        seen = []
        sim.add_state_listener(lambda body: seen.append(body.name))
        sim.set_mode(PhysicsMode.NBODY)
        sim.tick(0.001, 0.001)
        sim.tick(0.002, 0.001)
        assert len(seen) == 6

    def test_path_listener(self, sim):
        seen = []
        sim.add_path_listener(lambda body, points: seen.append(body.name))
        for k in range(1, 31):
            sim.tick(k * 0.01, 0.01, camera_position=FAR)
        assert seen == ['Earth', 'Moon']


class TestExport:
    """Test DataFrame export and plotting."""

    def test_to_dataframe(self, sim):
        df = sim.to_dataframe()
        assert list(df.index) == ['Sun', 'Earth', 'Moon']

    def test_plot_3d(self, sim):
        fig = sim.plot_3d()
        assert isinstance(fig, go.Figure)
        # two orbit paths and the body markers
        assert len(fig.data) == 3

    def test_repr(self, sim):
        assert "analytic" in repr(sim)
