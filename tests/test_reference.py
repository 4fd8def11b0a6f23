"""
Test suite for the heyoka reference integrator.

Tests cover:
- Construction and lazy compilation
- Accuracy against the analytic two-body solution
- Leapfrog drift measurement
"""

import pytest
import numpy as np
from orrery import Hierarchy, NBodyIntegrator, propagate_hierarchy
from orrery.reference import ReferenceIntegrator, leapfrog_drift


@pytest.fixture
def sun_earth():
    h = Hierarchy()
    h.add_body('Sun', mass=1.0)
    h.add_body('Earth', mass=3e-6, parent='Sun',
               elements={'a': 1.0, 'e': 0.0167, 'w': 102.9})
    return h.link()


class TestConstruction:
    """Test building the reference integrator."""

    def test_requires_two_masses(self):
        with pytest.raises(ValueError, match="at least two"):
            ReferenceIntegrator([1.0], compile=False)

    def test_requires_positive_masses(self):
        with pytest.raises(ValueError, match="positive"):
            ReferenceIntegrator([1.0, 0.0], compile=False)

    def test_lazy_compilation(self):
        ref = ReferenceIntegrator([1.0, 3e-6], compile=False)
        assert not ref.is_compiled
        # positions then velocities, three components per body
        assert len(ref.cached_eom) == 12
        assert ref.n_bodies == 2
        assert "compiled=False" in repr(ref)

    def test_from_integrator(self, sun_earth):
        nbody = NBodyIntegrator(sun_earth, scale=2.0, softening=0.0)
        ref = ReferenceIntegrator.from_integrator(nbody, compile=False)
        assert ref.G == pytest.approx(nbody.effective_G)
        assert ref.softening == 0.0
        assert np.allclose(ref._masses, nbody.masses)


class TestPropagation:
    """Test accuracy of the Taylor integration."""

    def test_shape_checked(self):
        ref = ReferenceIntegrator([1.0, 3e-6], compile=False)
        with pytest.raises(ValueError, match="shape"):
            ref.propagate(np.zeros((3, 3)), np.zeros((3, 3)), 0.0, 1.0)

    def test_non_finite_rejected(self):
        ref = ReferenceIntegrator([1.0, 3e-6], compile=False)
        positions = np.array([[0.0, 0.0, 0.0], [np.nan, 0.0, 0.0]])
        with pytest.raises(ValueError, match="NaN"):
            ref.propagate(positions, np.zeros((2, 3)), 0.0, 1.0)

    def test_matches_kepler_orbit(self, sun_earth):
        """Over a quarter year the Earth stays on its analytic ellipse."""
        propagate_hierarchy(sun_earth, 0.0)
        positions = np.array([b.position for b in sun_earth])
        velocities = np.array([b.velocity for b in sun_earth])
        ref = ReferenceIntegrator([1.0, 3e-6], softening=0.0)
        assert ref.is_compiled
        final_pos, _ = ref.propagate(positions, velocities, 0.0, 0.25)

        propagate_hierarchy(sun_earth, 0.25)
        assert np.allclose(final_pos[1], sun_earth.body('Earth').position,
                           atol=1e-4)


class TestDrift:
    """Test Leapfrog drift measurement."""

    def test_small_step_drift(self, sun_earth):
        nbody = NBodyIntegrator(sun_earth)
        nbody.initialize(0.0)
        error = leapfrog_drift(nbody, dt=1e-4, steps=100)
        assert error.shape == (2,)
        assert np.all(error < 1e-3)

    def test_drift_grows_with_step(self, sun_earth):
        nbody = NBodyIntegrator(sun_earth)
        ref = ReferenceIntegrator.from_integrator(nbody)
        nbody.initialize(0.0)
        fine = leapfrog_drift(nbody, ref, dt=1e-4, steps=100)
        nbody.initialize(0.0)
        coarse = leapfrog_drift(nbody, ref, dt=1e-3, steps=10)
        assert coarse[1] > fine[1]
