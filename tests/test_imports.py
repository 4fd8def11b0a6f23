"""Smoke tests to verify package imports work."""

def test_package_imports():
    """Test that all main classes can be imported."""
    from orrery import (OrbitalElements, Hierarchy, NBodyIntegrator,
                        OrbitPath, LODController, Simulation)
    assert OrbitalElements is not None
    assert Hierarchy is not None
    assert NBodyIntegrator is not None
    assert OrbitPath is not None
    assert LODController is not None
    assert Simulation is not None

def test_version_exists():
    """Test that version is defined."""
    import orrery
    assert hasattr(orrery, '__version__')
    assert orrery.__version__ == "0.1.0"

def test_can_create_orbital_elements():
    """Test basic OrbitalElements creation."""
    from orrery import OrbitalElements
    oe = OrbitalElements([1.0, 0.0167, 0.0, 0.0, 0.0, 0.0])
    assert oe.a == 1.0

def test_can_build_default_hierarchy():
    """Test the default solar system builds and links."""
    from orrery import solar_system
    h = solar_system()
    assert h.is_linked
    assert h.root_body.name == 'Sun'
    assert 'Moon' in h

def test_config_exported():
    """Test that the configuration singleton is exposed."""
    import orrery
    from orrery.config import config
    assert orrery.config is config

def test_reference_integrator_exported():
    """Test that the heyoka-backed reference integrator is exposed."""
    import orrery
    from orrery.reference import ReferenceIntegrator, leapfrog_drift
    assert orrery.ReferenceIntegrator is ReferenceIntegrator
    assert orrery.leapfrog_drift is leapfrog_drift
    assert 'ReferenceIntegrator' in orrery.__all__
