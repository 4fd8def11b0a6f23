"""
Test suite for OrbitalElements and the orbit variants.

Tests include:
1. Construction (array, named, aliases, degrees)
2. Validation of fatal and soft errors
3. Derived quantities
4. Special methods and export
5. RootOrbit / EllipticalOrbit dispatch
"""

import pytest
import numpy as np
import pandas as pd
from orrery import (OrbitalElements, OE, OrbitKind, RootOrbit,
                    EllipticalOrbit, temp_config)
from orrery.orbital_elements import orbital_period

GM_SUN = 4 * np.pi**2

# Earth-like elements in radians
EARTH_ELEMENTS = [1.000001, 0.016709, 0.0, 0.0,
                  np.radians(114.208), np.radians(357.529)]


@pytest.fixture
def earth():
    return OrbitalElements(EARTH_ELEMENTS, central_mass=1.0)


class TestConstruction:
    """Test the different ways of building elements."""

    def test_array_construction(self, earth):
        assert earth.a == pytest.approx(1.000001)
        assert earth.e == pytest.approx(0.016709)
        assert earth.M0 == pytest.approx(np.radians(357.529))

    def test_named_matches_array(self, earth):
        named = OrbitalElements(a=1.000001, e=0.016709, i=0.0, omega=0.0,
                                w=np.radians(114.208), M0=np.radians(357.529))
        assert named == earth

    def test_long_form_aliases(self, earth):
        aliased = OrbitalElements(semiMajorAxis=1.000001, eccentricity=0.016709,
                                  inclination=0.0, longitudeOfAscendingNode=0.0,
                                  argumentOfPeriapsis=np.radians(114.208),
                                  meanAnomalyAtEpoch=np.radians(357.529))
        assert aliased == earth

    def test_from_degrees(self, earth):
        converted = OrbitalElements.from_degrees(1.000001, 0.016709, 0.0, 0.0,
                                                 114.208, 357.529)
        assert converted == earth

    def test_abbreviation(self):
        assert OE is OrbitalElements

    def test_default_central_mass_is_sun(self, earth):
        assert earth.mu == pytest.approx(GM_SUN)

    def test_mu_from_central_mass(self):
        moon = OrbitalElements.from_degrees(0.00257, 0.0549, 5.1, 125.0, 318.0,
                                            135.0, central_mass=3.00348e-6)
        assert moon.mu == pytest.approx(GM_SUN * 3.00348e-6)

    def test_explicit_mu_overrides_mass(self):
        oe = OrbitalElements([1.0, 0.0, 0.0, 0.0, 0.0, 0.0], mu=1.0)
        assert oe.mu == 1.0
        assert oe.orbital_period == pytest.approx(2 * np.pi)

    def test_elements_are_read_only(self, earth):
        with pytest.raises(ValueError):
            earth.elements[0] = 2.0

    def test_missing_named_parameter(self):
        with pytest.raises(ValueError, match="missing"):
            OrbitalElements(a=1.0, e=0.1)

    def test_unknown_named_parameter(self):
        with pytest.raises(ValueError, match="Unknown orbital element"):
            OrbitalElements(a=1.0, e=0.1, i=0, omega=0, w=0, M0=0, q=3)

    def test_no_input(self):
        with pytest.raises(ValueError):
            OrbitalElements()


class TestValidation:
    """Test fatal and soft validation."""

    @pytest.mark.parametrize("elements", [
        [1.0, 1.0, 0, 0, 0, 0],          # parabolic
        [1.0, 1.5, 0, 0, 0, 0],          # hyperbolic
        [1.0, -0.1, 0, 0, 0, 0],         # negative eccentricity
        [0.0, 0.1, 0, 0, 0, 0],          # zero semi-major axis
        [-1.0, 0.1, 0, 0, 0, 0],         # negative semi-major axis
        [1.0, np.nan, 0, 0, 0, 0],       # NaN
        [np.inf, 0.1, 0, 0, 0, 0],       # Inf
        [1.0, 0.1, 0, 0, 0],             # wrong length
    ])
    def test_invalid_elements_raise(self, elements):
        with pytest.raises(ValueError):
            OrbitalElements(elements)

    def test_non_positive_central_mass(self):
        with pytest.raises(ValueError, match="Central body mass"):
            OrbitalElements([1.0, 0.1, 0, 0, 0, 0], central_mass=0.0)

    def test_high_eccentricity_strict(self):
        with temp_config(STRICT_VALIDATION=True):
            with pytest.raises(ValueError, match="Eccentricity"):
                OrbitalElements([1.0, 0.995, 0, 0, 0, 0])

    def test_high_eccentricity_lenient_warns(self):
        with temp_config(STRICT_VALIDATION=False):
            with pytest.warns(UserWarning, match="Eccentricity"):
                oe = OrbitalElements([1.0, 0.995, 0, 0, 0, 0])
        assert oe.e == 0.995

    def test_eccentricity_at_limit_accepted(self):
        oe = OrbitalElements([1.0, 0.99, 0, 0, 0, 0])
        assert oe.e == 0.99


class TestDerivedQuantities:
    """Test quantities computed from the elements."""

    def test_earth_period_one_year(self):
        """a = 1 AU, e = 0.0167 around 1 solar mass: period ≈ 1.000 yr."""
        oe = OrbitalElements([1.0, 0.0167, 0, 0, 0, 0], central_mass=1.0)
        assert oe.orbital_period == pytest.approx(1.0, rel=0.01)

    def test_mean_motion(self, earth):
        assert earth.mean_motion == pytest.approx(
            np.sqrt(GM_SUN / earth.a**3))
        assert earth.mean_motion * earth.orbital_period == pytest.approx(2 * np.pi)

    def test_mean_anomaly_linear_in_time(self, earth):
        t = np.array([0.0, 0.5, 2.0])
        assert np.allclose(earth.mean_anomaly(t),
                           earth.M0 + earth.mean_motion * t)

    def test_apsides(self):
        oe = OrbitalElements([2.0, 0.5, 0, 0, 0, 0])
        assert oe.periapsis() == pytest.approx(1.0)
        assert oe.apoapsis() == pytest.approx(3.0)

    def test_specific_energy(self):
        oe = OrbitalElements([2.0, 0.5, 0, 0, 0, 0])
        assert oe.specific_energy() == pytest.approx(-GM_SUN / 4.0)

    def test_state_at_shape(self, earth):
        p, v = earth.state_at(0.0)
        assert p.shape == (3,) and v.shape == (3,)
        p, v = earth.state_at(np.linspace(0, 1, 5))
        assert p.shape == (5, 3)


class TestSpecialMethods:
    """Test dunder methods, copy and export."""

    def test_len_iter_getitem(self, earth):
        assert len(earth) == 6
        assert list(earth)[1] == pytest.approx(0.016709)
        assert earth[0] == pytest.approx(1.000001)

    def test_equality_tolerance(self, earth):
        nudged = OrbitalElements(np.array(EARTH_ELEMENTS) * (1 + 1e-15))
        assert nudged == earth
        other = OrbitalElements([1.1, 0.016709, 0, 0, 0, 0])
        assert other != earth

    def test_equality_checks_mu(self, earth):
        heavier = OrbitalElements(EARTH_ELEMENTS, central_mass=2.0)
        assert heavier != earth

    def test_hash_consistent(self, earth):
        assert hash(earth) == hash(earth.copy())
        assert len({earth, earth.copy()}) == 1

    def test_copy_is_independent(self, earth):
        clone = earth.copy()
        assert clone == earth
        assert clone.elements is not earth.elements

    def test_repr_and_str(self, earth):
        assert "OrbitalElements" in repr(earth)
        assert "Keplerian Elements" in str(earth)

    def test_to_dataframe(self, earth):
        moon = OrbitalElements.from_degrees(0.00257, 0.0549, 5.1, 125.0, 318.0,
                                            135.0, central_mass=3.00348e-6)
        df = OrbitalElements.to_dataframe([earth, moon], index=['Earth', 'Moon'])
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ['a', 'e', 'i', 'omega', 'w', 'M0', 'mu', 'period']
        assert df.loc['Moon', 'a'] == pytest.approx(0.00257)

    def test_to_dataframe_index_mismatch(self, earth):
        with pytest.raises(ValueError, match="Index length"):
            OrbitalElements.to_dataframe([earth], index=['a', 'b'])


class TestOrbitVariants:
    """Test RootOrbit and EllipticalOrbit."""

    def test_root_orbit_at_origin(self):
        orbit = RootOrbit()
        assert orbit.kind == OrbitKind.ROOT
        p, v = orbit.state_at(12.3)
        assert np.all(p == 0) and np.all(v == 0)

    def test_elliptical_orbit_delegates(self, earth):
        orbit = EllipticalOrbit(earth)
        assert orbit.kind == OrbitKind.ELLIPTICAL
        p_orbit, _ = orbit.state_at(0.3)
        p_elem, _ = earth.state_at(0.3)
        assert np.allclose(p_orbit, p_elem)
        assert orbit.orbital_period == earth.orbital_period

    def test_orbital_period_dispatch(self, earth):
        assert orbital_period(RootOrbit()) == 0.0
        assert orbital_period(EllipticalOrbit(earth)) == earth.orbital_period

    def test_orbital_period_requires_orbit(self):
        with pytest.raises(ValueError, match="no orbit"):
            orbital_period(None)

    def test_variants_are_frozen(self, earth):
        orbit = EllipticalOrbit(earth)
        with pytest.raises(Exception):
            orbit.elements = None
