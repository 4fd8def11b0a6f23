'''Orbital mechanics core for the orrery package
OrbitalElements class definition and the orbit variants that own it'''

import numpy as np
from enum import Enum
from dataclasses import dataclass
from typing import Optional
from .config import config
from .kepler import gravitational_parameter, TWO_PI
from .transform import orbital_state
from .utils import validation_error


#define basic orbital element class
class OrbitalElements:
    """
    Classical Keplerian elements of an elliptic orbit around a central body.

    Element order is [a, e, i, omega, w, M0]:
    semi-major axis [AU], eccentricity, inclination, longitude of the
    ascending node, argument of periapsis and mean anomaly at epoch
    (angles in radians). The gravitational parameter of the central body
    and the derived mean motion and period are fixed at construction.
    OrbitalElements is immutable; create a new instance to change it.
    """
    # ========== CLASS CONSTANTS ==========
    _HASH_DECIMALS = 10     # Rounding for consistent hashing

    _PARAM_NAMES = ('a', 'e', 'i', 'omega', 'w', 'M0')
    # long-form names accepted from configuration input
    _PARAM_ALIASES = {
        'semiMajorAxis': 'a',
        'semi_major_axis': 'a',
        'eccentricity': 'e',
        'inclination': 'i',
        'longitudeOfAscendingNode': 'omega',
        'longitude_of_ascending_node': 'omega',
        'argumentOfPeriapsis': 'w',
        'argument_of_periapsis': 'w',
        'meanAnomalyAtEpoch': 'M0',
        'mean_anomaly_at_epoch': 'M0',
    }

    # ========== CONSTRUCTION ==========
    def __init__(self, elements=None, central_mass=None, mu=None,
                 validate=True, **kwargs):
        """
        Create orbital elements.

        Can be called in two ways:

        1. Array-based:
        OrbitalElements([1.0, 0.0167, 0.0, 0.0, 1.99, 6.24], central_mass=1.0)

        2. Named parameters:
        OrbitalElements(a=1.0, e=0.0167, i=0, omega=0, w=1.99, M0=6.24,
                        central_mass=1.0)

        Parameters
        ----------
        elements : array-like, optional
            6-element array [a, e, i, omega, w, M0], angles in radians
        central_mass : float, optional
            Mass of the body being orbited [M_sun]. Defaults to 1.0
            when neither central_mass nor mu is given.
        mu : float, optional
            Gravitational parameter [AU³/yr²], overrides central_mass
        validate : bool, optional
            Whether to validate elements (default True)
        **kwargs : dict
            Named parameters (a, e, i, omega, w, M0) or their long-form
            aliases (semiMajorAxis, eccentricity, ...)
        """
        if mu is not None:
            self._mu = float(mu)
        else:
            if central_mass is None:
                central_mass = 1.0
            if central_mass <= 0:
                raise ValueError(
                    f"Central body mass must be positive, got {central_mass}")
            self._mu = gravitational_parameter(central_mass)

        if elements is not None:
            self.elements = np.array(elements, dtype=float)
        elif kwargs:
            self.elements = self._from_named_params(kwargs)
        else:
            raise ValueError(
                "Must provide either an elements array [a, e, i, omega, w, M0] "
                "or named parameters a, e, i, omega, w, M0"
            )
        # Ensure immutability of elements array
        self.elements.flags.writeable = False
        if validate:
            self._validate()

        # derived quantities, computed once
        a = self.elements[0]
        self._mean_motion = float(np.sqrt(self._mu / a**3))
        self._period = float(TWO_PI / self._mean_motion)

    @classmethod
    def from_degrees(cls, a, e, i=0.0, omega=0.0, w=0.0, M0=0.0,
                     central_mass=None, mu=None):
        """
        Create elements from angles given in degrees (configuration input).

        Returns
        -------
        OrbitalElements
            Validated instance with angles stored in radians
        """
        return cls([a, e, np.radians(i), np.radians(omega),
                    np.radians(w), np.radians(M0)],
                   central_mass=central_mass, mu=mu)

    # ========== VALIDATION ==========
    def _validate(self):
        """Check that the elements describe a bound elliptic orbit."""
        if len(self.elements) != 6:
            raise ValueError("Orbital elements must be 6-element vector")
        if not np.all(np.isfinite(self.elements)):
            raise ValueError("Elements contain NaN or Inf")
        if not np.isfinite(self._mu) or self._mu <= 0:
            raise ValueError(
                f"Gravitational parameter must be positive, got {self._mu}")

        a, e, i, omega, w, M0 = self.elements
        if a <= 0:
            raise ValueError(f"Semi-major axis must be positive, got a={a}")
        if e < 0 or e >= 1:
            raise ValueError(
                f"Eccentricity must lie in [0, 1) for a bound orbit, got e={e}")
        if e > config.MAX_ACCURATE_ECCENTRICITY:
            validation_error(
                f"Eccentricity {e} exceeds {config.MAX_ACCURATE_ECCENTRICITY}; "
                f"Kepler solve accuracy is not documented in this range"
            )

    # ========== PROPERTY ACCESS ==========
    @property
    def mu(self):
        """Gravitational parameter of the central body [AU³/yr²]"""
        return self._mu

    @property
    def a(self):
        """Semi-major axis [AU]"""
        return self.elements[0]

    @property
    def e(self):
        """Eccentricity"""
        return self.elements[1]

    @property
    def i(self):
        """Inclination [rad]"""
        return self.elements[2]

    @property
    def omega(self):
        """Longitude of the ascending node [rad]"""
        return self.elements[3]

    @property
    def w(self):
        """Argument of periapsis [rad]"""
        return self.elements[4]

    @property
    def M0(self):
        """Mean anomaly at epoch [rad]"""
        return self.elements[5]

    @property
    def mean_motion(self):
        """Mean motion n = sqrt(mu/a³) [rad/yr]"""
        return self._mean_motion

    @property
    def orbital_period(self):
        """Orbital period 2π/n [yr]"""
        return self._period

    # ========== ORBITAL PROPERTIES ==========
    def mean_anomaly(self, t):
        """Mean anomaly M = M0 + n*t at time t [rad], not wrapped."""
        return self.M0 + self._mean_motion * np.asarray(t, dtype=float)

    def state_at(self, t, scale=1.0):
        """
        Position and velocity relative to the central body.

        Shortcut for transform.orbital_state(self, t, scale).

        Returns
        -------
        position, velocity : np.ndarray
            Display-frame vectors, shape (3,) or (n, 3)
        """
        return orbital_state(self, t, scale)

    def periapsis(self):
        """Periapsis distance a(1 - e) [AU]"""
        return self.a * (1 - self.e)

    def apoapsis(self):
        """Apoapsis distance a(1 + e) [AU]"""
        return self.a * (1 + self.e)

    def specific_energy(self):
        """Specific orbital energy -mu/(2a) [AU²/yr²]"""
        return -self._mu / (2 * self.a)

    def specific_angular_momentum(self):
        """Specific angular momentum sqrt(mu*a*(1-e²)) [AU²/yr]"""
        return np.sqrt(self._mu * self.a * (1 - self.e**2))

    # ========== UTILITY METHODS ==========
    def copy(self):
        """Create a deep copy of the orbital elements"""
        return OrbitalElements(self.elements.copy(), mu=self._mu, validate=False)

    @staticmethod
    def to_dataframe(orbits, index=None):
        """
        Convert a list of OrbitalElements to a pandas DataFrame.

        Parameters
        ----------
        orbits : list of OrbitalElements
        index : array-like, optional
            Index for the DataFrame (e.g. body names)

        Returns
        -------
        pd.DataFrame
            Columns a, e, i, omega, w, M0, mu, period
        """
        import pandas as pd

        if not orbits:
            return pd.DataFrame()
        if index is not None and len(index) != len(orbits):
            raise ValueError(
                f"Index length ({len(index)}) must match "
                f"number of orbits ({len(orbits)})"
            )
        data = np.array([o.elements for o in orbits])
        df = pd.DataFrame(data, columns=list(OrbitalElements._PARAM_NAMES),
                          index=index)
        df['mu'] = [o.mu for o in orbits]
        df['period'] = [o.orbital_period for o in orbits]
        return df

    # ========== SPECIAL METHODS ==========
    def __len__(self):
        return 6

    def __getitem__(self, key):
        return self.elements[key]

    def __iter__(self):
        return iter(self.elements)

    def __repr__(self):
        return f"OrbitalElements({self.elements.tolist()}, mu={self._mu})"

    def __str__(self):
        a, e, i, omega, w, M0 = self.elements
        return (f"Keplerian Elements:\n"
                f"  a     = {a:12.6f} AU\n"
                f"  e     = {e:12.6f}\n"
                f"  i     = {np.degrees(i):12.4f}°\n"
                f"  Ω     = {np.degrees(omega):12.4f}°\n"
                f"  ω     = {np.degrees(w):12.4f}°\n"
                f"  M0    = {np.degrees(M0):12.4f}°\n"
                f"  T     = {self._period:12.6f} yr")

    def __eq__(self, other):
        #Check equality with tolerance
        if not isinstance(other, OrbitalElements):
            return False
        return (np.isclose(self._mu, other._mu,
                           rtol=config.EQUALITY_RTOL, atol=config.EQUALITY_ATOL) and
                np.allclose(self.elements, other.elements,
                            rtol=config.EQUALITY_RTOL,
                            atol=config.EQUALITY_ATOL))

    def __hash__(self):
        #Hash with rounding to match equality
        rounded = tuple(round(x, self._HASH_DECIMALS) for x in self.elements)
        return hash((round(self._mu, self._HASH_DECIMALS), rounded))

    # ========== STATIC METHODS ==========
    @staticmethod
    def _from_named_params(kwargs):
        """
        Convert named parameters (or their aliases) to an elements array.

        Returns
        -------
        np.ndarray
            6-element array in [a, e, i, omega, w, M0] order
        """
        named = {}
        for key, value in kwargs.items():
            canonical = OrbitalElements._PARAM_ALIASES.get(key, key)
            if canonical not in OrbitalElements._PARAM_NAMES:
                raise ValueError(f"Unknown orbital element '{key}'")
            named[canonical] = value

        missing = [k for k in OrbitalElements._PARAM_NAMES if k not in named]
        if missing:
            raise ValueError(
                f"Could not build orbital elements, missing: {missing}\n"
                f"Keplerian requires: {list(OrbitalElements._PARAM_NAMES)}"
            )
        return np.array([named[k] for k in OrbitalElements._PARAM_NAMES],
                        dtype=float)


# define the tagged orbit variant
class OrbitKind(Enum):
    ROOT = 'root'
    ELLIPTICAL = 'elliptical'


@dataclass(frozen=True)
class RootOrbit:
    """
    Stationary orbit of the hierarchy root.

    The root is pinned at the origin with zero velocity and has no
    orbital elements.
    """
    kind: OrbitKind = OrbitKind.ROOT

    def state_at(self, t, scale=1.0):
        """Always (origin, zero velocity)."""
        return np.zeros(3), np.zeros(3)


@dataclass(frozen=True)
class EllipticalOrbit:
    """Elliptic orbit of a non-root body around its parent."""
    elements: OrbitalElements
    kind: OrbitKind = OrbitKind.ELLIPTICAL

    def state_at(self, t, scale=1.0):
        """Parent-relative display-frame state, see OrbitalElements.state_at."""
        return self.elements.state_at(t, scale)

    @property
    def orbital_period(self):
        """Orbital period [yr]"""
        return self.elements.orbital_period


def orbital_period(orbit: "Optional[RootOrbit | EllipticalOrbit]"):
    """Period of an orbit variant; 0.0 for the stationary root orbit."""
    if orbit is None:
        raise ValueError("Body has no orbit")
    if orbit.kind == OrbitKind.ROOT:
        return 0.0
    elif orbit.kind == OrbitKind.ELLIPTICAL:
        return orbit.elements.orbital_period
    raise TypeError(f"Unknown orbit kind {orbit.kind}")
