"""
Global Configuration for Orrery Package
=======================================

This module provides package-wide configuration settings that users can modify
to control solver tolerances, integration constants, orbit-path level of
detail and validation behavior.

Examples
--------
View current configuration:

>>> import orrery
>>> print(orrery.config)

Modify settings:

>>> orrery.config.KEPLER_TOLERANCE = 1e-14   # Stricter Kepler solve
>>> orrery.config.LOD_UPDATE_INTERVAL = 10   # Check orbit detail more often

Reset to defaults:

>>> orrery.config.reset()

Temporarily modify settings:

>>> with orrery.temp_config(SOFTENING=1e-2):
...     # Heavier softening for this block only
...     sim.tick(t, dt)

Notes
-----
Units follow the astronomical convention used throughout the package:
lengths in AU, time in years, masses in solar masses. With these units the
gravitational constant is exactly 4π².
"""

from dataclasses import dataclass
from contextlib import contextmanager
import math


# G * M_sun in AU^3 / year^2
GM_SUN = 4 * math.pi**2


@dataclass
class OrreryConfig:
    """
    Global configuration for Orrery package.

    Attributes
    ----------
    EQUALITY_RTOL : float
        Relative tolerance for floating-point equality comparisons.
        Default: 1e-12
    EQUALITY_ATOL : float
        Absolute tolerance for floating-point equality comparisons.
        Default: 1e-14
    STRICT_VALIDATION : bool
        If True, soft validation failures raise exceptions.
        If False, they issue warnings. Fatal configuration errors
        (negative semi-major axis, e >= 1, ...) always raise.
        Default: True
    MAX_ACCURATE_ECCENTRICITY : float
        Largest eccentricity for which the Kepler solver accuracy is
        documented. Orbits above it are accepted with a validation warning.
        Default: 0.99
    KEPLER_ITERATIONS : int
        Fixed-point iterations E = M + e*sin(E) performed before any
        Newton refinement.
        Default: 10
    KEPLER_TOLERANCE : float
        Residual |E - e*sin(E) - M| accepted by the Kepler solver [rad].
        Default: 1e-12
    KEPLER_MAX_NEWTON_ITERATIONS : int
        Upper bound on Newton-Raphson refinement steps.
        Default: 50
    G : float
        Gravitational constant [AU^3 / (M_sun * year^2)].
        Default: 4π²
    SOFTENING : float
        Softening length added in quadrature to pair separations, in the
        units of the integrated positions.
        Default: 1e-3
    NBODY_DAMPING : float
        Velocity damping factor per integration step (1.0 disables it).
        Default: 1.0
    AU_SCALE : float
        Display units per AU used by Simulation when no scale is given.
        Default: 21.55
    LOD_MIN_SEGMENTS : int
        Segment count of an orbit path seen from far away.
        Default: 64
    LOD_MAX_SEGMENTS : int
        Segment ceiling for an orbit of reference radius.
        Default: 10000
    LOD_INITIAL_SEGMENTS : int
        Segment count used when a path is first built.
        Default: 100
    LOD_RADIUS_REFERENCE : float
        Visual radius [display units] at which an orbit gets exactly
        LOD_MAX_SEGMENTS as its ceiling.
        Default: 100.0
    LOD_CLOSE_DISTANCE : float
        Viewer distance [display units] giving maximum detail.
        Default: 0.02
    LOD_FAR_DISTANCE : float
        Viewer distance [display units] giving minimum detail.
        Default: 7000.0
    LOD_UPDATE_INTERVAL : int
        Number of update calls between segment-count recomputations.
        Default: 30
    LOD_MIN_SEGMENT_CHANGE : int
        Minimum segment change that triggers a rebuild. The effective
        threshold is max(LOD_MIN_SEGMENT_CHANGE, 10% of current count).
        Default: 8
    TRAIL_MAX_LENGTH : int
        Maximum number of points kept by an orbit trail.
        Default: 1200
    TRAIL_AUTO_CLEAR_DISTANCE : float
        Head-to-tail distance below which a trail drops its oldest points,
        one per update [display units].
        Default: 0.6
    DEFAULT_PATH_COLOR : str
        Default color for orbit path lines in plots.
        Default: 'red'
    DEFAULT_BODY_COLOR : str
        Default color for body markers in plots.
        Default: 'lightblue'
    """

    # Numerical tolerance for equality comparisons
    EQUALITY_RTOL: float = 1e-12
    EQUALITY_ATOL: float = 1e-14

    # Validation behavior
    STRICT_VALIDATION: bool = True
    MAX_ACCURATE_ECCENTRICITY: float = 0.99

    # Kepler solver
    KEPLER_ITERATIONS: int = 10
    KEPLER_TOLERANCE: float = 1e-12
    KEPLER_MAX_NEWTON_ITERATIONS: int = 50

    # N-body integration
    G: float = GM_SUN
    SOFTENING: float = 1e-3
    NBODY_DAMPING: float = 1.0

    # Display scale
    AU_SCALE: float = 21.55

    # Orbit path level of detail
    LOD_MIN_SEGMENTS: int = 64
    LOD_MAX_SEGMENTS: int = 10000
    LOD_INITIAL_SEGMENTS: int = 100
    LOD_RADIUS_REFERENCE: float = 100.0
    LOD_CLOSE_DISTANCE: float = 0.02
    LOD_FAR_DISTANCE: float = 7000.0
    LOD_UPDATE_INTERVAL: int = 30
    LOD_MIN_SEGMENT_CHANGE: int = 8

    # Orbit trails
    TRAIL_MAX_LENGTH: int = 1200
    TRAIL_AUTO_CLEAR_DISTANCE: float = 0.6

    # Plotting defaults
    DEFAULT_PATH_COLOR: str = 'red'
    DEFAULT_BODY_COLOR: str = 'lightblue'

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import orrery
        >>> orrery.config.SOFTENING = 0.1  # Modify
        >>> orrery.config.reset()  # Back to defaults
        >>> orrery.config.SOFTENING
        0.001
        """
        defaults = OrreryConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        """Return formatted string showing all configuration values."""
        lines = ["OrreryConfig:"]
        lines.append("  Numerical Tolerances:")
        lines.append(f"    EQUALITY_RTOL = {self.EQUALITY_RTOL}")
        lines.append(f"    EQUALITY_ATOL = {self.EQUALITY_ATOL}")
        lines.append("  Validation:")
        lines.append(f"    STRICT_VALIDATION = {self.STRICT_VALIDATION}")
        lines.append(f"    MAX_ACCURATE_ECCENTRICITY = {self.MAX_ACCURATE_ECCENTRICITY}")
        lines.append("  Kepler Solver:")
        lines.append(f"    KEPLER_ITERATIONS = {self.KEPLER_ITERATIONS}")
        lines.append(f"    KEPLER_TOLERANCE = {self.KEPLER_TOLERANCE}")
        lines.append(f"    KEPLER_MAX_NEWTON_ITERATIONS = {self.KEPLER_MAX_NEWTON_ITERATIONS}")
        lines.append("  N-Body Integration:")
        lines.append(f"    G = {self.G}")
        lines.append(f"    SOFTENING = {self.SOFTENING}")
        lines.append(f"    NBODY_DAMPING = {self.NBODY_DAMPING}")
        lines.append(f"    AU_SCALE = {self.AU_SCALE}")
        lines.append("  Orbit Path LOD:")
        lines.append(f"    LOD_MIN_SEGMENTS = {self.LOD_MIN_SEGMENTS}")
        lines.append(f"    LOD_MAX_SEGMENTS = {self.LOD_MAX_SEGMENTS}")
        lines.append(f"    LOD_INITIAL_SEGMENTS = {self.LOD_INITIAL_SEGMENTS}")
        lines.append(f"    LOD_RADIUS_REFERENCE = {self.LOD_RADIUS_REFERENCE}")
        lines.append(f"    LOD_CLOSE_DISTANCE = {self.LOD_CLOSE_DISTANCE}")
        lines.append(f"    LOD_FAR_DISTANCE = {self.LOD_FAR_DISTANCE}")
        lines.append(f"    LOD_UPDATE_INTERVAL = {self.LOD_UPDATE_INTERVAL}")
        lines.append(f"    LOD_MIN_SEGMENT_CHANGE = {self.LOD_MIN_SEGMENT_CHANGE}")
        lines.append("  Trails:")
        lines.append(f"    TRAIL_MAX_LENGTH = {self.TRAIL_MAX_LENGTH}")
        lines.append(f"    TRAIL_AUTO_CLEAR_DISTANCE = {self.TRAIL_AUTO_CLEAR_DISTANCE}")
        lines.append("  Plotting:")
        lines.append(f"    DEFAULT_PATH_COLOR = '{self.DEFAULT_PATH_COLOR}'")
        lines.append(f"    DEFAULT_BODY_COLOR = '{self.DEFAULT_BODY_COLOR}'")
        return "\n".join(lines)


# Global configuration instance
config = OrreryConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Context manager for temporarily modifying configuration values.

    Configuration is automatically restored when the context exits,
    even if an exception occurs.

    Parameters
    ----------
    **kwargs
        Configuration attributes to temporarily modify.

    Examples
    --------
    >>> import orrery
    >>> with orrery.temp_config(KEPLER_ITERATIONS=3, STRICT_VALIDATION=False):
    ...     E = orrery.kepler.solve_kepler(1.0, 0.5)
    >>> # Original config restored here
    >>> orrery.config.KEPLER_ITERATIONS
    10

    Raises
    ------
    AttributeError
        If an invalid configuration attribute is specified.
    """
    old_values = {}
    for key, value in kwargs.items():
        if not hasattr(config, key):
            raise AttributeError(
                f"OrreryConfig has no attribute '{key}'. "
                f"Valid attributes: {list(config.__dataclass_fields__.keys())}"
            )
        old_values[key] = getattr(config, key)
        setattr(config, key, value)

    try:
        yield config
    finally:
        for key, value in old_values.items():
            setattr(config, key, value)
