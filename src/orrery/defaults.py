"""
Default Bodies and Hierarchy Configurations
===========================================

Nested configuration dicts for the Solar System, in the form accepted by
Hierarchy.from_config, plus factory functions that build linked
hierarchies on demand.

Units: a in AU, angles in degrees, masses in solar masses. Mean anomalies
are at epoch J2000.

Examples
--------
>>> from orrery import solar_system, inner_solar_system
>>> h = solar_system()                      # Sun, planets and major moons
>>> h = solar_system(include_moons=False)   # Sun and planets only
"""
import copy
from .hierarchy import Hierarchy

"""
Planetary and satellite elements
Mean J2000 elements relative to the ecliptic; satellite inclinations are
relative to the parent's equator.
"""
MERCURY = dict(name='Mercury', mass=1.66013e-7, axial_tilt=0.034,
               a=0.387098, e=0.205630, i=7.005, omega=48.331, w=29.124, M0=174.796)

VENUS = dict(name='Venus', mass=2.44783e-6, axial_tilt=177.4,
             a=0.723332, e=0.006772, i=3.395, omega=76.680, w=54.884, M0=50.115)

EARTH = dict(name='Earth', mass=3.00348e-6, axial_tilt=23.44,
             a=1.000001, e=0.016709, i=0.0, omega=0.0, w=114.208, M0=357.529)

MOON = dict(name='Moon', mass=3.69396e-8, axial_tilt=1.54, tidally_locked=True,
            a=0.00257, e=0.0549, i=5.1, omega=125.0, w=318.0, M0=135.0)

MARS = dict(name='Mars', mass=3.22715e-7, axial_tilt=25.19,
            a=1.523679, e=0.093401, i=1.850, omega=49.558, w=286.502, M0=19.373)

JUPITER = dict(name='Jupiter', mass=9.54265e-4, axial_tilt=3.13,
               a=5.204267, e=0.048498, i=1.303, omega=100.464, w=273.867, M0=20.020)

GALILEAN_MOONS = [
    dict(name='Io', mass=4.704e-9, axial_tilt=0.05, tidally_locked=True,
         a=0.002819, e=0.0041, i=0.05, omega=43.977, w=84.129, M0=0.0),
    dict(name='Europa', mass=2.528e-9, axial_tilt=0.1, tidally_locked=True,
         a=0.004486, e=0.009, i=0.47, omega=219.106, w=88.970, M0=90.0),
    dict(name='Ganymede', mass=7.805e-9, axial_tilt=0.33, tidally_locked=True,
         a=0.007155, e=0.0013, i=0.20, omega=63.552, w=192.417, M0=180.0),
    dict(name='Callisto', mass=5.670e-9, axial_tilt=0.51, tidally_locked=True,
         a=0.01258, e=0.0074, i=0.51, omega=298.848, w=52.643, M0=270.0),
]

SATURN = dict(name='Saturn', mass=2.85885e-4, axial_tilt=26.73,
              a=9.582017, e=0.055723, i=2.485, omega=113.665, w=339.392, M0=317.020)

SATURNIAN_MOONS = [
    dict(name='Mimas', mass=1.972e-12, axial_tilt=0.02, tidally_locked=True,
         a=0.001241, e=0.0196, i=0.02, omega=139.1, w=342.2, M0=0.0),
    dict(name='Enceladus', mass=5.655e-12, axial_tilt=0.0, tidally_locked=True,
         a=0.001593, e=0.0047, i=0.02, omega=6.2, w=211.9, M0=90.0),
    dict(name='Tethys', mass=3.09e-11, axial_tilt=0.02, tidally_locked=True,
         a=0.001975, e=0.0001, i=0.02, omega=158.3, w=262.2, M0=180.0),
    dict(name='Dione', mass=5.48e-11, axial_tilt=0.02, tidally_locked=True,
         a=0.002523, e=0.0022, i=0.02, omega=168.8, w=91.1, M0=270.0),
    dict(name='Titan', mass=6.741e-9, axial_tilt=0.02, tidally_locked=True,
         a=0.008168, e=0.0288, i=0.02, omega=28.1, w=180.5, M0=0.0),
    dict(name='Iapetus', mass=9.09e-11, axial_tilt=8.13, tidally_locked=True,
         a=0.0238, e=0.0286, i=8.13, omega=75.8, w=271.6, M0=90.0),
]

URANUS = dict(name='Uranus', mass=4.36625e-5, axial_tilt=97.77,
              a=19.18917, e=0.047168, i=0.773, omega=74.006, w=96.998, M0=142.238)

NEPTUNE = dict(name='Neptune', mass=5.15138e-5, axial_tilt=28.32,
               a=30.06896, e=0.008606, i=1.770, omega=131.784, w=276.336, M0=256.228)

PLUTO = dict(name='Pluto', mass=6.58719e-9, axial_tilt=122.53,
             a=39.48211, e=0.248808, i=17.140, omega=110.299, w=113.834, M0=0.0)

CHARON = dict(name='Charon', mass=8.08e-10, axial_tilt=0.08, tidally_locked=True,
              a=0.000131, e=0.0002, i=0.08, omega=223.0, w=102.0, M0=180.0)

SUN = dict(name='Sun', mass=1.0, axial_tilt=7.25)


def _with_children(body, children=()):
    entry = copy.deepcopy(body)
    entry['children'] = [copy.deepcopy(c) for c in children]
    return entry


def solar_system_config(include_moons=True):
    """
    Nested configuration for the Sun, planets, Pluto and major moons.

    Parameters
    ----------
    include_moons : bool, optional
        Include the Moon, Galilean and Saturnian moons and Charon
        (default True)

    Returns
    -------
    dict
        Fresh copy, safe to modify
    """
    moons = (lambda bodies: bodies) if include_moons else (lambda bodies: ())
    return _with_children(SUN, [
        _with_children(MERCURY),
        _with_children(VENUS),
        _with_children(EARTH, moons([MOON])),
        _with_children(MARS),
        _with_children(JUPITER, moons(GALILEAN_MOONS)),
        _with_children(SATURN, moons(SATURNIAN_MOONS)),
        _with_children(URANUS),
        _with_children(NEPTUNE),
        _with_children(PLUTO, moons([CHARON])),
    ])


def solar_system(include_moons=True):
    """
    Linked hierarchy of the Solar System.

    Parameters
    ----------
    include_moons : bool, optional
        Include major moons (default True)

    Returns
    -------
    Hierarchy
    """
    return Hierarchy.from_config(solar_system_config(include_moons))


def inner_solar_system():
    """
    Linked hierarchy of the Sun, Mercury, Venus, Earth with the Moon, and Mars.

    Returns
    -------
    Hierarchy
    """
    return Hierarchy.from_config(_with_children(SUN, [
        _with_children(MERCURY),
        _with_children(VENUS),
        _with_children(EARTH, [MOON]),
        _with_children(MARS),
    ]))


def sun_earth_moon():
    """
    Linked three-body hierarchy Sun > Earth > Moon.

    Returns
    -------
    Hierarchy
    """
    return Hierarchy.from_config(
        _with_children(SUN, [_with_children(EARTH, [MOON])]))
