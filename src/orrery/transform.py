'''Orbital mechanics core for the orrery package
Orbital state transform: perifocal coordinates to display-frame state vectors

Frame conventions
-----------------
Inertial (ecliptic) frame: X toward the reference direction, Z along the
ecliptic north pole. Display frame: Y up. The remap between them is fixed,

    display = (x, z, -y)

which is a proper rotation (-90° about X), so the display frame stays
right-handed. Every position and velocity produced by the package is in the
display frame, and the axial-tilt rotation for equatorial orbits is applied
about the display Z axis after the remap.'''

import numpy as np
from typing import TYPE_CHECKING
from .kepler import solve_kepler, true_anomaly, radial_distance

if TYPE_CHECKING:
    from .orbital_elements import OrbitalElements


def perifocal_position(r, nu):
    """Orbital-plane coordinates (x_o, y_o) = (r*cos(nu), r*sin(nu))."""
    return r * np.cos(nu), r * np.sin(nu)


def vis_viva_speed(mu, r, a):
    """
    Orbital speed from the vis-viva equation.

    Parameters
    ----------
    mu : float
        Gravitational parameter of the central body [AU³/yr²]
    r : float or np.ndarray
        Current orbital radius [AU]
    a : float
        Semi-major axis [AU]

    Returns
    -------
    float or np.ndarray
        v = sqrt(mu*(2/r - 1/a)) [AU/yr]
    """
    return np.sqrt(mu * (2.0 / r - 1.0 / a))


def perifocal_velocity(mu, a, e, nu, r):
    """
    Orbital-plane velocity components.

    The direction is the standard Keplerian form (-sin(nu), e + cos(nu)),
    which is tangent to the ellipse; the magnitude is the vis-viva speed.
    For e = 0 the velocity is exactly perpendicular to the radius.

    Returns
    -------
    vx_o, vy_o : float or np.ndarray
        Velocity components in the orbital plane [AU/yr]
    """
    dx = -np.sin(nu)
    dy = e + np.cos(nu)
    norm = np.sqrt(dx**2 + dy**2)
    speed = vis_viva_speed(mu, r, a)
    return speed * dx / norm, speed * dy / norm


def rotate_to_inertial(xo, yo, omega, i, w):
    """
    Rotate orbital-plane coordinates into the inertial frame.

    Closed-form expansion of R3(omega) @ R1(i) @ R3(w) applied to
    (xo, yo, 0), avoiding a matrix product per evaluation.

    Parameters
    ----------
    xo, yo : float or np.ndarray
        Orbital-plane coordinates
    omega : float
        Longitude of ascending node [rad]
    i : float
        Inclination [rad]
    w : float
        Argument of periapsis [rad]

    Returns
    -------
    x, y, z : float or np.ndarray
        Inertial-frame components
    """
    cos_O, sin_O = np.cos(omega), np.sin(omega)
    cos_i, sin_i = np.cos(i), np.sin(i)
    cos_w, sin_w = np.cos(w), np.sin(w)

    x = ((cos_O * cos_w - sin_O * sin_w * cos_i) * xo +
         (-cos_O * sin_w - sin_O * cos_w * cos_i) * yo)
    y = ((sin_O * cos_w + cos_O * sin_w * cos_i) * xo +
         (-sin_O * sin_w + cos_O * cos_w * cos_i) * yo)
    z = (sin_w * sin_i) * xo + (cos_w * sin_i) * yo
    return x, y, z


def to_display_frame(x, y, z):
    """
    Remap inertial components to the display frame, (x, y, z) -> (x, z, -y).

    Returns an array of shape (3,) for scalar input or (n, 3) for arrays.
    """
    return np.stack(np.broadcast_arrays(x, z, -np.asarray(y)), axis=-1).astype(float)


def tilt_about_display_z(vec, tilt):
    """
    Rotate display-frame vectors about the display Z axis.

    Used to express an orbit relative to the parent's tilted equator.

    Parameters
    ----------
    vec : np.ndarray
        Array of shape (3,) or (n, 3)
    tilt : float
        Parent axial tilt [rad]

    Returns
    -------
    np.ndarray
        Rotated copy with the same shape as vec
    """
    vec = np.asarray(vec, dtype=float)
    if tilt == 0:
        return vec.copy()
    c, s = np.cos(tilt), np.sin(tilt)
    out = vec.copy()
    out[..., 0] = c * vec[..., 0] - s * vec[..., 1]
    out[..., 1] = s * vec[..., 0] + c * vec[..., 1]
    return out


def orbital_state(elements: "OrbitalElements", t, scale=1.0):
    """
    Position and velocity relative to the central body at time t.

    Parameters
    ----------
    elements : OrbitalElements
        Orbit to evaluate
    t : float or array-like
        Simulation time [yr]
    scale : float, optional
        Display units per AU (default 1.0, i.e. AU and AU/yr). Applied to
        both position and velocity so the pair stays consistent.

    Returns
    -------
    position, velocity : np.ndarray
        Display-frame vectors of shape (3,) for scalar t or (n, 3) for
        array t
    """
    a, e = elements.a, elements.e
    M = elements.mean_anomaly(t)
    E = solve_kepler(M, e)
    nu = true_anomaly(E, e)
    r = radial_distance(a, e, E)

    xo, yo = perifocal_position(r, nu)
    vxo, vyo = perifocal_velocity(elements.mu, a, e, nu, r)

    position = to_display_frame(*rotate_to_inertial(
        xo, yo, elements.omega, elements.i, elements.w))
    velocity = to_display_frame(*rotate_to_inertial(
        vxo, vyo, elements.omega, elements.i, elements.w))
    return position * scale, velocity * scale
