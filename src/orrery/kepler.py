'''Orbital mechanics core for the orrery package
Kepler equation solver and anomaly conversions

All functions accept scalars or numpy arrays. Scalar input returns a Python
float, array input returns an ndarray of the same shape.'''

import numpy as np
from .config import config, GM_SUN

TWO_PI = 2 * np.pi


def _as_output(value, scalar_input):
    """Return a float for scalar callers, the array otherwise."""
    if scalar_input:
        return float(value)
    return value


def gravitational_parameter(central_mass=1.0):
    """
    Gravitational parameter of a central body.

    Parameters
    ----------
    central_mass : float
        Mass of the central body [M_sun]

    Returns
    -------
    float
        mu = 4π² * m [AU³/yr²]
    """
    return GM_SUN * central_mass


def orbital_motion(a, central_mass=1.0):
    """
    Mean motion and orbital period for an elliptic orbit.

    Parameters
    ----------
    a : float
        Semi-major axis [AU]
    central_mass : float
        Mass of the body being orbited [M_sun]

    Returns
    -------
    mean_motion : float
        n = sqrt(mu / a³) [rad/yr]
    period : float
        2π / n [yr]
    """
    mu = gravitational_parameter(central_mass)
    mean_motion = np.sqrt(mu / a**3)
    return float(mean_motion), float(TWO_PI / mean_motion)


def kepler_residual(E, e, M):
    """Residual of Kepler's equation, E - e*sin(E) - M."""
    return E - e * np.sin(E) - M


def solve_kepler_fixed_point(M, e, iterations=None):
    """
    Solve Kepler's equation by fixed-point iteration.

    E_0 = M, E_{n+1} = M + e*sin(E_n), for a fixed number of iterations
    with no convergence check. This is the cheapest solve, suited to
    per-frame evaluation of low-eccentricity orbits.

    Parameters
    ----------
    M : float or array-like
        Mean anomaly [rad]
    e : float
        Eccentricity, 0 <= e < 1
    iterations : int, optional
        Iteration count (default: config.KEPLER_ITERATIONS)

    Returns
    -------
    float or np.ndarray
        Eccentric anomaly [rad]

    Notes
    -----
    The iteration is a contraction with factor e, so the error after n
    iterations is of order e**n. At e = 0.2 and 10 iterations the
    residual is ~1e-7; at e = 0.9 it is ~0.3. Use solve_kepler for
    eccentric orbits.
    """
    if iterations is None:
        iterations = config.KEPLER_ITERATIONS
    scalar_input = np.ndim(M) == 0
    M = np.asarray(M, dtype=float)
    E = M.copy()
    for _ in range(iterations):
        E = M + e * np.sin(E)
    return _as_output(E, scalar_input)


def solve_kepler_newton(M, e, tol=None, max_iter=None):
    """
    Solve Kepler's equation by Newton-Raphson iteration.

    Starts from E_0 = M + 0.85*e*sign(sin M) with M wrapped to [-π, π],
    which converges for every e in [0, 1).

    Parameters
    ----------
    M : float or array-like
        Mean anomaly [rad]
    e : float
        Eccentricity, 0 <= e < 1
    tol : float, optional
        Residual tolerance (default: config.KEPLER_TOLERANCE)
    max_iter : int, optional
        Iteration bound (default: config.KEPLER_MAX_NEWTON_ITERATIONS)

    Returns
    -------
    float or np.ndarray
        Eccentric anomaly [rad], on the same revolution as M
    """
    if tol is None:
        tol = config.KEPLER_TOLERANCE
    if max_iter is None:
        max_iter = config.KEPLER_MAX_NEWTON_ITERATIONS
    scalar_input = np.ndim(M) == 0
    M = np.asarray(M, dtype=float)

    # wrap to [-pi, pi] and remember the revolution offset
    M_wrapped = np.mod(M + np.pi, TWO_PI) - np.pi
    offset = M - M_wrapped

    E = M_wrapped + 0.85 * e * np.sign(np.sin(M_wrapped))
    for _ in range(max_iter):
        f = kepler_residual(E, e, M_wrapped)
        if np.all(np.abs(f) < tol):
            break
        E = E - f / (1.0 - e * np.cos(E))

    return _as_output(E + offset, scalar_input)


def solve_kepler(M, e):
    """
    Solve Kepler's equation M = E - e*sin(E) for the eccentric anomaly.

    Runs config.KEPLER_ITERATIONS fixed-point iterations and, only where
    the residual is still above config.KEPLER_TOLERANCE, refines with
    Newton-Raphson. Low-eccentricity orbits therefore pay only the
    fixed-point cost while eccentric orbits up to e = 0.99 still meet
    the tolerance.

    Parameters
    ----------
    M : float or array-like
        Mean anomaly [rad]
    e : float
        Eccentricity, 0 <= e < 1

    Returns
    -------
    float or np.ndarray
        Eccentric anomaly [rad]
    """
    scalar_input = np.ndim(M) == 0
    M = np.asarray(M, dtype=float)

    # solve on M wrapped to [-pi, pi]; the residual of a large unwrapped M
    # is limited by its own float resolution
    M_wrapped = np.mod(M + np.pi, TWO_PI) - np.pi
    offset = M - M_wrapped
    E = np.asarray(solve_kepler_fixed_point(M_wrapped, e), dtype=float)

    residual = np.abs(kepler_residual(E, e, M_wrapped))
    unconverged = residual >= config.KEPLER_TOLERANCE
    if np.any(unconverged):
        if E.ndim == 0:
            E = np.asarray(solve_kepler_newton(M_wrapped, e), dtype=float)
        else:
            E = E.copy()
            E[unconverged] = solve_kepler_newton(M_wrapped[unconverged], e)

    return _as_output(E + offset, scalar_input)


def true_anomaly(E, e):
    """
    True anomaly from eccentric anomaly.

    nu = 2*atan(sqrt((1+e)/(1-e)) * tan(E/2)), evaluated with atan2 so
    E = ±π is handled. For E in [0, 2π) the result lies in [0, 2π).

    Parameters
    ----------
    E : float or array-like
        Eccentric anomaly [rad]
    e : float
        Eccentricity

    Returns
    -------
    float or np.ndarray
        True anomaly [rad]
    """
    scalar_input = np.ndim(E) == 0
    E = np.asarray(E, dtype=float)
    half = E / 2
    nu = 2 * np.arctan2(np.sqrt(1 + e) * np.sin(half),
                        np.sqrt(1 - e) * np.cos(half))
    return _as_output(nu, scalar_input)


def radial_distance(a, e, E):
    """Orbital radius r = a*(1 - e*cos(E)) [units of a]."""
    scalar_input = np.ndim(E) == 0
    r = a * (1 - e * np.cos(np.asarray(E, dtype=float)))
    return _as_output(r, scalar_input)
