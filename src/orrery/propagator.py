'''Orbital mechanics core for the orrery package
Analytic hierarchy propagator

Every body's state is recomputed from its orbital elements and its parent's
current state at a global time t, so repeated calls at the same t give the
same result and there is no accumulated drift.'''

import logging
import numpy as np
from typing import Callable, List, Optional, Tuple
from .orbital_elements import OrbitKind
from .transform import tilt_about_display_z

logger = logging.getLogger(__name__)


def orbital_state_with_parent(orbit, t, parent_position, parent_velocity,
                              parent_tilt=0.0, equatorial=False, scale=1.0):
    """
    Absolute display-frame state of one body.

    Parameters
    ----------
    orbit : RootOrbit or EllipticalOrbit
        Orbit of the body around its parent
    t : float
        Simulation time [yr]
    parent_position, parent_velocity : array-like
        Current absolute state of the parent (display units)
    parent_tilt : float, optional
        Parent axial tilt [rad]
    equatorial : bool, optional
        Rotate the relative state by parent_tilt about the display Z axis
    scale : float, optional
        Display units per AU

    Returns
    -------
    position, velocity : np.ndarray
        Absolute display-frame vectors of shape (3,)
    """
    if orbit.kind == OrbitKind.ROOT:
        return np.zeros(3), np.zeros(3)
    elif orbit.kind == OrbitKind.ELLIPTICAL:
        position, velocity = orbit.state_at(t, scale)
    else:
        raise TypeError(f"Unknown orbit kind {orbit.kind}")

    if equatorial:
        position = tilt_about_display_z(position, parent_tilt)
        velocity = tilt_about_display_z(velocity, parent_tilt)

    return (position + np.asarray(parent_position, dtype=float),
            velocity + np.asarray(parent_velocity, dtype=float))


def propagate_hierarchy(hierarchy, t, scale=1.0,
                        on_update: Optional[Callable] = None) -> List[int]:
    """
    Set every body's position and velocity for global time t.

    Depth-first from the root, which stays at the origin. Each child is
    placed relative to its parent's freshly updated state. A child without
    orbital data is skipped together with its subtree; a numerical failure
    in one child is logged and the rest of the traversal continues.

    Parameters
    ----------
    hierarchy : Hierarchy
        Linked hierarchy
    t : float
        Simulation time [yr]
    scale : float, optional
        Display units per AU (default 1.0)
    on_update : callable, optional
        Called as on_update(body) after each body's state is written

    Returns
    -------
    list of int
        Indices of the updated bodies, in traversal order

    Raises
    ------
    RuntimeError
        If the hierarchy has not been linked
    """
    if not hierarchy.is_linked:
        raise RuntimeError(
            "Cannot propagate an unlinked hierarchy; call link() first")

    bodies = hierarchy.bodies
    root = bodies[hierarchy.root]
    root.set_state(np.zeros(3), np.zeros(3))
    updated = [root.index]
    if on_update is not None:
        on_update(root)

    # (child index, parent index) pairs, children pushed in reverse order
    stack: List[Tuple[int, int]] = [(c, root.index) for c in reversed(root.children)]
    while stack:
        index, parent_index = stack.pop()
        body = bodies[index]
        parent = bodies[parent_index]

        if body.orbit is None:
            logger.warning(
                "Skipping '%s' and %d descendants: no orbital data",
                body.name, len(hierarchy.subtree(index)) - 1)
            continue

        try:
            position, velocity = orbital_state_with_parent(
                body.orbit, t, parent.position, parent.velocity,
                parent_tilt=parent.axial_tilt,
                equatorial=body.equatorial_orbit,
                scale=scale,
            )
        except (ValueError, ArithmeticError) as err:
            logger.error("Failed to propagate '%s' at t=%g: %s", body.name, t, err)
            continue

        if not (np.all(np.isfinite(position)) and np.all(np.isfinite(velocity))):
            logger.error("Non-finite state for '%s' at t=%g; subtree skipped",
                         body.name, t)
            continue

        body.set_state(position, velocity)
        updated.append(index)
        if on_update is not None:
            on_update(body)
        stack.extend((c, index) for c in reversed(body.children))

    return updated
