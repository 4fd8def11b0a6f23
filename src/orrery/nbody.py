'''Orbital mechanics core for the orrery package
N-body integrator: softened pairwise gravity with kick-drift Leapfrog steps'''

import logging
import numpy as np
from typing import Callable, List, Optional
from .config import config
from .propagator import propagate_hierarchy

logger = logging.getLogger(__name__)


def pairwise_forces(positions, masses, G, softening):
    """
    Softened gravitational force on every body from every other body.

    For each pair (i, j): d = pos_j - pos_i, s = sqrt(|d|² + eps²) and
    F = G*m_i*m_j / s², applied along d/|d| on i and along -d/|d| on j.
    Coincident bodies exert no force on each other.

    Parameters
    ----------
    positions : np.ndarray
        Array of shape (n, 3)
    masses : np.ndarray
        Array of shape (n,)
    G : float
        Gravitational constant in the units of positions
    softening : float
        Softening length eps, in the units of positions

    Returns
    -------
    np.ndarray
        Net force on each body, shape (n, 3)
    """
    positions = np.asarray(positions, dtype=float)
    masses = np.asarray(masses, dtype=float)

    # d[i, j] = pos_j - pos_i
    d = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
    dist2 = np.einsum('ijk,ijk->ij', d, d)
    dist = np.sqrt(dist2)
    s2 = dist2 + softening**2

    magnitude = G * np.outer(masses, masses)
    np.divide(magnitude, s2, out=magnitude, where=s2 > 0)
    # unit separation, zero on the diagonal and for coincident bodies
    inv_dist = np.divide(1.0, dist, out=np.zeros_like(dist), where=dist > 0)
    scale = magnitude * inv_dist
    return np.einsum('ij,ijk->ik', scale, d)


class NBodyIntegrator:
    """
    Numeric propagation of a hierarchy under true pairwise gravity.

    Bodies are flattened depth-first from the hierarchy; the hierarchy is
    used only for seeding and naming. Each step is a semi-implicit Euler
    (kick-drift Leapfrog) update: v += a*dt, optional damping, x += v*dt.

    Parameters
    ----------
    hierarchy : Hierarchy
        Linked hierarchy
    G : float, optional
        Gravitational constant [AU³ M_sun⁻¹ yr⁻²] (default: config.G)
    softening : float, optional
        Softening length in display units (default: config.SOFTENING)
    damping : float, optional
        Velocity factor applied every step, 1.0 disables it
        (default: config.NBODY_DAMPING)
    scale : float, optional
        Display units per AU. The effective constant is G*scale³, so
        positions and velocities in display units stay physically
        consistent.

    Notes
    -----
    The step size is supplied by the caller and is not checked; stability
    requires dt much smaller than the shortest orbital period in the set.
    """

    def __init__(self, hierarchy, G=None, softening=None, damping=None,
                 scale=1.0):
        if not hierarchy.is_linked:
            raise RuntimeError(
                "Cannot build an N-body integrator from an unlinked hierarchy")
        self.hierarchy = hierarchy
        self.G = config.G if G is None else float(G)
        self.softening = config.SOFTENING if softening is None else float(softening)
        self.damping = config.NBODY_DAMPING if damping is None else float(damping)
        self.scale = float(scale)
        if self.softening < 0:
            raise ValueError(f"Softening must be non-negative, got {self.softening}")

        self._indices = self.flatten()
        self._masses = np.array(
            [hierarchy.bodies[i].mass for i in self._indices], dtype=float)

    def flatten(self) -> List[int]:
        """
        Depth-first indices of the bodies taking part in the integration.

        Bodies without orbital data are excluded together with their
        subtree; the root is always included.

        Raises
        ------
        ValueError
            If any included body has non-positive mass
        """
        indices = self.hierarchy.active_bodies()
        skipped = len(self.hierarchy) - len(indices)
        if skipped:
            logger.warning("%d bodies without orbital data excluded from "
                           "N-body integration", skipped)
        for index in indices:
            body = self.hierarchy.bodies[index]
            if body.mass <= 0:
                raise ValueError(
                    f"N-body integration requires positive masses, "
                    f"'{body.name}' has mass {body.mass}"
                )
        return indices

    # ========== PROPERTY ACCESS ==========
    @property
    def indices(self) -> List[int]:
        """Hierarchy indices of the integrated bodies"""
        return list(self._indices)

    @property
    def bodies(self):
        return [self.hierarchy.bodies[i] for i in self._indices]

    @property
    def masses(self) -> np.ndarray:
        return self._masses

    @property
    def effective_G(self) -> float:
        """Gravitational constant in display units, G*scale³"""
        return self.G * self.scale**3

    def positions(self) -> np.ndarray:
        """Current positions, shape (n, 3)"""
        return np.array([b.position for b in self.bodies])

    def velocities(self) -> np.ndarray:
        """Current velocities, shape (n, 3)"""
        return np.array([b.velocity for b in self.bodies])

    # ========== INTEGRATION ==========
    def initialize(self, t=0.0):
        """
        Seed every body from the analytic hierarchy state at time t.

        Forces and accelerations are reset.
        """
        propagate_hierarchy(self.hierarchy, t, scale=self.scale)
        for body in self.bodies:
            body.force.fill(0.0)
            body.acceleration.fill(0.0)
        logger.debug("Seeded %d bodies from analytic state at t=%g",
                     len(self._indices), t)

    def compute_forces(self) -> np.ndarray:
        """
        Reset the force accumulators and add all pairwise contributions.

        Returns
        -------
        np.ndarray
            Net forces, shape (n, 3), in flatten() order
        """
        forces = pairwise_forces(self.positions(), self._masses,
                                 self.effective_G, self.softening)
        for body, force in zip(self.bodies, forces):
            body.force[:] = force
        return forces

    def integrate(self, dt, on_update: Optional[Callable] = None):
        """
        Advance velocities then positions by dt from the current forces.

        Parameters
        ----------
        dt : float
            Step size [yr]
        on_update : callable, optional
            Called as on_update(body) after each body's state is written
        """
        for body in self.bodies:
            body.acceleration[:] = body.force / body.mass
            body.velocity += body.acceleration * dt
            if self.damping != 1.0:
                body.velocity *= self.damping
            body.position += body.velocity * dt
            if on_update is not None:
                on_update(body)

    def step(self, dt, on_update: Optional[Callable] = None) -> List[int]:
        """
        One full step: compute_forces then integrate.

        Returns
        -------
        list of int
            Hierarchy indices of the updated bodies
        """
        self.compute_forces()
        self.integrate(dt, on_update=on_update)
        return self.indices

    # ========== DIAGNOSTICS ==========
    def total_momentum(self) -> np.ndarray:
        """Total linear momentum Σ m*v, in display units"""
        return self._masses @ self.velocities()

    def center_of_mass(self) -> np.ndarray:
        """Mass-weighted mean position"""
        return self._masses @ self.positions() / self._masses.sum()

    def total_energy(self) -> float:
        """
        Kinetic plus softened potential energy, -G*m_i*m_j/s per pair.

        Conserved only approximately by the integrator; useful for drift
        monitoring.
        """
        velocities = self.velocities()
        kinetic = 0.5 * np.sum(self._masses * np.einsum('ij,ij->i',
                                                        velocities, velocities))
        positions = self.positions()
        d = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
        s = np.sqrt(np.einsum('ijk,ijk->ij', d, d) + self.softening**2)
        i, j = np.triu_indices(len(self._masses), k=1)
        potential = -np.sum(self.effective_G * self._masses[i] * self._masses[j]
                            / s[i, j])
        return float(kinetic + potential)

    def __len__(self):
        return len(self._indices)

    def __repr__(self):
        return (f"NBodyIntegrator(bodies={len(self._indices)}, G={self.G:.6g}, "
                f"softening={self.softening:g}, scale={self.scale:g})")
