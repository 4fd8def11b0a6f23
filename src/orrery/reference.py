'''Orbital mechanics core for the orrery package
High-accuracy reference integrator for the softened N-body problem

Built on heyoka's adaptive Taylor integrator. Compilation is expensive
(seconds), so the integrator is meant for offline drift checks of the
Leapfrog integrator, never for per-tick use.'''

import logging
import heyoka as hy
import numpy as np
from typing import List, Optional, Tuple
from .config import config
from .utils import Timer

logger = logging.getLogger(__name__)


class ReferenceIntegrator:
    """
    Softened N-body equations of motion compiled into a Taylor integrator.

    The force law matches nbody.pairwise_forces: for each pair,
    F = G*m_i*m_j / (|d|² + eps²) along the unit separation.

    Parameters
    ----------
    masses : array-like
        Body masses, shape (n,), all positive
    G : float, optional
        Gravitational constant in the units of the states that will be
        propagated (default: config.G)
    softening : float, optional
        Softening length (default: config.SOFTENING)
    compile : bool, optional
        If True (default), compile the integrator immediately; otherwise
        compile on first propagate()
    """

    def __init__(self, masses, G=None, softening=None, compile=True):
        self._masses = np.array(masses, dtype=float)
        if self._masses.ndim != 1 or len(self._masses) < 2:
            raise ValueError(
                f"Need a 1-D array of at least two masses, got shape "
                f"{self._masses.shape}")
        if not np.all(self._masses > 0):
            raise ValueError(f"All masses must be positive, got {self._masses}")
        self.G = config.G if G is None else float(G)
        self.softening = config.SOFTENING if softening is None else float(softening)

        self._cached_eom = self._build_eom()
        self._cached_integrator = None
        if compile:
            self._compile_integrator()

    @classmethod
    def from_integrator(cls, nbody, compile=True):
        """Reference integrator matching an NBodyIntegrator's masses and units."""
        return cls(nbody.masses, G=nbody.effective_G,
                   softening=nbody.softening, compile=compile)

    # ========== PROPERTY ACCESS ==========
    @property
    def n_bodies(self) -> int:
        return len(self._masses)

    @property
    def is_compiled(self) -> bool:
        """Check if integrator has been compiled."""
        return self._cached_integrator is not None

    @property
    def cached_eom(self) -> List[Tuple]:
        """Cached set of symbolic equations of motion"""
        return self._cached_eom

    # ========== INTEGRATION ==========
    def propagate(self, positions, velocities, t_start, t_end):
        """
        Integrate from t_start to t_end.

        Parameters
        ----------
        positions, velocities : array-like
            Initial states, shape (n, 3)
        t_start, t_end : float
            Time span [yr]

        Returns
        -------
        positions, velocities : np.ndarray
            Final states, shape (n, 3)

        Raises
        ------
        ValueError
            If the inputs have the wrong shape or the integration produces
            a non-finite state
        """
        n = self.n_bodies
        positions = np.asarray(positions, dtype=float)
        velocities = np.asarray(velocities, dtype=float)
        if positions.shape != (n, 3) or velocities.shape != (n, 3):
            raise ValueError(
                f"Expected positions and velocities of shape ({n}, 3), got "
                f"{positions.shape} and {velocities.shape}")
        state = np.concatenate([positions.ravel(), velocities.ravel()])
        if not np.all(np.isfinite(state)):
            raise ValueError(f"Initial state contains NaN or Inf values: {state}")

        if not self.is_compiled:
            self._compile_integrator()
        ta = self._cached_integrator
        assert ta is not None, "Integrator should be compiled"

        # heyoka requires plain floats for times
        ta.time = float(t_start)
        ta.state[:] = state
        ta.propagate_until(float(t_end))

        if not np.all(np.isfinite(ta.state)):
            raise ValueError(
                f"Integration failed: state became invalid during propagation.\n"
                f"Final time: {ta.time}\n"
                f"Likely cause: close encounter with too little softening"
            )
        final = np.array(ta.state)
        return final[:3 * n].reshape(n, 3), final[3 * n:].reshape(n, 3)

    def compile(self):
        """Explicitly compile the integrator if not already compiled."""
        self._compile_integrator()

    # ========== UTILITY METHODS ==========
    def _build_eom(self):
        """
        Build symbolic heyoka equations of motion.

        Returns
        -------
        sys : list of (var, rhs) tuples
            State order is all positions (x0, y0, z0, x1, ...) followed by
            all velocities in the same order.
        """
        n = self.n_bodies
        names = [f"{c}{k}" for k in range(n) for c in ("x", "y", "z")]
        names += [f"v{c}{k}" for k in range(n) for c in ("x", "y", "z")]
        variables = hy.make_vars(*names)
        pos = [variables[3 * k:3 * k + 3] for k in range(n)]
        vel = [variables[3 * n + 3 * k:3 * n + 3 * k + 3] for k in range(n)]
        eps2 = self.softening**2
        # plain floats, numpy scalars do not combine with heyoka expressions
        m = [float(mass) for mass in self._masses]

        acc = [[0.0, 0.0, 0.0] for _ in range(n)]
        for i in range(n):
            for j in range(i + 1, n):
                dx = pos[j][0] - pos[i][0]
                dy = pos[j][1] - pos[i][1]
                dz = pos[j][2] - pos[i][2]
                r2 = dx**2 + dy**2 + dz**2
                # G / (|d| * s²), multiplied by the partner mass below
                factor = self.G / (hy.sqrt(r2) * (r2 + eps2))
                for c, dc in enumerate((dx, dy, dz)):
                    acc[i][c] = acc[i][c] + m[j] * factor * dc
                    acc[j][c] = acc[j][c] - m[i] * factor * dc

        sys = [(pos[k][c], vel[k][c]) for k in range(n) for c in range(3)]
        sys += [(vel[k][c], acc[k][c]) for k in range(n) for c in range(3)]
        return sys

    def _compile_integrator(self):
        """Compile the Taylor integrator (automatic differentiation and LLVM)."""
        if self._cached_integrator is not None:
            return

        with Timer(f"Compiling {self.n_bodies}-body reference integrator"):
            self._cached_integrator = hy.taylor_adaptive(
                sys=self._cached_eom,
                state=[0.0] * (6 * self.n_bodies),
            )

    def __repr__(self):
        return (f"ReferenceIntegrator(bodies={self.n_bodies}, G={self.G:.6g}, "
                f"softening={self.softening:g}, compiled={self.is_compiled})")


def leapfrog_drift(nbody, reference: Optional[ReferenceIntegrator] = None,
                   dt=1e-3, steps=1000):
    """
    Position error of the Leapfrog integrator against the Taylor reference.

    Copies the current N-body state, integrates it with the reference,
    then advances the N-body integrator by steps*dt and compares.

    Parameters
    ----------
    nbody : NBodyIntegrator
        Integrator whose current state is the initial condition; it is
        advanced in place
    reference : ReferenceIntegrator, optional
        Built from nbody when not given
    dt : float
        Leapfrog step [yr]
    steps : int
        Number of Leapfrog steps

    Returns
    -------
    np.ndarray
        Per-body position error, shape (n,), in display units
    """
    if reference is None:
        reference = ReferenceIntegrator.from_integrator(nbody)
    positions, velocities = nbody.positions(), nbody.velocities()
    expected, _ = reference.propagate(positions, velocities, 0.0, dt * steps)
    for _ in range(steps):
        nbody.step(dt)
    error = np.linalg.norm(nbody.positions() - expected, axis=1)
    logger.info("Leapfrog drift after %d steps of %g yr: max %.3e",
                steps, dt, error.max())
    return error
