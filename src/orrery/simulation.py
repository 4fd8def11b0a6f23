'''Orbital mechanics core for the orrery package
Simulation class definition: per-tick orchestration of propagation and LOD'''

import logging
import numpy as np
import plotly.graph_objects as go
from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, List, Optional
from .config import config
from .lod import LODController
from .nbody import NBodyIntegrator
from .propagator import propagate_hierarchy

logger = logging.getLogger(__name__)


class PhysicsMode(Enum):
    ANALYTIC = 'analytic'
    NBODY = 'nbody'


@dataclass
class TickResult:
    """
    Outcome of one simulation tick.

    Attributes
    ----------
    t : float
        Simulation time after the tick [yr]
    mode : PhysicsMode
        Propagation mode that produced the state
    updated : list of int
        Bodies whose state was written
    rebuilt : list of int
        Bodies whose orbit path was regenerated
    """
    t: float
    mode: PhysicsMode
    updated: List[int] = field(default_factory=list)
    rebuilt: List[int] = field(default_factory=list)


class Simulation:
    """
    Drives a hierarchy one externally clocked tick at a time.

    Exactly one propagation component writes body state: the analytic
    propagator or the N-body integrator, selected by mode. After the
    physics phase the orbit paths are updated for the camera position.

    Parameters
    ----------
    hierarchy : Hierarchy
        Linked hierarchy
    mode : PhysicsMode or str, optional
        'analytic' (default) or 'nbody'
    scale : float, optional
        Display units per AU (default: config.AU_SCALE)
    lod : bool, optional
        Maintain adaptive orbit paths (default True)

    Examples
    --------
    >>> from orrery import Simulation, solar_system
    >>> sim = Simulation(solar_system())
    >>> result = sim.tick(t=0.5, dt=1/365, camera_position=[0, 50, 0])
    """

    # ========== CONSTRUCTION ==========
    def __init__(self, hierarchy, mode='analytic', scale=None, lod=True):
        if not hierarchy.is_linked:
            raise RuntimeError(
                "Simulation requires a linked hierarchy; call link() first")
        self.hierarchy = hierarchy
        self.scale = config.AU_SCALE if scale is None else float(scale)
        self.time = 0.0
        self.nbody: Optional[NBodyIntegrator] = None
        self._state_listeners: List[Callable] = []

        # propagation strategy per mode
        self._steppers = {
            PhysicsMode.ANALYTIC: self._step_analytic,
            PhysicsMode.NBODY: self._step_nbody,
        }

        self._mode = PhysicsMode.ANALYTIC
        propagate_hierarchy(hierarchy, 0.0, scale=self.scale)
        self.lod = LODController(hierarchy, scale=self.scale) if lod else None
        self.set_mode(mode, t=0.0)

    # ========== MODE SELECTION ==========
    @property
    def mode(self) -> PhysicsMode:
        return self._mode

    def set_mode(self, mode, t=None):
        """
        Switch the propagation mode.

        Switching to N-body seeds every body from the analytic state at
        time t; switching to analytic re-evaluates the analytic state at t.

        Parameters
        ----------
        mode : PhysicsMode or str
        t : float, optional
            Seeding time [yr] (default: current simulation time)
        """
        mode = self._parse_mode(mode)
        if t is None:
            t = self.time
        if mode == PhysicsMode.NBODY:
            self.nbody = NBodyIntegrator(self.hierarchy, scale=self.scale)
            self.nbody.initialize(t)
        elif mode == PhysicsMode.ANALYTIC:
            self.nbody = None
            propagate_hierarchy(self.hierarchy, t, scale=self.scale)
        self._mode = mode
        self.time = float(t)
        logger.info("Physics mode set to %s at t=%g", mode.value, t)

    # ========== TICK ==========
    def tick(self, t, dt, camera_position=None) -> TickResult:
        """
        Advance the simulation by one frame.

        Parameters
        ----------
        t : float
            Global simulation time after the tick [yr]; used by the
            analytic mode
        dt : float
            Step size [yr]; used by the N-body mode
        camera_position : array-like, optional
            Camera position in display units; orbit paths are updated only
            when given

        Returns
        -------
        TickResult
        """
        updated = self._steppers[self._mode](t, dt)
        self.time = float(t)

        rebuilt = []
        if camera_position is not None and self.lod is not None:
            rebuilt = self.lod.update(camera_position)
        return TickResult(t=self.time, mode=self._mode, updated=updated,
                          rebuilt=rebuilt)

    def _step_analytic(self, t, dt):
        return propagate_hierarchy(self.hierarchy, t, scale=self.scale,
                                   on_update=self._notify_state)

    def _step_nbody(self, t, dt):
        return self.nbody.step(dt, on_update=self._notify_state)

    # ========== LISTENERS ==========
    def add_state_listener(self, listener: Callable):
        """Register listener(body), called after each body's state update."""
        self._state_listeners.append(listener)

    def add_path_listener(self, listener: Callable):
        """Register listener(body, points), called after each path rebuild."""
        if self.lod is None:
            raise RuntimeError("Simulation was created with lod=False")
        self.lod.add_listener(listener)

    def _notify_state(self, body):
        for listener in self._state_listeners:
            listener(body)

    # ========== EXPORT & PLOTTING ==========
    def to_dataframe(self):
        """Current body states as a pandas DataFrame, see Hierarchy.to_dataframe."""
        return self.hierarchy.to_dataframe()

    def plot_3d(self, body_color: Optional[str] = None) -> go.Figure:
        """
        Create a 3D overview of body positions and orbit paths.

        Returns
        -------
        go.Figure
        """
        fig = go.Figure()
        if self.lod is not None:
            self.lod.add_to_plot(fig)

        positions = np.array([b.position for b in self.hierarchy])
        fig.add_trace(go.Scatter3d(
            x=positions[:, 0],
            y=positions[:, 1],
            z=positions[:, 2],
            mode='markers+text',
            marker=dict(size=4, color=body_color or config.DEFAULT_BODY_COLOR),
            text=[b.name for b in self.hierarchy],
            name='Bodies',
        ))
        fig.update_layout(
            scene=dict(
                xaxis_title='X',
                yaxis_title='Y (up)',
                zaxis_title='Z',
                aspectmode='data'
            ),
            title=f'{self.hierarchy.root_body.name} system at t = {self.time:.4f} yr '
                  f'({self._mode.value})',
            showlegend=True
        )
        return fig

    # ========== STATIC METHODS ==========
    @staticmethod
    def _parse_mode(mode):
        """Convert string or enum to PhysicsMode enum"""
        if isinstance(mode, PhysicsMode):
            return mode
        elif isinstance(mode, str):
            mode_map = {
                'analytic': PhysicsMode.ANALYTIC,
                'ANALYTIC': PhysicsMode.ANALYTIC,
                'kepler': PhysicsMode.ANALYTIC,
                'nbody': PhysicsMode.NBODY,
                'NBODY': PhysicsMode.NBODY,
                'n-body': PhysicsMode.NBODY,
                'Nbody': PhysicsMode.NBODY,
            }
            if mode in mode_map:
                return mode_map[mode]
            else:
                raise ValueError(f"Unknown physics mode '{mode}'. "
                                 f"Use: {list(mode_map.keys())}")
        else:
            raise TypeError(f"mode must be PhysicsMode or str, got {type(mode)}")

    def __repr__(self):
        return (f"Simulation(root='{self.hierarchy.root_body.name}', "
                f"mode={self._mode.value}, t={self.time}, scale={self.scale:g})")
