'''Orbital mechanics core for the orrery package
Orbit-path geometry with distance-based level of detail

An OrbitPath is a closed polyline sampled from one body's orbit, relative to
its parent. The number of segments follows the camera distance: more when
close, fewer when far, with hysteresis to avoid rebuilding every frame.'''

import logging
import numpy as np
import pandas as pd
import plotly.graph_objects as go
from typing import Callable, Dict, List, Optional
from .config import config
from .orbital_elements import OrbitKind
from .transform import tilt_about_display_z

logger = logging.getLogger(__name__)


class OrbitPath:
    """
    Adaptive polyline for one body's orbit.

    Parameters
    ----------
    hierarchy : Hierarchy
        Linked hierarchy owning the body
    body_index : int or str
        Body with an EllipticalOrbit
    scale : float, optional
        Display units per AU (default 1.0)

    Attributes
    ----------
    max_segments : int
        Per-orbit segment ceiling, larger for visually larger orbits
    current_segments : int
        Segment count of the current polyline
    """

    # ========== CONSTRUCTION ==========
    def __init__(self, hierarchy, body_index, scale=1.0):
        self.hierarchy = hierarchy
        self.body = hierarchy.body(body_index)
        if self.body.orbit is None or self.body.orbit.kind != OrbitKind.ELLIPTICAL:
            raise ValueError(
                f"Body '{self.body.name}' has no elliptical orbit to draw")
        self.elements = self.body.orbit.elements
        self.scale = float(scale)

        visual_radius = self.elements.a * self.scale
        radius_scale = np.clip(visual_radius / config.LOD_RADIUS_REFERENCE, 0.1, 10.0)
        self.max_segments = max(config.LOD_MIN_SEGMENTS,
                                int(round(config.LOD_MAX_SEGMENTS * radius_scale)))

        self._frame_counter = 0
        self._points = None
        self.current_segments = 0
        self.rebuild(int(np.clip(config.LOD_INITIAL_SEGMENTS,
                                 config.LOD_MIN_SEGMENTS, self.max_segments)))

    # ========== LEVEL OF DETAIL ==========
    def center(self) -> np.ndarray:
        """Current position of the parent, the origin of the polyline."""
        parent = self.hierarchy.parent_of(self.body.index)
        if parent is None:
            return np.zeros(3)
        return parent.position.copy()

    def desired_segments(self, distance) -> int:
        """
        Segment count for a given camera distance.

        Linear in distance between LOD_CLOSE_DISTANCE (max_segments) and
        LOD_FAR_DISTANCE (LOD_MIN_SEGMENTS); non-increasing in distance.
        """
        close, far = config.LOD_CLOSE_DISTANCE, config.LOD_FAR_DISTANCE
        ratio = float(np.clip(1.0 - (distance - close) / (far - close), 0.0, 1.0))
        segments = round(config.LOD_MIN_SEGMENTS +
                         ratio * (self.max_segments - config.LOD_MIN_SEGMENTS))
        return int(np.clip(segments, config.LOD_MIN_SEGMENTS, self.max_segments))

    def rebuild_threshold(self) -> float:
        """Minimum segment change that triggers a rebuild."""
        return max(config.LOD_MIN_SEGMENT_CHANGE, 0.1 * self.current_segments)

    def update(self, camera_position, force=False) -> bool:
        """
        Re-evaluate the level of detail for a camera position.

        Only every config.LOD_UPDATE_INTERVAL-th call does any work, unless
        force is set. The polyline is rebuilt when the desired segment count
        differs from the current one by at least rebuild_threshold().

        Returns
        -------
        bool
            True if the polyline was rebuilt
        """
        self._frame_counter += 1
        if not force and self._frame_counter % config.LOD_UPDATE_INTERVAL != 0:
            return False

        distance = float(np.linalg.norm(
            np.asarray(camera_position, dtype=float) - self.center()))
        desired = self.desired_segments(distance)
        if abs(desired - self.current_segments) < self.rebuild_threshold():
            return False

        logger.debug("Rebuilding orbit of '%s': %d -> %d segments (distance %.4g)",
                     self.body.name, self.current_segments, desired, distance)
        self.rebuild(desired)
        return True

    def rebuild(self, segments: int):
        """
        Resample the orbit uniformly in time with the given segment count.

        The polyline has segments + 1 points; the last point repeats the
        first so the curve is closed.
        """
        segments = int(segments)
        if segments < 3:
            raise ValueError(f"An orbit path needs at least 3 segments, got {segments}")

        times = np.linspace(0.0, self.elements.orbital_period, segments,
                            endpoint=False)
        positions, _ = self.elements.state_at(times, self.scale)
        if self.body.equatorial_orbit:
            parent = self.hierarchy.parent_of(self.body.index)
            positions = tilt_about_display_z(positions, parent.axial_tilt)

        points = np.vstack([positions, positions[:1]])
        points.flags.writeable = False
        self._points = points
        self.current_segments = segments

    # ========== PROPERTY ACCESS ==========
    @property
    def points(self) -> np.ndarray:
        """Parent-relative polyline, shape (current_segments + 1, 3), read-only"""
        return self._points

    def world_points(self) -> np.ndarray:
        """Polyline translated to the parent's current position."""
        return self._points + self.center()

    # ========== EXPORT & PLOTTING ==========
    def to_dataframe(self) -> pd.DataFrame:
        """
        Export the polyline to a pandas DataFrame.

        Returns
        -------
        pd.DataFrame
            Columns x, y, z (parent-relative) and wx, wy, wz (absolute)
        """
        world = self.world_points()
        return pd.DataFrame({
            'x': self._points[:, 0],
            'y': self._points[:, 1],
            'z': self._points[:, 2],
            'wx': world[:, 0],
            'wy': world[:, 1],
            'wz': world[:, 2],
        })

    def plot_3d(self, color: Optional[str] = None, show_parent: bool = True,
                parent_color: Optional[str] = None) -> go.Figure:
        """
        Create a 3D plot of this orbit path.

        Parameters
        ----------
        color : str, optional
            Line color (default: config.DEFAULT_PATH_COLOR)
        show_parent : bool, optional
            Mark the parent's position (default True)
        parent_color : str, optional
            Marker color (default: config.DEFAULT_BODY_COLOR)

        Returns
        -------
        go.Figure
        """
        fig = go.Figure()
        if show_parent:
            center = self.center()
            parent = self.hierarchy.parent_of(self.body.index)
            fig.add_trace(go.Scatter3d(
                x=[center[0]], y=[center[1]], z=[center[2]],
                mode='markers',
                marker=dict(size=6,
                            color=parent_color or config.DEFAULT_BODY_COLOR),
                name=parent.name if parent is not None else 'Center',
            ))
        self.add_to_plot(fig, color=color or config.DEFAULT_PATH_COLOR)
        fig.update_layout(
            scene=dict(
                xaxis_title='X',
                yaxis_title='Y (up)',
                zaxis_title='Z',
                aspectmode='data'
            ),
            title=f'Orbit of {self.body.name} ({self.current_segments} segments)',
            showlegend=True
        )
        return fig

    def add_to_plot(self, fig: go.Figure, color: str = 'blue',
                    name: Optional[str] = None, **kwargs) -> go.Figure:
        """
        Add this orbit path to an existing Plotly figure.

        Returns
        -------
        go.Figure
            The same figure, modified in place
        """
        world = self.world_points()
        fig.add_trace(go.Scatter3d(
            x=world[:, 0],
            y=world[:, 1],
            z=world[:, 2],
            mode='lines',
            line=dict(color=color, width=3),
            name=name or self.body.name,
            hovertemplate='x: %{x:.4f}<br>y: %{y:.4f}<br>z: %{z:.4f}<extra></extra>',
            **kwargs
        ))
        return fig

    def __repr__(self):
        return (f"OrbitPath(body='{self.body.name}', "
                f"segments={self.current_segments}, max={self.max_segments})")


class LODController:
    """
    One OrbitPath per body with an elliptical orbit.

    Bodies without orbital data (and their subtrees) get no path.

    Parameters
    ----------
    hierarchy : Hierarchy
        Linked hierarchy
    scale : float, optional
        Display units per AU
    """

    def __init__(self, hierarchy, scale=1.0):
        self.hierarchy = hierarchy
        self.scale = float(scale)
        self.paths: Dict[int, OrbitPath] = {}
        self._listeners: List[Callable] = []
        for index in hierarchy.active_bodies():
            if index == hierarchy.root:
                continue
            self.paths[index] = OrbitPath(hierarchy, index, scale=self.scale)
        logger.info("Built %d orbit paths", len(self.paths))

    def add_listener(self, listener: Callable):
        """Register listener(body, points), called after each rebuild."""
        self._listeners.append(listener)

    def update(self, camera_position, force=False) -> List[int]:
        """
        Update every path for the camera position.

        Returns
        -------
        list of int
            Body indices whose paths were rebuilt
        """
        rebuilt = []
        for index, path in self.paths.items():
            if path.update(camera_position, force=force):
                rebuilt.append(index)
                for listener in self._listeners:
                    listener(path.body, path.points)
        return rebuilt

    def path(self, key) -> OrbitPath:
        """Path of a body given by name or index."""
        return self.paths[self.hierarchy.index_of(key)]

    def add_to_plot(self, fig: go.Figure) -> go.Figure:
        """Add every path to a figure, colored by depth in the hierarchy."""
        colors = ['red', 'orange', 'green', 'purple']
        for index, path in self.paths.items():
            depth = 0
            body = path.body
            while body.parent != self.hierarchy.root:
                body = self.hierarchy.bodies[body.parent]
                depth += 1
            path.add_to_plot(fig, color=colors[depth % len(colors)])
        return fig

    def __len__(self):
        return len(self.paths)

    def __repr__(self):
        return f"LODController(paths={len(self.paths)}, scale={self.scale:g})"
