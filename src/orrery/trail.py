'''Orbital mechanics core for the orrery package
Bounded position history for bodies, fed by state updates'''

import logging
import numpy as np
from collections import deque
from typing import Dict, Optional
from .config import config

logger = logging.getLogger(__name__)


class OrbitTrail:
    """
    Bounded history of a body's recent positions.

    Once the trail is long enough, it shortens itself by one point per
    update while its head approaches its own tail, so a completed orbit
    does not leave a stale loop behind.

    Parameters
    ----------
    name : str
        Body the trail belongs to
    max_length : int, optional
        Maximum number of stored points (default: config.TRAIL_MAX_LENGTH)
    auto_clear_distance : float, optional
        Head-to-tail distance at which shortening starts to bite
        (default: config.TRAIL_AUTO_CLEAR_DISTANCE)
    enabled : bool, optional
        Disabled trails ignore new points (default True)
    """
    _MIN_POINTS = 50        # no shortening below this length
    _SKIP_RECENT = 30       # newest points never count as "tail"
    _MIN_LENGTH = 30        # shortest length shortening can produce

    def __init__(self, name, max_length=None, auto_clear_distance=None,
                 enabled=True):
        self.name = name
        self.max_length = config.TRAIL_MAX_LENGTH if max_length is None else int(max_length)
        if self.max_length < 2:
            raise ValueError(f"Trail length must be at least 2, got {self.max_length}")
        self.auto_clear_distance = (config.TRAIL_AUTO_CLEAR_DISTANCE
                                    if auto_clear_distance is None
                                    else float(auto_clear_distance))
        if self.auto_clear_distance <= 0:
            raise ValueError(f"Auto-clear distance must be positive, "
                             f"got {self.auto_clear_distance}")
        self.enabled = enabled
        self._points = deque()

    def add_point(self, position):
        """Append a position if the trail is enabled."""
        if not self.enabled:
            return
        position = np.array(position, dtype=float)
        self._points.append(position)
        self._chase_tail(position)
        while len(self._points) > self.max_length:
            self._points.popleft()

    def _chase_tail(self, head):
        """Drop the oldest point when the head nears the tail."""
        n = len(self._points)
        if n < self._MIN_POINTS:
            return
        tail = np.array(list(self._points)[:n - self._SKIP_RECENT])
        nearest = np.min(np.linalg.norm(tail - head, axis=1))
        proximity = min(1.0, nearest / (2 * self.auto_clear_distance))
        target = int(self._MIN_LENGTH + (self.max_length - self._MIN_LENGTH) * proximity)
        if n > target and n > self._MIN_LENGTH:
            self._points.popleft()

    def clear(self):
        self._points.clear()

    @property
    def points(self) -> np.ndarray:
        """Stored positions, oldest first, shape (n, 3)"""
        if not self._points:
            return np.empty((0, 3))
        return np.array(self._points)

    def __len__(self):
        return len(self._points)

    def __repr__(self):
        state = "enabled" if self.enabled else "disabled"
        return f"OrbitTrail('{self.name}', points={len(self)}, {state})"


class TrailRecorder:
    """
    One OrbitTrail per body, usable as a state-update listener.

    Examples
    --------
    >>> recorder = TrailRecorder()
    >>> sim.add_state_listener(recorder)
    >>> recorder['Earth'].points
    """

    def __init__(self, max_length=None, enabled=True):
        self.max_length = max_length
        self.enabled = enabled
        self.trails: Dict[str, OrbitTrail] = {}

    def __call__(self, body):
        self.record(body.name, body.position)

    def record(self, name, position):
        trail = self.trails.get(name)
        if trail is None:
            trail = OrbitTrail(name, max_length=self.max_length, enabled=self.enabled)
            self.trails[name] = trail
            logger.debug("Created trail for '%s'", name)
        trail.add_point(position)

    def set_enabled(self, enabled: bool, name: Optional[str] = None):
        """Enable or disable one trail, or all trails when name is None."""
        if name is not None:
            self.trails[name].enabled = enabled
            return
        self.enabled = enabled
        for trail in self.trails.values():
            trail.enabled = enabled

    def clear(self):
        """Clear every trail."""
        for trail in self.trails.values():
            trail.clear()

    def __getitem__(self, name) -> OrbitTrail:
        return self.trails[name]

    def __contains__(self, name):
        return name in self.trails

    def __len__(self):
        return len(self.trails)
