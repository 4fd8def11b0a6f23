'''Orbital mechanics core for the orrery package
Body and Hierarchy class definitions

The hierarchy is a flat arena: bodies live in a list and refer to their
parent and children by index.'''

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Union, Iterator, Mapping
from .orbital_elements import (OrbitalElements, OrbitKind, RootOrbit,
                               EllipticalOrbit)

logger = logging.getLogger(__name__)

Orbit = Union[RootOrbit, EllipticalOrbit]


def _zeros():
    return np.zeros(3)


@dataclass
class Body:
    """
    Physics state of a single body.

    Attributes
    ----------
    name : str
        Unique body identifier
    mass : float
        Mass [M_sun]. Must be positive for any body acting as a
        gravity source.
    index : int
        Position in the owning Hierarchy
    parent : int or None
        Index of the parent body, None for the root
    children : list of int
        Indices of the bodies orbiting this one, in configuration order
    orbit : RootOrbit, EllipticalOrbit or None
        None when the configuration carried no usable orbital data
    axial_tilt : float
        Axial tilt [rad]; applied to children with equatorial_orbit set
    radius : float or None
        Physical radius [AU], informational
    tidally_locked : bool
        Whether the body always faces its parent
    equatorial_orbit : bool
        Whether the orbit is expressed in the parent's tilted equatorial
        plane instead of the ecliptic
    position, velocity, force, acceleration : np.ndarray
        Display-frame 3-vectors, mutated only by the active propagator
    """
    name: str
    mass: float
    index: int = -1
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    orbit: Optional[Orbit] = None
    axial_tilt: float = 0.0
    radius: Optional[float] = None
    tidally_locked: bool = False
    equatorial_orbit: bool = False
    position: np.ndarray = field(default_factory=_zeros)
    velocity: np.ndarray = field(default_factory=_zeros)
    force: np.ndarray = field(default_factory=_zeros)
    acceleration: np.ndarray = field(default_factory=_zeros)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def elements(self) -> Optional[OrbitalElements]:
        """Orbital elements, or None for the root and for orbitless bodies."""
        if self.orbit is not None and self.orbit.kind == OrbitKind.ELLIPTICAL:
            return self.orbit.elements
        return None

    def set_state(self, position, velocity):
        """Overwrite position and velocity in place."""
        self.position[:] = position
        self.velocity[:] = velocity

    def reset_state(self):
        """Zero every physics vector."""
        for vec in (self.position, self.velocity, self.force, self.acceleration):
            vec.fill(0.0)

    def __repr__(self):
        parent = "root" if self.parent is None else f"parent={self.parent}"
        return f"Body('{self.name}', mass={self.mass:.6e} M_sun, {parent})"


class Hierarchy:
    """
    Tree of bodies rooted at exactly one primary.

    Bodies are added with add_body (or built from nested configuration with
    from_config) and the tree is then validated and frozen with link().
    Propagation requires a linked hierarchy.

    Examples
    --------
    >>> h = Hierarchy()
    >>> sun = h.add_body('Sun', mass=1.0)
    >>> earth = h.add_body('Earth', mass=3.0e-6, parent='Sun',
    ...                    elements={'a': 1.0, 'e': 0.0167})
    >>> h.link()
    """

    # configuration keys, long-form aliases on the right
    _FLAG_ALIASES = {
        'axialTilt': 'axial_tilt',
        'tidallyLocked': 'tidally_locked',
        'equatorialOrbit': 'equatorial_orbit',
    }
    _ORBIT_KEYS = ('a', 'e', 'i', 'omega', 'w', 'M0')
    _ORBIT_REQUIRED = ('a', 'e')

    # ========== CONSTRUCTION ==========
    def __init__(self):
        self._bodies: List[Body] = []
        self._names: Dict[str, int] = {}
        self._root: Optional[int] = None
        self._linked = False

    def add_body(
        self,
        name: str,
        mass: float,
        parent: Union[str, int, None] = None,
        elements: Union[OrbitalElements, Mapping[str, float], None] = None,
        axial_tilt: float = 0.0,
        radius: Optional[float] = None,
        tidally_locked: bool = False,
        equatorial_orbit: bool = False,
    ) -> int:
        """
        Add a body to the arena.

        Parameters
        ----------
        name : str
            Unique body name
        mass : float
            Mass [M_sun]
        parent : str or int, optional
            Parent name or index; None makes this body the root
        elements : OrbitalElements or mapping, optional
            Orbit around the parent. A mapping is read as configuration
            input (angles in degrees) and built with the parent's mass.
            Ignored for the root.
        axial_tilt : float, optional
            Axial tilt [rad]

        Returns
        -------
        int
            Index of the new body

        Raises
        ------
        ValueError
            On duplicate names, a second root, or an unknown parent
        """
        if not name:
            raise ValueError("Body name must be a non-empty string")
        if name in self._names:
            raise ValueError(f"Duplicate body name '{name}' in hierarchy")
        if not np.isfinite(mass) or mass < 0:
            raise ValueError(f"Mass of '{name}' must be non-negative, got {mass}")

        index = len(self._bodies)
        if parent is None:
            if self._root is not None:
                raise ValueError(
                    f"Hierarchy already has root '{self._bodies[self._root].name}', "
                    f"cannot add second root '{name}'"
                )
            orbit = RootOrbit()
            parent_index = None
        else:
            try:
                parent_index = self.index_of(parent)
            except (KeyError, IndexError):
                raise ValueError(
                    f"Unknown parent {parent!r} for body '{name}'") from None
            orbit = self._build_orbit(name, elements, self._bodies[parent_index])

        body = Body(
            name=name,
            mass=float(mass),
            index=index,
            parent=parent_index,
            orbit=orbit,
            axial_tilt=float(axial_tilt),
            radius=radius,
            tidally_locked=bool(tidally_locked),
            equatorial_orbit=bool(equatorial_orbit),
        )
        self._bodies.append(body)
        self._names[name] = index
        if parent_index is None:
            self._root = index
        self._linked = False
        return index

    def _build_orbit(self, name, elements, parent_body) -> Optional[EllipticalOrbit]:
        """Turn the elements argument of add_body into an orbit variant."""
        if elements is None:
            logger.warning(
                "Body '%s' has no orbital data; its orbit and subtree are skipped",
                name)
            return None
        if isinstance(elements, OrbitalElements):
            return EllipticalOrbit(elements)

        params = {OrbitalElements._PARAM_ALIASES.get(k, k): v
                  for k, v in elements.items()}
        missing = [k for k in self._ORBIT_REQUIRED if params.get(k) is None]
        if missing:
            logger.warning(
                "Body '%s' is missing orbital data %s; its orbit and subtree "
                "are skipped", name, missing)
            return None
        angles = {k: float(params.get(k) or 0.0) for k in self._ORBIT_KEYS[2:]}
        return EllipticalOrbit(OrbitalElements.from_degrees(
            params['a'], params['e'], central_mass=parent_body.mass, **angles))

    @classmethod
    def from_config(cls, config: Union[Mapping[str, Any], List[Mapping[str, Any]]]):
        """
        Build and link a hierarchy from nested configuration.

        Parameters
        ----------
        config : dict or list of dict
            Root entry with 'name', 'mass' and 'children'; every child entry
            carries orbital elements a, e, i, omega, w, M0 (degrees, long-form
            aliases accepted), 'mass', optional 'axial_tilt' (degrees),
            'tidally_locked', 'equatorial_orbit', 'radius' and its own
            'children'. An entry with 'ecliptic': False places its children
            in its equatorial plane unless they set 'equatorial_orbit'
            themselves. A list must contain exactly one root entry.

        Returns
        -------
        Hierarchy
            Linked hierarchy

        Raises
        ------
        ValueError
            If the root carries orbital elements, entries lack a name or
            mass, or any body fails validation
        """
        if isinstance(config, (list, tuple)):
            if len(config) != 1:
                raise ValueError(
                    f"Configuration must contain exactly one root entry, "
                    f"got {len(config)}")
            config = config[0]

        if config.get('parent') is not None:
            raise ValueError(
                f"Root entry '{config.get('name')}' must not have a parent")
        orbit_keys = [k for k, v in config.items() if v is not None and
                      OrbitalElements._PARAM_ALIASES.get(k, k) in cls._ORBIT_KEYS]
        if orbit_keys:
            raise ValueError(
                f"Root entry '{config.get('name')}' must not have orbital "
                f"elements, got {orbit_keys}")

        hierarchy = cls()
        hierarchy._add_from_config(config, parent=None)
        hierarchy.link()
        logger.info("Built hierarchy with %d bodies rooted at '%s'",
                    len(hierarchy), hierarchy.root_body.name)
        return hierarchy

    def _add_from_config(self, entry, parent, equatorial_default=False):
        """Recursively add an entry and its children."""
        entry = {self._FLAG_ALIASES.get(k, k): v for k, v in entry.items()}
        name = entry.get('name')
        if name is None:
            raise ValueError(f"Configuration entry without a name: {entry}")
        if entry.get('mass') is None:
            raise ValueError(f"Configuration entry '{name}' has no mass")

        elements = None
        if parent is not None:
            elements = {k: v for k, v in entry.items()
                        if OrbitalElements._PARAM_ALIASES.get(k, k)
                        in self._ORBIT_KEYS}

        index = self.add_body(
            name,
            entry['mass'],
            parent=parent,
            elements=elements,
            axial_tilt=np.radians(entry.get('axial_tilt', 0.0)),
            radius=entry.get('radius'),
            tidally_locked=entry.get('tidally_locked', False),
            equatorial_orbit=entry.get('equatorial_orbit', equatorial_default),
        )
        for child in entry.get('children') or []:
            self._add_from_config(
                child, parent=index,
                equatorial_default=not entry.get('ecliptic', True))

    # ========== VALIDATION ==========
    def link(self):
        """
        Validate the tree and resolve child lists.

        Checks that there is exactly one root, every parent exists, there
        are no cycles, the root holds a RootOrbit, no other body does, and
        every body with children has positive mass (it is a gravity source).
        The root is pinned at the origin with zero velocity.

        Returns
        -------
        Hierarchy
            self, for chaining

        Raises
        ------
        ValueError
            If any check fails
        """
        if self._root is None:
            raise ValueError("Hierarchy has no root body")

        for body in self._bodies:
            body.children = []
        for body in self._bodies:
            if body.parent is None:
                if body.index != self._root:
                    raise ValueError(f"Body '{body.name}' has no parent "
                                     f"but is not the root")
                if body.orbit is None or body.orbit.kind != OrbitKind.ROOT:
                    raise ValueError(f"Root '{body.name}' must hold a RootOrbit")
                continue
            if not 0 <= body.parent < len(self._bodies) or body.parent == body.index:
                raise ValueError(
                    f"Body '{body.name}' refers to invalid parent {body.parent}")
            if body.orbit is not None and body.orbit.kind == OrbitKind.ROOT:
                raise ValueError(
                    f"Non-root body '{body.name}' cannot hold a RootOrbit")
            self._bodies[body.parent].children.append(body.index)

        self._check_cycles()

        for body in self._bodies:
            if body.children and body.mass <= 0:
                raise ValueError(
                    f"Body '{body.name}' is a gravity source for "
                    f"{len(body.children)} children and needs positive mass, "
                    f"got {body.mass}"
                )

        root = self._bodies[self._root]
        root.reset_state()
        self._linked = True
        return self

    def _check_cycles(self):
        """Every body must reach the root in fewer than len(self) steps."""
        n = len(self._bodies)
        for body in self._bodies:
            steps = 0
            current = body
            while current.parent is not None:
                current = self._bodies[current.parent]
                steps += 1
                if steps > n:
                    raise ValueError(
                        f"Cycle detected in hierarchy at body '{body.name}'")

    # ========== TRAVERSAL ==========
    def depth_first(self, start: Optional[int] = None) -> List[int]:
        """
        Pre-order traversal of body indices.

        Parameters
        ----------
        start : int, optional
            Subtree root (default: hierarchy root)
        """
        self._require_linked()
        if start is None:
            start = self._root
        order = []
        stack = [start]
        while stack:
            index = stack.pop()
            order.append(index)
            # reversed so children are visited in configuration order
            stack.extend(reversed(self._bodies[index].children))
        return order

    def subtree(self, index: int) -> List[int]:
        """Indices of a body and all its descendants."""
        return self.depth_first(index)

    def active_bodies(self) -> List[int]:
        """
        Pre-order indices of the bodies that can be propagated.

        The root plus every body whose orbit and whose ancestors' orbits
        exist. Bodies without orbital data are excluded with their subtree.
        """
        self._require_linked()
        order = []
        stack = [self._root]
        while stack:
            index = stack.pop()
            if self._bodies[index].orbit is None:
                continue
            order.append(index)
            stack.extend(reversed(self._bodies[index].children))
        return order

    # ========== PROPERTY ACCESS ==========
    @property
    def is_linked(self) -> bool:
        """True once link() succeeded and no body was added since."""
        return self._linked

    @property
    def root(self) -> int:
        """Index of the root body."""
        if self._root is None:
            raise ValueError("Hierarchy has no root body")
        return self._root

    @property
    def root_body(self) -> Body:
        return self._bodies[self.root]

    @property
    def bodies(self) -> List[Body]:
        """All bodies in index order (read the list, do not resize it)."""
        return self._bodies

    def index_of(self, key: Union[str, int]) -> int:
        """Resolve a body name or index to an index."""
        if isinstance(key, (int, np.integer)):
            if not 0 <= key < len(self._bodies):
                raise IndexError(f"No body with index {key}")
            return int(key)
        if key not in self._names:
            raise KeyError(f"No body named '{key}'")
        return self._names[key]

    def body(self, key: Union[str, int]) -> Body:
        """Look up a body by name or index."""
        return self._bodies[self.index_of(key)]

    def parent_of(self, key: Union[str, int]) -> Optional[Body]:
        """Parent body, None for the root."""
        body = self.body(key)
        if body.parent is None:
            return None
        return self._bodies[body.parent]

    def to_dataframe(self):
        """
        Export the current state of every body to a pandas DataFrame.

        Returns
        -------
        pd.DataFrame
            Indexed by body name with columns parent, mass, x, y, z,
            vx, vy, vz
        """
        import pandas as pd

        names = [body.name for body in self._bodies]
        parents = [None if body.parent is None else self._bodies[body.parent].name
                   for body in self._bodies]
        positions = np.array([body.position for body in self._bodies]).reshape(-1, 3)
        velocities = np.array([body.velocity for body in self._bodies]).reshape(-1, 3)
        return pd.DataFrame({
            # object dtype keeps None for the root under string inference
            'parent': pd.Series(parents, index=names, dtype=object),
            'mass': pd.Series([body.mass for body in self._bodies], index=names),
            'x': pd.Series(positions[:, 0], index=names),
            'y': pd.Series(positions[:, 1], index=names),
            'z': pd.Series(positions[:, 2], index=names),
            'vx': pd.Series(velocities[:, 0], index=names),
            'vy': pd.Series(velocities[:, 1], index=names),
            'vz': pd.Series(velocities[:, 2], index=names),
        }).rename_axis('name')

    def _require_linked(self):
        if not self._linked:
            raise RuntimeError(
                "Hierarchy is not linked; call link() after adding bodies")

    # ========== SPECIAL METHODS ==========
    def __len__(self):
        return len(self._bodies)

    def __iter__(self) -> Iterator[Body]:
        return iter(self._bodies)

    def __getitem__(self, key: Union[str, int]) -> Body:
        return self.body(key)

    def __contains__(self, name) -> bool:
        return name in self._names

    def __repr__(self):
        root = self._bodies[self._root].name if self._root is not None else None
        return (f"Hierarchy(root={root!r}, bodies={len(self._bodies)}, "
                f"linked={self._linked})")
