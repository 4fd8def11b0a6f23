"""
Orrery: Hierarchical Orbit Propagation for Planetary System Visualization

A Python package that computes time-evolving positions and velocities of a
star with its planets and moons, either analytically from Keplerian elements
or numerically under pairwise gravity, and builds adaptive orbit-path
geometry for display.
"""

import logging

# Configuration
from .config import config, temp_config, OrreryConfig

# Core classes
from .orbital_elements import (OrbitalElements, OrbitalElements as OE,
                               OrbitKind, RootOrbit, EllipticalOrbit)
from .hierarchy import Body, Hierarchy
from .propagator import propagate_hierarchy, orbital_state_with_parent
from .nbody import NBodyIntegrator, pairwise_forces
from .reference import ReferenceIntegrator, leapfrog_drift
from .lod import OrbitPath, LODController
from .trail import OrbitTrail, TrailRecorder
from .simulation import Simulation, PhysicsMode, TickResult

# Kepler solver and state transform
from .kepler import solve_kepler
from .transform import orbital_state

# Default configurations
from .defaults import solar_system, inner_solar_system, sun_earth_moon

# Library logging: silent unless the application configures handlers
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Package metadata
__version__ = "0.1.0"

# Define what gets imported with "from orrery import *"
__all__ = [
    # Configuration
    "config",
    "temp_config",
    "OrreryConfig",
    # Classes
    "OrbitalElements",
    "OrbitKind",
    "RootOrbit",
    "EllipticalOrbit",
    "Body",
    "Hierarchy",
    "NBodyIntegrator",
    "ReferenceIntegrator",
    "OrbitPath",
    "LODController",
    "OrbitTrail",
    "TrailRecorder",
    "Simulation",
    "PhysicsMode",
    "TickResult",
    # Abbreviations
    "OE",
    # Functions
    "solve_kepler",
    "orbital_state",
    "propagate_hierarchy",
    "orbital_state_with_parent",
    "pairwise_forces",
    "leapfrog_drift",
    # Factories
    "solar_system",
    "inner_solar_system",
    "sun_earth_moon",
]
