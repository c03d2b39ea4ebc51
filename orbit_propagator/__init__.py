"""
Orbit Propagator

SGP4/SDP4 propagation of mean orbital element sets following Spacetrack
Report #3, including the deep-space lunar/solar and resonance terms.
"""

from orbit_propagator.deep_space import IntegratorPhase, ResonanceKind, classify_resonance
from orbit_propagator.elements import ElementSet
from orbit_propagator.exceptions import (
    ConvergenceFailure,
    DecayedOrbit,
    InvalidElements,
    KeplerConvergenceError,
    PropagationError,
    PropagatorError,
    PropagatorWarning,
)
from orbit_propagator.propagator import PropagationResult, Propagator
from orbit_propagator.tle import parse_tle
from orbit_propagator.tracker import SatelliteTracker

__version__ = "1.0.0"

__all__ = [
    "ConvergenceFailure",
    "DecayedOrbit",
    "ElementSet",
    "IntegratorPhase",
    "InvalidElements",
    "KeplerConvergenceError",
    "PropagationError",
    "PropagationResult",
    "Propagator",
    "PropagatorError",
    "PropagatorWarning",
    "ResonanceKind",
    "SatelliteTracker",
    "classify_resonance",
    "parse_tle",
]
