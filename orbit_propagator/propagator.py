"""
Propagator Session

Entry point of the package. A ``Propagator`` holds one element set. On its
first query it initializes once and chooses a model: SGP4 for periods under
225 minutes, SDP4 with lunar/solar and resonance terms otherwise. It then
answers any number of queries in minutes from epoch.

Usage:
    from orbit_propagator import Propagator

    prop = Propagator.from_tle(line1, line2)
    result = prop.propagate(360.0)
    print(result.position_km, result.velocity_km_s)

A session is not thread-safe: deep-space queries advance the resonance
integrator and the periodic-term cache. Use one session per thread or guard it
with a lock (see ``SatelliteTracker``).
"""

import logging
import warnings
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
from sgp4.api import jday

from orbit_propagator.constants import (
    KEPLER_MAX_ITERATIONS,
    KEPLER_TOLERANCE,
    TOTHRD,
    XKE,
    XKMPER,
    XMNPDA,
)
from orbit_propagator.deep_space import DeepSpaceEngine, ResonanceKind, ResonanceState
from orbit_propagator.elements import ElementSet
from orbit_propagator.exceptions import (
    ConvergenceFailure,
    DecayedOrbit,
    KeplerConvergenceError,
    PropagationError,
)
from orbit_propagator.kepler import MeanElements, reconstruct_state
from orbit_propagator.near_earth import (
    DerivedSecularConstants,
    initialize,
    mean_elements,
    secular_drift,
)
from orbit_propagator.tle import parse_tle

logger = logging.getLogger(__name__)

MODEL_SGP4 = "sgp4"
MODEL_SDP4 = "sdp4"

# Earth radii per minute -> km/s
_VELOCITY_KM_S = XKMPER / 60.0


@dataclass(frozen=True)
class PropagationResult:
    """
    Inertial state at one query time.

    Position is in km and velocity in km/s, in the true-equator mean-equinox
    frame of the element set.
    """

    tsince_minutes: float
    position_km: np.ndarray
    velocity_km_s: np.ndarray
    kepler_iterations: int
    kepler_converged: bool
    model: str
    diagnostics: List[str] = field(default_factory=list)

    def position_megameters(self) -> np.ndarray:
        """Position in units of 1000 km."""
        return self.position_km / 1000.0

    def velocity_km_per_day(self) -> np.ndarray:
        return self.velocity_km_s * 86400.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "tsince_minutes": self.tsince_minutes,
            "position_km": self.position_km.tolist(),
            "velocity_km_s": self.velocity_km_s.tolist(),
            "kepler_iterations": self.kepler_iterations,
            "kepler_converged": self.kepler_converged,
            "model": self.model,
            "diagnostics": list(self.diagnostics),
        }


class Propagator:
    """
    SGP4/SDP4 propagation session for one element set.

    Args:
        elements: Validated element set
        strict_kepler: Raise KeplerConvergenceError instead of issuing a
            ConvergenceFailure warning when the Kepler solve hits its cap
        kepler_tolerance: Convergence threshold of the Kepler solve (rad)
        kepler_max_iterations: Iteration cap of the Kepler solve

    Warnings:
        DecayedOrbit: once, at initialization, when perigee is at or below 98 km
        ConvergenceFailure: on any query whose Kepler solve did not converge
    """

    def __init__(
        self,
        elements: ElementSet,
        strict_kepler: bool = False,
        kepler_tolerance: float = KEPLER_TOLERANCE,
        kepler_max_iterations: int = KEPLER_MAX_ITERATIONS,
    ):
        if not isinstance(elements, ElementSet):
            raise TypeError(f"expected ElementSet, got {type(elements).__name__}")
        if kepler_max_iterations < 1:
            raise ValueError("kepler_max_iterations must be at least 1")
        if not kepler_tolerance > 0.0:
            raise ValueError("kepler_tolerance must be positive")

        self.elements = elements
        self.strict_kepler = strict_kepler
        self.kepler_tolerance = kepler_tolerance
        self.kepler_max_iterations = kepler_max_iterations

        self._working = elements.to_working_units()
        self._derived: Optional[DerivedSecularConstants] = None
        self._deep: Optional[DeepSpaceEngine] = None

    @classmethod
    def from_tle(cls, line1: str, line2: str, name: str = "", **kwargs) -> "Propagator":
        return cls(parse_tle(line1, line2, name=name), **kwargs)

    @classmethod
    def from_catalog_record(cls, record: Sequence[float], name: str = "", **kwargs) -> "Propagator":
        return cls(ElementSet.from_catalog_record(record, name=name), **kwargs)

    def _ensure_initialized(self):
        if self._derived is not None:
            return

        derived = initialize(self._working)
        deep = DeepSpaceEngine(self._working, derived) if derived.deep_space else None
        self._derived = derived
        self._deep = deep

        label = self.elements.name or self.elements.satnum
        logger.debug(
            f"Session init for {label}: model={self.model}, "
            f"resonance={self.resonance_kind.value}, perigee={derived.perigee_km:.1f} km"
        )
        if derived.drag_floor_engaged:
            message = (
                f"Perigee of {label} is {derived.perigee_km:.1f} km (<= 98 km); "
                f"drag density reference held at 20 km"
            )
            logger.warning(message)
            warnings.warn(message, DecayedOrbit, stacklevel=3)

    @property
    def initialized(self) -> bool:
        return self._derived is not None

    @property
    def derived(self) -> DerivedSecularConstants:
        self._ensure_initialized()
        return self._derived

    @property
    def deep_space(self) -> Optional[DeepSpaceEngine]:
        self._ensure_initialized()
        return self._deep

    @property
    def model(self) -> str:
        return MODEL_SDP4 if self.derived.deep_space else MODEL_SGP4

    @property
    def decayed(self) -> bool:
        return self.derived.drag_floor_engaged

    @property
    def resonance_kind(self) -> ResonanceKind:
        deep = self.deep_space
        return deep.kind if deep is not None else ResonanceKind.NONE

    @property
    def resonance(self) -> Optional[ResonanceState]:
        """Integrator state of a deep-space session (None for SGP4)."""
        deep = self.deep_space
        return deep.resonance if deep is not None else None

    def _deep_mean_elements(self, tsince: float) -> MeanElements:
        c = self._derived
        drift = secular_drift(c, self._working, tsince)
        sec = self._deep.secular(tsince, drift.xmdf, drift.omgadf, drift.xnode)
        if sec.xn <= 0.0:
            raise PropagationError(f"mean motion {sec.xn!r} rad/min is not positive at t={tsince}")

        a = (XKE / sec.xn) ** TOTHRD * drift.tempa * drift.tempa
        e = sec.em - drift.tempe
        xmam = sec.xll + c.xnodp * drift.templ
        per = self._deep.periodic(tsince, e, sec.xinc, sec.omgasm, sec.xnodes, xmam)
        xl = per.xll + per.omgasm + per.xnodes
        return MeanElements(a=a, e=per.em, incl=per.xinc, argp=per.omgasm, node=per.xnodes, xl=xl)

    def propagate(self, tsince: float) -> PropagationResult:
        """
        Propagate to ``tsince`` minutes from epoch (negative before epoch).

        Raises:
            PropagationError: if the perturbed orbit leaves the model's domain
            KeplerConvergenceError: in strict mode, if the Kepler solve did not converge
        """
        tsince = float(tsince)
        self._ensure_initialized()

        if self._deep is not None:
            mean = self._deep_mean_elements(tsince)
        else:
            mean = mean_elements(self._derived, self._working, tsince)

        state = reconstruct_state(
            mean, self._derived, self.kepler_tolerance, self.kepler_max_iterations
        )

        notes = []
        kep = state.kepler
        if not kep.converged:
            message = (
                f"Kepler solve did not converge in {kep.iterations} iterations "
                f"at t={tsince} min; using last estimate"
            )
            if self.strict_kepler:
                raise KeplerConvergenceError(message)
            logger.warning(message)
            warnings.warn(message, ConvergenceFailure, stacklevel=2)
            notes.append(message)

        return PropagationResult(
            tsince_minutes=tsince,
            position_km=state.position * XKMPER,
            velocity_km_s=state.velocity * _VELOCITY_KM_S,
            kepler_iterations=kep.iterations,
            kepler_converged=kep.converged,
            model=self.model,
            diagnostics=notes,
        )

    def propagate_jd(self, jd: float, fr: float = 0.0) -> PropagationResult:
        """Propagate to the Julian day ``jd + fr``."""
        return self.propagate(XMNPDA * ((jd - self.elements.epoch_jd) + fr))

    def propagate_datetime(self, when: datetime) -> PropagationResult:
        """Propagate to a datetime (naive values are taken as UTC)."""
        if when.tzinfo is not None:
            when = when.astimezone(timezone.utc)
        seconds = when.second + when.microsecond / 1e6
        jd, fr = jday(when.year, when.month, when.day, when.hour, when.minute, seconds)
        return self.propagate_jd(jd, fr)

    def propagate_many(self, times: Iterable[float]) -> List[PropagationResult]:
        """Propagate to each time in order; the session state carries through."""
        return [self.propagate(t) for t in times]

    def __repr__(self):
        return (
            f"Propagator(satnum={self.elements.satnum}, epoch={self.elements.epoch}, "
            f"initialized={self.initialized})"
        )
